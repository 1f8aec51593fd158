"""Deterministic terrain scoring: quiz answers -> score vector -> terrain type.

The engine is a pure function of (catalog, questions, ledger). It never
mutates its inputs and keeps no state between calls, so a live preview and a
final commit can run side by side.

Rules:
    1. Every catalog axis starts at zero.
    2. Each answered question in the selected list adds its chosen option's
       weights. Unanswered questions add nothing.
    3. Per-axis sums use ``math.fsum``, which is exactly rounded, so the
       order in which answers were recorded cannot change the result.
    4. The primary axis is the highest score. Ties (including the all-zero
       vector of an empty ledger) go to the axis declared first in the
       catalog's ``axes`` list.
    5. The modifier is the best-ranked axis whose terrain type differs from
       the primary type, reported only if it clears the catalog's
       ``modifier`` threshold.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from terrain.domains.constitution.domain_logic.catalog import (
    CatalogError,
    Question,
    QuizCatalog,
)
from terrain.domains.constitution.domain_logic.question_selector import select_questions
from terrain.domains.constitution.domain_logic.response_ledger import ResponseLedger
from terrain.domains.constitution.domain_logic.terrain_types import PrimaryType

logger = logging.getLogger(__name__)


class ClassificationError(Exception):
    """Raised when a ledger cannot be folded against a catalog."""


class MalformedResponseError(ClassificationError):
    """An answer names an option that its question does not offer.

    This means the ledger was recorded against a different catalog version.
    """

    def __init__(self, question_id: str, option_id: str) -> None:
        self.question_id = question_id
        self.option_id = option_id
        super().__init__(
            f"Option {option_id!r} is not an option of question {question_id!r}"
        )


@dataclass(frozen=True)
class ScoringResult:
    """Full output of one classification run."""

    vector: dict[str, float]
    primary_type: PrimaryType
    primary_axis: str
    modifier: PrimaryType | None = None
    modifier_axis: str | None = None

    @property
    def terrain_profile_id(self) -> str:
        return self.primary_type.terrain_profile_id

    def as_dict(self) -> dict[str, Any]:
        return {
            "terrain_profile_id": self.terrain_profile_id,
            "primary_type": self.primary_type.value,
            "nickname": self.primary_type.nickname,
            "primary_axis": self.primary_axis,
            "modifier": self.modifier.value if self.modifier else None,
            "modifier_nickname": self.modifier.nickname if self.modifier else None,
            "modifier_axis": self.modifier_axis,
            "vector": dict(self.vector),
        }


class TerrainScoringEngine:
    """Classifies quiz ledgers against one catalog.

    Usage::

        engine = TerrainScoringEngine(catalog)
        questions = select_questions(catalog, goals)
        result = engine.classify(questions, ledger)
        result.terrain_profile_id  # e.g. "low_flame"
    """

    def __init__(self, catalog: QuizCatalog) -> None:
        self.catalog = catalog

    def select_questions(self, goals: Iterable[str]) -> list[Question]:
        return select_questions(self.catalog, goals)

    def classify(self, questions: Sequence[Question], ledger: ResponseLedger) -> ScoringResult:
        """Fold ``ledger`` over ``questions`` and classify the resulting vector.

        Answers to questions outside ``questions`` are ignored for scoring.

        Raises:
            MalformedResponseError: If an answer names an unknown option.
            CatalogError: If an option weights an axis the catalog lacks.
        """
        vector = self.score_vector(questions, ledger)
        return self.classify_vector(vector)

    def classify_catalog(self, ledger: ResponseLedger, goals: Iterable[str] = ()) -> ScoringResult:
        """Classify against the questions selected for ``goals``."""
        return self.classify(self.select_questions(goals), ledger)

    def score_vector(self, questions: Sequence[Question], ledger: ResponseLedger) -> dict[str, float]:
        contributions: dict[str, list[float]] = {axis: [] for axis in self.catalog.axes}
        selected_ids = set()

        for question in questions:
            selected_ids.add(question.id)
            option_id = ledger.answer_for(question.id)
            if option_id is None:
                continue
            option = question.option(option_id)
            if option is None:
                raise MalformedResponseError(question.id, option_id)
            for axis, weight in option.weights.items():
                if axis not in contributions:
                    raise CatalogError(
                        f"Option {option.id!r} of {question.id!r} weights unknown axis {axis!r}"
                    )
                contributions[axis].append(weight)

        stale = [r.question_id for r in ledger if r.question_id not in selected_ids]
        if stale:
            logger.debug("Ignoring answers to unselected questions: %s", stale)

        return {axis: math.fsum(values) for axis, values in contributions.items()}

    def classify_vector(self, vector: dict[str, float]) -> ScoringResult:
        """Apply the primary / tie-break / modifier rules to a score vector.

        Axes missing from ``vector`` count as zero.
        """
        vector = {axis: vector.get(axis, 0.0) for axis in self.catalog.axes}
        ranked = self.rank_axes(vector)
        primary_axis = ranked[0]
        primary_type = self.catalog.type_for_axis(primary_axis)
        primary_score = vector[primary_axis]

        modifier: PrimaryType | None = None
        modifier_axis: str | None = None
        for axis in ranked[1:]:
            axis_type = self.catalog.type_for_axis(axis)
            if axis_type == primary_type:
                continue
            if self._is_significant(vector[axis], primary_score):
                modifier, modifier_axis = axis_type, axis
            break

        return ScoringResult(
            vector=vector,
            primary_type=primary_type,
            primary_axis=primary_axis,
            modifier=modifier,
            modifier_axis=modifier_axis,
        )

    def rank_axes(self, vector: dict[str, float]) -> list[str]:
        """Catalog axes ordered by score (desc), ties by declared priority."""
        axes = self.catalog.axes
        if not axes:
            raise CatalogError(f"Catalog {self.catalog.id!r} declares no axes")
        priority = {axis: i for i, axis in enumerate(axes)}
        return sorted(axes, key=lambda axis: (-vector.get(axis, 0.0), priority[axis]))

    def _is_significant(self, score: float, primary_score: float) -> bool:
        threshold = self.catalog.modifier
        if score <= 0 or primary_score <= 0:
            return False
        # Inclusive on both bounds.
        return score >= threshold.min_score and score >= primary_score * threshold.min_ratio
