"""Quiz catalog data models.

A catalog is one version of the classification scheme: the axes (in
tie-break priority order), the axis -> terrain type table, the sections the
flow is grouped into, and the questions with their weighted options.
Catalog objects are immutable once loaded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from terrain.domains.constitution.domain_logic.terrain_types import PrimaryType


class CatalogError(Exception):
    """Raised when a catalog definition is malformed or inconsistent."""


@dataclass(frozen=True)
class InclusionRule:
    """Predicate over a user's goal tags deciding if a question applies."""

    goals_any: frozenset[str] = frozenset()

    def matches(self, goals: Iterable[str]) -> bool:
        return not self.goals_any.isdisjoint(goals)


@dataclass(frozen=True)
class Option:
    """One answer choice and its signed per-axis weight contributions."""

    id: str
    label: str
    weights: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Question:
    """A single quiz question.

    ``include_when`` is ``None`` for base questions, which are always asked.
    """

    id: str
    title: str
    section: str
    options: tuple[Option, ...]
    include_when: InclusionRule | None = None

    @property
    def is_conditional(self) -> bool:
        return self.include_when is not None

    def applies_to(self, goals: Iterable[str]) -> bool:
        if self.include_when is None:
            return True
        return self.include_when.matches(goals)

    def option(self, option_id: str) -> Option | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


@dataclass(frozen=True)
class Section:
    """Display grouping for progress labels ("Your Temperature", ...)."""

    id: str
    label: str


@dataclass(frozen=True)
class ModifierThreshold:
    """Significance rule for reporting a secondary (modifier) type.

    The runner-up axis must score above zero, at least ``min_score``, and at
    least ``min_ratio`` times the primary axis score. Both bounds are
    inclusive: a runner-up sitting exactly on either one is reported.
    """

    min_ratio: float = 0.5
    min_score: float = 1.0


@dataclass(frozen=True)
class QuizCatalog:
    """An immutable, versioned classification scheme."""

    id: str
    quiz_version: int
    axes: tuple[str, ...]
    axis_types: Mapping[str, PrimaryType]
    sections: tuple[Section, ...]
    questions: tuple[Question, ...]
    modifier: ModifierThreshold = field(default_factory=ModifierThreshold)
    lifestyle_fields: Mapping[str, str] = field(default_factory=dict)
    goals: tuple[str, ...] = ()
    description: str = ""

    def question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def section(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def type_for_axis(self, axis: str) -> PrimaryType:
        try:
            return self.axis_types[axis]
        except KeyError:
            raise CatalogError(f"Axis {axis!r} has no terrain type in catalog {self.id!r}") from None

    def axis_priority(self, axis: str) -> int:
        """Position of ``axis`` in the tie-break order (lower wins)."""
        return self.axes.index(axis)
