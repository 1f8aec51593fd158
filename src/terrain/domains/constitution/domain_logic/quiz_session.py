"""Quiz session — caller-owned state for onboarding and edit-retake flows.

The scoring engine is a pure function; this class holds the mutable bits a
one-question-per-screen flow needs (current index, answers so far) and calls
the engine on demand. Nothing is notified implicitly: the caller asks for a
``preview()`` whenever it wants to re-render.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from terrain.core.storage.models import UserProfile
from terrain.domains.constitution.domain_logic.catalog import Question
from terrain.domains.constitution.domain_logic.question_selector import (
    progress_fraction,
    section_label,
)
from terrain.domains.constitution.domain_logic.response_ledger import ResponseLedger
from terrain.domains.constitution.domain_logic.scoring_engine import (
    ScoringResult,
    TerrainScoringEngine,
)

logger = logging.getLogger(__name__)


class IncompleteQuizError(Exception):
    """Raised when finishing a quiz with unanswered selected questions."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"{len(missing)} question(s) unanswered: {', '.join(missing)}")


class QuizSession:
    """Navigation and answer state for one pass through the quiz.

    The question list is selected once, at construction, so indexes and
    progress stay meaningful for the whole session.
    """

    def __init__(
        self,
        engine: TerrainScoringEngine,
        goals: Iterable[str] = (),
        ledger: ResponseLedger | None = None,
    ) -> None:
        self.engine = engine
        self.goals = frozenset(goals)
        self.ledger = ledger if ledger is not None else ResponseLedger()
        self._questions = tuple(engine.select_questions(self.goals))
        self._index = 0

    @classmethod
    def for_profile(cls, engine: TerrainScoringEngine, profile: UserProfile) -> QuizSession:
        """Start an edit session pre-filled with the profile's stored answers."""
        ledger = ResponseLedger(profile.quiz_responses)
        return cls(engine, goals=profile.goals, ledger=ledger)

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question | None:
        if self._index < len(self._questions):
            return self._questions[self._index]
        return None

    @property
    def selected_option(self) -> str | None:
        question = self.current_question
        if question is None:
            return None
        return self.ledger.answer_for(question.id)

    @property
    def can_advance(self) -> bool:
        return self.selected_option is not None

    @property
    def is_last(self) -> bool:
        return self._index >= len(self._questions) - 1

    @property
    def progress(self) -> float:
        return progress_fraction(self._index, len(self._questions))

    @property
    def section_label(self) -> str:
        if not self._questions:
            return ""
        return section_label(self.engine.catalog, self._questions, self._index)

    @property
    def answered_flags(self) -> list[bool]:
        """Per-index answered state (the dot indicator in the edit view)."""
        return [q.id in self.ledger for q in self._questions]

    def answer(self, option_id: str) -> None:
        question = self.current_question
        if question is None:
            raise IndexError("No current question to answer")
        self.answer_question(question.id, option_id)

    def answer_question(self, question_id: str, option_id: str) -> None:
        self.ledger.record(question_id, option_id)

    def next(self) -> bool:
        return self.go_to(self._index + 1)

    def previous(self) -> bool:
        return self.go_to(self._index - 1)

    def go_to(self, index: int) -> bool:
        """Jump to ``index``; returns False (and stays put) if out of range or current."""
        if index == self._index or index < 0 or index >= len(self._questions):
            return False
        self._index = index
        return True

    def preview(self) -> ScoringResult:
        """Classify the answers so far (partial ledgers are fine)."""
        return self.engine.classify(self._questions, self.ledger)

    def finish(self) -> ScoringResult:
        """Classify for commit; every selected question must be answered.

        Raises:
            IncompleteQuizError: If any selected question is unanswered.
        """
        missing = self.ledger.missing(self._questions)
        if missing:
            raise IncompleteQuizError(missing)
        result = self.engine.classify(self._questions, self.ledger)
        logger.debug("Quiz finished with terrain %s", result.terrain_profile_id)
        return result
