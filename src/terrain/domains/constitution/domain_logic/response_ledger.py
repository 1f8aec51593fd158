"""Response ledger — ordered, question-keyed quiz answers.

Answering the same question again replaces the earlier answer and moves it to
the end; a ledger never holds two entries for one question. The ledger does
not check that an option belongs to its question: that happens when the
scoring engine folds it against a catalog.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from terrain.core.storage.models import QuizResponse
from terrain.domains.constitution.domain_logic.catalog import Question


class ResponseLedger:
    """Per-session collection of (question_id, option_id) answers.

    Usage::

        ledger = ResponseLedger()
        ledger.record("q1_hands_feet", "cold")
        ledger.record("q1_hands_feet", "warm")  # replaces the first answer
        ledger.answer_for("q1_hands_feet")        # "warm"
    """

    def __init__(self, responses: Iterable[QuizResponse] = ()) -> None:
        self._responses: list[QuizResponse] = []
        for response in responses:
            self.record(response.question_id, response.option_id)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> ResponseLedger:
        return cls(QuizResponse(question_id=q, option_id=o) for q, o in pairs)

    @classmethod
    def from_mapping(cls, answers: dict[str, str]) -> ResponseLedger:
        return cls.from_pairs(answers.items())

    def record(self, question_id: str, option_id: str) -> None:
        """Record an answer, replacing any previous answer to the same question."""
        self._responses = [r for r in self._responses if r.question_id != question_id]
        self._responses.append(QuizResponse(question_id=question_id, option_id=option_id))

    def answer_for(self, question_id: str) -> str | None:
        for response in self._responses:
            if response.question_id == question_id:
                return response.option_id
        return None

    def is_complete(self, questions: Sequence[Question]) -> bool:
        """True iff every question in ``questions`` has a recorded answer."""
        return not self.missing(questions)

    def missing(self, questions: Sequence[Question]) -> list[str]:
        """Ids of unanswered questions, in question order."""
        answered = {r.question_id for r in self._responses}
        return [q.id for q in questions if q.id not in answered]

    @property
    def responses(self) -> tuple[QuizResponse, ...]:
        return tuple(self._responses)

    def copy(self) -> ResponseLedger:
        return ResponseLedger(self._responses)

    def __iter__(self) -> Iterator[QuizResponse]:
        return iter(tuple(self._responses))

    def __len__(self) -> int:
        return len(self._responses)

    def __contains__(self, question_id: object) -> bool:
        return any(r.question_id == question_id for r in self._responses)

    def __repr__(self) -> str:
        return f"ResponseLedger({list(self._responses)!r})"
