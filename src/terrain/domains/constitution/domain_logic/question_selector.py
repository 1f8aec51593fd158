"""Question selection and progress labelling.

Selection is a pure filter over the catalog, so an edit session and a fresh
onboarding session with the same goals see the identical ordered list.
Section labels and progress fractions are computed from whatever list was
actually selected; nothing here assumes a fixed question count.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from terrain.domains.constitution.domain_logic.catalog import Question, QuizCatalog


@dataclass(frozen=True)
class SectionSpan:
    """A run of consecutive question indexes sharing one section label."""

    section_id: str
    label: str
    start: int
    end: int  # inclusive


def select_questions(catalog: QuizCatalog, goals: Iterable[str]) -> list[Question]:
    """Return the catalog questions that apply to ``goals``, in declaration order."""
    goal_set = frozenset(goals)
    return [q for q in catalog.questions if q.applies_to(goal_set)]


def section_label(catalog: QuizCatalog, questions: Sequence[Question], index: int) -> str:
    """Display label for the section containing ``questions[index]``.

    Raises:
        IndexError: If ``index`` is outside the selected list.
    """
    if index < 0 or index >= len(questions):
        raise IndexError(f"Question index {index} out of range for {len(questions)} questions")
    section_id = questions[index].section
    section = catalog.section(section_id)
    return section.label if section is not None else section_id


def section_spans(catalog: QuizCatalog, questions: Sequence[Question]) -> list[SectionSpan]:
    """Group the selected list into consecutive same-section runs.

    A section may appear more than once when questions from different
    sections interleave (body, cravings, body).
    """
    spans: list[SectionSpan] = []
    for index, question in enumerate(questions):
        if spans and spans[-1].section_id == question.section:
            last = spans[-1]
            spans[-1] = SectionSpan(last.section_id, last.label, last.start, index)
            continue
        section = catalog.section(question.section)
        label = section.label if section is not None else question.section
        spans.append(SectionSpan(question.section, label, index, index))
    return spans


def progress_fraction(index: int, count: int) -> float:
    """Fraction of the quiz reached when viewing question ``index`` (0-based)."""
    if count <= 0:
        return 0.0
    return min(1.0, max(0.0, (index + 1) / count))
