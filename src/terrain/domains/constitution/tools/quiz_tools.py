"""MCP tools for the terrain quiz: question selection and live preview.

These tools are stateless: nothing is persisted, so they are registered
whether or not the profile bank is enabled.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from terrain.domains.constitution.domain_logic.question_selector import (
    progress_fraction,
    section_label,
    section_spans,
)
from terrain.domains.constitution.domain_logic.response_ledger import ResponseLedger
from terrain.domains.constitution.domain_logic.scoring_engine import ClassificationError

if TYPE_CHECKING:
    from terrain.domains.constitution.domain_logic.scoring_engine import TerrainScoringEngine

logger = logging.getLogger(__name__)


def error_response(error_type: str, message: str, **extra: Any) -> str:
    """JSON error payload shared by the terrain tools."""
    return json.dumps({"status": "error", "error_type": error_type, "message": message, **extra})


def register_quiz_tools(mcp: FastMCP, engine: TerrainScoringEngine) -> None:
    """Register quiz tools on the MCP server."""
    catalog = engine.catalog

    @mcp.tool
    async def get_quiz_questions(
        ctx: Context,
        goals: list[str] | None = None,
    ) -> str:
        """List the quiz questions that apply to a user's goals, in order.

        Conditional questions (e.g. cycle comfort) are only included when one
        of their goals is selected. Each question carries its section label
        and progress fraction for a one-question-per-screen flow.

        Args:
            goals: Goal tags the user selected during onboarding.
        """
        questions = engine.select_questions(goals or [])
        count = len(questions)
        return json.dumps({
            "status": "ok",
            "catalog_id": catalog.id,
            "quiz_version": catalog.quiz_version,
            "question_count": count,
            "sections": [
                {"section": s.section_id, "label": s.label, "start": s.start, "end": s.end}
                for s in section_spans(catalog, questions)
            ],
            "questions": [
                {
                    "index": i,
                    "id": q.id,
                    "title": q.title,
                    "section": q.section,
                    "section_label": section_label(catalog, questions, i),
                    "progress": round(progress_fraction(i, count), 4),
                    "conditional": q.is_conditional,
                    "options": [{"id": o.id, "label": o.label} for o in q.options],
                }
                for i, q in enumerate(questions)
            ],
        }, indent=2)

    @mcp.tool
    async def preview_terrain(
        ctx: Context,
        answers: dict[str, str],
        goals: list[str] | None = None,
    ) -> str:
        """Preview the terrain type for a (possibly partial) set of answers.

        Nothing is saved. Unanswered questions simply contribute nothing.

        Args:
            answers: Mapping of question id to chosen option id.
            goals: Goal tags used to select the applicable questions.
        """
        questions = engine.select_questions(goals or [])
        ledger = ResponseLedger.from_mapping(answers)
        try:
            result = engine.classify(questions, ledger)
        except ClassificationError as exc:
            logger.warning("Preview rejected: %s", exc)
            return error_response("malformed_response", str(exc))

        missing = ledger.missing(questions)
        return json.dumps({
            "status": "ok",
            "complete": not missing,
            "answered": len(questions) - len(missing),
            "missing": missing,
            "result": result.as_dict(),
        }, indent=2)
