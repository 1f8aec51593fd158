"""MCP Resources for quiz catalog discovery."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from terrain.domains.constitution.domain_logic.catalog import QuizCatalog


def register_catalog_resources(mcp: FastMCP, catalog: QuizCatalog) -> None:
    """Register quiz catalog discovery resources on the MCP server."""

    @mcp.resource("catalog://terrain/quiz")
    def terrain_quiz_catalog_resource() -> str:
        """Describe the active quiz catalog: axes, terrain types, sections, questions."""
        return json.dumps(
            {
                "catalog_id": catalog.id,
                "quiz_version": catalog.quiz_version,
                "description": catalog.description,
                "axes": [
                    {
                        "axis": axis,
                        "priority": i,
                        "terrain_profile_id": catalog.axis_types[axis].value,
                        "nickname": catalog.axis_types[axis].nickname,
                    }
                    for i, axis in enumerate(catalog.axes)
                ],
                "modifier": {
                    "min_ratio": catalog.modifier.min_ratio,
                    "min_score": catalog.modifier.min_score,
                },
                "goals": list(catalog.goals),
                "sections": [{"id": s.id, "label": s.label} for s in catalog.sections],
                "questions": [
                    {
                        "id": q.id,
                        "section": q.section,
                        "conditional_on": sorted(q.include_when.goals_any) if q.include_when else [],
                        "option_count": len(q.options),
                    }
                    for q in catalog.questions
                ],
            },
            indent=2,
        )
