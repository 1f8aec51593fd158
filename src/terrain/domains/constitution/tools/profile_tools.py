"""MCP tools that create and update persisted terrain profiles.

Onboarding creates the profile once. Retakes reuse the same record: answers
are edited, the terrain is recomputed and written back in place, and a
history row is appended under the unchanged profile id.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from terrain.core.storage.models import UserProfile
from terrain.domains.constitution.domain_logic.profile_updater import apply_result, needs_retake
from terrain.domains.constitution.domain_logic.quiz_session import IncompleteQuizError, QuizSession
from terrain.domains.constitution.domain_logic.response_ledger import ResponseLedger
from terrain.domains.constitution.domain_logic.scoring_engine import ClassificationError
from terrain.domains.constitution.domain_logic.terrain_types import nickname_for
from terrain.domains.constitution.tools.quiz_tools import error_response

if TYPE_CHECKING:
    from terrain.core.storage.repository import ProfileRepository
    from terrain.domains.constitution.domain_logic.scoring_engine import TerrainScoringEngine

logger = logging.getLogger(__name__)


def register_profile_tools(
    mcp: FastMCP,
    engine: TerrainScoringEngine,
    repository: ProfileRepository,
) -> None:
    """Register profile tools on the MCP server (requires storage)."""
    catalog = engine.catalog

    @mcp.tool
    async def complete_onboarding(
        ctx: Context,
        answers: dict[str, str],
        goals: list[str] | None = None,
    ) -> str:
        """Finish the onboarding quiz and create the user's terrain profile.

        Every question selected for the goals must be answered.

        Args:
            answers: Mapping of question id to chosen option id.
            goals: Goal tags the user selected.
        """
        session = QuizSession(engine, goals=goals or [], ledger=ResponseLedger.from_mapping(answers))
        try:
            result = session.finish()
        except IncompleteQuizError as exc:
            return error_response("incomplete_quiz", str(exc), missing=exc.missing)
        except ClassificationError as exc:
            return error_response("malformed_response", str(exc))

        profile = UserProfile(id=str(uuid.uuid4()), goals=list(goals or []))
        apply_result(profile, result, session.ledger, catalog)
        repository.create_profile(profile)

        return json.dumps({
            "status": "created",
            "profile_id": profile.id,
            "result": result.as_dict(),
        }, indent=2)

    @mcp.tool
    async def retake_quiz(
        ctx: Context,
        profile_id: str,
        answers: dict[str, str],
        goals: list[str] | None = None,
    ) -> str:
        """Edit quiz answers and recompute the terrain without recreating the profile.

        Stored answers are the starting point; ``answers`` overrides them
        question by question.

        Args:
            profile_id: The profile to update.
            answers: Changed answers (question id -> option id).
            goals: Replacement goal tags; omit to keep the stored goals.
        """
        profile = repository.get_profile(profile_id)
        if profile is None:
            return error_response("not_found", f"Profile {profile_id} not found")
        if goals is not None:
            profile.goals = list(goals)

        session = QuizSession.for_profile(engine, profile)
        for question_id, option_id in answers.items():
            session.answer_question(question_id, option_id)
        try:
            result = session.finish()
        except IncompleteQuizError as exc:
            return error_response("incomplete_quiz", str(exc), missing=exc.missing)
        except ClassificationError as exc:
            return error_response("malformed_response", str(exc))

        shift = apply_result(profile, result, session.ledger, catalog)
        repository.save_profile(profile)

        return json.dumps({
            "status": "updated",
            "profile_id": profile.id,
            "shift": shift.as_dict(),
            "result": result.as_dict(),
        }, indent=2)

    @mcp.tool
    async def get_terrain_profile(
        ctx: Context,
        profile_id: str,
    ) -> str:
        """Show a profile's current terrain, modifier and stored answers.

        Args:
            profile_id: The profile to load.
        """
        profile = repository.get_profile(profile_id)
        if profile is None:
            return error_response("not_found", f"Profile {profile_id} not found")

        return json.dumps({
            "status": "ok",
            "nickname": nickname_for(profile.terrain_profile_id),
            "modifier_nickname": (
                nickname_for(profile.terrain_modifier) if profile.terrain_modifier else None
            ),
            "needs_retake": needs_retake(profile, catalog),
            "profile": profile.as_dict(),
        }, indent=2)

    @mcp.tool
    async def terrain_history(
        ctx: Context,
        profile_id: str,
        limit: int = 20,
    ) -> str:
        """List the terrain classifications applied to a profile, newest first.

        Args:
            profile_id: The profile whose history to show.
            limit: Maximum number of entries (default: 20).
        """
        if not repository.profile_exists(profile_id):
            return error_response("not_found", f"Profile {profile_id} not found")

        entries = repository.get_terrain_history(profile_id, limit=limit)
        return json.dumps({
            "status": "ok",
            "profile_id": profile_id,
            "entries": [
                {
                    "terrain_profile_id": e.terrain_profile_id,
                    "nickname": nickname_for(e.terrain_profile_id),
                    "terrain_modifier": e.terrain_modifier,
                    "quiz_version": e.quiz_version,
                    "recorded_at": e.recorded_at,
                }
                for e in entries
            ],
        }, indent=2)
