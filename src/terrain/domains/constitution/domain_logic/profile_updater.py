"""Apply a scoring result to a user profile, in place.

The profile record keeps its identity across any number of retakes: terrain
history rows (and everything else keyed by ``profile.id``) stay valid. Only
the terrain fields, stored answers, lifestyle fields and ``quiz_version`` are
overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from terrain.core.storage.models import UserProfile
from terrain.domains.constitution.domain_logic.catalog import CatalogError, QuizCatalog
from terrain.domains.constitution.domain_logic.response_ledger import ResponseLedger
from terrain.domains.constitution.domain_logic.scoring_engine import ScoringResult
from terrain.domains.constitution.domain_logic.terrain_types import nickname_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TerrainShift:
    """Comparison of a profile's previous terrain with a new result."""

    old_terrain_id: str | None
    new_terrain_id: str
    old_nickname: str
    new_nickname: str

    @property
    def changed(self) -> bool:
        return self.old_terrain_id != self.new_terrain_id

    @property
    def headline(self) -> str:
        return "Your terrain has shifted" if self.changed else "Your terrain is confirmed"

    def as_dict(self) -> dict[str, Any]:
        return {
            "changed": self.changed,
            "headline": self.headline,
            "old_terrain_id": self.old_terrain_id,
            "new_terrain_id": self.new_terrain_id,
            "old_nickname": self.old_nickname,
            "new_nickname": self.new_nickname,
        }


def describe_shift(old_terrain_id: str | None, result: ScoringResult) -> TerrainShift:
    return TerrainShift(
        old_terrain_id=old_terrain_id,
        new_terrain_id=result.terrain_profile_id,
        old_nickname=nickname_for(old_terrain_id),
        new_nickname=result.primary_type.nickname,
    )


def apply_result(
    profile: UserProfile,
    result: ScoringResult,
    ledger: ResponseLedger,
    catalog: QuizCatalog,
    *,
    now: str | None = None,
) -> TerrainShift:
    """Overwrite the profile's terrain fields with ``result``.

    Args:
        profile: The persisted profile to mutate. Its ``id``, ``created_at``
            and ``goals`` are left untouched.
        result: Output of ``TerrainScoringEngine.classify``.
        ledger: The ledger that produced ``result``; its full contents
            (including answers to currently unselected questions) replace
            ``profile.quiz_responses``.
        catalog: Supplies the lifestyle field map and ``quiz_version``.
        now: ISO 8601 timestamp for ``updated_at`` (defaults to UTC now).

    Returns:
        The shift from the profile's previous terrain id to the new one.
    """
    shift = describe_shift(profile.terrain_profile_id, result)

    profile.terrain_profile_id = result.terrain_profile_id
    profile.terrain_modifier = result.modifier.terrain_profile_id if result.modifier else None
    profile.terrain_vector = dict(result.vector)
    profile.quiz_responses = list(ledger.responses)

    for field_name, question_id in catalog.lifestyle_fields.items():
        if not hasattr(profile, field_name):
            raise CatalogError(f"Profile has no lifestyle field {field_name!r}")
        setattr(profile, field_name, ledger.answer_for(question_id))

    profile.quiz_version = catalog.quiz_version
    profile.updated_at = now or datetime.now(timezone.utc).isoformat()

    logger.info(
        "Applied terrain %s (modifier=%s, quiz v%d) to profile %s%s",
        profile.terrain_profile_id,
        profile.terrain_modifier,
        profile.quiz_version,
        profile.id,
        f" (was {shift.old_terrain_id})" if shift.changed and shift.old_terrain_id else "",
    )
    return shift


def needs_retake(profile: UserProfile, catalog: QuizCatalog) -> bool:
    """True when the profile was scored under an older, incompatible quiz."""
    return profile.terrain_profile_id is None or profile.quiz_version < catalog.quiz_version
