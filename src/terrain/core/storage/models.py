"""Data models for the terrain persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Profile attributes that may be filled from quiz answers (see the catalog's
# ``lifestyle_fields``). Changing this set is an incompatible quiz change.
LIFESTYLE_FIELD_NAMES = ("alcohol_frequency", "smoking_status")


@dataclass(frozen=True)
class QuizResponse:
    """One recorded answer: the chosen option for a question."""

    question_id: str
    option_id: str

    def as_dict(self) -> dict[str, str]:
        return {"question_id": self.question_id, "option_id": self.option_id}


@dataclass
class UserProfile:
    """A user's long-lived terrain profile.

    Created once when onboarding completes and mutated in place on every
    retake. ``id`` is referenced by terrain history rows (and by daily logs
    in the app), so it must never change.

    Raw answers and lifestyle fields are stored encrypted. The terrain id,
    modifier and score vector stay unencrypted for indexed queries.
    """

    id: str
    created_at: str = ""  # ISO 8601
    updated_at: str = ""
    goals: list[str] = field(default_factory=list)

    terrain_profile_id: str | None = None
    terrain_modifier: str | None = None
    terrain_vector: dict[str, float] = field(default_factory=dict)

    # Encrypted at rest
    quiz_responses: list[QuizResponse] = field(default_factory=list)
    alcohol_frequency: str | None = None
    smoking_status: str | None = None

    quiz_version: int = 0

    def lifestyle(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in LIFESTYLE_FIELD_NAMES}

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "goals": list(self.goals),
            "terrain_profile_id": self.terrain_profile_id,
            "terrain_modifier": self.terrain_modifier,
            "terrain_vector": dict(self.terrain_vector),
            "quiz_responses": [r.as_dict() for r in self.quiz_responses],
            **self.lifestyle(),
            "quiz_version": self.quiz_version,
        }


@dataclass
class TerrainHistoryEntry:
    """A terrain classification applied to a profile at a point in time."""

    id: str
    profile_id: str
    terrain_profile_id: str
    terrain_modifier: str | None = None
    terrain_vector: dict[str, float] = field(default_factory=dict)
    quiz_version: int = 0
    recorded_at: str = ""
