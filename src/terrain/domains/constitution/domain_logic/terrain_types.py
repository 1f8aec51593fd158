"""Terrain types — the closed set of constitution categories.

Each member's value is its stable ``terrain_profile_id``. That id is what gets
persisted on a user profile, so renaming a value is an incompatible change
and must come with a ``quiz_version`` bump in the catalog.
"""

from __future__ import annotations

from enum import Enum


class PrimaryType(str, Enum):
    """Primary constitution category produced by the scoring engine."""

    LOW_FLAME = "low_flame"
    HIGH_FLAME = "high_flame"
    LOW_BATTERY = "low_battery"
    DAMP_GARDEN = "damp_garden"
    BRIGHT_BUT_THIN = "bright_but_thin"
    BUSY_MIND = "busy_mind"

    @property
    def terrain_profile_id(self) -> str:
        return self.value

    @property
    def nickname(self) -> str:
        return NICKNAMES[self]

    @classmethod
    def from_profile_id(cls, profile_id: str | None) -> PrimaryType | None:
        """Resolve a stored terrain id; ``None`` when absent or unrecognized."""
        if not profile_id:
            return None
        try:
            return cls(profile_id)
        except ValueError:
            return None


NICKNAMES: dict[PrimaryType, str] = {
    PrimaryType.LOW_FLAME: "Low Flame",
    PrimaryType.HIGH_FLAME: "High Flame",
    PrimaryType.LOW_BATTERY: "Low Battery",
    PrimaryType.DAMP_GARDEN: "Damp Garden",
    PrimaryType.BRIGHT_BUT_THIN: "Bright but Thin",
    PrimaryType.BUSY_MIND: "Busy Mind",
}

UNKNOWN_NICKNAME = "Unknown"


def nickname_for(profile_id: str | None) -> str:
    """Display nickname for a stored terrain id (``Unknown`` if unrecognized)."""
    primary = PrimaryType.from_profile_id(profile_id)
    return primary.nickname if primary is not None else UNKNOWN_NICKNAME
