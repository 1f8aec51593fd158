"""Profile repository — CRUD for user profiles and their terrain history.

The repository mediates between domain objects (UserProfile, etc.) and the
SQLite database, using FieldEncryptor to encrypt/decrypt raw quiz answers.
Profiles are updated in place; there is no operation that replaces a
profile's id.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any

from terrain.core.storage.database import TerrainDatabase
from terrain.core.storage.encryption import FieldEncryptor
from terrain.core.storage.models import (
    LIFESTYLE_FIELD_NAMES,
    QuizResponse,
    TerrainHistoryEntry,
    UserProfile,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class ProfileRepository:
    """CRUD repository for encrypted user profiles.

    Usage::

        db = TerrainDatabase(":memory:")
        db.initialize()
        repo = ProfileRepository(db, FieldEncryptor(key="..."))

        profile_id = repo.create_profile(profile)
        profile = repo.get_profile(profile_id)
        repo.save_profile(profile)
    """

    def __init__(self, database: TerrainDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def create_profile(self, profile: UserProfile) -> str:
        """Insert a new profile.

        If ``profile.id`` is empty a UUID is generated and assigned to the
        profile object.

        Raises:
            RepositoryError: If a profile with the same id already exists.
        """
        if not profile.id:
            profile.id = self._new_id()
        if not profile.created_at:
            profile.created_at = self._now_iso()
        if not profile.updated_at:
            profile.updated_at = profile.created_at

        conn = self._db.connection
        try:
            conn.execute(
                """INSERT INTO user_profiles (
                    id, created_at, updated_at, goals_json,
                    terrain_profile_id, terrain_modifier, terrain_vector_json, quiz_version,
                    quiz_responses_enc, lifestyle_enc
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (profile.id, profile.created_at, *self._mutable_columns(profile)),
            )
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(f"Profile {profile.id} already exists") from exc

        if profile.terrain_profile_id:
            self._insert_history(profile)
        conn.commit()
        logger.info("Created profile %s (terrain=%s)", profile.id, profile.terrain_profile_id)
        return profile.id

    def save_profile(self, profile: UserProfile) -> None:
        """Persist an existing profile's mutable fields in place.

        A terrain history row is appended whenever the profile carries a
        terrain id.

        Raises:
            RepositoryError: If the profile does not exist.
        """
        conn = self._db.connection
        cursor = conn.execute(
            """UPDATE user_profiles SET
                updated_at = ?, goals_json = ?,
                terrain_profile_id = ?, terrain_modifier = ?, terrain_vector_json = ?,
                quiz_version = ?, quiz_responses_enc = ?, lifestyle_enc = ?
               WHERE id = ?""",
            (*self._mutable_columns(profile), profile.id),
        )
        if cursor.rowcount == 0:
            conn.rollback()
            raise RepositoryError(f"Profile {profile.id} not found")

        if profile.terrain_profile_id:
            self._insert_history(profile)
        conn.commit()
        logger.info(
            "Saved profile %s (terrain=%s, quiz v%d)",
            profile.id,
            profile.terrain_profile_id,
            profile.quiz_version,
        )

    def get_profile(self, profile_id: str) -> UserProfile | None:
        """Load and decrypt a profile by id."""
        row = self._db.connection.execute(
            "SELECT * FROM user_profiles WHERE id = ?", (profile_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_profile(row)

    def profile_exists(self, profile_id: str) -> bool:
        """Check for a profile without decrypting it."""
        row = self._db.connection.execute(
            "SELECT 1 FROM user_profiles WHERE id = ?", (profile_id,)
        ).fetchone()
        return row is not None

    def count_profiles(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM user_profiles").fetchone()
        return row[0]

    def count_by_terrain(self) -> dict[str, int]:
        """Number of profiles per terrain id (unencrypted column)."""
        rows = self._db.connection.execute(
            """SELECT terrain_profile_id, COUNT(*) FROM user_profiles
               WHERE terrain_profile_id IS NOT NULL
               GROUP BY terrain_profile_id ORDER BY terrain_profile_id"""
        ).fetchall()
        return {row[0]: row[1] for row in rows}

    def delete_profile(self, profile_id: str) -> bool:
        """Delete a profile and its history. Returns False if it did not exist."""
        conn = self._db.connection
        conn.execute("DELETE FROM terrain_history WHERE profile_id = ?", (profile_id,))
        cursor = conn.execute("DELETE FROM user_profiles WHERE id = ?", (profile_id,))
        conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted profile %s", profile_id)
        return deleted

    # ------------------------------------------------------------------
    # Terrain history
    # ------------------------------------------------------------------

    def get_terrain_history(self, profile_id: str, *, limit: int = 50) -> list[TerrainHistoryEntry]:
        """Applied classifications for a profile, newest first."""
        rows = self._db.connection.execute(
            """SELECT * FROM terrain_history WHERE profile_id = ?
               ORDER BY recorded_at DESC, rowid DESC LIMIT ?""",
            (profile_id, limit),
        ).fetchall()
        return [
            TerrainHistoryEntry(
                id=row["id"],
                profile_id=row["profile_id"],
                terrain_profile_id=row["terrain_profile_id"],
                terrain_modifier=row["terrain_modifier"],
                terrain_vector=json.loads(row["terrain_vector_json"] or "{}"),
                quiz_version=row["quiz_version"],
                recorded_at=row["recorded_at"],
            )
            for row in rows
        ]

    def _insert_history(self, profile: UserProfile) -> None:
        self._db.connection.execute(
            """INSERT INTO terrain_history
               (id, profile_id, terrain_profile_id, terrain_modifier,
                terrain_vector_json, quiz_version, recorded_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                self._new_id(),
                profile.id,
                profile.terrain_profile_id,
                profile.terrain_modifier,
                json.dumps(profile.terrain_vector, separators=(",", ":")),
                profile.quiz_version,
                profile.updated_at or self._now_iso(),
            ),
        )

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    def _mutable_columns(self, profile: UserProfile) -> tuple[Any, ...]:
        return (
            profile.updated_at or self._now_iso(),
            json.dumps(list(profile.goals)),
            profile.terrain_profile_id,
            profile.terrain_modifier,
            json.dumps(profile.terrain_vector, separators=(",", ":")),
            profile.quiz_version,
            self._enc.encrypt([r.as_dict() for r in profile.quiz_responses]),
            self._enc.encrypt(profile.lifestyle()),
        )

    def _row_to_profile(self, row: sqlite3.Row) -> UserProfile:
        responses = self._enc.decrypt(row["quiz_responses_enc"]) or []
        lifestyle = self._enc.decrypt(row["lifestyle_enc"]) or {}
        profile = UserProfile(
            id=row["id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"] or "",
            goals=json.loads(row["goals_json"] or "[]"),
            terrain_profile_id=row["terrain_profile_id"],
            terrain_modifier=row["terrain_modifier"],
            terrain_vector=json.loads(row["terrain_vector_json"] or "{}"),
            quiz_responses=[
                QuizResponse(question_id=r["question_id"], option_id=r["option_id"])
                for r in responses
            ],
            quiz_version=row["quiz_version"],
        )
        for name in LIFESTYLE_FIELD_NAMES:
            setattr(profile, name, lifestyle.get(name))
        return profile
