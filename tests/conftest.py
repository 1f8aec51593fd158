"""Shared test fixtures for Terrain tests."""

from __future__ import annotations

import sys
from pathlib import Path
from types import MappingProxyType

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("CATALOG_PATH", "")
    monkeypatch.setenv("DB_PATH", ":memory:")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from terrain.domains.constitution.domain_logic.catalog import (  # noqa: E402
    InclusionRule,
    ModifierThreshold,
    Option,
    Question,
    QuizCatalog,
    Section,
)
from terrain.domains.constitution.domain_logic.catalog_loader import (  # noqa: E402
    load_default_catalog,
)
from terrain.domains.constitution.domain_logic.scoring_engine import (  # noqa: E402
    TerrainScoringEngine,
)
from terrain.domains.constitution.domain_logic.terrain_types import PrimaryType  # noqa: E402


def make_question(
    id: str,
    options: dict[str, dict[str, float]],
    section: str = "main",
    goals_any: list[str] | None = None,
) -> Question:
    """Create a question from ``{option_id: weights}``."""
    return Question(
        id=id,
        title=f"Question {id}?",
        section=section,
        options=tuple(
            Option(id=oid, label=oid.replace("_", " "), weights=MappingProxyType(dict(w)))
            for oid, w in options.items()
        ),
        include_when=InclusionRule(goals_any=frozenset(goals_any)) if goals_any else None,
    )


def make_catalog(
    questions: list[Question],
    axis_types: dict[str, PrimaryType],
    *,
    min_ratio: float = 0.5,
    min_score: float = 1.0,
    quiz_version: int = 1,
    lifestyle_fields: dict[str, str] | None = None,
    sections: list[Section] | None = None,
) -> QuizCatalog:
    """Create a test catalog; ``axis_types`` order is the tie-break priority."""
    return QuizCatalog(
        id="test_quiz",
        quiz_version=quiz_version,
        axes=tuple(axis_types),
        axis_types=MappingProxyType(dict(axis_types)),
        sections=tuple(sections or [Section(id="main", label="Main")]),
        questions=tuple(questions),
        modifier=ModifierThreshold(min_ratio=min_ratio, min_score=min_score),
        lifestyle_fields=MappingProxyType(dict(lifestyle_fields or {})),
    )


@pytest.fixture
def question_factory():
    return make_question


@pytest.fixture
def catalog_factory():
    return make_catalog


@pytest.fixture
def cold_hot_catalog() -> QuizCatalog:
    """Two axes {cold, hot}; Q1 maps fully to one or the other."""
    return make_catalog(
        [make_question("q1", {"cold": {"cold": 2}, "hot": {"hot": 2}})],
        {"cold": PrimaryType.LOW_FLAME, "hot": PrimaryType.HIGH_FLAME},
    )


@pytest.fixture
def cold_hot_engine(cold_hot_catalog: QuizCatalog) -> TerrainScoringEngine:
    return TerrainScoringEngine(cold_hot_catalog)


@pytest.fixture(scope="session")
def default_catalog() -> QuizCatalog:
    """The packaged terrain_quiz catalog."""
    return load_default_catalog()


@pytest.fixture
def default_engine(default_catalog: QuizCatalog) -> TerrainScoringEngine:
    return TerrainScoringEngine(default_catalog)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def terrain_db():
    """Create an in-memory TerrainDatabase for testing."""
    from terrain.core.storage.database import TerrainDatabase

    db = TerrainDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from terrain.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def profile_repository(terrain_db, field_encryptor):
    """Create a ProfileRepository backed by in-memory SQLite."""
    from terrain.core.storage.repository import ProfileRepository

    return ProfileRepository(terrain_db, field_encryptor)
