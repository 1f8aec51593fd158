"""Catalog loader — reads quiz catalog YAML definitions from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from terrain.domains.constitution.domain_logic.catalog import (
    CatalogError,
    InclusionRule,
    ModifierThreshold,
    Option,
    Question,
    QuizCatalog,
    Section,
)
from terrain.domains.constitution.domain_logic.terrain_types import PrimaryType

logger = logging.getLogger(__name__)

# Catalog YAML definitions live under src/terrain/domains/constitution/catalogs/
CATALOG_DIR = Path(__file__).resolve().parent.parent / "catalogs"
DEFAULT_CATALOG_PATH = CATALOG_DIR / "terrain_quiz.v2.yaml"


def load_default_catalog() -> QuizCatalog:
    """Load the catalog shipped with the package."""
    return load_catalog_file(DEFAULT_CATALOG_PATH)


def load_catalog_file(path: str | Path) -> QuizCatalog:
    """Parse and validate a catalog YAML file.

    Raises:
        CatalogError: If the file cannot be read, parsed, or fails validation.
    """
    # Imported here: the validator builds on this module's parser.
    from terrain.domains.constitution.domain_logic.catalog_validator import validate_catalog

    path = Path(path)
    catalog = parse_catalog_file(path)
    errors = validate_catalog(catalog)
    if errors:
        raise CatalogError(f"{path}: invalid catalog: " + "; ".join(errors))
    logger.info(
        "Loaded catalog: %s (quiz v%d, %d questions)",
        catalog.id,
        catalog.quiz_version,
        len(catalog.questions),
    )
    return catalog


def parse_catalog_file(path: Path) -> QuizCatalog:
    """Parse a catalog YAML file without semantic validation."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise CatalogError(f"Cannot read catalog {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise CatalogError(f"Malformed catalog YAML {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise CatalogError(f"Catalog {path} must be a YAML mapping")
    return parse_catalog(data)


def parse_catalog(data: dict[str, Any]) -> QuizCatalog:
    """Build a QuizCatalog from already-decoded YAML data."""
    try:
        axis_types = {
            axis: _parse_primary_type(type_id)
            for axis, type_id in _mapping(data.get("axis_types"), "axis_types").items()
        }
        modifier_data = _mapping(data.get("modifier"), "modifier")
        return QuizCatalog(
            id=data["id"],
            quiz_version=int(data["quiz_version"]),
            axes=tuple(data["axes"]),
            axis_types=MappingProxyType(axis_types),
            sections=tuple(
                Section(id=s["id"], label=s["label"]) for s in data.get("sections", [])
            ),
            questions=tuple(_parse_question(q) for q in data["questions"]),
            modifier=ModifierThreshold(
                min_ratio=float(modifier_data.get("min_ratio", ModifierThreshold.min_ratio)),
                min_score=float(modifier_data.get("min_score", ModifierThreshold.min_score)),
            ),
            lifestyle_fields=MappingProxyType(dict(data.get("lifestyle_fields") or {})),
            goals=tuple(data.get("goals", [])),
            description=(data.get("description") or "").strip(),
        )
    except KeyError as exc:
        raise CatalogError(f"Catalog is missing required key {exc}") from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise CatalogError(f"Catalog has an invalid value: {exc}") from exc


def _parse_primary_type(type_id: str) -> PrimaryType:
    primary = PrimaryType.from_profile_id(type_id)
    if primary is None:
        raise CatalogError(f"Unknown terrain type {type_id!r}")
    return primary


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CatalogError(f"{where} must be a mapping, got {type(value).__name__}")
    return value


def _parse_question(data: dict[str, Any]) -> Question:
    question_id = data["id"]
    title = data["title"]
    if not isinstance(title, str):
        raise CatalogError(f"Question {question_id!r}: title must be a string")

    include_when = None
    if data.get("include_when") is not None:
        include_data = _mapping(data["include_when"], f"Question {question_id!r} include_when")
        include_when = InclusionRule(goals_any=frozenset(include_data.get("goals_any") or []))

    return Question(
        id=question_id,
        title=title.strip(),
        section=data["section"],
        options=tuple(
            Option(
                id=o["id"],
                label=o["label"],
                weights=MappingProxyType(
                    {axis: float(w) for axis, w in (o.get("weights") or {}).items()}
                ),
            )
            for o in data.get("options", [])
        ),
        include_when=include_when,
    )
