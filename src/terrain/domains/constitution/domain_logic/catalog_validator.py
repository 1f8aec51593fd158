"""Catalog validator — ensures a quiz catalog is internally consistent."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from terrain.core.storage.models import LIFESTYLE_FIELD_NAMES
from terrain.domains.constitution.domain_logic.catalog import CatalogError, QuizCatalog
from terrain.domains.constitution.domain_logic.catalog_loader import parse_catalog_file

logger = logging.getLogger(__name__)


def validate_catalog(catalog: QuizCatalog) -> list[str]:
    """Return a list of human-readable problems (empty when valid)."""
    errors: list[str] = []

    if not catalog.id:
        errors.append("Missing or empty catalog id")
    if catalog.quiz_version < 1:
        errors.append(f"quiz_version must be >= 1, got {catalog.quiz_version}")

    # Axes: non-empty, unique, every axis mapped to exactly one terrain type.
    if not catalog.axes:
        errors.append("Catalog declares no axes")
    axes = set(catalog.axes)
    if len(axes) != len(catalog.axes):
        errors.append(f"Duplicate axis in priority list: {list(catalog.axes)}")
    for axis in catalog.axes:
        if axis not in catalog.axis_types:
            errors.append(f"Axis '{axis}' has no terrain type")
    for axis in catalog.axis_types:
        if axis not in axes:
            errors.append(f"axis_types names undeclared axis '{axis}'")

    if not math.isfinite(catalog.modifier.min_ratio) or not 0 <= catalog.modifier.min_ratio <= 1:
        errors.append(f"modifier.min_ratio must be within [0, 1], got {catalog.modifier.min_ratio}")
    if not math.isfinite(catalog.modifier.min_score) or catalog.modifier.min_score < 0:
        errors.append(f"modifier.min_score must be >= 0, got {catalog.modifier.min_score}")

    section_ids = [s.id for s in catalog.sections]
    if len(set(section_ids)) != len(section_ids):
        errors.append(f"Duplicate section id in {section_ids}")

    if not catalog.questions:
        errors.append("Catalog declares no questions")

    goals = set(catalog.goals)
    seen_questions: set[str] = set()
    for question in catalog.questions:
        where = f"question '{question.id}'"
        if not question.id:
            errors.append("Question with empty id")
        if question.id in seen_questions:
            errors.append(f"Duplicate question id '{question.id}'")
        seen_questions.add(question.id)

        if question.section not in section_ids:
            errors.append(f"{where}: unknown section '{question.section}'")
        if not question.options:
            errors.append(f"{where}: has no options")

        if question.include_when is not None:
            if not question.include_when.goals_any:
                errors.append(f"{where}: include_when lists no goals")
            unknown_goals = sorted(question.include_when.goals_any - goals) if goals else []
            if unknown_goals:
                errors.append(f"{where}: include_when names unknown goals {unknown_goals}")

        seen_options: set[str] = set()
        for option in question.options:
            if option.id in seen_options:
                errors.append(f"{where}: duplicate option id '{option.id}'")
            seen_options.add(option.id)
            for axis, weight in option.weights.items():
                if axis not in axes:
                    errors.append(f"{where}, option '{option.id}': unknown axis '{axis}'")
                if not math.isfinite(weight):
                    errors.append(f"{where}, option '{option.id}': weight for '{axis}' is not finite")

    for field_name, question_id in catalog.lifestyle_fields.items():
        if field_name not in LIFESTYLE_FIELD_NAMES:
            errors.append(f"lifestyle_fields: '{field_name}' is not a profile lifestyle field")
        if question_id not in seen_questions:
            errors.append(f"lifestyle_fields: '{field_name}' maps to unknown question '{question_id}'")

    return errors


def validate_catalog_file(path: Path) -> tuple[QuizCatalog | None, list[str]]:
    """Validate a single catalog YAML file.

    Returns: (catalog_or_none, errors)
    """
    try:
        catalog = parse_catalog_file(path)
    except CatalogError as exc:
        return None, [f"{path}: Failed to load: {exc}"]

    errors = [f"{path}: {err}" for err in validate_catalog(catalog)]
    if not errors:
        logger.debug("Catalog %s is valid", path)
    return catalog, errors


def validate_catalog_directory(directory: str | Path) -> tuple[int, list[str]]:
    """Validate every catalog YAML file in a directory.

    Returns: (valid_catalog_count, errors)
    """
    directory = Path(directory)
    if not directory.is_dir():
        return 0, [f"Catalog directory not found: {directory}"]

    yaml_files = sorted(p for p in directory.glob("*.yaml") if not p.name.startswith("_"))
    if not yaml_files:
        return 0, [f"No catalog YAML files found in {directory}"]

    errors: list[str] = []
    valid = 0
    for path in yaml_files:
        catalog, file_errors = validate_catalog_file(path)
        if file_errors:
            errors.extend(file_errors)
            continue
        assert catalog is not None  # for type checkers
        valid += 1
    return valid, errors
