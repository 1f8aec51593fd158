"""Tests for TerrainScoringEngine — vector fold, tie-break and modifier rules."""

from __future__ import annotations

import itertools

import pytest

from terrain.domains.constitution.domain_logic.catalog import CatalogError
from terrain.domains.constitution.domain_logic.response_ledger import ResponseLedger
from terrain.domains.constitution.domain_logic.scoring_engine import (
    MalformedResponseError,
    TerrainScoringEngine,
)
from terrain.domains.constitution.domain_logic.terrain_types import PrimaryType


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _three_axis_engine(catalog_factory, question_factory, **kwargs) -> TerrainScoringEngine:
    """Axes cold > hot > damp in priority; q1 primary driver, q2 damp runner-up."""
    catalog = catalog_factory(
        [
            question_factory("q1", {"cold4": {"cold": 4}, "hot4": {"hot": 4}, "both": {"cold": 2, "hot": 2}}),
            question_factory("q2", {"damp2": {"damp": 2}, "damp1": {"damp": 1}, "none": {}}),
        ],
        {
            "cold": PrimaryType.LOW_FLAME,
            "hot": PrimaryType.HIGH_FLAME,
            "damp": PrimaryType.DAMP_GARDEN,
        },
        **kwargs,
    )
    return TerrainScoringEngine(catalog)


def _classify(engine: TerrainScoringEngine, **answers: str):
    ledger = ResponseLedger.from_mapping(answers)
    return engine.classify(engine.catalog.questions, ledger)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_cold_option_yields_cold_type(self, cold_hot_engine: TerrainScoringEngine):
        """Scenario A: single cold answer -> cold-mapped type, no modifier."""
        result = _classify(cold_hot_engine, q1="cold")
        assert result.vector == {"cold": 2.0, "hot": 0.0}
        assert result.primary_type is PrimaryType.LOW_FLAME
        assert result.terrain_profile_id == "low_flame"
        assert result.modifier is None

    def test_exact_tie_resolves_by_priority(self, catalog_factory, question_factory):
        """Scenario B: tie goes to the first declared axis, not the last scored."""
        catalog = catalog_factory(
            [
                question_factory("q1", {"a": {"hot": 2}}),
                question_factory("q2", {"a": {"cold": 2}}),
            ],
            {"cold": PrimaryType.LOW_FLAME, "hot": PrimaryType.HIGH_FLAME},
        )
        engine = TerrainScoringEngine(catalog)
        result = _classify(engine, q1="a", q2="a")
        assert result.vector == {"cold": 2.0, "hot": 2.0}
        assert result.primary_axis == "cold"
        assert result.primary_type is PrimaryType.LOW_FLAME

    def test_tie_priority_follows_declaration(self, catalog_factory, question_factory):
        catalog = catalog_factory(
            [question_factory("q1", {"a": {"hot": 1, "cold": 1}})],
            {"hot": PrimaryType.HIGH_FLAME, "cold": PrimaryType.LOW_FLAME},
        )
        result = _classify(TerrainScoringEngine(catalog), q1="a")
        assert result.primary_type is PrimaryType.HIGH_FLAME


class TestZeroDefault:
    def test_empty_ledger(self, cold_hot_engine: TerrainScoringEngine):
        result = _classify(cold_hot_engine)
        assert result.vector == {"cold": 0.0, "hot": 0.0}
        assert result.primary_type is PrimaryType.LOW_FLAME
        assert result.modifier is None

    def test_empty_ledger_default_catalog(self, default_engine: TerrainScoringEngine):
        result = default_engine.classify_catalog(ResponseLedger())
        assert set(result.vector) == set(default_engine.catalog.axes)
        assert all(v == 0.0 for v in result.vector.values())
        assert result.primary_axis == "cold"
        assert result.primary_type is PrimaryType.LOW_FLAME
        assert result.modifier is None

    def test_all_neutral_answers(self, default_engine: TerrainScoringEngine):
        ledger = ResponseLedger.from_mapping({"q1_hands_feet": "neutral", "q4_energy": "steady"})
        result = default_engine.classify_catalog(ledger)
        assert result.primary_type is PrimaryType.LOW_FLAME
        assert all(v == 0.0 for v in result.vector.values())


class TestVector:
    def test_one_entry_per_axis_in_catalog_order(self, default_engine: TerrainScoringEngine):
        result = default_engine.classify_catalog(ResponseLedger.from_mapping({"q6_digestion": "bloated"}))
        assert list(result.vector) == list(default_engine.catalog.axes)
        assert result.vector["damp"] == 2.0

    def test_negative_weights_accumulate(self, default_engine: TerrainScoringEngine):
        ledger = ResponseLedger.from_mapping({"q5_exercise": "energized", "q7_mornings": "stiff"})
        result = default_engine.classify_catalog(ledger)
        assert result.vector["stagnation"] == 1.0

    def test_accumulation_is_exact(self, catalog_factory, question_factory):
        catalog = catalog_factory(
            [
                question_factory("q1", {"a": {"cold": 1e16}}),
                question_factory("q2", {"a": {"cold": 1.0}}),
                question_factory("q3", {"a": {"cold": -1e16}}),
            ],
            {"cold": PrimaryType.LOW_FLAME},
        )
        engine = TerrainScoringEngine(catalog)
        result = _classify(engine, q1="a", q2="a", q3="a")
        assert result.vector["cold"] == 1.0

    def test_unanswered_questions_contribute_nothing(self, default_engine: TerrainScoringEngine):
        ledger = ResponseLedger.from_mapping({"q2_weather": "hot_weather"})
        result = default_engine.classify_catalog(ledger)
        assert result.vector["warm"] == 2.0
        assert sum(result.vector.values()) == 2.0
        assert result.primary_type is PrimaryType.HIGH_FLAME


class TestDeterminism:
    def test_repeated_classification_identical(self, default_engine: TerrainScoringEngine):
        ledger = ResponseLedger.from_mapping({
            "q1_hands_feet": "cold",
            "q6_digestion": "bloated",
            "q11_stress": "overthink",
        })
        first = default_engine.classify_catalog(ledger)
        second = default_engine.classify_catalog(ledger)
        assert first == second

    def test_recording_order_does_not_matter(self, default_engine: TerrainScoringEngine):
        answers = [
            ("q1_hands_feet", "warm"),
            ("q3_drinks", "very_thirsty"),
            ("q8_skin", "oily"),
            ("q14_alcohol", "weekly"),
            ("q15_smoking", "daily"),
        ]
        results = {
            repr(default_engine.classify_catalog(ResponseLedger.from_pairs(perm)))
            for perm in itertools.permutations(answers)
        }
        assert len(results) == 1

    def test_overwritten_answer_equivalent_to_final(self, cold_hot_engine: TerrainScoringEngine):
        edited = ResponseLedger()
        edited.record("q1", "hot")
        edited.record("q1", "cold")
        direct = ResponseLedger.from_pairs([("q1", "cold")])
        questions = cold_hot_engine.catalog.questions
        assert cold_hot_engine.classify(questions, edited) == cold_hot_engine.classify(questions, direct)


class TestStableIdentity:
    def test_different_vectors_same_primary_same_id(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory)
        strong = _classify(engine, q1="cold4", q2="none")
        mixed = _classify(engine, q1="both", q2="damp1")
        assert strong.vector != mixed.vector
        assert strong.terrain_profile_id == mixed.terrain_profile_id == "low_flame"

    def test_modifier_does_not_change_id(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory)
        with_modifier = _classify(engine, q1="cold4", q2="damp2")
        without = _classify(engine, q1="cold4", q2="none")
        assert with_modifier.modifier is PrimaryType.DAMP_GARDEN
        assert without.modifier is None
        assert with_modifier.terrain_profile_id == without.terrain_profile_id


class TestModifier:
    def test_significant_runner_up(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory)
        result = _classify(engine, q1="cold4", q2="damp2")
        assert result.modifier is PrimaryType.DAMP_GARDEN
        assert result.modifier_axis == "damp"

    def test_runner_up_on_both_bounds_is_reported(self, catalog_factory, question_factory):
        """damp=2 is exactly min_score and exactly min_ratio * cold=4."""
        engine = _three_axis_engine(catalog_factory, question_factory, min_ratio=0.5, min_score=2.0)
        result = _classify(engine, q1="cold4", q2="damp2")
        assert result.vector["damp"] == 2.0
        assert result.modifier is PrimaryType.DAMP_GARDEN

    def test_below_ratio(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory)
        result = _classify(engine, q1="cold4", q2="damp1")
        assert result.modifier is None

    def test_below_min_score(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory, min_ratio=0.0, min_score=3.0)
        result = _classify(engine, q1="cold4", q2="damp2")
        assert result.modifier is None

    def test_runner_up_tie_uses_priority(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory)
        result = _classify(engine, q1="both", q2="none")
        assert result.primary_type is PrimaryType.LOW_FLAME
        assert result.modifier is PrimaryType.HIGH_FLAME

    def test_same_type_axis_skipped(self, catalog_factory, question_factory):
        catalog = catalog_factory(
            [question_factory("q1", {"a": {"cold": 4, "chill": 3, "hot": 2.5}})],
            {
                "cold": PrimaryType.LOW_FLAME,
                "chill": PrimaryType.LOW_FLAME,
                "hot": PrimaryType.HIGH_FLAME,
            },
        )
        result = _classify(TerrainScoringEngine(catalog), q1="a")
        assert result.primary_type is PrimaryType.LOW_FLAME
        assert result.modifier is PrimaryType.HIGH_FLAME
        assert result.modifier_axis == "hot"

    def test_no_modifier_when_primary_not_positive(self, catalog_factory, question_factory):
        catalog = catalog_factory(
            [question_factory("q1", {"a": {"cold": -1, "hot": -2}})],
            {"cold": PrimaryType.LOW_FLAME, "hot": PrimaryType.HIGH_FLAME},
            min_ratio=0.0,
            min_score=0.0,
        )
        result = _classify(TerrainScoringEngine(catalog), q1="a")
        assert result.primary_axis == "cold"
        assert result.modifier is None


class TestErrors:
    def test_unknown_option_rejected(self, cold_hot_engine: TerrainScoringEngine):
        with pytest.raises(MalformedResponseError) as exc_info:
            _classify(cold_hot_engine, q1="lukewarm")
        assert exc_info.value.question_id == "q1"
        assert exc_info.value.option_id == "lukewarm"

    def test_stale_question_ignored(self, cold_hot_engine: TerrainScoringEngine):
        ledger = ResponseLedger.from_pairs([("q1", "hot"), ("q_retired", "whatever")])
        result = cold_hot_engine.classify(cold_hot_engine.catalog.questions, ledger)
        assert result.primary_type is PrimaryType.HIGH_FLAME
        assert "q_retired" in ledger

    def test_unselected_conditional_answer_ignored(self, default_engine: TerrainScoringEngine):
        ledger = ResponseLedger.from_mapping({"q_menstrual": "cramping_cold", "q2_weather": "hot_weather"})
        without_goal = default_engine.classify_catalog(ledger, goals=[])
        with_goal = default_engine.classify_catalog(ledger, goals=["menstrual_comfort"])
        assert without_goal.vector["cold"] == 0.0
        assert with_goal.vector["cold"] == 2.0

    def test_unknown_axis_in_option(self, catalog_factory, question_factory):
        catalog = catalog_factory(
            [question_factory("q1", {"a": {"spicy": 1}})],
            {"cold": PrimaryType.LOW_FLAME},
        )
        with pytest.raises(CatalogError, match="spicy"):
            _classify(TerrainScoringEngine(catalog), q1="a")


class TestResultSerialization:
    def test_as_dict(self, catalog_factory, question_factory):
        engine = _three_axis_engine(catalog_factory, question_factory)
        payload = _classify(engine, q1="cold4", q2="damp2").as_dict()
        assert payload["terrain_profile_id"] == "low_flame"
        assert payload["nickname"] == "Low Flame"
        assert payload["modifier"] == "damp_garden"
        assert payload["modifier_nickname"] == "Damp Garden"
        assert payload["vector"] == {"cold": 4.0, "hot": 0.0, "damp": 2.0}
