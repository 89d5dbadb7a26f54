from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from wellbeing_core import insights
from wellbeing_core.insights import EMPTY_SUMMARY, composite_score, describe, overall_trend, summarize
from wellbeing_core.types import HistoryRecord

from tests.conftest import T0, build_history


def _mixed(reg, **kwargs):
    histories = {
        "anxiety_assessment": build_history("anxiety_assessment", 50, 60),
        "emotional_intelligence_teique": build_history("emotional_intelligence_teique", 70, 80, start=T0 + timedelta(days=3)),
    }
    return summarize(histories, registry=reg, **kwargs)


def test_composite_inverts_distress_and_keeps_wellbeing(bundled_registry):
    insight = _mixed(bundled_registry)
    # (100 - 60) and 80
    assert insight.composite_score == 60.0
    assert insight.by_type["anxiety_assessment"].trend == "declining"
    assert insight.by_type["emotional_intelligence_teique"].trend == "improving"
    assert insight.by_type["emotional_intelligence_teique"].risk == "low"
    assert insight.overall_trend == "mixed"
    assert insight.updated_at == T0 + timedelta(days=10)


def test_excluded_instrument_is_left_out_of_composite(bundled_registry):
    insight = _mixed(bundled_registry, polarity_overrides={"anxiety_assessment": "exclude"})
    assert insight.composite_score == 80.0
    assert "anxiety_assessment" in insight.by_type


def test_configured_polarity_table(bundled_registry, monkeypatch):
    monkeypatch.setattr(insights.config, "COMPOSITE_POLARITY", {"emotional_intelligence_teique": "exclude"})
    assert _mixed(bundled_registry).composite_score == 40.0


def test_empty_histories_are_skipped(bundled_registry):
    insight = summarize(
        {"stress_pss10": [], "depression_phq9": build_history("depression_phq9", 30)},
        registry=bundled_registry,
    )
    assert insight.skipped == ("stress_pss10",)
    assert list(insight.by_type) == ["depression_phq9"]
    assert insight.composite_score == 70.0
    assert insight.overall_trend == "baseline"


def test_nothing_to_summarize(bundled_registry):
    insight = summarize({"anxiety_assessment": []}, registry=bundled_registry)
    assert insight.by_type == {}
    assert insight.composite_score is None
    assert insight.overall_trend == "baseline"
    assert insight.summary == EMPTY_SUMMARY
    assert insight.updated_at is None
    assert insight.to_dict()["skipped"] == ["anxiety_assessment"]


def test_unknown_instrument_uses_default_polarity(bundled_registry):
    insight = summarize({"sleep_diary": build_history("sleep_diary", 20)}, registry=bundled_registry)
    assert insight.composite_score == 80.0
    assert insight.by_type["sleep_diary"].risk == "low"
    assert "Sleep diary: score 20 (establishing a baseline)." in insight.summary


def test_alias_keys_pick_up_definition(bundled_registry):
    insight = summarize({"emotional_intelligence": build_history("emotional_intelligence", 25)}, registry=bundled_registry)
    assert insight.by_type["emotional_intelligence"].risk == "high"
    assert insight.composite_score == 25.0


def test_narrative_mentions_each_instrument(bundled_registry):
    history = [
        HistoryRecord("anxiety_assessment", 62.5, T0, interpretation="High anxiety"),
        HistoryRecord("anxiety_assessment", 50, T0 + timedelta(days=7), interpretation="Moderate anxiety"),
    ]
    insight = summarize(
        {"anxiety_assessment": history, "stress_pss10": build_history("stress_pss10", 40)},
        registry=bundled_registry,
    )
    assert insight.summary.startswith("Here is a quick overview of your wellbeing: ")
    assert "Anxiety Assessment: moderate anxiety (improving)." in insight.summary
    assert "PSS-10: score 40 (establishing a baseline)." in insight.summary
    assert insight.summary.endswith("take small steps in the direction that feels supportive.")


def test_describe_strips_trailing_period_from_interpretation(bundled_registry):
    rec = HistoryRecord("depression_phq9", 10, T0, interpretation="Minimal depressive symptoms.")
    t = summarize({"depression_phq9": [rec]}, registry=bundled_registry).by_type
    assert "PHQ-9: minimal depressive symptoms (establishing a baseline)." in describe(t, {"depression_phq9": "PHQ-9"})


def test_composite_clamps_contributions():
    assert composite_score({"a": 120, "b": 50}, {"a": "distress", "b": "wellbeing"}) == 25.0
    assert composite_score({"a": 10}, {"a": "exclude"}) is None
    assert composite_score({}, {}) is None


def test_overall_trend_rules(bundled_registry):
    def trends(*pairs):
        return summarize(
            {f"scale_{i}": build_history(f"scale_{i}", a, b) for i, (a, b) in enumerate(pairs)},
            registry=bundled_registry,
        ).by_type

    assert overall_trend(trends((50, 40), (30, 20))) == "improving"
    assert overall_trend(trends((40, 50), (30, 31))) == "declining"
    assert overall_trend(trends((40, 41), (30, 31))) == "stable"
    assert overall_trend(trends((40, 50), (30, 20))) == "mixed"
    assert overall_trend({}) == "baseline"


def test_naive_and_aware_timestamps_can_be_mixed(bundled_registry):
    aware = HistoryRecord("anxiety_gad7", 40, datetime(2024, 1, 1, tzinfo=timezone.utc))
    naive = HistoryRecord("depression_phq9", 30, datetime(2024, 1, 2))
    insight = summarize({"anxiety_gad7": [aware], "depression_phq9": [naive]}, registry=bundled_registry)
    assert insight.updated_at == datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert insight.to_dict()["updatedAt"] == "2024-01-02T00:00:00+00:00"


def test_offset_timestamps_compare_in_utc(bundled_registry):
    plus_five = timezone(timedelta(hours=5))
    early = HistoryRecord("anxiety_gad7", 40, datetime(2024, 1, 2, 3, 0, tzinfo=plus_five))
    late = HistoryRecord("depression_phq9", 30, datetime(2024, 1, 1, 23, 0))
    insight = summarize({"anxiety_gad7": [early], "depression_phq9": [late]}, registry=bundled_registry)
    assert insight.updated_at == datetime(2024, 1, 1, 23, 0, tzinfo=timezone.utc)


def test_unrecognised_override_is_dropped(bundled_registry, caplog):
    with caplog.at_level(logging.WARNING, logger="wellbeing_core.config"):
        insight = _mixed(bundled_registry, polarity_overrides={"emotional_intelligence_teique": "foo"})
    assert insight.composite_score == 60.0
    assert "polarity_overrides" in caplog.text

    insight = _mixed(bundled_registry, polarity_overrides={"anxiety_assessment": " Exclude "})
    assert insight.composite_score == 80.0
