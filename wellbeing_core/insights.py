# wellbeing_core/insights.py
from __future__ import annotations
import logging
from datetime import datetime, timezone
from statistics import mean
from typing import Dict, List, Mapping, Optional, Sequence

from . import config
from .registry import Registry, get_registry
from .scoring import round_half_up
from .trends import compute_trend
from .types import AssessmentDefinition, HistoryRecord, TrendSummary, WellnessInsight

log = logging.getLogger(__name__)

EMPTY_SUMMARY = "Complete an assessment to unlock personalized insights about your wellbeing trends."


def as_utc(ts: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are taken to be UTC so they compare with aware ones."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def composite_polarity(
    key: str,
    definition: AssessmentDefinition | None = None,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """distress | wellbeing | exclude, as used by the composite indicator."""
    table = config.COMPOSITE_POLARITY if overrides is None else overrides
    if key in table:
        return table[key]
    if definition is not None:
        if definition.key in table:
            return table[definition.key]
        return definition.polarity
    return config.COMPOSITE_DEFAULT_POLARITY


def composite_score(latest: Mapping[str, float], polarities: Mapping[str, str]) -> Optional[float]:
    """
    Mean of the latest normalized scores on a higher-is-better scale:
    distress instruments contribute ``100 - score``, wellbeing ones ``score``.
    Keys whose polarity is ``exclude`` are left out.
    """
    vals: List[float] = []
    for key, s in latest.items():
        pol = polarities.get(key, config.COMPOSITE_DEFAULT_POLARITY)
        if pol == "exclude":
            continue
        v = float(s) if pol == "wellbeing" else 100.0 - float(s)
        vals.append(max(0.0, min(100.0, v)))
    if not vals:
        return None
    return round_half_up(mean(vals), 1)


def overall_trend(by_type: Mapping[str, TrendSummary]) -> str:
    trends = [t.trend for t in by_type.values() if t.trend != "baseline"]
    if not trends: return "baseline"
    improving = trends.count("improving")
    declining = trends.count("declining")
    if improving and declining: return "mixed"
    if improving: return "improving"
    if declining: return "declining"
    return "stable"


def describe(by_type: Mapping[str, TrendSummary], titles: Mapping[str, str] | None = None) -> str:
    if not by_type:
        return EMPTY_SUMMARY
    parts = []
    for key, t in by_type.items():
        label = (titles or {}).get(key) or key.replace("_", " ").capitalize()
        reading = t.latest.interpretation or f"score {round_half_up(t.latest.normalized_score, 0):.0f}"
        trend = "establishing a baseline" if t.trend == "baseline" else t.trend
        parts.append(f"{label}: {reading.rstrip('.').lower()} ({trend}).")
    return (
        "Here is a quick overview of your wellbeing: "
        + " ".join(parts)
        + " Keep listening to what you need and take small steps in the direction that feels supportive."
    )


def summarize(
    histories: Mapping[str, Sequence[HistoryRecord]],
    *,
    registry: Registry | None = None,
    polarity_overrides: Mapping[str, str] | None = None,
    stable_band: float | None = None,
) -> WellnessInsight:
    """Trend per instrument plus one composite wellbeing indicator.

    Instruments with an empty history are skipped, not treated as failures.
    """
    reg = registry or get_registry()
    if polarity_overrides is not None:
        polarity_overrides = config.clean_polarity_table(polarity_overrides, "polarity_overrides")
    by_type: Dict[str, TrendSummary] = {}
    latest: Dict[str, float] = {}
    polarities: Dict[str, str] = {}
    titles: Dict[str, str] = {}
    skipped: List[str] = []
    updated_at: Optional[datetime] = None

    for key, history in histories.items():
        if not history:
            skipped.append(key)
            continue
        definition = reg.find(key)
        if definition is None:
            log.info("no definition for %r; using default risk and polarity", key)
        pol = composite_polarity(key, definition, polarity_overrides)
        trend_pol = definition.polarity if definition else ("wellbeing" if pol == "wellbeing" else "distress")
        t = compute_trend(
            key,
            history,
            risk=definition.risk if definition else None,
            polarity=trend_pol,
            stable_band=stable_band,
        )
        by_type[key] = t
        latest[key] = t.latest.normalized_score
        polarities[key] = pol
        if definition is not None:
            titles[key] = definition.title
        done = as_utc(t.last_completed_at)
        if done is not None and (updated_at is None or done > updated_at):
            updated_at = done

    if skipped:
        log.debug("skipped instruments without history: %s", skipped)
    return WellnessInsight(
        by_type=by_type,
        composite_score=composite_score(latest, polarities),
        overall_trend=overall_trend(by_type),
        summary=describe(by_type, titles),
        updated_at=updated_at,
        skipped=tuple(skipped),
    )
