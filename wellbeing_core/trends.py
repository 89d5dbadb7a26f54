from __future__ import annotations
from statistics import mean
from typing import Optional, Sequence

from . import config
from .errors import InsufficientHistoryError
from .scoring import round_half_up
from .types import Direction, HistoryRecord, Polarity, RiskBanding, RiskLevel, TrendLabel, TrendSummary


def default_risk_banding() -> RiskBanding:
    return RiskBanding(high=config.RISK_HIGH_MIN, moderate=config.RISK_MODERATE_MIN)


def classify_risk(score: float, banding: RiskBanding | None = None) -> RiskLevel:
    b = banding or default_risk_banding()
    s = float(score)
    if b.higher_is_riskier:
        if s >= b.high: return "high"
        if s >= b.moderate: return "moderate"
        return "low"
    # wellbeing scales: the lower the score, the higher the risk
    if s <= b.high: return "high"
    if s <= b.moderate: return "moderate"
    return "low"


def direction_of(change: float) -> Direction:
    if change > 0: return "up"
    if change < 0: return "down"
    return "same"


def trend_label(change: Optional[float], polarity: Polarity = "distress", stable_band: float | None = None) -> TrendLabel:
    if change is None:
        return "baseline"
    band = config.TREND_STABLE_BAND if stable_band is None else stable_band
    if abs(change) < band:
        return "stable"
    improving = change > 0 if polarity == "wellbeing" else change < 0
    return "improving" if improving else "declining"


def compute_trend(
    instrument_key: str,
    history: Sequence[HistoryRecord],
    *,
    risk: RiskBanding | None = None,
    polarity: Polarity = "distress",
    stable_band: float | None = None,
) -> TrendSummary:
    """
    Compare the two most recent administrations of one instrument.
    ``history`` is ordered oldest first, newest last, exactly as the caller
    supplies it; the engine does not re-sort.
    """
    if not history:
        raise InsufficientHistoryError(instrument_key)
    latest = history[-1]
    previous = history[-2] if len(history) >= 2 else None

    change: Optional[float] = None
    direction: Optional[Direction] = None
    if previous is not None:
        change = round_half_up(latest.normalized_score - previous.normalized_score, 2)
        direction = direction_of(change)

    scores = [r.normalized_score for r in history]
    best = max(scores) if polarity == "wellbeing" else min(scores)
    return TrendSummary(
        type=instrument_key,
        latest=latest,
        previous=previous,
        change=change,
        direction=direction,
        risk=classify_risk(latest.normalized_score, risk),
        trend=trend_label(change, polarity, stable_band),
        average_score=round_half_up(mean(scores), 1),
        best_score=best,
        history_count=len(history),
    )
