"""Engine facade: resolves instrument definitions and runs the pure pipeline.

Write path: responses -> validate -> score -> interpret -> ``ScoreSummary``.
Read path: caller-supplied history -> trend -> wellness insight.
Nothing here reads or writes storage; persistence belongs to the caller.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from .insights import summarize
from .registry import Registry, get_registry
from .scoring import score as score_definition
from .trends import compute_trend
from .types import AssessmentDefinition, HistoryRecord, ScoreSummary, TrendSummary, WellnessInsight

log = logging.getLogger(__name__)


class AssessmentEngine:
    def __init__(self, registry: Registry | None = None):
        self.registry = registry or get_registry()

    def definition(self, instrument_key: str) -> AssessmentDefinition:
        return self.registry.get_definition(instrument_key)

    def definitions(self) -> List[AssessmentDefinition]:
        return list(self.registry)

    def score(self, instrument_key: str, responses: Mapping[str, Any]) -> ScoreSummary:
        d = self.definition(instrument_key)
        summary = score_definition(d, responses)
        log.debug("scored %s: raw=%s norm=%s", d.key, summary.raw_score, summary.normalized_score)
        return summary

    def record(
        self,
        instrument_key: str,
        responses: Mapping[str, Any],
        completed_at: Optional[datetime] = None,
    ) -> HistoryRecord:
        """Score and wrap the result as a history record ready for the caller to store."""
        return HistoryRecord.from_summary(self.score(instrument_key, responses), completed_at)

    def trend(self, instrument_key: str, history: Sequence[HistoryRecord]) -> TrendSummary:
        d = self.registry.find(instrument_key)
        if d is None:
            return compute_trend(instrument_key, history)
        return compute_trend(instrument_key, history, risk=d.risk, polarity=d.polarity)

    def insight(
        self,
        histories: Mapping[str, Sequence[HistoryRecord]],
        polarity_overrides: Mapping[str, str] | None = None,
    ) -> WellnessInsight:
        return summarize(histories, registry=self.registry, polarity_overrides=polarity_overrides)


_ENGINE: Optional[AssessmentEngine] = None


def get_engine() -> AssessmentEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = AssessmentEngine()
    return _ENGINE


# shortcuts over the shared default engine
def score(instrument_key: str, responses: Mapping[str, Any]) -> ScoreSummary:
    return get_engine().score(instrument_key, responses)


def trend(instrument_key: str, history: Sequence[HistoryRecord]) -> TrendSummary:
    return get_engine().trend(instrument_key, history)


def insight(histories: Mapping[str, Sequence[HistoryRecord]]) -> WellnessInsight:
    return get_engine().insight(histories)
