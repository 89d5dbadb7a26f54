from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from .config import LOG_LEVEL
from .engine import AssessmentEngine
from .types import AssessmentDefinition, HistoryRecord


def _configure_logging() -> None:
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format="[%(levelname)s] %(message)s")


def extreme_responses(d: AssessmentDefinition, high: bool) -> Dict[str, float]:
    """Answers that push every item to the top (or bottom) of the scored range."""
    lo, hi = d.scale_min, d.max_per_question
    out: Dict[str, float] = {}
    for q in d.questions:
        up = high != q.reverse
        out[q.id] = hi if up else lo
    return out


def check_definition(engine: AssessmentEngine, d: AssessmentDefinition) -> List[str]:
    problems: List[str] = []
    low = engine.score(d.key, extreme_responses(d, high=False))
    top = engine.score(d.key, extreme_responses(d, high=True))
    if low.raw_score != d.min_score or low.normalized_score != 0:
        problems.append(f"{d.key}: all-minimum scored {low.raw_score}/{low.normalized_score}")
    if top.raw_score != d.max_score or top.normalized_score != 100:
        problems.append(f"{d.key}: all-maximum scored {top.raw_score}/{top.normalized_score}")
    if low.interpretation != d.bands[0].label:
        problems.append(f"{d.key}: all-minimum landed in '{low.interpretation}'")
    if top.interpretation != d.bands[-1].label:
        problems.append(f"{d.key}: all-maximum landed in '{top.interpretation}'")
    for s in (low, top):
        if round(sum(s.category_raw.values()), 1) != s.raw_score:
            problems.append(f"{d.key}: category totals do not add up to {s.raw_score}")
    logging.info(
        "%-32s items=%2d range=%g..%g low='%s' high='%s'",
        d.key, d.question_count, d.min_score, d.max_score, low.interpretation, top.interpretation,
    )
    return problems


def main() -> int:
    _configure_logging()
    engine = AssessmentEngine()
    problems: List[str] = []
    histories: Dict[str, List[HistoryRecord]] = {}
    t0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

    for d in engine.definitions():
        problems.extend(check_definition(engine, d))
        histories[d.key] = [
            engine.record(d.key, extreme_responses(d, high=False), t0),
            engine.record(d.key, extreme_responses(d, high=True), t0 + timedelta(days=14)),
        ]

    insight = engine.insight(histories)
    logging.info("overall trend: %s  composite: %s", insight.overall_trend, insight.composite_score)
    logging.debug("insight payload: %s", json.dumps(insight.to_dict(), indent=2))
    for msg in problems:
        logging.error(msg)
    return 1 if problems else 0


if __name__ == "__main__":
    raise SystemExit(main())
