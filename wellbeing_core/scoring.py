from __future__ import annotations
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional

from . import config
from .errors import InvalidResponseError
from .interpretation import category_label, interpret_category, interpret_overall
from .types import AssessmentDefinition, ScoreSummary
from .validators import validate

_YES = {"yes", "y", "true"}
_NO = {"no", "n", "false"}


def round_half_up(value: float, places: int = 1) -> float:
    # float round() is banker's rounding; published scores round halves up
    q = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(q, rounding=ROUND_HALF_UP))


def coerce_answer(value: Any) -> Optional[float]:
    """Numeric reading of an answer, or None when it has none."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        v = float(value)
        return None if math.isnan(v) else v
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _YES: return 1.0
        if s in _NO: return 0.0
        try:
            v = float(s)
        except ValueError:
            return None
        return None if math.isnan(v) else v
    return None


def _clamp(x: float, lo: float, hi: float) -> float:
    if x < lo: return lo
    if x > hi: return hi
    return x


def _pct(value: float, lo: float, hi: float) -> float:
    if hi == lo:
        return 0.0
    return _clamp((value - lo) / (hi - lo) * 100.0, 0.0, 100.0)


def score(
    definition: AssessmentDefinition,
    responses: Mapping[str, Any],
    *,
    clamp: bool | None = None,
    reject_unknown: bool | None = None,
) -> ScoreSummary:
    """
    Score one completed questionnaire.
    Answers are coerced to numbers and clamped into the definition's scale
    (or rejected when clamping is off); reverse-scored items are mirrored
    before being summed overall and per category.
    """
    validate(definition, responses, reject_unknown=reject_unknown)
    clamp_on = config.CLAMP_OUT_OF_RANGE if clamp is None else clamp
    lo, hi = definition.scale_min, definition.max_per_question

    cat_total: Dict[str, float] = {c: 0.0 for c in definition.categories}
    invalid: List[str] = []
    for q in definition.questions:
        v = coerce_answer(responses[q.id])
        if v is None or v < lo or v > hi:
            if not clamp_on:
                invalid.append(q.id)
                continue
            v = lo if v is None else _clamp(v, lo, hi)
        scored = lo + hi - v if q.reverse else v
        cat_total[q.category] += scored
    if invalid:
        raise InvalidResponseError(invalid)

    cat_raw: Dict[str, float] = {}
    cat_norm: Dict[str, float] = {}
    cat_text: Dict[str, str] = {}
    for cat, cat_sum in cat_total.items():
        n = definition.category_question_count(cat)
        cat_raw[cat] = round_half_up(cat_sum, 1)
        cat_norm[cat] = round_half_up(_pct(cat_sum, n * lo, n * hi), 1)
        cat_text[cat] = interpret_category(
            cat, cat_norm[cat], definition.category_bands, category_label(definition, cat)
        )

    # built from the rounded category totals so the breakdown always adds up
    raw_score = round_half_up(sum(cat_raw.values()), 1)
    normalized = round_half_up(_pct(raw_score, definition.min_score, definition.max_score), 2)

    return ScoreSummary(
        instrument_key=definition.key,
        raw_score=raw_score,
        min_score=definition.min_score,
        max_score=definition.max_score,
        normalized_score=normalized,
        normalized_score_rounded=round_half_up(normalized, 1),
        interpretation=interpret_overall(definition, raw_score),
        category_raw=cat_raw,
        category_normalized=cat_norm,
        category_interpretations=cat_text,
    )
