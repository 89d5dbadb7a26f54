# wellbeing_core/interpretation.py
from __future__ import annotations
from typing import Optional, Sequence, Union

from .types import AssessmentDefinition, Band, CategoryBand

DEFAULT_CATEGORY_BANDS: tuple[CategoryBand, ...] = (
    CategoryBand(20, "{label} responses show calm, steady patterns."),
    CategoryBand(40, "{label} responses suggest mild activation to monitor."),
    CategoryBand(60, "{label} responses point to moderate activation; consider supportive routines."),
    CategoryBand(80, "{label} responses reflect high activation; practice grounding strategies."),
    CategoryBand(None, "{label} responses highlight intense activation; seek extra support."),
)


def _pick(value: float, bands: Sequence[Union[Band, CategoryBand]]):
    for band in bands:
        if band.contains(value):
            return band
    return bands[-1]  # definitions always end with a catch-all


def band_value(definition: AssessmentDefinition, raw_score: float) -> float:
    """Express a raw score in the unit the definition's bands are written in."""
    basis = definition.band_basis
    if basis == "normalized":
        lo, hi = definition.min_score, definition.max_score
        return 0.0 if hi == lo else (raw_score - lo) / (hi - lo) * 100.0
    if basis == "average":
        return raw_score / definition.question_count
    return raw_score


def interpret_overall(definition: AssessmentDefinition, raw_score: float) -> str:
    return _pick(band_value(definition, raw_score), definition.bands).label


def category_label(definition: Optional[AssessmentDefinition], category: str) -> str:
    if definition is not None and category in definition.category_labels:
        return definition.category_labels[category]
    text = category.replace("_", " ")
    return text[:1].upper() + text[1:]


def interpret_category(
    category: str,
    normalized_score: float,
    bands: Sequence[CategoryBand] | None = None,
    label: str | None = None,
) -> str:
    name = label or category_label(None, category)
    band = _pick(normalized_score, bands or DEFAULT_CATEGORY_BANDS)
    return band.template.format(label=name, label_lower=name.lower())
