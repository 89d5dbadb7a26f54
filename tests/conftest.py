from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wellbeing_core.interpretation import DEFAULT_CATEGORY_BANDS
from wellbeing_core.registry import Registry, check_definition, load_definitions
from wellbeing_core.types import AssessmentDefinition, Band, HistoryRecord, QuestionSpec

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

SYNTHETIC_BANDS = (
    Band(15, "Minimal"),
    Band(30, "Mild"),
    Band(45, "Moderate"),
    Band(60, "High"),
    Band(None, "Severe"),
)


def build_synthetic_definition(
    *,
    key: str = "synthetic_anxiety",
    questions: int = 20,
    max_per_question: float = 4,
    scale_min: float = 0,
    reverse: tuple[int, ...] = (5, 7, 10, 19),
    categories: tuple[str, ...] = ("cognitive", "physical", "behavioral"),
    bands: tuple[Band, ...] = SYNTHETIC_BANDS,
    **kwargs,
) -> AssessmentDefinition:
    """20 items on 0..4 with four reverse-scored, spread round-robin over three categories."""
    specs = tuple(
        QuestionSpec(
            id=f"{key}_q{i}",
            index=i,
            category=categories[(i - 1) % len(categories)],
            reverse=i in reverse,
        )
        for i in range(1, questions + 1)
    )
    kwargs.setdefault("category_bands", DEFAULT_CATEGORY_BANDS)
    kwargs.setdefault("category_labels", {c: c.title() for c in categories})
    d = AssessmentDefinition(
        key=key,
        title=key.replace("_", " ").title(),
        questions=specs,
        max_per_question=max_per_question,
        scale_min=scale_min,
        bands=bands,
        **kwargs,
    )
    check_definition(d)
    return d


def definition_json(**overrides) -> dict:
    """Minimal valid instrument entry in the registry's JSON form."""
    raw = {
        "key": "mini",
        "title": "Mini",
        "scale": {"min": 0, "max": 3},
        "bands": [{"max": 2, "label": "Low"}, {"max": None, "label": "High"}],
        "questions": [
            {"id": "mini_q1", "category": "a"},
            {"id": "mini_q2", "category": "b", "reverse": True},
        ],
    }
    raw.update(overrides)
    return raw


def build_history(key: str, *scores: float, start: datetime = T0, step_days: int = 7) -> list[HistoryRecord]:
    return [
        HistoryRecord(instrument_key=key, normalized_score=s, completed_at=start + timedelta(days=i * step_days))
        for i, s in enumerate(scores)
    ]


def uniform_answers(d: AssessmentDefinition, value: float, reverse_value: float | None = None) -> dict[str, float]:
    rv = value if reverse_value is None else reverse_value
    return {q.id: (rv if q.reverse else value) for q in d.questions}


@pytest.fixture(scope="session")
def bundled_registry() -> Registry:
    return Registry(load_definitions())
