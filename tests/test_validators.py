from __future__ import annotations

import logging

import pytest

from wellbeing_core import validators
from wellbeing_core.errors import MissingResponseError, UnexpectedResponseError
from wellbeing_core.registry import load_definitions
from wellbeing_core.scoring import score

from tests.conftest import build_synthetic_definition, uniform_answers

BUNDLED = load_definitions()


@pytest.mark.parametrize("definition", BUNDLED, ids=[d.key for d in BUNDLED])
def test_missing_question_is_named_exactly(definition):
    for dropped in (definition.questions[0].id, definition.questions[-1].id):
        responses = uniform_answers(definition, definition.scale_min)
        del responses[dropped]
        with pytest.raises(MissingResponseError) as exc:
            score(definition, responses)
        assert exc.value.missing == [dropped]
        assert dropped in str(exc.value)


def test_missing_ids_are_listed_in_definition_order():
    d = build_synthetic_definition()
    responses = uniform_answers(d, 1)
    for i in (12, 3, 17):
        del responses[f"{d.key}_q{i}"]
    with pytest.raises(MissingResponseError) as exc:
        validators.validate(d, responses)
    assert exc.value.missing == [f"{d.key}_q3", f"{d.key}_q12", f"{d.key}_q17"]
    assert isinstance(exc.value, ValueError)


def test_undeclared_keys_are_ignored_by_default(caplog):
    d = build_synthetic_definition()
    responses = uniform_answers(d, 2)
    baseline = score(d, responses)
    responses["free_text_note"] = 4
    with caplog.at_level(logging.DEBUG, logger="wellbeing_core.validators"):
        extended = score(d, responses)
    assert extended == baseline
    assert "free_text_note" in caplog.text


def test_undeclared_keys_rejected_in_strict_mode(monkeypatch):
    d = build_synthetic_definition()
    responses = uniform_answers(d, 2)
    responses["extra_a"] = 1
    with pytest.raises(UnexpectedResponseError) as exc:
        validators.validate(d, responses, reject_unknown=True)
    assert exc.value.unexpected == ["extra_a"]

    monkeypatch.setattr(validators.config, "REJECT_UNKNOWN_KEYS", True)
    with pytest.raises(UnexpectedResponseError):
        validators.validate(d, responses)


def test_missing_takes_precedence_over_unexpected():
    d = build_synthetic_definition()
    responses = uniform_answers(d, 2)
    del responses[f"{d.key}_q1"]
    responses["extra_a"] = 1
    with pytest.raises(MissingResponseError):
        validators.validate(d, responses, reject_unknown=True)


def test_non_mapping_responses_rejected():
    d = build_synthetic_definition()
    with pytest.raises(TypeError):
        validators.validate(d, [1, 2, 3])  # type: ignore[arg-type]
