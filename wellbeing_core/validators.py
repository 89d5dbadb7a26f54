from __future__ import annotations
import logging
from typing import Any, List, Mapping

from . import config
from .errors import MissingResponseError, UnexpectedResponseError
from .types import AssessmentDefinition

log = logging.getLogger(__name__)


def missing_questions(definition: AssessmentDefinition, responses: Mapping[str, Any]) -> List[str]:
    return [q.id for q in definition.questions if q.id not in responses]


def unexpected_keys(definition: AssessmentDefinition, responses: Mapping[str, Any]) -> List[str]:
    declared = set(definition.question_ids)
    return [k for k in responses if k not in declared]


def validate(
    definition: AssessmentDefinition,
    responses: Mapping[str, Any],
    *,
    reject_unknown: bool | None = None,
) -> None:
    """Check completeness of a response set; values are left to the scorer."""
    if not isinstance(responses, Mapping):
        raise TypeError(f"responses must be a mapping, got {type(responses).__name__}")
    missing = missing_questions(definition, responses)
    if missing:
        raise MissingResponseError(missing)
    extra = unexpected_keys(definition, responses)
    if extra:
        strict = config.REJECT_UNKNOWN_KEYS if reject_unknown is None else reject_unknown
        if strict:
            raise UnexpectedResponseError(extra)
        log.debug("%s: ignoring undeclared response keys %s", definition.key, extra)
