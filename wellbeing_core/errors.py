"""Exceptions raised by the scoring and insight engine.

Every error is raised where it is detected and propagated unchanged; callers
decide how to surface them (the HTTP adapter maps them to 4xx responses).
"""
from __future__ import annotations

from typing import Iterable, List


class AssessmentError(Exception):
    """Base class for engine errors."""


class DefinitionError(AssessmentError):
    """An instrument definition violates a structural invariant."""


class UnknownInstrumentError(AssessmentError, KeyError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown instrument: {key}")

    def __str__(self) -> str:  # KeyError would repr() the message
        return self.args[0]


class _IdListError(AssessmentError, ValueError):
    prefix = ""

    def __init__(self, ids: Iterable[str]):
        self.ids: List[str] = list(ids)
        super().__init__(f"{self.prefix}: {', '.join(self.ids)}")


class MissingResponseError(_IdListError):
    prefix = "Missing responses for questions"

    @property
    def missing(self) -> List[str]:
        return self.ids


class InvalidResponseError(_IdListError):
    prefix = "Invalid or out-of-range responses for questions"

    @property
    def invalid(self) -> List[str]:
        return self.ids


class UnexpectedResponseError(_IdListError):
    prefix = "Responses for undeclared questions"

    @property
    def unexpected(self) -> List[str]:
        return self.ids


class InsufficientHistoryError(AssessmentError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No history available for instrument: {key}")
