"""Instrument definition registry.

Definitions are data, not code: every questionnaire is an entry in
``data/instruments.json`` (or the file named by ``WELLBEING_DEFINITIONS_PATH``)
and is scored by the same generic scorer.  The default registry is built on
first use and never mutated afterwards, so it can be shared freely between
threads.
"""
from __future__ import annotations

import json
import logging
import pathlib
import threading
import importlib.resources as ir
from typing import Any, Dict, Iterable, Iterator, List, Optional

from . import config
from .errors import DefinitionError, UnknownInstrumentError
from .interpretation import DEFAULT_CATEGORY_BANDS
from .types import AssessmentDefinition, Band, CategoryBand, QuestionSpec, RiskBanding

log = logging.getLogger(__name__)

BAND_BASES = ("raw", "normalized", "average")
POLARITIES = ("distress", "wellbeing")


def load_raw(path: str | None = None) -> Dict[str, Any]:
    src = path or config.DEFINITIONS_PATH
    if src:
        return json.loads(pathlib.Path(src).read_text(encoding="utf-8"))
    data = ir.files(__package__).joinpath("data/instruments.json").read_text(encoding="utf-8")
    return json.loads(data)


def _band(b: dict, cls, text_key: str):
    # {"max": x} is an inclusive upper bound, {"below": x} an exclusive one
    if b.get("below") is not None:
        return cls(float(b["below"]), str(b[text_key]), inclusive=False)
    return cls(None if b.get("max") is None else float(b["max"]), str(b[text_key]))


def _bands(raw: Iterable[dict], cls, text_key: str) -> tuple:
    return tuple(_band(b, cls, text_key) for b in raw)


def parse_definition(raw: Dict[str, Any], band_sets: Dict[str, Any] | None = None) -> AssessmentDefinition:
    """Build an ``AssessmentDefinition`` from its JSON form and check it."""
    key = raw.get("key", "<unnamed>")
    try:
        scale = raw["scale"]
        questions = tuple(
            QuestionSpec(id=str(q["id"]), index=i, category=str(q.get("category") or "overall"),
                         reverse=bool(q.get("reverse", False)))
            for i, q in enumerate(raw["questions"], start=1)
        )
        cat_raw = raw.get("category_bands")
        if isinstance(cat_raw, str):
            if not band_sets or cat_raw not in band_sets:
                raise DefinitionError(f"{key}: unknown category band set {cat_raw!r}")
            cat_raw = band_sets[cat_raw]
        cat_bands = _bands(cat_raw, CategoryBand, "template") if cat_raw else DEFAULT_CATEGORY_BANDS
        risk = None
        if raw.get("risk"):
            r = raw["risk"]
            risk = RiskBanding(float(r["high"]), float(r["moderate"]), bool(r.get("higher_is_riskier", True)))
        definition = AssessmentDefinition(
            key=str(raw["key"]),
            title=str(raw.get("title") or raw["key"]),
            questions=questions,
            max_per_question=float(scale["max"]),
            scale_min=float(scale.get("min", 0)),
            bands=_bands(raw["bands"], Band, "label"),
            band_basis=raw.get("band_basis", "raw"),
            category_labels=dict(raw.get("category_labels") or {}),
            category_bands=cat_bands,
            polarity=raw.get("polarity", "distress"),
            risk=risk,
            aliases=tuple(raw.get("aliases") or ()),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DefinitionError(f"{key}: malformed definition ({exc!r})") from exc
    check_definition(definition)
    return definition


def _check_ladder(key: str, what: str, bands: tuple) -> None:
    if not bands:
        raise DefinitionError(f"{key}: {what} must not be empty")
    if bands[-1].upper is not None:
        raise DefinitionError(f"{key}: last {what} entry must be a catch-all (max: null)")
    uppers = [b.upper for b in bands[:-1]]
    if any(u is None for u in uppers):
        raise DefinitionError(f"{key}: only the last {what} entry may be a catch-all")
    if any(b <= a for a, b in zip(uppers, uppers[1:])):
        raise DefinitionError(f"{key}: {what} must be strictly ascending")


def check_definition(d: AssessmentDefinition) -> None:
    if not d.questions:
        raise DefinitionError(f"{d.key}: no questions")
    ids = d.question_ids
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        raise DefinitionError(f"{d.key}: duplicate question ids {dupes}")
    if d.max_per_question <= d.scale_min:
        raise DefinitionError(f"{d.key}: scale max must exceed scale min")
    if d.band_basis not in BAND_BASES:
        raise DefinitionError(f"{d.key}: unknown band_basis {d.band_basis!r}")
    if d.polarity not in POLARITIES:
        raise DefinitionError(f"{d.key}: unknown polarity {d.polarity!r}")
    _check_ladder(d.key, "bands", d.bands)
    _check_ladder(d.key, "category_bands", d.category_bands)
    stray = sorted(set(d.category_labels) - set(d.categories))
    if stray:
        raise DefinitionError(f"{d.key}: labels for undeclared categories {stray}")
    if d.risk is not None:
        r = d.risk
        ordered = r.high > r.moderate if r.higher_is_riskier else r.high < r.moderate
        if not ordered:
            raise DefinitionError(f"{d.key}: risk thresholds out of order")


def load_definitions(data: Dict[str, Any] | None = None) -> List[AssessmentDefinition]:
    raw = data if data is not None else load_raw()
    band_sets = raw.get("category_band_sets") or {}
    return [parse_definition(entry, band_sets) for entry in raw.get("instruments", [])]


class Registry:
    """Read-only lookup of instrument definitions by key or alias."""

    def __init__(self, definitions: Iterable[AssessmentDefinition]):
        self._defs: Dict[str, AssessmentDefinition] = {}
        self._aliases: Dict[str, str] = {}
        defs = list(definitions)
        for d in defs:
            if d.key in self._defs:
                raise DefinitionError(f"duplicate instrument key: {d.key}")
            self._defs[d.key] = d
        for d in defs:
            for alias in d.aliases:
                if alias in self._defs or alias in self._aliases:
                    raise DefinitionError(f"{d.key}: alias {alias!r} already registered")
                self._aliases[alias] = d.key

    @classmethod
    def from_file(cls, path: str) -> "Registry":
        return cls(load_definitions(load_raw(path)))

    def find(self, key: str) -> Optional[AssessmentDefinition]:
        return self._defs.get(self._aliases.get(key, key))

    def get_definition(self, key: str) -> AssessmentDefinition:
        d = self.find(key)
        if d is None:
            raise UnknownInstrumentError(key)
        return d

    def list_instrument_keys(self) -> List[str]:
        return list(self._defs)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.find(key) is not None

    def __iter__(self) -> Iterator[AssessmentDefinition]:
        return iter(self._defs.values())

    def __len__(self) -> int:
        return len(self._defs)


_DEFAULT: Optional[Registry] = None
_LOCK = threading.Lock()


def get_registry() -> Registry:
    global _DEFAULT
    if _DEFAULT is None:
        with _LOCK:
            if _DEFAULT is None:
                _DEFAULT = Registry(load_definitions())
                log.info("loaded %d instrument definitions", len(_DEFAULT))
    return _DEFAULT


def reset_registry() -> None:
    """Drop the cached default registry (tests and config reloads)."""
    global _DEFAULT
    with _LOCK:
        _DEFAULT = None
