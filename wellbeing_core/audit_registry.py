from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from .errors import DefinitionError
from .interpretation import band_value
from .registry import load_definitions, load_raw
from .types import AssessmentDefinition


def _basis_range(d: AssessmentDefinition) -> tuple[float, float]:
    return band_value(d, d.min_score), band_value(d, d.max_score)


def audit_definition(d: AssessmentDefinition) -> tuple[dict[str, object], list[str]]:
    lo, hi = _basis_range(d)
    warnings: list[str] = []

    prev = None
    for band in d.bands:
        if band.upper is not None and not band.contains(lo):
            warnings.append(f"{d.key} band '{band.label}' ends below the lowest possible score ({lo:g})")
        if prev is not None and prev.contains(hi):
            warnings.append(f"{d.key} band '{band.label}' is unreachable (max {d.band_basis} score is {hi:g})")
        prev = band

    for cat in d.categories:
        if cat not in d.category_labels:
            warnings.append(f"{d.key} category '{cat}' has no display label")

    reverse = sum(1 for q in d.questions if q.reverse)
    if reverse == d.question_count:
        warnings.append(f"{d.key} has every item reverse-scored")

    row = {
        "title": d.title,
        "questions": d.question_count,
        "reverse_scored": reverse,
        "scale": [d.scale_min, d.max_per_question],
        "score_range": [d.min_score, d.max_score],
        "band_basis": d.band_basis,
        "bands": len(d.bands),
        "categories": {c: d.category_question_count(c) for c in d.categories},
        "polarity": d.polarity,
        "aliases": list(d.aliases),
    }
    return row, warnings


def audit_definitions(defs: Iterable[AssessmentDefinition]) -> dict[str, object]:
    instruments: dict[str, object] = {}
    warnings: list[str] = []
    for d in defs:
        row, w = audit_definition(d)
        instruments[d.key] = row
        warnings.extend(w)
    totals = {
        "instruments": len(instruments),
        "questions": sum(r["questions"] for r in instruments.values()),  # type: ignore[index]
    }
    return {"instruments": instruments, "warnings": warnings, "totals": totals}


def print_report(summary: dict[str, object]) -> None:
    instruments: dict[str, dict[str, object]] = summary["instruments"]  # type: ignore[assignment]
    print("=== Instrument Registry ===")
    for key, row in instruments.items():
        cats = ", ".join(f"{c}:{n}" for c, n in row["categories"].items())  # type: ignore[union-attr]
        print(f"\n{key}  ({row['title']})")
        print(f"  items {row['questions']}  reverse {row['reverse_scored']}  scale {row['scale']}  basis {row['band_basis']}")
        print(f"  categories  {cats}")

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")
    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path = Path("registry_audit.json")) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    return text


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Audit instrument definitions")
    ap.add_argument("--definitions", help="JSON file to audit instead of the bundled definitions")
    ap.add_argument("--out", default="registry_audit.json", help="where to write the JSON summary")
    a = ap.parse_args(argv)
    try:
        defs = load_definitions(load_raw(a.definitions))
    except DefinitionError as exc:
        print(f"Invalid definitions: {exc}")
        return 1
    summary = audit_definitions(defs)
    print_report(summary)
    write_summary(summary, Path(a.out))
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
