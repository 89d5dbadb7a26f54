from __future__ import annotations
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from datetime import datetime
import logging, typing as t

from wellbeing_core.config import load_config
from wellbeing_core.engine import AssessmentEngine
from wellbeing_core.errors import (
    InsufficientHistoryError,
    InvalidResponseError,
    MissingResponseError,
    UnexpectedResponseError,
    UnknownInstrumentError,
)
from wellbeing_core.types import AssessmentDefinition, HistoryRecord

CFG = load_config()
logging.basicConfig(level=getattr(logging, CFG.get("LOG_LEVEL", "INFO"), logging.INFO))
log = logging.getLogger("api")

ENGINE = AssessmentEngine()

app = FastAPI(title="Wellbeing Assessment Engine API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CFG.get("ALLOWED_ORIGINS") or []),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


# ---- Schemas ----
Answer = t.Union[bool, float, int, str, None]
CompositePolarity = t.Literal["distress", "wellbeing", "exclude"]


class ScoreReq(BaseModel):
    instrument_key: str
    responses: dict[str, Answer]


class HistoryIn(BaseModel):
    score: float = Field(..., description="normalized score, 0..100")
    completed_at: datetime | None = None
    raw_score: float | None = None
    max_score: float | None = None
    interpretation: str | None = None


class TrendReq(BaseModel):
    instrument_key: str
    history: list[HistoryIn]  # oldest first, newest last


class InsightReq(BaseModel):
    histories_by_instrument: dict[str, list[HistoryIn]]
    polarity_overrides: dict[str, CompositePolarity] | None = None


# ---- Helpers ----
def _records(key: str, rows: list[HistoryIn]) -> list[HistoryRecord]:
    return [
        HistoryRecord(
            instrument_key=key,
            normalized_score=r.score,
            completed_at=r.completed_at,
            raw_score=r.raw_score,
            max_score=r.max_score,
            interpretation=r.interpretation,
        )
        for r in rows
    ]


def _serialize_definition(d: AssessmentDefinition) -> dict[str, t.Any]:
    return {
        "key": d.key,
        "title": d.title,
        "aliases": list(d.aliases),
        "polarity": d.polarity,
        "scale": {"min": d.scale_min, "max": d.max_per_question},
        "maxScore": d.max_score,
        "categories": {c: d.category_labels.get(c, c) for c in d.categories},
        "questions": [
            {"id": q.id, "index": q.index, "category": q.category, "reverse": q.reverse}
            for q in d.questions
        ],
    }


def _unknown(exc: UnknownInstrumentError) -> HTTPException:
    return HTTPException(404, {"error": "unknown_instrument", "instrument_key": exc.key})


# ---- Health ----
@app.get("/")
def root():
    return {"status": "ok", "service": "wellbeing-assessment-engine"}


@app.get("/health")
def health():
    return {"status": "ok", "instruments": len(ENGINE.registry)}


# ---- Registry ----
@app.get("/instruments")
def list_instruments():
    return {"instruments": [{"key": d.key, "title": d.title, "questions": d.question_count} for d in ENGINE.definitions()]}


@app.get("/instruments/{key}")
def get_instrument(key: str):
    try:
        return _serialize_definition(ENGINE.definition(key))
    except UnknownInstrumentError as exc:
        raise _unknown(exc)


# ---- Scoring / insight ----
@app.post("/score")
def score(req: ScoreReq):
    try:
        summary = ENGINE.score(req.instrument_key, req.responses)
    except UnknownInstrumentError as exc:
        raise _unknown(exc)
    except MissingResponseError as exc:
        raise HTTPException(422, {"error": "missing_responses", "missing": exc.missing})
    except InvalidResponseError as exc:
        raise HTTPException(422, {"error": "invalid_responses", "invalid": exc.invalid})
    except UnexpectedResponseError as exc:
        raise HTTPException(422, {"error": "unexpected_responses", "unexpected": exc.unexpected})
    return summary.to_dict()


@app.post("/trend")
def trend(req: TrendReq):
    try:
        summary = ENGINE.trend(req.instrument_key, _records(req.instrument_key, req.history))
    except InsufficientHistoryError as exc:
        raise HTTPException(422, {"error": "insufficient_history", "instrument_key": exc.key})
    return summary.to_dict()


@app.post("/insights")
def insights(req: InsightReq):
    histories = {k: _records(k, rows) for k, rows in req.histories_by_instrument.items()}
    return ENGINE.insight(histories, polarity_overrides=req.polarity_overrides).to_dict()
