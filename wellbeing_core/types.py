from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Literal

BandBasis = Literal["raw", "normalized", "average"]
Polarity = Literal["distress", "wellbeing"]
Direction = Literal["up", "down", "same"]
RiskLevel = Literal["low", "moderate", "high"]
TrendLabel = Literal["improving", "declining", "stable", "baseline"]


@dataclass(frozen=True)
class QuestionSpec:
    id: str; index: int; category: str
    reverse: bool = False


@dataclass(frozen=True)
class Band:
    # upper=None marks the catch-all band; inclusive=False means "below upper"
    upper: Optional[float]; label: str
    inclusive: bool = True

    def contains(self, value: float) -> bool:
        if self.upper is None:
            return True
        return value <= self.upper if self.inclusive else value < self.upper


@dataclass(frozen=True)
class CategoryBand:
    upper: Optional[float]; template: str
    inclusive: bool = True

    def contains(self, value: float) -> bool:
        if self.upper is None:
            return True
        return value <= self.upper if self.inclusive else value < self.upper


@dataclass(frozen=True)
class RiskBanding:
    high: float
    moderate: float
    higher_is_riskier: bool = True


@dataclass(frozen=True)
class AssessmentDefinition:
    key: str
    title: str
    questions: Tuple[QuestionSpec, ...]
    max_per_question: float
    bands: Tuple[Band, ...]
    scale_min: float = 0
    band_basis: BandBasis = "raw"
    category_labels: Dict[str, str] = field(default_factory=dict)
    category_bands: Tuple[CategoryBand, ...] = ()
    polarity: Polarity = "distress"
    risk: Optional[RiskBanding] = None
    aliases: Tuple[str, ...] = ()

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]

    @property
    def max_score(self) -> float:
        return self.question_count * self.max_per_question

    @property
    def min_score(self) -> float:
        return self.question_count * self.scale_min

    @property
    def categories(self) -> Tuple[str, ...]:
        """Category tags in first-appearance order."""
        return tuple(dict.fromkeys(q.category for q in self.questions))

    def category_question_count(self, category: str) -> int:
        return sum(1 for q in self.questions if q.category == category)


@dataclass(frozen=True)
class CategoryScore:
    raw: float; normalized: float; interpretation: str


@dataclass(frozen=True)
class ScoreSummary:
    instrument_key: str
    raw_score: float
    max_score: float
    normalized_score: float
    normalized_score_rounded: float
    interpretation: str
    category_raw: Dict[str, float]
    category_normalized: Dict[str, float]
    category_interpretations: Dict[str, str]
    min_score: float = 0

    @property
    def category_breakdown(self) -> Dict[str, CategoryScore]:
        return {
            cat: CategoryScore(
                raw=self.category_raw[cat],
                normalized=self.category_normalized[cat],
                interpretation=self.category_interpretations[cat],
            )
            for cat in self.category_raw
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "instrumentKey": self.instrument_key,
            "rawScore": self.raw_score,
            "minScore": self.min_score,
            "maxScore": self.max_score,
            "normalizedScore": self.normalized_score,
            "normalizedScoreRounded": self.normalized_score_rounded,
            "interpretation": self.interpretation,
            "categoryRaw": dict(self.category_raw),
            "categoryNormalized": dict(self.category_normalized),
            "categoryInterpretations": dict(self.category_interpretations),
            "categoryBreakdown": {k: v.__dict__.copy() for k, v in self.category_breakdown.items()},
        }


@dataclass(frozen=True)
class HistoryRecord:
    instrument_key: str
    normalized_score: float
    completed_at: Optional[datetime] = None
    raw_score: Optional[float] = None
    max_score: Optional[float] = None
    interpretation: Optional[str] = None
    category_breakdown: Optional[Dict[str, CategoryScore]] = None

    @classmethod
    def from_summary(cls, summary: ScoreSummary, completed_at: Optional[datetime] = None) -> "HistoryRecord":
        return cls(
            instrument_key=summary.instrument_key,
            normalized_score=summary.normalized_score,
            completed_at=completed_at,
            raw_score=summary.raw_score,
            max_score=summary.max_score,
            interpretation=summary.interpretation,
            category_breakdown=summary.category_breakdown,
        )

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "instrumentKey": self.instrument_key,
            "score": self.normalized_score,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
        if self.raw_score is not None: out["rawScore"] = self.raw_score
        if self.max_score is not None: out["maxScore"] = self.max_score
        if self.interpretation is not None: out["interpretation"] = self.interpretation
        if self.category_breakdown:
            out["categoryBreakdown"] = {k: v.__dict__.copy() for k, v in self.category_breakdown.items()}
        return out


@dataclass(frozen=True)
class TrendSummary:
    type: str
    latest: HistoryRecord
    risk: RiskLevel
    trend: TrendLabel
    average_score: float
    best_score: float
    history_count: int
    previous: Optional[HistoryRecord] = None
    change: Optional[float] = None
    direction: Optional[Direction] = None

    @property
    def last_completed_at(self) -> Optional[datetime]:
        return self.latest.completed_at

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            "type": self.type,
            "latest": self.latest.to_dict(),
            "risk": self.risk,
            "trend": self.trend,
            "averageScore": self.average_score,
            "bestScore": self.best_score,
            "historyCount": self.history_count,
            "lastCompletedAt": self.last_completed_at.isoformat() if self.last_completed_at else None,
        }
        if self.previous is not None:
            out["previous"] = self.previous.to_dict()
            out["change"] = self.change
            out["direction"] = self.direction
        return out


@dataclass(frozen=True)
class WellnessInsight:
    by_type: Dict[str, TrendSummary]
    composite_score: Optional[float]
    overall_trend: str
    summary: str
    updated_at: Optional[datetime] = None
    skipped: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "byType": {k: v.to_dict() for k, v in self.by_type.items()},
            "compositeScore": self.composite_score,
            "overallTrend": self.overall_trend,
            "summary": self.summary,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "skipped": list(self.skipped),
        }
