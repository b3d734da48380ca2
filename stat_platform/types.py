"""
stat_platform/types.py
======================
Python dataclasses for the annual statistics domain: indicators, their
yearly values, and the structures produced by the AI analysis engine.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Literal, Tuple, Union

# ─── Core Data Types ──────────────────────────────────────────────────────────

StatCategory = Literal["Perpustakaan", "Kearsipan", "Umum"]
IndicatorType = Literal["number", "text", "percentage"]

# Raw cell content as stored: a number, or numeric text entered by staff
RawValue = Union[int, float, str, None]


@dataclass(frozen=True)
class Indicator:
    id: str
    category: StatCategory
    name: str
    type: IndicatorType = "number"
    unit: Optional[str] = None


@dataclass(frozen=True)
class YearlyValue:
    id: str
    indicator_id: str
    year: int
    value: RawValue
    note: Optional[str] = None


# ─── AI Analysis Types ────────────────────────────────────────────────────────

IndicatorStatus = Literal["NAIK", "TURUN", "STABIL"]
InsightType = Literal["TREND_UP", "TREND_DOWN", "ANOMALY", "STABLE"]
Severity = Literal["HIGH", "MEDIUM", "LOW"]
ActionType = Literal["URGENT", "SUGGESTION", "LONG_TERM"]


@dataclass(frozen=True)
class Insight:
    type: InsightType
    indicator_id: str
    indicator_name: str
    message: str
    severity: Severity


@dataclass(frozen=True)
class Recommendation:
    category: str
    title: str
    description: str
    expected_impact: str
    action_type: ActionType


@dataclass(frozen=True)
class IndicatorBreakdown:
    id: str
    name: str
    last_value: float
    growth: float
    status: IndicatorStatus
    trend_3_years: Tuple[float, ...] = ()
    trend_years: Tuple[int, ...] = ()
    unit: str = ""
    value_count: int = 0


@dataclass(frozen=True)
class SwotBuckets:
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    opportunities: Tuple[str, ...] = ()
    threats: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "opportunities": list(self.opportunities),
            "threats": list(self.threats),
        }


@dataclass(frozen=True)
class ProjectedValue:
    indicator_id: str
    indicator_name: str
    predicted_value: int


@dataclass(frozen=True)
class PredictionYear:
    year: int
    offset: int
    values: Tuple[ProjectedValue, ...] = ()

    def value_for(self, indicator_id: str) -> Optional[int]:
        for pv in self.values:
            if pv.indicator_id == indicator_id:
                return pv.predicted_value
        return None

    def as_row(self) -> Dict[str, Union[int, str]]:
        """Chart-friendly pivot row: {"year": 2025, "<indicator name>": value, ...}."""
        row: Dict[str, Union[int, str]] = {"year": self.year}
        for pv in self.values:
            row[pv.indicator_name] = pv.predicted_value
        return row


@dataclass(frozen=True)
class RankedIndicator:
    name: str
    growth: float


@dataclass(frozen=True)
class AnalysisAggregate:
    rising_count: int = 0
    falling_count: int = 0
    stable_count: int = 0
    total_growth: float = 0.0
    indicator_count: int = 0
    top_gainer: Optional[RankedIndicator] = None
    top_loser: Optional[RankedIndicator] = None

    @property
    def avg_growth(self) -> float:
        if self.indicator_count == 0:
            return 0.0
        return self.total_growth / self.indicator_count


@dataclass(frozen=True)
class AnalysisResult:
    category: StatCategory
    current_year: int
    insights: Tuple[Insight, ...] = ()
    predictions: Tuple[PredictionYear, ...] = ()
    recommendations: Tuple[Recommendation, ...] = ()
    indicator_breakdown: Tuple[IndicatorBreakdown, ...] = ()
    summary: str = ""
    swot: SwotBuckets = field(default_factory=SwotBuckets)
    score: int = 0
    score_factors: Tuple[str, ...] = ()
    aggregate: AnalysisAggregate = field(default_factory=AnalysisAggregate)

    @property
    def anomaly_count(self) -> int:
        return sum(1 for i in self.insights if i.type == "ANOMALY")
