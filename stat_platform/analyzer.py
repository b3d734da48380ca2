"""
stat_platform/analyzer.py
=========================
Heuristic "AI" analysis engine for yearly performance indicators.

Pipeline (one invocation, one category):
  1. Filter       — indicators of the selected category only
  2. Metrics      — latest value, YoY growth, 3-year trend, NAIK/TURUN/STABIL
  3. Aggregation  — SWOT buckets, insights, recommendations, health score
  4. Projection   — 3-year damped compound-growth forecast per indicator

The engine is pure: it performs no I/O and never reads the clock. The caller
supplies the indicator/value snapshot and the current year.
"""
from __future__ import annotations
import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import (
    ANOMALY_PENALTY, ANOMALY_THRESHOLD, BASE_SCORE, DAMPING_FACTOR,
    FALLING_THRESHOLD, GROWTH_WEIGHT, PROJECTION_HORIZON, RISING_THRESHOLD,
    SCORE_MAX, SCORE_MIN, STRENGTH_THRESHOLD, TREND_DOWN_THRESHOLD,
    TREND_WINDOW, WEAKNESS_THRESHOLD,
)
from .errors import NoDataForCategoryError
from .types import (
    AnalysisAggregate, AnalysisResult, Indicator, IndicatorBreakdown,
    IndicatorStatus, Insight, PredictionYear, ProjectedValue, RankedIndicator,
    RawValue, Recommendation, StatCategory, SwotBuckets, YearlyValue,
)

logger = logging.getLogger(__name__)

CoercePolicy = Callable[[RawValue], float]


# ─── Numeric Coercion Policies ────────────────────────────────────────────────

def _parse_number(value: RawValue) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    s = "" if value is None else str(value).strip()
    if s == "":
        return 0.0
    if "_" in s:
        # float() accepts digit grouping ("1_000"); stored text never uses it
        raise ValueError(f"Unexpected numeric text {s!r}")
    return float(s)


def coerce_numeric_or_zero(value: RawValue) -> float:
    """
    Lossy coercion used by the analysis: anything that is not a finite number
    (empty text, free text, NaN, infinities) counts as 0.
    """
    try:
        num = _parse_number(value)
    except (TypeError, ValueError):
        logger.debug("Non-numeric yearly value %r coerced to 0", value)
        return 0.0
    if not math.isfinite(num):
        logger.debug("Non-finite yearly value %r coerced to 0", value)
        return 0.0
    return num


def coerce_numeric_strict(value: RawValue) -> float:
    """Alternate policy: reject values the lossy policy would zero out."""
    try:
        num = _parse_number(value)
    except (TypeError, ValueError):
        raise ValueError(f"Yearly value {value!r} is not numeric") from None
    if not math.isfinite(num):
        raise ValueError(f"Yearly value {value!r} is not finite")
    return num


def round_half_up(x: float) -> int:
    """Round .5 towards +inf (dashboard numbers were produced this way)."""
    return int(math.floor(x + 0.5))


# ─── Stage 1: Filter ──────────────────────────────────────────────────────────

def filter_category(indicators: Iterable[Indicator], category: StatCategory) -> List[Indicator]:
    selected = [ind for ind in indicators if ind.category == category]
    if not selected:
        raise NoDataForCategoryError(category)
    return selected


def dedupe_yearly_values(values: Iterable[YearlyValue]) -> List[YearlyValue]:
    """
    Keep one value per (indicator_id, year). When the store returns
    duplicates, the last one in input order wins.
    """
    latest: Dict[Tuple[str, int], YearlyValue] = {}
    for v in values:
        key = (v.indicator_id, v.year)
        if key in latest:
            logger.warning(
                "Duplicate yearly value for indicator %s year %d — keeping the last one",
                v.indicator_id, v.year,
            )
            del latest[key]
        latest[key] = v
    return list(latest.values())


def _group_by_indicator(values: Iterable[YearlyValue]) -> Dict[str, List[YearlyValue]]:
    grouped: Dict[str, List[YearlyValue]] = {}
    for v in dedupe_yearly_values(values):
        grouped.setdefault(v.indicator_id, []).append(v)
    return grouped


# ─── Stage 2: Per-Indicator Metrics ───────────────────────────────────────────

def classify_growth(growth: float) -> IndicatorStatus:
    if growth > RISING_THRESHOLD:
        return "NAIK"
    if growth < FALLING_THRESHOLD:
        return "TURUN"
    return "STABIL"


def compute_growth(latest: float, previous: Optional[float]) -> float:
    """YoY growth in percent; 0 when there is no usable (positive) baseline."""
    if previous is None or previous <= 0:
        return 0.0
    growth = (latest - previous) / previous * 100
    return growth if math.isfinite(growth) else 0.0


def compute_indicator_metrics(
    indicator: Indicator,
    values: Sequence[YearlyValue],
    coerce: CoercePolicy = coerce_numeric_or_zero,
) -> IndicatorBreakdown:
    """Breakdown row for one indicator; `values` may contain other indicators' rows."""
    own = sorted((v for v in values if v.indicator_id == indicator.id), key=lambda v: v.year)
    nums = [coerce(v.value) for v in own]

    current = nums[-1] if nums else 0.0
    previous = nums[-2] if len(nums) >= 2 else None
    growth = compute_growth(current, previous)

    return IndicatorBreakdown(
        id=indicator.id,
        name=indicator.name,
        last_value=current,
        growth=growth,
        status=classify_growth(growth),
        trend_3_years=tuple(nums[-TREND_WINDOW:]),
        trend_years=tuple(v.year for v in own[-TREND_WINDOW:]),
        unit=indicator.unit or "",
        value_count=len(nums),
    )


# ─── Reduction ────────────────────────────────────────────────────────────────

def aggregate_metrics(breakdown: Sequence[IndicatorBreakdown]) -> AnalysisAggregate:
    rising = falling = stable = 0
    total = 0.0
    gainer_name, gainer_val = "", -math.inf
    loser_name, loser_val = "", math.inf

    for item in breakdown:
        if item.status == "NAIK":
            rising += 1
        elif item.status == "TURUN":
            falling += 1
        else:
            stable += 1
        total += item.growth
        if item.growth > gainer_val:
            gainer_name, gainer_val = item.name, item.growth
        if item.growth < loser_val:
            loser_name, loser_val = item.name, item.growth

    return AnalysisAggregate(
        rising_count=rising,
        falling_count=falling,
        stable_count=stable,
        total_growth=total,
        indicator_count=len(breakdown),
        top_gainer=RankedIndicator(gainer_name, gainer_val) if breakdown else None,
        top_loser=RankedIndicator(loser_name, loser_val) if breakdown else None,
    )


# ─── Stage 3: SWOT, Insights, Recommendations, Score ─────────────────────────

def build_swot_and_insights(
    breakdown: Sequence[IndicatorBreakdown],
) -> Tuple[SwotBuckets, List[Insight]]:
    strengths: List[str] = []
    weaknesses: List[str] = []
    opportunities: List[str] = []
    threats: List[str] = []
    insights: List[Insight] = []

    for item in breakdown:
        g = item.growth
        if g > STRENGTH_THRESHOLD:
            strengths.append(f"Pertumbuhan {item.name} sangat positif (+{g:.1f}%)")
        elif g < WEAKNESS_THRESHOLD:
            weaknesses.append(f"Penurunan kinerja pada {item.name} ({g:.1f}%)")

        if g > ANOMALY_THRESHOLD:
            insights.append(Insight(
                type="ANOMALY",
                indicator_id=item.id,
                indicator_name=item.name,
                message=f"Lonjakan signifikan {g:.1f}% terdeteksi. Pastikan validitas data.",
                severity="MEDIUM",
            ))
            opportunities.append(f"Momentum pertumbuhan {item.name} dapat dimaksimalkan.")
        elif g < TREND_DOWN_THRESHOLD:
            insights.append(Insight(
                type="TREND_DOWN",
                indicator_id=item.id,
                indicator_name=item.name,
                message=f"Penurunan tajam {abs(g):.1f}%. Perlu investigasi penyebab.",
                severity="HIGH",
            ))
            threats.append(f"Risiko stagnasi jangka panjang pada {item.name}.")

    swot = SwotBuckets(
        strengths=tuple(strengths),
        weaknesses=tuple(weaknesses),
        opportunities=tuple(opportunities),
        threats=tuple(threats),
    )
    return swot, insights


def build_recommendations(
    category: StatCategory, aggregate: AnalysisAggregate, swot: SwotBuckets
) -> List[Recommendation]:
    recs: List[Recommendation] = []

    if aggregate.falling_count > aggregate.rising_count:
        recs.append(Recommendation(
            category="Strategi Pemulihan",
            title="Evaluasi Program",
            description=(
                f"Mayoritas indikator ({aggregate.falling_count}) mengalami penurunan. "
                f"Lakukan evaluasi mendalam pada program kerja terkait {category}."
            ),
            expected_impact="Menghentikan tren penurunan dan menstabilkan kinerja.",
            action_type="URGENT",
        ))
    else:
        gainer = aggregate.top_gainer.name if aggregate.top_gainer else ""
        recs.append(Recommendation(
            category="Pengembangan",
            title="Ekspansi Program Unggulan",
            description=(
                f"Indikator seperti {gainer} tumbuh pesat. "
                "Alokasikan sumber daya tambahan untuk mempertahankan momentum."
            ),
            expected_impact="Akselerasi pencapaian target tahun depan.",
            action_type="SUGGESTION",
        ))

    if swot.threats:
        recs.append(Recommendation(
            category="Mitigasi Risiko",
            title="Penanganan Indikator Kritis",
            description=(
                f"Terdapat {len(swot.threats)} ancaman kinerja yang terdeteksi. "
                "Segera susun rencana tindak lanjut."
            ),
            expected_impact="Mencegah kegagalan pencapaian target strategis.",
            action_type="URGENT",
        ))

    return recs


def compute_health_score(avg_growth: float, anomaly_count: int) -> int:
    """70 + 2·avg_growth − 5·anomalies, rounded and clamped to [0, 100]."""
    raw = BASE_SCORE + avg_growth * GROWTH_WEIGHT - anomaly_count * ANOMALY_PENALTY
    if math.isnan(raw):
        raw = BASE_SCORE
    # avg_growth may be ±inf; clamp before rounding
    return round_half_up(min(SCORE_MAX, max(SCORE_MIN, raw)))


def build_summary(category: StatCategory, score: int, aggregate: AnalysisAggregate) -> str:
    return (
        f"Analisis AI untuk kategori {category} menunjukkan skor kesehatan {score}/100. "
        f"Tren rata-rata pertumbuhan adalah {aggregate.avg_growth:.1f}%. "
        f"Ditemukan {aggregate.rising_count} indikator naik dan "
        f"{aggregate.falling_count} indikator turun."
    )


def build_score_factors(aggregate: AnalysisAggregate, anomaly_count: int) -> List[str]:
    return [
        f"Pertumbuhan rata-rata: {aggregate.avg_growth:.1f}%",
        f"Anomali terdeteksi: {anomaly_count}",
        f"Rasio Naik/Turun: {aggregate.rising_count}/{aggregate.falling_count}",
    ]


# ─── Stage 4: Projection ──────────────────────────────────────────────────────

def project_value(last_value: float, growth: float, offset: int) -> int:
    """Damped compound growth; a projection that overflows float range is 0."""
    rate = growth / 100 * DAMPING_FACTOR
    try:
        projected = last_value * (1 + rate) ** offset
    except OverflowError:
        projected = math.inf
    if not math.isfinite(projected):
        logger.debug("Projection of %r at %+.1f%% overflowed; using 0", last_value, growth)
        return 0
    return round_half_up(projected)


def project_indicators(
    breakdown: Sequence[IndicatorBreakdown],
    current_year: int,
    horizon: int = PROJECTION_HORIZON,
) -> List[PredictionYear]:
    """
    Damped compound growth for `current_year + 1 .. current_year + horizon`.
    Values are not clamped: strongly negative growth can project below zero.
    """
    predictions: List[PredictionYear] = []
    for offset in range(1, horizon + 1):
        values = tuple(
            ProjectedValue(
                indicator_id=item.id,
                indicator_name=item.name,
                predicted_value=project_value(item.last_value, item.growth, offset),
            )
            for item in breakdown
        )
        predictions.append(PredictionYear(year=current_year + offset, offset=offset, values=values))
    return predictions


# ─── Entry Point ──────────────────────────────────────────────────────────────

def analyze(
    category: StatCategory,
    indicators: Iterable[Indicator],
    yearly_values: Iterable[YearlyValue],
    current_year: int,
    coerce: CoercePolicy = coerce_numeric_or_zero,
) -> AnalysisResult:
    """Run the full analysis for one category snapshot."""
    selected = filter_category(indicators, category)
    grouped = _group_by_indicator(yearly_values)

    breakdown = [
        compute_indicator_metrics(ind, grouped.get(ind.id, []), coerce)
        for ind in selected
    ]
    aggregate = aggregate_metrics(breakdown)

    swot, insights = build_swot_and_insights(breakdown)
    anomaly_count = sum(1 for i in insights if i.type == "ANOMALY")
    recommendations = build_recommendations(category, aggregate, swot)
    score = compute_health_score(aggregate.avg_growth, anomaly_count)
    predictions = project_indicators(breakdown, current_year)

    logger.info(
        "Analysed %d indicators for %s: score=%d rising=%d falling=%d anomalies=%d",
        len(breakdown), category, score,
        aggregate.rising_count, aggregate.falling_count, anomaly_count,
    )

    return AnalysisResult(
        category=category,
        current_year=current_year,
        insights=tuple(insights),
        predictions=tuple(predictions),
        recommendations=tuple(recommendations),
        indicator_breakdown=tuple(breakdown),
        summary=build_summary(category, score, aggregate),
        swot=swot,
        score=score,
        score_factors=tuple(build_score_factors(aggregate, anomaly_count)),
        aggregate=aggregate,
    )
