"""
stat_platform/formatting.py
===========================
Indonesian number formatting, percent and status labels, and colour helpers
for the analysis dashboard and exports.
"""
from __future__ import annotations
from typing import Optional

from .config import CATEGORY_LABELS, SCORE_FAIR, SCORE_GOOD


def format_number(value: Optional[float], decimals: int = 0) -> str:
    """
    Format with Indonesian separators: 25600 → 25.600, 87.8 → 87,8.
    """
    if value is None:
        return "—"
    s = f"{value:,.{decimals}f}"
    return s.replace(",", "_").replace(".", ",").replace("_", ".")


def format_value(value: Optional[float], unit: str = "") -> str:
    """Number plus unit; keeps one decimal for fractional values (IKM 89,4 %)."""
    if value is None:
        return "—"
    decimals = 0 if float(value).is_integer() else 1
    text = format_number(value, decimals)
    return f"{text} {unit}".strip() if unit else text


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    if value is None:
        return "—"
    return f"{value:+.{decimals}f}%"


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def status_label(status: str) -> str:
    return {"NAIK": "▲ Naik", "TURUN": "▼ Turun", "STABIL": "● Stabil"}.get(status, status)


def get_status_color(status: str) -> str:
    return {"NAIK": "#10b981", "TURUN": "#ef4444", "STABIL": "#6b7280"}.get(status, "#6b7280")


def get_score_color(score: int) -> str:
    """Health-score gauge colour."""
    if score >= SCORE_GOOD:
        return "#22c55e"
    elif score >= SCORE_FAIR:
        return "#eab308"
    return "#ef4444"


def get_severity_color(severity: str) -> str:
    return {"HIGH": "#991b1b", "MEDIUM": "#854d0e", "LOW": "#1e40af"}.get(severity, "#6b7280")


def get_insight_style(insight_type: str) -> str:
    """CSS class for an insight card."""
    return {
        "TREND_UP": "insight-positive",
        "TREND_DOWN": "insight-negative",
        "ANOMALY": "insight-warning",
    }.get(insight_type, "insight-neutral")
