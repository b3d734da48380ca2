"""
stat_platform/config.py
=======================
Category registry, fixed analysis thresholds and environment-driven
application settings.

The thresholds are part of the analysis contract and are not meant to be
tuned per run; change them here only together with the tests.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .types import StatCategory

# ─── Categories ───────────────────────────────────────────────────────────────

CATEGORIES: Tuple[StatCategory, ...] = ("Perpustakaan", "Kearsipan", "Umum")

# Display labels used by the selector and the exported reports
CATEGORY_LABELS: Dict[str, str] = {
    "Perpustakaan": "Perpustakaan",
    "Kearsipan": "Kearsipan",
    "Umum": "Umum / Kepegawaian",
}

# Loose spellings seen in sheet names and uploaded tables
CATEGORY_ALIASES: Dict[str, StatCategory] = {
    "perpustakaan": "Perpustakaan",
    "perpus": "Perpustakaan",
    "library": "Perpustakaan",
    "kearsipan": "Kearsipan",
    "arsip": "Kearsipan",
    "archives": "Kearsipan",
    "archive": "Kearsipan",
    "umum": "Umum",
    "kepegawaian": "Umum",
    "general": "Umum",
    "staffing": "Umum",
}

# ─── Analysis Thresholds (growth, in percent) ─────────────────────────────────

RISING_THRESHOLD = 5.0
FALLING_THRESHOLD = -5.0
STRENGTH_THRESHOLD = 15.0
WEAKNESS_THRESHOLD = -10.0
ANOMALY_THRESHOLD = 30.0
TREND_DOWN_THRESHOLD = -20.0

# ─── Health Score ─────────────────────────────────────────────────────────────

BASE_SCORE = 70.0
GROWTH_WEIGHT = 2.0
ANOMALY_PENALTY = 5.0
SCORE_MIN = 0
SCORE_MAX = 100

# Score colour bands (same cut-offs as the dashboard gauge)
SCORE_GOOD = 80
SCORE_FAIR = 60

# ─── Projection ───────────────────────────────────────────────────────────────

DAMPING_FACTOR = 0.8
PROJECTION_HORIZON = 3
TREND_WINDOW = 3


# ─── Application Settings ─────────────────────────────────────────────────────

@dataclass
class AppSettings:
    data_file: Optional[str] = None
    log_level: str = "INFO"
    default_category: StatCategory = "Perpustakaan"

    @classmethod
    def from_env(cls) -> "AppSettings":
        default_category = os.environ.get("STAT_PLATFORM_DEFAULT_CATEGORY", "Perpustakaan")
        if default_category not in CATEGORIES:
            logging.getLogger(__name__).warning(
                "Unknown default category %r — falling back to Perpustakaan", default_category
            )
            default_category = "Perpustakaan"
        return cls(
            data_file=os.environ.get("STAT_PLATFORM_DATA_FILE") or None,
            log_level=os.environ.get("STAT_PLATFORM_LOG_LEVEL", "INFO").upper(),
            default_category=default_category,  # type: ignore[arg-type]
        )
