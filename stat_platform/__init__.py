"""Annual Statistics Analyst — heuristic AI analysis of yearly agency indicators."""
from .types import *
from .formatting import *
from .errors import StatPlatformError, NoDataForCategoryError, StoreFetchError
from .analyzer import analyze, coerce_numeric_or_zero
from .store import IndicatorStore, InMemoryIndicatorStore, run_analysis, sample_store
