"""
stat_platform/store.py
======================
Data-store collaborator for the analysis engine.

The engine itself never fetches anything: `run_analysis` performs a blocking
fetch of indicators and yearly values, then hands the snapshot to
`analyzer.analyze`. Any failure while fetching aborts the run.

`InMemoryIndicatorStore` backs the Streamlit app (sample data or an uploaded
workbook) and the tests. A remote store only has to implement the two
`list_*` methods of `IndicatorStore`.
"""
from __future__ import annotations
import logging
import uuid
import zipfile
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .analyzer import analyze
from .errors import StoreFetchError
from .parser import expand_uploaded_files, parse_file
from .sample_data import SAMPLE_INDICATORS, SAMPLE_YEARLY_VALUES
from .types import AnalysisResult, Indicator, RawValue, StatCategory, YearlyValue

logger = logging.getLogger(__name__)


class IndicatorStore(Protocol):
    def list_indicators(self) -> List[Indicator]: ...

    def list_yearly_values(self) -> List[YearlyValue]: ...


def generate_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class InMemoryIndicatorStore:
    """Indicator + yearly-value tables held in memory."""

    def __init__(
        self,
        indicators: Optional[Iterable[Indicator]] = None,
        yearly_values: Optional[Iterable[YearlyValue]] = None,
    ):
        self._indicators: List[Indicator] = list(indicators or [])
        self._values: List[YearlyValue] = list(yearly_values or [])

    # ── Indicators ────────────────────────────────────────────────────────────

    def list_indicators(self) -> List[Indicator]:
        return sorted(self._indicators, key=lambda i: (i.category, i.name))

    def get_indicator(self, indicator_id: str) -> Optional[Indicator]:
        return next((i for i in self._indicators if i.id == indicator_id), None)

    def add_indicator(self, indicator: Indicator) -> Indicator:
        if not indicator.id:
            indicator = replace(indicator, id=generate_id("ind"))
        if self.get_indicator(indicator.id) is not None:
            raise ValueError(f"Indicator {indicator.id} already exists")
        self._indicators.append(indicator)
        return indicator

    def update_indicator(self, indicator: Indicator) -> None:
        for idx, existing in enumerate(self._indicators):
            if existing.id == indicator.id:
                self._indicators[idx] = indicator
                return
        raise KeyError(indicator.id)

    def delete_indicator(self, indicator_id: str) -> None:
        """Remove an indicator together with all of its yearly values."""
        if self.get_indicator(indicator_id) is None:
            raise KeyError(indicator_id)
        before = len(self._values)
        self._values = [v for v in self._values if v.indicator_id != indicator_id]
        removed = before - len(self._values)
        self._indicators = [i for i in self._indicators if i.id != indicator_id]
        logger.info("Deleted indicator %s (%d yearly values)", indicator_id, removed)

    # ── Yearly values ─────────────────────────────────────────────────────────

    def list_yearly_values(self) -> List[YearlyValue]:
        return list(self._values)

    def yearly_values_for_year(self, year: int) -> List[YearlyValue]:
        return [v for v in self._values if v.year == year]

    def upsert_yearly_value(
        self, indicator_id: str, year: int, value: RawValue, note: Optional[str] = None
    ) -> YearlyValue:
        """Update the (indicator, year) row if present, insert it otherwise."""
        for idx, existing in enumerate(self._values):
            if existing.indicator_id == indicator_id and existing.year == year:
                updated = replace(existing, value=value, note=note)
                self._values[idx] = updated
                return updated
        created = YearlyValue(generate_id("val"), indicator_id, year, value, note)
        self._values.append(created)
        return created

    def import_parsed(self, indicators: Iterable[Indicator], values: Iterable[YearlyValue]) -> None:
        """Add parsed rows; an indicator id already taken gets a fresh one."""
        id_map: Dict[str, str] = {}
        for ind in indicators:
            if self.get_indicator(ind.id) is None:
                self.add_indicator(ind)
            else:
                id_map[ind.id] = self.add_indicator(replace(ind, id="")).id
        for v in values:
            self.upsert_yearly_value(id_map.get(v.indicator_id, v.indicator_id), v.year, v.value, v.note)


def sample_store() -> InMemoryIndicatorStore:
    return InMemoryIndicatorStore(SAMPLE_INDICATORS, SAMPLE_YEARLY_VALUES)


def store_from_files(files: Iterable[Tuple[str, bytes]]) -> Tuple[InMemoryIndicatorStore, List[str]]:
    """
    Build a store from uploaded (filename, bytes) pairs, expanding .zip archives.
    Files that fail to parse are skipped and reported as "name: error".
    """
    store = InMemoryIndicatorStore()
    failed: List[str] = []
    for filename, data in files:
        try:
            members = expand_uploaded_files(data, filename)
        except zipfile.BadZipFile as exc:
            logger.warning("Failed to open %s: %s", filename, exc)
            failed.append(f"{filename}: {exc}")
            continue
        for name, payload in members:
            try:
                indicators, values = parse_file(payload, name)
            except Exception as exc:
                logger.warning("Failed to parse %s: %s", name, exc)
                failed.append(f"{name}: {exc}")
                continue
            store.import_parsed(indicators, values)
    logger.info("Imported %d indicators from uploaded files", len(store.list_indicators()))
    return store, failed


def load_snapshot(store: IndicatorStore) -> Tuple[List[Indicator], List[YearlyValue]]:
    """Fetch indicators and yearly values; failures surface as StoreFetchError."""
    try:
        indicators = store.list_indicators()
        values = store.list_yearly_values()
    except Exception as exc:
        logger.error("Failed to fetch indicator snapshot: %s", exc)
        raise StoreFetchError(f"Gagal memuat data indikator: {exc}") from exc
    logger.info("Loaded %d indicators and %d yearly values", len(indicators), len(values))
    return indicators, values


def run_analysis(
    store: IndicatorStore, category: StatCategory, current_year: Optional[int] = None
) -> AnalysisResult:
    indicators, values = load_snapshot(store)
    year = current_year if current_year is not None else date.today().year
    return analyze(category, indicators, values, year)
