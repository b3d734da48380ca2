"""
tests/test_store.py
===================
Unit tests for the in-memory indicator store, snapshot loading and
the `run_analysis` entry point.
"""
import io
import zipfile
from datetime import date

import pytest

from conftest import make_indicator
from stat_platform.config import AppSettings
from stat_platform.errors import NoDataForCategoryError, StoreFetchError
from stat_platform.store import (
    InMemoryIndicatorStore, load_snapshot, run_analysis, sample_store, store_from_files,
)


class _BrokenStore:
    def list_indicators(self):
        raise ConnectionError("database offline")

    def list_yearly_values(self):
        return []


class TestInMemoryIndicatorStore:
    def test_sample_store_contents(self):
        store = sample_store()
        assert len(store.list_indicators()) == 12
        assert len(store.list_yearly_values()) == 55

    def test_list_indicators_sorted(self, sample_store):
        listed = sample_store.list_indicators()
        assert listed == sorted(listed, key=lambda i: (i.category, i.name))

    def test_add_generates_id(self):
        store = InMemoryIndicatorStore()
        added = store.add_indicator(make_indicator("", "Arsip Baru"))
        assert added.id.startswith("ind-")
        assert store.get_indicator(added.id) == added

    def test_add_duplicate_raises(self, sample_store):
        with pytest.raises(ValueError):
            sample_store.add_indicator(make_indicator("ind-arc-1", "Lagi"))

    def test_update(self, sample_store):
        renamed = make_indicator("ind-arc-1", "Arsip Tertata (Revisi)")
        sample_store.update_indicator(renamed)
        assert sample_store.get_indicator("ind-arc-1").name == "Arsip Tertata (Revisi)"

    def test_update_missing_raises(self, sample_store):
        with pytest.raises(KeyError):
            sample_store.update_indicator(make_indicator("nope", "X"))

    def test_delete_cascades_values(self, sample_store):
        sample_store.delete_indicator("ind-arc-2")
        assert sample_store.get_indicator("ind-arc-2") is None
        assert all(v.indicator_id != "ind-arc-2" for v in sample_store.list_yearly_values())
        assert len(sample_store.list_yearly_values()) == 50

    def test_delete_missing_raises_and_keeps_values(self, sample_store):
        with pytest.raises(KeyError):
            sample_store.delete_indicator("nope")
        assert len(sample_store.list_yearly_values()) == 55

    def test_values_for_year(self, sample_store):
        values = sample_store.yearly_values_for_year(2024)
        assert len(values) == 11
        assert all(v.year == 2024 for v in values)

    def test_upsert_updates_existing(self, sample_store):
        updated = sample_store.upsert_yearly_value("ind-arc-1", 2024, 19000, "Revisi")
        assert updated.id == "val-ind-arc-1-2024"
        assert updated.value == 19000
        assert len(sample_store.list_yearly_values()) == 55

    def test_upsert_inserts_new(self, sample_store):
        created = sample_store.upsert_yearly_value("ind-gen-4", 2024, 12)
        assert created.id.startswith("val-")
        assert len(sample_store.list_yearly_values()) == 56


class TestRunAnalysis:
    def test_load_snapshot(self, sample_store):
        indicators, values = load_snapshot(sample_store)
        assert len(indicators) == 12
        assert len(values) == 55

    def test_fetch_failure_aborts(self):
        with pytest.raises(StoreFetchError) as exc_info:
            run_analysis(_BrokenStore(), "Kearsipan", 2024)
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_run_with_explicit_year(self, sample_store):
        result = run_analysis(sample_store, "Kearsipan", 2024)
        assert result.current_year == 2024
        assert [p.year for p in result.predictions] == [2025, 2026, 2027]

    def test_run_defaults_to_current_year(self, sample_store):
        result = run_analysis(sample_store, "Umum")
        assert result.current_year == date.today().year

    def test_run_picks_up_edits(self, sample_store):
        sample_store.upsert_yearly_value("ind-gen-3", 2024, 30)
        result = run_analysis(sample_store, "Umum", 2024)
        asn = [b for b in result.indicator_breakdown if b.id == "ind-gen-3"][0]
        assert asn.status == "TURUN"

    def test_empty_category(self):
        store = InMemoryIndicatorStore([make_indicator("a", "Arsip")])
        with pytest.raises(NoDataForCategoryError):
            run_analysis(store, "Perpustakaan", 2024)


class TestAppSettings:
    def test_defaults(self, monkeypatch):
        for name in ("STAT_PLATFORM_DATA_FILE", "STAT_PLATFORM_LOG_LEVEL", "STAT_PLATFORM_DEFAULT_CATEGORY"):
            monkeypatch.delenv(name, raising=False)
        settings = AppSettings.from_env()
        assert settings == AppSettings()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STAT_PLATFORM_DATA_FILE", "/data/statistik.xlsx")
        monkeypatch.setenv("STAT_PLATFORM_LOG_LEVEL", "debug")
        monkeypatch.setenv("STAT_PLATFORM_DEFAULT_CATEGORY", "Kearsipan")
        settings = AppSettings.from_env()
        assert settings.data_file == "/data/statistik.xlsx"
        assert settings.log_level == "DEBUG"
        assert settings.default_category == "Kearsipan"

    def test_unknown_category_falls_back(self, monkeypatch):
        monkeypatch.setenv("STAT_PLATFORM_DEFAULT_CATEGORY", "Keuangan")
        assert AppSettings.from_env().default_category == "Perpustakaan"


ARSIP_CSV = (
    "No,Nama Indikator,Satuan,2023,2024\n"
    "1,Jumlah Arsip Tertata,Berkas,14500,18000\n"
    "2,Digitalisasi Arsip Vital,File PDF,5600,9200\n"
).encode("utf-8")

PEMBINAAN_CSV = (
    "No,Nama Indikator,Satuan,2023,2024\n"
    "1,Pembinaan Kearsipan OPD,OPD,30,35\n"
).encode("utf-8")


def _zip(members):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, payload in members:
            zf.writestr(name, payload)
    return buf.getvalue()


class TestStoreFromFiles:
    def test_single_csv(self):
        store, failed = store_from_files([("statistik_kearsipan.csv", ARSIP_CSV)])
        assert failed == []
        assert [i.id for i in store.list_indicators()] == ["ind-arc-2", "ind-arc-1"]
        assert len(store.list_yearly_values()) == 4

    def test_colliding_ids_are_rekeyed(self):
        store, _ = store_from_files([
            ("arsip_kearsipan.csv", ARSIP_CSV),
            ("pembinaan_kearsipan.csv", PEMBINAAN_CSV),
        ])
        pembinaan = [i for i in store.list_indicators() if i.name == "Pembinaan Kearsipan OPD"][0]
        assert pembinaan.id != "ind-arc-1"
        tertata = store.get_indicator("ind-arc-1")
        assert tertata.name == "Jumlah Arsip Tertata"
        by_ind = {}
        for v in store.list_yearly_values():
            by_ind.setdefault(v.indicator_id, {})[v.year] = v.value
        assert by_ind["ind-arc-1"] == {2023: 14500.0, 2024: 18000.0}
        assert by_ind[pembinaan.id] == {2023: 30.0, 2024: 35.0}

    def test_zip_archive_is_expanded(self):
        payload = _zip([("a/kearsipan.csv", ARSIP_CSV), ("b/kearsipan_opd.csv", PEMBINAAN_CSV)])
        store, failed = store_from_files([("bundle.zip", payload)])
        assert failed == []
        assert len(store.list_indicators()) == 3

    def test_corrupt_workbook_is_reported(self):
        store, failed = store_from_files([
            ("statistik_kearsipan.xlsx", b"not a workbook"),
            ("statistik_kearsipan.csv", ARSIP_CSV),
        ])
        assert len(failed) == 1
        assert failed[0].startswith("statistik_kearsipan.xlsx: ")
        assert len(store.list_indicators()) == 2

    def test_corrupt_zip_is_reported(self):
        store, failed = store_from_files([("bundle.zip", b"garbage")])
        assert failed and failed[0].startswith("bundle.zip: ")
        assert store.list_indicators() == []

    def test_analysis_runs_on_imported_store(self):
        store, _ = store_from_files([("statistik_kearsipan.csv", ARSIP_CSV)])
        result = run_analysis(store, "Kearsipan", 2024)
        assert result.aggregate.rising_count == 2
