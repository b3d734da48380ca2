"""Exception types raised by the analysis engine and the data-store layer."""
from __future__ import annotations


class StatPlatformError(Exception):
    """Base class for all stat_platform errors."""


class NoDataForCategoryError(StatPlatformError, LookupError):
    """No indicator is registered for the selected category."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Belum ada indikator untuk kategori {category}.")


class StoreFetchError(StatPlatformError):
    """Indicators or yearly values could not be fetched from the data store."""
