"""
stat_platform/parser.py
=======================
Import of annual statistics tables. Handles:
  - Excel (.xlsx, .xls) – one sheet per category ("Statistik Kearsipan", ...)
  - CSV (.csv)
  - HTML tables (tables saved from the browser, sometimes with .xls extension)
  - .zip archives containing any of the above

Expected table shape (the same layout the dashboard exports):

    No | Nama Indikator | Satuan | 2020 | 2021 | 2022 | ...

Cells containing "-" or left blank mean "no value for that year".
"""
from __future__ import annotations
import io
import logging
import re
import zipfile
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from bs4 import BeautifulSoup

from .config import CATEGORY_ALIASES
from .types import Indicator, IndicatorType, RawValue, StatCategory, YearlyValue

logger = logging.getLogger(__name__)

ParsedData = Tuple[List[Indicator], List[YearlyValue]]

_ID_PREFIX: Dict[str, str] = {"Perpustakaan": "lib", "Kearsipan": "arc", "Umum": "gen"}

_NAME_HEADERS = ("nama indikator", "indikator", "indicator", "nama", "name")
_UNIT_HEADERS = ("satuan", "unit")
_SKIP_HEADERS = ("no", "no.", "nomor", "#")
_MISSING_MARKERS = {"", "-", "--", "—", "n/a", "na", "nan", "none"}


# ─── Year Detection ───────────────────────────────────────────────────────────

def extract_year(col_name: Any) -> Optional[int]:
    """
    Parse a column header into a calendar year.
    Supports: plain YYYY, 2023.0 (Excel floats), FY2023, 2023/24, 2023-24.
    """
    s = str(col_name).strip()

    m = re.match(r'^(\d{4})(?:\.0+)?$', s)
    if m:
        y = int(m.group(1))
        return y if 1990 <= y <= 2099 else None

    m = re.search(r'FY\s*(\d{4})', s, re.IGNORECASE)
    if m:
        y = int(m.group(1))
        return y if 1990 <= y <= 2099 else None

    m = re.match(r'^(\d{4})\s*[-/]\s*\d{2,4}$', s)
    if m:
        y = int(m.group(1))
        return y if 1990 <= y <= 2099 else None

    m = re.match(r'^(?:tahun|year)\s*(\d{4})$', s, re.IGNORECASE)
    if m:
        y = int(m.group(1))
        return y if 1990 <= y <= 2099 else None

    return None


# ─── Numeric Normalisation ────────────────────────────────────────────────────

def to_numeric(val: Any) -> Optional[float]:
    """
    Convert spreadsheet cell content to float.
    Handles thousand separators (1.250 / 1,250), decimal commas (87,8),
    percent signs and the usual "no data" markers.
    """
    if val is None or val == "":
        return None
    if isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        return None if pd.isna(val) else float(val)
    s = str(val).strip().replace('%', '').replace(' ', '')
    if s.lower() in _MISSING_MARKERS:
        return None
    # Parenthetical negatives: (120) → -120
    if s.startswith('(') and s.endswith(')'):
        s = '-' + s[1:-1]
    if re.match(r'^-?\d{1,3}(\.\d{3})+$', s):
        # Indonesian thousands: 12.500
        s = s.replace('.', '')
    elif re.match(r'^-?\d{1,3}(,\d{3})+(\.\d+)?$', s):
        s = s.replace(',', '')
    elif re.match(r'^-?\d+,\d+$', s):
        s = s.replace(',', '.')
    try:
        return float(s)
    except ValueError:
        return None


# ─── Category / Name Normalisation ───────────────────────────────────────────

def normalize_category(label: Any) -> Optional[StatCategory]:
    """Map a sheet name, file name or free-text label onto a category."""
    low = str(label or "").lower()
    if low in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[low]
    for token in re.split(r'[^a-z]+', low):
        if token in CATEGORY_ALIASES:
            return CATEGORY_ALIASES[token]
    return None


def normalize_indicator_name(name: str) -> str:
    """Strip leading numbering/bullets, normalize whitespace."""
    name = re.sub(r'^[0-9]+[.)]\s*', '', name.strip())
    name = re.sub(r'\s+', ' ', name).strip()
    return name


def _indicator_type(unit: Optional[str]) -> IndicatorType:
    return "percentage" if unit and unit.strip() == "%" else "number"


def _clean_cell(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return " ".join(str(value).split())


# ─── Single-Table Parser ──────────────────────────────────────────────────────

def _find_header(df: pd.DataFrame) -> Tuple[int, List[Tuple[int, int]]]:
    """Row index of the header with the most year columns, and those columns."""
    best_row_idx = -1
    best_year_cols: List[Tuple[int, int]] = []
    for i in range(min(20, len(df))):
        year_cols = []
        for j, cell in enumerate(df.iloc[i]):
            yr = extract_year(_clean_cell(cell))
            if yr:
                year_cols.append((j, yr))
        if len(year_cols) > len(best_year_cols):
            best_year_cols = year_cols
            best_row_idx = i
    return best_row_idx, best_year_cols


def _locate_columns(header: List[str], year_idx: set) -> Tuple[Optional[int], Optional[int]]:
    name_col: Optional[int] = None
    unit_col: Optional[int] = None
    low = [h.lower() for h in header]
    for j, h in enumerate(low):
        if j in year_idx:
            continue
        if name_col is None and h in _NAME_HEADERS:
            name_col = j
        elif unit_col is None and h in _UNIT_HEADERS:
            unit_col = j
    if name_col is None:
        # First non-year, non-numbering column
        for j, h in enumerate(low):
            if j not in year_idx and j != unit_col and h not in _SKIP_HEADERS:
                name_col = j
                break
    return name_col, unit_col


def parse_table(
    df: pd.DataFrame, category: StatCategory, start_index: int = 1
) -> ParsedData:
    """Parse one table (sheet, CSV or HTML table) of a single category."""
    indicators: List[Indicator] = []
    values: List[YearlyValue] = []

    header_idx, year_cols = _find_header(df)
    if header_idx < 0:
        logger.warning("No year columns found in %s table — skipped", category)
        return indicators, values

    header = [_clean_cell(c) for c in df.iloc[header_idx]]
    name_col, unit_col = _locate_columns(header, {j for j, _ in year_cols})
    if name_col is None:
        logger.warning("No indicator name column in %s table — skipped", category)
        return indicators, values

    prefix = _ID_PREFIX[category]
    seen: set = set()
    n = start_index
    for i in range(header_idx + 1, len(df)):
        row = [_clean_cell(c) for c in df.iloc[i]]
        raw_name = row[name_col] if name_col < len(row) else ""
        name = normalize_indicator_name(raw_name)
        if not name or name.lower() in ('nan', 'none') or name in seen:
            continue
        seen.add(name)

        unit = row[unit_col] if unit_col is not None and unit_col < len(row) else ""
        unit = None if unit in ("", "-") else unit
        ind = Indicator(f"ind-{prefix}-{n}", category, name, _indicator_type(unit), unit)
        n += 1
        indicators.append(ind)

        for col_idx, year in year_cols:
            cell = row[col_idx] if col_idx < len(row) else ""
            num = to_numeric(cell)
            raw: RawValue
            if num is not None:
                raw = num
            elif cell.lower() not in _MISSING_MARKERS:
                # Kept verbatim; the analysis coerces it to 0
                logger.warning("Non-numeric value %r for %s (%d)", cell, name, year)
                raw = cell
            else:
                continue
            values.append(YearlyValue(f"val-{ind.id}-{year}", ind.id, year, raw))

    logger.info("Parsed %d %s indicators (%d values)", len(indicators), category, len(values))
    return indicators, values


# ─── HTML Table Parser ────────────────────────────────────────────────────────

def _html_tables(content: bytes) -> List[pd.DataFrame]:
    html = _decode_text(content)
    if not html:
        return []
    soup = BeautifulSoup(html, 'lxml')
    frames: List[pd.DataFrame] = []
    for table in soup.find_all('table'):
        rows = []
        for tr in table.find_all('tr'):
            cells = []
            for td in tr.find_all(['td', 'th']):
                colspan = int(td.get('colspan', 1))
                text = ' '.join(td.get_text().split())
                cells.extend([text] * colspan)
            rows.append(cells)
        if len(rows) >= 2:
            frames.append(pd.DataFrame(rows))
    return frames


def _decode_text(content: bytes) -> str:
    """Decode bytes with fallbacks for legacy exports (utf-16/latin1/etc.)."""
    for enc in ("utf-8", "utf-16", "latin1", "cp1252"):
        try:
            text = content.decode(enc)
            if text:
                return text
        except UnicodeDecodeError:
            continue
    return content.decode("utf-8", errors="replace")


def _looks_like_html(content: bytes) -> bool:
    """Heuristic detection for HTML payloads saved with .xls extension."""
    low = content[:4096].lower().replace(b"\x00", b"")
    return any(tok in low for tok in (b"<html", b"<table", b"<!doctype html", b"<tr", b"<td"))


# ─── Main Parse Entry Point ───────────────────────────────────────────────────

def _merge(target: ParsedData, extra: ParsedData) -> None:
    target[0].extend(extra[0])
    target[1].extend(extra[1])


def _next_index(indicators: List[Indicator], category: StatCategory) -> int:
    return sum(1 for i in indicators if i.category == category) + 1


def parse_file(
    file_bytes: bytes, filename: str, category: Optional[StatCategory] = None
) -> ParsedData:
    """
    Parse uploaded file bytes into (indicators, yearly_values).
    The category comes from `category`, else from the sheet name, else from
    the file name. Tables whose category cannot be resolved are skipped.
    """
    fn_lower = filename.lower()
    out: ParsedData = ([], [])
    file_category = category or normalize_category(filename)

    if fn_lower.endswith(('.htm', '.html')) or (fn_lower.endswith('.xls') and _looks_like_html(file_bytes)):
        if file_category is None:
            logger.warning("Cannot determine category for %s", filename)
            return out
        for df in _html_tables(file_bytes):
            _merge(out, parse_table(df, file_category, _next_index(out[0], file_category)))
    elif fn_lower.endswith('.csv'):
        if file_category is None:
            logger.warning("Cannot determine category for %s", filename)
            return out
        df = pd.read_csv(io.BytesIO(file_bytes), header=None, dtype=str, keep_default_na=False)
        _merge(out, parse_table(df, file_category))
    else:
        _merge(out, _parse_excel(file_bytes, filename, category))

    return out


def _parse_excel(file_bytes: bytes, filename: str, category: Optional[StatCategory]) -> ParsedData:
    """Parse all sheets of an Excel workbook."""
    out: ParsedData = ([], [])
    engine = 'xlrd' if filename.lower().endswith('.xls') else 'openpyxl'
    xl = pd.ExcelFile(io.BytesIO(file_bytes), engine=engine)
    for sheet_name in xl.sheet_names:
        sheet_category = category or normalize_category(sheet_name) or normalize_category(filename)
        if sheet_category is None:
            logger.warning("Sheet %r has no recognisable category — skipped", sheet_name)
            continue
        df = xl.parse(sheet_name, header=None, dtype=str)
        _merge(out, parse_table(df, sheet_category, _next_index(out[0], sheet_category)))
    return out


def expand_uploaded_files(file_bytes: bytes, filename: str) -> List[Tuple[str, bytes]]:
    """Expand upload into parseable files, including .zip archives."""
    if not filename.lower().endswith(".zip"):
        return [(filename, file_bytes)]

    expanded: List[Tuple[str, bytes]] = []
    with zipfile.ZipFile(io.BytesIO(file_bytes)) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            if info.filename.lower().endswith((".xlsx", ".xls", ".csv", ".html", ".htm")):
                expanded.append((info.filename, zf.read(info)))
    return expanded
