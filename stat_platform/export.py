"""
stat_platform/export.py
=======================
Tabular and document exports consumed by the dashboard download buttons:

  - yearly statistics pivot (No | Nama Indikator | Satuan | years...)
  - long-format history for the yearly trend chart
  - analysis workbook: summary, SWOT, projections, indicator breakdown
  - plain-text PDF of the executive summary and SWOT table
"""
from __future__ import annotations
import io
import textwrap
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from .analyzer import dedupe_yearly_values
from .formatting import category_label, format_percent, status_label
from .parser import to_numeric
from .types import AnalysisResult, Indicator, StatCategory, YearlyValue


# ─── DataFrames ───────────────────────────────────────────────────────────────

def pivot_yearly_values(
    indicators: Iterable[Indicator],
    values: Iterable[YearlyValue],
    category: StatCategory,
    years: Optional[List[int]] = None,
) -> pd.DataFrame:
    """One row per indicator of `category`, one column per year ("-" when missing)."""
    vals = dedupe_yearly_values(values)
    if years is None:
        years = sorted({v.year for v in vals})
    lookup = {(v.indicator_id, v.year): v.value for v in vals}

    rows = []
    cat_inds = [i for i in indicators if i.category == category]
    for idx, ind in enumerate(cat_inds, start=1):
        row = {"No": idx, "Nama Indikator": ind.name, "Satuan": ind.unit or "-"}
        for y in years:
            v = lookup.get((ind.id, y))
            row[str(y)] = v if v is not None else "-"
        rows.append(row)
    columns = ["No", "Nama Indikator", "Satuan"] + [str(y) for y in years]
    return pd.DataFrame(rows, columns=columns)


def history_frame(
    indicators: Iterable[Indicator],
    values: Iterable[YearlyValue],
    category: StatCategory,
) -> pd.DataFrame:
    """Long format for trend charts: Tahun | Indikator | Nilai, non-numeric cells left out."""
    names = {i.id: i.name for i in indicators if i.category == category}
    rows = []
    for v in sorted(dedupe_yearly_values(values), key=lambda v: v.year):
        if v.indicator_id not in names:
            continue
        num = to_numeric(v.value)
        if num is None:
            continue
        rows.append({"Tahun": v.year, "Indikator": names[v.indicator_id], "Nilai": num})
    return pd.DataFrame(rows, columns=["Tahun", "Indikator", "Nilai"])


def swot_frame(result: AnalysisResult) -> pd.DataFrame:
    """SWOT buckets side by side, shorter columns padded with "-"."""
    buckets = [
        result.swot.strengths, result.swot.weaknesses,
        result.swot.opportunities, result.swot.threats,
    ]
    n = max((len(b) for b in buckets), default=0)
    rows = [[b[i] if i < len(b) else "-" for b in buckets] for i in range(n)]
    return pd.DataFrame(rows, columns=["Strengths", "Weaknesses", "Opportunities", "Threats"])


def prediction_frame(result: AnalysisResult) -> pd.DataFrame:
    """Long format: Tahun | Indikator | Proyeksi."""
    rows = [
        {"Tahun": p.year, "Indikator": pv.indicator_name, "Proyeksi": pv.predicted_value}
        for p in result.predictions
        for pv in p.values
    ]
    return pd.DataFrame(rows, columns=["Tahun", "Indikator", "Proyeksi"])


def breakdown_frame(result: AnalysisResult) -> pd.DataFrame:
    rows = [
        {
            "Indikator": b.name,
            "Nilai Terakhir": b.last_value,
            "Satuan": b.unit or "-",
            "Pertumbuhan": format_percent(b.growth),
            "Status": status_label(b.status),
            "Tren 3 Tahun": ", ".join(f"{v:g}" for v in b.trend_3_years),
        }
        for b in result.indicator_breakdown
    ]
    return pd.DataFrame(
        rows, columns=["Indikator", "Nilai Terakhir", "Satuan", "Pertumbuhan", "Status", "Tren 3 Tahun"]
    )


def summary_frame(result: AnalysisResult) -> pd.DataFrame:
    rows = [
        ("Kategori", category_label(result.category)),
        ("Skor Kesehatan", f"{result.score}/100"),
        ("Ringkasan", result.summary),
    ]
    rows += [("Faktor Skor", f) for f in result.score_factors]
    rows += [(f"Rekomendasi ({r.action_type})", f"{r.title}: {r.description}") for r in result.recommendations]
    return pd.DataFrame(rows, columns=["Item", "Keterangan"])


# ─── Excel ────────────────────────────────────────────────────────────────────

def _autosize(ws, df: pd.DataFrame) -> None:
    for j, col in enumerate(df.columns, start=1):
        longest = max([len(str(col))] + [len(str(v)) for v in df[col].tolist()])
        ws.column_dimensions[ws.cell(row=1, column=j).column_letter].width = min(60, max(15, longest + 2))


def _write_workbook(sheets: List[tuple]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, df in sheets:
            df.to_excel(writer, sheet_name=name[:31], index=False)
            _autosize(writer.sheets[name[:31]], df)
    return buf.getvalue()


def build_statistics_workbook(
    indicators: Iterable[Indicator], values: Iterable[YearlyValue], category: StatCategory
) -> bytes:
    df = pivot_yearly_values(indicators, values, category)
    return _write_workbook([(f"Statistik {category}", df)])


def build_analysis_workbook(result: AnalysisResult) -> bytes:
    return _write_workbook([
        ("Ringkasan", summary_frame(result)),
        ("SWOT", swot_frame(result)),
        ("Proyeksi", prediction_frame(result)),
        ("Rincian Indikator", breakdown_frame(result)),
    ])


# ─── PDF ──────────────────────────────────────────────────────────────────────

_PAGE_W, _PAGE_H = 595, 842  # A4 portrait, points
_FONT_SIZE = 9
_LEADING = 11
_MARGIN = 34
_WRAP_WIDTH = 100
_LINES_PER_PAGE = (_PAGE_H - 2 * _MARGIN) // _LEADING


def _report_lines(title: str, content: str) -> List[str]:
    lines = [title, "=" * len(title), ""]
    for paragraph in content.splitlines():
        lines.extend(textwrap.wrap(paragraph, _WRAP_WIDTH) or [""])
    return lines


def _escape_pdf_text(s: str) -> str:
    return s.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _page_stream(lines: List[str]) -> bytes:
    # TL sets the leading, the ' operator moves down one line and shows text
    ops = [f"BT /F1 {_FONT_SIZE} Tf {_LEADING} TL {_MARGIN} {_PAGE_H - _MARGIN} Td"]
    ops.extend(f"({_escape_pdf_text(line)}) '" for line in lines)
    ops.append("ET")
    return "\n".join(ops).encode("latin-1", errors="replace")


def _serialize_pdf(objects: List[bytes]) -> bytes:
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n%s\nendobj\n" % (num, body)
    xref_pos = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    out += b"".join(b"%010d 00000 n \n" % off for off in offsets)
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF" % (len(objects) + 1, xref_pos)
    return bytes(out)


def build_simple_text_pdf(title: str, content: str) -> bytes:
    """Plain Helvetica text report, paginated on A4; no PDF library needed."""
    lines = _report_lines(title, content)
    pages = [lines[i:i + _LINES_PER_PAGE] for i in range(0, len(lines), _LINES_PER_PAGE)]

    # 1 catalog, 2 page tree, 3 font, then a (page, contents) pair per page
    page_nums = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{n} 0 R" for n in page_nums)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Count {len(pages)} /Kids [{kids}] >>".encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for num, page_lines in zip(page_nums, pages):
        objects.append((
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {_PAGE_W} {_PAGE_H}] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {num + 1} 0 R >>"
        ).encode("ascii"))
        stream = _page_stream(page_lines)
        objects.append(b"<< /Length %d >>\nstream\n%s\nendstream" % (len(stream), stream))
    return _serialize_pdf(objects)


def build_analysis_pdf(result: AnalysisResult, generated_on: Optional[date] = None) -> bytes:
    """Executive summary followed by the four SWOT buckets."""
    day = generated_on or date.today()
    parts = [
        f"Tanggal Generate: {day.strftime('%d/%m/%Y')}",
        "",
        "Ringkasan Eksekutif:",
        result.summary,
        "",
    ]
    for label, items in (
        ("Strengths", result.swot.strengths),
        ("Weaknesses", result.swot.weaknesses),
        ("Opportunities", result.swot.opportunities),
        ("Threats", result.swot.threats),
    ):
        parts.append(f"{label}:")
        if items:
            parts.extend(f"  - {s}" for s in items)
        else:
            parts.append("  -")
        parts.append("")
    return build_simple_text_pdf(f"Laporan Analisis AI: {result.category}", "\n".join(parts))
