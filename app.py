"""
app.py
======
Annual Statistics Analyst — Streamlit Application
"Analisa Cerdas AI" for Dinas Arsip dan Perpustakaan yearly indicators.

Tabs:
  1. Analisis AI  (summary, health score, SWOT, insights, recommendations, projection)
  2. Rincian Indikator
  3. Data Tahunan (pivot table, history chart, Excel export)
"""

import logging
import os
from typing import List

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from stat_platform.config import CATEGORIES, AppSettings
from stat_platform.errors import NoDataForCategoryError, StoreFetchError
from stat_platform.export import (
    build_analysis_pdf, build_analysis_workbook, build_statistics_workbook,
    breakdown_frame, history_frame, pivot_yearly_values,
)
from stat_platform.formatting import (
    category_label, format_value, get_score_color,
    get_severity_color, get_insight_style,
)
from stat_platform.store import (
    InMemoryIndicatorStore, load_snapshot, run_analysis, sample_store, store_from_files,
)
from stat_platform.types import AnalysisResult

SETTINGS = AppSettings.from_env()

logging.basicConfig(
    level=getattr(logging, SETTINGS.log_level, logging.INFO),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ─── Page Configuration ───────────────────────────────────────────────────────

st.set_page_config(
    page_title="Analisa Cerdas AI",
    page_icon="🧠",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(135deg, #6d28d9 0%, #3730a3 100%);
        border-radius: 12px;
        padding: 1.2rem 1.5rem;
        color: white;
        margin-bottom: 1.5rem;
    }
    .main-header h1 { margin: 0; font-size: 1.6rem; font-weight: 700; }
    .main-header p  { margin: 0.25rem 0 0; font-size: 0.85rem; opacity: 0.85; }

    .insight-positive { background:#dcfce7; border-left:4px solid #22c55e; padding:0.6rem 0.8rem; border-radius:6px; margin-bottom:0.5rem; }
    .insight-negative { background:#fee2e2; border-left:4px solid #ef4444; padding:0.6rem 0.8rem; border-radius:6px; margin-bottom:0.5rem; }
    .insight-warning  { background:#fef9c3; border-left:4px solid #eab308; padding:0.6rem 0.8rem; border-radius:6px; margin-bottom:0.5rem; }
    .insight-neutral  { background:#f8fafc; border-left:4px solid #94a3b8; padding:0.6rem 0.8rem; border-radius:6px; margin-bottom:0.5rem; }

    .swot-card { border:1px solid #e2e8f0; border-radius:10px; padding:0.8rem 1rem; margin-bottom:1rem; min-height:120px; }
    .swot-title { font-weight:700; margin-bottom:0.4rem; }
</style>
""", unsafe_allow_html=True)


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _make_plotly_colors() -> List[str]:
    return ["#7c3aed", "#2563eb", "#0d9488", "#f59e0b", "#ef4444",
            "#6366f1", "#10b981", "#ec4899"]


def _build_projection_chart(result: AnalysisResult, max_series: int = 5) -> go.Figure:
    """Recorded values (last 3 years) joined to the 3-year projection, per indicator."""
    fig = go.Figure()
    palette = _make_plotly_colors()
    for i, item in enumerate(result.indicator_breakdown[:max_series]):
        hist_years = list(item.trend_years)
        proj_years = [p.year for p in result.predictions]
        proj_vals = [p.value_for(item.id) for p in result.predictions]
        color = palette[i % len(palette)]
        fig.add_trace(go.Scatter(
            x=hist_years + proj_years,
            y=list(item.trend_3_years) + proj_vals,
            name=item.name, mode="lines+markers",
            line=dict(color=color, width=3),
            marker=dict(size=7),
        ))
    fig.update_layout(
        paper_bgcolor="white", plot_bgcolor="#f8fafc",
        margin=dict(l=40, r=20, t=20, b=30),
        height=340, legend=dict(orientation="h", y=-0.2),
        font=dict(family="sans-serif", size=11, color="#64748b"),
        xaxis=dict(gridcolor="#e2e8f0", dtick=1), yaxis=dict(gridcolor="#e2e8f0"),
    )
    return fig


def _build_history_chart(history: pd.DataFrame) -> go.Figure:
    """Recorded yearly values, one line per indicator."""
    fig = go.Figure()
    palette = _make_plotly_colors()
    for i, (name, rows) in enumerate(history.groupby("Indikator", sort=False)):
        fig.add_trace(go.Scatter(
            x=rows["Tahun"], y=rows["Nilai"],
            name=name, mode="lines+markers",
            line=dict(color=palette[i % len(palette)], width=3),
            marker=dict(size=7),
        ))
    fig.update_layout(
        paper_bgcolor="white", plot_bgcolor="#f8fafc",
        margin=dict(l=40, r=20, t=20, b=30),
        height=340, legend=dict(orientation="h", y=-0.2),
        font=dict(family="sans-serif", size=11, color="#64748b"),
        xaxis=dict(gridcolor="#e2e8f0", dtick=1), yaxis=dict(gridcolor="#e2e8f0"),
    )
    return fig


def _build_score_gauge(score: int) -> go.Figure:
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=score,
        number=dict(suffix=" / 100"),
        gauge=dict(axis=dict(range=[0, 100]), bar=dict(color=get_score_color(score))),
    ))
    fig.update_layout(height=220, margin=dict(l=20, r=20, t=20, b=10))
    return fig


# ─── Session State ────────────────────────────────────────────────────────────

def _init_state() -> None:
    defaults = {
        "store": None,
        "source": "sample",
        "category": SETTINGS.default_category,
        "result": None,
        "upload_errors": [],
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v
    if st.session_state["store"] is None:
        st.session_state["store"] = _initial_store()


def _initial_store() -> InMemoryIndicatorStore:
    if SETTINGS.data_file:
        try:
            with open(SETTINGS.data_file, "rb") as fh:
                payload = fh.read()
        except OSError as exc:
            logger.error("Cannot read %s: %s; using sample data", SETTINGS.data_file, exc)
            return sample_store()
        store, failed = store_from_files([(os.path.basename(SETTINGS.data_file), payload)])
        if store.list_indicators():
            logger.info("Loaded %s", SETTINGS.data_file)
            return store
        logger.error(
            "No indicators found in %s (%s); using sample data",
            SETTINGS.data_file, "; ".join(failed) or "no recognisable tables",
        )
    return sample_store()


_init_state()


# ─── Sidebar ──────────────────────────────────────────────────────────────────

with st.sidebar:
    st.markdown("### 🧠 Analisa Cerdas AI")
    st.caption("Dinas Arsip dan Perpustakaan")
    st.markdown("---")

    uploads = st.file_uploader(
        "Unggah statistik tahunan",
        type=["xlsx", "xls", "csv", "html", "htm", "zip"],
        accept_multiple_files=True,
        help="Format: No | Nama Indikator | Satuan | 2020 | 2021 | ...",
    )
    if uploads and st.button("📥 Muat Data", width='stretch'):
        store, failed = store_from_files([(up.name, up.getvalue()) for up in uploads])
        st.session_state["store"] = store
        st.session_state["source"] = "upload"
        st.session_state["upload_errors"] = failed
        st.session_state["result"] = None
        st.rerun()

    for msg in st.session_state["upload_errors"]:
        st.warning(f"Gagal membaca {msg}")

    if st.session_state["source"] == "upload":
        if st.button("🔄 Kembali ke Data Contoh", width='stretch'):
            st.session_state["store"] = sample_store()
            st.session_state["source"] = "sample"
            st.session_state["upload_errors"] = []
            st.session_state["result"] = None
            st.rerun()
    else:
        st.info("Menggunakan data contoh 2020–2024.", icon="📁")


# ─── Main Header ─────────────────────────────────────────────────────────────

st.markdown("""
<div class='main-header'>
    <h1>🧠 Analisa Cerdas AI</h1>
    <p>Dapatkan wawasan mendalam, prediksi, dan rekomendasi berbasis data.</p>
</div>
""", unsafe_allow_html=True)

col_sel, col_btn = st.columns([3, 1])
category = col_sel.selectbox(
    "Kategori",
    list(CATEGORIES),
    index=list(CATEGORIES).index(st.session_state["category"]),
    format_func=category_label,
)
if category != st.session_state["category"]:
    st.session_state["category"] = category
    st.session_state["result"] = None

if col_btn.button("⚡ Jalankan Analisis", width='stretch', type="primary"):
    st.session_state["result"] = None
    try:
        with st.spinner("Mengidentifikasi pola, anomali, dan menghitung prediksi masa depan..."):
            st.session_state["result"] = run_analysis(st.session_state["store"], category)
    except NoDataForCategoryError as exc:
        st.warning(str(exc))
    except StoreFetchError as exc:
        st.error(str(exc))


# ═══════════════════════════════════════════════════════════════════════════════
# TAB RENDER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _render_swot(result: AnalysisResult) -> None:
    buckets = [
        ("🎯 Strengths (Kekuatan)", result.swot.strengths, "#1e40af", "Tidak ada kekuatan signifikan teridentifikasi."),
        ("⚠️ Weaknesses (Kelemahan)", result.swot.weaknesses, "#9a3412", "Tidak ada kelemahan signifikan teridentifikasi."),
        ("🔭 Opportunities (Peluang)", result.swot.opportunities, "#166534", "Tidak ada peluang signifikan teridentifikasi."),
        ("🛡️ Threats (Ancaman)", result.swot.threats, "#991b1b", "Tidak ada ancaman signifikan teridentifikasi."),
    ]
    cols = st.columns(2)
    for i, (title, items, color, empty) in enumerate(buckets):
        body = "".join(f"<div>• {s}</div>" for s in items) or f"<i style='color:#94a3b8'>{empty}</i>"
        cols[i % 2].markdown(
            f"<div class='swot-card'><div class='swot-title' style='color:{color}'>"
            f"{title} ({len(items)})</div>{body}</div>",
            unsafe_allow_html=True,
        )


def _render_analysis(result: AnalysisResult) -> None:
    """Analysis tab: summary card, score, SWOT, insights, recommendations, projection."""
    col_sum, col_score = st.columns([2, 1])
    with col_sum:
        st.markdown(f"### Hasil Analisis Kinerja: {category_label(result.category)}")
        st.write(result.summary)
        d1, d2 = st.columns(2)
        d1.download_button(
            "📄 Download Laporan PDF",
            data=build_analysis_pdf(result),
            file_name=f"AI_Analysis_{result.category}.pdf",
            mime="application/pdf",
        )
        d2.download_button(
            "📊 Download Excel",
            data=build_analysis_workbook(result),
            file_name=f"AI_Analysis_{result.category}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
    with col_score:
        st.markdown("**Skor Kesehatan Kinerja**")
        st.plotly_chart(_build_score_gauge(result.score), width='stretch')
        for factor in result.score_factors:
            st.caption(f"✅ {factor}")

    st.markdown("---")
    _render_swot(result)

    col_ins, col_rec = st.columns(2)
    with col_ins:
        st.markdown("#### ℹ️ Wawasan Kunci (Key Insights)")
        if not result.insights:
            st.caption("Tidak ada insight krusial.")
        for ins in result.insights:
            st.markdown(
                f"<div class='{get_insight_style(ins.type)}'>"
                f"<small><b>{ins.type.replace('_', ' ')}</b> · "
                f"<span style='color:{get_severity_color(ins.severity)}'>{ins.severity}</span></small><br>"
                f"<b>{ins.indicator_name}</b><br>{ins.message}</div>",
                unsafe_allow_html=True,
            )
    with col_rec:
        st.markdown("#### ⚡ Rekomendasi Tindakan")
        for rec in result.recommendations:
            with st.container(border=True):
                flag = " 🚨" if rec.action_type == "URGENT" else ""
                st.caption(f"{rec.category}{flag}")
                st.markdown(f"**{rec.title}**")
                st.write(rec.description)
                st.caption(f"Dampak: {rec.expected_impact}")

    st.markdown("#### 📈 Proyeksi Masa Depan (3 Tahun)")
    st.plotly_chart(_build_projection_chart(result), width='stretch')
    st.caption("*Proyeksi menggunakan pertumbuhan majemuk teredam (80%) dari pertumbuhan tahun terakhir.")


def _render_breakdown(result: AnalysisResult) -> None:
    st.markdown("### 📋 Rincian Indikator")
    df = breakdown_frame(result)
    df["Nilai Terakhir"] = [format_value(b.last_value, b.unit) for b in result.indicator_breakdown]
    st.dataframe(df, width='stretch', hide_index=True)

    for b in result.indicator_breakdown:
        if b.value_count < 2:
            st.caption(f"ℹ️ {b.name}: data kurang dari 2 tahun — pertumbuhan dianggap 0%.")


def _render_yearly_data(cat: str) -> None:
    st.markdown(f"### 🗂️ Statistik Tahunan: {category_label(cat)}")
    try:
        indicators, values = load_snapshot(st.session_state["store"])
    except StoreFetchError as exc:
        st.error(str(exc))
        return
    df = pivot_yearly_values(indicators, values, cat)
    if df.empty:
        st.info("Belum ada indikator untuk kategori ini.")
        return
    st.dataframe(df, width='stretch', hide_index=True)
    st.download_button(
        "📥 Export Excel",
        data=build_statistics_workbook(indicators, values, cat),
        file_name=f"Statistik_{cat}_AllYears.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    st.markdown("#### 📈 Tren Historis")
    history = history_frame(indicators, values, cat)
    names = list(df["Nama Indikator"])
    selected = st.multiselect("Indikator", names, default=names[:3], key=f"history_{cat}")
    if not selected:
        st.caption("Pilih minimal satu indikator untuk menampilkan grafik.")
        return
    st.plotly_chart(_build_history_chart(history[history["Indikator"].isin(selected)]), width='stretch')


# ─── Tabs ─────────────────────────────────────────────────────────────────────

tabs = st.tabs(["🧠 Analisis AI", "📋 Rincian Indikator", "🗂️ Data Tahunan"])
result = st.session_state["result"]

with tabs[0]:
    if result is None:
        st.info('Pilih kategori dan klik "Jalankan Analisis" untuk memproses data statistik.')
    else:
        _render_analysis(result)

with tabs[1]:
    if result is None:
        st.info("Jalankan analisis terlebih dahulu.")
    else:
        _render_breakdown(result)

with tabs[2]:
    _render_yearly_data(category)
