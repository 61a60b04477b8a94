# salesplan/brand_performance/fragments.py
"""
Streamlit Sections for Brand Performance

Card rows and tables shared by the dashboard and analysis pages.
Sections with their own widgets are @st.fragment so that typing in a
search box does not rerun the whole page.

VERSION: 1.0.0
"""

import streamlit as st
import pandas as pd
from typing import Dict

from .constants import (
    ACHIEVEMENT_THRESHOLDS,
    MARGIN_THRESHOLDS,
    ACCURACY_THRESHOLDS,
    STATUS_ICONS,
    CURRENCY_FORMAT,
    PERCENT_FORMAT,
    DETAIL_DISPLAY_COLUMNS,
    MANAGER_DISPLAY_COLUMNS,
    QUARTER_LABELS,
    COLORS,
)
from .metrics import status_band
from .charts import BrandPerformanceCharts


# =============================================================================
# FORMAT HELPERS
# =============================================================================

def format_currency(value) -> str:
    return CURRENCY_FORMAT.format(value or 0)


def format_percent(value) -> str:
    return PERCENT_FORMAT.format(value or 0)


def status_icon(value, thresholds) -> str:
    return STATUS_ICONS[status_band(value, thresholds)]


def _band_style(thresholds):
    """Pandas Styler callback colouring a rate column by its band."""
    def _style(value):
        return f"color: {COLORS[status_band(value, thresholds)]}"
    return _style


# =============================================================================
# CARDS
# =============================================================================

def render_summary_cards(summary: Dict):
    """Target / actual / achievement / profit cards plus best and worst brand."""
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric(
            "🎯 Target Revenue",
            format_currency(summary['target_total']),
            help="Sum of target revenue for the selected scope"
        )
    with col2:
        st.metric(
            "✅ Actual Revenue",
            format_currency(summary['actual_total']),
            delta=format_currency(summary['actual_total'] - summary['target_total']),
            help="Sum of actual revenue; delta is actual minus target"
        )
    with col3:
        rate = summary['achievement_rate']
        st.metric(
            f"{status_icon(rate, ACHIEVEMENT_THRESHOLDS)} Achievement",
            format_percent(rate),
            help="Actual revenue / target revenue × 100"
        )
    with col4:
        margin = summary['profit_rate']
        st.metric(
            f"{status_icon(margin, MARGIN_THRESHOLDS)} Profit Margin",
            format_percent(margin),
            help="Actual profit / actual revenue × 100"
        )

    col5, col6, col7 = st.columns(3)
    with col5:
        best = summary['best_brand']
        st.metric("🏆 Best Brand", best['name'], delta=format_percent(best['rate']), delta_color="off")
    with col6:
        worst = summary['worst_brand']
        st.metric("⚠️ Lowest Brand", worst['name'], delta=format_percent(worst['rate']), delta_color="off")
    with col7:
        st.metric(
            "📦 Actual Profit",
            format_currency(summary['actual_profit']),
            help=f"Target profit: {format_currency(summary['target_profit'])}"
        )

    if summary['critical_deviation']:
        st.warning(
            f"🚨 Achievement is {format_percent(summary['achievement_rate'])}, "
            f"more than 20 points away from target"
        )


def render_record_totals_cards(totals: Dict[str, Dict[str, float]]):
    """Revenue/profit totals of targets, forecasts and actuals."""
    labels = (('targets', '🎯 Targets'), ('forecasts', '🔮 Forecasts'), ('actuals', '✅ Actuals'))
    cols = st.columns(len(labels))
    for col, (kind, label) in zip(cols, labels):
        values = totals.get(kind, {'revenue': 0.0, 'profit': 0.0})
        with col:
            st.metric(label, format_currency(values["revenue"]))
            st.caption(f"Profit: {format_currency(values['profit'])}")


def render_quarter_cards(rollup: Dict):
    """One card per quarter: revenue, profit and margin."""
    cols = st.columns(len(rollup))
    for col, (quarter, summary) in zip(cols, sorted(rollup.items())):
        with col:
            st.metric(
                QUARTER_LABELS[quarter],
                format_currency(summary.revenue),
                help=f"Profit: {format_currency(summary.profit)}"
            )
            st.caption(
                f"Profit {format_currency(summary.profit)} • "
                f"{status_icon(summary.profit_margin, MARGIN_THRESHOLDS)} "
                f"{format_percent(summary.profit_margin)} margin"
            )


# =============================================================================
# FRAGMENT: BRAND DETAIL TABLE
# =============================================================================

@st.fragment
def detail_table_fragment(detail_df: pd.DataFrame, fragment_key: str = "detail"):
    """Brand detail table, sorted by revenue achievement, with a name search."""
    st.subheader("📋 Brand Performance Detail")

    if detail_df.empty:
        st.info("No brands in the selected scope")
        return

    search = st.text_input(
        "🔍 Search brand",
        key=f"{fragment_key}_search",
        placeholder="Type to filter brands..."
    )

    df = detail_df
    if search:
        df = df[df['name'].str.contains(search, case=False, na=False, regex=False)]

    display = df[list(DETAIL_DISPLAY_COLUMNS)].rename(columns=DETAIL_DISPLAY_COLUMNS)

    styled = display.style.format({
        'Target Revenue': CURRENCY_FORMAT,
        'Actual Revenue': CURRENCY_FORMAT,
        'Target Profit': CURRENCY_FORMAT,
        'Actual Profit': CURRENCY_FORMAT,
        'Achievement %': PERCENT_FORMAT,
        'Profit Achievement %': PERCENT_FORMAT,
        'Profit Margin %': PERCENT_FORMAT,
    }).map(
        _band_style(ACHIEVEMENT_THRESHOLDS), subset=['Achievement %', 'Profit Achievement %']
    ).map(
        _band_style(MARGIN_THRESHOLDS), subset=['Profit Margin %']
    )

    st.dataframe(styled, use_container_width=True, hide_index=True)
    st.caption(f"Showing {len(display)} of {len(detail_df)} brands")


# =============================================================================
# SECTIONS
# =============================================================================

def render_forecast_accuracy(analysis: Dict):
    """Average accuracy card, per-quarter chart and table."""
    st.subheader("🔮 Forecast Accuracy")

    average = analysis['average_accuracy']
    completed = analysis['completed_quarters']

    col1, col2 = st.columns([1, 3])
    with col1:
        st.metric(
            f"{status_icon(average, ACCURACY_THRESHOLDS)} Average Accuracy",
            format_percent(average),
            help="100 − |forecast − actual| / actual × 100, averaged over quarters with actuals"
        )
        st.caption(f"Based on {completed} quarter(s) with actuals")
    with col2:
        st.altair_chart(
            BrandPerformanceCharts.build_forecast_accuracy_chart(analysis['quarterly']),
            use_container_width=True
        )

    quarterly = analysis['quarterly']
    if not quarterly.empty:
        display = quarterly.rename(columns={
            'quarter': 'Quarter',
            'forecast_total': 'Forecast',
            'target_total': 'Target',
            'actual_total': 'Actual',
            'accuracy': 'Accuracy %',
        })
        display['Quarter'] = 'Q' + display['Quarter'].astype(str)
        st.dataframe(
            display.style.format({
                'Forecast': CURRENCY_FORMAT,
                'Target': CURRENCY_FORMAT,
                'Actual': CURRENCY_FORMAT,
                'Accuracy %': PERCENT_FORMAT,
            }).map(_band_style(ACCURACY_THRESHOLDS), subset=['Accuracy %']),
            use_container_width=True,
            hide_index=True
        )


def render_manager_table(manager_df: pd.DataFrame):
    st.subheader("👥 Sales Manager Performance")
    st.caption("Whole year, all brands. Not affected by the brand and quarter filters.")

    if manager_df.empty:
        st.info("No sales managers found")
        return

    display = manager_df[list(MANAGER_DISPLAY_COLUMNS)].rename(columns=MANAGER_DISPLAY_COLUMNS)
    st.dataframe(
        display.style.format({
            'Target Revenue': CURRENCY_FORMAT,
            'Actual Revenue': CURRENCY_FORMAT,
            'Achievement %': PERCENT_FORMAT,
            'Profit Margin %': PERCENT_FORMAT,
        }).map(
            _band_style(ACHIEVEMENT_THRESHOLDS), subset=['Achievement %']
        ).map(
            _band_style(MARGIN_THRESHOLDS), subset=['Profit Margin %']
        ),
        use_container_width=True,
        hide_index=True
    )


def render_growth_and_deviation(growth_df: pd.DataFrame, deviation: Dict[str, int]):
    """Quarter-over-quarter growth next to the deviation distribution."""
    col1, col2 = st.columns([3, 2])
    with col1:
        st.altair_chart(
            BrandPerformanceCharts.build_growth_chart(growth_df),
            use_container_width=True
        )
    with col2:
        st.altair_chart(
            BrandPerformanceCharts.build_deviation_chart(deviation),
            use_container_width=True
        )
        st.caption(
            f"🔴 {deviation.get('critical', 0)} critical • "
            f"🟡 {deviation.get('moderate', 0)} moderate • "
            f"🟢 {deviation.get('normal', 0)} normal"
        )
