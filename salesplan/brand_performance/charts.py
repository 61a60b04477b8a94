# salesplan/brand_performance/charts.py
"""
Altair Chart Builders for Brand Performance

- Target / forecast / actual totals (grouped bars)
- Quarterly target vs actual trend (lines)
- Top brands comparison (grouped bars)
- Forecast vs target vs actual per quarter (lines)
- Quarter-over-quarter growth (bars)
- Deviation distribution (donut)
- Quarterly revenue/profit summary with margin labels
"""

import logging
from typing import Dict
import pandas as pd
import altair as alt

from .constants import COLORS, CHART_WIDTH, CHART_HEIGHT, QUARTERS

logger = logging.getLogger(__name__)

QUARTER_ORDER = [f"Q{q}" for q in QUARTERS]


def _with_quarter_label(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    out['Quarter'] = 'Q' + out['quarter'].astype(int).astype(str)
    return out


class BrandPerformanceCharts:
    """
    Chart builders for the planning and analysis pages.

    All methods are static.

    Usage:
        chart = BrandPerformanceCharts.build_quarterly_trend_chart(trend_df)
        st.altair_chart(chart, use_container_width=True)
    """

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    @staticmethod
    def build_record_totals_chart(
        totals: Dict[str, Dict[str, float]],
        title: str = "📊 Target vs Forecast vs Actual"
    ) -> alt.Chart:
        """
        Args:
            totals: {'targets': {'revenue', 'profit'}, 'forecasts': ..., 'actuals': ...}
        """
        rows = []
        for kind, label in (('targets', 'Target'), ('forecasts', 'Forecast'), ('actuals', 'Actual')):
            values = totals.get(kind, {})
            rows.append({'Kind': label, 'Metric': 'Revenue', 'Amount': values.get('revenue', 0.0)})
            rows.append({'Kind': label, 'Metric': 'Profit', 'Amount': values.get('profit', 0.0)})
        data = pd.DataFrame(rows)

        if data['Amount'].abs().sum() == 0:
            return BrandPerformanceCharts._empty_chart("No data for the selected period")

        color_scale = alt.Scale(
            domain=['Target', 'Forecast', 'Actual'],
            range=[COLORS['target'], COLORS['forecast'], COLORS['actual']]
        )

        bars = alt.Chart(data).mark_bar().encode(
            x=alt.X('Metric:N', title=None),
            y=alt.Y('Amount:Q', title='Amount (USD)', axis=alt.Axis(format='~s')),
            color=alt.Color('Kind:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset=alt.XOffset('Kind:N', sort=['Target', 'Forecast', 'Actual']),
            tooltip=[
                alt.Tooltip('Kind:N', title='Record'),
                alt.Tooltip('Metric:N'),
                alt.Tooltip('Amount:Q', format=',.0f')
            ]
        )

        return bars.properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    # =========================================================================
    # ANALYSIS
    # =========================================================================

    @staticmethod
    def build_quarterly_trend_chart(
        trend_df: pd.DataFrame,
        title: str = "📈 Quarterly Target vs Actual"
    ) -> alt.Chart:
        if trend_df.empty:
            return BrandPerformanceCharts._empty_chart()

        data = _with_quarter_label(trend_df).melt(
            id_vars=['Quarter'],
            value_vars=['target_total', 'actual_total'],
            var_name='Series',
            value_name='Revenue'
        )
        data['Series'] = data['Series'].map({'target_total': 'Target', 'actual_total': 'Actual'})

        color_scale = alt.Scale(domain=['Target', 'Actual'], range=[COLORS['target'], COLORS['actual']])

        lines = alt.Chart(data).mark_line(point=True, strokeWidth=2).encode(
            x=alt.X('Quarter:N', sort=QUARTER_ORDER, title='Quarter'),
            y=alt.Y('Revenue:Q', title='Revenue (USD)', axis=alt.Axis(format='~s')),
            color=alt.Color('Series:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            tooltip=[
                alt.Tooltip('Quarter:N'),
                alt.Tooltip('Series:N'),
                alt.Tooltip('Revenue:Q', format=',.0f')
            ]
        )

        return lines.properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    @staticmethod
    def build_top_brands_chart(
        top_df: pd.DataFrame,
        title: str = "🏆 Top Brands: Target vs Actual"
    ) -> alt.Chart:
        if top_df.empty:
            return BrandPerformanceCharts._empty_chart()

        order = top_df['name'].tolist()
        data = top_df.melt(
            id_vars=['name'],
            value_vars=['target_total', 'actual_total'],
            var_name='Series',
            value_name='Revenue'
        )
        data['Series'] = data['Series'].map({'target_total': 'Target', 'actual_total': 'Actual'})

        color_scale = alt.Scale(domain=['Target', 'Actual'], range=[COLORS['target'], COLORS['actual']])

        bars = alt.Chart(data).mark_bar().encode(
            x=alt.X('name:N', sort=order, title='Brand'),
            y=alt.Y('Revenue:Q', title='Revenue (USD)', axis=alt.Axis(format='~s')),
            color=alt.Color('Series:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            xOffset='Series:N',
            tooltip=[
                alt.Tooltip('name:N', title='Brand'),
                alt.Tooltip('Series:N'),
                alt.Tooltip('Revenue:Q', format=',.0f')
            ]
        )

        return bars.properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    @staticmethod
    def build_forecast_accuracy_chart(
        quarterly_df: pd.DataFrame,
        title: str = "🔮 Forecast vs Target vs Actual"
    ) -> alt.Chart:
        if quarterly_df.empty:
            return BrandPerformanceCharts._empty_chart()

        data = _with_quarter_label(quarterly_df).melt(
            id_vars=['Quarter'],
            value_vars=['forecast_total', 'target_total', 'actual_total'],
            var_name='Series',
            value_name='Revenue'
        )
        data['Series'] = data['Series'].map({
            'forecast_total': 'Forecast',
            'target_total': 'Target',
            'actual_total': 'Actual',
        })

        color_scale = alt.Scale(
            domain=['Forecast', 'Target', 'Actual'],
            range=[COLORS['forecast'], COLORS['target'], COLORS['actual']]
        )

        lines = alt.Chart(data).mark_line(point=True, strokeWidth=2).encode(
            x=alt.X('Quarter:N', sort=QUARTER_ORDER, title='Quarter'),
            y=alt.Y('Revenue:Q', title='Revenue (USD)', axis=alt.Axis(format='~s')),
            color=alt.Color('Series:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            strokeDash=alt.condition(
                alt.datum.Series == 'Forecast', alt.value([5, 3]), alt.value([0])
            ),
            tooltip=[
                alt.Tooltip('Quarter:N'),
                alt.Tooltip('Series:N'),
                alt.Tooltip('Revenue:Q', format=',.0f')
            ]
        )

        return lines.properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    @staticmethod
    def build_growth_chart(
        growth_df: pd.DataFrame,
        title: str = "📶 Quarter-over-Quarter Growth"
    ) -> alt.Chart:
        if growth_df.empty:
            return BrandPerformanceCharts._empty_chart()

        data = _with_quarter_label(growth_df).melt(
            id_vars=['Quarter'],
            value_vars=['revenue_growth', 'profit_growth'],
            var_name='Metric',
            value_name='Growth'
        )
        data['Metric'] = data['Metric'].map({'revenue_growth': 'Revenue', 'profit_growth': 'Profit'})

        bars = alt.Chart(data).mark_bar().encode(
            x=alt.X('Quarter:N', sort=QUARTER_ORDER, title='Quarter'),
            y=alt.Y('Growth:Q', title='Growth %'),
            xOffset='Metric:N',
            color=alt.Color(
                'Metric:N',
                scale=alt.Scale(domain=['Revenue', 'Profit'], range=[COLORS['actual'], COLORS['profit']]),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=[
                alt.Tooltip('Quarter:N'),
                alt.Tooltip('Metric:N'),
                alt.Tooltip('Growth:Q', format='.1f', title='Growth %')
            ]
        )

        zero = alt.Chart(pd.DataFrame({'y': [0]})).mark_rule(color=COLORS['neutral']).encode(y='y:Q')

        return alt.layer(bars, zero).properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    @staticmethod
    def build_deviation_chart(
        distribution: Dict[str, int],
        title: str = "🎯 Target Deviation"
    ) -> alt.Chart:
        """Donut of brands per deviation band (critical / moderate / normal)."""
        labels = {
            'critical': 'Critical (>20%)',
            'moderate': 'Moderate (10-20%)',
            'normal': 'Normal (<10%)',
        }
        data = pd.DataFrame([
            {'Band': labels[band], 'Brands': int(distribution.get(band, 0))}
            for band in ('critical', 'moderate', 'normal')
        ])

        if data['Brands'].sum() == 0:
            return BrandPerformanceCharts._empty_chart("No brands to compare")

        color_scale = alt.Scale(
            domain=list(labels.values()),
            range=[COLORS['critical'], COLORS['moderate'], COLORS['normal']]
        )

        donut = alt.Chart(data).mark_arc(innerRadius=60).encode(
            theta=alt.Theta('Brands:Q'),
            color=alt.Color('Band:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            tooltip=[alt.Tooltip('Band:N'), alt.Tooltip('Brands:Q')]
        )

        return donut.properties(width=CHART_WIDTH, height=CHART_HEIGHT, title=title)

    # =========================================================================
    # PLANNING PAGES
    # =========================================================================

    @staticmethod
    def build_quarterly_summary_chart(
        rollup: Dict,
        title: str = "📅 Quarterly Summary"
    ) -> alt.Chart:
        """
        Args:
            rollup: {quarter: QuarterlySummary} from quarterly_rollup
        """
        summary_df = pd.DataFrame([s.to_dict() for s in rollup.values()])
        if summary_df.empty or summary_df[['revenue', 'profit']].abs().sum().sum() == 0:
            return BrandPerformanceCharts._empty_chart()

        summary_df = _with_quarter_label(summary_df)
        bar_data = summary_df.melt(
            id_vars=['Quarter'],
            value_vars=['revenue', 'profit'],
            var_name='Metric',
            value_name='Amount'
        )
        bar_data['Metric'] = bar_data['Metric'].map({'revenue': 'Revenue', 'profit': 'Profit'})

        bars = alt.Chart(bar_data).mark_bar().encode(
            x=alt.X('Quarter:N', sort=QUARTER_ORDER, title='Quarter'),
            y=alt.Y('Amount:Q', title='Amount (USD)', axis=alt.Axis(format='~s')),
            xOffset='Metric:N',
            color=alt.Color(
                'Metric:N',
                scale=alt.Scale(domain=['Revenue', 'Profit'], range=[COLORS['target'], COLORS['profit']]),
                legend=alt.Legend(orient='bottom')
            ),
            tooltip=[
                alt.Tooltip('Quarter:N'),
                alt.Tooltip('Metric:N'),
                alt.Tooltip('Amount:Q', format=',.0f')
            ]
        )

        # Margin label above each quarter
        margin_text = alt.Chart(summary_df).mark_text(
            baseline='bottom', dy=-5, fontSize=11, color=COLORS['text_dark']
        ).encode(
            x=alt.X('Quarter:N', sort=QUARTER_ORDER),
            y=alt.Y('revenue:Q'),
            text=alt.Text('profit_margin:Q', format='.1f')
        )

        return alt.layer(bars, margin_text).properties(
            width=CHART_WIDTH, height=CHART_HEIGHT, title=title
        )

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        """Create an empty chart with a message."""
        return alt.Chart(pd.DataFrame({'note': [message]})).mark_text(
            text=message,
            fontSize=16,
            color=COLORS['text_light']
        ).properties(
            width=CHART_WIDTH,
            height=200
        )
