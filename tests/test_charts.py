# tests/test_charts.py
import pandas as pd

from salesplan.brand_performance.charts import BrandPerformanceCharts
from salesplan.brand_performance.metrics import quarterly_rollup, quarterly_trend


def test_empty_rollup_gives_placeholder():
    vega = BrandPerformanceCharts.build_quarterly_summary_chart(quarterly_rollup(None)).to_dict()
    assert vega['mark']['type'] == 'text'


def test_quarterly_summary_chart_layers_margin_labels(targets_df):
    chart = BrandPerformanceCharts.build_quarterly_summary_chart(quarterly_rollup(targets_df))
    vega = chart.to_dict()

    assert len(vega['layer']) == 2


def test_trend_chart_builds(targets_df, actuals_df):
    trend = quarterly_trend(targets_df[targets_df['year'] == 2025], actuals_df)
    vega = BrandPerformanceCharts.build_quarterly_trend_chart(trend).to_dict()
    assert vega


def test_deviation_chart_without_brands():
    vega = BrandPerformanceCharts.build_deviation_chart({'critical': 0, 'moderate': 0, 'normal': 0}).to_dict()
    assert vega['mark']['type'] == 'text'


def test_top_brands_chart_empty_frame():
    vega = BrandPerformanceCharts.build_top_brands_chart(
        pd.DataFrame(columns=['name', 'target_total', 'actual_total'])
    ).to_dict()
    assert vega['mark']['type'] == 'text'
