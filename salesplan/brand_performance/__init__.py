# salesplan/brand_performance/__init__.py
"""
Brand Performance Module

Targets, forecasts and actuals per brand, with the period aggregation and
variance calculations behind the dashboard and analysis pages.

VERSION: 1.0.0

Components:
- queries.py: ForecastQueries (reads raise DataLoadError, writes return result dicts)
- data_loader.py: DashboardDataLoader (one load per year, no partial data)
- data_processor.py: PeriodFilter + DataProcessor (Pandas-only filtering)
- metrics.py: rate functions, roll-ups and BrandPerformanceMetrics
- planning.py: quarter → month target spreading, closed quarter rules
- access_control.py: director / sales_manager permissions
- filters.py, charts.py, fragments.py: Streamlit UI pieces

Usage:
    from salesplan.brand_performance import (
        AccessControl, DashboardDataLoader, DataProcessor, PeriodFilter,
        BrandPerformanceMetrics,
    )

    access = AccessControl(user_role, user_id)
    data = DashboardDataLoader(access).load(2025)
    processed = DataProcessor(data).process(PeriodFilter(year=2025, quarter=2))
    summary = BrandPerformanceMetrics(processed).calculate_summary()
"""

# Access Control
from .access_control import AccessControl, check_page_access

# Queries
from .queries import ForecastQueries, DataLoadError

# Data loading / processing
from .data_loader import DashboardDataLoader, LOAD_ERROR_MESSAGE
from .data_processor import (
    DataProcessor,
    PeriodFilter,
    FilterPrecedence,
    filter_records,
    normalize_records,
    resolve_brand_scope,
)

# Metrics Calculator
from .metrics import (
    BrandPerformanceMetrics,
    QuarterlySummary,
    achievement_rate,
    profit_margin,
    forecast_accuracy,
    growth_rate,
    target_deviation,
    status_band,
    quarterly_rollup,
    rank_brands_by_achievement,
)

# Planning rules
from .planning import (
    spread_quarter_targets,
    assemble_quarter_form,
    closed_quarters,
    validate_quarter_form,
    pivot_by_quarter,
)

# Filters
from .filters import BrandPerformanceFilters

# Charts
from .charts import BrandPerformanceCharts

# Fragments
from .fragments import (
    render_summary_cards,
    render_record_totals_cards,
    render_quarter_cards,
    detail_table_fragment,
    render_forecast_accuracy,
    render_manager_table,
    render_growth_and_deviation,
    format_currency,
    format_percent,
)

__all__ = [
    'AccessControl',
    'check_page_access',
    'ForecastQueries',
    'DataLoadError',
    'DashboardDataLoader',
    'LOAD_ERROR_MESSAGE',
    'DataProcessor',
    'PeriodFilter',
    'FilterPrecedence',
    'filter_records',
    'normalize_records',
    'resolve_brand_scope',
    'BrandPerformanceMetrics',
    'QuarterlySummary',
    'achievement_rate',
    'profit_margin',
    'forecast_accuracy',
    'growth_rate',
    'target_deviation',
    'status_band',
    'quarterly_rollup',
    'rank_brands_by_achievement',
    'spread_quarter_targets',
    'assemble_quarter_form',
    'closed_quarters',
    'validate_quarter_form',
    'pivot_by_quarter',
    'BrandPerformanceFilters',
    'BrandPerformanceCharts',
    'render_summary_cards',
    'render_record_totals_cards',
    'render_quarter_cards',
    'detail_table_fragment',
    'render_forecast_accuracy',
    'render_manager_table',
    'render_growth_and_deviation',
    'format_currency',
    'format_percent',
]

__version__ = '1.0.0'
