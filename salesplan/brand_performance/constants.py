# salesplan/brand_performance/constants.py
"""
Constants for Brand Performance Module

VERSION: 1.0.0
"""

# =============================================================================
# ROLE DEFINITIONS
# =============================================================================
ROLE_DIRECTOR = 'director'
ROLE_SALES_MANAGER = 'sales_manager'

ALLOWED_ROLES = [ROLE_DIRECTOR, ROLE_SALES_MANAGER]
EDITOR_ROLES = [ROLE_DIRECTOR]

ROLE_LABELS = {
    ROLE_DIRECTOR: 'Director',
    ROLE_SALES_MANAGER: 'Sales Manager',
}

# =============================================================================
# PERIOD DEFINITIONS
# =============================================================================
QUARTERS = [1, 2, 3, 4]

QUARTER_LABELS = {
    1: 'Q1 (Jan-Mar)',
    2: 'Q2 (Apr-Jun)',
    3: 'Q3 (Jul-Sep)',
    4: 'Q4 (Oct-Dec)',
}

MONTHS_PER_QUARTER = 3

MONTH_ORDER = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"
]

# =============================================================================
# RECORD SHAPE
# =============================================================================
RECORD_COLUMNS = ['id', 'brand_id', 'year', 'quarter', 'month', 'revenue', 'profit']
NUMERIC_COLUMNS = ['revenue', 'profit']

# =============================================================================
# STATUS THRESHOLDS (value >= good → good, value >= warn → warn, else bad)
# =============================================================================
ACHIEVEMENT_THRESHOLDS = (100, 80)
MARGIN_THRESHOLDS = (20, 15)
ACCURACY_THRESHOLDS = (90, 80)

# Absolute % deviation of actual from target, per brand
DEVIATION_CRITICAL = 20
DEVIATION_MODERATE = 10

TOP_BRANDS_LIMIT = 5

# =============================================================================
# SESSION STATE KEYS
# =============================================================================
CACHE_KEY_TIMING = '_bp_timing_data'
CACHE_KEY_EDIT_BRAND = '_bp_edit_brand'

# =============================================================================
# COLOR SCHEME
# =============================================================================
COLORS = {
    "target": "#35a2eb",
    "forecast": "#eab308",
    "actual": "#4bc0c0",
    "profit": "#1f77b4",
    "good": "#16a34a",
    "warn": "#ca8a04",
    "bad": "#dc2626",
    "neutral": "#6b7280",
    "critical": "#ef4444",
    "moderate": "#eab308",
    "normal": "#22c55e",
    "grid": "#e0e0e0",
    "text_dark": "#262730",
    "text_light": "#999999",
}

STATUS_ICONS = {
    'good': '🟢',
    'warn': '🟡',
    'bad': '🔴',
}

# =============================================================================
# CHART DIMENSIONS
# =============================================================================
CHART_WIDTH = 'container'
CHART_HEIGHT = 350

# =============================================================================
# DEBUG SETTINGS
# Use environment variables to enable: SP_DEBUG_TIMING=true
# =============================================================================
import os as _os
DEBUG_TIMING = _os.getenv('SP_DEBUG_TIMING', 'false').lower() == 'true'

# =============================================================================
# METRIC DISPLAY
# =============================================================================
CURRENCY_FORMAT = "${:,.0f}"
PERCENT_FORMAT = "{:.1f}%"

DETAIL_DISPLAY_COLUMNS = {
    'name': 'Brand',
    'target_revenue': 'Target Revenue',
    'actual_revenue': 'Actual Revenue',
    'revenue_achievement': 'Achievement %',
    'target_profit': 'Target Profit',
    'actual_profit': 'Actual Profit',
    'profit_achievement': 'Profit Achievement %',
    'profit_margin': 'Profit Margin %',
}

MANAGER_DISPLAY_COLUMNS = {
    'name': 'Sales Manager',
    'brand_count': 'Brands',
    'target_total': 'Target Revenue',
    'actual_total': 'Actual Revenue',
    'achievement_rate': 'Achievement %',
    'profit_rate': 'Profit Margin %',
}
