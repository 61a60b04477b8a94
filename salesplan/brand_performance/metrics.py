# salesplan/brand_performance/metrics.py
"""
Metrics Calculator for Brand Performance

VERSION: 1.0.0
- Ratio helpers guard every division: a zero or missing denominator gives 0
- Reductions accept DataFrames or lists of record dicts
- All functions are pure; BrandPerformanceMetrics only bundles them for pages
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, Tuple, Union
import pandas as pd

from .constants import (
    QUARTERS,
    TOP_BRANDS_LIMIT,
    DEVIATION_CRITICAL,
    DEVIATION_MODERATE,
)
from .data_processor import normalize_records, id_key, id_keys, missing_to_none

logger = logging.getLogger(__name__)

Records = Union[pd.DataFrame, Iterable[Dict], None]

EMPTY_BRAND = {'name': '-', 'rate': 0.0}


@dataclass
class QuarterlySummary:
    quarter: int
    revenue: float = 0.0
    profit: float = 0.0
    profit_margin: float = 0.0

    def to_dict(self) -> Dict:
        return asdict(self)


# =============================================================================
# SCALAR HELPERS
# =============================================================================

def _to_float(value) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def achievement_rate(actual, target) -> float:
    """Actual as a percentage of target. Formula: actual / target × 100"""
    actual, target = _to_float(actual), _to_float(target)
    return actual / target * 100 if target > 0 else 0.0


def profit_margin(profit, revenue) -> float:
    """Formula: profit / revenue × 100"""
    profit, revenue = _to_float(profit), _to_float(revenue)
    return profit / revenue * 100 if revenue > 0 else 0.0


def forecast_accuracy(forecast, actual) -> float:
    """
    100 minus the absolute % deviation of forecast from actual.
    Not clamped: a deviation over 100% gives a negative accuracy.
    """
    forecast, actual = _to_float(forecast), _to_float(actual)
    if actual <= 0:
        return 0.0
    return 100 - (abs(forecast - actual) / actual * 100)


def growth_rate(current, previous) -> float:
    """Period-over-period change in %."""
    current, previous = _to_float(current), _to_float(previous)
    return (current - previous) / previous * 100 if previous > 0 else 0.0


def target_deviation(actual, target) -> float:
    """Absolute % deviation of actual from target."""
    actual, target = _to_float(actual), _to_float(target)
    return abs((actual - target) / target * 100) if target > 0 else 0.0


def status_band(value, thresholds: Tuple[float, float]) -> str:
    """'good' at or above the first threshold, 'warn' at or above the second."""
    good, warn = thresholds
    value = _to_float(value)
    if value >= good:
        return 'good'
    if value >= warn:
        return 'warn'
    return 'bad'


# =============================================================================
# REDUCTIONS
# =============================================================================

def _frame(records: Records) -> pd.DataFrame:
    if records is None:
        return normalize_records(None)
    if not isinstance(records, pd.DataFrame):
        records = pd.DataFrame(list(records))
    return normalize_records(records)


def sum_revenue_profit(records: Records) -> Dict[str, float]:
    """Plain accumulation of revenue and profit."""
    df = _frame(records)
    if df.empty:
        return {'revenue': 0.0, 'profit': 0.0}
    return {
        'revenue': float(df['revenue'].sum()),
        'profit': float(df['profit'].sum()),
    }


def totals_by_brand(records: Records) -> pd.DataFrame:
    """Revenue/profit sums indexed by brand id key."""
    df = _frame(records)
    if df.empty:
        return pd.DataFrame(columns=['revenue', 'profit'], dtype=float)
    df = df.assign(brand_key=id_keys(df['brand_id']))
    return df.groupby('brand_key')[['revenue', 'profit']].sum()


def _brand_value(totals: pd.DataFrame, brand_id, column: str) -> float:
    key = id_key(brand_id)
    if key in totals.index:
        return float(totals.at[key, column])
    return 0.0


def quarterly_rollup(records: Records) -> Dict[int, QuarterlySummary]:
    """Revenue, profit and margin per quarter; always returns Q1-Q4."""
    df = _frame(records)
    rollup = {q: QuarterlySummary(quarter=q) for q in QUARTERS}

    df = df.dropna(subset=['quarter'])
    if df.empty:
        return rollup

    df = df.assign(quarter=df['quarter'].astype(int))
    sums = df.groupby('quarter')[['revenue', 'profit']].sum()
    for q in QUARTERS:
        if q in sums.index:
            revenue = float(sums.at[q, 'revenue'])
            profit = float(sums.at[q, 'profit'])
            rollup[q] = QuarterlySummary(
                quarter=q,
                revenue=revenue,
                profit=profit,
                profit_margin=profit_margin(profit, revenue),
            )

    return rollup


def rank_brands_by_achievement(
    targets: Records,
    actuals: Records,
    brands: pd.DataFrame
) -> pd.DataFrame:
    """
    Brands sorted by revenue achievement, best first.

    Brands without records are kept with rate 0. Ties keep brand order.
    """
    columns = ['brand_id', 'name', 'target_revenue', 'actual_revenue', 'rate']
    if brands is None or brands.empty:
        return pd.DataFrame(columns=columns)

    target_totals = totals_by_brand(targets)
    actual_totals = totals_by_brand(actuals)

    rows = []
    for _, brand in brands.iterrows():
        target = _brand_value(target_totals, brand['id'], 'revenue')
        actual = _brand_value(actual_totals, brand['id'], 'revenue')
        rows.append({
            'brand_id': brand['id'],
            'name': brand.get('name', ''),
            'target_revenue': target,
            'actual_revenue': actual,
            'rate': achievement_rate(actual, target),
        })

    ranking = pd.DataFrame(rows, columns=columns)
    return ranking.sort_values('rate', ascending=False, kind='mergesort').reset_index(drop=True)


def best_and_worst(ranking: pd.DataFrame) -> Tuple[Dict, Dict]:
    """First and last entry of a ranking; ('-', 0) when empty."""
    if ranking is None or ranking.empty:
        return dict(EMPTY_BRAND), dict(EMPTY_BRAND)

    best = ranking.iloc[0]
    worst = ranking.iloc[-1]
    return (
        {'name': best['name'], 'rate': float(best['rate'])},
        {'name': worst['name'], 'rate': float(worst['rate'])},
    )


# =============================================================================
# ANALYSIS VIEWS
# =============================================================================

def summarize(targets: Records, actuals: Records, brands: pd.DataFrame) -> Dict:
    """Headline cards: totals, achievement, profit rate, best/worst brand."""
    target_sums = sum_revenue_profit(targets)
    actual_sums = sum_revenue_profit(actuals)

    rate = achievement_rate(actual_sums['revenue'], target_sums['revenue'])
    best, worst = best_and_worst(rank_brands_by_achievement(targets, actuals, brands))

    return {
        'target_total': target_sums['revenue'],
        'actual_total': actual_sums['revenue'],
        'achievement_rate': rate,
        'target_profit': target_sums['profit'],
        'actual_profit': actual_sums['profit'],
        'profit_rate': profit_margin(actual_sums['profit'], actual_sums['revenue']),
        'best_brand': best,
        'worst_brand': worst,
        'critical_deviation': abs(rate - 100) > DEVIATION_CRITICAL,
    }


def quarterly_trend(targets: Records, actuals: Records) -> pd.DataFrame:
    """Target vs actual revenue per quarter."""
    target_rollup = quarterly_rollup(targets)
    actual_rollup = quarterly_rollup(actuals)
    return pd.DataFrame([
        {
            'quarter': q,
            'target_total': target_rollup[q].revenue,
            'actual_total': actual_rollup[q].revenue,
        }
        for q in QUARTERS
    ])


def top_brands_comparison(
    targets: Records,
    actuals: Records,
    brands: pd.DataFrame,
    limit: int = TOP_BRANDS_LIMIT
) -> pd.DataFrame:
    """Brands with the largest target + actual revenue."""
    columns = ['name', 'target_total', 'actual_total']
    if brands is None or brands.empty:
        return pd.DataFrame(columns=columns)

    target_totals = totals_by_brand(targets)
    actual_totals = totals_by_brand(actuals)

    comparison = pd.DataFrame([
        {
            'name': brand.get('name', ''),
            'target_total': _brand_value(target_totals, brand['id'], 'revenue'),
            'actual_total': _brand_value(actual_totals, brand['id'], 'revenue'),
        }
        for _, brand in brands.iterrows()
    ], columns=columns)
    comparison['combined'] = comparison['target_total'] + comparison['actual_total']
    comparison = comparison.sort_values('combined', ascending=False, kind='mergesort')
    return comparison.head(limit)[columns].reset_index(drop=True)


def brand_performance_table(
    targets: Records,
    actuals: Records,
    brands: pd.DataFrame
) -> pd.DataFrame:
    """Per-brand detail table sorted by revenue achievement."""
    columns = [
        'name', 'target_revenue', 'actual_revenue', 'revenue_achievement',
        'target_profit', 'actual_profit', 'profit_achievement', 'profit_margin',
    ]
    if brands is None or brands.empty:
        return pd.DataFrame(columns=columns)

    target_totals = totals_by_brand(targets)
    actual_totals = totals_by_brand(actuals)

    rows = []
    for _, brand in brands.iterrows():
        target_revenue = _brand_value(target_totals, brand['id'], 'revenue')
        actual_revenue = _brand_value(actual_totals, brand['id'], 'revenue')
        target_profit = _brand_value(target_totals, brand['id'], 'profit')
        actual_profit = _brand_value(actual_totals, brand['id'], 'profit')
        rows.append({
            'name': brand.get('name', ''),
            'target_revenue': target_revenue,
            'actual_revenue': actual_revenue,
            'revenue_achievement': achievement_rate(actual_revenue, target_revenue),
            'target_profit': target_profit,
            'actual_profit': actual_profit,
            'profit_achievement': achievement_rate(actual_profit, target_profit),
            'profit_margin': profit_margin(actual_profit, actual_revenue),
        })

    table = pd.DataFrame(rows, columns=columns)
    return table.sort_values(
        'revenue_achievement', ascending=False, kind='mergesort'
    ).reset_index(drop=True)


def forecast_accuracy_analysis(
    forecasts: Records,
    targets: Records,
    actuals: Records
) -> Dict:
    """
    Forecast vs target vs actual per quarter.

    average_accuracy only counts quarters that already have actuals.
    """
    forecast_rollup = quarterly_rollup(forecasts)
    target_rollup = quarterly_rollup(targets)
    actual_rollup = quarterly_rollup(actuals)

    quarterly = pd.DataFrame([
        {
            'quarter': q,
            'forecast_total': forecast_rollup[q].revenue,
            'target_total': target_rollup[q].revenue,
            'actual_total': actual_rollup[q].revenue,
            'accuracy': forecast_accuracy(forecast_rollup[q].revenue, actual_rollup[q].revenue),
        }
        for q in QUARTERS
    ])

    completed = quarterly[quarterly['actual_total'] > 0]
    average = float(completed['accuracy'].mean()) if not completed.empty else 0.0

    return {
        'quarterly': quarterly,
        'average_accuracy': average,
        'completed_quarters': len(completed),
    }


def manager_performance(
    managers: pd.DataFrame,
    brands: pd.DataFrame,
    targets: Records,
    actuals: Records
) -> pd.DataFrame:
    """Achievement and profit rate per sales manager over their brands."""
    columns = ['manager_id', 'name', 'brand_count', 'target_total',
               'actual_total', 'achievement_rate', 'profit_rate']
    if managers is None or managers.empty:
        return pd.DataFrame(columns=columns)

    target_totals = totals_by_brand(targets)
    actual_totals = totals_by_brand(actuals)
    has_owner = brands is not None and not brands.empty and 'sales_manager_id' in brands.columns

    rows = []
    for _, manager in managers.iterrows():
        if has_owner:
            owned = brands[id_keys(brands['sales_manager_id']) == id_key(manager['id'])]
            brand_keys = set(id_keys(owned['id']))
        else:
            brand_keys = set()

        target_total = float(target_totals.loc[target_totals.index.isin(brand_keys), 'revenue'].sum())
        actual_total = float(actual_totals.loc[actual_totals.index.isin(brand_keys), 'revenue'].sum())
        actual_profit = float(actual_totals.loc[actual_totals.index.isin(brand_keys), 'profit'].sum())

        rows.append({
            'manager_id': manager['id'],
            'name': missing_to_none(manager.get('full_name')) or missing_to_none(manager.get('email')) or manager['id'],
            'brand_count': len(brand_keys),
            'target_total': target_total,
            'actual_total': actual_total,
            'achievement_rate': achievement_rate(actual_total, target_total),
            'profit_rate': profit_margin(actual_profit, actual_total),
        })

    table = pd.DataFrame(rows, columns=columns)
    return table.sort_values(
        'achievement_rate', ascending=False, kind='mergesort'
    ).reset_index(drop=True)


def quarterly_growth(actuals: Records) -> pd.DataFrame:
    """Quarter-over-quarter growth of actual revenue and profit. Q1 has no base."""
    rollup = quarterly_rollup(actuals)
    rows = []
    for q in QUARTERS:
        previous = rollup.get(q - 1)
        rows.append({
            'quarter': q,
            'revenue_growth': growth_rate(rollup[q].revenue, previous.revenue) if previous else 0.0,
            'profit_growth': growth_rate(rollup[q].profit, previous.profit) if previous else 0.0,
        })
    return pd.DataFrame(rows)


def deviation_distribution(
    targets: Records,
    actuals: Records,
    brands: pd.DataFrame
) -> Dict[str, int]:
    """Brands bucketed by |actual - target| / target: >20 / 10-20 / <10 %."""
    result = {'critical': 0, 'moderate': 0, 'normal': 0}
    if brands is None or brands.empty:
        return result

    target_totals = totals_by_brand(targets)
    actual_totals = totals_by_brand(actuals)

    for brand_id in brands['id']:
        deviation = target_deviation(
            _brand_value(actual_totals, brand_id, 'revenue'),
            _brand_value(target_totals, brand_id, 'revenue'),
        )
        if deviation > DEVIATION_CRITICAL:
            result['critical'] += 1
        elif deviation >= DEVIATION_MODERATE:
            result['moderate'] += 1
        else:
            result['normal'] += 1

    return result


# =============================================================================
# PAGE BUNDLE
# =============================================================================

class BrandPerformanceMetrics:
    """
    Calculate every analysis view from DataProcessor output.

    Usage:
        metrics = BrandPerformanceMetrics(processed_data)
        summary = metrics.calculate_summary()
    """

    def __init__(self, processed: Dict):
        self.processed = processed
        self.targets_df = processed.get('targets_df')
        self.forecasts_df = processed.get('forecasts_df')
        self.actuals_df = processed.get('actuals_df')
        self.brands_df = processed.get('brands_df')

    def calculate_summary(self) -> Dict:
        return summarize(self.targets_df, self.actuals_df, self.brands_df)

    def calculate_record_totals(self) -> Dict[str, Dict[str, float]]:
        """Revenue/profit totals of the three record kinds."""
        return {
            'targets': sum_revenue_profit(self.targets_df),
            'forecasts': sum_revenue_profit(self.forecasts_df),
            'actuals': sum_revenue_profit(self.actuals_df),
        }

    def calculate_trend(self) -> pd.DataFrame:
        # Trend always spans the whole year
        return quarterly_trend(
            self.processed.get('year_targets_df'),
            self.processed.get('year_actuals_df'),
        )

    def calculate_top_brands(self, limit: int = TOP_BRANDS_LIMIT) -> pd.DataFrame:
        return top_brands_comparison(self.targets_df, self.actuals_df, self.brands_df, limit)

    def calculate_detail_table(self) -> pd.DataFrame:
        return brand_performance_table(self.targets_df, self.actuals_df, self.brands_df)

    def calculate_forecast_accuracy(self) -> Dict:
        return forecast_accuracy_analysis(self.forecasts_df, self.targets_df, self.actuals_df)

    def calculate_manager_performance(self) -> pd.DataFrame:
        return manager_performance(
            self.processed.get('managers_df'),
            self.processed.get('all_brands_df'),
            self.processed.get('all_targets_df'),
            self.processed.get('all_actuals_df'),
        )

    def calculate_growth(self) -> pd.DataFrame:
        return quarterly_growth(self.processed.get('all_actuals_df'))

    def calculate_deviation(self) -> Dict[str, int]:
        return deviation_distribution(
            self.processed.get('all_targets_df'),
            self.processed.get('all_actuals_df'),
            self.processed.get('all_brands_df'),
        )
