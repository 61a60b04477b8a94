# salesplan/brand_performance/data_processor.py
"""
Data Processor for Brand Performance

VERSION: 1.0.0
- "Load, then Filter Many" pattern: record frames are fetched once per
  year and every filter change is applied here with Pandas only
- PeriodFilter is immutable; the processor keeps no state between calls
- Brand/manager precedence is an explicit FilterPrecedence policy
"""

import logging
import math
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Set
import pandas as pd

from .constants import DEBUG_TIMING, RECORD_COLUMNS, NUMERIC_COLUMNS, MONTHS_PER_QUARTER

logger = logging.getLogger(__name__)


class FilterPrecedence(Enum):
    """
    How a brand filter and a manager filter combine.

    BRAND_FIRST: a selected brand wins and the manager filter is ignored.
    INTERSECT:   both apply; a brand outside the manager's portfolio yields
                 an empty scope.
    """
    BRAND_FIRST = 'brand_first'
    INTERSECT = 'intersect'


@dataclass(frozen=True)
class PeriodFilter:
    """Filter selection passed into the processing functions."""
    year: int
    quarter: Optional[int] = None
    brand_id: Optional[object] = None
    manager_id: Optional[str] = None

    @classmethod
    def from_filter_values(cls, filter_values: Dict) -> 'PeriodFilter':
        def pick(key):
            value = missing_to_none(filter_values.get(key))
            return None if value == '' else value

        return cls(
            year=int(filter_values['year']),
            quarter=filter_values.get('quarter') or None,
            brand_id=pick('brand_id'),
            manager_id=pick('manager_id'),
        )

    def without_quarter(self) -> 'PeriodFilter':
        return replace(self, quarter=None)


# =============================================================================
# NORMALIZATION
# =============================================================================

def month_to_quarter(month) -> Optional[int]:
    """Quarter (1-4) a calendar month falls in, None for invalid months."""
    try:
        month = int(month)
    except (TypeError, ValueError):
        return None
    if 1 <= month <= 12:
        return math.ceil(month / MONTHS_PER_QUARTER)
    return None


def id_keys(values: pd.Series) -> pd.Series:
    """Compare ids as strings so 7, 7.0 and '7' match."""
    return values.map(id_key)


def id_key(value) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def missing_to_none(value):
    """None for None/NaN/NA cells, the value itself otherwise."""
    if value is None:
        return None
    try:
        return None if pd.isna(value) else value
    except (TypeError, ValueError):
        return value


def normalize_records(records: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Bring a targets/forecasts/actuals frame to the common record shape.

    - revenue/profit: malformed, missing or infinite → 0.0
    - quarter: derived from month when absent
    - is_closed (actuals only): coerced to bool
    """
    if records is None or records.empty:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    df = records.copy()

    for col in RECORD_COLUMNS:
        if col not in df.columns:
            df[col] = None

    for col in NUMERIC_COLUMNS:
        amounts = pd.to_numeric(df[col], errors='coerce').astype(float)
        df[col] = amounts.where(amounts.abs() != math.inf, 0.0).fillna(0.0)

    df['year'] = pd.to_numeric(df['year'], errors='coerce')
    df['quarter'] = pd.to_numeric(df['quarter'], errors='coerce')

    missing_quarter = df['quarter'].isna()
    if missing_quarter.any():
        df.loc[missing_quarter, 'quarter'] = df.loc[missing_quarter, 'month'].map(month_to_quarter)
        df['quarter'] = pd.to_numeric(df['quarter'], errors='coerce')

    if 'is_closed' in df.columns:
        df['is_closed'] = df['is_closed'].fillna(False).astype(bool)

    return df


# =============================================================================
# SCOPE RESOLUTION
# =============================================================================

def manager_brand_ids(brands: pd.DataFrame, manager_id) -> Set[str]:
    """Ids of brands owned by a sales manager."""
    if brands is None or brands.empty or 'sales_manager_id' not in brands.columns:
        return set()
    owned = brands[id_keys(brands['sales_manager_id']) == id_key(manager_id)]
    return set(id_keys(owned['id']))


def resolve_brand_scope(
    filters: PeriodFilter,
    brands: Optional[pd.DataFrame],
    precedence: FilterPrecedence = FilterPrecedence.BRAND_FIRST
) -> Optional[Set[str]]:
    """
    Resolve brand/manager selection to the set of brand ids in scope.

    Returns None when neither filter is set (no restriction). A manager with
    no brands resolves to an empty set, so nothing matches.
    """
    brand_set = {id_key(filters.brand_id)} if filters.brand_id is not None else None
    manager_set = (
        manager_brand_ids(brands, filters.manager_id)
        if filters.manager_id is not None else None
    )

    if brand_set is not None:
        if precedence is FilterPrecedence.INTERSECT and manager_set is not None:
            return brand_set & manager_set
        return brand_set

    return manager_set


def filter_records(
    records: Optional[pd.DataFrame],
    filters: PeriodFilter,
    brands: Optional[pd.DataFrame] = None,
    precedence: FilterPrecedence = FilterPrecedence.BRAND_FIRST
) -> pd.DataFrame:
    """Subset of records matching year, quarter and brand scope."""
    df = normalize_records(records)
    if df.empty:
        return df

    mask = df['year'] == filters.year

    if filters.quarter:
        mask &= df['quarter'] == int(filters.quarter)

    scope = resolve_brand_scope(filters, brands, precedence)
    if scope is not None:
        mask &= id_keys(df['brand_id']).isin(scope)

    return df[mask].reset_index(drop=True)


def filter_brands(
    brands: Optional[pd.DataFrame],
    filters: PeriodFilter,
    precedence: FilterPrecedence = FilterPrecedence.BRAND_FIRST
) -> pd.DataFrame:
    """Brands in scope for the current selection."""
    if brands is None or brands.empty:
        return pd.DataFrame(columns=['id', 'name', 'sales_manager_id'])

    scope = resolve_brand_scope(filters, brands, precedence)
    if scope is None:
        return brands.reset_index(drop=True)
    return brands[id_keys(brands['id']).isin(scope)].reset_index(drop=True)


# =============================================================================
# PROCESSOR
# =============================================================================

class DataProcessor:
    """
    Apply a PeriodFilter to the record frames loaded for a year.

    Usage:
        processor = DataProcessor(loaded_data)
        processed = processor.process(PeriodFilter(year=2025, quarter=2))
    """

    def __init__(
        self,
        loaded_data: Dict,
        precedence: FilterPrecedence = FilterPrecedence.BRAND_FIRST
    ):
        self.targets_raw = normalize_records(loaded_data.get('targets_df'))
        self.forecasts_raw = normalize_records(loaded_data.get('forecasts_df'))
        self.actuals_raw = normalize_records(loaded_data.get('actuals_df'))
        self.brands = loaded_data.get('brands_df', pd.DataFrame())
        self.managers = loaded_data.get('managers_df', pd.DataFrame())
        self.precedence = precedence

    def process(self, filters: PeriodFilter) -> Dict:
        """
        Returns:
            Dict with:
            - targets_df / forecasts_df / actuals_df: full selection
            - year_*_df: same scope without the quarter filter (trend charts)
            - brands_df: brands in scope
            - all_*: unfiltered year data (manager table, growth, deviation)
        """
        start_time = time.perf_counter()
        year_filters = filters.without_quarter()

        def _filter(df, f):
            return filter_records(df, f, self.brands, self.precedence)

        result = {
            'filters': filters,
            'targets_df': _filter(self.targets_raw, filters),
            'forecasts_df': _filter(self.forecasts_raw, filters),
            'actuals_df': _filter(self.actuals_raw, filters),
            'year_targets_df': _filter(self.targets_raw, year_filters),
            'year_forecasts_df': _filter(self.forecasts_raw, year_filters),
            'year_actuals_df': _filter(self.actuals_raw, year_filters),
            'brands_df': filter_brands(self.brands, filters, self.precedence),
            'all_targets_df': self.targets_raw,
            'all_actuals_df': self.actuals_raw,
            'all_brands_df': self.brands,
            'managers_df': self.managers,
        }

        if DEBUG_TIMING:
            print(
                f"   📊 [process] {len(result['targets_df'])} targets, "
                f"{len(result['forecasts_df'])} forecasts, "
                f"{len(result['actuals_df'])} actuals in {time.perf_counter() - start_time:.3f}s"
            )

        return result
