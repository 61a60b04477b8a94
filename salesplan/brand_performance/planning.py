# salesplan/brand_performance/planning.py
"""
Planning rules for target/forecast entry.

Targets are entered per quarter and stored as monthly rows (one third of the
quarter each). Forecasts are entered and stored per quarter. A quarter with
any closed actual is read-only in both forms.
"""

import logging
from typing import Dict, List, Optional, Set
import pandas as pd

from .constants import QUARTERS, MONTHS_PER_QUARTER
from .data_processor import normalize_records, id_key, id_keys

logger = logging.getLogger(__name__)

QuarterForm = Dict[int, Dict[str, float]]


def empty_quarter_form() -> QuarterForm:
    return {q: {'revenue': 0.0, 'profit': 0.0} for q in QUARTERS}


def quarter_months(quarter: int) -> List[int]:
    """Calendar months of a quarter, e.g. 2 → [4, 5, 6]."""
    first = (int(quarter) - 1) * MONTHS_PER_QUARTER + 1
    return list(range(first, first + MONTHS_PER_QUARTER))


def spread_quarter_targets(brand_id, year: int, quarters: QuarterForm) -> List[Dict]:
    """Monthly target rows for a quarter form, each month getting a third."""
    rows = []
    for quarter in sorted(quarters):
        values = quarters[quarter]
        for month in quarter_months(quarter):
            rows.append({
                'brand_id': brand_id,
                'year': int(year),
                'month': month,
                'revenue': float(values.get('revenue') or 0) / MONTHS_PER_QUARTER,
                'profit': float(values.get('profit') or 0) / MONTHS_PER_QUARTER,
            })
    return rows


def _records_for(records: Optional[pd.DataFrame], brand_id, year: int) -> pd.DataFrame:
    df = normalize_records(records)
    if df.empty:
        return df
    mask = (id_keys(df['brand_id']) == id_key(brand_id)) & (df['year'] == int(year))
    return df[mask]


def assemble_quarter_form(records: Optional[pd.DataFrame], brand_id, year: int) -> QuarterForm:
    """
    Quarter form prefilled from stored rows of one brand and year.

    Monthly target rows are summed back into their quarter; quarterly
    forecast rows map one to one.
    """
    form = empty_quarter_form()
    df = _records_for(records, brand_id, year)
    if df.empty:
        return form

    sums = df.dropna(subset=['quarter']).groupby('quarter')[['revenue', 'profit']].sum()
    for quarter, row in sums.iterrows():
        quarter = int(quarter)
        if quarter in form:
            form[quarter] = {'revenue': float(row['revenue']), 'profit': float(row['profit'])}
    return form


def closed_quarters(actuals: Optional[pd.DataFrame], year: int) -> Set[int]:
    """Quarters of a year that have at least one closed actual."""
    df = normalize_records(actuals)
    if df.empty or 'is_closed' not in df.columns:
        return set()
    closed = df[(df['year'] == int(year)) & df['is_closed']]
    return {int(q) for q in closed['quarter'].dropna().unique()}


def validate_quarter_form(brand_id, quarters: QuarterForm) -> List[str]:
    """Return a list of problems; empty when the form can be saved."""
    errors = []
    if brand_id is None or brand_id == '':
        errors.append("Please select a brand")
    for quarter in sorted(quarters):
        values = quarters[quarter]
        revenue = values.get('revenue') or 0
        profit = values.get('profit') or 0
        if revenue < 0:
            errors.append(f"Q{quarter}: revenue cannot be negative")
        if profit > revenue and revenue > 0:
            errors.append(f"Q{quarter}: profit cannot exceed revenue")
    return errors


def pivot_by_quarter(records: Optional[pd.DataFrame], brands: pd.DataFrame, column: str = 'revenue') -> pd.DataFrame:
    """One row per brand, one column per quarter plus a total."""
    df = normalize_records(records)
    quarter_cols = [f"Q{q}" for q in QUARTERS]
    if df.empty:
        return pd.DataFrame(columns=['brand_id', 'Brand'] + quarter_cols + ['Total'])

    df = df.dropna(subset=['quarter']).assign(
        brand_key=lambda d: id_keys(d['brand_id']),
        quarter_col=lambda d: 'Q' + d['quarter'].astype(int).astype(str),
    )
    pivot = df.pivot_table(
        index='brand_key', columns='quarter_col', values=column,
        aggfunc='sum', fill_value=0.0
    ).reindex(columns=quarter_cols, fill_value=0.0)
    pivot['Total'] = pivot[quarter_cols].sum(axis=1)

    names = {}
    if brands is not None and not brands.empty:
        names = dict(zip(id_keys(brands['id']), brands['name']))

    pivot = pivot.reset_index().rename(columns={'brand_key': 'brand_id'})
    pivot.insert(1, 'Brand', pivot['brand_id'].map(lambda k: names.get(k, f"#{k}")))
    return pivot.sort_values('Brand').reset_index(drop=True)
