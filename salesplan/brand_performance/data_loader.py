# salesplan/brand_performance/data_loader.py
"""
Data Loader for Brand Performance

VERSION: 1.0.0

Loads every frame a page needs for one year in a single pass, then hands
filtering to DataProcessor. Nothing is cached between reruns: each filter
change reads the store again, so an edit made on another page is visible
immediately.

Failure policy: if any fetch fails the whole load fails with DataLoadError.
Pages show one static message and render no partial data.
"""

import logging
import time
from typing import Dict, List, Optional
import pandas as pd

from .constants import DEBUG_TIMING
from .data_processor import missing_to_none
from .queries import ForecastQueries, DataLoadError

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "❌ Failed to load planning data. Please try again later."


class DashboardDataLoader:
    """
    Load targets, forecasts, actuals, brands and sales managers for a year.

    Usage:
        loader = DashboardDataLoader(access)
        data = loader.load(2025)
        options = loader.extract_filter_options(data)
    """

    def __init__(self, access_control, queries: Optional[ForecastQueries] = None):
        self.access = access_control
        self.queries = queries or ForecastQueries(user_id=getattr(access_control, 'user_id', None))

    def load(self, year: int, reference: Optional[Dict] = None) -> Dict:
        """
        Args:
            year: plan year
            reference: already loaded brands_df/managers_df to reuse

        Returns:
            Dict with targets_df, forecasts_df, actuals_df, brands_df,
            managers_df and the load year.

        Raises:
            DataLoadError: any underlying fetch failed
        """
        start_time = time.perf_counter()

        try:
            data = {
                'year': int(year),
                'targets_df': self.queries.load_targets(year),
                'forecasts_df': self.queries.load_forecasts(year),
                'actuals_df': self.queries.load_actuals(year),
                'brands_df': (
                    reference['brands_df'] if reference else self.queries.load_brands()
                ),
                'managers_df': (
                    reference['managers_df'] if reference else self.queries.load_sales_managers()
                ),
            }
        except DataLoadError as e:
            logger.error(f"Dashboard load failed for {year}: {e}")
            raise

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Loaded {year}: {len(data['targets_df'])} targets, "
            f"{len(data['forecasts_df'])} forecasts, {len(data['actuals_df'])} actuals "
            f"in {elapsed:.2f}s"
        )
        if DEBUG_TIMING:
            print(f"   📥 [load] year={year} in {elapsed:.3f}s")

        return data

    @staticmethod
    def extract_filter_options(data: Dict) -> Dict[str, List]:
        """
        Sidebar options from loaded reference data.

        Returns:
            Dict with 'managers': [(id, name)], 'brands': [(id, name, manager_id)]
        """
        managers_df = data.get('managers_df', pd.DataFrame())
        brands_df = data.get('brands_df', pd.DataFrame())

        managers = []
        if not managers_df.empty:
            managers = [
                (row['id'], missing_to_none(row['full_name']) or missing_to_none(row.get('email')) or row['id'])
                for _, row in managers_df.iterrows()
            ]

        brands = []
        if not brands_df.empty:
            brands = [
                (row['id'], row['name'], missing_to_none(row.get('sales_manager_id')))
                for _, row in brands_df.iterrows()
            ]

        return {'managers': managers, 'brands': brands}
