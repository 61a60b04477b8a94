# salesplan/brand_performance/filters.py
"""
Sidebar Filter Components for Brand Performance

Renders filter UI elements:
- Year selector (configured plan years)
- Quarter selector (All / Q1-Q4)
- Sales manager selector
- Brand selector (narrowed to the selected manager's brands)

Filters are plain sidebar widgets, so every change reruns the page and the
views are recomputed from fresh data.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple
import streamlit as st

from .constants import QUARTERS, QUARTER_LABELS
from .access_control import AccessControl
from .data_processor import id_key

logger = logging.getLogger(__name__)

ALL_OPTION = None


def default_year(available_years: List[int], today: date = None) -> int:
    """Current year when it is plannable, else the latest plan year."""
    today = today or date.today()
    if today.year in available_years:
        return today.year
    return available_years[-1] if available_years else today.year


def brands_for_manager(brands: List[Tuple], manager_id) -> List[Tuple]:
    """Brand options owned by a manager; all brands when manager_id is None."""
    if manager_id is None:
        return list(brands)
    return [b for b in brands if id_key(b[2]) == id_key(manager_id)]


class BrandPerformanceFilters:
    """
    Sidebar filter renderer.

    Usage:
        access = AccessControl(user_role, user_id)
        filters = BrandPerformanceFilters(access)

        filter_values = filters.render_all_filters(
            options, available_years, key_prefix='analysis'
        )
    """

    def __init__(self, access_control: AccessControl):
        self.access = access_control

    # =========================================================================
    # MAIN RENDER METHOD
    # =========================================================================

    def render_all_filters(
        self,
        options: Dict[str, List],
        available_years: List[int],
        key_prefix: str = 'bp',
        show_quarter: bool = True,
        show_manager: bool = True,
        show_brand: bool = True
    ) -> Dict:
        """
        Render sidebar filters and return the selected values.

        Args:
            options: {'managers': [(id, name)], 'brands': [(id, name, manager_id)]}
            available_years: plan years to offer
            key_prefix: widget key prefix, one per page

        Returns:
            {'year': int, 'quarter': int|None, 'manager_id': str|None, 'brand_id': int|None}
        """
        st.sidebar.header("🎛️ Filters")

        year = self._render_year(available_years, key_prefix)
        quarter = self._render_quarter(key_prefix) if show_quarter else None

        st.sidebar.divider()

        manager_id = (
            self._render_manager(options.get('managers', []), key_prefix)
            if show_manager else None
        )
        brand_id = (
            self._render_brand(options.get('brands', []), manager_id, key_prefix)
            if show_brand else None
        )

        st.sidebar.divider()
        self._render_access_info()

        return {
            'year': year,
            'quarter': quarter,
            'manager_id': manager_id,
            'brand_id': brand_id,
        }

    # =========================================================================
    # INDIVIDUAL SELECTORS
    # =========================================================================

    def _render_year(self, available_years: List[int], key_prefix: str) -> int:
        years = list(available_years)
        selected = default_year(years)
        return st.sidebar.selectbox(
            "📅 Year",
            options=years,
            index=years.index(selected) if selected in years else 0,
            key=f"{key_prefix}_year"
        )

    def _render_quarter(self, key_prefix: str) -> Optional[int]:
        return st.sidebar.selectbox(
            "🗓️ Quarter",
            options=[ALL_OPTION] + QUARTERS,
            format_func=lambda q: "All Quarters" if q is None else QUARTER_LABELS[q],
            key=f"{key_prefix}_quarter"
        )

    def _render_manager(self, managers: List[Tuple], key_prefix: str) -> Optional[str]:
        ids = [ALL_OPTION] + [m[0] for m in managers]
        names = {m[0]: m[1] for m in managers}

        preset = self.access.default_manager_id()
        index = ids.index(preset) if preset in ids else 0

        return st.sidebar.selectbox(
            "👤 Sales Manager",
            options=ids,
            index=index,
            format_func=lambda m: "All Managers" if m is None else names.get(m, str(m)),
            key=f"{key_prefix}_manager"
        )

    def _render_brand(self, brands: List[Tuple], manager_id, key_prefix: str) -> Optional[int]:
        available = brands_for_manager(brands, manager_id)
        ids = [ALL_OPTION] + [b[0] for b in available]
        names = {b[0]: b[1] for b in available}

        if manager_id is not None and not available:
            st.sidebar.caption("ℹ️ No brands assigned to this manager")

        # Keyed by manager so a stale brand is dropped when the manager changes
        return st.sidebar.selectbox(
            "🏷️ Brand",
            options=ids,
            format_func=lambda b: "All Brands" if b is None else names.get(b, str(b)),
            key=f"{key_prefix}_brand_{id_key(manager_id) or 'all'}"
        )

    # =========================================================================
    # ACCESS INFO
    # =========================================================================

    def _render_access_info(self):
        """Display access level info in sidebar."""
        if self.access.get_access_level() == 'edit':
            icon, label = "🔓", "Director (can edit)"
        else:
            icon, label = "👁️", f"{self.access.role_label()} (view only)"
        st.sidebar.caption(f"{icon} {label}")

    # =========================================================================
    # FILTER STATE HELPERS
    # =========================================================================

    @staticmethod
    def get_filter_summary(filters: Dict, options: Dict[str, List]) -> str:
        """Human-readable summary of current filters."""
        parts = [str(filters['year'])]

        if filters.get('quarter'):
            parts.append(f"Q{filters['quarter']}")
        else:
            parts.append("Full year")

        if filters.get('brand_id') is not None:
            names = {b[0]: b[1] for b in options.get('brands', [])}
            parts.append(names.get(filters['brand_id'], 'Brand'))
        elif filters.get('manager_id') is not None:
            names = {m[0]: m[1] for m in options.get('managers', [])}
            parts.append(f"{names.get(filters['manager_id'], 'Manager')}'s brands")
        else:
            parts.append("All brands")

        return " • ".join(parts)
