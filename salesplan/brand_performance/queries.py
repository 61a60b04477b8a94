# salesplan/brand_performance/queries.py
"""
SQL Queries for Brand Performance

Read and CRUD operations for:
- Targets (stored monthly, entered per quarter)
- Forecasts (stored per quarter)
- Actuals (monthly, with quarter close flag)
- Brands and user profiles

Reads raise DataLoadError so pages can show a single static message;
writes return result dicts: {'success', 'id' | 'count', 'message'}.
"""

import logging
import uuid
from typing import Dict, Iterable, Set
import pandas as pd
from sqlalchemy import text

from ..db import get_db_engine
from .data_processor import month_to_quarter
from .planning import spread_quarter_targets

logger = logging.getLogger(__name__)

# Marker for "leave unchanged" where None is a meaningful value
_UNSET = object()


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================

class DataLoadError(Exception):
    """Raised when a read from the planning store fails."""

    def __init__(self, query_name: str, original: Exception = None):
        self.query_name = query_name
        self.original = original
        super().__init__(f"Failed to load {query_name}: {original}")


def _nulls_as_none(df: pd.DataFrame) -> pd.DataFrame:
    """
    SQL NULLs in text columns as None.

    Newer pandas reads NULL text as NaN; ids, names and URLs are compared
    with None throughout, so those columns are kept as object with None.
    """
    for col in df.columns:
        values = df[col]
        is_text = pd.api.types.is_object_dtype(values) or pd.api.types.is_string_dtype(values)
        if is_text or (len(values) and values.isna().all()):
            df[col] = pd.Series(
                [None if pd.isna(v) else v for v in values],
                index=df.index,
                dtype=object,
            )
    return df


class ForecastQueries:
    """
    Database queries for targets, forecasts, actuals and their reference data.

    Usage:
        from salesplan.brand_performance import ForecastQueries

        queries = ForecastQueries(user_id=st.session_state.user_id)

        # Read
        targets_df = queries.load_targets(2025)

        # Create / replace
        queries.upsert_quarter_targets(brand_id=3, year=2025, quarters=form)
        queries.replace_forecasts(brand_id=3, year=2025, quarters=form)

        # Delete
        queries.delete_actual(actual_id=42)
    """

    def __init__(self, user_id: str = None):
        self._engine = None
        self.user_id = user_id

    @property
    def engine(self):
        """Lazy load database engine."""
        if self._engine is None:
            self._engine = get_db_engine()
        return self._engine

    # =========================================================================
    # RECORDS - READ
    # =========================================================================

    def load_targets(self, year: int = None) -> pd.DataFrame:
        """Monthly target rows, optionally for one year."""
        query = """
            SELECT t.id, t.brand_id, t.year, t.month, t.revenue, t.profit,
                   b.name AS brand_name
            FROM targets t
            LEFT JOIN brands b ON b.id = t.brand_id
            WHERE (:year IS NULL OR t.year = :year)
            ORDER BY t.year, t.month, t.brand_id
        """
        return self._read(query, {'year': year}, "targets")

    def load_forecasts(self, year: int = None) -> pd.DataFrame:
        """Quarterly forecast rows, optionally for one year."""
        query = """
            SELECT f.id, f.brand_id, f.year, f.quarter, f.revenue, f.profit,
                   b.name AS brand_name
            FROM forecasts f
            LEFT JOIN brands b ON b.id = f.brand_id
            WHERE (:year IS NULL OR f.year = :year)
            ORDER BY f.year, f.quarter, f.brand_id
        """
        return self._read(query, {'year': year}, "forecasts")

    def load_actuals(self, year: int = None) -> pd.DataFrame:
        """Monthly actual rows with their quarter and close flag."""
        query = """
            SELECT a.id, a.brand_id, a.year, a.quarter, a.month,
                   a.revenue, a.profit, a.is_closed,
                   b.name AS brand_name
            FROM actuals a
            LEFT JOIN brands b ON b.id = a.brand_id
            WHERE (:year IS NULL OR a.year = :year)
            ORDER BY a.year, a.quarter, a.month, a.brand_id
        """
        df = self._read(query, {'year': year}, "actuals")
        if not df.empty:
            df['is_closed'] = df['is_closed'].fillna(0).astype(bool)
        return df

    def get_closed_quarters(self, year: int) -> Set[int]:
        query = """
            SELECT DISTINCT quarter FROM actuals
            WHERE year = :year AND is_closed = 1
        """
        df = self._read(query, {'year': year}, "closed_quarters")
        return {int(q) for q in df['quarter'].dropna()} if not df.empty else set()

    # =========================================================================
    # REFERENCE DATA - READ
    # =========================================================================

    def load_brands(self, manager_id: str = None) -> pd.DataFrame:
        """Brands with their sales manager's name, optionally for one manager."""
        query = """
            SELECT b.id, b.name, b.logo_url, b.sales_manager_id,
                   p.full_name AS manager_name
            FROM brands b
            LEFT JOIN profiles p ON p.id = b.sales_manager_id
            WHERE (:manager_id IS NULL OR b.sales_manager_id = :manager_id)
            ORDER BY b.name
        """
        return self._read(query, {'manager_id': manager_id}, "brands")

    def load_sales_managers(self) -> pd.DataFrame:
        query = """
            SELECT id, full_name, email
            FROM profiles
            WHERE role = 'sales_manager' AND is_active = 1
            ORDER BY full_name
        """
        return self._read(query, {}, "sales_managers")

    def load_profiles(self) -> pd.DataFrame:
        query = """
            SELECT id, username, full_name, email, role, is_active
            FROM profiles
            ORDER BY full_name
        """
        df = self._read(query, {}, "profiles")
        if not df.empty:
            df['is_active'] = df['is_active'].fillna(0).astype(bool)
        return df

    # =========================================================================
    # TARGETS - WRITE
    # =========================================================================

    def upsert_quarter_targets(
        self,
        brand_id: int,
        year: int,
        quarters: Dict[int, Dict[str, float]],
        skip_quarters: Iterable[int] = ()
    ) -> Dict:
        """
        Save quarter targets as monthly rows (quarter value / 3 per month).

        Rows are matched on (brand_id, year, month): existing months are
        updated, missing months inserted. Quarters in skip_quarters
        (closed quarters) are left untouched.

        Returns:
            Dict with 'success': bool, 'count': int, 'message': str
        """
        skip = {int(q) for q in skip_quarters}
        editable = {q: v for q, v in quarters.items() if int(q) not in skip}
        rows = spread_quarter_targets(brand_id, year, editable)

        if not rows:
            return {'success': False, 'count': 0, 'message': 'No open quarters to save'}

        select_q = text("""
            SELECT id FROM targets
            WHERE brand_id = :brand_id AND year = :year AND month = :month
        """)
        update_q = text("""
            UPDATE targets
            SET revenue = :revenue, profit = :profit, updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
        """)
        insert_q = text("""
            INSERT INTO targets (brand_id, year, month, revenue, profit, created_at, updated_at)
            VALUES (:brand_id, :year, :month, :revenue, :profit, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
        """)

        try:
            with self.engine.begin() as conn:
                for row in rows:
                    existing = conn.execute(select_q, row).fetchone()
                    if existing:
                        conn.execute(update_q, {**row, 'id': existing[0]})
                    else:
                        conn.execute(insert_q, row)

            logger.info(f"upsert_quarter_targets: brand={brand_id} year={year}, {len(rows)} monthly rows")
            return {
                'success': True,
                'count': len(rows),
                'message': 'Targets saved successfully'
            }
        except Exception as e:
            logger.error(f"Error in upsert_quarter_targets: {e}")
            return {'success': False, 'count': 0, 'message': str(e)}

    def delete_target(self, target_id: int) -> Dict:
        query = "DELETE FROM targets WHERE id = :target_id"
        return self._execute_update(query, {'target_id': target_id}, "delete_target")

    def delete_brand_targets(self, brand_id: int, year: int) -> Dict:
        """Delete all monthly targets of a brand for a year."""
        query = "DELETE FROM targets WHERE brand_id = :brand_id AND year = :year"
        return self._execute_update(
            query, {'brand_id': brand_id, 'year': year}, "delete_brand_targets"
        )

    # =========================================================================
    # FORECASTS - WRITE
    # =========================================================================

    def replace_forecasts(
        self,
        brand_id: int,
        year: int,
        quarters: Dict[int, Dict[str, float]]
    ) -> Dict:
        """
        Replace the forecasts of a brand/year with one row per quarter.

        Delete and insert run in one transaction.
        """
        rows = [
            {
                'brand_id': brand_id,
                'year': int(year),
                'quarter': int(q),
                'revenue': float(v.get('revenue') or 0),
                'profit': float(v.get('profit') or 0),
            }
            for q, v in sorted(quarters.items())
        ]

        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text("DELETE FROM forecasts WHERE brand_id = :brand_id AND year = :year"),
                    {'brand_id': brand_id, 'year': int(year)}
                )
                for row in rows:
                    conn.execute(text("""
                        INSERT INTO forecasts (brand_id, year, quarter, revenue, profit, created_at)
                        VALUES (:brand_id, :year, :quarter, :revenue, :profit, CURRENT_TIMESTAMP)
                    """), row)

            logger.info(f"replace_forecasts: brand={brand_id} year={year}, {len(rows)} quarters")
            return {
                'success': True,
                'count': len(rows),
                'message': 'Forecasts saved successfully'
            }
        except Exception as e:
            logger.error(f"Error in replace_forecasts: {e}")
            return {'success': False, 'count': 0, 'message': str(e)}

    def delete_forecast(self, forecast_id: int) -> Dict:
        query = "DELETE FROM forecasts WHERE id = :forecast_id"
        return self._execute_update(query, {'forecast_id': forecast_id}, "delete_forecast")

    # =========================================================================
    # ACTUALS - WRITE
    # =========================================================================

    def create_actual(
        self,
        brand_id: int,
        year: int,
        month: int,
        revenue: float,
        profit: float
    ) -> Dict:
        """
        Record an actual for a month; its quarter follows from the month.
        Closed quarters reject new rows.

        Returns:
            Dict with 'success': bool, 'id': int, 'message': str
        """
        quarter = month_to_quarter(month)
        if quarter is None:
            return {'success': False, 'id': None, 'message': f'Invalid month: {month}'}

        try:
            closed = self.get_closed_quarters(year)
        except DataLoadError as e:
            return {'success': False, 'id': None, 'message': str(e)}

        if quarter in closed:
            return {
                'success': False,
                'id': None,
                'message': f'Q{quarter} {year} is closed'
            }

        query = """
            INSERT INTO actuals (
                brand_id, year, quarter, month, revenue, profit, is_closed, created_at
            ) VALUES (
                :brand_id, :year, :quarter, :month, :revenue, :profit, 0, CURRENT_TIMESTAMP
            )
        """
        params = {
            'brand_id': brand_id,
            'year': int(year),
            'quarter': quarter,
            'month': int(month),
            'revenue': float(revenue or 0),
            'profit': float(profit or 0),
        }
        return self._execute_insert(query, params, "create_actual")

    def delete_actual(self, actual_id: int) -> Dict:
        """Delete an actual unless its quarter is closed."""
        query = "DELETE FROM actuals WHERE id = :actual_id AND is_closed = 0"
        result = self._execute_update(query, {'actual_id': actual_id}, "delete_actual")
        if result['success'] and result['count'] == 0:
            result.update(success=False, message='Actual not found or quarter is closed')
        return result

    def set_quarter_closed(self, year: int, quarter: int, closed: bool = True) -> Dict:
        """Close (or reopen) every actual of a quarter."""
        query = """
            UPDATE actuals
            SET is_closed = :closed
            WHERE year = :year AND quarter = :quarter
        """
        params = {'year': int(year), 'quarter': int(quarter), 'closed': 1 if closed else 0}
        return self._execute_update(query, params, "set_quarter_closed")

    # =========================================================================
    # BRANDS - CREATE/UPDATE/DELETE
    # =========================================================================

    def create_brand(self, name: str, sales_manager_id: str = None, logo_url: str = None) -> Dict:
        query = """
            INSERT INTO brands (name, sales_manager_id, logo_url, created_at)
            VALUES (:name, :sales_manager_id, :logo_url, CURRENT_TIMESTAMP)
        """
        params = {
            'name': name.strip(),
            'sales_manager_id': sales_manager_id or None,
            'logo_url': logo_url or None,
        }
        return self._execute_insert(query, params, "create_brand")

    def update_brand(
        self,
        brand_id: int,
        name: str = None,
        sales_manager_id=_UNSET,
        logo_url=_UNSET
    ) -> Dict:
        """
        Update a brand. Pass sales_manager_id=None to unassign.

        Returns:
            Dict with 'success': bool, 'count': int, 'message': str
        """
        updates = []
        params = {'brand_id': brand_id}

        if name is not None:
            updates.append("name = :name")
            params['name'] = name.strip()

        if sales_manager_id is not _UNSET:
            updates.append("sales_manager_id = :sales_manager_id")
            params['sales_manager_id'] = sales_manager_id or None

        if logo_url is not _UNSET:
            updates.append("logo_url = :logo_url")
            params['logo_url'] = logo_url or None

        if not updates:
            return {'success': False, 'count': 0, 'message': 'No fields to update'}

        query = f"""
            UPDATE brands
            SET {', '.join(updates)}
            WHERE id = :brand_id
        """
        return self._execute_update(query, params, "update_brand")

    def check_brand_dependencies(self, brand_id: int) -> Dict:
        """
        Check if a brand can be deleted (no targets, forecasts or actuals).

        Returns:
            Dict with 'can_delete': bool, 'dependencies': dict
        """
        deps = {}
        for table in ('targets', 'forecasts', 'actuals'):
            df = self._read(
                f"SELECT COUNT(*) AS count FROM {table} WHERE brand_id = :brand_id",
                {'brand_id': brand_id},
                f"check_{table}"
            )
            deps[table] = int(df.iloc[0]['count']) if not df.empty else 0

        can_delete = all(v == 0 for v in deps.values())
        return {
            'can_delete': can_delete,
            'dependencies': deps,
            'message': 'No dependencies found' if can_delete else 'Cannot delete: brand has planning records'
        }

    def delete_brand(self, brand_id: int, force: bool = False) -> Dict:
        """
        Delete a brand. With force=True its targets, forecasts and actuals
        are deleted in the same transaction.
        """
        if not force:
            try:
                deps = self.check_brand_dependencies(brand_id)
            except DataLoadError as e:
                return {'success': False, 'count': 0, 'message': str(e)}
            if not deps['can_delete']:
                return {
                    'success': False,
                    'count': 0,
                    'message': deps['message'],
                    'dependencies': deps['dependencies']
                }

        try:
            with self.engine.begin() as conn:
                for table in ('targets', 'forecasts', 'actuals'):
                    conn.execute(text(f"DELETE FROM {table} WHERE brand_id = :brand_id"), {'brand_id': brand_id})
                result = conn.execute(text("DELETE FROM brands WHERE id = :brand_id"), {'brand_id': brand_id})
                count = result.rowcount

            logger.info(f"delete_brand successful, brand={brand_id}, {count} rows affected")
            return {'success': True, 'count': count, 'message': 'Brand deleted'}
        except Exception as e:
            logger.error(f"Error in delete_brand: {e}")
            return {'success': False, 'count': 0, 'message': str(e)}

    # =========================================================================
    # PROFILES - CREATE/UPDATE/DEACTIVATE
    # =========================================================================

    def create_profile(
        self,
        username: str,
        password: str,
        full_name: str,
        email: str,
        role: str
    ) -> Dict:
        """Create a user profile. Returns the new profile's UUID as 'id'."""
        # Late import: auth pulls in streamlit session helpers
        from ..auth import AuthManager

        pwd_hash, salt = AuthManager.hash_password(password)
        profile_id = str(uuid.uuid4())

        query = """
            INSERT INTO profiles (
                id, username, full_name, email, role,
                password_hash, password_salt, is_active, created_at
            ) VALUES (
                :id, :username, :full_name, :email, :role,
                :password_hash, :password_salt, 1, CURRENT_TIMESTAMP
            )
        """
        params = {
            'id': profile_id,
            'username': username.strip(),
            'full_name': full_name.strip(),
            'email': email.strip(),
            'role': role,
            'password_hash': pwd_hash,
            'password_salt': salt,
        }
        result = self._execute_insert(query, params, "create_profile")
        if result['success']:
            result['id'] = profile_id
        return result

    def update_profile(
        self,
        profile_id: str,
        full_name: str = None,
        email: str = None,
        role: str = None,
        is_active: bool = None,
        password: str = None
    ) -> Dict:
        updates = []
        params = {'profile_id': profile_id}

        if full_name is not None:
            updates.append("full_name = :full_name")
            params['full_name'] = full_name.strip()

        if email is not None:
            updates.append("email = :email")
            params['email'] = email.strip()

        if role is not None:
            updates.append("role = :role")
            params['role'] = role

        if is_active is not None:
            updates.append("is_active = :is_active")
            params['is_active'] = 1 if is_active else 0

        if password:
            from ..auth import AuthManager
            pwd_hash, salt = AuthManager.hash_password(password)
            updates.append("password_hash = :password_hash")
            updates.append("password_salt = :password_salt")
            params['password_hash'] = pwd_hash
            params['password_salt'] = salt

        if not updates:
            return {'success': False, 'count': 0, 'message': 'No fields to update'}

        query = f"""
            UPDATE profiles
            SET {', '.join(updates)}
            WHERE id = :profile_id
        """
        return self._execute_update(query, params, "update_profile")

    def deactivate_profile(self, profile_id: str) -> Dict:
        """Soft delete: the profile keeps its brands but can no longer log in."""
        return self.update_profile(profile_id, is_active=False)

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _read(self, query: str, params: dict, query_name: str) -> pd.DataFrame:
        """Execute a read; failures raise DataLoadError."""
        try:
            logger.debug(f"Executing {query_name}")
            df = pd.read_sql(text(query), self.engine, params=params)
            logger.debug(f"{query_name} returned {len(df)} rows")
        except Exception as e:
            logger.error(f"Error executing {query_name}: {e}")
            raise DataLoadError(query_name, e) from e
        return _nulls_as_none(df)

    def _execute_insert(
        self,
        query: str,
        params: dict,
        operation_name: str = "insert"
    ) -> Dict:
        """Execute INSERT and return result with new ID."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(query), params)
                last_id = result.lastrowid

            logger.info(f"{operation_name} successful, id={last_id}")
            return {
                'success': True,
                'id': last_id,
                'message': f'{operation_name} completed successfully'
            }
        except Exception as e:
            logger.error(f"Error in {operation_name}: {e}")
            return {
                'success': False,
                'id': None,
                'message': str(e)
            }

    def _execute_update(
        self,
        query: str,
        params: dict,
        operation_name: str = "update"
    ) -> Dict:
        """Execute UPDATE/DELETE and return result."""
        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(query), params)
                rows_affected = result.rowcount

            logger.info(f"{operation_name} successful, {rows_affected} rows affected")
            return {
                'success': True,
                'count': rows_affected,
                'message': f'{operation_name} completed successfully'
            }
        except Exception as e:
            logger.error(f"Error in {operation_name}: {e}")
            return {
                'success': False,
                'count': 0,
                'message': str(e)
            }
