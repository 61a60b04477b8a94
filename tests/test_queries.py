# tests/test_queries.py
"""Store operations against an in-memory SQLite database."""

import pandas as pd
import pytest
from sqlalchemy import text

from salesplan.auth import AuthManager
from salesplan.brand_performance.queries import ForecastQueries, DataLoadError, _nulls_as_none
from salesplan.brand_performance.planning import assemble_quarter_form


def _count(engine, table, where="1 = 1", **params):
    with engine.connect() as conn:
        return conn.execute(text(f"SELECT COUNT(*) FROM {table} WHERE {where}"), params).scalar()


# =============================================================================
# NULL TEXT
# =============================================================================

class TestNullText:

    def test_string_dtype_nulls_become_none(self):
        df = _nulls_as_none(pd.DataFrame({
            'id': [1, 2],
            'logo_url': pd.array(['https://x/logo.png', None], dtype='string'),
            'manager_name': pd.Series(['Alice Kim', float('nan')], dtype=object),
        }))
        assert df.at[1, 'logo_url'] is None
        assert df.at[1, 'manager_name'] is None
        assert df.at[0, 'logo_url'] == 'https://x/logo.png'
        assert pd.api.types.is_integer_dtype(df['id'])

    def test_all_null_column_becomes_none(self):
        df = _nulls_as_none(pd.DataFrame({'id': [1], 'sales_manager_id': [float('nan')]}))
        assert df.at[0, 'sales_manager_id'] is None

    def test_unassigned_brand_reads_back_as_none(self, queries, seeded):
        brands = queries.load_brands().set_index('name')
        assert brands.at['Drift', 'sales_manager_id'] is None
        assert brands.at['Drift', 'logo_url'] is None
        assert brands.at['Acme', 'sales_manager_id'] == 'mgr-a'


# =============================================================================
# REFERENCE DATA
# =============================================================================

class TestReferenceData:

    def test_load_brands_with_manager_name(self, queries, seeded):
        brands = queries.load_brands()

        assert list(brands['name']) == ['Acme', 'Borealis', 'Cobalt', 'Drift']
        acme = brands[brands['name'] == 'Acme'].iloc[0]
        assert acme['manager_name'] == 'Alice Kim'
        assert brands[brands['name'] == 'Drift'].iloc[0]['manager_name'] is None

    def test_load_brands_for_manager(self, queries, seeded):
        assert list(queries.load_brands('mgr-b')['name']) == ['Cobalt']

    def test_sales_managers_excludes_inactive_and_directors(self, queries, seeded):
        managers = queries.load_sales_managers()
        assert list(managers['id']) == ['mgr-a', 'mgr-b']
        assert list(managers.columns) == ['id', 'full_name', 'email']

    def test_load_profiles_flags_active(self, queries, seeded):
        profiles = queries.load_profiles().set_index('username')
        assert bool(profiles.at['alice', 'is_active']) is True
        assert bool(profiles.at['xavier', 'is_active']) is False

    def test_read_failure_raises_data_load_error(self, engine):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE forecasts"))

        q = ForecastQueries()
        q._engine = engine
        with pytest.raises(DataLoadError) as exc_info:
            q.load_forecasts(2025)
        assert exc_info.value.query_name == "forecasts"


# =============================================================================
# TARGETS
# =============================================================================

class TestTargets:

    def test_upsert_inserts_monthly_rows(self, queries, seeded):
        result = queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 900, 'profit': 90}})

        assert result['success'] is True
        assert result['count'] == 3
        targets = queries.load_targets(2025)
        assert sorted(targets['month']) == [1, 2, 3]
        assert targets['revenue'].tolist() == pytest.approx([300.0] * 3)
        assert targets.iloc[0]['brand_name'] == 'Acme'

    def test_upsert_updates_existing_months(self, queries, seeded):
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 900, 'profit': 90}})
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 1200, 'profit': 300}})

        assert _count(seeded, "targets") == 3
        form = assemble_quarter_form(queries.load_targets(2025), 1, 2025)
        assert form[1]['revenue'] == pytest.approx(1200.0)
        assert form[1]['profit'] == pytest.approx(300.0)

    def test_upsert_skips_closed_quarters(self, queries, seeded):
        form = {q: {'revenue': 300.0 * q, 'profit': 0.0} for q in (1, 2, 3, 4)}
        result = queries.upsert_quarter_targets(2, 2025, form, skip_quarters={1, 2})

        assert result['count'] == 6
        assert sorted(queries.load_targets(2025)['month']) == [7, 8, 9, 10, 11, 12]

    def test_upsert_with_every_quarter_skipped(self, queries, seeded):
        result = queries.upsert_quarter_targets(2, 2025, {1: {'revenue': 1, 'profit': 0}}, skip_quarters=[1])
        assert result['success'] is False
        assert _count(seeded, "targets") == 0

    def test_load_targets_year_filter(self, queries, seeded):
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 3, 'profit': 0}})
        queries.upsert_quarter_targets(1, 2026, {1: {'revenue': 3, 'profit': 0}})

        assert len(queries.load_targets(2026)) == 3
        assert len(queries.load_targets()) == 6

    def test_delete_brand_targets(self, queries, seeded):
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 3, 'profit': 0}})
        queries.upsert_quarter_targets(3, 2025, {1: {'revenue': 3, 'profit': 0}})

        result = queries.delete_brand_targets(1, 2025)

        assert result == {'success': True, 'count': 3, 'message': 'delete_brand_targets completed successfully'}
        assert set(queries.load_targets(2025)['brand_id']) == {3}

    def test_delete_target(self, queries, seeded):
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 3, 'profit': 0}})
        target_id = int(queries.load_targets(2025).iloc[0]['id'])

        assert queries.delete_target(target_id)['count'] == 1
        assert _count(seeded, "targets") == 2


# =============================================================================
# FORECASTS
# =============================================================================

class TestForecasts:

    def test_replace_forecasts(self, queries, seeded):
        queries.replace_forecasts(1, 2025, {q: {'revenue': 100, 'profit': 10} for q in (1, 2, 3, 4)})
        queries.replace_forecasts(3, 2025, {1: {'revenue': 50, 'profit': 5}})

        result = queries.replace_forecasts(1, 2025, {1: {'revenue': 400, 'profit': 40}, 2: {'revenue': 0, 'profit': 0}})

        assert result['success'] is True
        assert result['count'] == 2
        forecasts = queries.load_forecasts(2025)
        acme = forecasts[forecasts['brand_id'] == 1]
        assert sorted(acme['quarter']) == [1, 2]
        assert acme[acme['quarter'] == 1].iloc[0]['revenue'] == pytest.approx(400.0)
        # Other brands untouched
        assert len(forecasts[forecasts['brand_id'] == 3]) == 1

    def test_replace_rolls_back_on_failure(self, queries, seeded):
        queries.replace_forecasts(1, 2025, {1: {'revenue': 100, 'profit': 10}})
        with seeded.begin() as conn:
            conn.execute(text("""
                CREATE TRIGGER reject_q4 BEFORE INSERT ON forecasts
                WHEN NEW.quarter = 4
                BEGIN SELECT RAISE(ABORT, 'rejected'); END
            """))

        result = queries.replace_forecasts(
            1, 2025, {1: {'revenue': 500, 'profit': 50}, 4: {'revenue': 500, 'profit': 50}}
        )

        assert result['success'] is False
        forecasts = queries.load_forecasts(2025)
        assert len(forecasts) == 1
        assert forecasts.iloc[0]['revenue'] == pytest.approx(100.0)

    def test_delete_forecast(self, queries, seeded):
        queries.replace_forecasts(1, 2025, {1: {'revenue': 100, 'profit': 10}})
        forecast_id = int(queries.load_forecasts(2025).iloc[0]['id'])

        assert queries.delete_forecast(forecast_id)['success'] is True
        assert queries.load_forecasts(2025).empty


# =============================================================================
# ACTUALS
# =============================================================================

class TestActuals:

    def test_create_actual(self, queries, seeded):
        result = queries.create_actual(1, 2025, 2, 500, 50)

        assert result['success'] is True
        assert result['id'] is not None
        actuals = queries.load_actuals(2025)
        assert not actuals.iloc[0]['is_closed']
        assert actuals.iloc[0]['month'] == 2

    @pytest.mark.parametrize("month,quarter", [(1, 1), (7, 3), (12, 4)])
    def test_create_actual_derives_quarter_from_month(self, queries, seeded, month, quarter):
        queries.create_actual(1, 2025, month, 100, 10)
        assert _count(seeded, "actuals", "month = :m AND quarter = :q", m=month, q=quarter) == 1

    @pytest.mark.parametrize("month", [0, 13, None])
    def test_create_actual_rejects_invalid_month(self, queries, seeded, month):
        result = queries.create_actual(1, 2025, month, 100, 10)
        assert result['success'] is False
        assert _count(seeded, "actuals") == 0

    def test_closed_quarter_follows_month(self, queries, seeded):
        queries.create_actual(1, 2025, 7, 100, 10)
        queries.set_quarter_closed(2025, 3, closed=True)

        assert queries.create_actual(1, 2025, 8, 100, 10)['success'] is False
        assert queries.create_actual(1, 2025, 6, 100, 10)['success'] is True

    def test_closing_a_quarter(self, queries, seeded):
        queries.create_actual(1, 2025, 1, 100, 10)
        queries.create_actual(3, 2025, 3, 100, 10)
        queries.create_actual(1, 2025, 4, 100, 10)

        result = queries.set_quarter_closed(2025, 1)

        assert result['count'] == 2
        assert queries.get_closed_quarters(2025) == {1}
        assert queries.get_closed_quarters(2024) == set()

    def test_closed_quarter_rejects_new_actuals(self, queries, seeded):
        queries.create_actual(1, 2025, 1, 100, 10)
        queries.set_quarter_closed(2025, 1)

        result = queries.create_actual(2, 2025, 2, 100, 10)

        assert result['success'] is False
        assert result['message'] == 'Q1 2025 is closed'
        assert _count(seeded, "actuals") == 1

    def test_closed_actual_cannot_be_deleted(self, queries, seeded):
        actual_id = queries.create_actual(1, 2025, 1, 100, 10)['id']
        queries.set_quarter_closed(2025, 1)

        result = queries.delete_actual(actual_id)

        assert result['success'] is False
        assert result['message'] == 'Actual not found or quarter is closed'
        assert _count(seeded, "actuals") == 1

    def test_reopen_allows_delete(self, queries, seeded):
        actual_id = queries.create_actual(1, 2025, 1, 100, 10)['id']
        queries.set_quarter_closed(2025, 1)
        queries.set_quarter_closed(2025, 1, closed=False)

        assert queries.delete_actual(actual_id)['success'] is True
        assert _count(seeded, "actuals") == 0


# =============================================================================
# BRANDS
# =============================================================================

class TestBrands:

    def test_create_brand_trims_name(self, queries, seeded):
        result = queries.create_brand("  Ember  ", sales_manager_id='mgr-b', logo_url="")

        assert result['success'] is True
        brand = queries.load_brands().set_index('id').loc[result['id']]
        assert brand['name'] == 'Ember'
        assert brand['logo_url'] is None
        assert brand['manager_name'] == 'Bob Tran'

    def test_update_brand_unassigns_manager(self, queries, seeded):
        result = queries.update_brand(1, sales_manager_id=None)

        assert result['count'] == 1
        acme = queries.load_brands().set_index('id').loc[1]
        assert acme['sales_manager_id'] is None
        assert acme['name'] == 'Acme'

    def test_update_brand_without_fields(self, queries, seeded):
        assert queries.update_brand(1)['success'] is False

    def test_dependencies_block_delete(self, queries, seeded):
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 3, 'profit': 0}})
        queries.create_actual(1, 2025, 1, 1, 0)

        deps = queries.check_brand_dependencies(1)
        assert deps['can_delete'] is False
        assert deps['dependencies'] == {'targets': 3, 'forecasts': 0, 'actuals': 1}

        result = queries.delete_brand(1)
        assert result['success'] is False
        assert _count(seeded, "brands", "id = 1") == 1

    def test_force_delete_cascades(self, queries, seeded):
        queries.upsert_quarter_targets(1, 2025, {1: {'revenue': 3, 'profit': 0}})
        queries.replace_forecasts(1, 2025, {1: {'revenue': 3, 'profit': 0}})
        queries.create_actual(1, 2025, 1, 1, 0)
        queries.create_actual(3, 2025, 1, 1, 0)

        result = queries.delete_brand(1, force=True)

        assert result['success'] is True
        for table in ('targets', 'forecasts', 'actuals'):
            assert _count(seeded, table, "brand_id = 1") == 0
        assert _count(seeded, "actuals", "brand_id = 3") == 1

    def test_delete_brand_without_records(self, queries, seeded):
        assert queries.check_brand_dependencies(4)['can_delete'] is True
        assert queries.delete_brand(4)['count'] == 1


# =============================================================================
# PROFILES
# =============================================================================

class TestProfiles:

    def test_create_profile_hashes_password(self, queries, seeded):
        result = queries.create_profile(" erin ", "s3cret!", "Erin Vo", "erin@example.com", "sales_manager")

        assert result['success'] is True
        with seeded.connect() as conn:
            row = conn.execute(
                text("SELECT * FROM profiles WHERE id = :id"), {'id': result['id']}
            ).mappings().one()
        assert row['username'] == 'erin'
        assert row['password_hash'] != 's3cret!'
        assert AuthManager.hash_password("s3cret!", row['password_salt'])[0] == row['password_hash']

    def test_duplicate_username_fails(self, queries, seeded):
        result = queries.create_profile("alice", "pw1234", "Alice 2", "a2@example.com", "director")
        assert result['success'] is False

    def test_new_manager_appears_in_manager_list(self, queries, seeded):
        queries.create_profile("erin", "pw1234", "Erin Vo", "erin@example.com", "sales_manager")
        assert 'Erin Vo' in set(queries.load_sales_managers()['full_name'])

    def test_update_and_deactivate(self, queries, seeded):
        queries.update_profile('mgr-b', full_name=' Robert Tran ', role='director')
        queries.deactivate_profile('mgr-a')

        profiles = queries.load_profiles().set_index('id')
        assert profiles.at['mgr-b', 'full_name'] == 'Robert Tran'
        assert profiles.at['mgr-b', 'role'] == 'director'
        assert bool(profiles.at['mgr-a', 'is_active']) is False
        # Deactivated manager keeps their brands
        assert list(queries.load_brands('mgr-a')['name']) == ['Acme', 'Borealis']
        assert queries.load_sales_managers().empty

    def test_password_reset(self, queries, seeded):
        queries.update_profile('dir-1', password='newpass1')

        ok, user = AuthManager().authenticate('dana', 'newpass1')
        assert ok is True
        assert user['role'] == 'director'

    def test_inactive_profile_cannot_authenticate(self, queries, seeded):
        queries.update_profile('dir-1', password='newpass1')
        queries.deactivate_profile('dir-1')

        ok, info = AuthManager().authenticate('dana', 'newpass1')
        assert ok is False
        assert 'inactive' in info['error']
