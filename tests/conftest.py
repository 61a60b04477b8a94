# tests/conftest.py
"""
Shared fixtures.

salesplan.config builds its singleton at import time and refuses to start
without DB settings, so dummy values are set before any salesplan import.
Store tests run against an in-memory SQLite engine.
"""

import os

os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "sales_planning_test")

import pandas as pd
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from salesplan import db
from salesplan.brand_performance.queries import ForecastQueries


SCHEMA = [
    """
    CREATE TABLE profiles (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        full_name TEXT,
        email TEXT,
        role TEXT NOT NULL,
        password_hash TEXT,
        password_salt TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE brands (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        sales_manager_id TEXT,
        logo_url TEXT,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE targets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        brand_id INTEGER NOT NULL,
        year INTEGER NOT NULL,
        month INTEGER NOT NULL,
        revenue REAL NOT NULL DEFAULT 0,
        profit REAL NOT NULL DEFAULT 0,
        created_at TIMESTAMP,
        updated_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE forecasts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        brand_id INTEGER NOT NULL,
        year INTEGER NOT NULL,
        quarter INTEGER NOT NULL,
        revenue REAL NOT NULL DEFAULT 0,
        profit REAL NOT NULL DEFAULT 0,
        created_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE actuals (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        brand_id INTEGER NOT NULL,
        year INTEGER NOT NULL,
        quarter INTEGER NOT NULL,
        month INTEGER,
        revenue REAL NOT NULL DEFAULT 0,
        profit REAL NOT NULL DEFAULT 0,
        is_closed INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP
    )
    """,
]


@pytest.fixture
def engine():
    """In-memory SQLite store installed as the app's shared engine."""
    eng = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with eng.begin() as conn:
        for ddl in SCHEMA:
            conn.execute(text(ddl))

    previous = db.install_db_engine(eng)
    yield eng
    db.install_db_engine(previous)
    eng.dispose()


@pytest.fixture
def queries(engine):
    q = ForecastQueries(user_id="director-1")
    q._engine = engine
    return q


@pytest.fixture
def seeded(engine):
    """Two managers, three brands (one unassigned)."""
    with engine.begin() as conn:
        conn.execute(text("""
            INSERT INTO profiles (id, username, full_name, email, role, is_active)
            VALUES
                ('mgr-a', 'alice', 'Alice Kim', 'alice@example.com', 'sales_manager', 1),
                ('mgr-b', 'bob', 'Bob Tran', 'bob@example.com', 'sales_manager', 1),
                ('mgr-x', 'xavier', 'Xavier Old', 'x@example.com', 'sales_manager', 0),
                ('dir-1', 'dana', 'Dana Lee', 'dana@example.com', 'director', 1)
        """))
        conn.execute(text("""
            INSERT INTO brands (id, name, sales_manager_id) VALUES
                (1, 'Acme', 'mgr-a'),
                (2, 'Borealis', 'mgr-a'),
                (3, 'Cobalt', 'mgr-b'),
                (4, 'Drift', NULL)
        """))
    return engine


@pytest.fixture
def brands_df():
    return pd.DataFrame([
        {'id': 1, 'name': 'Acme', 'sales_manager_id': 'mgr-a'},
        {'id': 2, 'name': 'Borealis', 'sales_manager_id': 'mgr-a'},
        {'id': 3, 'name': 'Cobalt', 'sales_manager_id': 'mgr-b'},
        {'id': 4, 'name': 'Drift', 'sales_manager_id': None},
    ])


@pytest.fixture
def managers_df():
    return pd.DataFrame([
        {'id': 'mgr-a', 'full_name': 'Alice Kim', 'email': 'alice@example.com'},
        {'id': 'mgr-b', 'full_name': 'Bob Tran', 'email': 'bob@example.com'},
        {'id': 'mgr-c', 'full_name': None, 'email': 'carol@example.com'},
    ])


@pytest.fixture
def targets_df():
    """Monthly targets for 2025: Acme 300/quarter, Cobalt 600 in Q1 only."""
    rows = []
    for month in range(1, 13):
        rows.append({'id': month, 'brand_id': 1, 'year': 2025, 'month': month,
                     'revenue': 100.0, 'profit': 20.0})
    for month in (1, 2, 3):
        rows.append({'id': 100 + month, 'brand_id': 3, 'year': 2025, 'month': month,
                     'revenue': 200.0, 'profit': 30.0})
    rows.append({'id': 200, 'brand_id': 1, 'year': 2024, 'month': 1,
                 'revenue': 999.0, 'profit': 99.0})
    return pd.DataFrame(rows)


@pytest.fixture
def actuals_df():
    return pd.DataFrame([
        {'id': 1, 'brand_id': 1, 'year': 2025, 'quarter': 1, 'month': 1,
         'revenue': 330.0, 'profit': 66.0, 'is_closed': True},
        {'id': 2, 'brand_id': 3, 'year': 2025, 'quarter': 1, 'month': 2,
         'revenue': 300.0, 'profit': 30.0, 'is_closed': True},
        {'id': 3, 'brand_id': 1, 'year': 2025, 'quarter': 2, 'month': 4,
         'revenue': 150.0, 'profit': 15.0, 'is_closed': False},
    ])


@pytest.fixture
def forecasts_df():
    return pd.DataFrame([
        {'id': 1, 'brand_id': 1, 'year': 2025, 'quarter': 1, 'revenue': 300.0, 'profit': 60.0},
        {'id': 2, 'brand_id': 3, 'year': 2025, 'quarter': 1, 'revenue': 330.0, 'profit': 40.0},
        {'id': 3, 'brand_id': 1, 'year': 2025, 'quarter': 2, 'revenue': 200.0, 'profit': 40.0},
    ])
