# salesplan/db.py
"""
Planning store engine

Version: 1.0.0
- One SQLAlchemy engine per process, created on first use under a lock
- MySQL through PyMySQL with a pre-pinged QueuePool; DB_URL may point at
  another backend (SQLite for local demos and tests)
- install_db_engine() lets tests and scripts supply their own engine
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL, make_url
from sqlalchemy.exc import OperationalError

from .config import config, StoreSettings

logger = logging.getLogger(__name__)

MYSQL_DRIVER = "mysql+pymysql"

_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


# ==================== ENGINE CONSTRUCTION ====================

def build_store_url(store: StoreSettings) -> URL:
    """SQLAlchemy URL for the store; DB_URL wins over the MySQL fields."""
    if store.url:
        return make_url(store.url)
    return URL.create(
        MYSQL_DRIVER,
        username=store.user,
        password=store.password,
        host=store.host,
        port=store.port,
        database=store.database,
    )


def engine_options(url: URL, store: StoreSettings) -> Dict[str, Any]:
    """Pool options per backend. SQLite keeps SQLAlchemy's defaults."""
    if url.get_backend_name() == "sqlite":
        return {}
    return {
        'pool_size': store.pool_size,
        'max_overflow': 10,
        'pool_timeout': 30,
        'pool_recycle': store.pool_recycle,
        'pool_pre_ping': True,
    }


def _create_engine() -> Engine:
    store = config.store
    url = build_store_url(store)
    options = engine_options(url, store)

    logger.info(f"🔌 Creating engine for {url.render_as_string(hide_password=True)}")
    engine = create_engine(url, **options)
    logger.info(f"✅ Engine ready ({url.get_backend_name()}, {options.get('pool_size', 'default')} pooled connections)")
    return engine


def get_db_engine() -> Engine:
    """Shared engine; created on first call."""
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()

    return _engine


def install_db_engine(engine: Optional[Engine]) -> Optional[Engine]:
    """
    Replace the shared engine without disposing the old one.

    Returns the previous engine so callers can put it back.
    """
    global _engine

    with _engine_lock:
        previous, _engine = _engine, engine
    return previous


def reset_db_engine():
    """Dispose the shared engine; the next query reconnects."""
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            logger.info("🔄 Database engine disposed")
        _engine = None


# ==================== HEALTH ====================

def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Returns:
        (True, None) when the store answers, else (False, message for the UI)
    """
    try:
        with get_db_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except OperationalError as e:
        logger.error(f"❌ Planning store unreachable: {e}")
        return False, "Cannot reach the planning database. Please check your network/VPN connection."
    except Exception as e:
        logger.error(f"❌ Planning store error: {e}")
        return False, f"Database error: {e}"


def get_connection_pool_status() -> Dict[str, Any]:
    """Backend and pool counters for the director status panel."""
    if _engine is None:
        return {"status": "not_initialized"}

    status = {"status": "active", "backend": _engine.url.get_backend_name()}
    pool = _engine.pool
    for key, attr in (("pool_size", "size"), ("checked_in", "checkedin"),
                      ("checked_out", "checkedout"), ("overflow", "overflow")):
        counter = getattr(pool, attr, None)
        if callable(counter):
            status[key] = counter()
    return status


__all__ = [
    'get_db_engine',
    'install_db_engine',
    'reset_db_engine',
    'check_db_connection',
    'get_connection_pool_status',
    'build_store_url',
    'engine_options',
]
