# salesplan/__init__.py
"""
Sales Planning app package

- config: settings from secrets.toml or .env
- db: shared engine for the planning store
- auth: login and session state
- brand_performance: targets, forecasts, actuals and their analysis

Usage:
    from salesplan import AuthManager, get_db_engine, config
"""

from .config import (
    config,
    Config,
    StoreSettings,
    PlanningSettings,
    IS_RUNNING_ON_CLOUD,
)

from .db import (
    get_db_engine,
    install_db_engine,
    check_db_connection,
    reset_db_engine,
    get_connection_pool_status,
)

from .auth import AuthManager

__all__ = [
    'AuthManager',

    'config',
    'Config',
    'StoreSettings',
    'PlanningSettings',
    'IS_RUNNING_ON_CLOUD',

    'get_db_engine',
    'install_db_engine',
    'check_db_connection',
    'reset_db_engine',
    'get_connection_pool_status',
]

__version__ = '1.0.0'
