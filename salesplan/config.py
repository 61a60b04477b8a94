# salesplan/config.py
"""
Configuration for the Sales Planning app

Version: 1.0.0
- Streamlit Cloud: [DB_CONFIG] / [APP] sections of secrets.toml
- Local: environment variables, optionally from a .env file
- DB_URL overrides the MySQL settings (e.g. sqlite:///planning.db for a
  local demo store)
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

Getter = Callable[[str, Any], Any]

DEFAULT_DATABASE = "sales_planning"


def is_running_on_streamlit_cloud() -> bool:
    """True when secrets.toml provides settings."""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ==================== SETTINGS MODELS ====================

@dataclass
class StoreSettings:
    """Where planning records live."""
    host: str = ""
    port: int = 3306
    user: str = ""
    password: str = ""
    database: str = DEFAULT_DATABASE
    url: Optional[str] = None
    pool_size: int = 5
    pool_recycle: int = 3600

    def is_complete(self) -> bool:
        return bool(self.url) or all([self.host, self.user, self.password])

    def describe(self) -> str:
        """Location without credentials, for logs and the status panel."""
        if self.url:
            return self.url.split('@')[-1] if '@' in self.url else self.url
        return f"{self.host}:{self.port}/{self.database}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'url': self.url,
        }


@dataclass
class PlanningSettings:
    session_timeout_hours: int = 8
    first_plan_year: int = 2024
    plan_year_count: int = 7
    features: Dict[str, bool] = field(default_factory=lambda: {
        'USER_MANAGEMENT': True,
        'DEBUG_MODE': False,
    })

    @property
    def plan_years(self) -> List[int]:
        return list(range(self.first_plan_year, self.first_plan_year + self.plan_year_count))


def load_store_settings(get: Getter) -> StoreSettings:
    return StoreSettings(
        host=get("DB_HOST", "") or "",
        port=_as_int(get("DB_PORT", 3306), 3306),
        user=get("DB_USER", "") or "",
        password=get("DB_PASSWORD", "") or "",
        database=get("DB_NAME", None) or get("DB_DATABASE", None) or DEFAULT_DATABASE,
        url=get("DB_URL", None) or None,
        pool_size=_as_int(get("DB_POOL_SIZE", 5), 5),
        pool_recycle=_as_int(get("DB_POOL_RECYCLE", 3600), 3600),
    )


def load_planning_settings(get: Getter) -> PlanningSettings:
    defaults = PlanningSettings()
    return PlanningSettings(
        session_timeout_hours=_as_int(get("SESSION_TIMEOUT_HOURS", None), defaults.session_timeout_hours),
        first_plan_year=_as_int(get("FIRST_PLAN_YEAR", None), defaults.first_plan_year),
        plan_year_count=_as_int(get("PLAN_YEAR_COUNT", None), defaults.plan_year_count),
        features={
            name: _as_bool(get(f"ENABLE_{name}", None), enabled)
            for name, enabled in defaults.features.items()
        },
    )


# ==================== SOURCES ====================

def _env_getter() -> Getter:
    for env_path in (Path.cwd() / ".env", Path(__file__).parent.parent / ".env"):
        if env_path.exists():
            load_dotenv(env_path)
            logger.info(f"Loaded .env from: {env_path}")
            break
    return os.getenv


def _secrets_getter() -> Getter:
    import streamlit as st

    # secrets.toml keeps DB settings lower-case under [DB_CONFIG]
    db_section = {f"DB_{k.upper()}": v for k, v in st.secrets.get("DB_CONFIG", {}).items()}
    app_section = dict(st.secrets.get("APP", {}))

    def get(key: str, default: Any = None) -> Any:
        if key == "DB_NAME" and "DB_DATABASE" in db_section:
            return db_section["DB_DATABASE"]
        for section in (db_section, app_section):
            if key in section:
                return section[key]
        return default

    return get


class Config:
    """
    Process-wide settings.

    Usage:
        from salesplan.config import config

        years = config.get_plan_years()
        if config.is_feature_enabled("USER_MANAGEMENT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        get = _secrets_getter() if self.is_cloud else _env_getter()

        self.store = load_store_settings(get)
        if not self.store.is_complete():
            logger.error("Missing required database configuration")
            raise ValueError("Missing required database configuration. Set DB_HOST/DB_USER/DB_PASSWORD or DB_URL.")

        self.planning = load_planning_settings(get)
        self._initialized = True

        logger.info(
            f"{'☁️ Streamlit Cloud' if self.is_cloud else '💻 Local'} config: "
            f"store={self.store.describe()}, plan years "
            f"{self.planning.plan_years[0]}-{self.planning.plan_years[-1]}"
        )

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        return self.store.to_dict()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        return self.app_config.get(key, default)

    def get_plan_years(self) -> List[int]:
        """Years offered by every year selector."""
        return self.planning.plan_years

    def is_feature_enabled(self, feature: str) -> bool:
        return self.planning.features.get(feature.upper(), True)

    @property
    def app_config(self) -> Dict[str, Any]:
        settings = {
            "SESSION_TIMEOUT_HOURS": self.planning.session_timeout_hours,
            "FIRST_PLAN_YEAR": self.planning.first_plan_year,
            "PLAN_YEAR_COUNT": self.planning.plan_year_count,
            "DB_POOL_SIZE": self.store.pool_size,
            "DB_POOL_RECYCLE": self.store.pool_recycle,
        }
        settings.update({f"ENABLE_{k}": v for k, v in self.planning.features.items()})
        return settings


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud

__all__ = [
    'config',
    'Config',
    'StoreSettings',
    'PlanningSettings',
    'load_store_settings',
    'load_planning_settings',
    'IS_RUNNING_ON_CLOUD',
]
