# bookstock/config.py
import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from the environment with local defaults."""
    database_url: str = "sqlite:///bookstock.db"
    user_id: str = "local"
    aladin_ttb_key: str = ""
    aladin_api_url: str = "http://www.aladin.co.kr/ttb/api/ItemSearch.aspx"
    library_checker_url: str = "https://library-checker.byungwook-an.workers.dev"
    request_timeout: float = 30.0
    batch_size: int = 10
    batch_delay: float = 1.0
    pause_poll_interval: float = 0.5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            user_id=os.getenv("BOOKSTOCK_USER_ID", defaults.user_id),
            aladin_ttb_key=os.getenv("ALADIN_TTB_KEY", defaults.aladin_ttb_key),
            aladin_api_url=os.getenv("ALADIN_API_URL", defaults.aladin_api_url),
            library_checker_url=os.getenv("LIBRARY_CHECKER_URL", defaults.library_checker_url),
            request_timeout=_env_float("BOOKSTOCK_REQUEST_TIMEOUT", defaults.request_timeout),
            batch_size=_env_int("BOOKSTOCK_BATCH_SIZE", defaults.batch_size),
            batch_delay=_env_float("BOOKSTOCK_BATCH_DELAY", defaults.batch_delay),
            pause_poll_interval=_env_float("BOOKSTOCK_PAUSE_POLL", defaults.pause_poll_interval),
            log_level=os.getenv("BOOKSTOCK_LOG_LEVEL", defaults.log_level),
        )
