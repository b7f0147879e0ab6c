"""
Application settings, read from BTEC_* environment variables or a .env file.

- BTEC_APP_TITLE   page title for the Streamlit app
- BTEC_LOG_LEVEL   root log level (DEBUG, INFO, ...)
- BTEC_SCHEME_PATH optional JSON grading scheme; the built-in BTEC tables are used when unset
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .reference_tables import GradingScheme, default_scheme, load_scheme

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    APP_TITLE: str = "BTEC Grade Calculator"
    LOG_LEVEL: str = "INFO"
    SCHEME_PATH: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="BTEC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _check_level(cls, v):
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {v!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("btec_calc").setLevel(level)


def active_scheme(settings: Optional[Settings] = None) -> GradingScheme:
    settings = settings or get_settings()
    if settings.SCHEME_PATH is None:
        return default_scheme()
    return load_scheme(settings.SCHEME_PATH)
