# File: src/parkledger/config.py
"""
Engine configuration and logging setup

Settings are read from environment variables so the same code runs against
the in-memory store in tests and a SQL database in deployment.
"""

from decimal import Decimal
from typing import Optional
import logging
import os
import sys

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain.models import DEFAULT_CURRENCY, DEFAULT_HOURLY_RATE


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_TRUTHY = {"1", "true", "yes", "on"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class EngineSettings(BaseModel):
    """Runtime settings for the parking engine"""

    model_config = ConfigDict(frozen=True)

    store_backend: str = Field(default="memory", pattern="^(memory|sqlalchemy)$")
    database_url: str = Field(default="sqlite:///./parking.db")
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    default_currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=3)
    bill_at_entry_rate: bool = False
    default_hourly_rate: Decimal = Field(default=DEFAULT_HOURLY_RATE, ge=0)
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @field_validator('default_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('log_level')
    @classmethod
    def known_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return v

    @classmethod
    def from_env(cls) -> 'EngineSettings':
        """Build settings from PARKING_* environment variables"""
        return cls(
            store_backend=os.getenv("PARKING_STORE_BACKEND", "memory"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./parking.db"),
            store_timeout_seconds=float(os.getenv("PARKING_STORE_TIMEOUT", "5.0")),
            default_currency=os.getenv("PARKING_DEFAULT_CURRENCY", DEFAULT_CURRENCY),
            bill_at_entry_rate=os.getenv("PARKING_BILL_AT_ENTRY_RATE", "false").lower() in _TRUTHY,
            default_hourly_rate=os.getenv("PARKING_DEFAULT_HOURLY_RATE", str(DEFAULT_HOURLY_RATE)),
            log_level=os.getenv("PARKING_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("PARKING_LOG_DIR") or None
        )


def setup_logging(settings: Optional[EngineSettings] = None) -> logging.Logger:
    """Setup application logging configuration"""
    settings = settings or EngineSettings.from_env()

    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(settings.log_dir, 'parking_engine.log')))

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=LOG_FORMAT,
        handlers=handlers
    )
    return logging.getLogger("parkledger")
