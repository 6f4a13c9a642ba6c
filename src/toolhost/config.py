# config.py
# Environment-driven settings and logging setup.
#
# Values come from the process environment, optionally seeded from a .env
# file. Nothing here reads the environment at import time.

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from rich.logging import RichHandler

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime switches for the host adapter and the dev console."""

    environment: str = Field(default="development", description="'production' silences dev notices.")
    log_level: str = Field(default="WARNING")
    force_substitute: bool = Field(
        default=False, description="Ignore an attached native host and use the substitute."
    )
    interactive: bool = Field(
        default=True, description="Dev console asks a human instead of auto-answering."
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def load_settings(dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv()
    return Settings(
        environment=os.getenv("TOOLHOST_ENV", "development"),
        log_level=os.getenv("TOOLHOST_LOG_LEVEL", "WARNING"),
        force_substitute=_flag("TOOLHOST_FORCE_SUBSTITUTE", False),
        interactive=_flag("TOOLHOST_INTERACTIVE", True),
    )


def configure_logging(level: str = "WARNING") -> None:
    """Route the toolhost loggers through rich."""
    logger = logging.getLogger("toolhost")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(show_path=False, rich_tracebacks=True))
    logger.propagate = False
