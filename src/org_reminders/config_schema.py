"""Unified configuration schema for org_reminders.

Defines Pydantic models for the YAML config structure with dedicated
sections for sync behaviour, the reminders store and logging.

Usage:
    from org_reminders.config_schema import UnifiedConfig, build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = "~/.local/share/org_reminders/store.json"


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SyncConfig(BaseModel):
    """Sync behaviour.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    org_file: str | None = Field(default=None, description="Org file path")
    mode: Literal["once", "all", "auto"] = Field(
        default="once", description="Sync type"
    )
    interval: float = Field(
        default=60.0,
        gt=0,
        le=86400,
        description="Seconds between automatic passes",
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0,
        le=3600,
        description="Seconds between Org file change checks",
    )
    dry_run: bool = Field(
        default=False, description="Report actions without applying them"
    )

    model_config = {"frozen": True}


class StoreConfig(BaseModel):
    """Reminders store backend."""

    backend: Literal["json", "memory"] = Field(
        default="json", description="Store backend"
    )
    path: str = Field(
        default=DEFAULT_STORE_PATH, description="JSON store file path"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log line format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    sync: SyncConfig = Field(default_factory=SyncConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
