"""Runtime configuration for org-reminders.

Reads settings from CLI args, environment variables, .env files, and YAML
config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    ORG_REMINDERS_FILE: Org file to synchronize.
    ORG_REMINDERS_STORE: JSON store file path.
    ORG_REMINDERS_INTERVAL: Seconds between automatic passes.
    ORG_REMINDERS_DEBUG: Enable debug logging.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .config_schema import UnifiedConfig

logger = logging.getLogger(__name__)

SYNC_MODES = ("once", "all", "auto")
STORE_BACKENDS = ("json", "memory")


@dataclass
class Config:
    org_file: Path
    store_backend: str = "json"
    store_path: Path | None = None
    mode: str = "once"
    interval: float = 60.0
    poll_interval: float = 1.0
    dry_run: bool = False
    debug: bool = False
    log_file: str | None = None
    log_format: str = "text"


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Raises:
        ValueError: On an unknown mode or backend, a non-positive interval,
            or a json backend without a store path.
    """
    if config.mode not in SYNC_MODES:
        raise ValueError(
            f"Invalid sync type '{config.mode}': "
            f"must be one of {', '.join(SYNC_MODES)}"
        )
    if config.store_backend not in STORE_BACKENDS:
        raise ValueError(
            f"Invalid store backend '{config.store_backend}': "
            f"must be one of {', '.join(STORE_BACKENDS)}"
        )
    if config.interval <= 0:
        raise ValueError(
            f"Invalid interval '{config.interval}': must be positive"
        )
    if config.store_backend == "json" and config.store_path is None:
        raise ValueError(
            "Store path not found. Set ORG_REMINDERS_STORE or add "
            "'store.path' to config.yml."
        )
    if config.store_backend == "memory" and config.mode != "once":
        logger.warning(
            "The memory store starts empty on every run; "
            "use it for trials only."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def load_config(
    org_file: str | None = None,
    store: str | None = None,
    mode: str | None = None,
    dry_run: bool = False,
    debug: bool = False,
    log_file: str | None = None,
    unified: UnifiedConfig | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > YAML config > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        org_file: Org file path from the command line.
        store: Store file path from the command line.
        mode: Sync type from the command line.
        dry_run: Dry-run flag.
        debug: Debug flag.
        log_file: Log file from the command line.
        unified: Parsed YAML configuration.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If no Org file is configured or a value is invalid.
    """
    yaml_cfg = unified or UnifiedConfig()

    path = org_file or os.getenv("ORG_REMINDERS_FILE") or yaml_cfg.sync.org_file
    if not path:
        raise ValueError(
            "Org file not found. Pass FILE on the command line, set "
            "ORG_REMINDERS_FILE, or add 'sync.org_file' to config.yml."
        )

    store_path = (
        store or os.getenv("ORG_REMINDERS_STORE") or yaml_cfg.store.path
    )

    interval_raw = os.getenv("ORG_REMINDERS_INTERVAL")
    if interval_raw is not None:
        try:
            interval = float(interval_raw)
        except ValueError:
            raise ValueError(
                f"Invalid ORG_REMINDERS_INTERVAL '{interval_raw}': "
                "must be a number of seconds"
            ) from None
    else:
        interval = yaml_cfg.sync.interval

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("ORG_REMINDERS_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = yaml_cfg.logging.level.upper() == "DEBUG"

    config = Config(
        org_file=Path(path).expanduser(),
        store_backend=yaml_cfg.store.backend,
        store_path=Path(store_path).expanduser() if store_path else None,
        mode=mode or yaml_cfg.sync.mode,
        interval=interval,
        poll_interval=yaml_cfg.sync.poll_interval,
        dry_run=dry_run or yaml_cfg.sync.dry_run,
        debug=final_debug,
        log_file=log_file or yaml_cfg.logging.file,
        log_format=yaml_cfg.logging.format,
    )

    validate_config(config)

    return config
