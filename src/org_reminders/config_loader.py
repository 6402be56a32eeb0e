"""YAML configuration files for org-reminders.

Files are looked up by convention, highest precedence first:

1. the path in ``ORG_REMINDERS_CONFIG``
2. ``.org_reminders/config.yml`` in the working directory
3. ``~/.config/org_reminders/config.yml``

Top-level sections of a higher file replace the same sections of a lower
one. A value may pull in another YAML file with ``!include path`` (relative
to the including file) and reference the environment with ``${VAR}`` or
``${VAR:-default}``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ORG_REMINDERS_CONFIG"
PROJECT_CONFIG = Path(".org_reminders") / "config.yml"
GLOBAL_CONFIG = Path(".config") / "org_reminders" / "config.yml"

_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


# ---------------------------------------------------------------------------
# Environment references
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable expands to its default, or to nothing.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1)) or m.group(2) or "", value
    )


def _interpolate_recursive(node: Any) -> Any:
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, list):
        return [_interpolate_recursive(v) for v in node]
    if isinstance(node, dict):
        return {k: _interpolate_recursive(v) for k, v in node.items()}
    return node


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include``.

    ``yaml.SafeLoader`` itself is left untouched. ``_include_stack`` holds
    the files currently being loaded, outermost first.
    """

    _include_stack: list[Path]


def _include_constructor(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    including = Path(loader.name).resolve()
    target = Path(loader.construct_scalar(node))
    if not target.is_absolute():
        target = including.parent / target
    target = target.resolve()

    stack = loader._include_stack
    if target in stack:
        chain = " -> ".join(str(p) for p in (*stack, target))
        raise ValueError(f"Circular include detected: {chain}")
    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {including})"
        )
    return _load_yaml_with_includes(target, _include_stack=[*stack, target])


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path, *, _include_stack: list[Path] | None = None
) -> Any:
    path = path.resolve()
    with open(path, encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack or [path]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first."""
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    candidates.append(Path.cwd() / PROJECT_CONFIG)
    candidates.append(Path.home() / GLOBAL_CONFIG)
    return [p for p in candidates if p.exists()]


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one dict.

    Lower-precedence files are applied first, so a section in a higher file
    replaces the whole section below it. Environment references are expanded
    after the merge. No files means ``{}``.
    """
    paths = discover_config_files()
    if not paths:
        logger.debug("No config files found")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_with_includes(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise
        if data is None:
            continue
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring config file %s: top level is a %s, not a mapping",
                path,
                type(data).__name__,
            )
            continue
        merged.update(data)

    return _interpolate_recursive(merged)


# ---------------------------------------------------------------------------
# Starter file
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# org-reminders configuration
#
# Settings can also be set via environment variables:
#   ORG_REMINDERS_FILE, ORG_REMINDERS_STORE, ORG_REMINDERS_INTERVAL,
#   ORG_REMINDERS_DEBUG
#
# sync:
#   org_file: ~/org/reminders.org
#   mode: once            # once | all | auto
#   interval: 60          # seconds between automatic passes
#   poll_interval: 1      # seconds between file checks
#
# store:
#   backend: json         # json | memory
#   path: ~/.local/share/org_reminders/store.json
#
# logging:
#   level: INFO
#   file: null
#   format: text          # text | json
"""


def resolve_config_path() -> Path:
    """The config file in effect, or the project path when there is none.

    Nothing is created; see ``ensure_config()``.
    """
    existing = discover_config_files()
    return existing[0] if existing else Path.cwd() / PROJECT_CONFIG


def ensure_config(target: Path | None = None) -> Path:
    """Return the config file in effect, writing a starter file if needed.

    Args:
        target: Where to create the starter file. Defaults to
            ``resolve_config_path()``.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    path = target or resolve_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path
