"""
Runtime settings for netroute.

Environment flags (all optional):

    NETROUTE_LOG_LEVEL = "DEBUG" | "INFO" | "WARNING" | "ERROR"
        Default: "WARNING". Level of the ``netroute`` logger.

    NETROUTE_ROUTER_MARKER = str
        Default: "Router". Diagram files mark a system as a router when its
        name contains this text.

    NETROUTE_COMPUTER_PREFIX = str
        Default: "PC_". Name prefix for computers created with add-computer.

    NETROUTE_SPY = "0" | "1"
        Default: "0". Entry/exit tracing on ``netroute.spy`` (see codebase.debug).

A YAML settings file may override any of the fields above by their lowercase
names (``log_level``, ``router_marker``, ``computer_prefix``).
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class Settings:
    log_level: str = "WARNING"
    router_marker: str = "Router"
    computer_prefix: str = "PC_"

    @classmethod
    def from_env(cls) -> "Settings":
        level = os.getenv("NETROUTE_LOG_LEVEL", "WARNING").strip().upper()
        if level not in _LEVELS:
            level = "WARNING"
        marker = os.getenv("NETROUTE_ROUTER_MARKER", "Router").strip() or "Router"
        prefix = os.getenv("NETROUTE_COMPUTER_PREFIX", "PC_").strip() or "PC_"
        return cls(log_level=level, router_marker=marker, computer_prefix=prefix)


def load_settings(path: Path | str | None = None) -> Settings:
    """Settings from the environment, overlaid by an optional YAML file.

    A missing file is not an error; the environment/defaults are used.
    """
    settings = Settings.from_env()
    if not path:
        return settings

    p = Path(path)
    if not p.exists():
        return settings

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping in {p}, got {type(data).__name__}")

    known = {f.name for f in fields(Settings)}
    overrides = {k: str(v) for k, v in data.items() if k in known and v is not None}
    if "log_level" in overrides:
        overrides["log_level"] = overrides["log_level"].upper()
        if overrides["log_level"] not in _LEVELS:
            raise ValueError(f"Unknown log_level in {p}: {data['log_level']!r}")
    return replace(settings, **overrides)
