"""Configuration loading for the lookup service."""

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

import arba_lookup.selectors as selectors
from arba_lookup.logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yml"

# Settle windows are heuristics: the portal emits no completion event after
# these actions, so the lookup waits a fixed time before reading the DOM.
DEFAULT_SETTLE_MS: dict[str, int] = {
    "after_navigate": 1000,
    "after_activation": 1000,
    "after_search": 5000,
    "after_map_click": 10000,
    "panel_render": 3000,
    "after_page": 2000,
}

DEFAULT_CONFIG: dict[str, Any] = {
    "portal": {
        "url": selectors.PORTAL_URL,
    },
    "timeouts_ms": {
        "navigation": 60000,
        "activation": 15000,
        "suggestion": 30000,
        "panel": 60000,
        "pager": 4000,
    },
    "settle_ms": dict(DEFAULT_SETTLE_MS),
    "typing": {
        "delay_ms": 0,
    },
    "api": {
        "lookup_timeout_s": 300,
        "cors_origins": ["*"],
    },
}


@dataclass(frozen=True)
class LookupSettings:
    """Tunable parameters for one lookup session."""

    portal_url: str = selectors.PORTAL_URL
    navigation_timeout_ms: int = 60000
    activation_timeout_ms: int = 15000
    suggestion_timeout_ms: int = 30000
    panel_timeout_ms: int = 60000
    pager_timeout_ms: int = 4000
    type_delay_ms: int = 0
    # Stored as sorted (name, ms) pairs so the settings stay hashable.
    settle_ms: tuple[tuple[str, int], ...] = tuple(sorted(DEFAULT_SETTLE_MS.items()))

    def __post_init__(self) -> None:
        windows = self.settle_ms
        if isinstance(windows, Mapping):
            windows = windows.items()
        object.__setattr__(self, "settle_ms", tuple(sorted((str(k), int(v)) for k, v in windows)))

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "LookupSettings":
        timeouts = config.get("timeouts_ms") or {}
        settle = dict(DEFAULT_SETTLE_MS)
        for name, value in (config.get("settle_ms") or {}).items():
            settle[name] = _as_ms(value, settle.get(name, 0))
        return cls(
            portal_url=str((config.get("portal") or {}).get("url") or selectors.PORTAL_URL),
            navigation_timeout_ms=_as_ms(timeouts.get("navigation"), 60000),
            activation_timeout_ms=_as_ms(timeouts.get("activation"), 15000),
            suggestion_timeout_ms=_as_ms(timeouts.get("suggestion"), 30000),
            panel_timeout_ms=_as_ms(timeouts.get("panel"), 60000),
            pager_timeout_ms=_as_ms(timeouts.get("pager"), 4000),
            type_delay_ms=_as_ms((config.get("typing") or {}).get("delay_ms"), 0),
            settle_ms=settle,
        )

    @classmethod
    def instant(cls, **overrides: Any) -> "LookupSettings":
        """Settings with every settle window and typing delay set to zero."""

        params: dict[str, Any] = {
            "settle_ms": {name: 0 for name in DEFAULT_SETTLE_MS},
            "type_delay_ms": 0,
        }
        params.update(overrides)
        return cls(**params)

    def settle_for(self, name: str) -> int:
        return dict(self.settle_ms).get(name, 0)


def _as_ms(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        LOGGER.warning("Ignoring non-numeric duration %r; using %d", value, default)
        return default
    return max(parsed, 0)


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def resolve_config_path(path_value: str | Path | None = None) -> Path:
    value = path_value or os.getenv("ARBA_CONFIG")
    if not value:
        return DEFAULT_CONFIG_PATH
    path = Path(value)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    config_path = resolve_config_path(path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    else:
        LOGGER.warning("Configuration file %s not found; using defaults", config_path)
        data = {}

    if not isinstance(data, dict):
        raise RuntimeError(f"Configuration file {config_path} must contain a mapping")

    return _deep_merge(DEFAULT_CONFIG, data) if data else deepcopy(DEFAULT_CONFIG)


def load_settings(path: str | Path | None = None) -> LookupSettings:
    return LookupSettings.from_config(load_config(path))
