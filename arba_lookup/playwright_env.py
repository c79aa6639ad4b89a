"""Centralised helpers for Playwright launch configuration."""

from __future__ import annotations

import os
import shlex
from typing import Any

from playwright.async_api import Browser, Playwright

from arba_lookup.logging_config import get_logger

LOGGER = get_logger(__name__)

_FALSE_VALUES = {"0", "false", "no", "off"}

# Older deployments exported the Puppeteer variable; both are honoured.
EXECUTABLE_ENV_VARS = ("ARBA_BROWSER_EXECUTABLE_PATH", "PUPPETEER_EXECUTABLE_PATH")


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def headless_enabled() -> bool:
    """Return True if Chromium should run headless (the default on servers)."""

    return _as_bool(os.getenv("ARBA_HEADLESS"), True)


def executable_path() -> str | None:
    """Return the browser executable override, if one is configured."""

    for name in EXECUTABLE_ENV_VARS:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def slow_mo_ms() -> int | None:
    value = _env_int("ARBA_SLOW_MO_MS", 0)
    return value if value > 0 else None


def launch_kwargs() -> dict[str, Any]:
    """Return kwargs passed to chromium.launch.

    The sandbox flags are always present: containers and restricted hosts
    rarely provide the user namespaces Chromium's sandbox needs.
    """

    args = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
    ]
    extra_args = os.getenv("ARBA_CHROMIUM_ARGS")
    if extra_args:
        args.extend(shlex.split(extra_args))

    kwargs: dict[str, Any] = {
        "headless": headless_enabled(),
        "args": args,
    }

    path = executable_path()
    if path:
        kwargs["executable_path"] = path

    slow_mo = slow_mo_ms()
    if slow_mo:
        kwargs["slow_mo"] = slow_mo

    return kwargs


async def launch_browser(playwright: Playwright) -> Browser:
    """Launch Chromium according to env overrides."""

    kwargs = launch_kwargs()
    LOGGER.debug(
        "Launching Chromium | headless=%s executable=%s",
        kwargs["headless"],
        kwargs.get("executable_path", "<bundled>"),
    )
    return await playwright.chromium.launch(**kwargs)


async def close_browser(browser: Browser | None, playwright: Playwright | None = None) -> None:
    """Close the browser and stop the Playwright driver without raising."""

    if browser is not None:
        try:
            await browser.close()
        except Exception as exc:
            LOGGER.debug("Browser close failed: %s", exc)

    if playwright is not None:
        try:
            await playwright.stop()
        except Exception as exc:
            LOGGER.debug("Playwright stop failed: %s", exc)


def wait_multiplier() -> float:
    """Global scale applied to every settle window."""

    return max(_env_float("ARBA_WAIT_MULTIPLIER", 1.0), 0.0)


def apply_wait_policy(delay_ms: int) -> int:
    """Apply the global multiplier to a settle window, in milliseconds."""

    if delay_ms <= 0:
        return 0
    return int(delay_ms * wait_multiplier())
