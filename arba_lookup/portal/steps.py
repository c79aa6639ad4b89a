"""Interaction steps that take the portal from page load to an open parcel panel."""

from __future__ import annotations

from typing import Any

import arba_lookup.selectors as selectors
from arba_lookup.logging_config import get_logger
from arba_lookup.models import Coordinate

LOGGER = get_logger(__name__)

_INFO_ACTIVE_JS = "(selector) => !!document.querySelector(selector)"

# A bare click() does not reach the OpenLayers control handlers; the full
# press/release/click sequence does.
_ACTIVATE_INFO_JS = """
(selector) => {
  const btn = document.querySelector(selector);
  if (!btn) {
    return false;
  }
  btn.style.pointerEvents = 'auto';
  ['mousedown', 'mouseup', 'click'].forEach((type) => {
    btn.dispatchEvent(new MouseEvent(type, { bubbles: true, cancelable: true, view: window }));
  });
  return true;
}
"""

_VIEWPORT_JS = """
() => ({
  width: document.documentElement.clientWidth,
  height: document.documentElement.clientHeight,
})
"""


async def ensure_info_mode(session: Any) -> bool:
    """Switch the portal's "Información" tool on if it is off.

    Returns ``True`` when the control was toggled and ``False`` when the tool
    was already active or the inactive control could not be found.
    """

    settings = session.settings
    await session.wait_attached(selectors.INFO_BUTTON_ANY, settings.activation_timeout_ms)

    if await session.evaluate(_INFO_ACTIVE_JS, selectors.INFO_BUTTON_ACTIVE):
        LOGGER.debug("Info mode already active")
        return False

    toggled = await session.evaluate(_ACTIVATE_INFO_JS, selectors.INFO_BUTTON_INACTIVE)
    if not toggled:
        LOGGER.warning("Info control not found in inactive state; continuing")
        return False

    await session.settle("after_activation")
    LOGGER.info("Info mode activated")
    return True


async def search_coordinate(session: Any, coordinate: Coordinate) -> str:
    """Type the coordinate into the search box and select the resolved location.

    Returns ``"suggestion"`` when an autocomplete entry was picked, otherwise
    ``"enter"`` after confirming with the keyboard.
    """

    query = coordinate.as_query()
    await session.type(selectors.SEARCH_INPUT, query)

    if await session.exists(selectors.SEARCH_SUGGESTION):
        await session.wait_visible(
            selectors.SEARCH_SUGGESTION, session.settings.suggestion_timeout_ms
        )
        await session.click(selectors.SEARCH_SUGGESTION)
        LOGGER.info("Search resolved via suggestion | query=%s", query)
        return "suggestion"

    await session.press("Enter")
    LOGGER.info("Search confirmed with Enter | query=%s", query)
    return "enter"


async def click_map_center(session: Any) -> tuple[float, float]:
    """Click the middle of the viewport, where the portal pans the search pin."""

    await session.settle("after_search")
    viewport = await session.evaluate(_VIEWPORT_JS) or {}
    x = float(viewport.get("width") or 0) / 2
    y = float(viewport.get("height") or 0) / 2
    await session.click_at(x, y)
    LOGGER.info("Clicked map centre | x=%.1f y=%.1f", x, y)
    return x, y


async def wait_for_panel(session: Any) -> None:
    """Wait until the parcel information panel has rendered its body."""

    settings = session.settings
    await session.settle("after_map_click")
    await session.wait_visible(selectors.PANEL_BODY_DIV, settings.panel_timeout_ms)
    await session.settle("panel_render")
