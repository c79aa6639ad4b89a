"""Browser session ownership and the primitive actions the lookup steps use."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from arba_lookup.config import LookupSettings
from arba_lookup.errors import NavigationTimeoutError, SelectorTimeoutError, SessionLaunchError
from arba_lookup.logging_config import get_logger
from arba_lookup.playwright_env import apply_wait_policy, close_browser, launch_browser

LOGGER = get_logger(__name__)

# The portal wires navigation onto arbitrary elements; clearing the inline
# handlers keeps the synthetic map click from leaving the page.
STRIP_CLICK_HANDLERS_JS = """
() => {
  let cleared = 0;
  document.querySelectorAll('*').forEach((el) => {
    if (el.onclick || el.onmousedown) {
      cleared += 1;
    }
    el.onclick = null;
    el.onmousedown = null;
  });
  return cleared;
}
"""


class PortalSession:
    """One Chromium page bound to a single lookup attempt."""

    def __init__(
        self,
        page: Page,
        settings: LookupSettings,
        *,
        browser: Browser | None = None,
        playwright: Playwright | None = None,
    ) -> None:
        self.page = page
        self.settings = settings
        self._browser = browser
        self._playwright = playwright
        self.closed = False

    async def navigate(self, url: str | None = None) -> None:
        """Load the portal, wait for network idle and neutralise click handlers."""

        target = url or self.settings.portal_url
        try:
            await self.page.goto(
                target,
                wait_until="networkidle",
                timeout=self.settings.navigation_timeout_ms,
            )
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError("Portal did not reach network idle", url=target) from exc
        except PlaywrightError as exc:
            raise NavigationTimeoutError(f"Portal unreachable: {exc}", url=target) from exc

        await self.settle("after_navigate")
        cleared = await self.evaluate(STRIP_CLICK_HANDLERS_JS)
        LOGGER.debug("Cleared inline click handlers | elements=%s", cleared)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            return await self.page.evaluate(script)
        return await self.page.evaluate(script, arg)

    async def exists(self, selector: str) -> bool:
        return await self.page.query_selector(selector) is not None

    async def type(self, selector: str, text: str) -> None:
        # Key-by-key typing fires the autocomplete's input listeners.
        await self.page.locator(selector).press_sequentially(
            text, delay=self.settings.type_delay_ms
        )

    async def click(self, selector: str) -> None:
        await self.page.click(selector)

    async def click_at(self, x: float, y: float) -> None:
        await self.page.mouse.click(x, y)

    async def press(self, key: str) -> None:
        await self.page.keyboard.press(key)

    async def wait_visible(self, selector: str, timeout_ms: int) -> None:
        await self._wait(selector, "visible", timeout_ms)

    async def wait_attached(self, selector: str, timeout_ms: int) -> None:
        await self._wait(selector, "attached", timeout_ms)

    async def _wait(self, selector: str, state: str, timeout_ms: int) -> None:
        try:
            await self.page.wait_for_selector(selector, state=state, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise SelectorTimeoutError(
                f"Element not {state} after {timeout_ms} ms", selector=selector
            ) from exc

    async def settle(self, window: str) -> None:
        """Sleep for the named settle window, scaled by the wait policy."""

        delay_ms = apply_wait_policy(self.settings.settle_for(window))
        if delay_ms <= 0:
            return
        LOGGER.debug("Settling | window=%s ms=%d", window, delay_ms)
        await asyncio.sleep(delay_ms / 1000)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await close_browser(self._browser, self._playwright)
        LOGGER.debug("Browser session closed")


async def launch_portal_session(settings: LookupSettings) -> PortalSession:
    """Start Playwright, launch Chromium and open a blank page."""

    playwright: Playwright | None = None
    browser: Browser | None = None
    try:
        playwright = await async_playwright().start()
        browser = await launch_browser(playwright)
        page = await browser.new_page()
    except Exception as exc:
        await close_browser(browser, playwright)
        raise SessionLaunchError(f"Failed to launch browser session: {exc}") from exc
    return PortalSession(page, settings, browser=browser, playwright=playwright)


Launcher = Callable[[LookupSettings], Awaitable[Any]]


@asynccontextmanager
async def open_session(
    settings: LookupSettings,
    launch: Launcher = launch_portal_session,
) -> AsyncIterator[Any]:
    """Yield a fresh session and close it on every exit path."""

    session = await launch(settings)
    try:
        yield session
    finally:
        await session.close()
