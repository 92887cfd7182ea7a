from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from linkedin_login.config import Settings, settings as default_settings
from linkedin_login.utils.humanize import random_user_agent, random_viewport

logger = logging.getLogger(__name__)

# Stealth script to avoid bot detection
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
window.chrome = {runtime: {}};
"""


@dataclass
class BrowserSession:
    """A launched browser with its current context and page.

    ``close`` never raises: a failed close is logged so it cannot hide the
    login outcome.
    """

    browser: Browser
    context: Optional[BrowserContext] = None
    page: Optional[Page] = None
    headless: bool = True
    playwright: Optional[Playwright] = None

    async def close(self) -> None:
        try:
            await self.browser.close()
        except Exception as e:
            logger.warning(f"Error closing browser: {e}")
        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self.playwright = None


class BrowserLauncher:
    """Launches Chromium and builds randomized contexts."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    async def launch(self, headless: bool) -> BrowserSession:
        logger.info(f"Launching browser ({'headless' if headless else 'visible'})...")
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=headless,
                slow_mo=self.config.browser_slow_mo,
                args=list(self.config.browser_launch_args),
            )
        except Exception:
            await playwright.stop()
            raise
        return BrowserSession(browser=browser, headless=headless, playwright=playwright)

    def context_options(self) -> dict[str, Any]:
        return {
            "user_agent": random_user_agent(self.config.user_agent_versions),
            "viewport": random_viewport(self.config.viewport_width_range, self.config.viewport_height_range),
            "locale": self.config.locale,
            "timezone_id": self.config.timezone_id,
            "permissions": ["geolocation"],
            "ignore_https_errors": True,
        }

    async def new_page(self, session: BrowserSession, storage_state: Optional[dict] = None) -> Page:
        """Replace the session's context with a new one and open a page in it."""
        if session.context is not None:
            try:
                await session.context.close()
            except Exception as e:
                logger.warning(f"Error closing previous context: {e}")

        context_args = self.context_options()
        context = None
        if storage_state is not None:
            try:
                context = await session.browser.new_context(storage_state=storage_state, **context_args)
                logger.info("Context created with stored session state.")
            except Exception as e:
                logger.warning(f"Failed to create context with stored state: {e}. Starting fresh.")
        if context is None:
            context = await session.browser.new_context(**context_args)

        page = await context.new_page()
        await page.add_init_script(STEALTH_SCRIPT)
        page.set_default_timeout(self.config.action_timeout_ms)

        session.context = context
        session.page = page
        return page
