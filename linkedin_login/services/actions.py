from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from playwright.async_api import Page, Error as PlaywrightError

from linkedin_login.config import Settings, settings as default_settings
from linkedin_login.utils.humanize import random_delay

logger = logging.getLogger(__name__)


def _pause(config: Settings, scale: float = 1.0):
    return random_delay(config.action_delay_min * scale, config.action_delay_max * scale)


async def is_logged_in(page: Page, config: Optional[Settings] = None, timeout_ms: Optional[int] = None) -> bool:
    """Probe for any of the logged-in indicator elements."""
    config = config or default_settings
    selector = ", ".join(config.validation_selectors)
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms if timeout_ms is not None else config.liveness_timeout_ms)
        return True
    except PlaywrightError:
        return False


async def wait_for_liveness(page: Page, timeout_seconds: float, config: Optional[Settings] = None) -> bool:
    """Poll the logged-in indicators until one shows up or ``timeout_seconds`` elapses."""
    config = config or default_settings
    deadline = time.monotonic() + timeout_seconds
    while True:
        if "/feed" in page.url or await is_logged_in(page, config, timeout_ms=config.checkpoint_probe_timeout_ms):
            return True
        if time.monotonic() >= deadline:
            return False
        await asyncio.sleep(config.poll_interval_seconds)


async def perform_credential_login(page: Page, email: str, password: str, config: Optional[Settings] = None) -> None:
    config = config or default_settings
    login_url = f"{config.linkedin_base_url}/login"
    logger.info(f"[{email}] Proceeding to credential login...")

    if "signup" in page.url:
        logger.info(f"[{email}] Redirected to Sign Up page. Navigating back to Login...")
        sign_in_link = await page.query_selector('a[href*="login"]')
        if sign_in_link:
            await sign_in_link.click()
        else:
            await page.goto(login_url, wait_until="domcontentloaded")
        await _pause(config)
    elif "/login" not in page.url:
        await page.goto(login_url, wait_until="domcontentloaded")
        await _pause(config)

    logger.info(f"[{email}] Entering credentials...")
    try:
        await page.wait_for_selector('input[name="session_key"]', timeout=config.selector_timeout_ms)
        await page.fill('input[name="session_key"]', email)
        await _pause(config)

        await page.wait_for_selector('input[name="session_password"]', timeout=config.selector_timeout_ms)
        await page.fill('input[name="session_password"]', password)
        await _pause(config)

        logger.info(f"[{email}] Submitting login form...")
        await page.click('button[type="submit"]')
    except PlaywrightError as e:
        logger.error(f"[{email}] Error filling credentials: {e}")
        raise

    try:
        await page.wait_for_load_state("domcontentloaded", timeout=config.action_timeout_ms)
    except PlaywrightError as e:
        logger.warning(f"[{email}] Navigation wait after submit timed out: {e}")
