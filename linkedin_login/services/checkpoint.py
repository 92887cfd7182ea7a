from __future__ import annotations

import json
import logging
from typing import Optional

from playwright.async_api import Page, Error as PlaywrightError

from linkedin_login.config import Settings, settings as default_settings
from linkedin_login.utils.humanize import random_delay

logger = logging.getLogger(__name__)


async def detect_checkpoint(page: Page, config: Optional[Settings] = None) -> bool:
    """True when the page is a checkpoint/verification interstitial."""
    config = config or default_settings
    url = page.url
    if any(marker in url for marker in config.challenge_url_markers):
        return True
    try:
        await page.wait_for_selector(config.challenge_heading_selector, timeout=config.checkpoint_probe_timeout_ms)
        return True
    except PlaywrightError:
        return False


async def page_text(page: Page) -> str:
    try:
        return (await page.content()).lower()
    except PlaywrightError as e:
        logger.warning(f"Could not read page content: {e}")
        return ""


async def is_device_approval(page: Page, config: Optional[Settings] = None) -> bool:
    """The challenge asks for approval from a signed-in mobile device."""
    config = config or default_settings
    text = await page_text(page)
    return any(marker.lower() in text for marker in config.device_approval_markers)


def acknowledgement_selector(label: str) -> str:
    """`button:has-text(...)` for ``label``, quoted so apostrophes and quotes are literal."""
    return f"button:has-text({json.dumps(label, ensure_ascii=False)})"


async def try_acknowledge(page: Page, config: Optional[Settings] = None) -> Optional[str]:
    """Click the first low-risk acknowledgement button found. Returns its label."""
    config = config or default_settings
    for label in config.acknowledgement_labels:
        selector = acknowledgement_selector(label)
        try:
            button = await page.query_selector(selector)
            if not button:
                continue
            await button.click()
        except PlaywrightError as e:
            logger.debug(f"Acknowledgement '{label}' not clickable: {e}")
            continue
        logger.info(f"Clicked acknowledgement control '{label}'.")
        await random_delay(config.action_delay_min, config.action_delay_max)
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=config.selector_timeout_ms)
        except PlaywrightError:
            pass
        return label
    return None
