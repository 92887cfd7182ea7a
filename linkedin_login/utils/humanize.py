import asyncio
import random
from typing import Optional

from linkedin_login.config import settings


async def random_delay(min_seconds: Optional[float] = None, max_seconds: Optional[float] = None) -> None:
    """Sleep for a random duration to simulate human behavior."""
    if min_seconds is None:
        min_seconds = settings.action_delay_min
    if max_seconds is None:
        max_seconds = settings.action_delay_max
    delay = random.uniform(min_seconds, max(min_seconds, max_seconds))
    await asyncio.sleep(delay)


def random_viewport(
    width_range: Optional[tuple[int, int]] = None,
    height_range: Optional[tuple[int, int]] = None,
) -> dict:
    width_range = width_range or settings.viewport_width_range
    height_range = height_range or settings.viewport_height_range
    return {
        "width": random.randint(width_range[0], width_range[1]),
        "height": random.randint(height_range[0], height_range[1]),
    }


def random_user_agent(versions: Optional[list[str]] = None) -> str:
    version = random.choice(versions or settings.user_agent_versions)
    return (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        f"(KHTML, like Gecko) Chrome/{version} Safari/537.36"
    )
