from pydantic_settings import BaseSettings
from typing import Optional

ONE_DAY_SECONDS = 24 * 60 * 60


class Settings(BaseSettings):
    # App
    app_name: str = "LinkedIn Login"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    # Database
    database_url: str = "sqlite:///data/linkedin_login.db"

    # Logging
    log_file: Optional[str] = "data/app.log"

    # LinkedIn
    linkedin_email: Optional[str] = None
    linkedin_password: Optional[str] = None
    linkedin_base_url: str = "https://www.linkedin.com"

    # Browser
    browser_headless: bool = True
    # When headless login hits a checkpoint, relaunch visibly unless this is set.
    disable_fallback: bool = False
    browser_slow_mo: int = 50
    browser_launch_args: list[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-blink-features=AutomationControlled",
    ]
    user_agent_versions: list[str] = ["120.0.0.0", "121.0.0.0", "122.0.0.0"]
    viewport_width_range: tuple[int, int] = (1280, 1920)
    viewport_height_range: tuple[int, int] = (720, 1080)
    locale: str = "en-US"
    timezone_id: str = "America/New_York"

    # Human-like pacing between UI actions (seconds)
    action_delay_min: float = 0.5
    action_delay_max: float = 2.0

    # Timeouts
    action_timeout_ms: int = 30000
    selector_timeout_ms: int = 5000
    liveness_timeout_ms: int = 10000
    checkpoint_probe_timeout_ms: int = 1000
    device_approval_timeout_seconds: float = 120
    manual_verification_timeout_seconds: float = 300
    poll_interval_seconds: float = 2.0

    # Session persistence
    session_dir: str = "data/linkedin"
    hash_session_keys: bool = True
    session_secret: Optional[str] = None
    session_max_age_seconds: int = 30 * ONE_DAY_SECONDS
    validation_cache_seconds: int = 10 * 60

    # Page markers
    validation_selectors: list[str] = [
        ".global-nav__search",
        'input[placeholder="Search"]',
        "#global-nav-typeahead",
        ".feed-shared-update-v2",
    ]
    challenge_url_markers: list[str] = [
        "checkpoint",
        "challenge",
        "verification",
        "consumer-login/error",
    ]
    challenge_heading_selector: str = "h1:has-text('Security Verification')"
    acknowledgement_labels: list[str] = ["Yes", "Skip", "Continue", "Not now", "Confirm"]
    device_approval_markers: list[str] = [
        "check your linkedin app",
        "open your linkedin app",
        "approve the sign in",
        "we sent a notification",
        "tap yes on the prompt",
    ]

    # Escalation
    max_escalation_rounds: int = 1
    screenshot_dir: str = "data/screenshots"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
