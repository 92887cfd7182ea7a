from __future__ import annotations

import enum
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from playwright.async_api import Page

from linkedin_login.config import Settings, settings as default_settings
from linkedin_login.exceptions import (
    ChallengeUnresolved,
    LoginVerificationFailed,
    ManualVerificationTimeout,
    MissingCredentials,
)
from linkedin_login.services.actions import is_logged_in, perform_credential_login, wait_for_liveness
from linkedin_login.services.browser import BrowserLauncher, BrowserSession
from linkedin_login.services.checkpoint import detect_checkpoint, is_device_approval, try_acknowledge
from linkedin_login.services.session_lock import SessionLock, session_lock
from linkedin_login.services.session_repository import SessionRepository, now_ms
from linkedin_login.services.storage import StorageAdapter, hashed_key
from linkedin_login.utils.humanize import random_delay

logger = logging.getLogger(__name__)

ChallengeCallback = Callable[[str], Union[Awaitable[Any], Any]]


class LoginStage(str, enum.Enum):
    RESTORING = "restoring"
    VALIDATING = "validating"
    SUBMITTING_CREDENTIALS = "submitting-credentials"
    CHECKPOINT_DETECTED = "checkpoint-detected"
    AUTO_RESOLVING = "auto-resolving"
    ESCALATED_VISIBLE = "escalated-visible"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class Credentials:
    identity: str
    secret: str


@dataclass
class LoginOptions:
    headless: bool = True
    disable_fallback: bool = False
    # Called with the identity when a headless challenge cannot be cleared;
    # the flow restarts from the stored session once it returns.
    on_challenge: Optional[ChallengeCallback] = None


@dataclass
class LoginAttempt:
    credentials: Credentials
    options: LoginOptions
    stage: LoginStage = LoginStage.RESTORING
    escalations: int = 0
    history: list[LoginStage] = field(default_factory=list)

    @property
    def identity(self) -> str:
        return self.credentials.identity


class LoginOrchestrator:
    """Drives one identity from stored session to an authenticated page.

    Stages run strictly in order inside one attempt:

    restore -> validate liveness -> submit credentials -> check for challenge
    -> resolve challenge -> escalate

    A fresh enough stored session ends the attempt at restore. Escalation
    (challenge callback, or a visible browser for a human) is a bounded loop
    that restarts at restore; once ``max_escalation_rounds`` is used up the
    attempt fails with ``ChallengeUnresolved``.
    """

    def __init__(
        self,
        repository: Optional[SessionRepository] = None,
        lock: Optional[SessionLock] = None,
        launcher: Optional[BrowserLauncher] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config or default_settings
        self.repository = repository or SessionRepository(clock=clock)
        self.lock = lock or session_lock
        self.launcher = launcher or BrowserLauncher(self.config)
        self.clock = clock

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def _resolve_credentials(self, credentials: Optional[Credentials]) -> Credentials:
        identity = credentials.identity if credentials else self.config.linkedin_email
        secret = credentials.secret if credentials else self.config.linkedin_password
        if not identity or not secret:
            raise MissingCredentials("Missing LinkedIn credentials.", identity=identity)
        return Credentials(identity=identity, secret=secret)

    async def login(
        self,
        options: Optional[LoginOptions] = None,
        credentials: Optional[Credentials] = None,
    ) -> BrowserSession:
        if options is None:
            options = LoginOptions(
                headless=self.config.browser_headless,
                disable_fallback=self.config.disable_fallback,
            )
        attempt = LoginAttempt(credentials=self._resolve_credentials(credentials), options=options)
        return await self.lock.with_lock(
            attempt.identity,
            lambda: self._run(attempt),
            on_orphaned=lambda session: session.close(),
        )

    async def _run(self, attempt: LoginAttempt) -> BrowserSession:
        while True:
            session = await self._run_stages(attempt, headless=attempt.options.headless)
            if session is not None:
                return session

            attempt.escalations += 1
            callback = attempt.options.on_challenge
            if callback is not None:
                logger.info(f"[{attempt.identity}] Handing challenge to caller (round {attempt.escalations}).")
                result = callback(attempt.identity)
                if inspect.isawaitable(result):
                    await result
                continue

            self._enter(attempt, LoginStage.ESCALATED_VISIBLE)
            logger.info(f"[{attempt.identity}] Switching to a visible browser for manual verification...")
            visible = await self._run_stages(attempt, headless=False)
            # Visible runs never escalate, so a return here is a success.
            await visible.close()
            logger.info(f"[{attempt.identity}] Visible verification done. Retrying headless flow...")

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _enter(self, attempt: LoginAttempt, stage: LoginStage) -> None:
        attempt.stage = stage
        attempt.history.append(stage)
        logger.debug(f"[{attempt.identity}] stage -> {stage.value}")

    def _can_escalate(self, attempt: LoginAttempt, headless: bool) -> bool:
        if not headless or attempt.escalations >= self.config.max_escalation_rounds:
            return False
        return attempt.options.on_challenge is not None or not attempt.options.disable_fallback

    async def _run_stages(self, attempt: LoginAttempt, headless: bool) -> Optional[BrowserSession]:
        """Run restore through resolve in one browser.

        Returns the live session on success, or None when the challenge should
        be escalated (the browser is already closed in that case).
        """
        session = await self.launcher.launch(headless)
        keep_open = False
        try:
            if await self._restore(attempt, session):
                keep_open = True
                return session

            self._enter(attempt, LoginStage.SUBMITTING_CREDENTIALS)
            await perform_credential_login(
                session.page, attempt.identity, attempt.credentials.secret, self.config
            )

            if not await detect_checkpoint(session.page, self.config):
                if await is_logged_in(session.page, self.config):
                    logger.info(f"[{attempt.identity}] Login successful ✅")
                    await self._succeed(attempt, session)
                    keep_open = True
                    return session
                await self._screenshot(attempt, session.page, "login_failed")
                raise LoginVerificationFailed(
                    "LOGIN_FAILED: Could not verify session after login attempt.",
                    identity=attempt.identity,
                )

            self._enter(attempt, LoginStage.CHECKPOINT_DETECTED)
            logger.warning(f"[{attempt.identity}] Checkpoint detected at {session.page.url}")
            if await self._resolve_challenge(attempt, session, headless):
                keep_open = True
                return session

            if self._can_escalate(attempt, headless):
                return None

            screenshot = await self._screenshot(attempt, session.page, "checkpoint")
            raise ChallengeUnresolved(
                "CHECKPOINT_DETECTED: challenge detected, no escalation path.",
                identity=attempt.identity,
                screenshot_path=screenshot,
            )
        except BaseException as e:
            self._enter(attempt, LoginStage.FAILED)
            if not isinstance(e, Exception):
                logger.warning(f"[{attempt.identity}] Login interrupted. Closing browser.")
            else:
                logger.error(f"[{attempt.identity}] Login process failed: {e}")
            raise
        finally:
            if not keep_open:
                await session.close()

    async def _restore(self, attempt: LoginAttempt, session: BrowserSession) -> bool:
        """Restore and, when needed, validate the stored session. True on success."""
        self._enter(attempt, LoginStage.RESTORING)
        feed_url = f"{self.config.linkedin_base_url}/feed/"
        stored = await self.repository.load(attempt.identity)

        if stored is None:
            logger.info(f"[{attempt.identity}] No valid session found. Starting fresh context.")
            await self.launcher.new_page(session)
            return False

        page = await self.launcher.new_page(session, stored.browser_state)
        if not stored.needs_validation:
            logger.info(f"[{attempt.identity}] Session validation cached. Skipping feed check.")
            await page.goto(feed_url, wait_until="domcontentloaded")
            self._enter(attempt, LoginStage.SUCCEEDED)
            return True

        self._enter(attempt, LoginStage.VALIDATING)
        logger.info(f"[{attempt.identity}] Verifying session...")
        await page.goto(feed_url, wait_until="domcontentloaded")
        await random_delay(self.config.action_delay_min, self.config.action_delay_max)

        if await is_logged_in(page, self.config):
            logger.info(f"[{attempt.identity}] Session valid ✅")
            await self._succeed(attempt, session)
            return True

        # Cookies from an invalidated session can loop redirects and hide the
        # login form, so credential login always starts in a new context.
        logger.info(f"[{attempt.identity}] Session invalid. Discarding context before credential login...")
        await self.launcher.new_page(session)
        return False

    async def _resolve_challenge(self, attempt: LoginAttempt, session: BrowserSession, headless: bool) -> bool:
        page = session.page

        if not headless:
            timeout = self.config.manual_verification_timeout_seconds
            logger.info(f"[{attempt.identity}] Waiting up to {timeout:.0f}s for the challenge to be solved in the browser...")
            if await wait_for_liveness(page, timeout, self.config):
                logger.info(f"[{attempt.identity}] Manual Resolution Successful ✅")
                await self._succeed(attempt, session)
                return True
            raise ManualVerificationTimeout("Manual verification timed out.", identity=attempt.identity)

        self._enter(attempt, LoginStage.AUTO_RESOLVING)
        label = await try_acknowledge(page, self.config)
        if label and not await detect_checkpoint(page, self.config) and await is_logged_in(page, self.config):
            logger.info(f"[{attempt.identity}] Challenge cleared after '{label}' ✅")
            await self._succeed(attempt, session)
            return True

        if await is_device_approval(page, self.config):
            timeout = self.config.device_approval_timeout_seconds
            logger.info(f"[{attempt.identity}] Device approval requested. Waiting up to {timeout:.0f}s...")
            if await wait_for_liveness(page, timeout, self.config):
                logger.info(f"[{attempt.identity}] Mobile Verification Successful ✅")
                await self._succeed(attempt, session)
                return True
            logger.warning(f"[{attempt.identity}] Device approval timed out.")

        return False

    async def _succeed(self, attempt: LoginAttempt, session: BrowserSession) -> None:
        state = await session.context.storage_state()
        await self.repository.save(attempt.identity, state, validated=True)
        self._enter(attempt, LoginStage.SUCCEEDED)

    async def _screenshot(self, attempt: LoginAttempt, page: Page, prefix: str) -> Optional[str]:
        path = Path(self.config.screenshot_dir) / f"{prefix}_{hashed_key(attempt.identity)[:16]}_{self.clock()}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path))
        except Exception as e:
            logger.error(f"[{attempt.identity}] Failed to take screenshot: {e}")
            return None
        logger.warning(f"[{attempt.identity}] Screenshot saved: {path}")
        return str(path)


_default_orchestrator: Optional[LoginOrchestrator] = None


def get_orchestrator() -> LoginOrchestrator:
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = LoginOrchestrator()
    return _default_orchestrator


async def login_to_linkedin(
    options: Optional[LoginOptions] = None,
    credentials: Optional[Credentials] = None,
    storage: Optional[StorageAdapter] = None,
) -> BrowserSession:
    """Log in with the process-wide orchestrator, or one bound to ``storage``."""
    if storage is None:
        orchestrator = get_orchestrator()
    else:
        orchestrator = LoginOrchestrator(repository=SessionRepository(storage=storage))
    return await orchestrator.login(options, credentials)
