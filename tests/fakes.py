"""
In-memory stand-ins for the parts of Playwright the login flow touches
(browser, context, page), plus a controllable clock.
"""

from pathlib import Path
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from linkedin_login.config import Settings
from linkedin_login.services.browser import BrowserLauncher, BrowserSession
from linkedin_login.services.checkpoint import acknowledgement_selector

BASE = "https://www.linkedin.com"
FEED_URL = f"{BASE}/feed/"
LOGIN_URL = f"{BASE}/login"
CHECKPOINT_URL = f"{BASE}/checkpoint/challenge/AgG1"
SUBMIT_URL = f"{BASE}/uas/login-submit"

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeSite:
    """Server-side behaviour of the fake LinkedIn.

    ``submit_result`` decides where a credential submit lands: ``"feed"``,
    ``"checkpoint"`` or ``"nowhere"`` (stays on an unauthenticated page).
    """

    def __init__(
        self,
        submit_result: str = "feed",
        checkpoint_text: str = "<h1>Let's do a quick security check</h1>",
        ack_label: Optional[str] = None,
        approve_after_polls: Optional[int] = None,
        visible_resolves: bool = True,
    ):
        self.submit_result = submit_result
        self.checkpoint_text = checkpoint_text
        self.ack_label = ack_label
        self.approve_after_polls = approve_after_polls
        self.visible_resolves = visible_resolves
        self.valid_tokens: set[str] = set()
        self.submissions: list[tuple[str, bool]] = []
        self.launches: list[bool] = []
        self.browsers: list["FakeBrowser"] = []
        self.screenshots: list[str] = []
        self._issued = 0

    def issue_token(self) -> str:
        self._issued += 1
        token = f"token-{self._issued}"
        self.valid_tokens.add(token)
        return token


class FakeButton:
    def __init__(self, page: "FakePage"):
        self.page = page

    async def click(self):
        self.page.authenticate()


class FakePage:
    def __init__(self, context: "FakeContext"):
        self.context = context
        self.site = context.browser.site
        self.url = "about:blank"
        self.logged_in = False
        self.on_checkpoint = False
        self.approval_polls = 0
        self.filled: dict[str, str] = {}

    # -- helpers -------------------------------------------------------

    def authenticate(self):
        self.context.token = self.site.issue_token()
        self.logged_in = True
        self.on_checkpoint = False
        self.url = FEED_URL

    # -- Playwright surface ----------------------------------------------

    async def add_init_script(self, script):
        pass

    def set_default_timeout(self, timeout):
        pass

    async def goto(self, url, wait_until=None, timeout=None):
        if "/feed" in url:
            if self.context.token in self.site.valid_tokens:
                self.logged_in = True
                self.url = FEED_URL
            else:
                self.url = LOGIN_URL
        else:
            self.url = url

    async def wait_for_selector(self, selector, timeout=None):
        if selector in ('input[name="session_key"]', 'input[name="session_password"]'):
            if "/login" in self.url:
                return object()
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")
        if ".global-nav__search" in selector:
            if self.logged_in:
                return object()
            if self.on_checkpoint:
                if not self.context.browser.headless and self.site.visible_resolves:
                    self.authenticate()
                    return object()
                if self.site.approve_after_polls is not None:
                    self.approval_polls += 1
                    if self.approval_polls >= self.site.approve_after_polls:
                        self.authenticate()
                        return object()
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")
        raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")

    async def fill(self, selector, value):
        self.filled[selector] = value

    async def click(self, selector):
        if selector != 'button[type="submit"]':
            return
        identity = self.filled.get('input[name="session_key"]')
        self.site.submissions.append((identity, self.context.browser.headless))
        if self.site.submit_result == "feed":
            self.authenticate()
        elif self.site.submit_result == "checkpoint":
            self.url = CHECKPOINT_URL
            self.on_checkpoint = True
        else:
            self.url = SUBMIT_URL

    async def wait_for_load_state(self, state=None, timeout=None):
        pass

    async def query_selector(self, selector):
        if (
            self.on_checkpoint
            and self.site.ack_label
            and selector == acknowledgement_selector(self.site.ack_label)
        ):
            return FakeButton(self)
        return None

    async def content(self):
        return self.site.checkpoint_text if self.on_checkpoint else "<html><body></body></html>"

    async def screenshot(self, path=None):
        Path(path).write_bytes(b"\x89PNG")
        self.site.screenshots.append(path)


class FakeContext:
    def __init__(self, browser: "FakeBrowser", storage_state: Optional[dict], options: dict):
        self.browser = browser
        self.options = options
        self.restored_state = storage_state
        self.token = None
        if storage_state:
            cookies = storage_state.get("cookies") or []
            self.token = cookies[0]["value"] if cookies else None
        self.pages: list[FakePage] = []
        self.closed = False

    async def new_page(self):
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def storage_state(self):
        cookies = [{"name": "li_at", "value": self.token}] if self.token else []
        return {"cookies": cookies, "origins": []}

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, site: FakeSite, headless: bool):
        self.site = site
        self.headless = headless
        self.contexts: list[FakeContext] = []
        self.closed = False

    async def new_context(self, storage_state=None, **options):
        context = FakeContext(self, storage_state, options)
        self.contexts.append(context)
        return context

    def is_connected(self):
        return not self.closed

    async def close(self):
        self.closed = True


class FakeLauncher(BrowserLauncher):
    def __init__(self, site: FakeSite, config: Settings):
        super().__init__(config)
        self.site = site

    async def launch(self, headless: bool) -> BrowserSession:
        browser = FakeBrowser(self.site, headless)
        self.site.launches.append(headless)
        self.site.browsers.append(browser)
        return BrowserSession(browser=browser, headless=headless)


def state_for(token: str) -> dict:
    return {"cookies": [{"name": "li_at", "value": token}], "origins": []}


