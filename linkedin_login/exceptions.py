from typing import Optional


class LinkedInLoginError(Exception):
    """Base class for failures surfaced by the login orchestrator."""

    def __init__(self, message: str, identity: Optional[str] = None):
        super().__init__(message)
        self.identity = identity


class MissingCredentials(LinkedInLoginError):
    pass


class ChallengeUnresolved(LinkedInLoginError):
    """A checkpoint survived automated resolution and every escalation path."""

    def __init__(self, message: str, identity: Optional[str] = None, screenshot_path: Optional[str] = None):
        super().__init__(message, identity)
        self.screenshot_path = screenshot_path


class LoginVerificationFailed(LinkedInLoginError):
    """Credentials were submitted but neither a feed marker nor a challenge appeared."""


class ManualVerificationTimeout(LinkedInLoginError):
    pass
