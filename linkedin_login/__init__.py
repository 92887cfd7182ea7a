__version__ = "1.0.0"

from linkedin_login.exceptions import (
    ChallengeUnresolved,
    LinkedInLoginError,
    LoginVerificationFailed,
    ManualVerificationTimeout,
    MissingCredentials,
)
from linkedin_login.services.login import Credentials, LoginOptions, LoginOrchestrator, login_to_linkedin
from linkedin_login.services.storage import DatabaseStorageAdapter, FileStorageAdapter
from linkedin_login.utils.logging_config import set_logger

__all__ = [
    "ChallengeUnresolved",
    "Credentials",
    "DatabaseStorageAdapter",
    "FileStorageAdapter",
    "LinkedInLoginError",
    "LoginOptions",
    "LoginOrchestrator",
    "LoginVerificationFailed",
    "ManualVerificationTimeout",
    "MissingCredentials",
    "login_to_linkedin",
    "set_logger",
]
