from linkedin_login.services.browser import BrowserLauncher, BrowserSession
from linkedin_login.services.crypto import DecodeFailure, SessionCipher
from linkedin_login.services.login import (
    Credentials,
    LoginAttempt,
    LoginOptions,
    LoginOrchestrator,
    LoginStage,
    login_to_linkedin,
)
from linkedin_login.services.session_lock import SessionLock, session_lock
from linkedin_login.services.session_repository import LoadedSession, SessionRecord, SessionRepository
from linkedin_login.services.storage import DatabaseStorageAdapter, FileStorageAdapter, StorageAdapter

__all__ = [
    "BrowserLauncher",
    "BrowserSession",
    "Credentials",
    "DatabaseStorageAdapter",
    "DecodeFailure",
    "FileStorageAdapter",
    "LoadedSession",
    "LoginAttempt",
    "LoginOptions",
    "LoginOrchestrator",
    "LoginStage",
    "SessionCipher",
    "SessionLock",
    "SessionRecord",
    "SessionRepository",
    "StorageAdapter",
    "login_to_linkedin",
    "session_lock",
]
