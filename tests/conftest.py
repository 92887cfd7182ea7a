import pytest

from linkedin_login.config import Settings
from linkedin_login.services.crypto import SessionCipher
from linkedin_login.services.session_lock import SessionLock
from linkedin_login.services.session_repository import SessionRepository
from linkedin_login.services.storage import FileStorageAdapter

from tests.fakes import DAY_MS, MINUTE_MS, FakeClock, FakeSite


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config(tmp_path):
    return Settings(
        _env_file=None,
        linkedin_email=None,
        linkedin_password=None,
        session_dir=str(tmp_path / "sessions"),
        screenshot_dir=str(tmp_path / "screenshots"),
        session_secret="test-secret",
        action_delay_min=0,
        action_delay_max=0,
        poll_interval_seconds=0,
        device_approval_timeout_seconds=0.2,
        manual_verification_timeout_seconds=0.2,
    )


@pytest.fixture
def storage(config):
    return FileStorageAdapter(config.session_dir)


@pytest.fixture
def repository(storage, clock):
    return SessionRepository(
        storage=storage,
        cipher=SessionCipher("test-secret"),
        max_age_ms=30 * DAY_MS,
        validation_window_ms=10 * MINUTE_MS,
        clock=clock,
    )


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def lock():
    return SessionLock()
