import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from linkedin_login.database import Base
from linkedin_login.models import LinkedInAccount
from linkedin_login.services.storage import (
    DatabaseStorageAdapter,
    FileStorageAdapter,
    StorageAdapter,
    hashed_key,
    normalize_identity,
    sanitized_key,
)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def test_hashed_key_is_stable_and_hides_identity():
    key = hashed_key("User@Example.com ")
    assert key == hashed_key("user@example.com")
    assert "example" not in key
    assert len(key) == 64


def test_sanitized_key_matches_legacy_naming():
    assert sanitized_key("john.doe+1@mail.com") == "john_dot_doe_1_at_mail_dot_com"


def test_adapters_satisfy_protocol(tmp_path, session_factory):
    assert isinstance(FileStorageAdapter(tmp_path), StorageAdapter)
    assert isinstance(DatabaseStorageAdapter(session_factory), StorageAdapter)


@pytest.mark.asyncio
async def test_file_adapter_read_missing_returns_none(tmp_path):
    adapter = FileStorageAdapter(tmp_path / "sessions")
    assert await adapter.read("nobody@example.com") is None


@pytest.mark.asyncio
async def test_file_adapter_creates_dirs_and_overwrites(tmp_path):
    adapter = FileStorageAdapter(tmp_path / "nested" / "sessions")
    await adapter.write("a@example.com", "first")
    await adapter.write("a@example.com", "second")

    assert await adapter.read("a@example.com") == "second"
    files = list((tmp_path / "nested" / "sessions").iterdir())
    assert [f.name for f in files] == [f"{hashed_key('a@example.com')}.json"]


@pytest.mark.asyncio
async def test_file_adapter_keeps_identities_apart(tmp_path):
    adapter = FileStorageAdapter(tmp_path, hash_keys=False)
    await adapter.write("a@example.com", "blob-a")
    await adapter.write("b@example.com", "blob-b")
    assert await adapter.read("a@example.com") == "blob-a"
    assert await adapter.read("b@example.com") == "blob-b"
    assert (tmp_path / "a_at_example_dot_com.json").exists()


@pytest.mark.asyncio
async def test_database_adapter_round_trip(session_factory):
    adapter = DatabaseStorageAdapter(session_factory)
    db = session_factory()
    db.add(LinkedInAccount(email="a@example.com", password="pw"))
    db.commit()
    db.close()

    assert await adapter.read("a@example.com") is None
    await adapter.write("a@example.com", "iv:cipher")
    await adapter.write("a@example.com", "iv:cipher2")
    assert await adapter.read("a@example.com") == "iv:cipher2"

    db = session_factory()
    account = db.query(LinkedInAccount).filter_by(email="a@example.com").one()
    assert account.session_data["encrypted"] == "iv:cipher2"
    assert account.session_status == "active"
    assert account.last_login is not None
    db.close()


@pytest.mark.asyncio
async def test_database_adapter_creates_missing_account(session_factory):
    adapter = DatabaseStorageAdapter(session_factory)
    assert await adapter.read("new@example.com") is None
    await adapter.write("new@example.com", "iv:cipher")
    assert await adapter.read("new@example.com") == "iv:cipher"


@pytest.mark.asyncio
async def test_database_adapter_queries_off_the_event_loop(session_factory):
    threads = []

    def recording_factory():
        threads.append(threading.get_ident())
        return session_factory()

    adapter = DatabaseStorageAdapter(recording_factory)
    await adapter.write("a@example.com", "iv:cipher")
    await adapter.read("a@example.com")

    assert len(threads) == 2
    assert threading.get_ident() not in threads


def test_normalized_identities_share_a_file(tmp_path):
    adapter = FileStorageAdapter(tmp_path)
    assert normalize_identity(" User@Example.com ") == "user@example.com"
    assert adapter.path_for("User@Example.com") == adapter.path_for("user@example.com")
