from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from linkedin_login.models import LinkedInAccount, SessionStatus

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageAdapter(Protocol):
    """Where encoded session blobs live.

    ``read`` returns ``None`` for an identity that was never written.
    ``write`` replaces whatever was stored before.
    """

    async def read(self, identity: str) -> Optional[str]: ...

    async def write(self, identity: str, blob: str) -> None: ...


def normalize_identity(identity: str) -> str:
    """Identities differing only in case or surrounding spaces name the same account."""
    return (identity or "").strip().lower()


def hashed_key(identity: str) -> str:
    return hashlib.sha256(normalize_identity(identity).encode("utf-8")).hexdigest()


def sanitized_key(identity: str) -> str:
    text = (identity or "").replace("@", "_at_").replace(".", "_dot_")
    return re.sub(r"[^a-zA-Z0-9_\-]", "_", text)


class FileStorageAdapter:
    """One file per identity under ``base_dir``.

    File names come from a one-way hash of the identity by default, so e-mail
    addresses never appear on disk. ``hash_keys=False`` keeps the older
    readable ``name_at_host_dot_com.json`` naming.
    """

    def __init__(self, base_dir: str | Path = "data/linkedin", hash_keys: bool = True):
        self.base_dir = Path(base_dir)
        self.hash_keys = hash_keys

    def key_for(self, identity: str) -> str:
        return hashed_key(identity) if self.hash_keys else sanitized_key(identity)

    def path_for(self, identity: str) -> Path:
        return self.base_dir / f"{self.key_for(identity)}.json"

    async def read(self, identity: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, self.path_for(identity))

    async def write(self, identity: str, blob: str) -> None:
        await asyncio.to_thread(self._write, self.path_for(identity), blob)

    @staticmethod
    def _read(path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @staticmethod
    def _write(path: Path, blob: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        tmp.write_text(blob, encoding="utf-8")
        os.replace(tmp, path)


class DatabaseStorageAdapter:
    """Stores the encoded blob on the matching ``linkedin_accounts`` row.

    The column is JSON, so the blob is wrapped as ``{"encrypted": ..., "updatedAt": ...}``.
    Queries run in a worker thread, off the event loop.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from linkedin_login.database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    async def read(self, identity: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, identity)

    async def write(self, identity: str, blob: str) -> None:
        await asyncio.to_thread(self._write, identity, blob)

    def _read(self, identity: str) -> Optional[str]:
        db = self.session_factory()
        try:
            account = db.query(LinkedInAccount).filter(LinkedInAccount.email == identity).first()
            data = account.session_data if account else None
            if isinstance(data, dict) and data.get("encrypted"):
                return data["encrypted"]
            return None
        finally:
            db.close()

    def _write(self, identity: str, blob: str) -> None:
        db = self.session_factory()
        try:
            account = db.query(LinkedInAccount).filter(LinkedInAccount.email == identity).first()
            if not account:
                logger.info(f"[{identity}] No account row found. Creating one to hold the session.")
                account = LinkedInAccount(email=identity, password="")
                db.add(account)
            now = datetime.now()
            account.session_data = {"encrypted": blob, "updatedAt": now.isoformat()}
            account.session_status = SessionStatus.ACTIVE.value
            account.last_login = now
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
