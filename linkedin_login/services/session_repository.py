from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from linkedin_login.config import settings
from linkedin_login.services.crypto import DecodeFailure, SessionCipher
from linkedin_login.services.storage import FileStorageAdapter, StorageAdapter

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SessionRecord:
    identity: str
    browser_state: dict[str, Any]
    saved_at: Optional[int] = None
    last_validated_at: Optional[int] = None

    def to_json(self) -> str:
        return json.dumps({
            "timestamp": self.saved_at,
            "lastValidated": self.last_validated_at,
            "state": self.browser_state,
        })


@dataclass
class LoadedSession:
    browser_state: dict[str, Any]
    needs_validation: bool


@dataclass
class DecodeOutcome:
    record: Optional[SessionRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def _parse_json_object(text: str) -> Optional[dict]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def _record_from_payload(identity: str, payload: dict) -> Optional[SessionRecord]:
    """Build a record from ``{timestamp, lastValidated?, state}``."""
    state = payload.get("state")
    if "state" not in payload or not isinstance(state, dict):
        return None
    saved_at = payload.get("timestamp")
    last_validated = payload.get("lastValidated")
    return SessionRecord(
        identity=identity,
        browser_state=state,
        saved_at=int(saved_at) if isinstance(saved_at, (int, float)) else None,
        last_validated_at=int(last_validated) if isinstance(last_validated, (int, float)) else None,
    )


class SessionRepository:
    """Loads and saves per-identity sessions with expiry and a validation cache.

    A record older than ``max_age_ms`` is treated as absent. A record whose last
    liveness check is younger than ``validation_window_ms`` is reported as not
    needing validation.
    """

    def __init__(
        self,
        storage: Optional[StorageAdapter] = None,
        cipher: Optional[SessionCipher] = None,
        max_age_ms: Optional[int] = None,
        validation_window_ms: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage or FileStorageAdapter(settings.session_dir, settings.hash_session_keys)
        self.cipher = cipher or SessionCipher(settings.session_secret)
        self.max_age_ms = max_age_ms if max_age_ms is not None else settings.session_max_age_seconds * 1000
        self.validation_window_ms = (
            validation_window_ms if validation_window_ms is not None else settings.validation_cache_seconds * 1000
        )
        self.clock = clock
        # Tried in order; the first success wins.
        self.decode_strategies: list[Callable[[str, str], DecodeOutcome]] = [
            self._decode_encrypted,
            self._decode_plain_record,
            self._decode_bare_state,
        ]

    # ------------------------------------------------------------------
    # Decode strategies
    # ------------------------------------------------------------------

    def _decode_encrypted(self, identity: str, blob: str) -> DecodeOutcome:
        plain = self.cipher.decode(blob)
        if isinstance(plain, DecodeFailure):
            return DecodeOutcome(error=plain.reason)
        payload = _parse_json_object(plain)
        record = _record_from_payload(identity, payload) if payload is not None else None
        if record is None:
            return DecodeOutcome(error="decrypted payload is not a session record")
        return DecodeOutcome(record=record)

    def _decode_plain_record(self, identity: str, blob: str) -> DecodeOutcome:
        payload = _parse_json_object(blob)
        if payload is None:
            return DecodeOutcome(error="not a JSON object")
        record = _record_from_payload(identity, payload)
        if record is None:
            return DecodeOutcome(error="JSON object has no state field")
        return DecodeOutcome(record=record)

    def _decode_bare_state(self, identity: str, blob: str) -> DecodeOutcome:
        payload = _parse_json_object(blob)
        if payload is None:
            return DecodeOutcome(error="not a JSON object")
        if "cookies" not in payload and "origins" not in payload:
            return DecodeOutcome(error="JSON object is not a browser storage state")
        return DecodeOutcome(record=SessionRecord(identity=identity, browser_state=payload))

    def decode(self, identity: str, blob: str) -> DecodeOutcome:
        errors = []
        for strategy in self.decode_strategies:
            outcome = strategy(identity, blob)
            if outcome.ok:
                return outcome
            errors.append(outcome.error)
        return DecodeOutcome(error="; ".join(e for e in errors if e))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def read_record(self, identity: str) -> Optional[SessionRecord]:
        """Return the stored record regardless of age, or None."""
        blob = await self.storage.read(identity)
        if blob is None:
            return None
        outcome = self.decode(identity, blob)
        if not outcome.ok:
            logger.warning(f"[{identity}] Stored session is unreadable ({outcome.error}). Ignoring it.")
            return None
        return outcome.record

    async def load(self, identity: str) -> Optional[LoadedSession]:
        record = await self.read_record(identity)
        if record is None:
            logger.info(f"[{identity}] No stored session.")
            return None

        now = self.clock()
        if record.saved_at is not None and now - record.saved_at > self.max_age_ms:
            age_days = (now - record.saved_at) / 86_400_000
            logger.info(f"[{identity}] Stored session expired ({age_days:.1f} days old).")
            return None

        needs_validation = not (
            record.last_validated_at is not None
            and now - record.last_validated_at < self.validation_window_ms
        )
        return LoadedSession(browser_state=record.browser_state, needs_validation=needs_validation)

    async def save(self, identity: str, browser_state: dict[str, Any], validated: bool) -> SessionRecord:
        now = self.clock()
        previous = await self.read_record(identity)

        saved_at = now
        last_validated_at = now if validated else None
        if previous is not None:
            if previous.saved_at is not None:
                saved_at = max(now, previous.saved_at)
            if not validated:
                last_validated_at = previous.last_validated_at

        record = SessionRecord(
            identity=identity,
            browser_state=browser_state,
            saved_at=saved_at,
            last_validated_at=last_validated_at,
        )
        await self.storage.write(identity, self.cipher.encode(record.to_json()))
        logger.info(f"[{identity}] Session saved (validated={validated}).")
        return record
