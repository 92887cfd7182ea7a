from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from linkedin_login.services.storage import normalize_identity

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionLock:
    """Per-identity login lock that joins concurrent callers.

    The first caller for an identity starts ``work`` as a task and registers it.
    Callers arriving while that task is running await the same task instead of
    starting a second browser, so every caller sees the same result or error.
    The entry is removed when the task finishes, whatever the outcome.

    Identities are keyed the way storage keys them, so ``User@Example.com``
    and ``user@example.com`` share one entry.

    A cancelled caller leaves the attempt running for the others. When the last
    caller goes away the attempt is cancelled, and a result that finished
    with nobody left to take it is handed to ``on_orphaned``.

    The table is only touched from the event loop thread, with no ``await``
    between the membership check and the insert.
    """

    def __init__(self):
        self._active: dict[str, asyncio.Task] = {}
        self._waiters: dict[asyncio.Task, int] = {}

    def is_locked(self, identity: str) -> bool:
        """Point-in-time check. Advisory only."""
        return normalize_identity(identity) in self._active

    @property
    def active_identities(self) -> list[str]:
        return list(self._active)

    async def with_lock(
        self,
        identity: str,
        work: Callable[[], Awaitable[T]],
        on_orphaned: Optional[Callable[[T], Awaitable[Any]]] = None,
    ) -> T:
        key = normalize_identity(identity)
        task = self._active.get(key)
        if task is not None:
            logger.info(f"[SessionLock] {identity} is already logging in. Joining existing request...")
        else:
            logger.info(f"[SessionLock] Acquiring lock for {identity}...")
            task = asyncio.ensure_future(work())
            self._active[key] = task
            task.add_done_callback(lambda t: self._release(key, t))

        self._waiters[task] = self._waiters.get(task, 0) + 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._waiters[task] == 1:
                await self._abandon(identity, task, on_orphaned)
            raise
        finally:
            self._waiters[task] -= 1
            if not self._waiters[task]:
                del self._waiters[task]

    async def _abandon(
        self,
        identity: str,
        task: asyncio.Task,
        on_orphaned: Optional[Callable[[Any], Awaitable[Any]]],
    ) -> None:
        if not task.done():
            logger.warning(f"[SessionLock] Last caller for {identity} went away. Cancelling its attempt...")
            task.cancel()
        # Waits for the attempt's own cleanup and retrieves its outcome.
        await asyncio.gather(task, return_exceptions=True)
        if task.cancelled() or task.exception() is not None:
            return
        if on_orphaned is not None:
            logger.warning(f"[SessionLock] {identity} finished with no caller left. Discarding result.")
            await on_orphaned(task.result())

    def _release(self, key: str, task: asyncio.Task) -> None:
        if self._active.get(key) is task:
            del self._active[key]
        logger.info(f"[SessionLock] Releasing lock for {key}.")

    async def cancel_all(self) -> None:
        """Cancel every in-flight attempt and wait for their cleanup."""
        tasks = list(self._active.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


session_lock = SessionLock()


async def with_login_lock(identity: str, work: Callable[[], Awaitable[Any]]) -> Any:
    return await session_lock.with_lock(identity, work)
