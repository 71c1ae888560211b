"""
Page session manager.
Keeps mounted pages addressable by id, fans rendered views out to
streaming listeners and closes sessions left idle with no stream attached.
"""
from __future__ import annotations

import asyncio
import hmac
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Set, Type

from leadboard.backend.client import BackendClient
from leadboard.core.exceptions import SessionNotFoundError
from leadboard.pages.base import BasePage
from leadboard.pages.handle_customer import HandleCustomerPage
from leadboard.pages.leads import LeadsPage

logger = logging.getLogger(__name__)

PAGE_TYPES: Dict[str, Type[BasePage]] = {
    LeadsPage.page_type: LeadsPage,
    HandleCustomerPage.page_type: HandleCustomerPage,
}

LISTENER_QUEUE_SIZE = 16


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class PageSession:
    id: str
    page: BasePage
    backend: BackendClient
    access_token: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    last_active: datetime = field(default_factory=_utcnow)
    listeners: Set[asyncio.Queue] = field(default_factory=set)

    def touch(self) -> None:
        self.last_active = _utcnow()

    def opened_by(self, access_token: Optional[str]) -> bool:
        """True when ``access_token`` is the token the session was opened with."""
        if self.access_token is None or access_token is None:
            return self.access_token is None and access_token is None
        return hmac.compare_digest(self.access_token.encode(), access_token.encode())


class PageSessionManager:
    """Mounts pages on behalf of callers and tracks them until unmounted."""

    def __init__(
        self,
        backend: BackendClient,
        sync_strategy: str = "refetch",
        idle_timeout_seconds: float = 900.0,
        sweep_seconds: float = 60.0,
    ):
        self.backend = backend
        self.sync_strategy = sync_strategy
        self.idle_timeout_seconds = idle_timeout_seconds
        self.sweep_seconds = sweep_seconds
        self.sessions: Dict[str, PageSession] = {}
        self._stop_event = asyncio.Event()
        self._sweeper: asyncio.Task | None = None

    async def open(
        self,
        page_type: str,
        access_token: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PageSession:
        page_cls = PAGE_TYPES.get(page_type)
        if page_cls is None:
            raise ValueError(f"Unknown page: {page_type}")

        await self.reap_idle()
        backend = self.backend.for_access_token(access_token)
        page = page_cls(backend, sync_strategy=self.sync_strategy, user_id=user_id)
        session = PageSession(id=uuid.uuid4().hex, page=page, backend=backend, access_token=access_token)
        page.add_listener(lambda: self._publish(session))
        self.sessions[session.id] = session
        try:
            await page.mount()
        except Exception:
            self.sessions.pop(session.id, None)
            await page.unmount()
            await backend.aclose()
            raise
        logger.info("Mounted %s page session %s", page_type, session.id)
        return session

    def get(self, session_id: str) -> PageSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def close(self, session_id: str) -> None:
        session = self.sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        await session.page.unmount()
        await session.backend.aclose()
        for queue in session.listeners:
            self._offer(queue, None)
        session.listeners.clear()
        logger.info("Unmounted %s page session %s", session.page.page_type, session_id)

    async def close_all(self) -> None:
        for session_id in list(self.sessions):
            await self.close(session_id)

    async def reap_idle(self, now: Optional[datetime] = None) -> list[str]:
        """Close sessions with no stream attached and no activity within the idle timeout."""
        cutoff = (now or _utcnow()) - timedelta(seconds=self.idle_timeout_seconds)
        idle = [
            session_id
            for session_id, session in self.sessions.items()
            if not session.listeners and session.last_active < cutoff
        ]
        for session_id in idle:
            if session_id in self.sessions:
                await self.close(session_id)
        if idle:
            logger.info("Closed %s idle page sessions", len(idle))
        return idle

    def start(self) -> None:
        """Start the idle-session sweep as a background task."""
        if self._sweeper and not self._sweeper.done():
            return
        self._stop_event.clear()
        self._sweeper = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        self._stop_event.set()
        if self._sweeper:
            await self._sweeper
            self._sweeper = None

    async def _sweep_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.sweep_seconds)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                return
            try:
                await self.reap_idle()
            except Exception:
                logger.exception("Idle page session sweep failed")

    def listen(self, session_id: str) -> asyncio.Queue:
        """Queue receiving each freshly rendered view, then None once the session closes."""
        session = self.get(session_id)
        queue: asyncio.Queue = asyncio.Queue(maxsize=LISTENER_QUEUE_SIZE)
        session.listeners.add(queue)
        session.touch()
        return queue

    def unlisten(self, session_id: str, queue: asyncio.Queue) -> None:
        session = self.sessions.get(session_id)
        if session is not None:
            session.listeners.discard(queue)
            session.touch()

    def _publish(self, session: PageSession) -> None:
        if not session.listeners:
            return
        view = session.page.render()
        for queue in session.listeners:
            self._offer(queue, view)

    @staticmethod
    def _offer(queue: asyncio.Queue, item: Any) -> None:
        # Slow readers lose the oldest views; only the latest matters.
        while True:
            try:
                queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                queue.get_nowait()
