"""
Page lifecycle shared by the CRM screens.

A page fetches full snapshots of its tables on mount, keeps one change-feed
subscription per table, and refreshes its local cache whenever the feed
reports a change. The cache is never the source of truth.
"""
from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable, ClassVar, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from leadboard.backend.client import BackendClient
from leadboard.backend.realtime import ChangeEvent, ChannelHandle
from leadboard.core.exceptions import BackendError, RealtimeError
from leadboard.schemas.lead import Lead
from leadboard.services.reconcile import reconcile

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class BasePage:
    """Mounted screen holding a transient cache of its tables."""

    page_type: ClassVar[str] = ""
    title: ClassVar[str] = ""
    table_models: ClassVar[Dict[str, Type[BaseModel]]] = {}

    def __init__(
        self,
        backend: BackendClient,
        sync_strategy: str = "refetch",
        user_id: Optional[str] = None,
    ):
        self.backend = backend
        self.sync_strategy = sync_strategy
        self.user_id = user_id
        self.rows: Dict[str, list[Any]] = {table: [] for table in self.table_models}
        self.loading = True
        self.mounted = False
        self.submitting = False
        self.selected_lead: Optional[Lead] = None
        self._handles: list[ChannelHandle] = []
        self._listeners: list[Listener] = []

    @property
    def leads(self) -> list[Lead]:
        return self.rows.get("leads", [])

    @property
    def subscriptions(self) -> list[ChannelHandle]:
        return list(self._handles)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a callback fired after every state change. Returns its remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Page listener failed on %s", self.page_type)

    async def mount(self) -> None:
        self.mounted = True
        await self.fetch_data()
        for table in self.table_models:
            try:
                handle = await self.backend.subscribe(table, partial(self._on_change, table))
            except RealtimeError as exc:
                logger.warning("Live updates unavailable for %s on %s: %s", table, self.page_type, exc)
                continue
            self._handles.append(handle)

    async def unmount(self) -> None:
        self.mounted = False
        handles, self._handles = self._handles, []
        for handle in handles:
            await self.backend.unsubscribe(handle)
        self._listeners.clear()

    async def fetch_data(self) -> None:
        self.loading = True
        self._notify()
        await asyncio.gather(*(self.fetch_table(table) for table in self.table_models))
        self.loading = False
        self._notify()

    async def fetch_table(self, table: str) -> None:
        """Replace the cached snapshot of ``table``. Failures leave the cache as it was."""
        try:
            data = await self.backend.select_all(table, order_by="created_at", descending=True)
        except BackendError as exc:
            logger.warning("Fetching %s failed: %s", table, exc)
            return
        if not self.mounted:
            return
        model = self.table_models[table]
        try:
            self.rows[table] = [model.model_validate(row) for row in data]
        except ValidationError as exc:
            logger.warning("Discarding malformed %s snapshot: %s", table, exc)
            return
        self._notify()

    async def _on_change(self, table: str, event: ChangeEvent) -> None:
        if not self.mounted:
            return
        if self.sync_strategy == "patch":
            patched = reconcile(self.rows[table], event, self.table_models[table])
            if patched is not None:
                self.rows[table] = patched
                self._notify()
                return
        await self.fetch_table(table)

    def select_lead(self, lead_id: Optional[str]) -> Optional[Lead]:
        if lead_id is None:
            self.selected_lead = None
        else:
            self.selected_lead = next((lead for lead in self.leads if lead.id == lead_id), None)
        self._notify()
        return self.selected_lead

    async def update_lead_status(self, lead_id: str, status: str) -> bool:
        """Set a lead's status. Any status is accepted from any other."""
        try:
            await self.backend.update("leads", {"status": status}, {"id": lead_id})
        except BackendError as exc:
            logger.error("Error updating lead status: %s", exc)
            return False
        await self.fetch_table("leads")
        return True

    async def _append_for_selected_lead(
        self,
        table: str,
        text: str,
        build_row: Callable[[Lead, str], Dict[str, Any]],
    ) -> bool:
        if self.submitting or self.selected_lead is None or not text.strip():
            return False

        self.submitting = True
        self._notify()
        try:
            try:
                await self.backend.insert(table, build_row(self.selected_lead, text))
            except BackendError as exc:
                logger.error("Error adding %s: %s", table, exc)
                return False
            self.clear_form()
            await self.fetch_table(table)
            return True
        finally:
            self.submitting = False
            self._notify()

    def clear_form(self) -> None:
        self.selected_lead = None
        self.set_text("")

    def set_text(self, text: str) -> None:
        raise NotImplementedError

    async def submit(self) -> bool:
        raise NotImplementedError

    def render(self) -> Dict[str, Any]:
        raise NotImplementedError
