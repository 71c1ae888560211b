"""
Realtime change-feed client.
Speaks the Phoenix channel protocol used by the Supabase realtime service:
one websocket per client, one channel per subscribed table.
"""
from __future__ import annotations

import asyncio
import inspect
import itertools
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed

from leadboard.core.exceptions import RealtimeError

logger = logging.getLogger(__name__)

PHOENIX_TOPIC = "phoenix"
PROTOCOL_VERSION = "1.0.0"


class ChangeKind(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """One row-level notification from the change feed."""

    kind: ChangeKind
    table: str
    schema: str = "public"
    record: Dict[str, Any] = field(default_factory=dict)
    old_record: Dict[str, Any] = field(default_factory=dict)
    commit_timestamp: Optional[str] = None

    @property
    def row_id(self) -> Optional[str]:
        value = self.record.get("id")
        if value is None:
            value = self.old_record.get("id")
        return None if value is None else str(value)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ChangeEvent":
        return cls(
            kind=ChangeKind(str(data.get("type") or data.get("eventType")).upper()),
            table=str(data.get("table", "")),
            schema=str(data.get("schema", "public")),
            record=dict(data.get("record") or data.get("new") or {}),
            old_record=dict(data.get("old_record") or data.get("old") or {}),
            commit_timestamp=data.get("commit_timestamp"),
        )


ChangeCallback = Callable[[ChangeEvent], Union[Awaitable[None], None]]


@dataclass(eq=False)
class ChannelHandle:
    """An open (or formerly open) subscription to one table."""

    topic: str
    table: str
    schema: str
    on_change: ChangeCallback
    filter: Optional[str] = None
    join_ref: Optional[str] = None
    state: str = "joining"

    @property
    def closed(self) -> bool:
        return self.state == "closed"


class RealtimeClient:
    """Multiplexes table subscriptions over a single realtime websocket."""

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: Optional[str] = None,
        heartbeat_seconds: float = 30.0,
        events_per_second: int = 10,
        join_timeout: float = 10.0,
        connect: Callable[..., Awaitable[Any]] | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.access_token = access_token
        self.heartbeat_seconds = heartbeat_seconds
        self.join_timeout = join_timeout
        self._min_push_interval = 1.0 / max(events_per_second, 1)
        self._connect = connect or websockets.connect
        self._ws: Any = None
        self._reader_task: asyncio.Task | None = None
        self._heartbeat_task: asyncio.Task | None = None
        self._connect_lock = asyncio.Lock()
        self._push_lock = asyncio.Lock()
        self._last_push = 0.0
        self._refs = itertools.count(1)
        self._topic_ids = itertools.count(1)
        self._pending: Dict[str, asyncio.Future] = {}
        self._channels: Dict[str, ChannelHandle] = {}
        self._callback_tasks: Set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._ws is not None

    @property
    def channels(self) -> list[ChannelHandle]:
        return list(self._channels.values())

    def socket_url(self) -> str:
        return f"{self.url}?{urlencode({'apikey': self.api_key, 'vsn': PROTOCOL_VERSION})}"

    async def subscribe(
        self,
        table: str,
        on_change: ChangeCallback,
        filter: Optional[str] = None,
        schema: str = "public",
    ) -> ChannelHandle:
        """Join a channel that reports every insert/update/delete on ``table``."""
        await self._ensure_connected()
        topic = f"realtime:{schema}:{table}:{next(self._topic_ids)}"
        handle = ChannelHandle(topic=topic, table=table, schema=schema, on_change=on_change, filter=filter)
        self._channels[topic] = handle

        change_spec: Dict[str, Any] = {"event": "*", "schema": schema, "table": table}
        if filter:
            change_spec["filter"] = filter
        payload: Dict[str, Any] = {
            "config": {
                "broadcast": {"ack": False, "self": False},
                "presence": {"key": ""},
                "postgres_changes": [change_spec],
            }
        }
        if self.access_token:
            payload["access_token"] = self.access_token

        try:
            ref = await self._push(topic, "phx_join", payload, await_reply=True)
            handle.join_ref = ref
            future = self._pending.get(ref)
            if future is None:
                raise RealtimeError("Realtime socket closed")
            try:
                reply = await asyncio.wait_for(future, timeout=self.join_timeout)
            finally:
                self._pending.pop(ref, None)
        except asyncio.TimeoutError as exc:
            self._drop(handle)
            raise RealtimeError(f"Timed out joining realtime channel for {table}") from exc
        except (RealtimeError, ConnectionClosed, OSError) as exc:
            self._drop(handle)
            raise RealtimeError(f"Could not join realtime channel for {table}: {exc}") from exc

        if reply.get("status") != "ok":
            self._drop(handle)
            raise RealtimeError(f"Realtime channel for {table} rejected: {reply.get('response')}")

        handle.state = "joined"
        logger.info("Subscribed to %s.%s (%s)", schema, table, topic)
        return handle

    async def unsubscribe(self, handle: ChannelHandle) -> None:
        """Leave a channel. Repeated calls for the same handle are no-ops."""
        if self._channels.pop(handle.topic, None) is None:
            logger.debug("Channel %s already closed", handle.topic)
            handle.state = "closed"
            return
        was_open = not handle.closed
        handle.state = "closed"
        if was_open and self._ws is not None:
            try:
                await self._push(handle.topic, "phx_leave", {})
            except (ConnectionClosed, RealtimeError, OSError):
                logger.debug("Socket closed before leaving %s", handle.topic)
        logger.info("Unsubscribed from %s.%s (%s)", handle.schema, handle.table, handle.topic)
        if not self._channels:
            await self.close()

    async def close(self) -> None:
        """Close the socket and every channel on it."""
        for handle in self._channels.values():
            handle.state = "closed"
        self._channels.clear()
        for task in (self._heartbeat_task, self._reader_task):
            if task and not task.done():
                task.cancel()
        self._heartbeat_task = None
        self._reader_task = None
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        self._fail_pending(RealtimeError("Realtime socket closed"))

    async def _ensure_connected(self) -> None:
        async with self._connect_lock:
            if self._ws is not None:
                return
            try:
                self._ws = await self._connect(self.socket_url())
            except (OSError, websockets.exceptions.WebSocketException) as exc:
                raise RealtimeError(f"Could not connect to realtime service: {exc}") from exc
            self._reader_task = asyncio.create_task(self._read_loop(self._ws))
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
            logger.info("Realtime socket connected")

    async def _push(
        self,
        topic: str,
        event: str,
        payload: Dict[str, Any],
        await_reply: bool = False,
    ) -> str:
        ref = str(next(self._refs))
        reply: Optional[asyncio.Future] = None
        if await_reply:
            reply = self._pending[ref] = asyncio.get_running_loop().create_future()
        message = {"topic": topic, "event": event, "payload": payload, "ref": ref}
        try:
            async with self._push_lock:
                wait = self._min_push_interval - (time.monotonic() - self._last_push)
                if wait > 0:
                    await asyncio.sleep(wait)
                if self._ws is None:
                    raise RealtimeError("Realtime socket is not connected")
                await self._ws.send(json.dumps(message))
                self._last_push = time.monotonic()
        except BaseException:
            self._pending.pop(ref, None)
            # A reply already failed by a socket drop still needs its error retrieved.
            if reply is not None and not reply.cancel():
                reply.exception()
            raise
        return ref

    async def _heartbeat_loop(self) -> None:
        while self._ws is not None:
            await asyncio.sleep(self.heartbeat_seconds)
            try:
                await self._push(PHOENIX_TOPIC, "heartbeat", {})
            except (ConnectionClosed, RealtimeError):
                return

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Ignoring malformed realtime frame")
                    continue
                self._dispatch(message)
        except ConnectionClosed as exc:
            logger.warning("Realtime socket dropped: %s", exc)
        finally:
            if self._ws is ws:
                self._ws = None
                for handle in self._channels.values():
                    handle.state = "closed"
                self._fail_pending(RealtimeError("Realtime socket closed"))

    def _dispatch(self, message: Dict[str, Any]) -> None:
        event = message.get("event")
        topic = message.get("topic")
        payload = message.get("payload") or {}

        if event == "phx_reply":
            future = self._pending.get(str(message.get("ref")))
            if future is not None and not future.done():
                future.set_result(payload)
            return

        handle = self._channels.get(topic)
        if handle is None:
            return

        if event == "postgres_changes":
            data = payload.get("data") or {}
            try:
                change = ChangeEvent.from_payload(data)
            except ValueError:
                logger.warning("Ignoring change with unknown type on %s: %s", topic, data.get("type"))
                return
            task = asyncio.create_task(self._run_callback(handle, change))
            self._callback_tasks.add(task)
            task.add_done_callback(self._callback_tasks.discard)
        elif event in ("phx_close", "phx_error"):
            logger.warning("Realtime channel %s closed by server (%s)", topic, event)
            handle.state = "closed"
        elif event == "system" and payload.get("status") == "error":
            logger.error("Realtime channel %s reported: %s", topic, payload.get("message"))

    async def _run_callback(self, handle: ChannelHandle, change: ChangeEvent) -> None:
        try:
            result = handle.on_change(change)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Change handler for %s failed", handle.topic)

    def _drop(self, handle: ChannelHandle) -> None:
        self._channels.pop(handle.topic, None)
        handle.state = "closed"

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()
