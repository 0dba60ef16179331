"""In-process fan-out of job row updates pushed by PostgreSQL NOTIFY.

One LISTEN connection per process receives ``row_to_json(NEW)`` payloads from
the ``n8n_job`` update trigger. Each payload is routed to the subscriptions
registered for its ``(entity, entity_id)`` pair.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import psycopg


logger = logging.getLogger(__name__)


class Subscription:
    """Queue of job updates for a single ``(entity, entity_id)`` pair."""

    def __init__(self, channel: "JobChannel", entity: str, entity_id: str) -> None:
        self.channel = channel
        self.entity = entity
        self.entity_id = entity_id
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.closed = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.entity, self.entity_id)

    async def get(self) -> dict[str, Any]:
        return await self.queue.get()

    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        while not self.closed:
            yield await self.queue.get()

    def close(self) -> None:
        """Stop receiving updates. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self.channel.unsubscribe(self)


class JobChannel:
    def __init__(self, name: str = "n8n_job_updates") -> None:
        self.name = name
        self._subscriptions: dict[tuple[str, str], list[Subscription]] = {}
        self._listener: asyncio.Task | None = None
        self._conn: psycopg.AsyncConnection | None = None

    def subscribe(self, entity: str, entity_id: Any) -> Subscription:
        sub = Subscription(self, entity, str(entity_id))
        self._subscriptions.setdefault(sub.key, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        subs = self._subscriptions.get(sub.key)
        if not subs or sub not in subs:
            return
        subs.remove(sub)
        if not subs:
            del self._subscriptions[sub.key]

    def subscriber_count(self, entity: str, entity_id: Any) -> int:
        return len(self._subscriptions.get((entity, str(entity_id)), []))

    def publish(self, row: dict[str, Any]) -> int:
        """Deliver a job row to matching subscriptions; returns delivery count."""
        key = (str(row.get("entity")), str(row.get("entity_id")))
        subs = self._subscriptions.get(key, [])
        for sub in subs:
            sub.queue.put_nowait(row)
        return len(subs)

    def publish_payload(self, payload: str) -> int:
        try:
            row = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed job notification: %r", payload)
            return 0
        if not isinstance(row, dict):
            logger.warning("Ignoring non-object job notification: %r", payload)
            return 0
        return self.publish(row)

    @property
    def listening(self) -> bool:
        return self._listener is not None and not self._listener.done()

    async def start(self, conninfo: str) -> None:
        """Open the LISTEN connection and begin routing notifications."""
        self._conn = await psycopg.AsyncConnection.connect(conninfo, autocommit=True)
        await self._conn.execute(f'LISTEN "{self.name}"')
        self.listen_on(self._conn)

    def listen_on(self, conn: psycopg.AsyncConnection) -> None:
        """Route notifications arriving on an already listening connection."""
        self._listener = asyncio.create_task(self._listen(conn))
        self._listener.add_done_callback(self._listener_done)

    async def _listen(self, conn: psycopg.AsyncConnection) -> None:
        async for notify in conn.notifies():
            self.publish_payload(notify.payload)

    def _listener_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Job listener on %s stopped", self.name, exc_info=error)
        else:
            logger.warning("Job listener on %s stopped: connection closed", self.name)

    async def stop(self) -> None:
        if self._listener:
            if not self._listener.done():
                self._listener.cancel()
                try:
                    await self._listener
                except asyncio.CancelledError:
                    pass
            self._listener = None
        if self._conn:
            await self._conn.close()
            self._conn = None


channel: JobChannel | None = None


async def init_channel(conninfo: str, name: str) -> None:
    """Start the process-wide job update listener."""
    global channel
    channel = JobChannel(name)
    await channel.start(conninfo)


async def close_channel() -> None:
    global channel
    if channel:
        await channel.stop()
        channel = None


async def provide_channel() -> JobChannel:
    """Litestar dependency provider for the job update channel."""
    if not channel:
        raise RuntimeError("Job channel not initialized")
    return channel
