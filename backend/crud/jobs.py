"""Tracking of submitted jobs through realtime status updates."""

import asyncio
import dataclasses
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import psycopg

from actions.jobs import submit_jobs
from core.realtime import JobChannel, Subscription
from crud.types import Job, JobSpec


logger = logging.getLogger(__name__)

_UPDATABLE = ("name", "url", "status")


def apply_job_update(jobs: tuple[Job, ...], update: Mapping[str, Any]) -> tuple[Job, ...]:
    """Fold one pushed row into the snapshot.

    The job with the matching id is replaced with the pushed fields merged in.
    An update for an id not in the snapshot is dropped.
    """
    job_id = str(update.get("id"))
    if not any(job.id == job_id for job in jobs):
        return jobs

    changes = {k: update[k] for k in _UPDATABLE if k in update}
    return tuple(
        dataclasses.replace(job, **changes) if job.id == job_id else job
        for job in jobs
    )


class JobTracker:
    """Submits a batch of jobs for an entity and follows their status.

    ``start`` queues the jobs and subscribes to updates for the entity id.
    The snapshot in ``jobs`` is replaced, never mutated, as updates arrive.
    Jobs that never receive an update stay ``pending``.
    """

    def __init__(
        self,
        entity: str,
        specs: Sequence[JobSpec],
        conn: psycopg.AsyncConnection,
        channel: JobChannel,
    ) -> None:
        self.entity = entity
        self.specs = list(specs)
        self.conn = conn
        self.channel = channel
        self.entity_id: str | None = None
        self._jobs: tuple[Job, ...] = ()
        self._subscription: Subscription | None = None
        self._submit_task: asyncio.Task | None = None
        self._pump_task: asyncio.Task | None = None
        self._run = 0

    @property
    def jobs(self) -> tuple[Job, ...]:
        return self._jobs

    @property
    def pending(self) -> bool:
        return self._submit_task is not None and not self._submit_task.done()

    def start(self, entity_id: Any) -> None:
        if not entity_id:
            return

        self._teardown()
        self._run += 1
        self.entity_id = str(entity_id)
        self._jobs = ()

        self._subscription = self.channel.subscribe(self.entity, self.entity_id)
        self._pump_task = asyncio.create_task(self._pump(self._subscription))
        self._submit_task = asyncio.create_task(self._submit(self._run, self.entity_id))

    async def _submit(self, run: int, entity_id: str) -> None:
        try:
            result = await submit_jobs(self.conn, self.entity, entity_id, self.specs)
        except Exception:
            logger.exception("Job submission for %s %s failed", self.entity, entity_id)
            return
        if run != self._run:
            return
        if result.success and result.data:
            self._jobs = tuple(result.data)
        else:
            logger.info("No jobs queued for %s %s: %s", self.entity, entity_id, result.message)

    async def _pump(self, subscription: Subscription) -> None:
        async for update in subscription:
            if subscription is not self._subscription:
                return
            self._jobs = apply_job_update(self._jobs, update)

    def _teardown(self) -> None:
        if self._subscription:
            self._subscription.close()
            self._subscription = None
        if self._pump_task:
            self._pump_task.cancel()
            self._pump_task = None

    def close(self) -> None:
        """Unsubscribe now; a submission still in flight is ignored when it lands."""
        self._teardown()
        self._run += 1
