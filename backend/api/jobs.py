"""Webhook job submission, status listing and live status stream."""

import json
from collections.abc import AsyncGenerator

import psycopg
from litestar import Controller, Response, get, post
from litestar.exceptions import HTTPException
from litestar.response import ServerSentEvent

from actions.jobs import list_jobs, submit_jobs
from core.guards import require_capability
from core.realtime import JobChannel
from core.responses import ActionState
from crud.entity_jobs import get_entity_job_config
from crud.types import Job


# Table name of each entity to its key in the job registry.
JOB_ENTITIES = {
    "client": "client",
    "pre_order": "preOrder",
    "order": "order",
    "pre_invoice": "preInvoice",
    "invoice": "invoice",
}

OPERATIONS = ("view", "edit", "delete", "add")


def _job_config_key(entity: str) -> str:
    try:
        return JOB_ENTITIES[entity]
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown entity: {entity}") from None


def job_update(row: dict) -> dict:
    """The fields of a notified job row a client needs."""
    return {key: row.get(key) for key in ("id", "name", "url", "status")}


class JobsController(Controller):
    path = "/api/jobs"
    tags = ["jobs"]

    @post("/{entity:str}/{entity_id:str}/{operation:str}", guards=[require_capability("jobs:write")])
    async def submit(
        self,
        conn: psycopg.AsyncConnection,
        entity: str,
        entity_id: str,
        operation: str,
    ) -> Response[ActionState[list[Job]]]:
        """Queue the jobs configured for ``operation`` on one entity."""
        if operation not in OPERATIONS:
            raise HTTPException(status_code=400, detail=f"Unknown operation: {operation}")

        specs = get_entity_job_config(_job_config_key(entity), operation)
        state = await submit_jobs(conn, entity, entity_id, specs)
        return Response(state, status_code=201 if state.success else 400)

    @get("/{entity:str}/{entity_id:str}", guards=[require_capability("jobs:read")])
    async def list_for_entity(
        self,
        conn: psycopg.AsyncConnection,
        entity: str,
        entity_id: str,
    ) -> ActionState[list[Job]]:
        _job_config_key(entity)
        return await list_jobs(conn, entity, entity_id)

    @get("/{entity:str}/{entity_id:str}/stream", guards=[require_capability("jobs:read")])
    async def stream(
        self,
        channel: JobChannel,
        entity: str,
        entity_id: str,
    ) -> ServerSentEvent:
        """Server-sent events, one per job row update for the entity."""
        _job_config_key(entity)
        subscription = channel.subscribe(entity, entity_id)

        async def updates() -> AsyncGenerator[str, None]:
            try:
                async for row in subscription:
                    yield json.dumps(job_update(row), ensure_ascii=False)
            finally:
                subscription.close()

        return ServerSentEvent(updates(), event_type="job")
