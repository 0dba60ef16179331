"""Server actions for external webhook jobs stored in ``n8n_job``."""

import logging
from collections.abc import Sequence

import psycopg

import core.db as db
from core.responses import ActionState, fail, ok
from crud.types import Job, JobSpec


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# SQL Queries
# ---------------------------------------------------------------------------


def sql_insert_job() -> str:
    """Queue one job in pending state."""
    return """
        INSERT INTO n8n_job (entity, entity_id, status, url, name)
        VALUES (%(entity)s, %(entity_id)s, 'pending', %(url)s, %(name)s)
        RETURNING id, name, url, status
    """


def sql_select_jobs() -> str:
    return """
        SELECT id, name, url, status
        FROM n8n_job
        WHERE entity = %(entity)s AND entity_id = %(entity_id)s
        ORDER BY id
    """


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def job_from_row(row: dict) -> Job:
    return Job(
        id=str(row["id"]),
        name=row["name"],
        url=row["url"],
        status=row["status"],
    )


async def submit_jobs(
    conn: psycopg.AsyncConnection,
    entity: str,
    entity_id: str,
    specs: Sequence[JobSpec],
) -> ActionState[list[Job]]:
    """Insert one pending row per spec.

    The returned list always matches ``specs`` in length and order: an insert
    that fails is reported as a placeholder job in ``error`` state.
    """
    if not specs:
        return fail("هیچ اکشنی پیدا نشد.")

    jobs: list[Job] = []
    unsubmitted = 0
    for spec in specs:
        try:
            async with conn.transaction():
                row = await db.execute_returning(
                    conn,
                    sql_insert_job(),
                    {
                        "entity": entity,
                        "entity_id": str(entity_id),
                        "url": spec.url,
                        "name": spec.name,
                    },
                )
        except psycopg.Error as e:
            logger.error("Could not queue job %r for %s %s: %s", spec.name, entity, entity_id, e)
            row = None

        if row:
            jobs.append(job_from_row(row))
        else:
            unsubmitted += 1
            jobs.append(
                Job(
                    id=f"unsubmitted-{unsubmitted}",
                    name=spec.name,
                    url=spec.url,
                    status="error",
                )
            )

    return ok("همه یا بخشی از اکشن‌ها با موفقیت ثبت شدند.", data=jobs)


async def list_jobs(
    conn: psycopg.AsyncConnection, entity: str, entity_id: str
) -> ActionState[list[Job]]:
    """Current state of every job queued for an entity."""
    try:
        rows = await db.fetch_all(
            conn, sql_select_jobs(), {"entity": entity, "entity_id": str(entity_id)}
        )
    except psycopg.Error as e:
        logger.error("Could not list jobs for %s %s: %s", entity, entity_id, e)
        return fail("خطا در دریافت وضعیت اکشن‌ها.", data=[])

    return ok("وضعیت اکشن‌ها با موفقیت دریافت شد.", data=[job_from_row(r) for r in rows])
