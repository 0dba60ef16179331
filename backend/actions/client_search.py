"""Client name lookup for client pickers."""

import logging
from dataclasses import dataclass

import psycopg

import core.db as db
from core.responses import ActionState, fail, ok


logger = logging.getLogger(__name__)


@dataclass
class ClientOption:
    id: str
    name: str
    type: str


def sql_select_client_names() -> str:
    return """
        SELECT
            c.id AS client_id,
            COALESCE(co.name, p.name) AS client_name,
            c.type AS client_type
        FROM client c
        LEFT JOIN person p ON p.id = c.person_id
        LEFT JOIN company co ON co.id = c.company_id
        WHERE COALESCE(co.name, p.name) IS NOT NULL
        ORDER BY client_name
    """


async def get_all_client_names(conn: psycopg.AsyncConnection) -> ActionState[list[ClientOption]]:
    try:
        records = await db.fetch_all(conn, sql_select_client_names())
    except psycopg.Error as e:
        logger.error("Listing client names failed: %s", e)
        return fail("خطا در دریافت لیست مشتری‌ها.", data=[])

    options = [
        ClientOption(id=str(r["client_id"]), name=r["client_name"], type=r["client_type"])
        for r in records
    ]
    return ok("لیست مشتری‌ها با موفقیت دریافت شد.", data=options)
