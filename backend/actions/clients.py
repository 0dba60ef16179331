"""Server actions for clients and their person/company records."""

import logging
from collections.abc import Mapping
from typing import Any

import psycopg

import core.db as db
from core.responses import ActionState, fail, ok
from crud.dependencies import check_entity_dependencies, generic_entity_delete
from crud.types import Row


logger = logging.getLogger(__name__)

CLIENT_STATUSES = ("done", "paused", "not_started")
REQUIRED_FIELDS = ("name", "phone", "address", "ssn")


# ---------------------------------------------------------------------------
# SQL Queries
# ---------------------------------------------------------------------------


_CLIENT_FILTERS = """
    WHERE
        (%(types)s::text[] IS NULL OR c.type = ANY(%(types)s))
        AND (%(statuses)s::text[] IS NULL OR c.status = ANY(%(statuses)s))
        AND (
            %(search)s::text IS NULL
            OR COALESCE(co.name, p.name) ILIKE %(search)s
        )
"""


def sql_count_clients() -> str:
    return f"""
        SELECT count(*) AS total
        FROM client c
        LEFT JOIN person p ON p.id = c.person_id
        LEFT JOIN company co ON co.id = c.company_id
        {_CLIENT_FILTERS}
    """


def sql_select_clients() -> str:
    """One page of clients with the person or company they stand for."""
    return f"""
        SELECT
            c.id,
            c.type,
            c.status,
            CASE
                WHEN c.company_id IS NOT NULL THEN row_to_json(co)
                ELSE row_to_json(p)
            END AS entity
        FROM client c
        LEFT JOIN person p ON p.id = c.person_id
        LEFT JOIN company co ON co.id = c.company_id
        {_CLIENT_FILTERS}
        ORDER BY c.id
        LIMIT %(limit)s OFFSET %(offset)s
    """


def sql_insert_party(table: str) -> str:
    """Insert a person or company."""
    return f"""
        INSERT INTO {table} (name, ssn, phone, address, postal_code)
        VALUES (%(name)s, %(ssn)s, %(phone)s, %(address)s, %(postal_code)s)
        RETURNING id
    """


def sql_insert_client() -> str:
    return """
        INSERT INTO client (person_id, company_id, type, status)
        VALUES (%(person_id)s, %(company_id)s, %(type)s, 'not_started')
        RETURNING id
    """


def sql_select_client_parties() -> str:
    return "SELECT person_id, company_id, type FROM client WHERE id = %(id)s"


def sql_update_party(table: str) -> str:
    return f"""
        UPDATE {table}
        SET
            name = %(name)s,
            phone = %(phone)s,
            address = %(address)s,
            ssn = %(ssn)s,
            postal_code = %(postal_code)s
        WHERE id = %(id)s
    """


def sql_update_client_status() -> str:
    return "UPDATE client SET status = %(status)s WHERE id = %(id)s"


def sql_delete_party(table: str) -> str:
    return f"DELETE FROM {table} WHERE id = %(id)s"


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def _filter_params(client_types: list[str], statuses: list[str], search_term: str) -> dict:
    return {
        "types": db.any_filter(client_types),
        "statuses": db.any_filter(statuses),
        "search": db.contains_pattern(search_term),
    }


async def get_total_clients(
    conn: psycopg.AsyncConnection,
    client_types: list[str],
    statuses: list[str],
    search_term: str,
) -> ActionState[int]:
    try:
        row = await db.fetch_one(
            conn, sql_count_clients(), _filter_params(client_types, statuses, search_term)
        )
    except psycopg.Error as e:
        logger.error("Counting clients failed: %s", e)
        return fail("اینترنت خود را چک کنید و دوباره تلاش کنید.")

    return ok("تعداد مشتری‌ها با موفقیت دریافت شد.", data=row["total"] if row else 0)


def client_row(record: Mapping[str, Any]) -> Row | None:
    """Table row for a client, or None when its person/company is missing."""
    entity = record.get("entity")
    if not entity:
        return None

    data = dict(entity)
    data["id"] = str(record["id"])
    return Row(
        id=str(record["id"]),
        type=record["type"],
        data=data,
        status=record["status"],
    )


async def get_clients(
    conn: psycopg.AsyncConnection,
    start: int,
    end: int,
    client_types: list[str],
    statuses: list[str],
    search_term: str,
    limit: int,
    page: int,
) -> ActionState[list[Row | None]]:
    params = _filter_params(client_types, statuses, search_term)
    params.update(limit=limit, offset=start)
    try:
        records = await db.fetch_all(conn, sql_select_clients(), params)
    except psycopg.Error as e:
        logger.error("Fetching clients page %s failed: %s", page, e)
        return fail("ایراد سمت سرور لطفا اینترنت خود را بررسی کنید.")

    return ok("اطلاعات با موفقیت دریافت شدند.", data=[client_row(r) for r in records])


async def add_client(
    conn: psycopg.AsyncConnection, form: Mapping[str, Any]
) -> ActionState[str | None]:
    """Create the person and/or company, then the client pointing at them."""
    person = {
        "name": form.get("name"),
        "ssn": form.get("ssn"),
        "phone": form.get("phone"),
        "address": form.get("address"),
        "postal_code": form.get("postal_code"),
    }
    company = {
        "name": form.get("company_name"),
        "ssn": form.get("company_ssn"),
        "phone": form.get("phone"),
        "address": form.get("company_address"),
        "postal_code": form.get("company_postal_code"),
    }

    try:
        async with conn.transaction():
            person_id = None
            company_id = None
            if person["name"]:
                person_id = (await db.execute_returning(conn, sql_insert_party("person"), person))["id"]
            if company["name"]:
                company_id = (await db.execute_returning(conn, sql_insert_party("company"), company))["id"]

            if person_id is None and company_id is None:
                return fail("ثبت مشتری موفقیت آمیز نبود دوباره تلاش کنید.")

            client = await db.execute_returning(
                conn,
                sql_insert_client(),
                {
                    "person_id": person_id,
                    "company_id": company_id,
                    "type": "company" if company_id else "personal",
                },
            )
    except psycopg.Error as e:
        logger.error("Adding client failed: %s", e)
        return fail("ثبت مشتری موفقیت آمیز نبود دوباره تلاش کنید.")

    return ok("ثبت مشتری با موفقیت انجام شد.", data=str(client["id"]))


async def update_client(
    conn: psycopg.AsyncConnection, client_id: str, form: Mapping[str, Any]
) -> ActionState[str]:
    if any(not str(form.get(key) or "").strip() for key in REQUIRED_FIELDS):
        return fail("تمام فیلدهای الزامی را پر کنید.")

    try:
        client = await db.fetch_one(conn, sql_select_client_parties(), {"id": client_id})
        if not client:
            return fail("مشتری یافت نشد.")

        table, party_id = (
            ("company", client["company_id"])
            if client["company_id"] is not None
            else ("person", client["person_id"])
        )

        async with conn.transaction():
            await db.execute(
                conn,
                sql_update_party(table),
                {
                    "id": party_id,
                    "name": form["name"],
                    "phone": form["phone"],
                    "address": form["address"],
                    "ssn": form["ssn"],
                    "postal_code": form.get("postal_code"),
                },
            )
            status = form.get("status")
            if status in CLIENT_STATUSES:
                await db.execute(conn, sql_update_client_status(), {"id": client_id, "status": status})
    except psycopg.Error as e:
        logger.error("Updating client %s failed: %s", client_id, e)
        return fail("خطا در به‌روزرسانی اطلاعات مشتری.")

    return ok("اطلاعات مشتری با موفقیت به‌روزرسانی شد.", data=client_id)


async def delete_client(conn: psycopg.AsyncConnection, client_id: str) -> ActionState[bool]:
    """Delete a client with no dependent records, then its person/company."""
    try:
        client = await db.fetch_one(conn, sql_select_client_parties(), {"id": client_id})
    except psycopg.Error as e:
        logger.error("Loading client %s failed: %s", client_id, e)
        return fail("خطای سرور. لطفاً دوباره تلاش کنید.")

    if not client:
        return fail("مشتری یافت نشد.")

    result = await generic_entity_delete(conn, "client", client_id, "client")
    if not result.success:
        return result

    for table, party_id in (("person", client["person_id"]), ("company", client["company_id"])):
        if party_id is None:
            continue
        try:
            async with conn.transaction():
                await db.execute(conn, sql_delete_party(table), {"id": party_id})
        except psycopg.Error as e:
            logger.error("Removing %s %s of client %s failed: %s", table, party_id, client_id, e)

    return ok("مشتری با موفقیت حذف شد.", data=True)


async def check_client_dependencies(
    conn: psycopg.AsyncConnection, client_id: str
) -> ActionState[bool]:
    return await check_entity_dependencies(conn, "client", client_id)
