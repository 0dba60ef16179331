"""Server actions for pre-orders."""

import logging
from collections.abc import Mapping
from typing import Any

import psycopg

import core.db as db
from core.persian import (
    parse_number,
    validate_pre_order_conversion,
    validate_status_transition,
)
from core.persian import currency as currency_error
from core.responses import ActionState, fail, ok
from crud.dependencies import (
    check_entity_dependencies,
    check_status_based_deletion,
    generic_entity_delete,
)
from crud.types import Row


logger = logging.getLogger(__name__)

PRE_ORDER_STATUS_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["approved", "rejected"],
    "approved": ["converted", "rejected", "pending"],
    "rejected": ["pending"],
    "converted": [],
}

# Shown as "تعیین نشده" in the table.
UNSET_AMOUNT = -1


# ---------------------------------------------------------------------------
# SQL Queries
# ---------------------------------------------------------------------------


_PRE_ORDER_FILTERS = """
    WHERE
        (%(types)s::text[] IS NULL OR po.type = ANY(%(types)s))
        AND (%(statuses)s::text[] IS NULL OR po.status = ANY(%(statuses)s))
        AND (
            %(search)s::text IS NULL
            OR po.client_name ILIKE %(search)s
            OR po.description ILIKE %(search)s
        )
"""


def sql_count_pre_orders() -> str:
    return f"SELECT count(*) AS total FROM pre_order po {_PRE_ORDER_FILTERS}"


def sql_select_pre_orders() -> str:
    return f"""
        SELECT
            po.id,
            po.client_id,
            po.client_name,
            po.type,
            po.description,
            po.estimated_amount,
            po.status,
            po.created_at
        FROM pre_order po
        {_PRE_ORDER_FILTERS}
        ORDER BY po.created_at DESC, po.id DESC
        LIMIT %(limit)s OFFSET %(offset)s
    """


def sql_insert_pre_order() -> str:
    return """
        INSERT INTO pre_order
            (client_id, client_name, type, description, estimated_amount, status)
        VALUES
            (%(client_id)s, %(client_name)s, %(type)s, %(description)s,
             %(estimated_amount)s, 'pending')
        RETURNING id
    """


def sql_select_pre_order_status() -> str:
    return "SELECT id, status FROM pre_order WHERE id = %(id)s"


def sql_update_pre_order() -> str:
    return """
        UPDATE pre_order
        SET
            description = %(description)s,
            estimated_amount = %(estimated_amount)s,
            status = %(status)s
        WHERE id = %(id)s
    """


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def _filter_params(client_types: list[str], statuses: list[str], search_term: str) -> dict:
    return {
        "types": db.any_filter(client_types),
        "statuses": db.any_filter(statuses),
        "search": db.contains_pattern(search_term),
    }


async def get_total_pre_orders(
    conn: psycopg.AsyncConnection,
    client_types: list[str],
    statuses: list[str],
    search_term: str,
) -> ActionState[int]:
    try:
        row = await db.fetch_one(
            conn, sql_count_pre_orders(), _filter_params(client_types, statuses, search_term)
        )
    except psycopg.Error as e:
        logger.error("Counting pre-orders failed: %s", e)
        return fail("اینترنت خود را چک کنید و دوباره تلاش کنید.")
    except Exception:
        logger.exception("Error in get_total_pre_orders")
        return fail("خطا در دریافت تعداد پیش سفارش‌ها.")

    return ok("اطلاعات با موفقیت دریافت شدند.", data=row["total"] if row else 0)


def pre_order_row(record: Mapping[str, Any]) -> Row:
    created_at = record.get("created_at")
    amount = record.get("estimated_amount")
    return Row(
        id=str(record["id"]),
        type=record["type"],
        status=record["status"],
        data={
            "id": str(record["id"]),
            "client_name": record["client_name"],
            "description": record["description"],
            "estimated_amount": float(amount) if amount else UNSET_AMOUNT,
            "created_at": created_at.isoformat() if created_at else None,
            "client_id": str(record["client_id"]),
        },
    )


async def get_pre_orders(
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
        records = await db.fetch_all(conn, sql_select_pre_orders(), params)
        rows = [pre_order_row(r) for r in records]
    except psycopg.Error as e:
        logger.error("Error getting pre-orders: %s", e)
        return fail("ایراد سمت سرور لطفا اینترنت خود را بررسی کنید.")
    except Exception:
        logger.exception("Error in get_pre_orders")
        return fail("خطا در دریافت پیش سفارش‌ها.")

    return ok("اطلاعات با موفقیت دریافت شدند.", data=rows)


async def add_pre_order(
    conn: psycopg.AsyncConnection, form: Mapping[str, Any]
) -> ActionState[str | None]:
    try:
        row = await db.execute_returning(
            conn,
            sql_insert_pre_order(),
            {
                "client_id": form.get("client_id"),
                "client_name": form.get("client_name"),
                "type": form.get("client_type"),
                "description": form.get("description"),
                "estimated_amount": parse_number(form.get("estimated_amount")),
            },
        )
    except psycopg.Error as e:
        logger.error("Adding pre-order failed: %s", e)
        row = None

    if not row:
        return fail("ثبت پیش سفارش موفقیت آمیز نبود دوباره تلاش کنید.")

    return ok("ثبت پیش سفارش با موفقیت انجام شد.", data=str(row["id"]))


async def update_pre_order(
    conn: psycopg.AsyncConnection, pre_order_id: str, form: Mapping[str, Any]
) -> ActionState[str]:
    """Update description, amount and status, enforcing the status workflow."""
    description = str(form.get("description") or "").strip()
    if not description:
        return fail("شرح پیش سفارش الزامی است.")

    amount = form.get("estimated_amount")
    if amount not in (None, ""):
        error = currency_error(amount)
        if error:
            return fail(error)

    try:
        current = await db.fetch_one(conn, sql_select_pre_order_status(), {"id": pre_order_id})
        if not current:
            return fail("پیش سفارش یافت نشد.")

        status = form.get("status") or current["status"]
        if status != current["status"]:
            error = validate_status_transition(
                current["status"], status, PRE_ORDER_STATUS_TRANSITIONS
            )
            if error:
                return fail(error)
            if status == "converted":
                error = validate_pre_order_conversion(current["status"])
                if error:
                    return fail(error)

        await db.execute(
            conn,
            sql_update_pre_order(),
            {
                "id": pre_order_id,
                "description": description,
                "estimated_amount": parse_number(amount) if amount not in (None, "") else None,
                "status": status,
            },
        )
    except psycopg.Error as e:
        logger.error("Updating pre-order %s failed: %s", pre_order_id, e)
        return fail("خطا در به‌روزرسانی پیش سفارش.")

    return ok("پیش سفارش با موفقیت به‌روزرسانی شد.", data=pre_order_id)


async def delete_pre_order(conn: psycopg.AsyncConnection, pre_order_id: str) -> ActionState[bool]:
    try:
        current = await db.fetch_one(conn, sql_select_pre_order_status(), {"id": pre_order_id})
    except psycopg.Error as e:
        logger.error("Loading pre-order %s failed: %s", pre_order_id, e)
        return fail("خطای سرور. لطفاً دوباره تلاش کنید.")

    if not current:
        return fail("پیش سفارش یافت نشد.")

    async def status_check(_: str) -> str | None:
        return check_status_based_deletion("pre_order", current["status"])

    return await generic_entity_delete(conn, "pre_order", pre_order_id, "pre_order", status_check)


async def check_pre_order_dependencies(
    conn: psycopg.AsyncConnection, pre_order_id: str
) -> ActionState[bool]:
    return await check_entity_dependencies(conn, "pre_order", pre_order_id)
