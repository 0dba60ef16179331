"""Server actions for orders (read side)."""

import logging
from collections.abc import Mapping
from typing import Any

import psycopg

import core.db as db
from core.responses import ActionState, fail, ok
from crud.types import Row


logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_NAME = "نامشخص"


# ---------------------------------------------------------------------------
# SQL Queries
# ---------------------------------------------------------------------------


_ORDER_FILTERS = """
    WHERE
        (%(statuses)s::text[] IS NULL OR o.status = ANY(%(statuses)s))
        AND (
            %(search)s::text IS NULL
            OR o.description ILIKE %(search)s
            OR o.order_number ILIKE %(search)s
        )
"""


def sql_count_orders() -> str:
    return f'SELECT count(*) AS total FROM "order" o {_ORDER_FILTERS}'


def sql_select_orders() -> str:
    """One page of orders with the name of the client's person or company."""
    return f"""
        SELECT
            o.id,
            o.order_number,
            o.description,
            o.total_amount,
            o.status,
            o.created_at,
            o.client_id,
            o.pre_order_id,
            c.id AS client_ref,
            COALESCE(p.name, co.name) AS client_name
        FROM "order" o
        LEFT JOIN client c ON c.id = o.client_id
        LEFT JOIN person p ON p.id = c.person_id
        LEFT JOIN company co ON co.id = c.company_id
        {_ORDER_FILTERS}
        ORDER BY o.created_at DESC, o.id DESC
        LIMIT %(limit)s OFFSET %(offset)s
    """


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def _filter_params(statuses: list[str], search_term: str) -> dict:
    return {
        "statuses": db.any_filter(statuses),
        "search": db.contains_pattern(search_term),
    }


async def get_total_orders(
    conn: psycopg.AsyncConnection,
    client_types: list[str],
    statuses: list[str],
    search_term: str,
) -> ActionState[int]:
    """Count orders. Orders carry no client type, so ``client_types`` is ignored."""
    try:
        row = await db.fetch_one(conn, sql_count_orders(), _filter_params(statuses, search_term))
    except psycopg.Error as e:
        logger.error("Counting orders failed: %s", e)
        return fail("اینترنت خود را چک کنید و دوباره تلاش کنید.")
    except Exception:
        logger.exception("Error in get_total_orders")
        return fail("خطا در دریافت تعداد سفارش‌ها.")

    return ok("تعداد سفارش‌ها با موفقیت دریافت شد.", data=row["total"] if row else 0)


def order_row(record: Mapping[str, Any]) -> Row | None:
    """Table row for an order, or None when its client no longer exists."""
    if record.get("client_ref") is None:
        return None

    created_at = record.get("created_at")
    pre_order_id = record.get("pre_order_id")
    amount = record.get("total_amount")
    return Row(
        id=str(record["id"]),
        type="company",
        status=record["status"],
        data={
            "id": str(record["id"]),
            "name": f"سفارش {record['order_number']}",
            "client_name": record.get("client_name") or UNKNOWN_CLIENT_NAME,
            "description": record["description"],
            "total_amount": float(amount) if amount is not None else 0,
            "created_at": created_at.isoformat() if created_at else None,
            "client_id": str(record["client_id"]),
            "pre_order_id": str(pre_order_id) if pre_order_id is not None else None,
            "order_number": record["order_number"],
        },
    )


async def get_orders(
    conn: psycopg.AsyncConnection,
    start: int,
    end: int,
    client_types: list[str],
    statuses: list[str],
    search_term: str,
    limit: int,
    page: int,
) -> ActionState[list[Row | None]]:
    params = _filter_params(statuses, search_term)
    params.update(limit=limit, offset=start)
    try:
        records = await db.fetch_all(conn, sql_select_orders(), params)
        rows = [order_row(r) for r in records]
    except psycopg.Error as e:
        logger.error("Error getting orders: %s", e)
        return fail("ایراد سمت سرور لطفا اینترنت خود را بررسی کنید.")
    except Exception:
        logger.exception("Error in get_orders")
        return fail("خطا در دریافت سفارش‌ها.")

    return ok("اطلاعات با موفقیت دریافت شدند.", data=rows)
