"""Cross-table dependency checks and the generic delete pipeline."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import psycopg

import core.db as db
from core.responses import ActionState, fail, ok


logger = logging.getLogger(__name__)

DELETABLE_MESSAGE = "رکورد قابل حذف است."
CHECK_ERROR_MESSAGE = "خطا در بررسی وابستگی‌ها."
CHECK_SERVER_ERROR_MESSAGE = "خطای سرور در بررسی وابستگی‌ها."


@dataclass(frozen=True)
class DependencyConfig:
    table: str
    column: str
    message: str


ENTITY_DEPENDENCIES: dict[str, list[DependencyConfig]] = {
    "client": [
        DependencyConfig("pre_order", "client_id", "این مشتری دارای پیش سفارش است و قابل حذف نیست."),
        DependencyConfig("order", "client_id", "این مشتری دارای سفارش است و قابل حذف نیست."),
        DependencyConfig("pre_invoice", "client_id", "این مشتری دارای پیش فاکتور است و قابل حذف نیست."),
        DependencyConfig("invoice", "client_id", "این مشتری دارای فاکتور است و قابل حذف نیست."),
    ],
    "pre_order": [
        DependencyConfig("order", "pre_order_id", "این پیش سفارش به سفارش تبدیل شده و قابل حذف نیست."),
    ],
    "order": [
        DependencyConfig("pre_invoice", "order_id", "این سفارش دارای پیش فاکتور است و قابل حذف نیست."),
        DependencyConfig("invoice", "order_id", "این سفارش فاکتور شده و قابل حذف نیست."),
    ],
    "pre_invoice": [
        DependencyConfig("invoice", "pre_invoice_id", "این پیش فاکتور به فاکتور تبدیل شده و قابل حذف نیست."),
    ],
    "invoice": [],
}

STATUS_DELETE_BANS: dict[str, dict[str, str]] = {
    "order": {
        "invoiced": "سفارش فاکتور شده قابل حذف نیست.",
        "completed": "سفارش تکمیل شده قابل حذف نیست.",
    },
    "invoice": {
        "paid": "فاکتور پرداخت شده قابل حذف نیست.",
        "finalized": "فاکتور نهایی شده قابل حذف نیست.",
    },
    "pre_order": {
        "converted": "پیش سفارش تبدیل شده قابل حذف نیست.",
    },
}

# Child rows removed before the main row. No entity declares any yet.
CASCADE_RULES: dict[str, list[tuple[str, str]]] = {
    "client": [],
    "pre_order": [],
    "order": [],
    "pre_invoice": [],
    "invoice": [],
}


# ---------------------------------------------------------------------------
# SQL Queries
# ---------------------------------------------------------------------------


def sql_find_dependent_row(table: str, column: str) -> str:
    """First row referencing the entity, if any."""
    return f'SELECT id FROM "{table}" WHERE "{column}" = %(id)s LIMIT 1'


def sql_delete_by_column(table: str, column: str) -> str:
    return f'DELETE FROM "{table}" WHERE "{column}" = %(id)s'


def sql_delete_by_id(table: str) -> str:
    return f'DELETE FROM "{table}" WHERE id = %(id)s'


# ---------------------------------------------------------------------------
# Check outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Deletable:
    message: str = DELETABLE_MESSAGE


@dataclass(frozen=True)
class Blocked:
    reason: str


@dataclass(frozen=True)
class CheckFailed:
    error: str


CheckOutcome = Deletable | Blocked | CheckFailed


def outcome_to_state(outcome: CheckOutcome) -> ActionState[bool]:
    """Envelope form: ``success`` reports the check, ``data`` deletability."""
    match outcome:
        case Deletable(message=message):
            return ok(message, data=True)
        case Blocked(reason=reason):
            return ok(reason, data=False)
        case CheckFailed(error=error):
            return fail(error)


async def check_deletable(
    conn: psycopg.AsyncConnection, entity_type: str, entity_id: str
) -> CheckOutcome:
    """Query each configured dependency in order; the first hit wins."""
    try:
        for dependency in ENTITY_DEPENDENCIES.get(entity_type, []):
            try:
                row = await db.fetch_one(
                    conn,
                    sql_find_dependent_row(dependency.table, dependency.column),
                    {"id": entity_id},
                )
            except psycopg.Error as e:
                logger.error(
                    "Dependency query on %s.%s failed: %s",
                    dependency.table,
                    dependency.column,
                    e,
                )
                return CheckFailed(CHECK_ERROR_MESSAGE)

            if row:
                return Blocked(dependency.message)
    except Exception:
        logger.exception("Dependency check for %s %s failed", entity_type, entity_id)
        return CheckFailed(CHECK_SERVER_ERROR_MESSAGE)

    return Deletable()


async def check_entity_dependencies(
    conn: psycopg.AsyncConnection, entity_type: str, entity_id: str
) -> ActionState[bool]:
    return outcome_to_state(await check_deletable(conn, entity_type, entity_id))


def check_status_based_deletion(entity_type: str, status: str) -> str | None:
    """Message explaining why a row in this status cannot be deleted, if any."""
    return STATUS_DELETE_BANS.get(entity_type, {}).get(status)


async def cascade_delete_related_records(
    conn: psycopg.AsyncConnection, entity_type: str, entity_id: str
) -> ActionState[bool]:
    """Best-effort removal of child rows; a failing table is logged and skipped."""
    try:
        for table, column in CASCADE_RULES.get(entity_type, []):
            try:
                async with conn.transaction():
                    await db.execute(conn, sql_delete_by_column(table, column), {"id": entity_id})
            except psycopg.Error as e:
                logger.error("Error cascading delete from %s: %s", table, e)
    except Exception:
        logger.exception("Cascade delete for %s %s failed", entity_type, entity_id)
        return fail("خطا در حذف رکوردهای مرتبط.")

    return ok("رکوردهای مرتبط با موفقیت حذف شدند.", data=True)


AdditionalCheck = Callable[[str], Awaitable[str | None]]


async def generic_entity_delete(
    conn: psycopg.AsyncConnection,
    entity_type: str,
    entity_id: str,
    table: str,
    additional_checks: AdditionalCheck | None = None,
) -> ActionState[bool]:
    """Entity check, dependency check, cascade, then delete the main row.

    The first failing step's message is returned and nothing after it runs.
    A found dependency fails the delete with ``data=False``.
    """
    try:
        if additional_checks:
            additional_error = await additional_checks(entity_id)
            if additional_error:
                return fail(additional_error)

        outcome = await check_deletable(conn, entity_type, entity_id)
        match outcome:
            case Blocked(reason=reason):
                return fail(reason, data=False)
            case CheckFailed(error=error):
                return fail(error)

        await cascade_delete_related_records(conn, entity_type, entity_id)

        try:
            await db.execute(conn, sql_delete_by_id(table), {"id": entity_id})
        except psycopg.Error as e:
            logger.error("Delete from %s failed for %s: %s", table, entity_id, e)
            return fail("خطا در حذف رکورد.")
    except Exception:
        logger.exception("Delete of %s %s failed", entity_type, entity_id)
        return fail("خطای سرور. لطفاً دوباره تلاش کنید.")

    return ok("رکورد با موفقیت حذف شد.", data=True)
