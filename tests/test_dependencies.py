import asyncio

import psycopg

from crud.dependencies import (
    Blocked,
    CheckFailed,
    Deletable,
    check_deletable,
    check_entity_dependencies,
    check_status_based_deletion,
    generic_entity_delete,
    outcome_to_state,
)


def test_no_dependencies_is_deletable(conn):
    outcome = asyncio.run(check_deletable(conn, "client", "c1"))
    assert outcome == Deletable()
    # One query per configured dependency, in order.
    tables = [q.split('"')[1] for q, _ in conn.queries("SELECT id FROM")]
    assert tables == ["pre_order", "order", "pre_invoice", "invoice"]


def test_first_matching_dependency_wins(conn):
    conn.on('FROM "order"', [{"id": "o1"}])
    conn.on('FROM "invoice"', [{"id": "i1"}])

    outcome = asyncio.run(check_deletable(conn, "client", "c1"))

    assert outcome == Blocked("این مشتری دارای سفارش است و قابل حذف نیست.")
    # Querying stops at the first hit.
    assert not conn.queries('FROM "pre_invoice"')
    assert not conn.queries('FROM "invoice"')


def test_query_error_fails_the_check(conn):
    conn.on('FROM "pre_order"', psycopg.OperationalError("connection lost"))

    outcome = asyncio.run(check_deletable(conn, "client", "c1"))

    assert outcome == CheckFailed("خطا در بررسی وابستگی‌ها.")


def test_unexpected_error_is_a_server_error(conn):
    conn.on('FROM "pre_order"', RuntimeError("boom"))

    outcome = asyncio.run(check_deletable(conn, "client", "c1"))

    assert outcome == CheckFailed("خطای سرور در بررسی وابستگی‌ها.")


def test_unknown_entity_has_no_dependencies(conn):
    assert asyncio.run(check_deletable(conn, "widget", "w1")) == Deletable()
    assert conn.executed == []


def test_outcome_envelopes():
    state = outcome_to_state(Deletable())
    assert (state.success, state.data) == (True, True)

    state = outcome_to_state(Blocked("blocked"))
    assert (state.success, state.data, state.message) == (True, False, "blocked")

    state = outcome_to_state(CheckFailed("error"))
    assert (state.success, state.data) == (False, None)


def test_check_entity_dependencies_envelope(conn):
    conn.on('FROM "order"', [{"id": "o1"}])
    state = asyncio.run(check_entity_dependencies(conn, "pre_order", "p1"))
    assert state.success
    assert state.data is False
    assert state.message == "این پیش سفارش به سفارش تبدیل شده و قابل حذف نیست."


def test_status_bans():
    assert check_status_based_deletion("pre_order", "converted") == "پیش سفارش تبدیل شده قابل حذف نیست."
    assert check_status_based_deletion("order", "invoiced") is not None
    assert check_status_based_deletion("pre_order", "pending") is None
    assert check_status_based_deletion("client", "done") is None


def test_generic_delete_success(conn):
    state = asyncio.run(generic_entity_delete(conn, "client", "c1", "client"))

    assert state.success
    assert state.data is True
    assert state.message == "رکورد با موفقیت حذف شد."
    [(query, params)] = conn.queries("DELETE FROM")
    assert query == 'DELETE FROM "client" WHERE id = %(id)s'
    assert params == {"id": "c1"}


def test_generic_delete_blocked_never_deletes(conn):
    conn.on('FROM "pre_order"', [{"id": "p1"}])

    state = asyncio.run(generic_entity_delete(conn, "client", "c1", "client"))

    assert not state.success
    assert state.data is False
    assert state.message == "این مشتری دارای پیش سفارش است و قابل حذف نیست."
    assert not conn.queries("DELETE FROM")


def test_generic_delete_check_failure_never_deletes(conn):
    conn.on("SELECT id FROM", psycopg.OperationalError("down"))

    state = asyncio.run(generic_entity_delete(conn, "client", "c1", "client"))

    assert not state.success
    assert state.message == "خطا در بررسی وابستگی‌ها."
    assert not conn.queries("DELETE FROM")


def test_generic_delete_additional_check_runs_first(conn):
    async def refuse(entity_id):
        return f"no {entity_id}"

    state = asyncio.run(generic_entity_delete(conn, "client", "c1", "client", refuse))

    assert not state.success
    assert state.message == "no c1"
    assert conn.executed == []


def test_generic_delete_error_on_main_row(conn):
    conn.on("DELETE FROM", psycopg.errors.ForeignKeyViolation("fk"))

    state = asyncio.run(generic_entity_delete(conn, "client", "c1", "client"))

    assert not state.success
    assert state.message == "خطا در حذف رکورد."


def test_check_entity_dependencies_is_repeatable(conn):
    conn.on('FROM "pre_invoice"', [{"id": "pi1"}])

    first = asyncio.run(check_entity_dependencies(conn, "client", "c1"))
    second = asyncio.run(check_entity_dependencies(conn, "client", "c1"))

    assert first == second
    assert first.data is False
    assert not conn.queries("DELETE")
