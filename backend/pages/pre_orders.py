"""Pre-orders screen."""

from collections.abc import Mapping, Sequence
from functools import partial
from typing import Any

import psycopg

from actions import pre_orders as actions
from actions.client_search import ClientOption
from core.persian import PERSIAN_VALIDATION_RULES
from core.realtime import JobChannel
from core.responses import ActionState, ColumnMeta
from crud.dependencies import CheckOutcome, check_deletable, check_status_based_deletion
from crud.fields import (
    COMMON_VIEW_FIELDS,
    NumberField,
    SelectField,
    TextareaField,
    ViewField,
    format_currency,
    format_date,
    format_text,
)
from crud.helpers import create_job_tracker, optional
from crud.modals import AddModal, DeleteModal, EditModal, ViewModal
from crud.table import TableLogic
from crud.types import DisplayField, Row, SelectOption, StatusOption


ENTITY = "pre_order"
JOB_CONFIG_KEY = "preOrder"
DISPLAY_NAME = "پیش سفارش"

STATUS_NAME_MAP: dict[str, str] = {
    "pending": "در انتظار بررسی",
    "approved": "تایید شده",
    "rejected": "رد شده",
    "converted": "تبدیل به سفارش",
}

STATUS_COLOR_MAP: dict[str, str] = {
    "pending": "warning",
    "approved": "success",
    "rejected": "danger",
    "converted": "primary",
}

STATUS_OPTIONS = [StatusOption(uid=uid, name=name) for uid, name in STATUS_NAME_MAP.items()]

COLUMNS = [
    ColumnMeta("id", "ID", "string", sortable=True),
    ColumnMeta("client_name", "نام مشتری", "string", sortable=True),
    ColumnMeta("description", "شرح پیش سفارش", "string", sortable=True),
    ColumnMeta("estimated_amount", "مبلغ تخمینی", "currency", sortable=True),
    ColumnMeta("created_at", "تاریخ ایجاد", "date", sortable=True),
    ColumnMeta("status", "وضعیت", "status", sortable=True),
    ColumnMeta("actions", "ACTIONS", "actions"),
]

INITIAL_VISIBLE_COLUMNS = (
    "client_name",
    "description",
    "estimated_amount",
    "created_at",
    "status",
    "actions",
)


def format_estimated_amount(value: Any) -> str:
    if value is None or value == actions.UNSET_AMOUNT:
        return "تعیین نشده"
    return format_currency(value)


def format_short_description(value: Any) -> str:
    if not value:
        return "-"
    return f"{value[:50]}..." if len(value) > 50 else value


optional_currency = optional(PERSIAN_VALIDATION_RULES["currency"])

VIEW_FIELDS = [
    ViewField("client_name", "نام مشتری", "text", format_text),
    ViewField("description", "شرح پیش سفارش", "text", format_text),
    ViewField("estimated_amount", "مبلغ تخمینی", "currency", format_estimated_amount),
    ViewField("created_at", "تاریخ ثبت", "date", COMMON_VIEW_FIELDS["created_at"].formatter),
]

EDIT_FIELDS = [
    TextareaField(
        "description",
        "شرح پیش سفارش",
        required=True,
        validation=PERSIAN_VALIDATION_RULES["persian_text"],
    ),
    NumberField("estimated_amount", "مبلغ تخمینی (ریال)", validation=optional_currency),
    SelectField(
        "status",
        "وضعیت",
        required=True,
        options=tuple(SelectOption(o.uid, o.uid, o.name) for o in STATUS_OPTIONS),
    ),
]

VALIDATION_RULES = {
    "description": PERSIAN_VALIDATION_RULES["persian_text"],
    "estimated_amount": optional_currency,
}

DELETE_DISPLAY_FIELDS = [
    DisplayField("client_name", "نام مشتری", format_text),
    DisplayField("description", "شرح پیش سفارش", format_short_description),
    DisplayField("estimated_amount", "مبلغ تخمینی", format_estimated_amount),
    DisplayField("created_at", "تاریخ ثبت", format_date),
]


def client_select_options(clients: Sequence[ClientOption]) -> list[SelectOption]:
    return [SelectOption(id=c.id, name=c.name, label=c.name) for c in clients]


def create_add_fields(clients: Sequence[ClientOption]) -> list:
    return [
        SelectField(
            "client_id",
            "انتخاب مشتری",
            required=True,
            placeholder="نام مشتری را تایپ کنید یا انتخاب کنید...",
            options=tuple(client_select_options(clients)),
        ),
        TextareaField(
            "description",
            "شرح پیش سفارش",
            required=True,
            placeholder="توضیحات پیش سفارش را وارد کنید",
        ),
        NumberField(
            "estimated_amount",
            "مبلغ تخمینی (ریال)",
            required=True,
            placeholder="مبلغ تخمینی را وارد کنید",
        ),
    ]


def create_table(conn: psycopg.AsyncConnection, add_button=None) -> TableLogic:
    return TableLogic(
        STATUS_OPTIONS,
        COLUMNS,
        INITIAL_VISIBLE_COLUMNS,
        partial(actions.get_pre_orders, conn),
        partial(actions.get_total_pre_orders, conn),
        add_button,
    )


def create_add_modal(
    conn: psycopg.AsyncConnection,
    clients: Sequence[ClientOption],
    channel: JobChannel | None = None,
    on_success=None,
) -> AddModal:
    """Add dialog; the chosen client's name and type travel with the form."""
    by_id = {c.id: c for c in clients}

    async def add(form: Mapping[str, Any]) -> ActionState:
        payload = dict(form)
        client = by_id.get(str(payload.get("client_id")))
        if client:
            payload.setdefault("client_name", client.name)
            payload.setdefault("client_type", client.type)
        return await actions.add_pre_order(conn, payload)

    return AddModal(
        create_add_fields(clients),
        VALIDATION_RULES,
        add,
        title="افزودن پیش سفارش جدید",
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "add", conn, channel),
        on_success=on_success,
    )


def create_view_modal(
    entity: Row,
    conn: psycopg.AsyncConnection | None = None,
    channel: JobChannel | None = None,
) -> ViewModal:
    return ViewModal(
        entity,
        VIEW_FIELDS,
        title=f"مشاهده جزئیات پیش سفارش: {entity.data.get('client_name')}",
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "view", conn, channel),
        status_map=STATUS_NAME_MAP,
        status_color_map=STATUS_COLOR_MAP,
    )


def create_edit_modal(
    entity: Row,
    conn: psycopg.AsyncConnection,
    channel: JobChannel | None = None,
    on_success=None,
) -> EditModal:
    return EditModal(
        entity,
        EDIT_FIELDS,
        VALIDATION_RULES,
        partial(actions.update_pre_order, conn, entity.id),
        title=f"ویرایش پیش سفارش: {entity.data.get('client_name')}",
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "edit", conn, channel),
        on_success=on_success,
    )


def delete_disabled_reason(entity: Row) -> str | None:
    return check_status_based_deletion(ENTITY, entity.status)


def create_delete_modal(
    entity: Row,
    conn: psycopg.AsyncConnection,
    channel: JobChannel | None = None,
    on_success=None,
) -> DeleteModal | None:
    """Delete dialog, or None when the row's status forbids deletion."""
    if delete_disabled_reason(entity):
        return None

    async def dependency_check(pre_order_id: str) -> CheckOutcome:
        return await check_deletable(conn, ENTITY, pre_order_id)

    return DeleteModal(
        entity,
        partial(actions.delete_pre_order, conn),
        title="حذف پیش سفارش",
        entity_display_name=DISPLAY_NAME,
        dependency_check=dependency_check,
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "delete", conn, channel),
        display_fields=DELETE_DISPLAY_FIELDS,
        status_map=STATUS_NAME_MAP,
        status_color_map=STATUS_COLOR_MAP,
        on_success=on_success,
    )
