"""Orders screen (read only)."""

from functools import partial

import psycopg

from actions import orders as actions
from core.realtime import JobChannel
from core.responses import ColumnMeta
from crud.fields import COMMON_VIEW_FIELDS, ViewField, format_text
from crud.helpers import create_job_tracker, merge_field_configs
from crud.modals import ViewModal
from crud.table import TableLogic
from crud.types import Row, StatusOption


ENTITY = "order"
JOB_CONFIG_KEY = "order"

STATUS_NAME_MAP: dict[str, str] = {
    "pending": "در انتظار تایید",
    "confirmed": "تایید شده",
    "in_progress": "در حال انجام",
    "completed": "تکمیل شده",
    "cancelled": "لغو شده",
}

STATUS_COLOR_MAP: dict[str, str] = {
    "pending": "warning",
    "confirmed": "primary",
    "in_progress": "secondary",
    "completed": "success",
    "cancelled": "danger",
}

STATUS_OPTIONS = [StatusOption(uid=uid, name=name) for uid, name in STATUS_NAME_MAP.items()]

COLUMNS = [
    ColumnMeta("client_name", "نام مشتری", "string", sortable=True),
    ColumnMeta("description", "شرح سفارش", "string", sortable=True),
    ColumnMeta("total_amount", "مبلغ کل", "currency", sortable=True),
    ColumnMeta("created_at", "تاریخ ایجاد", "date", sortable=True),
    ColumnMeta("status", "وضعیت", "status", sortable=True),
    ColumnMeta("actions", "ACTIONS", "actions"),
]

INITIAL_VISIBLE_COLUMNS = (
    "client_name",
    "description",
    "total_amount",
    "created_at",
    "status",
    "actions",
)

VIEW_FIELDS = merge_field_configs(
    [
        ViewField("order_number", "شماره سفارش", "text", format_text),
        ViewField("client_name", "نام مشتری", "text", format_text),
        COMMON_VIEW_FIELDS["description"],
        COMMON_VIEW_FIELDS["total_amount"],
        COMMON_VIEW_FIELDS["created_at"],
    ],
    [{"key": "description", "label": "شرح سفارش"}],
)


def create_table(conn: psycopg.AsyncConnection) -> TableLogic:
    return TableLogic(
        STATUS_OPTIONS,
        COLUMNS,
        INITIAL_VISIBLE_COLUMNS,
        partial(actions.get_orders, conn),
        partial(actions.get_total_orders, conn),
    )


def create_view_modal(
    entity: Row,
    conn: psycopg.AsyncConnection | None = None,
    channel: JobChannel | None = None,
) -> ViewModal:
    return ViewModal(
        entity,
        VIEW_FIELDS,
        title=f"مشاهده جزئیات {entity.data.get('name')}",
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "view", conn, channel),
        status_map=STATUS_NAME_MAP,
        status_color_map=STATUS_COLOR_MAP,
    )
