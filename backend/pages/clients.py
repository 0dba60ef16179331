"""Clients screen: table, add/view/edit/delete dialogs."""

import dataclasses
from functools import partial

import psycopg

from actions import clients as actions
from core.persian import PERSIAN_VALIDATION_RULES
from core.realtime import JobChannel
from core.responses import ColumnMeta
from crud.dependencies import CheckOutcome, check_deletable
from crud.fields import (
    COMMON_EDIT_FIELDS,
    COMMON_VIEW_FIELDS,
    InputField,
    TextareaField,
    create_status_edit_field_config,
)
from crud.helpers import create_job_tracker, create_validation_rules, optional
from crud.modals import AddModal, DeleteModal, EditModal, ViewModal
from crud.table import TableLogic
from crud.types import DisplayField, FormTab, Row, StatusOption


ENTITY = "client"
JOB_CONFIG_KEY = "client"
DISPLAY_NAME = "مشتری"

STATUS_NAME_MAP: dict[str, str] = {
    "done": "اتمام یافته",
    "paused": "نیاز به پیگیری",
    "not_started": "انجام نشده",
}

STATUS_COLOR_MAP: dict[str, str] = {
    "done": "success",
    "paused": "warning",
    "not_started": "danger",
}

STATUS_OPTIONS = [StatusOption(uid=uid, name=name) for uid, name in STATUS_NAME_MAP.items()]

COLUMNS = [
    ColumnMeta("id", "ID", "string", sortable=True),
    ColumnMeta("name", "نام / نام شرکت", "string", sortable=True),
    ColumnMeta("ssn", "کد ملی / شناسه ملی", "string", sortable=True),
    ColumnMeta("phone", "شماره موبایل", "string"),
    ColumnMeta("county", "استان", "string", sortable=True),
    ColumnMeta("town", "شهرستان / بخش", "string"),
    ColumnMeta("address", "آدرس", "string"),
    ColumnMeta("postal_code", "کد پستی", "string"),
    ColumnMeta("status", "وضعیت", "status", sortable=True),
    ColumnMeta("actions", "ACTIONS", "actions"),
]

INITIAL_VISIBLE_COLUMNS = ("name", "ssn", "phone", "county", "town", "status", "actions")

VIEW_FIELDS = [
    dataclasses.replace(COMMON_VIEW_FIELDS["name"], label="نام / نام شرکت"),
    dataclasses.replace(COMMON_VIEW_FIELDS["ssn"], label="کد ملی / شناسه ملی"),
    dataclasses.replace(COMMON_VIEW_FIELDS["phone"], label="شماره موبایل"),
    COMMON_VIEW_FIELDS["address"],
    COMMON_VIEW_FIELDS["postal_code"],
]

EDIT_FIELDS = [
    dataclasses.replace(
        COMMON_EDIT_FIELDS["name"],
        label="نام / نام شرکت",
        validation=PERSIAN_VALIDATION_RULES["persian_name"],
    ),
    dataclasses.replace(
        COMMON_EDIT_FIELDS["ssn"],
        label="کد ملی / شناسه ملی",
        validation=PERSIAN_VALIDATION_RULES["persian_ssn"],
    ),
    dataclasses.replace(
        COMMON_EDIT_FIELDS["phone"],
        label="شماره موبایل",
        validation=PERSIAN_VALIDATION_RULES["persian_phone"],
    ),
    dataclasses.replace(COMMON_EDIT_FIELDS["address"], validation=PERSIAN_VALIDATION_RULES["persian_text"]),
    dataclasses.replace(
        COMMON_EDIT_FIELDS["postal_code"],
        required=False,
        validation=optional(PERSIAN_VALIDATION_RULES["persian_postal_code"]),
    ),
    create_status_edit_field_config(STATUS_OPTIONS),
]

# The add form has one tab per client kind. Company fields share the person
# validation keys but submit under their own form names.
ADD_TABS = [
    FormTab(
        "personal",
        "حقیقی",
        [
            InputField("name", "نام و نام خانوادگی", required=True, placeholder="نام مشتری"),
            InputField("ssn", "کد ملی", required=True),
            InputField("phone", "شماره موبایل", required=True, placeholder="09123456789"),
            TextareaField("address", "آدرس", required=True),
            InputField("postal_code", "کد پستی"),
        ],
    ),
    FormTab(
        "company",
        "حقوقی",
        [
            InputField("name", "نام شرکت", required=True, field_name="company_name"),
            InputField("ssn", "شناسه ملی", required=True, field_name="company_ssn"),
            InputField("phone", "شماره تماس", required=True),
            TextareaField("address", "آدرس شرکت", required=True, field_name="company_address"),
            InputField("postal_code", "کد پستی", field_name="company_postal_code"),
        ],
    ),
]

VALIDATION_RULES = create_validation_rules(
    {"postal_code": optional(PERSIAN_VALIDATION_RULES["persian_postal_code"])}
)

DELETE_DISPLAY_FIELDS = [
    DisplayField("name", "نام / نام شرکت"),
    DisplayField("ssn", "کد ملی / شناسه ملی"),
    DisplayField("phone", "شماره موبایل"),
    DisplayField("address", "آدرس"),
]


def create_table(conn: psycopg.AsyncConnection, add_button=None) -> TableLogic:
    return TableLogic(
        STATUS_OPTIONS,
        COLUMNS,
        INITIAL_VISIBLE_COLUMNS,
        partial(actions.get_clients, conn),
        partial(actions.get_total_clients, conn),
        add_button,
    )


def create_add_modal(
    conn: psycopg.AsyncConnection,
    channel: JobChannel | None = None,
    on_success=None,
) -> AddModal:
    return AddModal(
        [],
        VALIDATION_RULES,
        partial(actions.add_client, conn),
        title="ایجاد مشتری جدید",
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "add", conn, channel),
        tabs=ADD_TABS,
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
        title=f"مشاهده جزئیات مشتری: {entity.data.get('name')}",
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
        partial(actions.update_client, conn, entity.id),
        title=f"ویرایش مشتری: {entity.data.get('name')}",
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "edit", conn, channel),
        on_success=on_success,
    )


def create_delete_modal(
    entity: Row,
    conn: psycopg.AsyncConnection,
    channel: JobChannel | None = None,
    on_success=None,
) -> DeleteModal:
    async def dependency_check(client_id: str) -> CheckOutcome:
        return await check_deletable(conn, ENTITY, client_id)

    return DeleteModal(
        entity,
        partial(actions.delete_client, conn),
        title="حذف مشتری",
        entity_display_name=DISPLAY_NAME,
        dependency_check=dependency_check,
        jobs=create_job_tracker(ENTITY, JOB_CONFIG_KEY, "delete", conn, channel),
        display_fields=DELETE_DISPLAY_FIELDS,
        status_map=STATUS_NAME_MAP,
        status_color_map=STATUS_COLOR_MAP,
        on_success=on_success,
    )
