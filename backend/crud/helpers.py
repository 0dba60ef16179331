"""Shortcuts for assembling an entity's CRUD configuration."""

import dataclasses
from collections.abc import Mapping, Sequence
from typing import Any

import psycopg

from core.persian import PERSIAN_VALIDATION_RULES, Validator, format_persian_currency, parse_number
from core.realtime import JobChannel
from crud.entity_jobs import get_entity_job_config
from crud.jobs import JobTracker
from crud.fields import ViewField, format_date
from crud.types import DisplayField, JobSpec


def create_validation_rules(custom_rules: Mapping[str, Validator] | None = None) -> dict[str, Validator]:
    """Standard Persian validators per common field key, with overrides."""
    rules: dict[str, Validator] = {
        "name": PERSIAN_VALIDATION_RULES["persian_name"],
        "phone": PERSIAN_VALIDATION_RULES["persian_phone"],
        "ssn": PERSIAN_VALIDATION_RULES["persian_ssn"],
        "postal_code": PERSIAN_VALIDATION_RULES["persian_postal_code"],
        "address": PERSIAN_VALIDATION_RULES["persian_text"],
        "total_amount": PERSIAN_VALIDATION_RULES["currency"],
        "description": PERSIAN_VALIDATION_RULES["persian_text"],
    }
    rules.update(custom_rules or {})
    return rules


def optional(validator: Validator) -> Validator:
    """Skip ``validator`` when the value is empty."""

    def check(value: Any) -> str | None:
        if value is None or value == "":
            return None
        return validator(value)

    return check


def _format_amount(value: Any) -> str:
    number = parse_number(value)
    return "-" if number is None else format_persian_currency(number)


def create_delete_display_fields(entity_type: str) -> list[DisplayField]:
    common = [DisplayField("name", "نام"), DisplayField("id", "شناسه")]

    match entity_type:
        case "client":
            return common + [
                DisplayField("phone", "شماره تماس"),
                DisplayField("ssn", "کد ملی"),
            ]
        case "preOrder" | "order":
            return common + [DisplayField("total_amount", "مبلغ", _format_amount)]
        case "preInvoice" | "invoice":
            return common + [
                DisplayField("total_amount", "مبلغ کل", _format_amount),
                DisplayField("created_at", "تاریخ ایجاد", format_date),
            ]
        case _:
            return common


def get_crud_job_configs(entity_type: str) -> dict[str, list[JobSpec]]:
    return {
        "view": get_entity_job_config(entity_type, "view"),
        "edit": get_entity_job_config(entity_type, "edit"),
        "delete": get_entity_job_config(entity_type, "delete"),
    }


def create_crud_titles(entity_display_name: str) -> dict[str, str]:
    return {
        "view": f"مشاهده جزئیات {entity_display_name}",
        "edit": f"ویرایش {entity_display_name}",
        "delete": f"حذف {entity_display_name}",
    }


def merge_field_configs(
    base_fields: Sequence[ViewField],
    custom_fields: Sequence[Mapping[str, Any]] = (),
) -> list[ViewField]:
    """Apply per-key overrides to ``base_fields``; unknown keys are appended."""
    merged = list(base_fields)
    for custom in custom_fields:
        key = custom.get("key")
        if not key:
            continue
        index = next((i for i, f in enumerate(merged) if f.key == key), None)
        if index is None:
            merged.append(ViewField(**custom))
        else:
            merged[index] = dataclasses.replace(merged[index], **custom)
    return merged


class ErrorMessages:
    validation_error = "لطفاً اطلاعات وارد شده را بررسی کنید"
    network_error = "خطا در ارتباط با سرور. لطفاً اتصال اینترنت خود را بررسی کنید"

    @staticmethod
    def update_success(entity_name: str) -> str:
        return f"{entity_name} با موفقیت به‌روزرسانی شد"

    @staticmethod
    def update_error(entity_name: str) -> str:
        return f"خطا در به‌روزرسانی {entity_name}"

    @staticmethod
    def delete_success(entity_name: str) -> str:
        return f"{entity_name} با موفقیت حذف شد"

    @staticmethod
    def delete_error(entity_name: str) -> str:
        return f"خطا در حذف {entity_name}"

    @staticmethod
    def dependency_error(entity_name: str) -> str:
        return f"این {entity_name} دارای رکوردهای وابسته است و قابل حذف نیست"


def create_job_tracker(
    entity: str,
    job_config_key: str,
    operation: str,
    conn: psycopg.AsyncConnection | None,
    channel: JobChannel | None,
) -> JobTracker | None:
    """Tracker for the jobs configured under ``job_config_key``/``operation``.

    Jobs are recorded against ``entity``. Without a connection and channel,
    or when nothing is configured, there is nothing to track.
    """
    specs = get_entity_job_config(job_config_key, operation)
    if not specs or conn is None or channel is None:
        return None
    return JobTracker(entity, specs, conn, channel)
