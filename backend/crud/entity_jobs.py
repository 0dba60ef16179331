"""Registry of external webhook jobs fired per entity and operation."""

import logging

from crud.types import EntityJobConfig, JobSpec


logger = logging.getLogger(__name__)


def _specs(*pairs: tuple[str, str]) -> tuple[JobSpec, ...]:
    return tuple(JobSpec(name=name, url=url) for name, url in pairs)


ENTITY_JOB_CONFIGS: dict[str, EntityJobConfig] = {
    "client": EntityJobConfig(
        view=_specs(
            ("بررسی اطلاعات مشتری", "https://example.com/client/view"),
            ("بررسی سابقه مشتری", "https://example.com/client/history"),
        ),
        edit=_specs(
            ("به‌روزرسانی اطلاعات", "https://example.com/client/update"),
            ("اعتبارسنجی اطلاعات", "https://example.com/client/validate"),
        ),
        delete=_specs(
            ("بررسی وابستگی‌ها", "https://example.com/client/dependencies"),
            ("حذف از سیستم", "https://example.com/client/delete"),
        ),
    ),
    "preOrder": EntityJobConfig(
        view=_specs(
            ("بررسی پیش سفارش", "https://example.com/preorder/view"),
            ("بررسی اطلاعات مشتری", "https://example.com/preorder/client"),
        ),
        edit=_specs(
            ("ویرایش پیش سفارش", "https://example.com/preorder/update"),
            ("محاسبه مجدد مبلغ", "https://example.com/preorder/calculate"),
        ),
        delete=_specs(
            ("بررسی امکان لغو", "https://example.com/preorder/check"),
            ("لغو پیش سفارش", "https://example.com/preorder/cancel"),
        ),
    ),
    "order": EntityJobConfig(
        view=_specs(
            ("بررسی سفارش", "https://example.com/order/view"),
            ("بررسی وضعیت تولید", "https://example.com/order/production"),
        ),
        edit=_specs(
            ("ویرایش سفارش", "https://example.com/order/update"),
            ("به‌روزرسانی وضعیت", "https://example.com/order/status"),
        ),
        delete=_specs(
            ("بررسی امکان حذف", "https://example.com/order/check"),
            ("لغو سفارش", "https://example.com/order/cancel"),
        ),
    ),
    "preInvoice": EntityJobConfig(
        view=_specs(
            ("بررسی پیش فاکتور", "https://example.com/preinvoice/view"),
            ("محاسبه مالیات", "https://example.com/preinvoice/tax"),
        ),
        edit=_specs(
            ("ویرایش پیش فاکتور", "https://example.com/preinvoice/update"),
            ("محاسبه مجدد", "https://example.com/preinvoice/recalculate"),
        ),
        delete=_specs(
            ("بررسی امکان حذف", "https://example.com/preinvoice/check"),
            ("حذف پیش فاکتور", "https://example.com/preinvoice/delete"),
        ),
    ),
    "invoice": EntityJobConfig(
        view=_specs(
            ("بررسی فاکتور", "https://example.com/invoice/view"),
            ("بررسی وضعیت پرداخت", "https://example.com/invoice/payment"),
        ),
        edit=_specs(
            ("ویرایش فاکتور", "https://example.com/invoice/update"),
            ("به‌روزرسانی پرداخت", "https://example.com/invoice/payment-update"),
        ),
        delete=_specs(
            ("بررسی امکان ابطال", "https://example.com/invoice/check"),
            ("ابطال فاکتور", "https://example.com/invoice/void"),
        ),
    ),
}


def get_entity_job_config(entity_type: str, operation: str) -> list[JobSpec]:
    """Jobs to fire for an operation; empty for unknown entity or operation."""
    config = ENTITY_JOB_CONFIGS.get(entity_type)
    if config is None:
        logger.warning("No job configuration found for entity type: %s", entity_type)
        return []
    return list(getattr(config, operation, ()))


def get_all_entity_job_configs(entity_type: str) -> EntityJobConfig | None:
    return ENTITY_JOB_CONFIGS.get(entity_type)
