"""Declarative field descriptors and the routines that render and validate them.

View fields describe read-only display. Edit/add fields are a closed set of
variants (``InputField``, ``TextareaField``, ``SelectField``, ``NumberField``,
``DateField``); ``render_field`` turns one into a ``Widget`` description for
whatever front end draws the form.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, assert_never

from core.persian import (
    Validator,
    convert_english_to_persian,
    format_persian_currency,
    format_persian_date,
    format_persian_number,
    parse_number,
)
from crud.types import SelectOption, StatusOption


ViewType = Literal["text", "number", "date", "status", "currency"]
Formatter = Callable[[Any], str]
OptionsSource = Callable[[Mapping[str, Any]], list[SelectOption]]


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_text(value: Any) -> str:
    return str(value) if value else "-"


def format_number(value: Any) -> str:
    if value is None or value == "":
        return "-"
    number = parse_number(value)
    if number is None:
        return "-"
    if number.is_integer():
        return convert_english_to_persian(str(int(number)))
    return convert_english_to_persian(str(number))


def format_currency(value: Any) -> str:
    if value is None or value == "":
        return "-"
    number = parse_number(value)
    if number is None:
        return "-"
    return format_persian_currency(number)


def format_date(value: Any) -> str:
    if not value:
        return "-"
    try:
        return format_persian_date(value)
    except (TypeError, ValueError):
        return "-"


def format_status(value: Any, status_map: Mapping[str, str] | None = None) -> str:
    if not value:
        return "-"
    if status_map:
        return status_map.get(value, value)
    return str(value)


FIELD_FORMATTERS: dict[str, Callable[..., str]] = {
    "text": format_text,
    "number": format_number,
    "currency": format_currency,
    "date": format_date,
    "status": format_status,
}


# ---------------------------------------------------------------------------
# Field descriptors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViewField:
    key: str
    label: str
    type: ViewType = "text"
    formatter: Formatter | None = None


@dataclass(frozen=True)
class InputField:
    key: str
    label: str
    required: bool = False
    validation: Validator | None = None
    placeholder: str | None = None
    field_name: str | None = None

    @property
    def name(self) -> str:
        """Form key the value is submitted under."""
        return self.field_name or self.key


@dataclass(frozen=True)
class TextareaField(InputField):
    min_rows: int = 3


@dataclass(frozen=True)
class NumberField(InputField):
    pass


@dataclass(frozen=True)
class DateField(InputField):
    pass


@dataclass(frozen=True)
class SelectField(InputField):
    options: OptionsSource | Sequence[SelectOption] = ()

    def resolve_options(self, form: Mapping[str, Any]) -> list[SelectOption]:
        """Options for the current in-progress form state."""
        if callable(self.options):
            return list(self.options(form))
        return list(self.options)


EditField = InputField | TextareaField | SelectField | NumberField | DateField


@dataclass
class Widget:
    kind: Literal["input", "textarea", "select", "number", "date"]
    name: str
    label: str
    value: Any
    placeholder: str
    required: bool
    error: str | None = None
    input_type: Literal["text", "date"] = "text"
    allow_numbers: bool = True
    display_persian_numbers: bool = True
    min_rows: int | None = None
    options: list[SelectOption] = field(default_factory=list)

    @property
    def invalid(self) -> bool:
        return self.error is not None

    @property
    def display_value(self) -> str:
        if self.value is None:
            return ""
        text = str(self.value)
        if self.display_persian_numbers:
            return convert_english_to_persian(text)
        return text


def render_field(
    spec: EditField,
    value: Any = None,
    error: str | None = None,
    form: Mapping[str, Any] | None = None,
) -> Widget:
    """Describe the control for a field variant."""
    placeholder = spec.placeholder or f"{spec.label} را وارد کنید"
    common = dict(
        name=spec.name,
        label=spec.label,
        value=value,
        required=spec.required,
        error=error,
    )

    # Subclasses first: every variant is an InputField.
    match spec:
        case TextareaField():
            return Widget(kind="textarea", placeholder=placeholder, min_rows=spec.min_rows, **common)
        case SelectField():
            return Widget(
                kind="select",
                placeholder=placeholder,
                options=spec.resolve_options(form or {}),
                **common,
            )
        case NumberField():
            return Widget(kind="number", placeholder=placeholder, **common)
        case DateField():
            return Widget(
                kind="date",
                placeholder=spec.placeholder or f"{spec.label} را انتخاب کنید",
                input_type="date",
                allow_numbers=False,
                display_persian_numbers=False,
                **common,
            )
        case InputField():
            return Widget(kind="input", placeholder=placeholder, **common)
        case _:
            assert_never(spec)


def render_view_value(
    spec: ViewField,
    value: Any,
    status_map: Mapping[str, str] | None = None,
) -> str:
    """Read-only display text for a view field."""
    if value is None or value == "":
        return "-"

    if spec.type == "status" and status_map:
        return status_map.get(value, value)

    if spec.formatter:
        return spec.formatter(value)

    match spec.type:
        case "currency":
            return format_currency(value)
        case "number":
            number = parse_number(value)
            return "-" if number is None else format_persian_number(number)
        case "date":
            return format_date(value)
        case _:
            return str(value)


def validate_field(
    spec: EditField,
    value: Any,
    rules: Mapping[str, Validator] | None = None,
) -> str | None:
    """Required, then the field's own validator, then the entity rule."""
    if spec.required and (not value or str(value).strip() == ""):
        return f"{spec.label} الزامی است"

    if spec.validation:
        error = spec.validation(value)
        if error:
            return error

    rule = (rules or {}).get(spec.key)
    if rule:
        error = rule(value)
        if error:
            return error

    return None


# ---------------------------------------------------------------------------
# Common configurations
# ---------------------------------------------------------------------------


COMMON_VIEW_FIELDS: dict[str, ViewField] = {
    "id": ViewField("id", "شناسه", "text", format_text),
    "name": ViewField("name", "نام", "text", format_text),
    "phone": ViewField("phone", "شماره تماس", "text", format_text),
    "address": ViewField("address", "آدرس", "text", format_text),
    "ssn": ViewField("ssn", "کد ملی", "text", format_text),
    "postal_code": ViewField("postal_code", "کد پستی", "text", format_text),
    "created_at": ViewField("created_at", "تاریخ ایجاد", "date", format_date),
    "updated_at": ViewField("updated_at", "تاریخ به‌روزرسانی", "date", format_date),
    "total_amount": ViewField("total_amount", "مبلغ کل", "currency", format_currency),
    "description": ViewField("description", "توضیحات", "text", format_text),
}

COMMON_EDIT_FIELDS: dict[str, EditField] = {
    "name": InputField("name", "نام", required=True),
    "phone": InputField("phone", "شماره تماس", required=True),
    "address": TextareaField("address", "آدرس", required=True),
    "ssn": InputField("ssn", "کد ملی", required=True),
    "postal_code": InputField("postal_code", "کد پستی", required=True),
    "description": TextareaField("description", "توضیحات", required=False),
    "total_amount": NumberField("total_amount", "مبلغ کل", required=True),
}

_EDIT_FIELD_TYPES: dict[str, type] = {
    "input": InputField,
    "textarea": TextareaField,
    "select": SelectField,
    "number": NumberField,
    "date": DateField,
}


def create_view_field_config(
    key: str,
    label: str,
    type: ViewType,
    formatter: Formatter | None = None,
) -> ViewField:
    return ViewField(key, label, type, formatter or FIELD_FORMATTERS[type])


def create_edit_field_config(
    key: str,
    label: str,
    type: str,
    required: bool = False,
    validation: Validator | None = None,
    options: OptionsSource | Sequence[SelectOption] | None = None,
) -> EditField:
    cls = _EDIT_FIELD_TYPES[type]
    if cls is SelectField:
        return SelectField(key, label, required, validation, options=options or ())
    return cls(key, label, required, validation)


def create_status_field_config(status_map: Mapping[str, str]) -> ViewField:
    return ViewField(
        "status",
        "وضعیت",
        "status",
        lambda value: format_status(value, status_map),
    )


def create_status_edit_field_config(status_options: Sequence[StatusOption]) -> SelectField:
    options = [SelectOption(id=o.uid, name=o.uid, label=o.name) for o in status_options]
    return SelectField("status", "وضعیت", required=True, options=tuple(options))
