import pytest

from core.persian import PERSIAN_VALIDATION_RULES
from crud.fields import (
    COMMON_VIEW_FIELDS,
    DateField,
    InputField,
    NumberField,
    SelectField,
    TextareaField,
    ViewField,
    create_edit_field_config,
    create_status_edit_field_config,
    create_status_field_config,
    create_view_field_config,
    format_currency,
    format_date,
    format_number,
    format_status,
    format_text,
    render_field,
    render_view_value,
    validate_field,
)
from crud.helpers import (
    ErrorMessages,
    create_crud_titles,
    create_delete_display_fields,
    create_validation_rules,
    get_crud_job_configs,
    merge_field_configs,
    optional,
)
from crud.types import SelectOption, StatusOption


def test_formatters():
    assert format_text("") == "-"
    assert format_text("علی") == "علی"
    assert format_number("1500") == "۱۵۰۰"
    assert format_number(None) == "-"
    assert format_currency(2500000) == "۲٬۵۰۰٬۰۰۰ ریال"
    assert format_currency("x") == "-"
    assert format_date("2024-03-20") == "۱۴۰۳/۱/۱"
    assert format_date("not a date") == "-"
    assert format_date(None) == "-"
    assert format_status("done", {"done": "اتمام یافته"}) == "اتمام یافته"
    assert format_status("other", {"done": "اتمام یافته"}) == "other"


@pytest.mark.parametrize(
    "spec, kind",
    [
        (InputField("name", "نام"), "input"),
        (TextareaField("address", "آدرس"), "textarea"),
        (SelectField("status", "وضعیت"), "select"),
        (NumberField("amount", "مبلغ"), "number"),
        (DateField("due", "تاریخ"), "date"),
    ],
)
def test_render_field_dispatches_on_variant(spec, kind):
    assert render_field(spec).kind == kind


def test_render_field_details():
    widget = render_field(InputField("name", "نام", required=True), value="x", error="bad")
    assert widget.placeholder == "نام را وارد کنید"
    assert widget.required
    assert widget.invalid

    widget = render_field(DateField("due", "تاریخ"), value="2024-01-01")
    assert widget.placeholder == "تاریخ را انتخاب کنید"
    assert widget.input_type == "date"
    assert widget.display_value == "2024-01-01"

    widget = render_field(InputField("phone", "تلفن"), value="0912")
    assert widget.display_value == "۰۹۱۲"

    widget = render_field(
        InputField("name", "نام شرکت", field_name="company_name", placeholder="شرکت")
    )
    assert widget.name == "company_name"
    assert widget.placeholder == "شرکت"


def test_select_options_can_depend_on_form():
    def options(form):
        return [SelectOption(form["kind"], form["kind"], form["kind"])]

    widget = render_field(SelectField("x", "x", options=options), form={"kind": "a"})
    assert [o.id for o in widget.options] == ["a"]


def test_validate_field_order():
    calls = []

    def own(value):
        calls.append("own")
        return "own error"

    def rule(value):
        calls.append("rule")
        return "rule error"

    spec = InputField("name", "نام", required=True, validation=own)

    assert validate_field(spec, "", {"name": rule}) == "نام الزامی است"
    assert calls == []

    assert validate_field(spec, "x", {"name": rule}) == "own error"
    assert calls == ["own"]

    spec = InputField("name", "نام", validation=lambda v: None)
    assert validate_field(spec, "x", {"name": rule}) == "rule error"
    assert validate_field(spec, "x") is None


def test_render_view_value():
    assert render_view_value(COMMON_VIEW_FIELDS["name"], None) == "-"
    assert render_view_value(ViewField("n", "n", "number"), 1234) == "۱٬۲۳۴"
    assert render_view_value(ViewField("c", "c", "currency"), "100") == "۱۰۰ ریال"
    assert render_view_value(ViewField("s", "s", "status"), "done", {"done": "تمام"}) == "تمام"
    assert render_view_value(ViewField("t", "t"), 5) == "5"
    assert render_view_value(COMMON_VIEW_FIELDS["created_at"], "2024-03-20") == "۱۴۰۳/۱/۱"


def test_config_factories():
    field = create_view_field_config("total", "مبلغ", "currency")
    assert field.formatter("10") == "۱۰ ریال"

    field = create_edit_field_config("d", "تاریخ", "date", required=True)
    assert isinstance(field, DateField)
    assert field.required

    options = [SelectOption("a", "a", "A")]
    field = create_edit_field_config("s", "s", "select", options=options)
    assert isinstance(field, SelectField)
    assert field.resolve_options({}) == options

    status = create_status_field_config({"done": "تمام"})
    assert status.formatter("done") == "تمام"

    edit = create_status_edit_field_config([StatusOption("done", "تمام")])
    assert edit.required
    assert edit.resolve_options({}) == [SelectOption("done", "done", "تمام")]


def test_create_validation_rules_overrides():
    custom = lambda v: None  # noqa: E731
    rules = create_validation_rules({"phone": custom})
    assert rules["phone"] is custom
    assert rules["ssn"] is PERSIAN_VALIDATION_RULES["persian_ssn"]


def test_optional_skips_empty_values():
    check = optional(PERSIAN_VALIDATION_RULES["persian_postal_code"])
    assert check("") is None
    assert check(None) is None
    assert check("123") == "کد پستی باید ۱۰ رقم باشد"


def test_merge_field_configs():
    merged = merge_field_configs(
        [COMMON_VIEW_FIELDS["name"], COMMON_VIEW_FIELDS["phone"]],
        [
            {"key": "name", "label": "نام شرکت"},
            {"key": "email", "label": "ایمیل"},
            {"label": "ignored"},
        ],
    )
    assert [f.key for f in merged] == ["name", "phone", "email"]
    assert merged[0].label == "نام شرکت"
    assert merged[0].formatter is format_text
    assert COMMON_VIEW_FIELDS["name"].label == "نام"


def test_delete_display_fields_and_titles():
    keys = [f.key for f in create_delete_display_fields("client")]
    assert keys == ["name", "id", "phone", "ssn"]
    invoice = create_delete_display_fields("invoice")
    assert invoice[2].formatter("1000") == "۱٬۰۰۰ ریال"
    assert [f.key for f in create_delete_display_fields("other")] == ["name", "id"]

    assert create_crud_titles("مشتری")["edit"] == "ویرایش مشتری"
    assert set(get_crud_job_configs("order")) == {"view", "edit", "delete"}
    assert ErrorMessages.delete_success("مشتری") == "مشتری با موفقیت حذف شد"
