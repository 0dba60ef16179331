"""Persian digit conversion, field validators and display formatters."""

import datetime
import re
from collections.abc import Callable, Mapping
from typing import Any

import jdatetime


PERSIAN_DIGITS = "۰۱۲۳۴۵۶۷۸۹"
ENGLISH_DIGITS = "0123456789"

_TO_ENGLISH = str.maketrans(PERSIAN_DIGITS, ENGLISH_DIGITS)
_TO_PERSIAN = str.maketrans(ENGLISH_DIGITS, PERSIAN_DIGITS)

_PERSIAN_LETTERS = (
    "؀-ۿݐ-ݿࢠ-ࣿﭐ-﷿ﹰ-﻿"
)
PERSIAN_TEXT_REGEX = re.compile(f"^[{_PERSIAN_LETTERS}\\s0-9۰-۹]+$")
PERSIAN_NAME_REGEX = re.compile(f"^[{_PERSIAN_LETTERS}\\s]+$")
PERSIAN_PHONE_REGEX = re.compile(r"^(\+98|0)?9[0-9]{9}$")
PERSIAN_SSN_REGEX = re.compile(r"^[0-9]{10}$")
PERSIAN_POSTAL_CODE_REGEX = re.compile(r"^[0-9]{10}$")

_NUMERIC_REGEX = re.compile(r"^[0-9]+(\.[0-9]+)?$")
_CONTAINS_DIGIT_REGEX = re.compile(r"[0-9۰-۹]")
# Leading numeric prefix, matching the browser's lenient number parsing.
_FLOAT_PREFIX_REGEX = re.compile(r"^\s*[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")

Validator = Callable[[Any], str | None]


def convert_persian_to_english(value: str) -> str:
    return value.translate(_TO_ENGLISH)


def convert_english_to_persian(value: str) -> str:
    return value.translate(_TO_PERSIAN)


def contains_numbers(value: str) -> bool:
    """True when the string holds at least one Persian or ASCII digit."""
    return bool(value) and _CONTAINS_DIGIT_REGEX.search(value) is not None


def is_numeric_string(value: str) -> bool:
    """True for plain decimal numbers written with either digit set."""
    if not value:
        return False
    return _NUMERIC_REGEX.match(convert_persian_to_english(value)) is not None


def normalize_form_data(form: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``form`` with every string value's digits in ASCII."""
    return {
        key: convert_persian_to_english(value) if isinstance(value, str) else value
        for key, value in form.items()
    }


def parse_number(value: Any) -> float | None:
    """Parse a number the lenient way form inputs are read; None if unparseable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None
    match = _FLOAT_PREFIX_REGEX.match(convert_persian_to_english(value))
    if not match:
        return None
    return float(match.group(0))


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------


def persian_text(value: Any) -> str | None:
    if _is_blank(value):
        return "این فیلد الزامی است"
    if not PERSIAN_TEXT_REGEX.match(str(value).strip()):
        return "لطفاً متن را به فارسی وارد کنید"
    return None


def persian_name(value: Any) -> str | None:
    if _is_blank(value):
        return "نام الزامی است"
    text = str(value).strip()
    if len(text) < 2:
        return "نام باید حداقل ۲ کاراکتر باشد"
    if not PERSIAN_NAME_REGEX.match(text):
        return "لطفاً نام را به فارسی وارد کنید"
    return None


def persian_phone(value: Any) -> str | None:
    if _is_blank(value):
        return "شماره تلفن الزامی است"
    english = convert_persian_to_english(str(value).strip())
    if not PERSIAN_PHONE_REGEX.match(english):
        return "شماره تلفن معتبر نیست (مثال: ۰۹۱۲۳۴۵۶۷۸۹)"
    return None


def persian_ssn(value: Any) -> str | None:
    """Validate an Iranian national code including its check digit."""
    if _is_blank(value):
        return "کد ملی الزامی است"

    english = convert_persian_to_english(str(value).strip())
    if not PERSIAN_SSN_REGEX.match(english):
        return "کد ملی باید ۱۰ رقم باشد"

    digits = [int(ch) for ch in english]
    total = sum(digits[i] * (10 - i) for i in range(9))
    remainder = total % 11
    expected = remainder if remainder < 2 else 11 - remainder

    if digits[9] != expected:
        return "کد ملی معتبر نیست"
    return None


def persian_postal_code(value: Any) -> str | None:
    if _is_blank(value):
        return "کد پستی الزامی است"
    english = convert_persian_to_english(str(value).strip())
    if not PERSIAN_POSTAL_CODE_REGEX.match(english):
        return "کد پستی باید ۱۰ رقم باشد"
    return None


def currency(value: Any) -> str | None:
    if value is None or value == "":
        return "مبلغ الزامی است"
    number = parse_number(value)
    if number is None:
        return "مبلغ معتبر نیست"
    if number < 0:
        return "مبلغ نمی‌تواند منفی باشد"
    return None


def positive_number(value: Any) -> str | None:
    if value is None or value == "":
        return "این فیلد الزامی است"
    number = parse_number(value)
    if number is None:
        return "عدد معتبر نیست"
    if number <= 0:
        return "عدد باید مثبت باشد"
    return None


PERSIAN_VALIDATION_RULES: dict[str, Validator] = {
    "persian_text": persian_text,
    "persian_name": persian_name,
    "persian_phone": persian_phone,
    "persian_ssn": persian_ssn,
    "persian_postal_code": persian_postal_code,
    "currency": currency,
    "positive_number": positive_number,
}


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------


def validate_client_for_order(client: Mapping[str, Any]) -> str | None:
    """Check the client carries the details an order needs."""
    if not client.get("name") or not client.get("phone") or not client.get("address"):
        return "اطلاعات مشتری ناکامل است. لطفاً ابتدا اطلاعات مشتری را تکمیل کنید"
    return None


def validate_order_editable(order_status: str) -> str | None:
    if order_status == "invoiced":
        return "سفارش فاکتور شده قابل ویرایش نیست"
    return None


def validate_pre_order_conversion(pre_order_status: str) -> str | None:
    if pre_order_status != "approved":
        return "فقط پیش سفارش‌های تایید شده قابل تبدیل به سفارش هستند"
    return None


def validate_status_transition(
    current_status: str,
    new_status: str,
    allowed_transitions: Mapping[str, list[str]],
) -> str | None:
    if new_status not in allowed_transitions.get(current_status, []):
        return f"تغییر وضعیت از {current_status} به {new_status} مجاز نیست"
    return None


# ---------------------------------------------------------------------------
# Display formatting
# ---------------------------------------------------------------------------


def format_persian_number(amount: float | int) -> str:
    """Group thousands and render with Persian digits and separators."""
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    text = f"{amount:,}"
    return convert_english_to_persian(text.replace(",", "٬").replace(".", "٫"))


def format_persian_currency(amount: float | int) -> str:
    return f"{format_persian_number(amount)} ریال"


def format_persian_date(value: datetime.date | datetime.datetime | str) -> str:
    """Render a Gregorian date as a Jalali date with Persian digits."""
    if isinstance(value, str):
        value = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime.datetime):
        value = value.date()
    jalali = jdatetime.date.fromgregorian(date=value)
    return convert_english_to_persian(f"{jalali.year}/{jalali.month}/{jalali.day}")
