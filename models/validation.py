"""Field rules for expense writes.

Every mutable field has a pure validator that returns the list of rule
violations for a raw value, and a normalizer that turns an accepted raw value
into its stored form. ``validate_expense_fields`` runs the validators for the
supplied fields and raises one ``ValidationError`` carrying every violation.
"""
import datetime as dt
import math
from typing import Any, Callable, Dict, List, Mapping, Optional

from models.expense import CATEGORIES, MUTABLE_FIELDS
from utils.errors import FieldViolation, ValidationError
from utils.money import quantize_cents, round_money, to_decimal

TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 200
MAX_AMOUNT_EXPONENT = 308

REQUIRED_MESSAGES = {
    "title": "Title is required",
    "amount": "Amount is required",
    "category": "Category is required",
    "date": "Date is required",
}


def parse_iso_date(value: Any) -> dt.date:
    """Accept ``YYYY-MM-DD`` (or a full ISO datetime) and return the calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        raise ValueError("date must be a string")
    text = value.strip()
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()


def validate_title(value: Any) -> List[str]:
    if value is None:
        return [REQUIRED_MESSAGES["title"]]
    if not isinstance(value, str):
        return ["Title must be a string"]
    stripped = value.strip()
    if not stripped:
        return [REQUIRED_MESSAGES["title"]]
    if not TITLE_MIN_LENGTH <= len(stripped) <= TITLE_MAX_LENGTH:
        return [f"Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"]
    return []


def validate_amount(value: Any) -> List[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return [REQUIRED_MESSAGES["amount"]]
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return ["Amount must be a number"]
    if isinstance(value, float) and not math.isfinite(value):
        return ["Amount must be a number"]
    try:
        amount = to_decimal(value)
    except ValueError:
        return ["Amount must be a number"]
    if not amount.is_finite():
        return ["Amount must be a number"]
    if amount <= 0:
        return ["Amount must be greater than 0"]
    # stored as a double
    if amount.adjusted() > MAX_AMOUNT_EXPONENT or not math.isfinite(float(amount)):
        return ["Amount is too large"]
    # rounding must not take a positive input down to zero
    if quantize_cents(amount) <= 0:
        return ["Amount must be greater than 0"]
    return []


def validate_category(value: Any) -> List[str]:
    if value is None or value == "":
        return [REQUIRED_MESSAGES["category"]]
    if value not in CATEGORIES:
        return [f"Category must be one of: {', '.join(CATEGORIES)}"]
    return []


def validate_date(value: Any, today: Optional[dt.date] = None) -> List[str]:
    if value is None or value == "":
        return [REQUIRED_MESSAGES["date"]]
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        return ["Date must be in valid ISO format (YYYY-MM-DD)"]
    if parsed > (today or dt.date.today()):
        return ["Date cannot be in the future"]
    return []


def validate_notes(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, str):
        return ["Notes must be a string"]
    if len(value.strip()) > NOTES_MAX_LENGTH:
        return [f"Notes cannot exceed {NOTES_MAX_LENGTH} characters"]
    return []


FIELD_VALIDATORS: Dict[str, Callable[..., List[str]]] = {
    "title": validate_title,
    "amount": validate_amount,
    "category": validate_category,
    "date": validate_date,
    "notes": validate_notes,
}

NORMALIZERS: Dict[str, Callable[[Any], Any]] = {
    "title": lambda value: value.strip(),
    "amount": round_money,
    "category": lambda value: value,
    "date": parse_iso_date,
    "notes": lambda value: (value or "").strip(),
}


def validate_expense_fields(payload: Mapping[str, Any], partial: bool = False,
                            today: Optional[dt.date] = None) -> Dict[str, Any]:
    """Validate and normalize the mutable fields of ``payload``.

    With ``partial`` only the supplied fields are checked (updates); otherwise
    every required field must be present (creates). Unknown keys are ignored.
    """
    violations: List[FieldViolation] = []
    for name in MUTABLE_FIELDS:
        if name not in payload:
            if not partial and name in REQUIRED_MESSAGES:
                violations.append(FieldViolation(field=name, message=REQUIRED_MESSAGES[name]))
            continue
        value = payload[name]
        if name == "date":
            messages = validate_date(value, today=today)
        else:
            messages = FIELD_VALIDATORS[name](value)
        violations.extend(FieldViolation(field=name, message=message, value=value) for message in messages)

    if violations:
        raise ValidationError(violations)

    fields = {name: NORMALIZERS[name](payload[name]) for name in MUTABLE_FIELDS if name in payload}
    if not partial:
        fields.setdefault("notes", "")
    return fields
