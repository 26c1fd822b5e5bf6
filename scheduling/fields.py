"""
Validation of the customer-facing booking form against a link's declared
fields. Values that reach storage are limited to str, int, float and bool.
"""
import enum
import re

from scheduling.errors import ValidationError

PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15

_NON_DIGIT = re.compile(r"\D")
_TRUTHY = {"1", "true", "on", "yes"}


class FieldType(str, enum.Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    MOBILE = "mobile"
    LONG_TEXT = "long_text"
    NUMBER = "number"
    CHECKBOX = "checkbox"


# name/email are always collected, whatever the link declares
BUILTIN_FIELDS = (
    {"id": "name", "label": "Name", "field_type": "text", "required": True},
    {"id": "email", "label": "Email", "field_type": "email", "required": True},
)


def is_valid_email(value: str) -> bool:
    return "@" in value and "." in value


def normalize_phone(value: str):
    """Digits-only form of a phone number, or None if it has the wrong length."""
    digits = _NON_DIGIT.sub("", value or "")
    if PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS:
        return digits
    return None


def _field_type(field: dict) -> FieldType:
    try:
        return FieldType(field.get("field_type") or "text")
    except ValueError:
        return FieldType.TEXT


def _label(field: dict) -> str:
    return field.get("label") or field.get("id") or "Field"


def declared_fields(link_fields) -> list:
    by_id = {f["id"]: dict(f) for f in BUILTIN_FIELDS}
    for field in link_fields or []:
        fid = (field or {}).get("id")
        if not fid:
            continue
        if fid in ("name", "email"):
            # Links may relabel name/email but cannot make them optional
            builtin = by_id[fid]
            by_id[fid] = dict(field, required=True, field_type=builtin["field_type"])
        else:
            by_id[fid] = dict(field)
    return list(by_id.values())


def check_required(form, link_fields) -> None:
    for field in declared_fields(link_fields):
        if not field.get("required"):
            continue
        if _field_type(field) == FieldType.CHECKBOX:
            continue
        if not (form.get(field["id"]) or "").strip():
            raise ValidationError(f"{_label(field)} is required")


def coerce_fields(form, link_fields) -> dict:
    """
    Format-check and convert every declared field present in ``form``.
    Undeclared keys are dropped.
    """
    data = {}
    for field in declared_fields(link_fields):
        fid = field["id"]
        ftype = _field_type(field)
        raw = form.get(fid)

        if ftype == FieldType.CHECKBOX:
            value = (raw or "").strip().lower() in _TRUTHY
            if field.get("required") and not value:
                raise ValidationError(f"{_label(field)} must be checked")
            data[fid] = value
            continue

        raw = (raw or "").strip()
        if not raw:
            continue

        if ftype == FieldType.EMAIL:
            if not is_valid_email(raw):
                raise ValidationError("Please enter a valid email address")
            data[fid] = raw
        elif ftype in (FieldType.PHONE, FieldType.MOBILE):
            if normalize_phone(raw) is None:
                raise ValidationError("Please enter a valid phone number")
            data[fid] = raw
        elif ftype == FieldType.NUMBER:
            data[fid] = _to_number(raw, _label(field))
        else:
            data[fid] = raw
    return data


def _to_number(raw: str, label: str):
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f"{label} must be a number")
    if value != value or value in (float("inf"), float("-inf")):
        raise ValidationError(f"{label} must be a number")
    return value
