import math
from datetime import datetime, date

from portal.errors import ValidationError


def parse_date(value, field="date"):
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field} format, use YYYY-MM-DD")


def parse_enum(enum_class, value, field):
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_class)
        raise ValidationError(f"Invalid {field} '{value}'. Allowed: {allowed}")


def parse_number(value, field, minimum=None, strictly_positive=False):
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number")
    if strictly_positive and value <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return value


def parse_id(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
