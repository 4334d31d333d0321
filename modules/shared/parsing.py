# File path: modules/shared/parsing.py

from datetime import date, datetime, timezone
from typing import Optional

from modules.shared.errors import ValidationError


def positive_int(value, label: str = "Quantity") -> int:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{label} is required and must be a whole number.")

    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{label} must be a whole number.")
        value = int(value)

    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            raise ValidationError(f"{label} must be a whole number.")

    try:
        as_int = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a whole number.")

    if as_int <= 0:
        raise ValidationError(f"{label} must be greater than 0.")
    return as_int


def optional_int(value, label: str = "id") -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer.")


def to_float(value, label: str = "Value", default: Optional[float] = None) -> Optional[float]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number.")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.")


def parse_date(value, label: str = "Date") -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {label.lower()} format. Use YYYY-MM-DD.")


def parse_datetime(value, label: str = "Datetime") -> Optional[datetime]:
    """
    ISO-8601 in, naive UTC out (the database stores naive UTC).
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValidationError(f"Invalid {label.lower()} format. Use ISO-8601.")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def json_body(request) -> dict:
    """
    JSON object body, falling back to form fields; anything else is a ValidationError.
    """
    data = request.get_json(silent=True)
    if data is None:
        return request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data
