# shop_admin/api/utils/payload.py
"""
Request payload parsing.

Every helper reads one key from a JSON object and raises ``BadRequest`` with a
field-specific message when the value has the wrong shape. Absent keys and
explicit ``null`` both come back as ``None`` so PATCH handlers can tell
"not sent" apart with ``key in data``. Numbers must be JSON numbers (numeric
strings are rejected) and are capped at the range of the column they land in.
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP

from flask import request
from werkzeug.exceptions import BadRequest

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")

# column limits: Numeric(10, 2) money and 32-bit Integer
MONEY_MAX = 99999999.99
INT_MAX = 2147483647


def get_payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object.")
    return data


def to_nullable(value) -> str | None:
    """Trim a string; blank strings and None become None."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def round2(value) -> float:
    """Half-up rounding to cents, returned as a float."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def opt_str(data: dict, key: str, *, min_length: int = 0) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequest(f"'{key}' must be a string.")
    if min_length and len(value.strip()) < min_length:
        raise BadRequest(f"'{key}' must be at least {min_length} characters long.")
    return value


def req_str(data: dict, key: str, *, min_length: int = 1) -> str:
    value = opt_str(data, key, min_length=min_length)
    if value is None:
        raise BadRequest(f"'{key}' is required.")
    return value


def opt_email(data: dict, key: str) -> str | None:
    value = opt_str(data, key)
    if value is None:
        return None
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise BadRequest(f"'{key}' must be a valid e-mail address.")
    return value


def req_email(data: dict, key: str) -> str:
    value = opt_email(data, key)
    if value is None:
        raise BadRequest(f"'{key}' is required.")
    return value


def _coerce_number(key: str, value) -> float:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise BadRequest(f"'{key}' must be a number.")
    try:
        value = float(value)
    except OverflowError:
        raise BadRequest(f"'{key}' is too large.")
    if not math.isfinite(value):
        raise BadRequest(f"'{key}' must be a finite number.")
    return value


def opt_number(
    data: dict,
    key: str,
    *,
    minimum: float | None = 0,
    maximum: float | None = MONEY_MAX,
    places: int | None = None,
) -> float | None:
    raw = data.get(key)
    if raw is None:
        return None
    value = _coerce_number(key, raw)
    if minimum is not None and value < minimum:
        raise BadRequest(f"'{key}' must be >= {minimum}.")
    if maximum is not None and value > maximum:
        raise BadRequest(f"'{key}' must be <= {maximum}.")
    if places is not None:
        exponent = Decimal(str(raw)).normalize().as_tuple().exponent
        if isinstance(exponent, int) and -exponent > places:
            raise BadRequest(f"'{key}' allows at most {places} decimal places.")
    return value


def req_number(data: dict, key: str, **kwargs) -> float:
    value = opt_number(data, key, **kwargs)
    if value is None:
        raise BadRequest(f"'{key}' is required.")
    return value


def opt_int(
    data: dict,
    key: str,
    *,
    minimum: int | None = 0,
    maximum: int | None = INT_MAX,
) -> int | None:
    raw = data.get(key)
    if raw is None:
        return None
    value = _coerce_number(key, raw)
    if not value.is_integer():
        raise BadRequest(f"'{key}' must be a whole number.")
    value = int(value)
    if minimum is not None and value < minimum:
        raise BadRequest(f"'{key}' must be >= {minimum}.")
    if maximum is not None and value > maximum:
        raise BadRequest(f"'{key}' must be <= {maximum}.")
    return value


def req_int(data: dict, key: str, **kwargs) -> int:
    value = opt_int(data, key, **kwargs)
    if value is None:
        raise BadRequest(f"'{key}' is required.")
    return value


def opt_bool(data: dict, key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise BadRequest(f"'{key}' must be a boolean.")
    return value


def opt_choice(data: dict, key: str, choices) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if value not in choices:
        raise BadRequest(f"'{key}' must be one of: {', '.join(choices)}.")
    return value


def opt_str_list(data: dict, key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise BadRequest(f"'{key}' must be a list of strings.")
    return value


def opt_object(data: dict, key: str) -> dict | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise BadRequest(f"'{key}' must be an object.")
    return value


def opt_object_list(data: dict, key: str) -> list[dict] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise BadRequest(f"'{key}' must be a list of objects.")
    return value


def path_uuid(value: str, name: str = "id") -> str:
    """Validate an id taken from the URL path."""
    if not UUID_RE.match(value or ""):
        raise BadRequest(f"'{name}' must be a UUID.")
    return value.lower()
