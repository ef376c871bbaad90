# payments/normalize.py
import json
import math
from decimal import Decimal, DecimalException, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

from payments.errors import BadRequest
from payments.models import WebhookNotice

_MINOR_PER_MAJOR = Decimal(100)


def to_minor_units(amount: Any, field: str = "amountUah") -> int:
    """
    Major units (number or numeric string) -> integer minor units, half up.
    150 -> 15000, "12.345" -> 1235.
    """
    if isinstance(amount, bool) or amount is None:
        raise BadRequest(f"{field} must be > 0")
    if isinstance(amount, float) and not math.isfinite(amount):
        raise BadRequest(f"{field} must be > 0")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise BadRequest(f"{field} must be > 0")
    if not value.is_finite() or value <= 0:
        raise BadRequest(f"{field} must be > 0")

    try:
        minor = int((value * _MINOR_PER_MAJOR).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except DecimalException:
        # exponent out of context range
        raise BadRequest(f"{field} must be > 0")
    if minor <= 0:
        raise BadRequest(f"{field} must be > 0")
    return minor


def require_str(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadRequest(f"{field} required")
    return value.strip()


def clean_str(value: Any) -> Optional[str]:
    """Non-empty string or None. Numbers are stringified."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


# status is an opaque processor token; only whitespace is trimmed
normalize_status = clean_str


def safe_json_loads(raw: bytes) -> Dict[str, Any]:
    try:
        obj = json.loads(raw.decode("utf-8")) if raw else {}
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return obj if isinstance(obj, dict) else {}


def _pick(body: Dict[str, Any], key: str) -> Optional[str]:
    value = clean_str(body.get(key))
    if value is None and isinstance(body.get("data"), dict):
        value = clean_str(body["data"].get(key))
    return value


def parse_notification(raw: bytes) -> WebhookNotice:
    """Fields are read top level first, then from a nested `data` object."""
    body = safe_json_loads(raw)
    return WebhookNotice(
        invoiceId=_pick(body, "invoiceId"),
        reference=_pick(body, "reference"),
        status=normalize_status(_pick(body, "status")),
        payload=body,
    )
