# payments/errors.py
from typing import Any, Optional


class PaymentError(Exception):
    """Base payment error. `code` is the machine-readable kind."""
    code = "error"
    http_status = 500

    def __init__(self, msg: str = "", **ctx):
        super().__init__(msg)
        self.msg = msg
        self.ctx = ctx

    def __str__(self):
        base = self.msg or self.__class__.__name__
        if self.ctx:
            details = ", ".join(f"{k}={v}" for k, v in self.ctx.items())
            return f"{base} [{details}]"
        return base


class BadRequest(PaymentError):
    """Client-supplied data invalid: missing fields, non-positive amount."""
    code = "bad_request"
    http_status = 400


class Unauthorized(PaymentError):
    """Webhook signature mismatch."""
    code = "bad_signature"
    http_status = 401


class AccessDenied(PaymentError):
    """Admin token missing or wrong."""
    code = "unauthorized"
    http_status = 401


class NotFound(PaymentError):
    """Unknown order or invoice reference."""
    code = "not_found"
    http_status = 404


class ConflictError(PaymentError):
    """Duplicate key on create/register."""
    code = "conflict"
    http_status = 409


class ConfigurationError(PaymentError):
    """Required setting missing (e.g. processor token)."""
    code = "misconfigured"
    http_status = 500


class UpstreamError(PaymentError):
    """Processor returned non-success or a malformed response."""
    code = "upstream_failed"
    http_status = 502

    def __init__(self, status: int, body: Any = None, msg: str = "", *, op: Optional[str] = None):
        super().__init__(msg or f"processor responded with HTTP {status}")
        self.status = status
        self.body = body
        self.op = op

    def details(self) -> dict:
        return {"status": self.status, "data": self.body}
