# payments/signature.py
import hashlib
import hmac
from typing import Optional, Protocol

from payments.errors import Unauthorized


class SignatureVerifier(Protocol):
    def verify(self, raw: bytes, signature: Optional[str]) -> None: ...


class NoopVerifier:
    """No secret configured: every notification passes."""

    def verify(self, raw: bytes, signature: Optional[str]) -> None:
        return None


class HmacVerifier:
    """HMAC-SHA256 hex digest over the exact raw body."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("HmacVerifier requires a secret")
        self._key = secret.encode("utf-8")

    def sign(self, raw: bytes) -> str:
        return hmac.new(self._key, raw, hashlib.sha256).hexdigest()

    def verify(self, raw: bytes, signature: Optional[str]) -> None:
        provided = (signature or "").strip().lower()
        if not provided:
            raise Unauthorized("missing signature")
        if not hmac.compare_digest(self.sign(raw).encode(), provided.encode("utf-8")):
            raise Unauthorized("signature mismatch")


def make_verifier(secret: Optional[str]) -> SignatureVerifier:
    return HmacVerifier(secret) if secret else NoopVerifier()
