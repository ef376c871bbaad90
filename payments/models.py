# payments/models.py
import copy
from dataclasses import dataclass, field, asdict, replace
from typing import Optional, Literal, Dict, Any

Source = Literal["poll", "webhook"]

STATUS_CREATED = "created"


@dataclass
class OrderRecord:
    orderId: str
    invoiceId: str
    destination: str
    amount: int                             # minor units (kopiyky)
    createdAt: str
    status: str = STATUS_CREATED            # opaque processor token
    lastStatusAt: Optional[str] = None      # last applied poll
    lastWebhookAt: Optional[str] = None     # last applied webhook
    modifiedDate: Optional[str] = None      # processor modifiedDate from last poll
    webhookPayload: Optional[Dict[str, Any]] = None

    def snapshot(self) -> "OrderRecord":
        """Detached copy safe to hand out of the store."""
        return replace(self, webhookPayload=copy.deepcopy(self.webhookPayload))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InvoiceRequest:
    orderId: str
    amount: int                 # minor units
    ccy: int
    destination: str
    comment: str
    webHookUrl: str
    redirectUrl: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "amount": self.amount,
            "ccy": self.ccy,
            "merchantPaymInfo": {
                "reference": self.orderId,
                "destination": self.destination,
                "comment": self.comment,
            },
            "webHookUrl": self.webHookUrl,
        }
        if self.redirectUrl:
            payload["redirectUrl"] = self.redirectUrl
        return payload


@dataclass
class InvoiceCreated:
    invoiceId: str
    pageUrl: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class InvoiceStatus:
    invoiceId: str
    status: Optional[str]
    modifiedDate: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class WebhookNotice:
    invoiceId: Optional[str]
    reference: Optional[str]
    status: Optional[str]
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StatusReport:
    record: OrderRecord
    processor: Optional[Dict[str, Any]] = None  # raw status payload, None when not refreshed
