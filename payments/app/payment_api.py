# payments/app/payment_api.py
from typing import Any, List, Optional

from infra.http_client import HttpClient
from payments.config import PaymentSettings
from payments.errors import ConfigurationError, ConflictError
from payments.models import InvoiceRequest, InvoiceCreated, InvoiceStatus, OrderRecord, StatusReport
from payments.normalize import require_str, to_minor_units
from payments.services.endpoints import Endpoints
from payments.services.processor_service import ProcessorService
from payments.services.reconcile_service import ReconcileService
from payments.signature import make_verifier
from payments.stores.ledger import Ledger
from utils.logger import logger


class PaymentAPI:
    """
    Application-facing payment API.
    Handles validation, invoice creation, status queries and webhook intake.
    """

    def __init__(self,
                 settings: PaymentSettings,
                 ledger: Ledger,
                 processor,
                 reconcile_svc: ReconcileService,
                 endpoints: Optional[Endpoints] = None,
                 log=None,
                 ):
        self.settings = settings
        self.ledger = ledger
        self.processor = processor
        self.reconcile_svc = reconcile_svc
        self.ep = endpoints or Endpoints()
        self.log = log or logger

    def _require_token(self) -> None:
        if not self.settings.token:
            raise ConfigurationError("Missing env: MONO_TOKEN")

    def webhook_url(self, base_url: Optional[str] = None) -> str:
        """Explicit setting wins, else <public base>/mono/webhook."""
        if self.settings.webhook_url:
            return self.settings.webhook_url
        base = (self.settings.base_url or base_url or "").strip().rstrip("/")
        if not base:
            raise ConfigurationError("cannot derive webhook URL: set BASE_URL or MONO_WEBHOOK_URL")
        return f"{base}{self.ep.webhook_path}"

    async def create_invoice(self,
                             orderId: Any,
                             amountUah: Any,
                             orderDesc: Any,
                             destination: Any,
                             *,
                             base_url: Optional[str] = None,
                             ) -> InvoiceCreated:
        """
        Validate → reject known orderId → create remote invoice → open the order locally.
        """
        orderId = require_str(orderId, "orderId")
        orderDesc = require_str(orderDesc, "orderDesc")
        destination = require_str(destination, "destination")
        amount = to_minor_units(amountUah)

        if orderId in self.ledger.orders:
            raise ConflictError("order already exists", orderId=orderId)
        self._require_token()

        req = InvoiceRequest(
            orderId=orderId,
            amount=amount,
            ccy=self.settings.ccy,
            destination=destination,
            comment=orderDesc,
            webHookUrl=self.webhook_url(base_url),
            redirectUrl=self.settings.redirect_url or None,
        )

        # held across the processor await so a concurrent create of the same
        # orderId fails before it reaches the processor
        self.ledger.reserve_order(orderId)
        try:
            created = await self.processor.create_invoice(req)
            self.ledger.open_order(orderId, created.invoiceId, destination, amount)
        finally:
            self.ledger.release_order(orderId)
        self.log.info(f"invoice created orderId={orderId} invoiceId={created.invoiceId} amount={amount}")
        return created

    async def get_order_status(self, orderId: Any, *, refresh: bool = True) -> StatusReport:
        """Local record, optionally refreshed from the processor first."""
        orderId = require_str(orderId, "orderId")
        if not refresh:
            return StatusReport(record=self.ledger.orders.get(orderId))
        self.ledger.orders.get(orderId)
        self._require_token()
        return await self.reconcile_svc.poll_order(orderId)

    async def get_invoice_status(self, invoiceId: Any) -> InvoiceStatus:
        """Direct processor lookup; local state is not touched."""
        invoiceId = require_str(invoiceId, "invoiceId")
        self._require_token()
        return await self.processor.get_invoice_status(invoiceId)

    def handle_webhook(self, raw: bytes, signature: Optional[str]) -> bool:
        """Acknowledge; raises Unauthorized only."""
        self.reconcile_svc.handle_webhook(raw, signature)
        return True

    def list_orders(self, limit: int = 20) -> List[OrderRecord]:
        return self.ledger.orders.list(limit)

    async def close(self) -> None:
        close = getattr(self.processor, "close", None)
        if close is not None:
            await close()


def build_payment_api(settings: PaymentSettings, *, http_client=None, log=None) -> PaymentAPI:
    """Wire one Ledger, processor client and verifier for the process."""
    log = log or logger
    ep = Endpoints()
    http = http_client or HttpClient(settings.api_base, settings.token,
                                     timeout_s=settings.http_timeout_s, log=log)
    processor = ProcessorService(http, ep, log=log)
    ledger = Ledger()
    reconcile = ReconcileService(processor, ledger, make_verifier(settings.webhook_secret), log=log)
    return PaymentAPI(settings, ledger, processor, reconcile, endpoints=ep, log=log)
