# payments/stores/ledger.py
import threading
from typing import Optional, Set

from payments.errors import ConflictError, NotFound
from payments.models import OrderRecord, WebhookNotice
from payments.stores.invoice_index import InvoiceIndex
from payments.stores.order_index import OrderIndex


class Ledger:
    """
    Process-local payment state: OrderIndex plus the derived InvoiceIndex,
    sharing one re-entrant lock so compound updates never interleave.

    Built once at startup and handed to the services that need it.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.orders = OrderIndex(self._lock)
        self.invoices = InvoiceIndex(self._lock)
        # orderIds with a processor create in flight
        self._pending: Set[str] = set()

    def reserve_order(self, orderId: str) -> None:
        """Claim orderId for one create; ConflictError if it is known or already claimed."""
        with self._lock:
            if orderId in self.orders or orderId in self._pending:
                raise ConflictError("order already exists", orderId=orderId)
            self._pending.add(orderId)

    def release_order(self, orderId: str) -> None:
        with self._lock:
            self._pending.discard(orderId)

    def is_reserved(self, orderId: str) -> bool:
        with self._lock:
            return orderId in self._pending

    def open_order(self, orderId: str, invoiceId: str, destination: str, amount: int) -> OrderRecord:
        """Create the order and register its invoice as one step."""
        with self._lock:
            rec = self.orders.create(orderId, invoiceId, destination, amount)
            try:
                self.invoices.register(invoiceId, orderId)
            except ConflictError:
                self.orders.remove(orderId)
                raise
            return rec

    def resolve_order_id(self, notice: WebhookNotice) -> Optional[str]:
        """Reference wins; otherwise look the invoice up."""
        if notice.reference:
            return notice.reference
        if notice.invoiceId:
            return self.invoices.find(notice.invoiceId)
        return None

    def merge_webhook(self, notice: WebhookNotice) -> OrderRecord:
        """
        Apply a webhook notice to its order.

        Raises NotFound when the order cannot be attributed and ConflictError
        when the notice names an invoice other than the one the order owns.
        Neither leaves any trace in the store.
        """
        with self._lock:
            orderId = self.resolve_order_id(notice)
            if not orderId:
                raise NotFound("unattributable notification",
                               invoiceId=notice.invoiceId, reference=notice.reference)

            rec = self.orders.get(orderId)
            if notice.invoiceId:
                if notice.invoiceId != rec.invoiceId:
                    raise ConflictError("invoice does not belong to order",
                                        invoiceId=notice.invoiceId, orderId=orderId)
                if notice.invoiceId not in self.invoices:
                    self.invoices.register(notice.invoiceId, orderId)

            return self.orders.apply_status(orderId, notice.status, "webhook", notice.payload)
