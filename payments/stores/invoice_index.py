# payments/stores/invoice_index.py
import threading
from typing import Optional, Dict

from payments.errors import ConflictError, NotFound


class InvoiceIndex:
    """
    invoiceId -> orderId. Set once per invoice, never reassigned.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self._by_invoice: Dict[str, str] = {}
        self._lock = lock or threading.RLock()

    def __len__(self) -> int:
        return len(self._by_invoice)

    def __contains__(self, invoiceId: str) -> bool:
        return invoiceId in self._by_invoice

    def register(self, invoiceId: str, orderId: str) -> None:
        """Re-registering the same pair is a no-op."""
        with self._lock:
            cur = self._by_invoice.get(invoiceId)
            if cur is not None and cur != orderId:
                raise ConflictError("invoice already registered",
                                    invoiceId=invoiceId, orderId=cur)
            self._by_invoice[invoiceId] = orderId

    def find(self, invoiceId: str) -> Optional[str]:
        with self._lock:
            return self._by_invoice.get(invoiceId)

    def resolve(self, invoiceId: str) -> str:
        orderId = self.find(invoiceId)
        if orderId is None:
            raise NotFound("invoice not found", invoiceId=invoiceId)
        return orderId
