# payments/stores/order_index.py
import threading
from typing import Optional, Dict, Any, List

from payments.errors import ConflictError, NotFound
from payments.models import OrderRecord, Source
from utils.time import utc_iso_millis


class OrderIndex:
    """
    In-memory order records keyed by orderId. Authoritative status view.

    Every method returns detached snapshots; the stored records are only
    mutated under the lock.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self._by_order: Dict[str, OrderRecord] = {}
        self._lock = lock or threading.RLock()

    def __len__(self) -> int:
        return len(self._by_order)

    def __contains__(self, orderId: str) -> bool:
        return orderId in self._by_order

    def create(self, orderId: str, invoiceId: str, destination: str, amount: int) -> OrderRecord:
        with self._lock:
            if orderId in self._by_order:
                raise ConflictError("order already exists", orderId=orderId)
            rec = OrderRecord(
                orderId=orderId,
                invoiceId=invoiceId,
                destination=destination,
                amount=amount,
                createdAt=utc_iso_millis(),
            )
            self._by_order[orderId] = rec
            return rec.snapshot()

    def find(self, orderId: str) -> Optional[OrderRecord]:
        with self._lock:
            rec = self._by_order.get(orderId)
            return rec.snapshot() if rec else None

    def get(self, orderId: str) -> OrderRecord:
        rec = self.find(orderId)
        if rec is None:
            raise NotFound("order not found", orderId=orderId)
        return rec

    def apply_status(self,
                     orderId: str,
                     status: Optional[str],
                     source: Source,
                     raw_payload: Optional[Dict[str, Any]] = None,
                     *,
                     modified_date: Optional[str] = None,
                     ) -> OrderRecord:
        """
        Last write wins: a supplied status replaces the current one regardless
        of which channel wrote before. A missing status keeps the current value
        but still stamps the channel timestamp.
        """
        if source not in ("poll", "webhook"):
            raise ValueError(f"unknown status source: {source}")

        with self._lock:
            rec = self._by_order.get(orderId)
            if rec is None:
                raise NotFound("order not found", orderId=orderId)

            if status:
                rec.status = status
            now = utc_iso_millis()
            if source == "webhook":
                rec.lastWebhookAt = now
                rec.webhookPayload = raw_payload
            else:
                rec.lastStatusAt = now
                if modified_date is not None:
                    rec.modifiedDate = modified_date
            return rec.snapshot()

    def list(self, limit: int = 20) -> List[OrderRecord]:
        """Most recently created first."""
        with self._lock:
            rows = sorted(self._by_order.values(), key=lambda r: r.createdAt, reverse=True)
            return [r.snapshot() for r in rows[:max(limit, 0)]]

    def remove(self, orderId: str) -> None:
        with self._lock:
            self._by_order.pop(orderId, None)
