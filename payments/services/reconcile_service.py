# payments/services/reconcile_service.py
from typing import Optional

from payments.errors import ConflictError, NotFound
from payments.models import OrderRecord, StatusReport
from payments.normalize import parse_notification
from payments.signature import SignatureVerifier, NoopVerifier
from payments.stores.ledger import Ledger
from utils.logger import logger


class ReconcileService:
    """
    Poll + webhook reconciliation keyed by orderId/invoiceId.

    Both channels write through Ledger; the latest applied status wins.
    """

    def __init__(self, processor, ledger: Ledger, verifier: Optional[SignatureVerifier] = None, log=None) -> None:
        self._processor = processor
        self._ledger = ledger
        self._verifier = verifier or NoopVerifier()
        self.log = log or logger

    async def poll_order(self, orderId: str) -> StatusReport:
        """
        Fetch the processor status for the order's invoice and apply it.
        An UpstreamError leaves the local record untouched.
        """
        rec = self._ledger.orders.get(orderId)
        st = await self._processor.get_invoice_status(rec.invoiceId)
        merged = self._ledger.orders.apply_status(
            orderId, st.status, "poll", modified_date=st.modifiedDate
        )
        if merged.status != rec.status:
            self.log.info(f"poll orderId={orderId} status {rec.status} -> {merged.status}")
        return StatusReport(record=merged, processor=st.raw)

    def handle_webhook(self, raw: bytes, signature: Optional[str]) -> Optional[OrderRecord]:
        """
        Verify, attribute and merge one notification.

        Only Unauthorized escapes. Unattributable or conflicting notices are
        logged and dropped so the sender never retries them.
        """
        self._verifier.verify(raw, signature)

        notice = parse_notification(raw)
        self.log.info(
            f"mono_webhook invoiceId={notice.invoiceId} reference={notice.reference} status={notice.status}"
        )

        try:
            rec = self._ledger.merge_webhook(notice)
        except NotFound as e:
            self.log.warning(f"mono_webhook dropped: {e}")
            return None
        except ConflictError as e:
            self.log.error(f"mono_webhook dropped: {e}")
            return None

        self.log.debug(f"mono_webhook applied orderId={rec.orderId} status={rec.status}")
        return rec
