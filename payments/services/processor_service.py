# payments/services/processor_service.py
from __future__ import annotations
from typing import Any, Dict

from infra import HttpPort
from infra.http_client import HttpError
from payments.errors import UpstreamError
from payments.models import InvoiceRequest, InvoiceCreated, InvoiceStatus
from payments.normalize import clean_str, normalize_status
from payments.services.endpoints import Endpoints
from utils.logger import logger


class ProcessorService:
    """
    Invoice create/status calls against the processor.

    Failures of any kind surface as UpstreamError carrying the processor's
    HTTP status and body. Nothing is retried here.
    """
    def __init__(self, http_client: HttpPort, endpoints: Endpoints, log=None) -> None:
        self._http = http_client
        self._ep = endpoints
        self.log = log or logger

    async def close(self) -> None:
        await self._http.close()

    async def create_invoice(self, req: InvoiceRequest) -> InvoiceCreated:
        try:
            data = await self._http.post(self._ep.invoice_create, json_body=req.to_payload())
        except HttpError as e:
            self.log.error(f"invoice create failed orderId={req.orderId} status={e.status}")
            raise UpstreamError(e.status, e.payload if e.payload is not None else e.message,
                                op="create") from e

        invoiceId = clean_str(data.get("invoiceId"))
        pageUrl = clean_str(data.get("pageUrl"))
        if not invoiceId or not pageUrl:
            self.log.error(f"invoice create returned incomplete body orderId={req.orderId}: {data}")
            raise UpstreamError(200, data, "processor response lacks invoiceId/pageUrl", op="create")

        return InvoiceCreated(invoiceId=invoiceId, pageUrl=pageUrl, raw=data)

    async def get_invoice_status(self, invoiceId: str) -> InvoiceStatus:
        try:
            data: Dict[str, Any] = await self._http.get(self._ep.invoice_status,
                                                        params={"invoiceId": invoiceId})
        except HttpError as e:
            self.log.warning(f"invoice status failed invoiceId={invoiceId} status={e.status}")
            raise UpstreamError(e.status, e.payload if e.payload is not None else e.message,
                                op="status") from e

        return InvoiceStatus(
            invoiceId=invoiceId,
            status=normalize_status(data.get("status")),
            modifiedDate=clean_str(data.get("modifiedDate")),
            raw=data,
        )
