# payments/http_api.py
from typing import Any, Optional

from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from payments.app.payment_api import PaymentAPI
from payments.errors import AccessDenied, BadRequest, PaymentError, UpstreamError
from utils.time import utc_iso_millis


class CreateInvoiceReq(BaseModel):
    # left loose on purpose: PaymentAPI owns validation and answers 400
    orderId: Optional[Any] = None
    amountUah: Optional[Any] = None
    orderDesc: Optional[Any] = None
    destination: Optional[Any] = None


def public_base_url(request: Request) -> str:
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme or "https"
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{proto}://{host}"


def error_body(e: PaymentError) -> dict:
    if isinstance(e, UpstreamError):
        return {"ok": False, "error": f"mono_{e.op or 'call'}_failed", "details": e.details()}
    return {"ok": False, "error": e.code, "message": e.msg, **e.ctx}


def validation_message(e: RequestValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "header", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "invalid request"


def build_app(api: PaymentAPI) -> FastAPI:
    settings = api.settings
    app = FastAPI(title="Payment Reconciliation")

    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
            max_age=86400,
        )

    @app.exception_handler(PaymentError)
    async def _payment_error(request: Request, e: PaymentError):
        return JSONResponse(status_code=e.http_status, content=error_body(e))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, e: RequestValidationError):
        bad = BadRequest(validation_message(e))
        return JSONResponse(status_code=bad.http_status, content=error_body(bad))

    def _auth(x_token: Optional[str]):
        if settings.admin_token and x_token != settings.admin_token:
            raise AccessDenied("admin token required")

    @app.get("/health")
    async def health():
        return {"ok": True, "ts": utc_iso_millis()}

    @app.get("/mono/webhook/health")
    async def webhook_health():
        return {"ok": True, "ts": utc_iso_millis()}

    @app.post("/api/create-invoice")
    async def create_invoice(req: CreateInvoiceReq, request: Request):
        created = await api.create_invoice(
            req.orderId, req.amountUah, req.orderDesc, req.destination,
            base_url=public_base_url(request),
        )
        return {"invoiceId": created.invoiceId, "pageUrl": created.pageUrl}

    @app.get("/mono/invoice/{orderId}")
    async def order_status(orderId: str, refresh: bool = Query(default=True)):
        report = await api.get_order_status(orderId, refresh=refresh)
        rec = report.record
        return {
            "ok": True,
            "orderId": rec.orderId,
            "invoiceId": rec.invoiceId,
            "localStatus": rec.status,
            "status": report.processor,
        }

    @app.get("/mono/invoice-by-id/{invoiceId}")
    async def invoice_status(invoiceId: str):
        st = await api.get_invoice_status(invoiceId)
        return {"ok": True, "invoiceId": st.invoiceId, "status": st.raw}

    @app.post("/mono/webhook")
    async def webhook(request: Request,
                      x_signature: Optional[str] = Header(default=None),
                      x_sign: Optional[str] = Header(default=None)):
        raw = await request.body()
        api.handle_webhook(raw, x_signature or x_sign)
        return {"ok": True}

    @app.get("/api/orders")
    async def list_orders(limit: int = Query(default=20, ge=1, le=500),
                          x_token: Optional[str] = Header(default=None)):
        _auth(x_token)
        rows = api.list_orders(limit)
        return {"ok": True, "count": len(rows), "orders": [r.to_dict() for r in rows]}

    return app
