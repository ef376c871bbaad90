# tests/conftest.py
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import asyncio
import hashlib
import hmac

import pytest
import pytest_asyncio

from infra.http_client import HttpClient
from payments.app.payment_api import PaymentAPI
from payments.config import PaymentSettings
from payments.errors import UpstreamError
from payments.models import InvoiceCreated, InvoiceStatus
from payments.services.reconcile_service import ReconcileService
from payments.signature import make_verifier
from payments.stores.ledger import Ledger

BASE = "https://api.monobank.test"
SECRET = "whsec-test"


def sign(raw: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()


class FakeProcessor:
    """Stands in for ProcessorService; records calls, serves canned answers."""

    def __init__(self):
        self.created = []
        self.status_calls = []
        self.next_invoice = "INV-9"
        self.statuses = {}
        self.create_error = None
        self.status_error = None
        self.closed = False

    async def create_invoice(self, req):
        if self.create_error:
            raise self.create_error
        self.created.append(req)
        invoiceId = self.next_invoice
        return InvoiceCreated(invoiceId=invoiceId, pageUrl=f"https://pay.mbnk.biz/{invoiceId}",
                              raw={"invoiceId": invoiceId})

    async def get_invoice_status(self, invoiceId):
        self.status_calls.append(invoiceId)
        if self.status_error:
            raise self.status_error
        raw = self.statuses.get(invoiceId, {"invoiceId": invoiceId, "status": "processing"})
        return InvoiceStatus(invoiceId=invoiceId, status=raw.get("status"),
                             modifiedDate=raw.get("modifiedDate"), raw=raw)

    async def close(self):
        self.closed = True

    def fail_status(self, status=500, body=None):
        self.status_error = UpstreamError(status, body or {"errText": "boom"}, op="status")


class GatedProcessor(FakeProcessor):
    """create_invoice blocks until `gate` is set, to overlap concurrent creates."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.entered = asyncio.Event()

    async def create_invoice(self, req):
        self.entered.set()
        await self.gate.wait()
        return await super().create_invoice(req)


@pytest.fixture
def settings():
    return PaymentSettings(token="test-token", api_base=BASE, base_url="https://pay.example.com")


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def processor():
    return FakeProcessor()


def make_api(settings, ledger, processor):
    reconcile = ReconcileService(processor, ledger, make_verifier(settings.webhook_secret))
    return PaymentAPI(settings, ledger, processor, reconcile)


@pytest.fixture
def api(settings, ledger, processor):
    return make_api(settings, ledger, processor)


@pytest.fixture
def signed_api(settings, ledger, processor):
    settings.webhook_secret = SECRET
    return make_api(settings, ledger, processor)


@pytest_asyncio.fixture
async def http_client():
    async with HttpClient(BASE, "test-token", timeout_s=15) as client:
        yield client
