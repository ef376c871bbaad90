# payments/services/endpoints.py
from dataclasses import dataclass


@dataclass
class Endpoints:
    # REST paths of the monobank acquiring API
    invoice_create: str = "/api/merchant/invoice/create"
    invoice_status: str = "/api/merchant/invoice/status"

    # callback path served by this service
    webhook_path: str = "/mono/webhook"
