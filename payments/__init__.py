"""
Payment reconciliation package.

Provides:
- Configuration & endpoints for the monobank acquiring API
- Order/invoice records and the in-memory Ledger (OrderIndex + InvoiceIndex)
- Services for invoice calls to the processor and poll/webhook reconciliation
- Application-level PaymentAPI and its FastAPI HTTP surface
"""
