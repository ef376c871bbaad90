from payments.stores.invoice_index import InvoiceIndex
from payments.stores.order_index import OrderIndex
from payments.stores.ledger import Ledger

__all__ = ["InvoiceIndex", "OrderIndex", "Ledger"]
