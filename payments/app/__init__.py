from payments.app.payment_api import PaymentAPI, build_payment_api

__all__ = ["PaymentAPI", "build_payment_api"]
