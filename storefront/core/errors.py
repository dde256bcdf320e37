# storefront/core/errors.py
"""
Domain errors raised by the cart/checkout core.

Each error carries a short, non-technical message that is safe to show to
a shopper, plus the HTTP status the API layer answers with.
"""

from fastapi import status


class StorefrontError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class AuthenticationRequiredError(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Please sign in to continue."


class EmptyCartError(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Your cart is empty."


class PaymentDeclinedError(StorefrontError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    message = "Your payment could not be completed. Please try another method."


class OrderPersistenceError(StorefrontError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = (
        "We couldn't place your order right now. "
        "Your cart has been kept, please try again."
    )


class StoreUnavailableError(StorefrontError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Our store is temporarily unavailable. Please try again shortly."
