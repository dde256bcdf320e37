# storefront/services/pricing.py
from dataclasses import dataclass
from typing import Iterable

from storefront.schemas.cart import LineItem, PriceBreakdownRead

# Flat GST-style tax on the cart subtotal (5%)
TAX_RATE = 0.05

# Orders strictly above this subtotal ship free
FREE_SHIPPING_THRESHOLD = 500

FLAT_SHIPPING_FEE = 40


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Unrounded checkout amounts. Round only for display.
    """

    subtotal: float
    tax: float
    shipping: float
    total: float

    def rounded(self) -> PriceBreakdownRead:
        return PriceBreakdownRead(
            subtotal=round(self.subtotal, 2),
            tax=round(self.tax, 2),
            shipping=round(self.shipping, 2),
            total=round(self.total, 2),
        )


def subtotal_of(items: Iterable[LineItem]) -> float:
    return sum((item.price * item.quantity for item in items), 0.0)


def shipping_for(subtotal: float) -> float:
    return 0.0 if subtotal > FREE_SHIPPING_THRESHOLD else float(FLAT_SHIPPING_FEE)


def calculate(items: Iterable[LineItem]) -> PriceBreakdown:
    """
    Price a cart:

        subtotal = sum(price * quantity)
        tax      = subtotal * TAX_RATE
        shipping = 0 if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE
        total    = subtotal + tax + shipping

    Inputs are assumed valid (non-negative prices, quantities >= 1);
    the cart store guarantees that at mutation time.
    """
    subtotal = subtotal_of(items)
    tax = subtotal * TAX_RATE
    shipping = shipping_for(subtotal)
    return PriceBreakdown(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping,
    )


def format_amount(amount: float) -> str:
    """
    Display helper: 945 -> '₹945.00'
    """
    return f"₹{amount:.2f}"
