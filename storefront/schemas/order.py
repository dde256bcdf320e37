# storefront/schemas/order.py
import re
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

from storefront.schemas.cart import LineItem

OrderStatus = Literal["processing", "shipped", "delivered", "cancelled"]
PaymentMethod = Literal["cod", "card", "upi"]

_NON_DIGITS = re.compile(r"\D")


class ShippingAddress(SQLModel):
    """
    Delivery address captured at checkout.

    Validation rules:
      - every field is required and cannot be blank
      - phone: exactly 10 digits (spaces/dashes are dropped first)
      - pincode: exactly 6 digits
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    phone: str
    street: str
    city: str
    state: str
    pincode: str

    @field_validator("name", "street", "city", "state")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please fill in all shipping details")
        return v

    @field_validator("phone")
    @classmethod
    def ten_digit_phone(cls, v: str) -> str:
        digits = _NON_DIGITS.sub("", v)
        if len(digits) != 10:
            raise ValueError("Please enter a valid 10-digit phone number")
        return digits

    @field_validator("pincode")
    @classmethod
    def six_digit_pincode(cls, v: str) -> str:
        digits = _NON_DIGITS.sub("", v)
        if len(digits) != 6:
            raise ValueError("Please enter a valid 6-digit pincode")
        return digits


class PaymentDetails(SQLModel):
    """
    Payment method chosen at checkout plus the fields that method needs.

      - cod  : nothing else
      - card : card_number (>= 13 digits), card_expiry, card_cvv
      - upi  : upi_id
    """

    model_config = ConfigDict(extra="forbid")

    method: PaymentMethod = "cod"
    card_number: str | None = None
    card_expiry: str | None = None
    card_cvv: str | None = None
    upi_id: str | None = None

    @field_validator("card_number", "card_expiry", "card_cvv", "upi_id")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def check_method_fields(self) -> "PaymentDetails":
        if self.method == "card":
            number = _NON_DIGITS.sub("", self.card_number or "")
            if len(number) < 13 or not self.card_expiry or not self.card_cvv:
                raise ValueError("Please enter valid card details")
            self.card_number = number
        elif self.method == "upi" and not self.upi_id:
            raise ValueError("Please enter a valid UPI ID")
        return self

    def masked(self) -> dict[str, str]:
        """
        Details safe to log or hand to a payment gateway stub.
        """
        if self.method == "card" and self.card_number:
            return {"card_last4": self.card_number[-4:]}
        if self.method == "upi" and self.upi_id:
            return {"upi_id": self.upi_id}
        return {}


class CheckoutRequest(SQLModel):
    """
    Payload for placing an order from the current cart.

    Backend derives:
      - user_id from token
      - status = 'processing'
      - subtotal / tax / shipping / total from the cart
      - items from the cart (snapshot)
    """

    model_config = ConfigDict(extra="forbid")

    address: ShippingAddress
    payment: PaymentDetails = Field(default_factory=PaymentDetails)


class CheckoutResult(SQLModel):
    order_id: str
    total: float


class OrderRead(SQLModel):
    """
    Immutable record of a completed checkout.
    """

    order_id: str
    user_id: str
    items: list[LineItem]
    subtotal: float
    tax: float
    shipping: float
    total: float
    status: OrderStatus = "processing"
    address: ShippingAddress
    payment_method: PaymentMethod = "cod"
    payment_reference: str | None = None
    created_at: datetime
