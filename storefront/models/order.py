# storefront/models/order.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class OrderRecord(SQLModel, table=True):
    """
    Customer order.

    Items and money fields are written once at checkout and never
    updated; only `status` moves over the order's lifecycle.
    """

    __tablename__ = "orders"

    order_id: str = Field(
        primary_key=True,
        index=True,
        description="e.g. ORD1718000000000a1b2c3",
    )

    user_id: str = Field(
        index=True,
        description="Supabase auth user id of the buyer",
    )

    # Snapshot of the cart's line items at checkout
    items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    subtotal: float
    tax: float
    shipping: float
    total: float = Field(
        description="Final amount for this order (subtotal + tax + shipping)",
    )

    # processing | shipped | delivered | cancelled
    status: str = Field(
        default="processing",
        index=True,
        description="Order status lifecycle",
    )

    # name, phone, street, city, state, pincode
    address: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    payment_method: str = Field(default="cod")
    payment_reference: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
