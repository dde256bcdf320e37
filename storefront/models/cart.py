# storefront/models/cart.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class CartRecord(SQLModel, table=True):
    """
    Account cart document: one row per signed-in user.

    `items` holds the full list of line items as JSON. Every save
    replaces the whole list, so the latest write always carries the
    complete cart.
    """

    __tablename__ = "carts"

    user_id: str = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id (JWT 'sub')",
    )

    items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
