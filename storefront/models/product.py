# storefront/models/product.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class ProductRecord(SQLModel, table=True):
    """
    Product catalog entry.

    List-shaped and nested fields (sizes, images, features, ingredients,
    display extras) are stored as JSON, mirroring the document layout the
    admin editor submits.
    """

    __tablename__ = "products"

    id: str = Field(
        primary_key=True,
        index=True,
        description="URL-friendly identifier, e.g. 'avakai'",
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name of the pickle/product",
    )

    sub_name: str = ""
    description: str = ""
    long_description: str = ""
    image: str = ""

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # [{label, price, weight}]
    sizes: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    in_stock: bool = Field(
        default=True,
        description="Whether this product can be added to carts",
    )

    category: str = Field(
        default="Mango Pickle",
        max_length=50,
        index=True,
    )

    spice_level: int = Field(default=3, ge=1, le=5)

    features: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    ingredients: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # Raw optional display sections; defaults are resolved on read
    extras: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
