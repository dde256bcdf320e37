# storefront/schemas/cart.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# Recommended ceiling for a single line; the cart itself does not enforce it.
MAX_LINE_QUANTITY = 99


class LineItem(SQLModel):
    """
    One product + size entry in a cart or order snapshot.

    The unit price is copied from the product size at add-time and is
    never re-read from the catalog afterwards.
    """

    product_id: str
    name: str
    price: float = Field(ge=0, description="Unit price at the time it was added")
    quantity: int = Field(ge=1)
    size: str = Field(description="Variant label, e.g. '250g'")
    image: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.size)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.

    Name, price and image are taken from the product's size entry.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: str
    size: str
    quantity: int = Field(default=1, gt=0, le=MAX_LINE_QUANTITY)

    @field_validator("product_id", "size")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class CartItemUpdate(SQLModel):
    """
    Payload for setting the quantity of a cart line.

    A quantity of zero or less removes the line.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: int = Field(le=MAX_LINE_QUANTITY)


class PriceBreakdownRead(SQLModel):
    subtotal: float
    tax: float
    shipping: float
    total: float


class CartRead(SQLModel):
    """
    Full cart response model with totals.

    Amounts in `pricing` are rounded to 2 decimals for display.
    """

    identity: str | None = Field(
        default=None,
        description="User id owning the cart, or null for the guest cart",
    )
    items: list[LineItem]
    total_items: int
    total_price: float
    pricing: PriceBreakdownRead
