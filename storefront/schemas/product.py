# storefront/schemas/product.py
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

MainCategory = Literal["Pickles", "Podis", "Snacks"]


class ProductSize(SQLModel):
    """
    A purchasable variant of a product (jar size).
    """

    label: str
    price: float = Field(ge=0)
    weight: str = ""


class StatEntry(SQLModel):
    label: str
    val: str


# ---- Display extras as stored (every field optional) ----


class DetailsSectionIn(SQLModel):
    title: str | None = None
    description: str | None = None
    image_alt: str | None = None


class FreshnessSectionIn(SQLModel):
    title: str | None = None
    description: str | None = None


class BuyNowSectionIn(SQLModel):
    price: str | None = None
    unit: str | None = None
    processing_params: list[str] | None = None
    delivery_promise: str | None = None
    return_policy: str | None = None


class DisplayExtrasIn(SQLModel):
    """
    Optional storefront display sections as entered by an admin.

    Missing pieces are filled in once, when the product is read
    (see product_service.resolve_extras).
    """

    stats: list[StatEntry] | None = None
    details: DetailsSectionIn | None = None
    freshness: FreshnessSectionIn | None = None
    buy_now: BuyNowSectionIn | None = None


# ---- Display extras as served (defaults resolved) ----


class DetailsSection(SQLModel):
    title: str
    description: str
    image_alt: str


class FreshnessSection(SQLModel):
    title: str
    description: str


class BuyNowSection(SQLModel):
    price: str
    unit: str
    processing_params: list[str]
    delivery_promise: str
    return_policy: str


class DisplayExtras(SQLModel):
    stats: list[StatEntry]
    details: DetailsSection
    freshness: FreshnessSection
    buy_now: BuyNowSection


class ProductWrite(SQLModel):
    """
    Admin payload for creating or replacing a product.

    - id is optional: if omitted, generated from `name`.
    """

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    name: str = Field(max_length=100)
    sub_name: str = ""
    description: str = ""
    long_description: str = ""
    image: str = ""
    images: list[str] = Field(default_factory=list)
    sizes: list[ProductSize] = Field(min_length=1)
    in_stock: bool = True
    category: str = Field(default="Mango Pickle", max_length=50)
    spice_level: int = Field(default=3, ge=1, le=5)
    features: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    extras: DisplayExtrasIn = Field(default_factory=DisplayExtrasIn)

    @field_validator("name", "category")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("id")
    @classmethod
    def normalize_id(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("sizes")
    @classmethod
    def unique_size_labels(cls, v: list[ProductSize]) -> list[ProductSize]:
        labels = [s.label for s in v]
        if len(labels) != len(set(labels)):
            raise ValueError("size labels must be unique")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients, with display extras resolved.
    """

    id: str
    name: str
    sub_name: str
    description: str
    long_description: str
    image: str
    images: list[str]
    sizes: list[ProductSize]
    in_stock: bool
    category: str
    main_category: MainCategory
    spice_level: int
    features: list[str]
    ingredients: list[str]
    extras: DisplayExtras

    def size(self, label: str) -> ProductSize | None:
        return next((s for s in self.sizes if s.label == label), None)


class ImageUploadRead(SQLModel):
    url: str
