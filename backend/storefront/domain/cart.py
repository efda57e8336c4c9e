"""
Cart Domain Models

Two representations of a cart line coexist:
- LocalCartLine: guest line kept in persistent client storage, keyed by
  variation ID, carrying denormalized display data
- CartItem: server line, owned by the remote Cart API

Wire and storage formats use camelCase; Python attributes use snake_case.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProductKind(str, Enum):
    GIFTCARD = "GIFTCARD"
    SERVICE = "SERVICE"


class AccountType(str, Enum):
    """Whether a service purchase provisions an existing or a new account"""

    EXISTING = "existing"
    NEW = "new"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductInfo(CamelModel):
    """Denormalized product/variation data supplied when adding as a guest"""

    product_id: int = Field(..., description="Product ID")
    product_name: str = Field(..., description="Product name")
    product_kind: ProductKind = Field(..., description="GIFTCARD or SERVICE")
    variation_name: str = Field(..., description="Variation name")
    price: Decimal = Field(..., description="Unit price", ge=0)
    photo_url: Optional[str] = Field(None, description="Product photo")

    # Account provisioning (SERVICE products only)
    account_type: Optional[AccountType] = Field(None, description="existing or new account")
    email: Optional[str] = Field(None, description="Account email")
    password: Optional[str] = Field(None, description="Account password")


class LocalCartLine(ProductInfo):
    """Guest cart line, unique per variation ID"""

    variation_id: int = Field(..., description="Product variation ID")
    quantity: int = Field(..., description="Quantity", ge=1)

    @classmethod
    def create(cls, variation_id: int, quantity: int, info: ProductInfo) -> "LocalCartLine":
        return cls(variation_id=variation_id, quantity=quantity, **info.model_dump())

    def merged_with(self, quantity: int, info: ProductInfo) -> "LocalCartLine":
        """Sum quantities; display data is replaced by the latest info"""
        return LocalCartLine.create(self.variation_id, self.quantity + quantity, info)

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class CartProduct(CamelModel):
    id: int
    name: str
    code: Optional[str] = None
    photo_url: Optional[str] = None
    kind: ProductKind


class CartVariation(CamelModel):
    id: int
    name: str
    price: Decimal = Field(..., ge=0)
    duration: int = 0
    max_users: int = 0


class CartItem(CamelModel):
    """Server cart line"""

    id: int = Field(..., description="Server line ID")
    variation_id: int = Field(..., description="Product variation ID")
    quantity: int = Field(..., description="Quantity")
    price: Decimal = Field(..., description="Unit price", ge=0)
    product: CartProduct
    variation: CartVariation


class Cart(CamelModel):
    """Server cart for the authenticated identity"""

    id: int
    user_id: int
    items: List[CartItem] = Field(default_factory=list)
    total_amount: Decimal = Field(Decimal("0"), ge=0)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LocalizedMessage(BaseModel):
    en: str = ""
    ar: str = ""


class CartResponse(BaseModel):
    """Envelope returned by every Cart API endpoint"""

    success: bool
    data: Optional[Cart] = None
    message: Optional[Union[LocalizedMessage, str]] = None


class DisplayItem(CartItem):
    """
    Mode-independent projection of a cart line for rendering

    Local lines get a synthetic ``local-<variationId>`` id.
    """

    id: Union[int, str]
    account_type: Optional[AccountType] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_local(cls, line: LocalCartLine) -> "DisplayItem":
        return cls(
            id=f"local-{line.variation_id}",
            variation_id=line.variation_id,
            quantity=line.quantity,
            price=line.price,
            product=CartProduct(
                id=line.product_id,
                name=line.product_name,
                kind=line.product_kind,
                photo_url=line.photo_url,
            ),
            variation=CartVariation(
                id=line.variation_id,
                name=line.variation_name,
                price=line.price,
            ),
            account_type=line.account_type,
            email=line.email,
            password=line.password,
        )

    @classmethod
    def from_server(cls, item: CartItem) -> "DisplayItem":
        return cls(**item.model_dump())
