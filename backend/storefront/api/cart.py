"""
Cart API Endpoints
Dual-mode cart: guest lines before login, server cart after
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from storefront.api.session import to_http_exception
from storefront.core.errors import StorefrontError
from storefront.domain.cart import AccountType, ProductInfo, ProductKind
from storefront.services.cart_service import CartService
from storefront.services.storefront import Storefront, get_storefront

router = APIRouter()


# Request models
class AddItemRequest(BaseModel):
    variation_id: int
    quantity: int = Field(1, ge=1)

    # Display data, required while browsing as a guest
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    product_kind: Optional[ProductKind] = None
    variation_name: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    photo_url: Optional[str] = None
    account_type: Optional[AccountType] = None
    email: Optional[str] = None
    password: Optional[str] = None

    def product_info(self) -> Optional[ProductInfo]:
        required = (self.product_id, self.product_name, self.product_kind, self.variation_name, self.price)
        if any(value is None for value in required):
            return None
        return ProductInfo(
            product_id=self.product_id,
            product_name=self.product_name,
            product_kind=self.product_kind,
            variation_name=self.variation_name,
            price=self.price,
            photo_url=self.photo_url,
            account_type=self.account_type,
            email=self.email,
            password=self.password,
        )


class QuantityUpdate(BaseModel):
    quantity: int


def cart_summary(cart: CartService) -> dict:
    return {
        "mode": cart.mode.value,
        "phase": cart.phase.value,
        "items": [item.model_dump(mode="json", by_alias=True) for item in cart.get_display_items()],
        "total_items": cart.get_total_item_count(),
        "total_amount": float(cart.get_total_amount()),
        "has_service_products": cart.has_service_products(),
        "is_loading": cart.is_loading,
        "error": cart.error,
    }


@router.get("/")
async def get_cart(refresh: bool = False, storefront: Storefront = Depends(get_storefront)):
    """
    Get the cart of the current mode

    refresh=true re-fetches the server cart (authenticated only); a fetch
    failure shows up in "error" instead of failing the request
    """
    if refresh:
        await storefront.cart.fetch_cart()
    return {"status": "success", "data": cart_summary(storefront.cart)}


@router.post("/items")
async def add_item(body: AddItemRequest, storefront: Storefront = Depends(get_storefront)):
    try:
        await storefront.cart.add_item(body.variation_id, body.quantity, body.product_info())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorefrontError as e:
        raise to_http_exception(e)
    return {"status": "success", "data": cart_summary(storefront.cart)}


@router.put("/items/{item_id}")
async def update_item(item_id: int, body: QuantityUpdate, storefront: Storefront = Depends(get_storefront)):
    """Set a server line quantity (0 removes the line)"""
    try:
        await storefront.cart.update_item_quantity(item_id, body.quantity)
    except StorefrontError as e:
        raise to_http_exception(e)
    return {"status": "success", "data": cart_summary(storefront.cart)}


@router.delete("/items/{item_id}")
async def remove_item(item_id: int, storefront: Storefront = Depends(get_storefront)):
    try:
        await storefront.cart.remove_item(item_id)
    except StorefrontError as e:
        raise to_http_exception(e)
    return {"status": "success", "data": cart_summary(storefront.cart)}


@router.put("/local-items/{variation_id}")
async def update_local_item(variation_id: int, body: QuantityUpdate, storefront: Storefront = Depends(get_storefront)):
    """Set a guest line quantity (0 removes the line)"""
    storefront.cart.update_local_item_quantity(variation_id, body.quantity)
    return {"status": "success", "data": cart_summary(storefront.cart)}


@router.delete("/local-items/{variation_id}")
async def remove_local_item(variation_id: int, storefront: Storefront = Depends(get_storefront)):
    storefront.cart.remove_local_item(variation_id)
    return {"status": "success", "data": cart_summary(storefront.cart)}


@router.delete("/")
async def clear_cart(storefront: Storefront = Depends(get_storefront)):
    try:
        await storefront.cart.clear_cart()
    except StorefrontError as e:
        raise to_http_exception(e)
    return {"status": "success", "data": cart_summary(storefront.cart)}
