"""
Domain Layer - Storefront Entities

Pydantic models for identities and both cart representations.
"""
from storefront.domain.identity import AuthUser, IdentityKind
from storefront.domain.cart import (
    AccountType,
    Cart,
    CartItem,
    CartProduct,
    CartResponse,
    CartVariation,
    DisplayItem,
    LocalCartLine,
    LocalizedMessage,
    ProductInfo,
    ProductKind,
)

__all__ = [
    'AuthUser', 'IdentityKind',
    'AccountType', 'Cart', 'CartItem', 'CartProduct', 'CartResponse', 'CartVariation',
    'DisplayItem', 'LocalCartLine', 'LocalizedMessage', 'ProductInfo', 'ProductKind',
]
