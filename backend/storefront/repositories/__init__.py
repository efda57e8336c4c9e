"""
Repository Layer - Local Persistence

Repositories own their storage keys; nothing else writes to them.
"""
from storefront.repositories.local_cart_repository import LocalCartRepository

__all__ = ['LocalCartRepository']
