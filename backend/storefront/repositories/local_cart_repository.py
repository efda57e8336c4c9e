"""
Local Cart Repository

Persists guest cart lines under a single key of the persistent storage
scope, as a JSON array in the camelCase storage format.
"""
import json
import logging
from typing import List

from pydantic import ValidationError

from storefront.core.storage import KeyValueStorage
from storefront.domain.cart import LocalCartLine

logger = logging.getLogger(__name__)

DEFAULT_CART_KEY = "cart_items"


class LocalCartRepository:
    """Repository for the guest cart snapshot"""

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_CART_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> List[LocalCartLine]:
        """
        Load guest lines from storage

        Returns:
            Lines in stored order; empty when nothing is stored or the
            snapshot is unreadable
        """
        raw = self.storage.get(self.key)
        if not raw:
            return []

        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("cart snapshot is not a list")
            return [LocalCartLine.model_validate(item) for item in items]
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to load cart from storage: {e}")
            return []

    def save(self, lines: List[LocalCartLine]) -> None:
        payload = [line.model_dump(mode="json", by_alias=True, exclude_none=True) for line in lines]
        self.storage.set(self.key, json.dumps(payload))

    def clear(self) -> None:
        self.storage.remove(self.key)

    def exists(self) -> bool:
        return self.storage.get(self.key) is not None
