"""
Cart API Connector
Remote cart of the authenticated identity

ENDPOINTS:
- GET    /cart                  - Current cart
- POST   /cart/items            - Add {variationId, quantity}
- PUT    /cart/items/{itemId}   - Set {quantity}
- DELETE /cart/items/{itemId}   - Remove line
- DELETE /cart                  - Empty cart

Every endpoint answers with the standard envelope wrapping the updated cart.
"""
import logging
from typing import Dict

from pydantic import ValidationError

from storefront.connectors.storefront_api import StorefrontAPIConnector
from storefront.core.errors import InvalidResponseError
from storefront.domain.cart import CartResponse

logger = logging.getLogger(__name__)


def _parse_cart_response(body: Dict, endpoint: str) -> CartResponse:
    try:
        return CartResponse.model_validate(body)
    except ValidationError as e:
        logger.error(f"Unexpected cart payload from {endpoint}: {e.error_count()} errors")
        raise InvalidResponseError(endpoint) from e


class CartAPIConnector(StorefrontAPIConnector):
    """Connector for the remote Cart API"""

    async def get_cart(self) -> CartResponse:
        body = await self._make_request("GET", "/cart")
        return _parse_cart_response(body, "/cart")

    async def add_item(self, variation_id: int, quantity: int) -> CartResponse:
        """
        Add a variation to the remote cart

        Args:
            variation_id: Product variation ID
            quantity: Units to add (the server sums with an existing line)
        """
        logger.debug(f"Adding variation {variation_id} x{quantity} to remote cart")
        body = await self._make_request(
            "POST", "/cart/items", {"variationId": variation_id, "quantity": quantity}
        )
        return _parse_cart_response(body, "/cart/items")

    async def update_item_quantity(self, item_id: int, quantity: int) -> CartResponse:
        endpoint = f"/cart/items/{item_id}"
        body = await self._make_request("PUT", endpoint, {"quantity": quantity})
        return _parse_cart_response(body, endpoint)

    async def remove_item(self, item_id: int) -> CartResponse:
        endpoint = f"/cart/items/{item_id}"
        body = await self._make_request("DELETE", endpoint)
        return _parse_cart_response(body, endpoint)

    async def clear_cart(self) -> CartResponse:
        body = await self._make_request("DELETE", "/cart")
        return _parse_cart_response(body, "/cart")
