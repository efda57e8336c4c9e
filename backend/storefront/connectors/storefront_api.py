"""
Commerce Backend REST Connector
Shared request plumbing for every endpoint of the commerce backend

RESPONSE ENVELOPE:
    {"success": bool, "data": ..., "message": {"en": "...", "ar": "..."}}

ERRORS:
- Non-2xx: message.en, else a plain message string, else "HTTP error! status: N"
- 2xx with success=false: same extraction, raised as well
- Network failure: wrapped, no status code

No timeouts are set beyond the transport defaults and nothing is retried.
"""
import logging
from typing import Any, Callable, Dict, Optional

import httpx

from storefront.core.config import settings
from storefront.core.errors import APIError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def extract_error_message(body: Any, default: str) -> str:
    """Pick the human-readable message out of an error body, preferring English"""
    if not isinstance(body, dict):
        return default

    message = body.get("message")
    if isinstance(message, dict):
        return message.get("en") or default
    if isinstance(message, str) and message:
        return message
    return default


class StorefrontAPIConnector:
    """
    Base connector for the commerce backend REST API

    Handles:
    - Bearer token attachment (token of the currently resolved identity)
    - JSON envelope parsing
    - Error extraction
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize connector

        Args:
            base_url: Backend base URL (defaults to API_BASE_URL)
            token_provider: Callable returning the bearer token, or None when unauthenticated
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token_provider = token_provider
        self._transport = transport

    @property
    def _headers(self) -> Dict[str, str]:
        """Get headers with authentication token"""
        headers = {"Content-Type": "application/json"}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        if self._transport is not None:
            return httpx.AsyncClient(transport=self._transport)
        return httpx.AsyncClient()

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Dict] = None,
        authenticated: bool = True,
        default_error: Optional[str] = None,
    ) -> Dict:
        """
        Make an API request and unwrap the envelope

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: Path below the base URL (e.g. '/cart/items')
            payload: JSON body
            authenticated: Attach the bearer token when one is available
            default_error: Message used when an error body carries none

        Returns:
            Parsed response body (envelope with success=true)

        Raises:
            APIError: on network failure, non-2xx status or success=false
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._headers if authenticated else {"Content-Type": "application/json"}

        logger.debug(f"API request: {method} {url}")

        async with self._client() as client:
            try:
                response = await client.request(method=method, url=url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"API request error: {method} {url} - {e}")
                raise APIError(default_error or f"Request failed: {e}") from e

        logger.debug(f"API response: {response.status_code} {method} {url}")

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = extract_error_message(
                body, default_error or f"HTTP error! status: {response.status_code}"
            )
            logger.error(f"API error: {response.status_code} {method} {url} - {message}")
            raise APIError(message, status_code=response.status_code, payload=body)

        if not isinstance(body, dict):
            raise APIError(
                default_error or "Invalid JSON response", status_code=response.status_code
            )

        if body.get("success") is False:
            message = extract_error_message(body, default_error or "Request failed")
            logger.error(f"API rejected {method} {url}: {message}")
            raise APIError(message, status_code=response.status_code, payload=body)

        return body
