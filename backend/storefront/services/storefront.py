"""
Storefront - wires storage scopes, session and cart together

One Storefront instance stands for one browsing profile: a session-lifetime
scope for admin credentials, a persistent scope for customer credentials and
the guest cart, and the services built on top of them.
"""
import logging
from typing import Optional

import httpx

from storefront.connectors.auth_connector import AuthAPIConnector, LoginResult
from storefront.connectors.cart_connector import CartAPIConnector
from storefront.core.config import Settings, settings as default_settings
from storefront.core.storage import FileStorage, KeyValueStorage, MemoryStorage
from storefront.domain.identity import AuthUser
from storefront.repositories.local_cart_repository import LocalCartRepository
from storefront.services.cart_service import CartService, MergeReport
from storefront.services.credentials_service import CredentialsService
from storefront.services.session_service import SessionService

logger = logging.getLogger(__name__)


class Storefront:
    """Facade driving the session bootstrap and the cart transitions"""

    def __init__(
        self,
        config: Optional[Settings] = None,
        session_storage: Optional[KeyValueStorage] = None,
        persistent_storage: Optional[KeyValueStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize storefront

        Args:
            config: Settings (defaults to the module-level settings)
            session_storage: Session-lifetime scope (defaults to MemoryStorage)
            persistent_storage: Persistent scope (defaults to FileStorage under STOREFRONT_DATA_DIR)
            transport: Optional httpx transport shared by the connectors
        """
        self.config = config or default_settings
        self.session_storage = session_storage if session_storage is not None else MemoryStorage()
        self.persistent_storage = (
            persistent_storage
            if persistent_storage is not None
            else FileStorage(self.config.get_persistent_storage_path())
        )

        self.credentials = CredentialsService(self.session_storage, self.persistent_storage)
        self.session = SessionService(
            self.credentials,
            AuthAPIConnector(self.config.API_BASE_URL, transport=transport),
        )
        self.cart = CartService(
            CartAPIConnector(self.config.API_BASE_URL, self.session.current_token, transport=transport),
            LocalCartRepository(self.persistent_storage, self.config.CART_STORAGE_KEY),
        )
        self.started = False
        self.last_merge: Optional[MergeReport] = None

    async def start(self) -> Optional[AuthUser]:
        """
        Resolve the session; load the guest cart or run the authenticated transition

        Idempotent: later calls return the current identity.
        """
        if self.started:
            return self.session.current_user

        self.started = True
        user = self.session.bootstrap()
        # Guest lines stored before this identity resolved are merged as well
        self.cart.load_local_cart()
        if user is not None:
            await self._on_authenticated()
        return user

    async def _on_authenticated(self) -> None:
        report = await self.cart.on_authenticated()
        if report is not None:
            self.last_merge = report

    async def login(self, email: str, password: str, totp: Optional[str] = None) -> LoginResult:
        """Log in; the server cart of the previous identity, if any, is dropped first"""
        was_authenticated = self.session.is_authenticated
        result = await self.session.login(email, password, totp)
        if was_authenticated:
            self.cart.reset()
        await self._on_authenticated()
        return result

    def logout(self) -> Optional[AuthUser]:
        user = self.session.logout()
        self.cart.reset()
        return user


# Singleton instance for the HTTP layer
_storefront: Optional[Storefront] = None


async def get_storefront() -> Storefront:
    """Get the process-wide storefront, started on first use"""
    global _storefront
    if _storefront is None:
        _storefront = Storefront()
    await _storefront.start()
    return _storefront
