"""
Session Service - Resolves the single active identity

On startup two independent credential scopes are inspected and at most
one identity becomes current. Admin is checked strictly before Customer,
so an admin session is never overridden by a customer login in the same
profile. Inconsistent records are purged; nothing is reported as an
error and no network call is made.
"""
import logging
from typing import Optional, Tuple

from storefront.connectors.auth_connector import AuthAPIConnector, LoginResult, SignupResult
from storefront.core.errors import StorefrontError
from storefront.domain.identity import AuthUser, IdentityKind
from storefront.services.credentials_service import CredentialsService

logger = logging.getLogger(__name__)


class SessionService:
    """
    Session bootstrap and login/logout flows

    Handles:
    - Dual-identity resolution with self-healing purges
    - Storing credentials in the scope matching the logged-in user type
    - Clearing the current scope on logout
    """

    def __init__(self, credentials: CredentialsService, auth_connector: Optional[AuthAPIConnector] = None):
        self.credentials = credentials
        self.auth_connector = auth_connector
        self.current_user: Optional[AuthUser] = None
        self.current_scope: Optional[IdentityKind] = None
        self.is_loading = False
        self.error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def current_token(self) -> Optional[str]:
        """Bearer token from the scope of the resolved identity"""
        if self.current_scope is None:
            return None
        return self.credentials.get_token(self.current_scope)

    def bootstrap(self) -> Optional[AuthUser]:
        """
        Resolve the active identity from storage

        Runs once per application load. Every branch ends with loading
        complete.

        Returns:
            The resolved identity, or None
        """
        self.is_loading = True
        try:
            self.current_user, self.current_scope = self._resolve()
        finally:
            self.is_loading = False

        if self.current_user:
            logger.info(f"Session resolved to {self.current_scope.value.lower()} user {self.current_user.id}")
        else:
            logger.info("No active session")
        return self.current_user

    def _resolve(self) -> Tuple[Optional[AuthUser], Optional[IdentityKind]]:
        creds = self.credentials

        # 1. Admin scope
        admin_token = creds.get_token(IdentityKind.ADMIN)
        if admin_token:
            admin = creds.get_identity(IdentityKind.ADMIN)
            if not creds.is_token_expired(admin_token) and admin is not None:
                return admin, IdentityKind.ADMIN

            logger.warning("Admin credentials expired or incomplete, purging admin scope")
            creds.purge(IdentityKind.ADMIN)

        # 2. Customer scope
        customer_token = creds.get_token(IdentityKind.CUSTOMER)
        customer = creds.get_identity(IdentityKind.CUSTOMER)
        if customer_token and customer is not None:
            return customer, IdentityKind.CUSTOMER

        if customer_token or creds.has_identity(IdentityKind.CUSTOMER):
            # Orphaned snapshot, token without snapshot, or unreadable snapshot
            logger.warning("Incomplete customer credentials, purging customer scope")
            creds.purge(IdentityKind.CUSTOMER)

        return None, None

    async def login(self, email: str, password: str, totp: Optional[str] = None) -> LoginResult:
        """
        Log in and make the returned user the current identity

        Credentials land in the scope matching the user type. Errors
        propagate after being recorded in ``error``.
        """
        if self.auth_connector is None:
            raise RuntimeError("SessionService has no auth connector")

        self.error = None
        self.is_loading = True
        try:
            result = await self.auth_connector.login(email, password, totp)
        except StorefrontError as e:
            self.error = str(e) or "Login failed"
            raise
        finally:
            self.is_loading = False

        kind = result.user.user_type
        self.credentials.store(kind, result.token, result.user)
        self.current_scope = kind
        self.current_user = result.user
        logger.info(f"{kind.value.capitalize()} login successful for user {result.user.id}")
        return result

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        phone_number: str,
        user_type: IdentityKind = IdentityKind.CUSTOMER,
    ) -> SignupResult:
        if self.auth_connector is None:
            raise RuntimeError("SessionService has no auth connector")

        self.error = None
        self.is_loading = True
        try:
            return await self.auth_connector.signup(name, email, password, phone_number, user_type)
        except StorefrontError as e:
            self.error = str(e) or "Signup failed"
            raise
        finally:
            self.is_loading = False

    def logout(self) -> Optional[AuthUser]:
        """
        Clear the current identity and purge its scope only

        Returns:
            The identity that was logged out, if any
        """
        user = self.current_user
        if user is None:
            return None

        self.credentials.purge(self.current_scope)
        self.current_user = None
        self.current_scope = None
        logger.info(f"Logged out user {user.id}")
        return user
