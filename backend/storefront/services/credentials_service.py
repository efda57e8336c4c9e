"""
Credentials Service - Manages bearer tokens and identity snapshots per scope

Each identity kind owns a disjoint storage scope:
- ADMIN: session-lifetime storage (gone when the process exits)
- CUSTOMER: persistent storage (survives restarts)

A credential record is the (token, identity snapshot) pair of one scope.
Both halves are written and purged together.
"""
import logging
from typing import Dict, Optional

from pydantic import ValidationError

from storefront.core.auth import is_token_live
from storefront.core.storage import KeyValueStorage
from storefront.domain.identity import AuthUser, IdentityKind

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
IDENTITY_KEY = "auth_user"


class CredentialsService:
    """Service for reading and writing credential records in their scopes"""

    def __init__(self, admin_storage: KeyValueStorage, customer_storage: KeyValueStorage):
        """
        Initialize credentials service

        Args:
            admin_storage: Session-lifetime scope for admin credentials
            customer_storage: Persistent scope for customer credentials
        """
        self._scopes: Dict[IdentityKind, KeyValueStorage] = {
            IdentityKind.ADMIN: admin_storage,
            IdentityKind.CUSTOMER: customer_storage,
        }

    def scope(self, kind: IdentityKind) -> KeyValueStorage:
        return self._scopes[kind]

    def get_token(self, kind: IdentityKind) -> Optional[str]:
        return self.scope(kind).get(TOKEN_KEY) or None

    def set_token(self, kind: IdentityKind, token: str) -> None:
        self.scope(kind).set(TOKEN_KEY, token)

    def get_identity(self, kind: IdentityKind) -> Optional[AuthUser]:
        """
        Read the identity snapshot of a scope

        Returns:
            The snapshot, or None if it is absent or unparseable
        """
        raw = self.scope(kind).get(IDENTITY_KEY)
        if not raw:
            return None

        try:
            return AuthUser.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Invalid {kind.value.lower()} identity snapshot in storage: {e.error_count()} errors")
            return None

    def has_identity(self, kind: IdentityKind) -> bool:
        """True if anything sits under the snapshot key, valid or not"""
        return self.scope(kind).get(IDENTITY_KEY) is not None

    def set_identity(self, kind: IdentityKind, user: AuthUser) -> None:
        self.scope(kind).set(IDENTITY_KEY, user.to_storage())

    def store(self, kind: IdentityKind, token: str, user: AuthUser) -> None:
        """Write a complete credential record into the scope of ``kind``"""
        self.set_token(kind, token)
        self.set_identity(kind, user)
        logger.info(f"Stored {kind.value.lower()} credentials for user {user.id}")

    def purge(self, kind: IdentityKind) -> None:
        """Remove both halves of the credential record of ``kind``"""
        self.scope(kind).remove_many((TOKEN_KEY, IDENTITY_KEY))
        logger.info(f"Purged {kind.value.lower()} credentials")

    def is_token_expired(self, token: Optional[str]) -> bool:
        """True if the token is missing, malformed or past its ``exp`` claim"""
        return not is_token_live(token)
