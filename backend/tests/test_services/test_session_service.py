"""
Unit tests for SessionService

Bootstrap resolves at most one identity, Admin first, and purges
inconsistent credential records without reporting errors.
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.connectors.auth_connector import AuthAPIConnector, LoginResult
from storefront.core.errors import APIError
from storefront.domain.identity import IdentityKind
from storefront.services.credentials_service import IDENTITY_KEY, TOKEN_KEY
from storefront.services.session_service import SessionService


@pytest.fixture
def auth_connector():
    return MagicMock(spec=AuthAPIConnector)


@pytest.fixture
def session(credentials, auth_connector):
    return SessionService(credentials, auth_connector)


class TestBootstrap:

    def test_no_credentials_resolves_none(self, session):
        assert session.bootstrap() is None
        assert session.is_authenticated is False
        assert session.is_loading is False
        assert session.current_token() is None

    def test_admin_wins_when_both_scopes_are_valid(self, session, credentials, admin_user,
                                                   customer_user, token_factory):
        admin_token = token_factory()
        credentials.store(IdentityKind.ADMIN, admin_token, admin_user)
        credentials.store(IdentityKind.CUSTOMER, token_factory(), customer_user)

        resolved = session.bootstrap()

        assert resolved == admin_user
        assert session.current_scope == IdentityKind.ADMIN
        assert session.current_token() == admin_token
        # Customer scope is left alone
        assert credentials.get_identity(IdentityKind.CUSTOMER) == customer_user

    def test_admin_token_without_snapshot_is_purged(self, session, credentials, session_storage,
                                                    token_factory):
        session_storage.set(TOKEN_KEY, token_factory())

        assert session.bootstrap() is None
        assert session_storage.get(TOKEN_KEY) is None
        assert session_storage.get(IDENTITY_KEY) is None

    def test_expired_admin_falls_back_to_customer(self, session, credentials, admin_user,
                                                  customer_user, token_factory):
        credentials.store(IdentityKind.ADMIN, token_factory(timedelta(minutes=-1)), admin_user)
        credentials.store(IdentityKind.CUSTOMER, "opaque-customer-token", customer_user)

        resolved = session.bootstrap()

        assert resolved == customer_user
        assert session.current_scope == IdentityKind.CUSTOMER
        assert credentials.get_token(IdentityKind.ADMIN) is None
        assert credentials.has_identity(IdentityKind.ADMIN) is False

    def test_malformed_admin_token_is_purged(self, session, credentials, admin_user):
        credentials.store(IdentityKind.ADMIN, "garbage", admin_user)

        assert session.bootstrap() is None
        assert credentials.has_identity(IdentityKind.ADMIN) is False

    def test_orphaned_customer_snapshot_is_removed(self, session, credentials, persistent_storage,
                                                   customer_user):
        credentials.set_identity(IdentityKind.CUSTOMER, customer_user)

        assert session.bootstrap() is None
        assert persistent_storage.get(IDENTITY_KEY) is None

    def test_customer_token_without_snapshot_is_purged(self, session, persistent_storage):
        persistent_storage.set(TOKEN_KEY, "opaque")

        assert session.bootstrap() is None
        assert persistent_storage.get(TOKEN_KEY) is None

    def test_bootstrap_makes_no_network_call(self, session, auth_connector, credentials,
                                             customer_user, token_factory):
        credentials.store(IdentityKind.CUSTOMER, token_factory(), customer_user)

        session.bootstrap()

        assert auth_connector.mock_calls == []


class TestLoginLogout:

    def test_customer_login_lands_in_persistent_scope(self, session, auth_connector, customer_user,
                                                      persistent_storage, session_storage):
        auth_connector.login = AsyncMock(return_value=LoginResult(user=customer_user, token="ctok"))

        result = asyncio.run(session.login("customer@example.com", "pw"))

        assert result.user == customer_user
        assert session.current_user == customer_user
        assert session.current_token() == "ctok"
        assert persistent_storage.get(TOKEN_KEY) == "ctok"
        assert session_storage.get(TOKEN_KEY) is None

    def test_admin_login_lands_in_session_scope(self, session, auth_connector, admin_user,
                                                session_storage):
        auth_connector.login = AsyncMock(
            return_value=LoginResult(user=admin_user, token="atok", requires_otp=True)
        )

        result = asyncio.run(session.login("admin@example.com", "pw", totp="123456"))

        assert result.requires_otp is True
        auth_connector.login.assert_awaited_once_with("admin@example.com", "pw", "123456")
        assert session_storage.get(TOKEN_KEY) == "atok"
        assert session.current_scope == IdentityKind.ADMIN

    def test_failed_login_records_error_and_raises(self, session, auth_connector):
        auth_connector.login = AsyncMock(side_effect=APIError("Invalid credentials", status_code=401))

        with pytest.raises(APIError):
            asyncio.run(session.login("x@example.com", "bad"))

        assert session.error == "Invalid credentials"
        assert session.is_loading is False
        assert session.is_authenticated is False

    def test_logout_purges_only_current_scope(self, session, credentials, admin_user,
                                              customer_user, token_factory):
        credentials.store(IdentityKind.ADMIN, token_factory(), admin_user)
        credentials.store(IdentityKind.CUSTOMER, token_factory(), customer_user)
        session.bootstrap()

        logged_out = session.logout()

        assert logged_out == admin_user
        assert session.is_authenticated is False
        assert credentials.get_token(IdentityKind.ADMIN) is None
        assert credentials.get_identity(IdentityKind.CUSTOMER) == customer_user

    def test_logout_without_identity_is_noop(self, session):
        assert session.logout() is None
