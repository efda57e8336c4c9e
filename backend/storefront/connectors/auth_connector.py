"""
Auth API Connector
Login and signup against the commerce backend

ENDPOINTS:
- POST /users-auth/login   - {email, password, totp?} -> {user, token}
- POST /users-auth/signup  - {name, email, password, phoneNumber, userType} -> {user, twofa?}

Logout has no endpoint: it only clears client-side credentials.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from pydantic import ValidationError

from storefront.connectors.storefront_api import StorefrontAPIConnector
from storefront.core.errors import InvalidResponseError
from storefront.domain.identity import AuthUser, IdentityKind

logger = logging.getLogger(__name__)

LOGIN_PATH = "/users-auth/login"
SIGNUP_PATH = "/users-auth/signup"


@dataclass
class LoginResult:
    user: AuthUser
    token: str
    requires_otp: bool = False


@dataclass
class SignupResult:
    user: AuthUser
    requires_otp: bool = False
    qr_code_url: Optional[str] = None
    manual_key: Optional[str] = None


def _parse_user(data: Dict, endpoint: str) -> AuthUser:
    try:
        return AuthUser.model_validate(data["user"])
    except (KeyError, TypeError, ValidationError) as e:
        logger.error(f"Unexpected user payload from {endpoint}: {e}")
        raise InvalidResponseError(endpoint) from e


def _requires_otp(user_data: Dict) -> bool:
    return user_data.get("userType") == IdentityKind.ADMIN.value and bool(user_data.get("twofaEnabled"))


class AuthAPIConnector(StorefrontAPIConnector):
    """Connector for the backend auth endpoints (no bearer token attached)"""

    async def login(self, email: str, password: str, totp: Optional[str] = None) -> LoginResult:
        """
        Log in with email and password (plus TOTP code for admins with 2FA)

        Returns:
            LoginResult with the user snapshot and bearer token

        Raises:
            APIError: Backend rejected the credentials
            InvalidResponseError: Success envelope without user/token
        """
        payload = {"email": email, "password": password}
        if totp:
            payload["totp"] = totp

        body = await self._make_request(
            "POST", LOGIN_PATH, payload, authenticated=False, default_error="Login failed"
        )

        data = body.get("data")
        if not isinstance(data, dict) or not data.get("token"):
            raise InvalidResponseError(LOGIN_PATH)

        user = _parse_user(data, LOGIN_PATH)
        return LoginResult(
            user=user,
            token=data["token"],
            requires_otp=_requires_otp(data["user"]),
        )

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        phone_number: str,
        user_type: IdentityKind = IdentityKind.CUSTOMER,
    ) -> SignupResult:
        """
        Register a new user. Does not log in.

        Admin signups return TOTP enrolment data (QR code and manual key).
        """
        payload = {
            "name": name,
            "email": email,
            "password": password,
            "phoneNumber": phone_number,
            "userType": user_type.value,
        }

        body = await self._make_request(
            "POST", SIGNUP_PATH, payload, authenticated=False, default_error="Signup failed"
        )

        data = body.get("data")
        if not isinstance(data, dict):
            raise InvalidResponseError(SIGNUP_PATH)

        user = _parse_user(data, SIGNUP_PATH)
        twofa = data.get("twofa") or {}
        return SignupResult(
            user=user,
            requires_otp=_requires_otp(data["user"]),
            qr_code_url=twofa.get("qrDataUrl"),
            manual_key=twofa.get("manualKey"),
        )
