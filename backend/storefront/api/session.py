"""
Session API Endpoints
Current identity, login, signup and logout
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storefront.core.errors import APIError, StorefrontError
from storefront.domain.identity import IdentityKind
from storefront.services.storefront import Storefront, get_storefront

router = APIRouter()


# Request models
class LoginRequest(BaseModel):
    email: str
    password: str
    totp: Optional[str] = None  # Only for admins with 2FA


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str
    phone_number: str
    user_type: IdentityKind = IdentityKind.CUSTOMER


def to_http_exception(e: StorefrontError) -> HTTPException:
    """Map a storefront error onto the upstream status (502 when unknown)"""
    status_code = e.status_code if isinstance(e, APIError) and e.status_code else 502
    return HTTPException(status_code=status_code, detail=str(e))


def session_state(storefront: Storefront) -> dict:
    session = storefront.session
    user = session.current_user
    return {
        "is_authenticated": session.is_authenticated,
        "is_loading": session.is_loading,
        "scope": session.current_scope.value if session.current_scope else None,
        "user": user.model_dump(mode="json") if user else None,
        "error": session.error,
    }


@router.get("/")
async def get_session(storefront: Storefront = Depends(get_storefront)):
    """Resolved identity (None when browsing as a guest)"""
    return {"status": "success", "data": session_state(storefront)}


@router.post("/login")
async def login(body: LoginRequest, storefront: Storefront = Depends(get_storefront)):
    """
    Log in and merge the guest cart into the server cart

    Returns the session state plus the merge outcome
    """
    try:
        result = await storefront.login(body.email, body.password, body.totp)
    except StorefrontError as e:
        raise to_http_exception(e)

    merge = storefront.last_merge
    return {
        "status": "success",
        "requires_otp": result.requires_otp,
        "data": session_state(storefront),
        "merge": {
            "attempted": merge.attempted,
            "merged": merge.merged,
            "failed": [line.variation_id for line in merge.failed],
        } if merge else None,
    }


@router.post("/signup")
async def signup(body: SignupRequest, storefront: Storefront = Depends(get_storefront)):
    """Register a user; admins receive TOTP enrolment data"""
    try:
        result = await storefront.session.signup(
            body.name, body.email, body.password, body.phone_number, body.user_type
        )
    except StorefrontError as e:
        raise to_http_exception(e)

    return {
        "status": "success",
        "data": {
            "user": result.user.model_dump(mode="json"),
            "requires_otp": result.requires_otp,
            "qr_code_url": result.qr_code_url,
            "manual_key": result.manual_key,
        },
    }


@router.post("/logout")
async def logout(storefront: Storefront = Depends(get_storefront)):
    """Client-side logout: purge the current scope and reset the cart"""
    user = storefront.logout()
    return {
        "status": "success",
        "logged_out": user.id if user else None,
        "data": session_state(storefront),
    }
