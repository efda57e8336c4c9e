"""
Identity Domain Models

An identity is the resolved, currently-active user context. Admin and
Customer identities are mutually exclusive at any instant.
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IdentityKind(str, Enum):
    """Identity kind, doubling as the storage scope discriminant"""

    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class AuthUser(BaseModel):
    """
    Identity snapshot as returned by the auth endpoints and kept in storage

    Fields:
        id: Backend user ID (stringified)
        name: Display name
        email: Login email
        phone_number: Contact phone
        user_type: ADMIN or CUSTOMER
    """

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email")
    phone_number: str = Field("", alias="phoneNumber", description="Phone number")
    user_type: IdentityKind = Field(..., alias="userType", description="ADMIN or CUSTOMER")

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    def to_storage(self) -> str:
        """Serialize for a storage scope (camelCase, like the wire format)"""
        return self.model_dump_json(by_alias=True)
