"""Pydantic schemas for authentication, defining the structure for request and response data."""

from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional
import datetime


class UserResponse(BaseModel):
    public_id: str = Field(
        ..., description="Public unique identifier for the user (KSUID)"
    )
    username: str = Field(..., description="Username")
    email: EmailStr = Field(..., description="User email address")
    role: str = Field(..., description="User role (e.g., member, admin)")
    is_active: bool = Field(..., description="Whether the user account is active")
    organization_id: Optional[str] = Field(
        None, description="Public id of the organization the user reports on"
    )
    created_at: datetime.datetime = Field(
        ..., description="Timestamp of when the user was created"
    )

    model_config = ConfigDict(
        from_attributes=True,
        protected_namespaces=(),
    )


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    sub: Optional[str] = None
    org: Optional[str] = Field(None, description="Public id of the organization the token was issued for")
