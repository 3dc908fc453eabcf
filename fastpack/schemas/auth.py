"""
==============================================================================
Authentication Schemas Module
==============================================================================

Request and response schemas for the backend's auth endpoints.

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoginRequest(BaseModel):
    """Login credentials."""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip()


class RegisterRequest(LoginRequest):
    """Registration data."""
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class UserProfile(BaseModel):
    """Profile returned with the token. Every field is optional."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    permissions: Optional[List[str]] = None
    roles: Optional[List[str]] = None
    fp_user: Optional[int] = None
    date: Optional[str] = None
    seller: Optional[int] = None
    nickname: Optional[str] = None
    aka: Optional[str] = None
    expires_on: Optional[str] = None
    admin: Optional[bool] = None
    admin_fp: Optional[bool] = Field(default=None, alias="adminFP")
    packer: Optional[bool] = None

    @property
    def display_name(self) -> str:
        """Best available name for greetings."""
        return self.name or self.nickname or self.email or "operator"


class AuthResponse(BaseModel):
    """Body of a successful login or registration."""

    model_config = ConfigDict(extra="allow")

    user: Optional[UserProfile] = None
    token: Optional[str] = None
