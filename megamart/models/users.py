"""Pydantic payloads for user accounts and login."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import EmailStr, Field, field_validator

from megamart.models.base import ApiModel, NonEmpty, Trimmed

Role = Literal["user", "admin"]


class PostalAddress(ApiModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class Profile(ApiModel):
    avatar: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[PostalAddress] = None


class Preferences(ApiModel):
    newsletter: bool = True
    notifications: bool = True


class UserCreate(ApiModel):
    email: EmailStr
    username: Optional[NonEmpty] = None
    password: str = Field(min_length=1)
    name: NonEmpty
    is_active: bool = True
    profile: Profile = Field(default_factory=Profile)
    preferences: Preferences = Field(default_factory=Preferences)

    @field_validator("email", mode="before")
    @classmethod
    def normalise_email(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


class UserUpdate(ApiModel):
    """Profile changes; a `password` key in the body is ignored.

    Changing `role` or `is_active` requires an admin caller.
    """

    email: Optional[EmailStr] = None
    username: Optional[NonEmpty] = None
    name: Optional[NonEmpty] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    profile: Optional[Profile] = None
    preferences: Optional[Preferences] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalise_email(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v


class LoginRequest(ApiModel):
    identifier: Trimmed
    password: str


__all__ = ["Role", "PostalAddress", "Profile", "Preferences", "UserCreate", "UserUpdate", "LoginRequest"]
