"""Pydantic payloads for saved shipping addresses."""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import Field, StringConstraints, field_validator

from megamart.models.base import ApiModel, NonEmpty, Trimmed

AddressType = Literal["home", "work", "other"]
Instructions = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
Label = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]


class Coordinates(ApiModel):
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class AddressCreate(ApiModel):
    type: AddressType = "home"
    is_default: bool = False
    first_name: NonEmpty
    last_name: NonEmpty
    company: Optional[Trimmed] = None
    street: NonEmpty
    apartment: Optional[Trimmed] = None
    city: NonEmpty
    state: NonEmpty
    zip_code: NonEmpty
    # Filled from the configured store country when omitted
    country: Optional[NonEmpty] = None
    phone: Optional[Trimmed] = None
    email: Optional[Trimmed] = None
    instructions: Optional[Instructions] = None
    coordinates: Optional[Coordinates] = None
    is_verified: bool = False
    label: Optional[Label] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class AddressUpdate(ApiModel):
    type: Optional[AddressType] = None
    is_default: Optional[bool] = None
    first_name: Optional[NonEmpty] = None
    last_name: Optional[NonEmpty] = None
    company: Optional[Trimmed] = None
    street: Optional[NonEmpty] = None
    apartment: Optional[Trimmed] = None
    city: Optional[NonEmpty] = None
    state: Optional[NonEmpty] = None
    zip_code: Optional[NonEmpty] = None
    country: Optional[NonEmpty] = None
    phone: Optional[Trimmed] = None
    email: Optional[Trimmed] = None
    instructions: Optional[Instructions] = None
    coordinates: Optional[Coordinates] = None
    is_verified: Optional[bool] = None
    label: Optional[Label] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


__all__ = ["AddressType", "Coordinates", "AddressCreate", "AddressUpdate"]
