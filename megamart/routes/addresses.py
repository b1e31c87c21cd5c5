"""Saved address endpoints for the authenticated user.

A user's first address becomes the default automatically; any write that
makes an address the default demotes the others.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from megamart.config import get_config
from megamart.guards.auth import get_current_user
from megamart.guards.ids import require_object_id
from megamart.logic.problem_factory import not_found
from megamart.logic.repository_addresses import (
    create_address,
    delete_address,
    get_address,
    get_default_address,
    list_addresses,
    set_default_address,
    update_address,
)
from megamart.models.addresses import AddressCreate, AddressUpdate

router = APIRouter(prefix="/addresses", tags=["Addresses"])

_INVALID_ID = "Invalid address ID format"


@router.get("", summary="List the caller's addresses")
def get_addresses(user: Dict[str, Any] = Depends(get_current_user)) -> List[Dict[str, Any]]:
    return list_addresses(user["_id"])


@router.get("/default", summary="Get the caller's default address")
def get_default(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    address = get_default_address(user["_id"])
    if address is None:
        raise not_found("No default address found")
    return address


@router.get("/{address_id}", summary="Get one address")
def get_one_address(address_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    require_object_id(address_id, _INVALID_ID)
    address = get_address(user["_id"], address_id)
    if address is None:
        raise not_found("Address not found")
    return address


@router.post("", status_code=201, summary="Create an address")
def post_address(payload: AddressCreate, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return create_address(user["_id"], payload.columns(), get_config().store.default_country)


@router.put("/{address_id}", summary="Update an address")
def put_address(
    address_id: str,
    payload: AddressUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    require_object_id(address_id, _INVALID_ID)
    changes = payload.columns(
        partial=True,
        nullable=("company", "apartment", "phone", "email", "instructions", "coordinates", "label"),
    )
    address = update_address(user["_id"], address_id, changes)
    if address is None:
        raise not_found("Address not found")
    return address


@router.put("/{address_id}/default", summary="Make an address the default")
def put_default(address_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    require_object_id(address_id, _INVALID_ID)
    address = set_default_address(user["_id"], address_id)
    if address is None:
        raise not_found("Address not found")
    return address


@router.delete("/{address_id}", summary="Delete an address")
def remove_address(address_id: str, user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, str]:
    require_object_id(address_id, _INVALID_ID)
    if not delete_address(user["_id"], address_id):
        raise not_found("Address not found")
    return {"message": "Address deleted successfully"}


__all__ = ["router"]
