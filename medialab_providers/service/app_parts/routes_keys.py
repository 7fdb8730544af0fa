"""API key management endpoints.

Responses only ever carry ``Credential.to_public_dict()``: id, provider,
label, preview and timestamps. Ciphertext and plaintext never leave.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...credentials import MIN_KEY_LENGTH
from .deps import ServiceContainer, get_container, get_user_id
from .schemas import ApiKeyBody, ApiKeyStatusBody, ApiKeyTestBody

router = APIRouter(prefix="/api/api-keys")


@router.get("")
def list_api_keys(
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    return {"ok": True, "keys": [c.to_public_dict() for c in services.credentials.list(user_id)]}


@router.post("", status_code=201)
def post_api_key(
    body: ApiKeyBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    store = services.credentials.replace if body.replace else services.credentials.store
    credential = store(user_id, body.provider, body.api_key, body.key_name)
    return {"ok": True, "key": credential.to_public_dict()}


@router.post("/test")
async def post_test_api_key(
    body: ApiKeyTestBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    valid = await services.credentials.test(body.provider, body.api_key, live=body.live)
    message = "API key looks valid" if valid else f"API key must be at least {MIN_KEY_LENGTH} characters"
    if body.live and not valid:
        message = "API key was rejected by the provider"
    return {"ok": True, "valid": valid, "message": message}


@router.patch("/{key_id}")
def patch_api_key(
    key_id: str,
    body: ApiKeyStatusBody,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    credential = services.credentials.set_status(key_id, user_id, body.is_active)
    return {"ok": True, "key": credential.to_public_dict()}


@router.delete("/{key_id}")
def delete_api_key(
    key_id: str,
    user_id: str = Depends(get_user_id),
    services: ServiceContainer = Depends(get_container),
) -> Dict[str, Any]:
    services.credentials.delete(key_id, user_id)
    return {"ok": True, "deleted": key_id}
