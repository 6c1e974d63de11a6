"""Discovery router -- Terraform remote service discovery."""

from __future__ import annotations

from fastapi import APIRouter

from web.backend.app.models.api import DiscoveryResponse

router = APIRouter(tags=["discovery"])


@router.get(
    "/.well-known/terraform.json",
    response_model=DiscoveryResponse,
    summary="Service discovery document",
)
async def wellknown():
    """Advertise where the providers.v1 protocol is served."""
    return DiscoveryResponse()
