"""Providers router -- the provider registry protocol endpoints.

Terraform clients call the two GET endpoints while running ``terraform init``;
publishers call the POST endpoint once per built platform archive.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from provider_registry.registry.service import RegistryService

from web.backend.app.models.api import (
    ErrorResponse,
    ProviderPlatformRequest,
    ProviderPlatformResponse,
    VersionEntry,
    VersionsResponse,
    platform_to_response,
)

router = APIRouter(prefix="/v1/providers", tags=["providers"])


def get_service(request: Request) -> RegistryService:
    """Return the RegistryService built at application startup."""
    return request.app.state.registry


@router.get(
    "/{namespace}/{name}/versions",
    response_model=VersionsResponse,
    responses={404: {"model": ErrorResponse}},
    summary="List available versions of a provider",
)
def list_versions(
    namespace: str,
    name: str,
    service: RegistryService = Depends(get_service),
):
    """List every version registered for any platform of the provider."""
    versions = service.list_versions(namespace, name)
    return VersionsResponse(versions=[VersionEntry(**v) for v in versions])


@router.get(
    "/{namespace}/{name}/{version}/download/{os}/{archi}",
    response_model=ProviderPlatformResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Find a provider package for a platform",
)
def download(
    namespace: str,
    name: str,
    version: str,
    os: str,
    archi: str,
    service: RegistryService = Depends(get_service),
):
    """Return download URLs, checksums and signing keys for one build."""
    platform = service.resolve(namespace, name, version, os, archi)
    return platform_to_response(platform)


@router.post(
    "/{namespace}/{name}/{version}",
    response_model=str,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": ProviderPlatformRequest.model_json_schema()}
            },
        }
    },
    summary="Register a provider package",
)
async def register(
    namespace: str,
    name: str,
    version: str,
    request: Request,
    service: RegistryService = Depends(get_service),
):
    """Register one platform build of a provider version.

    The JSON body carries the build metadata (``os``, ``arch``, ``filename``,
    ``download_url``, ``shasum``, ``shasums_url``, ``shasums_signature_url``,
    ``protocols``). Signing keys in the body are replaced with the server's
    configured public key.
    """
    # decoded by the service, after the signing-key checks
    payload = await request.body()
    # gpg export blocks; keep it off the event loop
    await run_in_threadpool(service.register, namespace, name, version, payload)
    return "ok"
