"""Pydantic models for API request/response serialization.

These models mirror the provider_registry dataclasses and describe the wire
format of the provider registry protocol.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from provider_registry.registry.models import ProviderPlatform
from provider_registry.registry.schema import ProviderPlatformRequest


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class DiscoveryResponse(BaseModel):
    """Service discovery document served at /.well-known/terraform.json."""

    providers_v1: str = Field("/v1/providers/", alias="providers.v1")

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Provider models
# ---------------------------------------------------------------------------


class VersionEntry(BaseModel):
    version: str


class VersionsResponse(BaseModel):
    """All versions available for a provider."""

    versions: list[VersionEntry] = Field(default_factory=list)


class GPGPublicKeyResponse(BaseModel):
    """Mirrors provider_registry.registry.models.GPGPublicKey."""

    key_id: str
    ascii_armor: str
    trust_signature: str = ""
    source: str = ""
    source_url: str = ""


class SigningKeysResponse(BaseModel):
    """Mirrors provider_registry.registry.models.SigningKeys."""

    gpg_public_keys: list[GPGPublicKeyResponse] = Field(default_factory=list)


class ProviderPlatformResponse(BaseModel):
    """Mirrors provider_registry.registry.models.ProviderPlatform."""

    protocols: list[str] = Field(default_factory=list)
    os: str
    arch: str
    filename: str = ""
    download_url: str = ""
    shasums_url: str = ""
    shasums_signature_url: str = ""
    shasum: str = ""
    signing_keys: SigningKeysResponse = Field(default_factory=SigningKeysResponse)


class ErrorResponse(BaseModel):
    detail: str
    error_code: str


def platform_to_response(platform: ProviderPlatform) -> ProviderPlatformResponse:
    """Convert a ProviderPlatform dataclass to a Pydantic response model."""
    return ProviderPlatformResponse(
        protocols=platform.protocols,
        os=platform.os,
        arch=platform.arch,
        filename=platform.filename,
        download_url=platform.download_url,
        shasums_url=platform.shasums_url,
        shasums_signature_url=platform.shasums_signature_url,
        shasum=platform.shasum,
        signing_keys=SigningKeysResponse(
            gpg_public_keys=[
                GPGPublicKeyResponse(
                    key_id=k.key_id,
                    ascii_armor=k.ascii_armor,
                    trust_signature=k.trust_signature,
                    source=k.source,
                    source_url=k.source_url,
                )
                for k in platform.signing_keys.gpg_public_keys
            ]
        ),
    )
