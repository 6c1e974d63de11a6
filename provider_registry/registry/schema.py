"""Pydantic schema for publisher-supplied registration metadata."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from provider_registry.registry.models import ProviderPlatform


class ProviderPlatformRequest(BaseModel):
    """Body of a registration request.

    ``null`` in an optional field means absent. ``signing_keys`` is accepted in
    any shape and discarded, since the server attaches its own key.
    """

    model_config = ConfigDict(extra="ignore")

    os: str = Field(min_length=1)
    arch: str = Field(min_length=1)
    protocols: Optional[list[str]] = None
    filename: Optional[str] = None
    download_url: Optional[str] = None
    shasums_url: Optional[str] = None
    shasums_signature_url: Optional[str] = None
    shasum: Optional[str] = None
    signing_keys: Any = Field(default=None, exclude=True)

    def to_platform(self) -> ProviderPlatform:
        return ProviderPlatform(
            os=self.os,
            arch=self.arch,
            protocols=list(self.protocols or []),
            filename=self.filename or "",
            download_url=self.download_url or "",
            shasums_url=self.shasums_url or "",
            shasums_signature_url=self.shasums_signature_url or "",
            shasum=self.shasum or "",
        )
