"""Registry service — the three provider registry operations.

``RegistryService`` sits between the HTTP layer and the store. It validates
caller parameters, and on registration replaces whatever signing keys the
publisher uploaded with the server's own public key before writing.
"""

from __future__ import annotations

from typing import Union

import structlog
from pydantic import ValidationError

from provider_registry.config import RegistryConfig
from provider_registry.errors import BadRequestError, MisconfiguredError
from provider_registry.registry.models import (
    ArtifactKey,
    GPGPublicKey,
    ProviderPlatform,
    SigningKeys,
    validate_segment,
)
from provider_registry.registry.schema import ProviderPlatformRequest
from provider_registry.registry.store import ArtifactStore, LocalArtifactStore
from provider_registry.signing.keys import KeyProvider, key_provider_from_config

logger = structlog.get_logger()

Payload = Union[bytes, str, dict]


class RegistryService:
    """Lists, resolves and registers provider platform builds."""

    def __init__(self, config: RegistryConfig, store: ArtifactStore, key_provider: KeyProvider):
        self.config = config
        self.store = store
        self.key_provider = key_provider
        self._logger = logger.bind(component="registry_service")

    def list_versions(self, namespace: str, name: str) -> list[dict[str, str]]:
        """Return ``[{"version": v}, ...]`` for every stored version."""
        validate_segment("namespace", namespace)
        validate_segment("name", name)

        versions = [{"version": v} for v in self.store.list_versions(namespace, name)]
        self._logger.info(
            "versions_listed", namespace=namespace, name=name, count=len(versions)
        )
        return versions

    def resolve(self, namespace: str, name: str, version: str, os: str, arch: str) -> ProviderPlatform:
        """Return the stored record for one platform build, keys included."""
        key = ArtifactKey(namespace, name, version, os, arch)
        platform = self.store.get(key)
        self._logger.info("provider_resolved", key=key.qualified_id)
        return platform

    def signing_key(self) -> GPGPublicKey:
        """Fetch the public key of the configured signing identity.

        Raises:
            MisconfiguredError: If no signing identity is configured.
            KeyUnavailableError: If the key cannot be retrieved.
        """
        identity = self.config.signing_identity
        if not identity:
            raise MisconfiguredError("PGP_ID is not set")
        return self.key_provider.public_key(identity)

    def register(self, namespace: str, name: str, version: str, payload: Payload) -> ArtifactKey:
        """Enrich uploaded metadata with the server's signing key and store it.

        The storage key takes ``os`` and ``arch`` from the payload and
        ``version`` from the caller; a version inside the payload is ignored.
        Any signing keys in the payload are discarded.
        """
        validate_segment("namespace", namespace)
        validate_segment("name", name)
        validate_segment("version", version)

        key = self.signing_key()
        platform = decode_platform(payload)
        platform.signing_keys = SigningKeys(gpg_public_keys=[key])

        stored_key = self.store.put(namespace, name, version, platform)
        self._logger.info(
            "provider_registered", key=stored_key.qualified_id, key_id=key.key_id
        )
        return stored_key


def decode_platform(payload: Payload) -> ProviderPlatform:
    """Decode client-supplied metadata into a ``ProviderPlatform``.

    Raises:
        BadRequestError: If the payload is not a valid metadata object.
    """
    try:
        if isinstance(payload, (bytes, str)):
            request = ProviderPlatformRequest.model_validate_json(payload)
        else:
            request = ProviderPlatformRequest.model_validate(payload)
    except ValidationError as exc:
        raise BadRequestError(f"invalid provider metadata: {exc}") from exc

    platform = request.to_platform()
    validate_segment("os", platform.os)
    validate_segment("arch", platform.arch)
    return platform


def build_service(config: RegistryConfig) -> RegistryService:
    """Wire a service to the filesystem store and the configured key source."""
    return RegistryService(
        config,
        LocalArtifactStore(config.storage_dir),
        key_provider_from_config(config),
    )
