"""Registry data models — keys, platform builds and signing keys."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from provider_registry.errors import BadRequestError

_FORBIDDEN_SEGMENT_CHARS = ("/", "\\", "\x00")


def validate_segment(field_name: str, value: Any) -> str:
    """Check that ``value`` can address one level of the store.

    Raises:
        BadRequestError: If the value is missing, not a string, or could
            escape its directory (``..``, separators, NUL).
    """
    if not isinstance(value, str) or not value:
        raise BadRequestError(
            f"{field_name} param is required", details={"param": field_name}
        )
    if value in (".", "..") or any(c in value for c in _FORBIDDEN_SEGMENT_CHARS):
        raise BadRequestError(
            f"{field_name} param is invalid: {value!r}",
            details={"param": field_name, "value": value},
        )
    return value


@dataclass(frozen=True)
class ArtifactKey:
    """Full address of a single platform build."""

    namespace: str
    name: str
    version: str
    os: str
    arch: str

    def __post_init__(self) -> None:
        for field_name in ("namespace", "name", "version", "os", "arch"):
            validate_segment(field_name, getattr(self, field_name))

    @property
    def provider_id(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def qualified_id(self) -> str:
        return f"{self.namespace}/{self.name}@{self.version} ({self.os}/{self.arch})"


@dataclass
class GPGPublicKey:
    """An ASCII-armored public key used to verify SHA256SUMS signatures."""

    key_id: str
    ascii_armor: str
    trust_signature: str = ""
    source: str = ""
    source_url: str = ""


@dataclass
class SigningKeys:
    """The keys a client may use to verify a build's checksum signature."""

    gpg_public_keys: list[GPGPublicKey] = field(default_factory=list)


@dataclass
class ProviderPlatform:
    """Download metadata for one provider version on one os/arch."""

    os: str
    arch: str
    protocols: list[str] = field(default_factory=list)
    filename: str = ""
    download_url: str = ""
    shasums_url: str = ""
    shasums_signature_url: str = ""
    shasum: str = ""
    signing_keys: SigningKeys = field(default_factory=SigningKeys)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

_STRING_FIELDS = (
    "filename",
    "download_url",
    "shasums_url",
    "shasums_signature_url",
    "shasum",
)


def platform_to_dict(platform: ProviderPlatform) -> dict:
    return {
        "protocols": list(platform.protocols),
        "os": platform.os,
        "arch": platform.arch,
        "filename": platform.filename,
        "download_url": platform.download_url,
        "shasums_url": platform.shasums_url,
        "shasums_signature_url": platform.shasums_signature_url,
        "shasum": platform.shasum,
        "signing_keys": {
            "gpg_public_keys": [
                {
                    "key_id": k.key_id,
                    "ascii_armor": k.ascii_armor,
                    "trust_signature": k.trust_signature,
                    "source": k.source,
                    "source_url": k.source_url,
                }
                for k in platform.signing_keys.gpg_public_keys
            ]
        },
    }


def platform_from_dict(data: Any) -> ProviderPlatform:
    """Build a ``ProviderPlatform`` from a decoded stored record.

    ``os`` and ``arch`` are required because they address the record; every
    other field defaults to empty. Unknown fields are ignored.

    Raises:
        ValueError: If ``data`` is not an object or a field has the wrong type.
    """
    if not isinstance(data, dict):
        raise ValueError("provider metadata must be a JSON object")

    for required in ("os", "arch"):
        if not isinstance(data.get(required), str) or not data[required]:
            raise ValueError(f"'{required}' is required and must be a string")

    for name in _STRING_FIELDS:
        if not isinstance(data.get(name, ""), str):
            raise ValueError(f"'{name}' must be a string")

    protocols = data.get("protocols", [])
    if not isinstance(protocols, list) or not all(isinstance(p, str) for p in protocols):
        raise ValueError("'protocols' must be a list of strings")

    return ProviderPlatform(
        os=data["os"],
        arch=data["arch"],
        protocols=list(protocols),
        filename=data.get("filename", ""),
        download_url=data.get("download_url", ""),
        shasums_url=data.get("shasums_url", ""),
        shasums_signature_url=data.get("shasums_signature_url", ""),
        shasum=data.get("shasum", ""),
        signing_keys=_signing_keys_from_dict(data.get("signing_keys") or {}),
    )


def _signing_keys_from_dict(data: Any) -> SigningKeys:
    if not isinstance(data, dict):
        raise ValueError("'signing_keys' must be a JSON object")
    keys = data.get("gpg_public_keys") or []
    if not isinstance(keys, list):
        raise ValueError("'signing_keys.gpg_public_keys' must be a list")

    result = []
    for item in keys:
        if not isinstance(item, dict):
            raise ValueError("each gpg public key must be a JSON object")
        result.append(
            GPGPublicKey(
                key_id=str(item.get("key_id", "")),
                ascii_armor=str(item.get("ascii_armor", "")),
                trust_signature=str(item.get("trust_signature") or ""),
                source=str(item.get("source") or ""),
                source_url=str(item.get("source_url") or ""),
            )
        )
    return SigningKeys(gpg_public_keys=result)
