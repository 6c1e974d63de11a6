"""Process-wide configuration, read once from the environment at startup."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from provider_registry.errors import MisconfiguredError

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RegistryConfig:
    """Immutable settings shared by every request.

    ``signing_identity`` is the GPG key ID (or user ID) whose public key is
    attached to each registered build. When ``public_key_file`` is set the key
    is read from that file instead of being exported with ``gpg``.
    """

    signing_identity: str = ""
    public_key_file: Optional[Path] = None
    storage_dir: Path = Path("provider")
    gpg_binary: str = "gpg"
    key_export_timeout: float = 10.0
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RegistryConfig":
        """Build a config from environment variables.

        Raises:
            MisconfiguredError: If ``PGP_EXPORT_TIMEOUT`` is not a positive number.
        """
        env = os.environ if environ is None else environ

        key_file = env.get("PGP_PUBLIC_KEY_FILE", "").strip()
        raw_timeout = env.get("PGP_EXPORT_TIMEOUT", "").strip()
        timeout = cls.key_export_timeout
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise MisconfiguredError(
                    f"PGP_EXPORT_TIMEOUT must be a number, got {raw_timeout!r}",
                    details={"variable": "PGP_EXPORT_TIMEOUT"},
                )
            if not math.isfinite(timeout) or timeout <= 0:
                raise MisconfiguredError(
                    "PGP_EXPORT_TIMEOUT must be a finite number greater than zero",
                    details={"variable": "PGP_EXPORT_TIMEOUT"},
                )

        return cls(
            signing_identity=env.get("PGP_ID", "").strip(),
            public_key_file=Path(key_file) if key_file else None,
            storage_dir=Path(env.get("PROVIDER_REGISTRY_DIR", "") or "provider"),
            gpg_binary=env.get("GPG_BINARY", "") or "gpg",
            key_export_timeout=timeout,
            log_level=(env.get("PROVIDER_REGISTRY_LOG_LEVEL", "") or "INFO").upper(),
            log_json=env.get("PROVIDER_REGISTRY_LOG_JSON", "").lower() in _TRUTHY,
        )

    def with_overrides(self, **changes) -> "RegistryConfig":
        """Return a copy with the given non-None fields replaced."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
