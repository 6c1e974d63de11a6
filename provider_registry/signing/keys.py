"""Public signing-key lookup.

The registry never signs anything itself. It attaches the publisher's public
key to each registered build so clients can verify the detached signature of
the build's SHA256SUMS file. The key comes either from the local ``gpg``
keyring or from an armored file exported ahead of time.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import structlog

from provider_registry.config import RegistryConfig
from provider_registry.errors import KeyUnavailableError
from provider_registry.registry.models import GPGPublicKey

logger = structlog.get_logger()


class KeyProvider(ABC):
    """Source of the public key for a signing identity."""

    @abstractmethod
    def public_key(self, identity: str) -> GPGPublicKey:
        """Return the armored public key for ``identity``.

        The identity doubles as the key ID of the returned key.

        Raises:
            KeyUnavailableError: If the key cannot be retrieved.
        """


class GPGCommandKeyProvider(KeyProvider):
    """Exports the key with ``gpg --armor --export <identity>``."""

    def __init__(self, gpg_binary: str = "gpg", timeout: float = 10.0):
        self.gpg_binary = gpg_binary
        self.timeout = timeout

    def public_key(self, identity: str) -> GPGPublicKey:
        command = [self.gpg_binary, "--armor", "--export", identity]
        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise KeyUnavailableError(
                f"failed to retrieve public key {identity}: "
                f"{self.gpg_binary} timed out after {self.timeout}s",
                details={"identity": identity},
            )
        except OSError as exc:
            raise KeyUnavailableError(
                f"failed to retrieve public key {identity}: {exc}",
                details={"identity": identity, "command": command[0]},
            ) from exc

        armor = proc.stdout
        if not armor.strip():
            # gpg exits 0 with a warning on stderr when the key is unknown
            raise KeyUnavailableError(
                f"failed to retrieve public key {identity}, {proc.stderr.strip()}",
                details={"identity": identity, "exit_code": proc.returncode},
            )

        logger.info("signing_key_exported", identity=identity, source="gpg")
        return GPGPublicKey(key_id=identity, ascii_armor=armor)


class FileKeyProvider(KeyProvider):
    """Reads a key previously exported with ``gpg --armor --export``."""

    def __init__(self, key_file: str | Path):
        self.key_file = Path(key_file)

    def public_key(self, identity: str) -> GPGPublicKey:
        try:
            armor = self.key_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise KeyUnavailableError(
                f"failed to read public key file {self.key_file}: {exc}",
                details={"identity": identity, "path": str(self.key_file)},
            ) from exc

        if not armor.strip():
            raise KeyUnavailableError(
                f"public key file {self.key_file} is empty",
                details={"identity": identity, "path": str(self.key_file)},
            )

        logger.info("signing_key_loaded", identity=identity, source=str(self.key_file))
        return GPGPublicKey(key_id=identity, ascii_armor=armor)


def key_provider_from_config(config: RegistryConfig) -> KeyProvider:
    """Pick the file strategy when a key file is configured, else ``gpg``."""
    key_file: Optional[Path] = config.public_key_file
    if key_file is not None:
        return FileKeyProvider(key_file)
    return GPGCommandKeyProvider(config.gpg_binary, timeout=config.key_export_timeout)
