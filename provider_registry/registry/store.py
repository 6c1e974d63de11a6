"""Artifact stores — persistence for provider platform records.

Records are addressed by ``(namespace, name, version, os, arch)``. The
filesystem store lays the key out one directory per field::

    {root}/{namespace}/{name}/{os}/{arch}/{version}.json

so listing the versions of a provider is a walk of its ``os/arch``
directories, and no key component has to be parsed back out of a file name.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from provider_registry.errors import (
    CorruptRecordError,
    NotFoundError,
    StorageError,
    StoreWriteError,
)
from provider_registry.registry.models import (
    ArtifactKey,
    ProviderPlatform,
    platform_from_dict,
    platform_to_dict,
    validate_segment,
)

logger = structlog.get_logger()


class ArtifactStore(ABC):
    """Addressable store of provider platform records."""

    @abstractmethod
    def list_versions(self, namespace: str, name: str) -> list[str]:
        """Return every distinct version stored under ``namespace/name``.

        Raises:
            NotFoundError: If no records exist under the scope.
        """

    @abstractmethod
    def get(self, key: ArtifactKey) -> ProviderPlatform:
        """Return the record stored at ``key``.

        Raises:
            NotFoundError: If nothing is stored at the key.
            CorruptRecordError: If the stored payload cannot be decoded.
        """

    @abstractmethod
    def put(self, namespace: str, name: str, version: str, record: ProviderPlatform) -> ArtifactKey:
        """Write ``record`` at the key built from its own os/arch, replacing
        any existing record. Returns the key written."""


class LocalArtifactStore(ArtifactStore):
    """Directory-backed store for single-publisher deployments."""

    RECORD_SUFFIX = ".json"

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)
        self._logger = logger.bind(component="local_artifact_store")

    def scope_dir(self, namespace: str, name: str) -> Path:
        validate_segment("namespace", namespace)
        validate_segment("name", name)
        return self.root_dir / namespace / name

    def record_path(self, key: ArtifactKey) -> Path:
        return (
            self.root_dir
            / key.namespace
            / key.name
            / key.os
            / key.arch
            / f"{key.version}{self.RECORD_SUFFIX}"
        )

    def list_versions(self, namespace: str, name: str) -> list[str]:
        scope = self.scope_dir(namespace, name)
        if not scope.is_dir():
            raise NotFoundError(
                f"provider {namespace}/{name} not found",
                details={"namespace": namespace, "name": name},
            )

        versions: set[str] = set()
        try:
            for os_dir in scope.iterdir():
                if not os_dir.is_dir():
                    continue
                for arch_dir in os_dir.iterdir():
                    if not arch_dir.is_dir():
                        continue
                    for record in arch_dir.iterdir():
                        if record.is_file() and record.suffix == self.RECORD_SUFFIX:
                            versions.add(record.stem)
        except OSError as exc:
            raise StorageError(
                f"failed to read provider {namespace}/{name}: {exc}",
                details={"path": str(scope)},
            ) from exc

        if not versions:
            raise NotFoundError(
                f"provider {namespace}/{name} has no versions",
                details={"namespace": namespace, "name": name},
            )

        self._logger.debug(
            "versions_scanned", namespace=namespace, name=name, count=len(versions)
        )
        return sorted(versions)

    def get(self, key: ArtifactKey) -> ProviderPlatform:
        path = self.record_path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError(
                f"provider {key.qualified_id} not found",
                details={"path": str(path)},
            )
        except OSError as exc:
            raise StorageError(
                f"failed to read {key.qualified_id}: {exc}",
                details={"path": str(path)},
            ) from exc

        try:
            return platform_from_dict(json.loads(raw))
        except ValueError as exc:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors too
            raise CorruptRecordError(
                f"stored record for {key.qualified_id} is not valid: {exc}",
                details={"path": str(path)},
            ) from exc

    def put(self, namespace: str, name: str, version: str, record: ProviderPlatform) -> ArtifactKey:
        key = ArtifactKey(namespace, name, version, record.os, record.arch)
        path = self.record_path(key)
        payload = json.dumps(platform_to_dict(record), indent=2)

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{key.version}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StoreWriteError(
                f"failed to write {key.qualified_id}: {exc}",
                details={"path": str(path)},
            ) from exc

        self._logger.debug("record_written", path=str(path))
        return key


class InMemoryArtifactStore(ArtifactStore):
    """Dict-backed store for tests and embedding.

    Records are kept serialized so reads return fresh objects, matching the
    filesystem store.
    """

    def __init__(self) -> None:
        self._records: dict[ArtifactKey, dict] = {}
        self._logger = logger.bind(component="in_memory_artifact_store")

    def list_versions(self, namespace: str, name: str) -> list[str]:
        validate_segment("namespace", namespace)
        validate_segment("name", name)
        versions = sorted(
            {
                k.version
                for k in self._records
                if k.namespace == namespace and k.name == name
            }
        )
        if not versions:
            raise NotFoundError(
                f"provider {namespace}/{name} not found",
                details={"namespace": namespace, "name": name},
            )
        return versions

    def get(self, key: ArtifactKey) -> ProviderPlatform:
        data = self._records.get(key)
        if data is None:
            raise NotFoundError(f"provider {key.qualified_id} not found")
        try:
            return platform_from_dict(data)
        except ValueError as exc:
            raise CorruptRecordError(
                f"stored record for {key.qualified_id} is not valid: {exc}"
            ) from exc

    def put(self, namespace: str, name: str, version: str, record: ProviderPlatform) -> ArtifactKey:
        key = ArtifactKey(namespace, name, version, record.os, record.arch)
        self._records[key] = platform_to_dict(record)
        self._logger.debug("record_written", key=key.qualified_id)
        return key
