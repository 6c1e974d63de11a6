"""Tests for the registry service operations."""

import json
import tempfile
from pathlib import Path

import pytest

from provider_registry.config import RegistryConfig
from provider_registry.errors import (
    BadRequestError,
    KeyUnavailableError,
    MisconfiguredError,
    NotFoundError,
)
from provider_registry.registry.models import GPGPublicKey, platform_to_dict
from provider_registry.registry.service import RegistryService, build_service
from provider_registry.registry.store import InMemoryArtifactStore
from provider_registry.signing.keys import FileKeyProvider, KeyProvider


class StaticKeyProvider(KeyProvider):
    """Returns a fixed armor and counts lookups."""

    def __init__(self, armor: str = "<armor>"):
        self.armor = armor
        self.calls = 0

    def public_key(self, identity: str) -> GPGPublicKey:
        self.calls += 1
        return GPGPublicKey(key_id=identity, ascii_armor=self.armor)


class FailingKeyProvider(KeyProvider):
    def public_key(self, identity: str) -> GPGPublicKey:
        raise KeyUnavailableError(f"failed to retrieve public key {identity}")


def _service(identity: str = "KEY1", key_provider: KeyProvider | None = None, store=None):
    return RegistryService(
        RegistryConfig(signing_identity=identity),
        store or InMemoryArtifactStore(),
        key_provider or StaticKeyProvider(),
    )


WIDGET = {
    "os": "linux",
    "arch": "amd64",
    "filename": "widget.zip",
    "download_url": "https://x/widget.zip",
    "shasum": "abc123",
}


def test_register_then_resolve():
    service = _service()
    service.register("acme", "widget", "1.0.0", WIDGET)

    record = service.resolve("acme", "widget", "1.0.0", "linux", "amd64")
    assert record.filename == "widget.zip"
    data = platform_to_dict(record)
    assert data["signing_keys"]["gpg_public_keys"] == [
        {
            "key_id": "KEY1",
            "ascii_armor": "<armor>",
            "trust_signature": "",
            "source": "",
            "source_url": "",
        }
    ]


def test_register_round_trip_preserves_fields():
    body = dict(
        WIDGET,
        protocols=["5.0", "6.0"],
        shasums_url="https://x/SHA256SUMS",
        shasums_signature_url="https://x/SHA256SUMS.sig",
    )
    service = _service()
    service.register("acme", "widget", "1.0.0", json.dumps(body).encode())

    data = platform_to_dict(service.resolve("acme", "widget", "1.0.0", "linux", "amd64"))
    data.pop("signing_keys")
    assert data == body


def test_register_replaces_client_signing_keys():
    body = dict(
        WIDGET,
        signing_keys={
            "gpg_public_keys": [
                {"key_id": "EVIL", "ascii_armor": "evil"},
                {"key_id": "OTHER", "ascii_armor": "other"},
            ]
        },
    )
    service = _service()
    service.register("acme", "widget", "1.0.0", body)

    keys = service.resolve("acme", "widget", "1.0.0", "linux", "amd64").signing_keys.gpg_public_keys
    assert [(k.key_id, k.ascii_armor) for k in keys] == [("KEY1", "<armor>")]


def test_reregister_overwrites_without_merging():
    keys = StaticKeyProvider("first-armor")
    service = _service(key_provider=keys)
    service.register("acme", "widget", "1.0.0", dict(WIDGET, shasums_url="https://x/sums"))

    keys.armor = "second-armor"
    service.register("acme", "widget", "1.0.0", {"os": "linux", "arch": "amd64", "filename": "v2.zip"})

    record = service.resolve("acme", "widget", "1.0.0", "linux", "amd64")
    assert record.filename == "v2.zip"
    assert record.shasum == ""
    assert record.shasums_url == ""
    assert record.signing_keys.gpg_public_keys[0].ascii_armor == "second-armor"
    assert keys.calls == 2


def test_register_version_comes_from_caller():
    service = _service()
    service.register("acme", "widget", "2.0.0", dict(WIDGET, version="1.0.0"))

    assert service.list_versions("acme", "widget") == [{"version": "2.0.0"}]


def test_list_versions_scenario():
    service = _service()
    service.register("acme", "widget", "1.0.0", WIDGET)
    service.register("acme", "widget", "1.1.0", WIDGET)
    service.register("acme", "widget", "1.1.0", dict(WIDGET, os="darwin", arch="arm64"))

    versions = [v["version"] for v in service.list_versions("acme", "widget")]
    assert sorted(versions) == ["1.0.0", "1.1.0"]


def test_list_versions_unknown_provider():
    with pytest.raises(NotFoundError):
        _service().list_versions("acme", "nothing")


def test_resolve_unknown():
    service = _service()
    service.register("acme", "widget", "1.0.0", WIDGET)
    with pytest.raises(NotFoundError):
        service.resolve("acme", "widget", "1.0.0", "windows", "amd64")


@pytest.mark.parametrize(
    "params",
    [
        ("", "widget", "1.0.0", "linux", "amd64"),
        ("acme", "", "1.0.0", "linux", "amd64"),
        ("acme", "widget", "", "linux", "amd64"),
        ("acme", "widget", "1.0.0", "", "amd64"),
        ("acme", "widget", "1.0.0", "linux", ""),
    ],
)
def test_resolve_missing_param(params):
    with pytest.raises(BadRequestError):
        _service().resolve(*params)


def test_list_versions_missing_param():
    with pytest.raises(BadRequestError):
        _service().list_versions("acme", "")


def test_register_without_identity():
    keys = StaticKeyProvider()
    service = _service(identity="", key_provider=keys)
    with pytest.raises(MisconfiguredError):
        service.register("acme", "widget", "1.0.0", WIDGET)
    assert keys.calls == 0


def test_register_key_unavailable_stores_nothing():
    store = InMemoryArtifactStore()
    service = _service(key_provider=FailingKeyProvider(), store=store)
    with pytest.raises(KeyUnavailableError):
        service.register("acme", "widget", "1.0.0", WIDGET)
    with pytest.raises(NotFoundError):
        store.list_versions("acme", "widget")


@pytest.mark.parametrize(
    "payload",
    [
        b"{not json",
        b"[]",
        b'{"os": "linux"}',
        b'{"os": "linux", "arch": "../etc"}',
        {"os": "linux", "arch": "amd64", "protocols": "5.0"},
    ],
)
def test_register_malformed_body(payload):
    with pytest.raises(BadRequestError):
        _service().register("acme", "widget", "1.0.0", payload)


def test_register_missing_path_param():
    with pytest.raises(BadRequestError):
        _service().register("acme", "widget", "", WIDGET)


def test_build_service_uses_configured_sources():
    with tempfile.TemporaryDirectory() as tmpdir:
        key_file = Path(tmpdir) / "key.asc"
        key_file.write_text("<file armor>")
        config = RegistryConfig(
            signing_identity="KEY1",
            public_key_file=key_file,
            storage_dir=Path(tmpdir) / "provider",
        )
        service = build_service(config)
        assert isinstance(service.key_provider, FileKeyProvider)

        service.register("acme", "widget", "1.0.0", WIDGET)
        path = Path(tmpdir) / "provider" / "acme" / "widget" / "linux" / "amd64" / "1.0.0.json"
        stored = json.loads(path.read_text())
        assert stored["signing_keys"]["gpg_public_keys"][0]["ascii_armor"] == "<file armor>"


@pytest.mark.parametrize(
    "signing_keys",
    [
        {"gpg_public_keys": "junk"},
        {"gpg_public_keys": ["not-an-object", 7]},
        "keys",
        ["a", "b"],
        None,
    ],
)
def test_register_ignores_any_client_signing_keys(signing_keys):
    service = _service()
    service.register("acme", "widget", "1.0.0", dict(WIDGET, signing_keys=signing_keys))

    keys = service.resolve("acme", "widget", "1.0.0", "linux", "amd64").signing_keys.gpg_public_keys
    assert [k.key_id for k in keys] == ["KEY1"]


def test_register_null_optional_fields():
    body = {
        "os": "linux",
        "arch": "amd64",
        "filename": "w.zip",
        "protocols": None,
        "shasums_url": None,
        "shasum": None,
    }
    service = _service()
    service.register("acme", "widget", "1.0.0", json.dumps(body))

    record = service.resolve("acme", "widget", "1.0.0", "linux", "amd64")
    assert record.filename == "w.zip"
    assert record.protocols == []
    assert record.shasums_url == ""
    assert record.shasum == ""


def test_register_malformed_body_checked_after_key():
    keys = StaticKeyProvider()
    service = _service(key_provider=keys)
    with pytest.raises(BadRequestError):
        service.register("acme", "widget", "1.0.0", b'{"os": "linux", "arch": 5}')
    assert keys.calls == 1
