"""provider-registry CLI — run the server and manage the local store."""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from provider_registry import __version__
from provider_registry.config import RegistryConfig
from provider_registry.errors import RegistryError

console = Console()


def _load_config(storage_dir: str | None) -> RegistryConfig:
    from provider_registry.logs import configure_logging

    try:
        config = RegistryConfig.from_env()
    except RegistryError as exc:
        _fail(exc)
    config = config.with_overrides(storage_dir=Path(storage_dir) if storage_dir else None)
    configure_logging(config.log_level, config.log_json)
    return config


def _fail(exc: RegistryError) -> None:
    console.print(f"[red]Error ({exc.error_code}):[/] {exc.message}")
    sys.exit(1)


def _load_metadata(path: str):
    """Read a metadata file, keeping bare digits (a shasum, say) as strings."""
    import yaml

    class MetadataLoader(yaml.SafeLoader):
        pass

    numeric = {"tag:yaml.org,2002:int", "tag:yaml.org,2002:float"}
    MetadataLoader.yaml_implicit_resolvers = {
        first: [(tag, regexp) for tag, regexp in resolvers if tag not in numeric]
        for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
    }

    with open(path, encoding="utf-8") as f:
        return yaml.load(f, Loader=MetadataLoader)


storage_option = click.option(
    "--storage-dir",
    "-s",
    default=None,
    help="Provider storage directory (default: $PROVIDER_REGISTRY_DIR or ./provider)",
)


@click.group()
@click.version_option(version=__version__)
def main():
    """Provider Registry — a private Terraform provider registry.

    Serves the providers.v1 protocol over HTTP and manages the provider
    metadata stored on disk.
    """


# ── Serve ────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", "-p", default=8080, type=int, help="Bind port")
@click.option("--reload", is_flag=True, help="Reload on code changes")
@storage_option
def serve(host: str, port: int, reload: bool, storage_dir: str | None):
    """Run the registry HTTP server."""
    import os

    import uvicorn

    if storage_dir:
        os.environ["PROVIDER_REGISTRY_DIR"] = storage_dir

    console.print(f"\n[bold blue]Provider Registry[/] — serving on http://{host}:{port}\n")
    uvicorn.run(
        "web.backend.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# ── Versions ─────────────────────────────────────────────────────────


@main.command()
@click.argument("namespace")
@click.argument("name")
@storage_option
def versions(namespace: str, name: str, storage_dir: str | None):
    """List the registered versions of NAMESPACE/NAME."""
    from provider_registry.registry.service import build_service

    service = build_service(_load_config(storage_dir))
    try:
        entries = service.list_versions(namespace, name)
    except RegistryError as exc:
        _fail(exc)
        return

    table = Table(title=f"{namespace}/{name} ({len(entries)} versions)")
    table.add_column("Version", style="cyan")
    for entry in entries:
        table.add_row(entry["version"])

    console.print(table)


# ── Show ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("namespace")
@click.argument("name")
@click.argument("version")
@click.argument("os_name", metavar="OS")
@click.argument("arch")
@storage_option
def show(namespace: str, name: str, version: str, os_name: str, arch: str, storage_dir: str | None):
    """Print the stored download metadata for one platform build."""
    from provider_registry.registry.models import platform_to_dict
    from provider_registry.registry.service import build_service

    service = build_service(_load_config(storage_dir))
    try:
        platform = service.resolve(namespace, name, version, os_name, arch)
    except RegistryError as exc:
        _fail(exc)
        return

    click.echo(json.dumps(platform_to_dict(platform), indent=2))


# ── Register ─────────────────────────────────────────────────────────


@main.command()
@click.argument("namespace")
@click.argument("name")
@click.argument("version")
@click.argument("metadata_file", type=click.Path(exists=True, dir_okay=False))
@storage_option
def register(namespace: str, name: str, version: str, metadata_file: str, storage_dir: str | None):
    """Register a platform build from a JSON or YAML metadata file.

    The file holds the same fields as the HTTP registration body. The
    configured signing key ($PGP_ID) is attached before storing.
    """
    import yaml

    from provider_registry.registry.service import build_service

    console.print(f"\n[bold blue]Provider Registry[/] — Registering: {namespace}/{name} {version}\n")

    try:
        data = _load_metadata(metadata_file)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        console.print(f"  [red]Failed to parse:[/] {e}")
        sys.exit(1)

    service = build_service(_load_config(storage_dir))
    try:
        key = service.register(namespace, name, version, data)
    except RegistryError as exc:
        _fail(exc)
        return

    console.print(f"  Registered: [cyan]{key.qualified_id}[/]")


# ── Export key ───────────────────────────────────────────────────────


@main.command(name="export-key")
def export_key():
    """Print the public key attached to newly registered builds."""
    from provider_registry.registry.service import build_service

    service = build_service(_load_config(None))
    try:
        key = service.signing_key()
    except RegistryError as exc:
        _fail(exc)
        return

    console.print(f"[bold]Key ID:[/] {key.key_id}\n")
    click.echo(key.ascii_armor)


if __name__ == "__main__":
    main()
