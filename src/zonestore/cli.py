"""zonestore Command Line Interface.

Entry point for the zonestore CLI tool.
"""

import json
from pathlib import Path

import typer
from pydantic import ValidationError

from zonestore import __version__
from zonestore.contracts.errors import ConfigurationError, ZoneStoreError
from zonestore.contracts.resources import Resource
from zonestore.core.config import ZoneStoreSettings, load_settings, resolve_config
from zonestore.core.hashing import is_sha1
from zonestore.core.logging import configure_logging
from zonestore.runtime import Runtime
from zonestore.storage.collection import ResourceCollection

app = typer.Typer(
    name="zonestore",
    help="zonestore: content-addressed storage and publication on CDN zones.",
    no_args_is_help=True,
)

_SETTINGS_OPTION = typer.Option(
    ...,
    "--settings",
    "-s",
    help="Path to settings YAML file.",
)
_COLLECTION_OPTION = typer.Option(
    ...,
    "--collection",
    "-c",
    help="Collection name from the settings file.",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"zonestore version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """zonestore: content-addressed storage and publication on CDN zones."""
    pass


def _load(settings: str) -> ZoneStoreSettings:
    """Load settings and configure logging, exiting on errors."""
    try:
        config = load_settings(Path(settings))
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ConfigurationError as e:
        cause = e.__cause__
        if isinstance(cause, ValidationError):
            typer.echo("Configuration errors:", err=True)
            for error in cause.errors():
                loc = ".".join(str(x) for x in error["loc"])
                typer.echo(f"  - {loc}: {error['msg']}", err=True)
        else:
            typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1) from None

    configure_logging(config.logging.level, json_output=config.logging.json_output)
    return config


def _runtime(config: ZoneStoreSettings) -> Runtime:
    try:
        return Runtime(config)
    except ZoneStoreError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


@app.command()
def validate(
    settings: str = _SETTINGS_OPTION,
    show: bool = typer.Option(
        False,
        "--show",
        help="Print the resolved configuration with credentials masked.",
    ),
) -> None:
    """Validate a settings file without contacting any zone."""
    config = _load(settings)
    typer.echo("Configuration valid.")
    typer.echo(f"  Storages: {', '.join([*config.storages, *config.filesystem_storages])}")
    typer.echo(f"  Targets: {', '.join(config.targets)}")
    typer.echo(f"  Collections: {', '.join(config.collections)}")
    if show:
        typer.echo(json.dumps(resolve_config(config), indent=2))


@app.command(name="import")
def import_(
    file: Path = typer.Argument(..., help="Local file to import."),
    settings: str = _SETTINGS_OPTION,
    collection: str = _COLLECTION_OPTION,
    filename: str | None = typer.Option(
        None,
        "--filename",
        help="Published filename (defaults to the file's name).",
    ),
    static_path: str = typer.Option(
        "",
        "--static-path",
        help="Publish under this relative path instead of <sha1>/.",
    ),
) -> None:
    """Import a local file into a collection's storage."""
    config = _load(settings)
    if not file.is_file():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)

    with _runtime(config) as runtime:
        try:
            resource = runtime.collection(collection).import_file(
                file, filename=filename, relative_publication_path=static_path
            )
        except ZoneStoreError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

    typer.echo(f"Imported {resource.filename}")
    typer.echo(f"  SHA-1: {resource.sha1}")
    typer.echo(f"  Size: {resource.file_size} bytes")


@app.command()
def publish(
    settings: str = _SETTINGS_OPTION,
    collection: str = _COLLECTION_OPTION,
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the report summary as JSON.",
    ),
) -> None:
    """Publish a collection to its target zone."""
    config = _load(settings)
    with _runtime(config) as runtime:
        try:
            report = runtime.collection(collection).publish()
        except ZoneStoreError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

    summary = report.summary()
    if as_json:
        typer.echo(json.dumps({**summary, "failures": report.failed}, indent=2))
    else:
        typer.echo(
            f"Published {summary['uploaded']} resources to '{summary['target']}' "
            f"({summary['skipped']} skipped, {summary['pruned']} pruned) "
            f"in {summary['duration_seconds']}s"
        )
        for path, error in report.failed.items():
            typer.echo(f"  FAILED {path}: {error}", err=True)
        for path, error in report.prune_failures.items():
            typer.echo(f"  PRUNE FAILED {path}: {error}", err=True)

    if not report.ok:
        raise typer.Exit(1)


@app.command()
def unpublish(
    sha1: str = typer.Argument(..., help="SHA-1 of the resource."),
    settings: str = _SETTINGS_OPTION,
    collection: str = _COLLECTION_OPTION,
) -> None:
    """Remove a resource's published copy from the target zone."""
    config = _load(settings)
    with _runtime(config) as runtime:
        try:
            coll = runtime.collection(collection)
            resource = _find_resource(coll, sha1)
            target = coll.target
            assert target is not None  # Runtime binds every collection to a target
            deleted = target.unpublish_resource(resource)
        except ZoneStoreError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

    if deleted:
        typer.echo(f"Unpublished {sha1}")
    else:
        typer.echo(f"{sha1} was not published")


@app.command()
def url(
    sha1: str = typer.Argument(..., help="SHA-1 of the resource."),
    settings: str = _SETTINGS_OPTION,
    collection: str = _COLLECTION_OPTION,
) -> None:
    """Print the public URL of a resource."""
    config = _load(settings)
    with _runtime(config) as runtime:
        try:
            coll = runtime.collection(collection)
            resource = _find_resource(coll, sha1)
        except ZoneStoreError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
        target = coll.target
        assert target is not None  # Runtime binds every collection to a target
        typer.echo(target.get_public_persistent_resource_uri(resource))


def _find_resource(collection: ResourceCollection, sha1: str) -> Resource:
    if not is_sha1(sha1):
        typer.echo(f"Error: Not a SHA-1: {sha1}", err=True)
        raise typer.Exit(1)
    resource = collection.get_resource(sha1)
    if resource is None:
        typer.echo(
            f"Error: No resource {sha1} in collection '{collection.name}'", err=True
        )
        raise typer.Exit(1)
    return resource


if __name__ == "__main__":
    app()
