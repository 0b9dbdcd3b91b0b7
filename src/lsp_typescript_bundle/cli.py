"""Maintainer CLI for inspecting and validating LSP bundles.

Commands:
    - validate: Load and compose a bundle, reporting configuration errors
    - show: Print the composed language records as YAML
    - root: Resolve the workspace root for a source file
    - doctor: Check that the declared language servers are on PATH
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from dotenv import load_dotenv

from .bundle import (
    ComposedBundle,
    bundle_root,
    dump_languages,
    load_composed,
    load_default_bundle,
)
from .config import COMPOSE_POLICIES, reload_settings
from .errors import ConfigurationError
from .workspace import resolve_workspace_root


def _load(bundle_path: Path | None, policy: str | None) -> ComposedBundle:
    if bundle_path is None and policy is None:
        return load_default_bundle()
    return load_composed(bundle_path or bundle_root(), policy=policy)


def _fail(exc: ConfigurationError) -> NoReturn:
    click.echo(f"Configuration error: {exc}", err=True)
    sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Inspect the TypeScript LSP bundle."""
    load_dotenv()
    reload_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


_bundle_option = click.option(
    "--bundle",
    "bundle_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Bundle file or directory (defaults to the packaged bundle)",
)
_policy_option = click.option(
    "--policy",
    type=click.Choice(COMPOSE_POLICIES),
    default=None,
    help="Resolution for language ids declared by several bundles",
)


@main.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path))
@_policy_option
def validate(path: Path, policy: str | None) -> None:
    """Load PATH with its includes and report problems."""
    try:
        composed = load_composed(path, policy=policy)
    except ConfigurationError as exc:
        _fail(exc)

    click.echo(f"Bundle {composed.name}: OK")
    click.echo(f"  bundles:   {', '.join(b.name for b in composed.bundles)}")
    click.echo(f"  languages: {', '.join(sorted(composed.languages)) or '-'}")
    click.echo(f"  agents:    {', '.join(sorted(composed.agents)) or '-'}")
    for reference in composed.external_includes:
        click.echo(f"  external:  {reference} (not fetched)")


@main.command()
@click.argument("path", type=click.Path(exists=True, path_type=Path), required=False)
@_policy_option
def show(path: Path | None, policy: str | None) -> None:
    """Print the composed language records of PATH as YAML."""
    try:
        composed = _load(path, policy)
    except ConfigurationError as exc:
        _fail(exc)
    click.echo(dump_languages(composed.languages), nl=False)


@main.command()
@click.argument("file", type=click.Path(path_type=Path))
@_bundle_option
def root(file: Path, bundle_path: Path | None) -> None:
    """Print the workspace root the host would use for FILE."""
    try:
        composed = _load(bundle_path, None)
    except ConfigurationError as exc:
        _fail(exc)

    config = composed.get_config_for_file(file)
    if config is None:
        click.echo(f"No language configured for {file}", err=True)
        sys.exit(1)
    click.echo(f"{config.get_language_id(file)}\t{resolve_workspace_root(config, file)}")


@main.command()
@_bundle_option
def doctor(bundle_path: Path | None) -> None:
    """Check that each configured language server resolves on PATH."""
    try:
        composed = _load(bundle_path, None)
    except ConfigurationError as exc:
        _fail(exc)

    missing = 0
    for language_id, config in sorted(composed.languages.items()):
        if config.is_server_available():
            click.echo(f"[ok]      {language_id}: {config.server_executable}")
            continue
        missing += 1
        click.echo(f"[missing] {language_id}: {config.server_executable} not found on PATH")
        if config.install_hint:
            click.echo(f"          install: {config.install_hint}")
    if missing:
        sys.exit(1)


if __name__ == "__main__":
    main()
