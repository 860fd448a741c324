"""
Inspects and edits JSONC config files from the command line.
Every edit rewrites only the lines it touches; comments and formatting elsewhere are kept.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import click

from .config import ConfigError, build_config
from .constants import EMPTY_DOCUMENT
from .document import JsoncDocument
from .exceptions import EditError, JsoncDecodeError, StorageError
from .filesystem import ConfigStore, normalize_filepath
from .jsonc import parse_jsonc
from .models import ConfigItem, ConfigScope
from .mutators import changed_keys

__all__ = ["cli"]


@dataclass
class Session:
    """State shared by the subcommands of one invocation."""

    store: ConfigStore
    scope: ConfigScope


@click.group()
@click.version_option()
@click.option("--global", "use_global", is_flag=True, help="Edit the global config file")
@click.option(
    "--file",
    "filepath",
    type=click.Path(dir_okay=False),
    help="Edit this file instead of the local config file",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages to stderr")
@click.pass_context
def cli(ctx: click.Context, use_global: bool, filepath: str | None, verbose: bool):
    """
    Entry point for inspecting and editing a JSONC config file.

    Args:
        use_global: Edit the global config file instead of the local one.
        filepath: Explicit config file to edit.
        verbose: Enable debug logging.

    Raises:
        click.UsageError: If both `--global` and `--file` are given.
        click.BadParameter: If the filepath or the tool configuration is invalid.

    Examples:
        jsonc-editor list plugin
        jsonc-editor --global set theme=\\"dark\\"
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if use_global and filepath:
        raise click.UsageError("--global and --file are mutually exclusive")

    try:
        config = build_config(Path.cwd())
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    paths: dict[ConfigScope, Path] = {}
    if filepath:
        try:
            paths[ConfigScope.LOCAL] = normalize_filepath(filepath)
        except ValueError as error:
            raise click.BadParameter(str(error), param_hint="--file") from error

    scope = ConfigScope.GLOBAL if use_global else ConfigScope.LOCAL
    ctx.obj = Session(store=ConfigStore(config, paths=paths), scope=scope)


def _load(session: Session) -> JsoncDocument:
    try:
        text = session.store.read(session.scope)
    except StorageError as error:
        raise click.ClickException(str(error)) from error
    return JsoncDocument(text or EMPTY_DOCUMENT, session.store.config)


def _save(session: Session, document: JsoncDocument):
    try:
        session.store.write(
            session.scope, document.text, warn=lambda message: click.echo(message, err=True)
        )
    except StorageError as error:
        raise click.ClickException(str(error)) from error


def _parse_value(raw_value: str) -> object:
    """Parse a command-line value as JSONC, falling back to the plain string."""
    if not raw_value.strip():
        return raw_value
    try:
        return parse_jsonc(raw_value)
    except JsoncDecodeError:
        return raw_value


def _matching(document: JsoncDocument, section: str, key: str) -> list[ConfigItem]:
    return [item for item in document.items(section) if item.key == key]


def _format_item(item: ConfigItem) -> str:
    marker = "x" if item.enabled else " "
    if item.is_block:
        location = f"lines {item.start_line + 1}-{item.end_line + 1}"
    else:
        location = f"line {item.start_line + 1}"
    return f"[{marker}] {item.key}  ({location})"


@cli.command("list")
@click.argument("section")
@click.pass_obj
def list_section(session: Session, section: str):
    """List the entries of SECTION with their enabled state."""
    document = _load(session)
    items = document.items(section)
    if not items:
        click.echo(f"No entries in {section!r}.")
        return
    for item in items:
        click.echo(_format_item(item))


def _set_enabled(session: Session, section: str, key: str, enable: bool):
    document = _load(session)
    count = len(_matching(document, section, key))
    if not count:
        raise click.ClickException(f"No entry {key!r} in {section!r}.")

    changed = False
    for index in range(count):
        # positions go stale after every toggle
        item = _matching(document, section, key)[index]
        changed = document.toggle(item, enable) or changed

    if changed:
        _save(session, document)
    state = "enabled" if enable else "disabled"
    click.echo(f"{key} {state}.")


@cli.command()
@click.argument("section")
@click.argument("key")
@click.pass_obj
def enable(session: Session, section: str, key: str):
    """Uncomment every entry named KEY in SECTION."""
    _set_enabled(session, section, key, True)


@cli.command()
@click.argument("section")
@click.argument("key")
@click.pass_obj
def disable(session: Session, section: str, key: str):
    """Comment out every entry named KEY in SECTION."""
    _set_enabled(session, section, key, False)


@cli.command()
@click.argument("section")
@click.argument("key")
@click.pass_obj
def remove(session: Session, section: str, key: str):
    """Delete the first entry named KEY from SECTION."""
    document = _load(session)
    matches = _matching(document, section, key)
    if not matches:
        raise click.ClickException(f"No entry {key!r} in {section!r}.")

    document.remove(matches[0])
    _save(session, document)
    click.echo(f"Removed {key} from {section}.")


@cli.command()
@click.argument("section")
@click.argument("key")
@click.argument("value")
@click.pass_obj
def add(session: Session, section: str, key: str, value: str):
    """Add KEY with VALUE to the object SECTION.

    VALUE is read as JSONC; anything that does not parse is stored as a string.
    """
    document = _load(session)
    try:
        changed = document.add(section, key, _parse_value(value))
    except EditError as error:
        raise click.ClickException(str(error)) from error

    if not changed:
        raise click.ClickException(f"Object section {section!r} not found.")
    _save(session, document)
    click.echo(f"Added {key} to {section}.")


@cli.command()
@click.argument("section")
@click.argument("value")
@click.pass_obj
def append(session: Session, section: str, value: str):
    """Append VALUE to the array SECTION, creating the section when missing."""
    document = _load(session)
    if _matching(document, section, value):
        click.echo(f"{value} is already in {section}.")
        return
    if not document.append(section, value):
        raise click.ClickException(f"Cannot append to {section!r}.")
    _save(session, document)
    click.echo(f"Appended {value} to {section}.")


@cli.command("set")
@click.argument("assignments", nargs=-1, required=True)
@click.pass_obj
def set_keys(session: Session, assignments: tuple[str, ...]):
    """Set root properties, given as KEY=VALUE pairs.

    Only properties whose value actually changes are rewritten.
    """
    updates: dict[str, object] = {}
    for assignment in assignments:
        key, separator, raw_value = assignment.partition("=")
        if not separator or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {assignment!r}")
        updates[key] = _parse_value(raw_value)

    document = _load(session)
    try:
        before = document.values()
    except JsoncDecodeError as error:
        raise click.ClickException(f"Cannot parse config: {error}") from error
    if not isinstance(before, dict):
        raise click.ClickException("Config root is not an object.")

    changes = changed_keys(before, updates)
    if not changes:
        click.echo("Nothing to change.")
        return

    try:
        document.update(changes)
    except EditError as error:
        raise click.ClickException(str(error)) from error
    _save(session, document)
    click.echo(f"Updated {', '.join(changes)}.")


@cli.command()
@click.argument("key")
@click.pass_obj
def get(session: Session, key: str):
    """Print the value of root property KEY as JSON."""
    document = _load(session)
    try:
        values = document.values()
    except JsoncDecodeError as error:
        raise click.ClickException(f"Cannot parse config: {error}") from error

    if not isinstance(values, dict) or key not in values:
        raise click.ClickException(f"No property {key!r}.")
    click.echo(json.dumps(values[key], indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
