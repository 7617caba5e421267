"""Command line access to stored state envelopes.

Reads the backend from ``HYDRATOR_*`` settings, so ``hydrator show KEY``
inspects exactly what a ``Hydrator`` in the same environment would load.
"""

import asyncio
import json

import click


def _storage():
    from hydrator.settings import get_settings
    from hydrator.store.factory import create_storage

    try:
        return create_storage(get_settings())
    except ValueError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def main() -> None:
    """Hydrator - inspect and manage persisted state envelopes."""
    from hydrator.log import setup_logging
    from hydrator.settings import get_settings

    setup_logging(get_settings().log_level)


@main.command()
@click.argument("key")
def show(key: str) -> None:
    """Print the envelope stored under KEY."""
    from hydrator.codec import decode_document, parse_envelope
    from hydrator.errors import HydrationError

    try:
        raw = asyncio.run(_storage().get_string(key))
    except HydrationError as e:
        raise click.ClickException(str(e)) from e
    if raw is None:
        raise click.ClickException(f"No state stored under '{key}'.")

    try:
        envelope = parse_envelope(decode_document(raw))
    except HydrationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"version: {envelope.version}")
    click.echo(json.dumps(envelope.data, indent=2, ensure_ascii=False))


@main.command()
@click.argument("key")
def remove(key: str) -> None:
    """Delete the state stored under KEY."""
    from hydrator.errors import HydrationError

    try:
        ok = asyncio.run(_storage().remove(key))
    except HydrationError as e:
        raise click.ClickException(str(e)) from e
    if not ok:
        raise click.ClickException(f"Failed to remove '{key}'.")
    click.echo(f"Removed {key}.")


@main.command()
@click.confirmation_option(prompt="Remove every stored state?")
def clear() -> None:
    """Delete every stored state in the configured backend."""
    from hydrator.errors import HydrationError

    try:
        ok = asyncio.run(_storage().clear())
    except HydrationError as e:
        raise click.ClickException(str(e)) from e
    if not ok:
        raise click.ClickException("Failed to clear storage.")
    click.echo("Storage cleared.")


if __name__ == "__main__":
    main()
