"""Command-line interface for managing image hosts.

Commands:
    image-host status                     Show providers and which one is active
    image-host set <type> <key> <value>   Save one config field for a provider
    image-host test <type>                Run a provider's connection test
    image-host activate <type>            Validate and switch the active provider
    image-host upload <path>              Upload an image with the active provider
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

import structlog
from rich.console import Console
from rich.table import Table

from image_host.activation import ActivationState, ImageHostActivator
from image_host.config import parse_provider_config
from image_host.errors import ConfigurationError, ImageHostError
from image_host.files import UploadFile
from image_host.logging_config import configure_logging
from image_host.registry import registered_types
from image_host.settings import SETTINGS_FILE_ENV, get_settings
from image_host.store import JsonFileConfigStore

logger = structlog.get_logger(__name__)

console = Console()

STATE_STYLES = {
    ActivationState.ACTIVE: "bold green",
    ActivationState.VALIDATING: "yellow",
    ActivationState.ACTIVATION_FAILED: "red",
    ActivationState.INACTIVE: "dim",
}

SECRET_MARKERS = ("secret", "key")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    provider_choices = [t.value for t in registered_types()]

    parser = argparse.ArgumentParser(
        prog="image-host",
        description="Configure image hosts and upload images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--store", type=Path, help="Path to the saved image host configs")
    parser.add_argument("--config", type=Path, help="Path to image_host.yaml")
    parser.add_argument("--log-level", help="Log level (default: from settings)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show providers and which one is active")

    set_parser = subparsers.add_parser("set", help="Save one config field for a provider")
    set_parser.add_argument("type", choices=provider_choices)
    set_parser.add_argument("key", help="camelCase field name, e.g. accessKeyId")
    set_parser.add_argument("value")

    test_parser = subparsers.add_parser("test", help="Run a provider's connection test")
    test_parser.add_argument("type", choices=provider_choices)

    activate_parser = subparsers.add_parser("activate", help="Validate and switch the active provider")
    activate_parser.add_argument("type", choices=provider_choices)

    upload_parser = subparsers.add_parser("upload", help="Upload an image with the active provider")
    upload_parser.add_argument("path", type=Path)

    return parser.parse_args(argv)


def _mask(key: str, value: object) -> str:
    text = str(value)
    if any(marker in key.lower() for marker in SECRET_MARKERS) and len(text) > 4:
        return f"{text[:2]}***{text[-2:]}"
    return text


def show_status(activator: ImageHostActivator) -> None:
    record = activator.record()
    table = Table(title="Image hosts")
    table.add_column("Type")
    table.add_column("State")
    table.add_column("Config")
    table.add_column("Missing")

    for provider_type in registered_types():
        state = activator.state_of(provider_type)
        blob = record.config_for(provider_type)
        try:
            missing = ", ".join(parse_provider_config(provider_type, blob).missing_fields()) or "-"
        except ConfigurationError as e:
            missing = f"[red]{e}[/red]"
        style = STATE_STYLES[state]
        table.add_row(
            provider_type.value,
            f"[{style}]{state.value}[/{style}]",
            ", ".join(f"{k}={_mask(k, v)}" for k, v in blob.items()) or "-",
            missing,
        )
    console.print(table)


async def run_command(args: argparse.Namespace, activator: ImageHostActivator) -> int:
    """Run one CLI command; returns the process exit code."""
    if args.command == "status":
        show_status(activator)
        return 0

    if args.command == "set":
        activator.update_config(args.type, args.key, args.value)
        console.print(f"[green]Saved {args.type}.{args.key}[/green]")
        return 0

    if args.command == "test":
        console.print(f"[dim]Testing {args.type}...[/dim]")
        result = await activator.test_connection(args.type)
        style = "green" if result.ok else "red"
        console.print(f"[{style}]{result.message}[/{style}]")
        return 0 if result.ok else 1

    if args.command == "activate":
        console.print(f"[dim]Validating {args.type}...[/dim]")
        result = await activator.activate(args.type)
        if result.ok:
            console.print(f"[green]{args.type} is now the active image host[/green]")
            return 0
        console.print(f"[red]{result.reason}[/red]")
        return 1

    if args.command == "upload":
        upload_file = await asyncio.to_thread(UploadFile.from_path, args.path)
        manager = activator.create_manager()
        url = await manager.upload(upload_file)
        console.print(url)
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.config:
        # The uploaders read settings through get_settings()
        os.environ[SETTINGS_FILE_ENV] = str(args.config)
        get_settings.cache_clear()
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    store = JsonFileConfigStore(args.store or settings.store_path)
    activator = ImageHostActivator(store)

    try:
        return asyncio.run(run_command(args, activator))
    except (ImageHostError, OSError, ValueError) as e:
        logger.debug("Command failed", command=args.command, error=str(e))
        console.print(f"[red]{e}[/red]")
        return 1


def run_cli() -> None:
    """Entry point for console script."""
    sys.exit(main())


if __name__ == "__main__":
    run_cli()
