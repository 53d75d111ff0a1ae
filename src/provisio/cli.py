"""Command-line entry point for Provisio."""

from __future__ import annotations

import argparse
import importlib
from pathlib import Path
from typing import Any

from provisio.core import (
    AppSettings,
    ServiceContainer,
    configure_logging,
    load_app_settings,
)
from provisio.core.models import type_name


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Provisio service container")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "registrations"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "modules",
        nargs="*",
        metavar="MODULE:ATTR",
        help="Container modules to apply for the registrations command.",
    )
    return parser


def load_module_object(path: str) -> Any:
    """Import ``package.module:Attribute`` and return the attribute."""
    module_name, separator, attribute = path.partition(":")
    if not separator or not module_name or not attribute:
        raise ValueError(f"Expected MODULE:ATTR, got '{path}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attribute)
    except AttributeError as exc:
        raise ValueError(f"{module_name} has no attribute '{attribute}'") from exc


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command
    if command == "info":
        print("Provisio container settings:")
        print(f"Auto-registration: {settings.container.auto_register}")
        print(f"Single-flight singletons: {settings.container.single_flight}")
        print(f"Log level: {settings.logging.level}")
        print(f"Resolution tracing: {settings.logging.trace_resolution}")
        return 0
    if command == "registrations":
        return _list_registrations(settings, args.modules)
    return 2


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    return execute(args, settings)


def _list_registrations(settings: AppSettings, module_paths: list[str]) -> int:
    """Apply the given modules to a fresh container and print its registrations."""
    if not module_paths:
        print("No modules given; pass one or more MODULE:ATTR paths.")
        return 2

    try:
        modules = [load_module_object(path) for path in module_paths]
    except (ImportError, ValueError) as exc:
        print(f"Could not load module: {exc}")
        return 1

    with ServiceContainer(settings.container) as container:
        container.add_module(*modules)
        registrations = container.registrations()
        for registration in registrations:
            implementation = (
                type_name(registration.implementation)
                if registration.implementation is not None
                else "-"
            )
            print(
                f"{registration.key.display_name}\t"
                f"{registration.kind.value}\t"
                f"{registration.lifetime.value}\t"
                f"{implementation}"
            )
        print(f"{len(registrations)} registration(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
