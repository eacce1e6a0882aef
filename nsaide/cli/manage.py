"""Operator CLI for the nsaide cache and module system.

Usage::

    python -m nsaide.cli bootstrap
    python -m nsaide.cli user 12345
    python -m nsaide.cli stats
    python -m nsaide.cli reconcile
    python -m nsaide.cli clear --yes
    python -m nsaide.cli disable userDataService

Each command builds the same DI container as the application, runs once
against the configured key-value store, and exits with 0 on success.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

from nsaide.config.settings import Settings
from nsaide.main import (
    USER_DATA_NAMESPACE,
    build_container,
    run_bootstrap,
    shutdown,
    start,
    wait_for_modules,
)
from nsaide.utils.logging import configure_logging

Handler = Callable[[argparse.Namespace, dict[str, Any]], Awaitable[int]]


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_bootstrap(args: argparse.Namespace, container: dict[str, Any]) -> int:
    """Run the bootstrap and print what loaded."""
    report = await run_bootstrap(container)

    if not report.manifest_loaded:
        print(f"Error: {report.error}", file=sys.stderr)
        return 1

    print("Bootstrap complete")
    print("=" * 40)
    print(f"  Loaded:       {', '.join(report.loaded) or '-'}")
    print(f"  Initialised:  {', '.join(report.initialised) or '-'}")
    for module_id, error in sorted(report.failed.items()):
        print(f"  Failed:       {module_id}: {error}")
    for outcome in report.init_outcomes:
        if not outcome.ok:
            print(f"  Init failed:  {outcome.module_id}: {outcome.error}")
    return 0 if not report.failed else 1


async def _handle_user(args: argparse.Namespace, container: dict[str, Any]) -> int:
    """Look up one user once the module system is ready."""
    bootstrap_task = asyncio.create_task(run_bootstrap(container))
    await wait_for_modules(container)

    info = await container["user_data_service"].get_user_info(args.user_id)
    await bootstrap_task

    if info is None:
        print(f"User {args.user_id!r} is not available.", file=sys.stderr)
        return 1
    print(json.dumps(info, ensure_ascii=False, indent=2))
    return 0


async def _handle_stats(args: argparse.Namespace, container: dict[str, Any]) -> int:
    """Display user-data cache statistics."""
    stats = await container["user_data_service"].get_cache_stats()
    namespace = container["indexed_store"].namespace(USER_DATA_NAMESPACE)

    print("User Data Cache")
    print("=" * 40)
    print(f"  Memory entries:    {stats.memory_size}/{container['memory_cache'].max_entries}")
    print(f"  Stored entries:    {stats.storage_size}/{namespace.max_entries}")
    print(f"  Pending requests:  {stats.pending_requests}")
    print(f"  TTL:               {namespace.ttl_seconds:g}s")
    return 0


async def _handle_reconcile(args: argparse.Namespace, container: dict[str, Any]) -> int:
    """Drop expired and dangling entries from the persistent index."""
    report = await container["indexed_store"].reconcile(USER_DATA_NAMESPACE)
    print(f"Reconciled '{report.namespace}': kept {report.kept}, removed {report.removed}")
    return 0


async def _handle_clear(args: argparse.Namespace, container: dict[str, Any]) -> int:
    """Empty both user-data cache tiers.  Asks first unless --yes is passed."""
    size = await container["indexed_store"].size(USER_DATA_NAMESPACE)
    if size == 0:
        print("User data cache is already empty.")
        return 0

    if not args.yes:
        confirm = input(f"  Delete {size} cached user entries? [y/N] ").strip().lower()
        if confirm not in ("y", "yes"):
            print("  Aborted.")
            return 0

    removed = await container["user_data_service"].clear_all_cache()
    print(f"Deleted {removed} cached user entries.")
    return 0


async def _handle_enable(args: argparse.Namespace, container: dict[str, Any]) -> int:
    await container["registry"].set_enabled(args.module_id, True)
    print(f"Module '{args.module_id}' enabled (takes effect next session).")
    return 0


async def _handle_disable(args: argparse.Namespace, container: dict[str, Any]) -> int:
    await container["registry"].set_enabled(args.module_id, False)
    print(f"Module '{args.module_id}' disabled (takes effect next session).")
    return 0


_HANDLERS: dict[str, Handler] = {
    "bootstrap": _handle_bootstrap,
    "user": _handle_user,
    "stats": _handle_stats,
    "reconcile": _handle_reconcile,
    "clear": _handle_clear,
    "enable": _handle_enable,
    "disable": _handle_disable,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the operator CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m nsaide.cli",
        description="Inspect and manage the nsaide cache and module system.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("bootstrap", help="Load the manifest and initialise modules")

    user_parser = subparsers.add_parser("user", help="Look up a forum user through the cache")
    user_parser.add_argument("user_id", help="Forum user id")

    subparsers.add_parser("stats", help="Show user-data cache statistics")
    subparsers.add_parser("reconcile", help="Remove expired entries from the persistent index")

    clear_parser = subparsers.add_parser("clear", help="Empty the user-data cache")
    clear_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation prompt")

    for name, verb in (("enable", "Enable"), ("disable", "Disable")):
        toggle_parser = subparsers.add_parser(name, help=f"{verb} a module from the next session")
        toggle_parser.add_argument("module_id", help="Module id, e.g. userDataService")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run_command(
    args: argparse.Namespace,
    app_settings: Settings,
    container: dict[str, Any] | None = None,
) -> int:
    """Build (or reuse) the container, run one command, release resources."""
    if container is None:
        container = build_container(app_settings)
    try:
        await start(container)
        return await _HANDLERS[args.command](args, container)
    finally:
        await shutdown(container)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
        stream=sys.stderr,
    )
    sys.exit(asyncio.run(run_command(args, app_settings)))


if __name__ == "__main__":
    main()
