"""Command line access to the configuration store.

    configstore --settings store.yml get theme --item abc123
    configstore --settings store.yml set theme '"dark"' --scope folder --id f1
    configstore --settings store.yml dump
    configstore --settings store.yml lock-status
    configstore --settings store.yml unlock
    configstore --settings store.yml serve --port 8000

The module contains only CLI and I/O logic; the store does the work.
"""
from __future__ import annotations
import argparse
import asyncio
import json
import sys
from typing import Any, Iterable, Optional

from configstore_lib.config import StoreSettings, load_settings
from configstore_lib.config.settings import build_locked_store
from configstore_lib.config.health import lock_report
from configstore_lib.errors import ConfigStoreError
from configstore_lib.logging_config import configure_logging
from configstore_lib.scoped import GLOBAL_SCOPE, LockedDocumentStore, PerPluginConfig, ScopeContext

SCOPES = (GLOBAL_SCOPE, "item", "folder", "library")
PLUGIN_COMMANDS = ("get", "set", "unset")


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="configstore", description="Inspect and edit scoped plugin configuration")
    p.add_argument("--settings", help="YAML settings file (default: $CONFIGSTORE_SETTINGS)")
    p.add_argument("--plugin-id", help="Plugin id (overrides settings)")
    p.add_argument("--log-level", help="Log level (overrides settings)")
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("get", help="Resolve a key with item > folder > library > global priority")
    g.add_argument("key")
    g.add_argument("--item", dest="item_id")
    g.add_argument("--folder", dest="folder_id")
    g.add_argument("--library", dest="library_id", help="Library path")

    s = sub.add_parser("set", help="Set a value; VALUE is parsed as JSON, else kept as a string")
    s.add_argument("key")
    s.add_argument("value")
    s.add_argument("--scope", choices=SCOPES, default=GLOBAL_SCOPE)
    s.add_argument("--id", dest="scope_id", help="Item/folder id or library path")

    u = sub.add_parser("unset", help="Remove a value from one scope")
    u.add_argument("key")
    u.add_argument("--scope", choices=SCOPES, default=GLOBAL_SCOPE)
    u.add_argument("--id", dest="scope_id")

    sub.add_parser("dump", help="Print the whole document")
    sub.add_parser("lock-status", help="Show the lock sentinel state")
    sub.add_parser("unlock", help="Remove a leftover lock sentinel")

    v = sub.add_parser("serve", help="Serve the HTTP API")
    v.add_argument("--host", default="127.0.0.1")
    v.add_argument("--port", type=int, default=8000)
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = get_parser()
    if argv is not None:
        argv = list(argv)
    return parser.parse_args(argv)


def parse_value(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def _print_json(value: Any) -> None:
    sys.stdout.write(json.dumps(value, indent=2, ensure_ascii=False) + "\n")


async def run_command(args: argparse.Namespace, locked: LockedDocumentStore, store: Optional[PerPluginConfig]) -> int:
    coordinator = locked.coordinator
    if args.command in PLUGIN_COMMANDS and store is None:
        sys.stderr.write("plugin_id must be given in settings or with --plugin-id\n")
        return 2
    if args.command == "get":
        ctx = ScopeContext(item_id=args.item_id, folder_id=args.folder_id, library_id=args.library_id)
        found = await store.resolve(args.key, ctx)
        if found is None:
            sys.stderr.write(f"{args.key}: not set\n")
            return 1
        _print_json({"key": args.key, "scope": found.scope, "value": found.value})
        return 0
    if args.command == "set":
        await store.set_scoped(args.scope, args.scope_id, args.key, parse_value(args.value))
        return 0
    if args.command == "unset":
        removed = await store.unset_scoped(args.scope, args.scope_id, args.key)
        return 0 if removed else 1
    if args.command == "dump":
        _print_json(dict(await locked.get_raw()))
        return 0
    if args.command == "lock-status":
        _print_json(lock_report(coordinator))
        return 0
    if args.command == "unlock":
        removed = coordinator.force_clear()
        sys.stdout.write("removed\n" if removed else "no lock present\n")
        return 0
    return 2


def serve(settings: StoreSettings, store: Optional[PerPluginConfig], host: str, port: int) -> int:
    if store is None:
        sys.stderr.write("plugin_id must be given in settings or with --plugin-id\n")
        return 2
    import uvicorn
    from configstore_lib.main import create_app
    uvicorn.run(create_app(settings, store=store), host=host, port=port)
    return 0


def main(argv: Optional[Iterable[str]] = None, settings: Optional[StoreSettings] = None) -> int:
    args = parse_args(argv)
    try:
        settings = settings or load_settings(args.settings)
    except (OSError, ValueError) as e:
        sys.stderr.write(f"Failed to load settings: {e}\n")
        return 2
    configure_logging(level=args.log_level or settings.log_level)

    try:
        locked = build_locked_store(settings, settings.document_path, settings.lock_path)
    except ValueError as e:
        sys.stderr.write(f"{e}\n")
        return 2
    plugin_id = args.plugin_id or settings.plugin_id
    store = PerPluginConfig(locked, plugin_id) if plugin_id else None

    if args.command == "serve":
        return serve(settings, store, args.host, args.port)

    try:
        return asyncio.run(run_command(args, locked, store))
    except ConfigStoreError as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
