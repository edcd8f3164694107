#!/usr/bin/env python3
"""
Refshelf command line: inspect and maintain a store without the desktop shell.

Usage examples:
  refshelf where
  refshelf list
  refshelf trash
  refshelf delete img_1700000000000_k3j2h1g0
  refshelf restore img_1700000000000_k3j2h1g0
  refshelf empty-trash
  refshelf recover
  refshelf serve --port 8731

Global options:
  --root PATH     storage root (default: [storage] root from refshelf.toml, else platform default)
  --config PATH   explicit refshelf.toml
  -v              log at DEBUG on the console
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from refshelf.core.config import ConfigError, get_settings, load_settings
from refshelf.core.log_setup import setup_logging
from refshelf.schemas.media import MediaRecord, OperationResult
from refshelf.services.storage import resolve_storage
from refshelf.services.store import ContentStore

# ------- tiny table printer (stdlib only) -------

def _stringify(x):
    if x is None:
        return ""
    return str(x)


def print_table(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> None:
    widths = [len(h) for h in headers]
    srows = []
    for row in rows:
        srow = [_stringify(v) for v in row]
        srows.append(srow)
        for i, v in enumerate(srow[:len(widths)]):
            widths[i] = max(widths[i], len(v))

    def fmt_row(vals):
        return "  " + " | ".join(v.ljust(widths[i]) for i, v in enumerate(vals))

    if headers:
        print(fmt_row(headers))
        print("  " + "-+-".join("-" * w for w in widths))
    for r in srows:
        print(fmt_row(r))


def _record_rows(records: List[MediaRecord]) -> List[list]:
    rows = []
    for r in sorted(records, key=lambda r: r.id):
        m = r.metadata
        size = f"{m.width}x{m.height}" if m.width and m.height else ""
        rows.append([r.id, r.type, m.title, size, r.media_path or getattr(m, "source_url", None)])
    return rows


def _report(result: OperationResult, what: str) -> int:
    if result.success:
        print(f"{what}: ok" + (f" ({len(result.moved)} file(s) moved)" if result.moved else ""))
        return 0
    print(f"{what}: {result.code.value}: {result.error}", file=sys.stderr)
    return 1

# ------- commands -------

def cmd_where(store: ContentStore, args) -> int:
    ctx = store.ctx
    print_table(["area", "path"], [
        ["root", ctx.root],
        ["trash", ctx.trash.base],
        ["journal", ctx.journal_dir],
    ])
    return 0


def cmd_list(store: ContentStore, args) -> int:
    records = asyncio.run(store.reader.list_items())
    print_table(["id", "type", "title", "size", "source"], _record_rows(records))
    print(f"\n  {len(records)} item(s)")
    return 0


def cmd_trash(store: ContentStore, args) -> int:
    records = asyncio.run(store.trash.list_trash())
    print_table(["id", "type", "title", "size", "source"], _record_rows(records))
    print(f"\n  {len(records)} item(s) in trash")
    return 0


def cmd_delete(store: ContentStore, args) -> int:
    return _report(asyncio.run(store.trash.delete(args.id)), f"delete {args.id}")


def cmd_restore(store: ContentStore, args) -> int:
    return _report(asyncio.run(store.trash.restore(args.id)), f"restore {args.id}")


def cmd_empty_trash(store: ContentStore, args) -> int:
    return _report(asyncio.run(store.trash.empty_trash()), "empty-trash")


def cmd_recover(store: ContentStore, args) -> int:
    pending = asyncio.run(store.journal.pending())
    if not pending:
        print("No interrupted operations.")
        return 0
    replayed = asyncio.run(store.journal.recover())
    print(f"Replayed {replayed} interrupted operation(s): {', '.join(sorted(pending))}")
    return 0


def cmd_serve(store: ContentStore, args) -> int:
    import uvicorn

    from refshelf.main import create_app

    app = create_app(args.settings, store.ctx)
    uvicorn.run(app, host=args.host or args.settings.host, port=args.port or args.settings.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="refshelf", description="Refshelf content store helper")
    ap.add_argument("--root", help="Storage root (overrides config / platform default)")
    ap.add_argument("--config", help="Path to refshelf.toml")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging on the console")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("where", help="Show storage directories").set_defaults(func=cmd_where)
    sub.add_parser("list", help="List active items").set_defaults(func=cmd_list)
    sub.add_parser("trash", help="List trashed items").set_defaults(func=cmd_trash)

    spd = sub.add_parser("delete", help="Move an item to the trash")
    spd.add_argument("id")
    spd.set_defaults(func=cmd_delete)

    spr = sub.add_parser("restore", help="Move an item back from the trash")
    spr.add_argument("id")
    spr.set_defaults(func=cmd_restore)

    sub.add_parser("empty-trash", help="Permanently remove trashed files").set_defaults(func=cmd_empty_trash)
    sub.add_parser("recover", help="Finish interrupted delete/restore moves").set_defaults(func=cmd_recover)

    sps = sub.add_parser("serve", help="Run the HTTP API (uvicorn)")
    sps.add_argument("--host", help="Bind address (default: [server] host)")
    sps.add_argument("--port", type=int, help="Port (default: [server] port)")
    sps.set_defaults(func=cmd_serve)
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(Path(args.config).expanduser()) if args.config else get_settings()
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        return 2
    args.settings = settings

    if args.cmd != "serve":
        # serve installs its own handlers in the app lifespan
        setup_logging(None, level="DEBUG" if args.verbose else "WARNING")

    root = Path(args.root).expanduser() if args.root else settings.storage_root
    store = ContentStore(resolve_storage(root))
    return args.func(store, args)


if __name__ == "__main__":
    sys.exit(main())
