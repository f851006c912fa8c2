#!/usr/bin/env python3
"""
BrandSync command line

Talks to a running BrandSync API through the record store, or serves
the API itself.

    python -m brandsync.cli sheets
    python -m brandsync.cli list --sheet Sheet1
    python -m brandsync.cli delete 7 --sheet Sheet1
    python -m brandsync.cli serve --port 8000
"""
import argparse
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from brandsync.client import RecordStore, SyncApiClient


def _store(args) -> RecordStore:
    api = SyncApiClient(base_url=args.base_url)
    return RecordStore(api=api, notify=lambda message: print(f"❌ {message}"), sheet=args.sheet)


def list_sheets(args) -> int:
    store = _store(args)
    if not store.load():
        return 1
    for title in store.sheets:
        marker = "*" if title == store.current_sheet else " "
        print(f"{marker} {title}")
    return 0


def list_records(args) -> int:
    store = _store(args)
    if not store.load(args.sheet):
        return 1

    print("=" * 70)
    print(f"Sheet: {store.current_sheet} ({len(store.records)} records)")
    print("=" * 70)
    for record in store.records:
        tags = ", ".join(record.tag)
        print(f"  {record.s_no:>4}  {record.brand_name:<30} {record.slug:<24} {tags}")
    return 0


def delete_record(args) -> int:
    store = _store(args)
    if not store.load(args.sheet):
        return 1
    if store.find(args.serial) is None:
        print(f"No record with s_no={args.serial} in {store.current_sheet}")
        return 1
    if not store.delete(args.serial):
        return 1
    print(f"✅ Deleted {args.serial} from {store.current_sheet}")
    return 0


def serve(args) -> int:
    import uvicorn

    uvicorn.run("brandsync.api.app:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage brand records stored in Google Sheets")
    parser.add_argument("--base-url", default=None, help="BrandSync API URL (default from config.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable info logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sheets", help="List sheet titles")
    p.add_argument("--sheet", default=None, help=argparse.SUPPRESS)
    p.set_defaults(func=list_sheets)

    p = sub.add_parser("list", help="List records of a sheet")
    p.add_argument("--sheet", default=None, help="Sheet title (default: first sheet)")
    p.set_defaults(func=list_records)

    p = sub.add_parser("delete", help="Delete a record by serial number")
    p.add_argument("serial", help="s_no of the record")
    p.add_argument("--sheet", default=None, help="Sheet title (default: first sheet)")
    p.set_defaults(func=delete_record)

    p = sub.add_parser("serve", help="Run the API server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    p.set_defaults(func=serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
