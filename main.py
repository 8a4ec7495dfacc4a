from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from team_sync.config import ConfigError, get_settings
from team_sync.ics_export import export_entries_ics
from team_sync.parser import detect_year_month
from team_sync.reconcile import import_schedule
from team_sync.store import JsonStore, StoreError


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a pasted team agenda into the local schedule store")
    parser.add_argument("--store", type=str, default=None, help="JSON store file (default: TEAM_SYNC_STORE)")
    parser.add_argument("--rules", type=str, default=None, help="JSON file with highlight rules")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Parse agenda text and reconcile it into the store")
    imp.add_argument("source", help="Text file with the agenda dump, or - for stdin")
    imp.add_argument("--year", type=int, default=None, help="Year the dump starts in")
    imp.add_argument("--month", type=int, choices=range(1, 13), default=None, help="Month (1-12) the dump starts in")
    imp.add_argument("--legacy", action="store_true", help="Use the older parser that accepts bare HH:MM lines")
    imp.add_argument("--dry-run", action="store_true", help="Show actions without modifying the store")
    imp.add_argument("--ics", type=str, default=None, help="Also write the team schedule to this .ics file")

    exp = sub.add_parser("export-ics", help="Write the team schedule as iCalendar")
    exp.add_argument("path", help="Output .ics file")

    merge = sub.add_parser("merge-note", help="Fold a (backup) note into a schedule entry")
    merge.add_argument("note_id")
    merge.add_argument("entry_id")
    return parser.parse_args(argv)


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _export(store: JsonStore, settings, path: str) -> int:
    category = next((c for c in store.list_categories() if c.name == settings.team_category), None)
    entries = store.list_entries(category.id) if category else []
    return export_entries_ics(entries, settings.timezone, path)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        settings = get_settings(args.rules)
        store = JsonStore(args.store or settings.store_path)

        if args.command == "export-ics":
            _export(store, settings, args.path)
            return 0

        if args.command == "merge-note":
            entry = store.merge_note(args.note_id, args.entry_id)
            print(f"Merged into {entry.title}")
            return 0

        text = _read_source(args.source)
        if args.year is not None and args.month is not None:
            year, month = args.year, args.month - 1
        else:
            detected = detect_year_month(text)
            if detected:
                year, month = detected
                logging.info("Detected %d-%02d from the dump", year, month + 1)
            else:
                today = datetime.now(settings.timezone).date()
                year, month = today.year, today.month - 1
            if args.year is not None:
                year = args.year
            if args.month is not None:
                month = args.month - 1

        summary = import_schedule(store, text, year, month, settings, legacy=args.legacy, dry_run=args.dry_run)
        print(summary.message())
        if args.ics and not args.dry_run:
            _export(store, settings, args.ics)
    except (ConfigError, StoreError, OSError) as exc:
        logging.error("%s", exc)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
