from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple
from zoneinfo import ZoneInfo

from .config import Settings, get_timezone
from .models import (
    Entry,
    ImportSummary,
    NewEntry,
    ParsedSchedule,
    ReconcilePlan,
    RestoredFields,
)
from .notes import format_orphan_note
from .parser import parse_schedule_text, parse_schedule_text_legacy
from .store import StoreError
from .utils import build_due_date, due_date_to_date, match_key


@dataclass
class _Backup:
    key: Tuple[str, str]
    entry: Entry
    fields: RestoredFields


def target_months(parsed: Sequence[ParsedSchedule]) -> Set[Tuple[int, int]]:
    """Distinct (year, 0-based month) pairs an import describes."""
    return {(record.date.year, record.date.month - 1) for record in parsed}


def reconcile(
    parsed: Sequence[ParsedSchedule],
    existing_entries: Sequence[Entry],
    tz: Optional[ZoneInfo] = None,
) -> ReconcilePlan:
    """Work out how to replace the imported months of a team schedule.

    Manual entries and entries outside the imported months are left alone. All
    other entries in those months are deleted and recreated from ``parsed``;
    enrichment (link, notes, tags, pin, completion) follows an entry whose
    date and trimmed title reappear. The first old entry per key is the one
    that can be claimed; later duplicates with enrichment each get their own
    backup note, as does any enrichment that finds no new home. Nothing is
    written here; see :func:`apply_plan`.
    """
    tz = tz or get_timezone()
    plan = ReconcilePlan(target_months=target_months(parsed))

    backups: List[_Backup] = []
    claimable: Dict[Tuple[str, str], _Backup] = {}
    for entry in existing_entries:
        if entry.is_manual:
            continue
        day = due_date_to_date(entry.due_date, tz)
        if day is None or (day.year, day.month - 1) not in plan.target_months:
            continue
        backup = _Backup(key=match_key(day, entry.title), entry=entry, fields=RestoredFields.from_entry(entry))
        backups.append(backup)
        claimable.setdefault(backup.key, backup)
        plan.to_delete.append(entry)

    claimed: Set[str] = set()
    for record in parsed:
        new_entry = NewEntry(
            title=record.title,
            due_date=build_due_date(record.date, tz),
            due_time=record.time,
            highlight_level=record.highlight_level,
            organizer=record.organizer or "",
        )
        backup = claimable.pop(match_key(record.date, record.title), None)
        if backup is not None:
            new_entry.restored_from = backup.entry.id
            plan.to_restore[backup.entry.id] = backup.fields
            claimed.add(backup.entry.id)
        plan.to_create.append(new_entry)

    for backup in backups:
        if backup.entry.id in claimed or not backup.fields.has_enrichment():
            continue
        day_iso, title = backup.key
        plan.orphan_notes.append(format_orphan_note(day_iso, title, backup.fields))

    logging.debug(
        "Plan for %d month(s): %d delete, %d create, %d restore, %d orphan",
        len(plan.target_months),
        len(plan.to_delete),
        len(plan.to_create),
        len(plan.to_restore),
        len(plan.orphan_notes),
    )
    return plan


def apply_plan(store, category_id: str, plan: ReconcilePlan, dry_run: bool = False) -> ImportSummary:
    """Write ``plan`` to ``store``: deletions, then creations with restores, then backup notes.

    A store failure is logged and re-raised; whatever was written before it stays.
    """
    summary = ImportSummary(
        imported=len(plan.to_create),
        deleted=len(plan.to_delete),
        restored=len(plan.to_restore),
        orphaned=len(plan.orphan_notes),
        dry_run=dry_run,
    )
    try:
        for entry in plan.to_delete:
            logging.info("DELETE %s %s", entry.title, entry.due_date)
            if not dry_run and not store.delete_entry(entry.id):
                logging.warning("Entry %s was already gone", entry.id)

        for new_entry in plan.to_create:
            logging.info("CREATE %s %s %s", new_entry.title, new_entry.due_date, new_entry.due_time or "")
            if dry_run:
                continue
            fields = new_entry.as_fields()
            restored = plan.to_restore.get(new_entry.restored_from) if new_entry.restored_from else None
            if restored is not None:
                logging.info("RESTORE %s from %s", new_entry.title, new_entry.restored_from)
                # One write per key: the entry never exists without its enrichment.
                fields.update(restored.as_updates())
            store.create_entry(category_id, fields)

        for note_input in plan.orphan_notes:
            logging.info("BACKUP %s", note_input.title)
            if dry_run:
                continue
            store.create_note(note_input.title, note_input.content, is_pinned=note_input.is_pinned)
    except StoreError as exc:
        logging.error("Import aborted: %s", exc)
        raise

    logging.info("Import complete. %s", summary.message())
    return summary


def import_schedule(
    store,
    text: str,
    target_year: int,
    target_month: int,
    settings: Settings,
    legacy: bool = False,
    dry_run: bool = False,
) -> ImportSummary:
    """Parse ``text`` and reconcile it into the team schedule category of ``store``."""
    parse = parse_schedule_text_legacy if legacy else parse_schedule_text
    parsed = parse(text, target_year, target_month, settings.highlight_rules)
    if not parsed:
        logging.warning("No schedules parsed; nothing to import")
        return ImportSummary(dry_run=dry_run)
    logging.info("Parsed %d schedules", len(parsed))

    if dry_run:
        category = next((c for c in store.list_categories() if c.name == settings.team_category), None)
        category_id = category.id if category else ""
        existing = store.list_entries(category_id) if category else []
    else:
        category_id = store.ensure_category(settings.team_category).id
        existing = store.list_entries(category_id)

    plan = reconcile(parsed, existing, settings.timezone)
    return apply_plan(store, category_id, plan, dry_run=dry_run)
