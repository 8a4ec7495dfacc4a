from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable, Optional, Tuple
from zoneinfo import ZoneInfo

from ics import Calendar, Event

from .models import Entry
from .utils import due_date_to_date

TIME_RANGE_REGEX = re.compile(r"^(\d{1,2}):(\d{2})(?:\s*-\s*(\d{1,2}):(\d{2}))?")


def _time_bounds(day: date, due_time: Optional[str], tz: ZoneInfo) -> Optional[Tuple[datetime, datetime]]:
    match = TIME_RANGE_REGEX.match(due_time or "")
    if not match:
        return None
    start = datetime(day.year, day.month, day.day, int(match.group(1)), int(match.group(2)), tzinfo=tz)
    if match.group(3):
        end = datetime(day.year, day.month, day.day, int(match.group(3)), int(match.group(4)), tzinfo=tz)
        if end <= start:
            end += timedelta(days=1)
    else:
        end = start + timedelta(hours=1)
    return start, end


def build_calendar(entries: Iterable[Entry], tz: ZoneInfo) -> Calendar:
    cal = Calendar()
    for entry in entries:
        day = due_date_to_date(entry.due_date, tz)
        if day is None:
            logging.debug("Skipping undated entry %s", entry.title)
            continue
        ev = Event()
        ev.uid = f"{entry.id}@team-sync"
        ev.name = entry.title
        bounds = _time_bounds(day, entry.due_time, tz)
        if bounds:
            ev.begin, ev.end = bounds
        else:
            ev.begin = datetime(day.year, day.month, day.day, tzinfo=tz)
            ev.make_all_day()
        description = [line for line in (entry.organizer, entry.resource_url, entry.notes) if line]
        if description:
            ev.description = "\n".join(description)
        cal.events.add(ev)
    return cal


def export_entries_ics(entries: Iterable[Entry], tz: ZoneInfo, path: str | Path) -> int:
    cal = build_calendar(entries, tz)
    with open(path, "w", encoding="utf-8") as f:
        f.writelines(cal.serialize_iter())
    logging.info("Wrote %d events to %s", len(cal.events), path)
    return len(cal.events)
