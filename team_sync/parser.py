from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Pattern, Sequence, Tuple

from .config import ALL_DAY_MARKER, DEFAULT_HIGHLIGHT_RULES, WEEKDAY_ABBREVIATIONS
from .models import HighlightRule, ParsedSchedule
from .utils import calendar_day, next_month

DATE_REGEX = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3})")
TIME_REGEX = re.compile(r"^\d{2}:\d{2}\s*-\s*\d{2}:\d{2}|^" + ALL_DAY_MARKER)
LEGACY_TIME_REGEX = re.compile(r"^\d{2}:\d{2}(?:\s*-\s*\d{2}:\d{2})?|^" + ALL_DAY_MARKER)
BRACKET_REGEX = re.compile(r"^\[([^\]]+)\]\s*")
YEAR_MONTH_REGEX = re.compile(r"(\d{4})[.\- ]+(\d{1,2})")


@dataclass
class _ParseState:
    year: int
    month: int
    current_date: Optional[date] = None
    last_day: int = 0
    seen_date: bool = False


def _weekday_abbr(day: date) -> str:
    # date.weekday() counts from Monday, the table from Sunday.
    return WEEKDAY_ABBREVIATIONS[(day.weekday() + 1) % 7]


def _detect_start_month(state: _ParseState, day: int, weekday: str) -> None:
    current = _weekday_abbr(calendar_day(state.year, state.month, day))
    year, month = next_month(state.year, state.month)
    following = _weekday_abbr(calendar_day(year, month, day))
    weekday = weekday.lower()
    if weekday == following.lower() and weekday != current.lower():
        logging.debug(
            "Day %d %s matches %d-%02d, not %d-%02d; switching month",
            day, weekday, year, month + 1, state.year, state.month + 1,
        )
        state.year, state.month = year, month


def _apply_date_line(state: _ParseState, match: re.Match, detect_month: bool) -> None:
    day = int(match.group(1))
    if detect_month and not state.seen_date:
        _detect_start_month(state, day, match.group(2))
    state.seen_date = True

    # 30, 31 -> 01, 02 means the paste crossed into the next month.
    # TODO: a non-chronological listing (25th then 5th of the same month) also trips this.
    if state.last_day > 20 and day < 10:
        state.year, state.month = next_month(state.year, state.month)
        logging.debug("Day dropped %d -> %d, advancing to %d-%02d", state.last_day, day, state.year, state.month + 1)
    state.last_day = day
    state.current_date = calendar_day(state.year, state.month, day)


def resolve_highlight(
    tag: Optional[str],
    organizer: str,
    rules: Sequence[HighlightRule] = DEFAULT_HIGHLIGHT_RULES,
) -> int:
    """Highlight level for a bracket tag and organizer line.

    The tag is matched by substring against each rule's bracket keywords. Only
    when no tag matches is the organizer consulted: its part before the first
    ``/`` must equal one of the rule's names. The first matching rule wins.
    """
    if tag:
        for rule in rules:
            if any(keyword in tag for keyword in rule.brackets):
                return rule.level
    if organizer:
        name = organizer.split("/", 1)[0].strip()
        for rule in rules:
            if name in rule.organizers:
                return rule.level
    return 0


def split_title(line: str) -> Tuple[str, Optional[str]]:
    match = BRACKET_REGEX.match(line)
    if not match:
        return line, None
    return BRACKET_REGEX.sub("", line, count=1).strip(), match.group(1)


def _parse(
    text: str,
    target_year: int,
    target_month: int,
    time_regex: Pattern[str],
    detect_month: bool,
    rules: Sequence[HighlightRule],
) -> List[ParsedSchedule]:
    lines = [line.strip() for line in (text or "").split("\n")]
    lines = [line for line in lines if line]
    state = _ParseState(year=target_year, month=target_month)
    schedules: List[ParsedSchedule] = []

    def is_marker(line: str) -> bool:
        return bool(DATE_REGEX.match(line) or time_regex.match(line))

    i = 0
    while i < len(lines):
        line = lines[i]
        date_match = DATE_REGEX.match(line)
        if date_match:
            _apply_date_line(state, date_match, detect_month)
            i += 1
            continue

        time_match = time_regex.match(line)
        if not time_match or state.current_date is None:
            i += 1
            continue

        if i + 1 >= len(lines) or is_marker(lines[i + 1]):
            logging.debug("Time line '%s' has no title, skipping", line)
            i += 1
            continue

        title, tag = split_title(lines[i + 1])
        organizer = ""
        consumed = 1
        if i + 2 < len(lines) and not is_marker(lines[i + 2]):
            organizer = lines[i + 2]
            consumed = 2

        schedules.append(
            ParsedSchedule(
                date=state.current_date,
                time=time_match.group(0),
                title=title,
                organizer=organizer,
                highlight_level=resolve_highlight(tag, organizer, rules),
            )
        )
        i += 1 + consumed
    return schedules


def parse_schedule_text(
    text: str,
    target_year: int,
    target_month: int,
    rules: Sequence[HighlightRule] = DEFAULT_HIGHLIGHT_RULES,
) -> List[ParsedSchedule]:
    """Parse a pasted agenda dump into schedule records, in source order.

    ``target_month`` is 0-based. Accepts ``HH:MM - HH:MM`` ranges and the
    all-day marker as time lines, and moves the whole paste to the following
    month when the first date line's weekday only fits there. Lines that cannot
    be interpreted are skipped; this never raises on malformed text.
    """
    return _parse(text, target_year, target_month, TIME_REGEX, True, rules)


def parse_schedule_text_legacy(
    text: str,
    target_year: int,
    target_month: int,
    rules: Sequence[HighlightRule] = DEFAULT_HIGHLIGHT_RULES,
) -> List[ParsedSchedule]:
    """Older variant: also takes a bare ``HH:MM`` as a time line, no start-month detection."""
    return _parse(text, target_year, target_month, LEGACY_TIME_REGEX, False, rules)


def detect_year_month(text: str) -> Optional[Tuple[int, int]]:
    """Find the first ``YYYY.M`` style header in the dump; month is returned 0-based."""
    for match in YEAR_MONTH_REGEX.finditer(text or ""):
        month = int(match.group(2))
        if 1 <= month <= 12:
            return int(match.group(1)), month - 1
    return None
