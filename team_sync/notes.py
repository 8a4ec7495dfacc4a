from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup

from .models import Entry, Note, NoteInput, RestoredFields

BACKUP_TITLE_PREFIX = "📦 백업:"
URL_LABEL = "🔗 자료:"
NOTES_LABEL = "📝 메모:"
TAGS_LABEL = "🏷️ 태그:"
IMPORTED_NOTE_MARKER = "--- [Imported Note] ---"

BACKUP_URL_REGEX = re.compile(r"🔗\s*자료:\s*(https?://[^\s\"'>]+)")
URL_REGEX = re.compile(r"https?://[^\s\"'>]+")
TAGS_REGEX = re.compile(re.escape(TAGS_LABEL) + r" (.*)")
BLOCK_TAGS = ["div", "p", "li"]


def format_orphan_note(day_iso: str, title: str, backup: RestoredFields) -> NoteInput:
    lines: List[str] = []
    if backup.resource_url:
        lines.append(f"{URL_LABEL} {backup.resource_url}")
    if backup.notes:
        lines.append(f"{NOTES_LABEL} {backup.notes}")
    if backup.tags:
        lines.append(f"{TAGS_LABEL} {', '.join(backup.tags)}")
    return NoteInput(
        title=f"{BACKUP_TITLE_PREFIX} {day_iso} {title}",
        content="\n".join(lines),
        is_pinned=True,
    )


def strip_html(raw: str) -> str:
    """Plain text of a rich-text note, keeping block boundaries as line breaks."""
    if not raw:
        return ""
    if "<" not in raw:
        return raw
    soup = BeautifulSoup(raw, "lxml")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_before("\n")
        block.insert_after("\n")
    return soup.get_text()


def merge_note_into_entry(note: Note, entry: Entry) -> dict:
    """Field updates that fold ``note`` (typically an orphan backup) into ``entry``.

    The entry's resource URL is only filled when empty, preferring the backup's
    labelled link over the first URL in the text. The note text is appended to
    the entry notes and any labelled tags are added to the entry's tags.
    """
    clean = strip_html(f"{note.title or ''}\n{note.content or ''}")

    resource_url = entry.resource_url
    if not resource_url:
        labelled = BACKUP_URL_REGEX.search(clean)
        if labelled:
            resource_url = labelled.group(1)
        else:
            generic = URL_REGEX.search(clean)
            if generic:
                resource_url = generic.group(0)

    prefix = f"{entry.notes}\n\n" if entry.notes else ""
    notes = f"{prefix}{IMPORTED_NOTE_MARKER}\n{clean}"

    tags = list(entry.tags or [])
    tag_match = TAGS_REGEX.search(clean)
    if tag_match:
        for tag in (t.strip() for t in tag_match.group(1).split(",")):
            if tag and tag not in tags:
                tags.append(tag)

    return {"notes": notes, "resource_url": resource_url or "", "tags": tags}
