from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from .config import CATEGORY_COLORS
from .models import Category, Entry, Note
from .notes import merge_note_into_entry
from .utils import generate_id, now_iso


class StoreError(Exception):
    pass


class JsonStore:
    """Categories, schedule entries and notes kept in a single JSON file.

    Every call reads the file and every mutation writes it back, so the store
    is only safe with one writer at a time.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {"categories": [], "entries": [], "notes": []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Store {self.path} does not contain an object")
        for key in ("categories", "entries", "notes"):
            data.setdefault(key, [])
        return data

    def _save(self, data: dict) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            raise StoreError(f"Cannot write store {self.path}: {exc}") from exc

    # Categories

    def list_categories(self) -> List[Category]:
        categories = [Category.from_dict(c) for c in self._load()["categories"]]
        return sorted(categories, key=lambda c: c.order)

    def ensure_category(self, name: str) -> Category:
        data = self._load()
        for raw in data["categories"]:
            if raw.get("name") == name:
                return Category.from_dict(raw)
        category = Category(
            id=generate_id(),
            name=name,
            color=CATEGORY_COLORS[len(data["categories"]) % len(CATEGORY_COLORS)],
            order=max((c.get("order", 0) for c in data["categories"]), default=-1) + 1,
            created_at=now_iso(),
        )
        data["categories"].append(asdict(category))
        self._save(data)
        logging.info("Created category %s", name)
        return category

    # Entries

    def list_entries(self, category_id: Optional[str] = None) -> List[Entry]:
        entries = [Entry.from_dict(e) for e in self._load()["entries"]]
        if category_id:
            entries = [e for e in entries if e.category_id == category_id]
        return sorted(entries, key=lambda e: e.order)

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        for raw in self._load()["entries"]:
            if raw.get("id") == entry_id:
                return Entry.from_dict(raw)
        return None

    def create_entry(self, category_id: str, fields: dict) -> Entry:
        data = self._load()
        siblings = [e for e in data["entries"] if e.get("category_id") == category_id]
        values = dict(fields)
        values.pop("id", None)
        values.pop("category_id", None)
        entry = Entry(
            id=generate_id(),
            category_id=category_id,
            title=values.pop("title", ""),
            order=max((e.get("order", 0) for e in siblings), default=-1) + 1,
            created_at=now_iso(),
        )
        entry = Entry.from_dict({**entry.to_dict(), **values})
        data["entries"].append(entry.to_dict())
        self._save(data)
        return entry

    def update_entry(self, entry_id: str, updates: dict) -> Optional[Entry]:
        data = self._load()
        for index, raw in enumerate(data["entries"]):
            if raw.get("id") == entry_id:
                changes = {k: v for k, v in updates.items() if k != "id"}
                data["entries"][index] = {**raw, **changes}
                self._save(data)
                return Entry.from_dict(data["entries"][index])
        return None

    def delete_entry(self, entry_id: str) -> bool:
        data = self._load()
        remaining = [e for e in data["entries"] if e.get("id") != entry_id]
        if len(remaining) == len(data["entries"]):
            return False
        data["entries"] = remaining
        self._save(data)
        return True

    # Notes

    def list_notes(self) -> List[Note]:
        notes = [Note.from_dict(n) for n in self._load()["notes"]]
        return sorted(notes, key=lambda n: (not n.is_pinned, n.order))

    def get_note(self, note_id: str) -> Optional[Note]:
        for raw in self._load()["notes"]:
            if raw.get("id") == note_id:
                return Note.from_dict(raw)
        return None

    def create_note(self, title: str, content: str = "", color: str = "#ffffff", is_pinned: bool = False) -> Note:
        data = self._load()
        note = Note(
            id=generate_id(),
            title=title,
            content=content,
            color=color,
            is_pinned=is_pinned,
            order=max((n.get("order", 0) for n in data["notes"]), default=-1) + 1,
            created_at=now_iso(),
        )
        data["notes"].append(note.to_dict())
        self._save(data)
        return note

    def update_note(self, note_id: str, updates: dict) -> Optional[Note]:
        data = self._load()
        for index, raw in enumerate(data["notes"]):
            if raw.get("id") == note_id:
                changes = {k: v for k, v in updates.items() if k != "id"}
                data["notes"][index] = {**raw, **changes}
                self._save(data)
                return Note.from_dict(data["notes"][index])
        return None

    def delete_note(self, note_id: str) -> bool:
        data = self._load()
        remaining = [n for n in data["notes"] if n.get("id") != note_id]
        if len(remaining) == len(data["notes"]):
            return False
        data["notes"] = remaining
        self._save(data)
        return True

    def merge_note(self, note_id: str, entry_id: str) -> Entry:
        """Fold a note into an entry and delete the note."""
        note = self.get_note(note_id)
        if note is None:
            raise StoreError(f"Note {note_id} not found")
        entry = self.get_entry(entry_id)
        if entry is None:
            raise StoreError(f"Entry {entry_id} not found")
        updated = self.update_entry(entry_id, merge_note_into_entry(note, entry))
        if updated is None:
            raise StoreError(f"Entry {entry_id} disappeared during merge")
        self.delete_note(note_id)
        logging.info("Merged note %s into %s", note_id, updated.title)
        return updated
