from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Dict, List, Optional, Set, Tuple

SOURCE_MANUAL = "manual"
SOURCE_TEAM = "team"


@dataclass(frozen=True)
class HighlightRule:
    level: int
    brackets: Tuple[str, ...] = ()
    organizers: Tuple[str, ...] = ()


@dataclass
class ParsedSchedule:
    date: date
    time: Optional[str]
    title: str
    organizer: str = ""
    highlight_level: int = 0


@dataclass
class Category:
    id: str
    name: str
    color: str
    order: int
    created_at: str

    @classmethod
    def from_dict(cls, data: dict) -> "Category":
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})


@dataclass
class Entry:
    id: str
    category_id: str
    title: str
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    highlight_level: int = 0
    organizer: str = ""
    source: Optional[str] = None
    resource_url: str = ""
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    is_pinned: bool = False
    completed: bool = False
    completed_at: Optional[str] = None
    assignee: str = ""
    order: int = 0
    created_at: str = ""

    @property
    def is_manual(self) -> bool:
        return self.source == SOURCE_MANUAL

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Entry":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        # Legacy records may carry nulls where newer ones carry empty values.
        for name in ("resource_url", "notes", "organizer", "assignee"):
            if values.get(name) is None:
                values[name] = ""
        if values.get("tags") is None:
            values["tags"] = []
        return cls(**values)


@dataclass
class RestoredFields:
    """User-owned enrichment carried from a deleted entry onto its replacement."""

    resource_url: str = ""
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    is_pinned: bool = False
    completed: bool = False
    completed_at: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: Entry) -> "RestoredFields":
        return cls(
            resource_url=entry.resource_url or "",
            notes=entry.notes or "",
            tags=list(entry.tags or []),
            is_pinned=bool(entry.is_pinned),
            completed=bool(entry.completed),
            completed_at=entry.completed_at,
        )

    def has_enrichment(self) -> bool:
        return bool(self.resource_url or self.notes or self.tags)

    def as_updates(self) -> dict:
        return asdict(self)


@dataclass
class NewEntry:
    title: str
    due_date: str
    due_time: Optional[str]
    highlight_level: int = 0
    organizer: str = ""
    source: str = SOURCE_TEAM
    # Id of the deleted entry whose enrichment is restored onto this one.
    restored_from: Optional[str] = None

    def as_fields(self) -> dict:
        return {
            "title": self.title,
            "due_date": self.due_date,
            "due_time": self.due_time,
            "highlight_level": self.highlight_level,
            "organizer": self.organizer,
            "source": self.source,
        }


@dataclass
class NoteInput:
    title: str
    content: str
    is_pinned: bool = True


@dataclass
class Note:
    id: str
    title: str
    content: str = ""
    color: str = "#ffffff"
    is_pinned: bool = False
    is_archived: bool = False
    order: int = 0
    created_at: str = ""
    labels: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ReconcilePlan:
    target_months: Set[Tuple[int, int]] = field(default_factory=set)
    to_delete: List[Entry] = field(default_factory=list)
    to_create: List[NewEntry] = field(default_factory=list)
    to_restore: Dict[str, RestoredFields] = field(default_factory=dict)
    orphan_notes: List[NoteInput] = field(default_factory=list)


@dataclass
class ImportSummary:
    imported: int = 0
    deleted: int = 0
    restored: int = 0
    orphaned: int = 0
    dry_run: bool = False

    def message(self) -> str:
        text = f"{self.imported} entries updated"
        if self.orphaned:
            text += (
                f", {self.orphaned} enrichment records backed up to notes"
                " because their titles/dates changed"
            )
        if self.dry_run:
            text += " (dry run)"
        return text
