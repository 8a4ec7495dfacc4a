from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .models import HighlightRule

load_dotenv()


class ConfigError(Exception):
    pass


WEEKDAY_ABBREVIATIONS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

ALL_DAY_MARKER = "종일"

DEFAULT_TEAM_CATEGORY = "팀 일정"

# Level 1 (blue), level 2 (green), level 3 (purple). Order matters: first match wins.
DEFAULT_HIGHLIGHT_RULES = [
    HighlightRule(level=1, brackets=("대표",), organizers=("이청",)),
    HighlightRule(level=2, brackets=("사업부",), organizers=("이주형",)),
    HighlightRule(level=3, brackets=("센터",), organizers=("정성욱",)),
]

CATEGORY_COLORS = [
    "#3b82f6",
    "#22c55e",
    "#ef4444",
    "#f97316",
    "#a855f7",
    "#ec4899",
    "#06b6d4",
    "#eab308",
]


@dataclass
class Settings:
    store_path: str
    team_category: str
    timezone: ZoneInfo
    highlight_rules: List[HighlightRule] = field(default_factory=lambda: list(DEFAULT_HIGHLIGHT_RULES))


def get_timezone() -> ZoneInfo:
    tz_name = os.getenv("TIMEZONE", "Asia/Seoul")
    try:
        return ZoneInfo(tz_name)
    except Exception:
        logging.warning("Invalid TIMEZONE %s, falling back to Asia/Seoul", tz_name)
        return ZoneInfo("Asia/Seoul")


def load_highlight_rules(path: str) -> List[HighlightRule]:
    """Read a highlight table from a JSON list of {level, brackets, organizers} objects."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read highlight rules from '{path}': {exc}") from exc
    if not isinstance(raw, list):
        raise ConfigError(f"Highlight rules in '{path}' must be a list")

    rules: List[HighlightRule] = []
    for item in raw:
        if not isinstance(item, dict) or "level" not in item:
            raise ConfigError(f"Invalid highlight rule {item!r}")
        level = item["level"]
        if level not in (1, 2, 3):
            raise ConfigError(f"Highlight level must be 1, 2 or 3, got {level!r}")
        rules.append(
            HighlightRule(
                level=level,
                brackets=tuple(item.get("brackets", [])),
                organizers=tuple(item.get("organizers", [])),
            )
        )
    return rules


def get_settings(rules_file: Optional[str] = None) -> Settings:
    rules_file = rules_file or os.getenv("HIGHLIGHT_RULES_FILE")
    rules = load_highlight_rules(rules_file) if rules_file else list(DEFAULT_HIGHLIGHT_RULES)
    settings = Settings(
        store_path=os.getenv("TEAM_SYNC_STORE", "team_sync_data.json"),
        team_category=os.getenv("TEAM_CATEGORY_NAME", DEFAULT_TEAM_CATEGORY),
        timezone=get_timezone(),
        highlight_rules=rules,
    )
    if not settings.team_category.strip():
        logging.warning("TEAM_CATEGORY_NAME is empty, using %s", DEFAULT_TEAM_CATEGORY)
        settings.team_category = DEFAULT_TEAM_CATEGORY
    return settings
