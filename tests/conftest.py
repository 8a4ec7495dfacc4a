"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Add the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from team_sync.config import DEFAULT_HIGHLIGHT_RULES, DEFAULT_TEAM_CATEGORY, Settings  # noqa: E402
from team_sync.store import JsonStore  # noqa: E402

SEOUL = ZoneInfo("Asia/Seoul")


@pytest.fixture
def tz():
    return SEOUL


@pytest.fixture
def store(tmp_path):
    """Empty JSON store in a temporary directory."""
    return JsonStore(tmp_path / "store.json")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        store_path=str(tmp_path / "store.json"),
        team_category=DEFAULT_TEAM_CATEGORY,
        timezone=SEOUL,
        highlight_rules=list(DEFAULT_HIGHLIGHT_RULES),
    )


@pytest.fixture
def january_dump():
    """Agenda text as copied from the scheduling tool for January 2025."""
    return "\n".join(
        [
            "2025. 01",
            "Agenda",
            "01 Wed",
            "09:00 - 10:00",
            "[대표] Staff Meeting",
            "이청 / CEO",
            "",
            "14:00 - 15:30",
            "Design Review",
            "이주형 / 사업부장",
            "03 Fri",
            "종일",
            "[센터] Offsite",
            "",
        ]
    )
