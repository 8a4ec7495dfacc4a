from datetime import date

from team_sync.models import HighlightRule
from team_sync.parser import (
    detect_year_month,
    parse_schedule_text,
    parse_schedule_text_legacy,
    resolve_highlight,
    split_title,
)


def test_single_record_with_bracket_highlight():
    text = "01 Wed\n09:00 - 10:00\n[대표] Staff Meeting\n이청 / CEO"
    result = parse_schedule_text(text, 2025, 0)
    assert len(result) == 1
    record = result[0]
    assert record.date == date(2025, 1, 1)
    assert record.time == "09:00 - 10:00"
    assert record.title == "Staff Meeting"
    assert record.organizer == "이청 / CEO"
    assert record.highlight_level == 1


def test_full_dump_keeps_source_order(january_dump):
    result = parse_schedule_text(january_dump, 2025, 0)
    assert [(r.date, r.time, r.title, r.highlight_level) for r in result] == [
        (date(2025, 1, 1), "09:00 - 10:00", "Staff Meeting", 1),
        (date(2025, 1, 1), "14:00 - 15:30", "Design Review", 2),
        (date(2025, 1, 3), "종일", "Offsite", 3),
    ]
    assert result[2].organizer == ""


def test_parse_is_deterministic(january_dump):
    assert parse_schedule_text(january_dump, 2025, 0) == parse_schedule_text(january_dump, 2025, 0)


def test_day_drop_advances_month():
    text = "\n".join(
        ["30 Thu", "10:00 - 11:00", "A", "31 Fri", "10:00 - 11:00", "B",
         "01 Sat", "10:00 - 11:00", "C", "02 Sun", "10:00 - 11:00", "D"]
    )
    result = parse_schedule_text(text, 2025, 0)
    assert [r.date for r in result] == [
        date(2025, 1, 30),
        date(2025, 1, 31),
        date(2025, 2, 1),
        date(2025, 2, 2),
    ]


def test_day_drop_wraps_year_in_december():
    text = "\n".join(
        ["30 Mon", "10:00 - 11:00", "A", "31 Tue", "10:00 - 11:00", "B",
         "01 Wed", "10:00 - 11:00", "C", "02 Thu", "10:00 - 11:00", "D"]
    )
    result = parse_schedule_text(text, 2024, 11)
    assert [r.date for r in result] == [
        date(2024, 12, 30),
        date(2024, 12, 31),
        date(2025, 1, 1),
        date(2025, 1, 2),
    ]


def test_first_weekday_matching_next_month_switches_month():
    # 1 Jan 2025 is a Wednesday, 1 Feb 2025 a Saturday.
    result = parse_schedule_text("01 Sat\n09:00 - 10:00\nKickoff", 2025, 0)
    assert result[0].date == date(2025, 2, 1)


def test_first_weekday_matching_target_month_stays():
    result = parse_schedule_text("01 Wed\n09:00 - 10:00\nKickoff", 2025, 0)
    assert result[0].date == date(2025, 1, 1)


def test_weekday_check_is_case_insensitive():
    result = parse_schedule_text("01 SAT\n09:00 - 10:00\nKickoff", 2025, 0)
    assert result[0].date == date(2025, 2, 1)


def test_time_line_before_first_date_is_ignored():
    text = "09:00 - 10:00\nEarly Bird\n01 Wed\n11:00 - 12:00\nReal One"
    result = parse_schedule_text(text, 2025, 0)
    assert [r.title for r in result] == ["Real One"]


def test_orphan_time_line_is_dropped():
    assert parse_schedule_text("01 Wed\n09:00 - 10:00", 2025, 0) == []


def test_time_line_followed_by_marker_produces_no_record():
    text = "01 Wed\n09:00 - 10:00\n10:00 - 11:00\nSecond\n02 Thu"
    result = parse_schedule_text(text, 2025, 0)
    assert len(result) == 1
    assert result[0].time == "10:00 - 11:00"
    assert result[0].title == "Second"
    assert result[0].organizer == ""


def test_organizer_line_is_not_reinterpreted():
    text = "01 Wed\n09:00 - 10:00\nFirst\nhost\n10:00 - 11:00\nSecond\nother host"
    result = parse_schedule_text(text, 2025, 0)
    assert [(r.title, r.organizer) for r in result] == [("First", "host"), ("Second", "other host")]


def test_blank_and_padded_lines_are_ignored():
    text = "\n\n   01 Wed  \n\n  09:00 - 10:00 \n\n  Standup  \n\n"
    result = parse_schedule_text(text, 2025, 0)
    assert len(result) == 1
    assert result[0].title == "Standup"


def test_unparseable_text_yields_nothing():
    assert parse_schedule_text("nothing to see\nhere", 2025, 0) == []
    assert parse_schedule_text("", 2025, 0) == []


def test_bare_time_is_only_accepted_by_legacy_variant():
    text = "01 Wed\n09:00\nCoffee"
    assert parse_schedule_text(text, 2025, 0) == []
    result = parse_schedule_text_legacy(text, 2025, 0)
    assert result[0].time == "09:00"
    assert result[0].title == "Coffee"


def test_legacy_variant_skips_start_month_detection():
    result = parse_schedule_text_legacy("01 Sat\n09:00 - 10:00\nKickoff", 2025, 0)
    assert result[0].date == date(2025, 1, 1)
    assert result[0].time == "09:00 - 10:00"


def test_organizer_name_sets_level_when_bracket_misses():
    text = "01 Wed\n09:00 - 10:00\n[기타] Lunch\n정성욱 / 센터장"
    result = parse_schedule_text(text, 2025, 0)
    assert result[0].title == "Lunch"
    assert result[0].highlight_level == 3


def test_bracket_level_wins_over_organizer():
    assert resolve_highlight("사업부", "이청 / CEO") == 2


def test_bracket_matches_by_substring():
    assert resolve_highlight("대표이사", "") == 1


def test_organizer_matches_exact_name_only():
    assert resolve_highlight(None, "이청수 / 팀장") == 0
    assert resolve_highlight(None, " 이청 ") == 1


def test_injected_rules_replace_defaults():
    rules = [HighlightRule(level=2, brackets=("ALL",), organizers=("Kim",))]
    assert resolve_highlight("ALL HANDS", "", rules) == 2
    assert resolve_highlight("대표", "", rules) == 0
    assert resolve_highlight(None, "Kim / Ops", rules) == 2
    text = "01 Wed\n09:00 - 10:00\n[대표] Staff Meeting"
    assert parse_schedule_text(text, 2025, 0, rules)[0].highlight_level == 0


def test_split_title():
    assert split_title("[대표] Staff Meeting") == ("Staff Meeting", "대표")
    assert split_title("Plain") == ("Plain", None)


def test_detect_year_month():
    assert detect_year_month("Team calendar\n2025. 03\n01 Sat") == (2025, 2)
    assert detect_year_month("2025-12") == (2025, 11)
    assert detect_year_month("2025-13 nothing") is None
    assert detect_year_month("no header") is None
