from __future__ import annotations

from datetime import datetime, timezone

import pytest

from jirastory.description import (
    descriptions_match,
    format_timestamp,
    stamp_description,
    strip_timestamp,
)


@pytest.mark.parametrize(
    "body",
    ["Fix login", "", "multi\nline\n\nbody", "mentions Last updated: inline"],
)
def test_strip_removes_appended_trailer(body: str) -> None:
    assert strip_timestamp(body + "\n\nLast updated: 01.01.2024 10:00:00") == body


def test_strip_is_idempotent() -> None:
    text = "Body\n\nLast updated: 01.01.2024 10:00:00"
    once = strip_timestamp(text)
    assert strip_timestamp(once) == once == "Body"


def test_strip_removes_stacked_stamps() -> None:
    text = "Body\n\nLast updated: 01.01.2024 10:00:00\n\nLast updated: 02.01.2024 10:00:00"
    assert strip_timestamp(text) == "Body"


def test_strip_keeps_written_last_updated_paragraph() -> None:
    body = "Weekly report\n\nLast updated: see changelog"
    assert strip_timestamp(body + "\n\nLast updated: 01.01.2024 10:00:00") == body


def test_strip_removes_only_final_free_text_trailer() -> None:
    text = "Body\n\nLast updated: a\n\nLast updated: b"
    assert strip_timestamp(text) == "Body\n\nLast updated: a"


def test_strip_handles_legacy_german_label() -> None:
    assert strip_timestamp("Body\n\nZuletzt aktualisiert: 01.01.2024, 10:00:00") == "Body"


def test_strip_leaves_trailer_that_is_not_at_the_end() -> None:
    text = "Body\n\nLast updated: yesterday\nmore text"
    assert strip_timestamp(text) == text


def test_strip_requires_blank_line_before_label() -> None:
    text = "Body\nLast updated: 01.01.2024 10:00:00"
    assert strip_timestamp(text) == text


def test_format_timestamp_uses_berlin_time() -> None:
    winter = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
    summer = datetime(2024, 7, 1, 9, 0, 5, tzinfo=timezone.utc)
    assert format_timestamp(winter) == "01.01.2024 10:00:00"
    assert format_timestamp(summer) == "01.07.2024 11:00:05"


def test_format_timestamp_treats_naive_as_utc() -> None:
    assert format_timestamp(datetime(2024, 1, 1, 9, 0, 0)) == "01.01.2024 10:00:00"


def test_stamp_description_appends_to_text_as_given() -> None:
    moment = datetime(2024, 3, 5, 12, 30, 0, tzinfo=timezone.utc)
    stamped = stamp_description("Body", moment)
    assert stamped == "Body\n\nLast updated: 05.03.2024 13:30:00"
    assert strip_timestamp(stamped) == "Body"


def test_stamp_description_keeps_written_last_updated_paragraph() -> None:
    body = "Weekly report\n\nLast updated: see changelog"
    stamped = stamp_description(body, datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc))
    assert stamped == body + "\n\nLast updated: 01.01.2024 10:00:00"
    assert strip_timestamp(stamped) == body


def test_descriptions_match_ignores_trailers_and_none() -> None:
    assert descriptions_match("Fix login\n\nLast updated: 01.01.2024 10:00:00", "Fix login")
    assert not descriptions_match("Fix login\n\nLast updated: x", "Fix login flow")
    assert descriptions_match(None, "")
