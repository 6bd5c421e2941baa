"""Timestamp trailer handling for issue descriptions.

Every description written by the action ends with a trailer such as::

    <body>

    Last updated: 18.10.2026 14:03:27

Comparisons strip that trailer from both sides so a re-run with the same
substantive body never rewrites the issue. Releases before 0.2 wrote the
German label ``Zuletzt aktualisiert``; it is stripped as well.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

import pytz

DEFAULT_LABEL = "Last updated"
LEGACY_LABELS = ("Zuletzt aktualisiert",)
TIMEZONE = pytz.timezone("Europe/Berlin")
TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M:%S"

_LABELS = "|".join(re.escape(label) for label in (DEFAULT_LABEL, *LEGACY_LABELS))
# stamps written by this action (the legacy label used toLocaleString, with a comma)
_STAMP = r"\d{2}\.\d{2}\.\d{4},? \d{2}:\d{2}:\d{2}"
_STAMPED_TRAILERS = re.compile(r"(?:\n\n(?:%s): %s)+\Z" % (_LABELS, _STAMP))
# last line only; `.` never crosses a newline
_LAST_TRAILER = re.compile(r"\n\n(?:%s): .*\Z" % _LABELS)


def strip_timestamp(text: str) -> str:
    """Remove the trailing timestamp trailer.

    Consecutive machine-written stamps go together; otherwise only the final
    trailer is removed, so an earlier "Last updated: ..." paragraph written by
    a person survives.
    """
    text = text or ""
    stripped = _STAMPED_TRAILERS.sub("", text, count=1)
    if stripped != text:
        return stripped
    return _LAST_TRAILER.sub("", text, count=1)


def format_timestamp(moment: datetime | None = None) -> str:
    """Render ``moment`` (default: now) as German local time in Berlin."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(TIMEZONE).strftime(TIMESTAMP_FORMAT)


def stamp_description(text: str, moment: datetime | None = None) -> str:
    return f"{text}\n\n{DEFAULT_LABEL}: {format_timestamp(moment)}"


def descriptions_match(stored: str | None, desired: str | None) -> bool:
    return strip_timestamp(stored or "") == strip_timestamp(desired or "")


__all__ = [
    "DEFAULT_LABEL",
    "strip_timestamp",
    "format_timestamp",
    "stamp_description",
    "descriptions_match",
]
