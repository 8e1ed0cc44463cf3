"""
iCalendar export for workshops.
"""

from datetime import datetime
from typing import Optional

from gurmania.utils.dates import utcnow

LINE_LIMIT = 75  # octets, CRLF excluded


def format_ics_date(dt: datetime) -> str:
    """Naive UTC datetime -> 20250115T123000Z."""
    return dt.strftime("%Y%m%dT%H%M%SZ")


def fold_line(line: str) -> str:
    """
    Fold a content line so no physical line exceeds 75 UTF-8 octets.
    Continuation lines start with a single space, which counts towards the
    limit. Multi-byte characters are never split.
    """
    chunks = []
    current = ""
    size = 0
    for char in line:
        width = len(char.encode("utf-8"))
        if size + width > LINE_LIMIT:
            chunks.append(current)
            current, size = " ", 1
        current += char
        size += width
    chunks.append(current)
    return "\r\n".join(chunks)


def _escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", " ")
        .replace("\n", " ")
    )


def workshop_ics(
    *,
    workshop_id: str,
    title: str,
    description: Optional[str],
    start: datetime,
    end: datetime,
    join_url: str,
    now: Optional[datetime] = None,
) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Gurmania//Workshops//EN",
        "CALSCALE:GREGORIAN",
        "BEGIN:VEVENT",
        f"UID:{workshop_id}@gurmania",
        f"DTSTAMP:{format_ics_date(now or utcnow())}",
        f"DTSTART:{format_ics_date(start)}",
        f"DTEND:{format_ics_date(end)}",
        f"SUMMARY:{_escape(title)}",
        f"DESCRIPTION:{_escape(description or 'Live workshop')}",
        f"LOCATION:{join_url}",
        f"URL:{join_url}",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(fold_line(line) for line in lines) + "\r\n"
