"""
Record formatting module.

Turns raw API records into uniform table rows. Records are read, never
modified.
"""

from typing import Any, Dict, Iterable, List

from .models import FormattedRow, RecordKind

TITLE_LIMIT = 40
TITLE_KEEP = 50
ELLIPSIS = "..."


def truncate_title(title: str) -> str:
    """
    Shorten long titles.

    Titles longer than 40 characters are cut to their first 50 characters
    and suffixed with an ellipsis, so a 41-character title keeps all of its
    text and still gains the suffix.
    """
    if len(title) > TITLE_LIMIT:
        return title[:TITLE_KEEP] + ELLIPSIS
    return title


def markdown_link(text: Any, url: str) -> str:
    return f"[{text}]({url})"


def format_record(record: Dict[str, Any], kind: RecordKind) -> FormattedRow:
    """Build one row; a null timestamp raises AttributeError."""
    url = record["html_url"]
    if kind is RecordKind.RELEASE:
        number = record.get("tag_name")
        title = record.get("name") or record.get("tag_name") or ""
    else:
        number = record["number"]
        title = record["title"]

    return FormattedRow(
        timestamp=record[kind.timestamp_field].split("T")[0],
        num=markdown_link(number, url),
        title=markdown_link(truncate_title(title), url),
        timestamp_label=kind.timestamp_field,
    )


def format_records(records: Iterable[Dict[str, Any]], kind: RecordKind) -> List[FormattedRow]:
    """Format records in their input order."""
    return [format_record(record, kind) for record in records]
