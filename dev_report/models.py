"""
Data models for the activity report generator.

This module contains the shared data structures used across all modules.
"""

import datetime
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List


class RecordKind(enum.Enum):
    """Kind of activity record, with the endpoint and timestamp it uses."""

    RELEASE = ("releases", "published_at", "Releases", "releases")
    PULL_REQUEST = ("pulls", "merged_at", "Merged Pull Requests", "merged-prs")
    ISSUE = ("issues", "created_at", "Issues", "issues")

    def __init__(self, endpoint: str, timestamp_field: str, heading: str, slug: str) -> None:
        self.endpoint = endpoint
        self.timestamp_field = timestamp_field
        self.heading = heading
        self.slug = slug


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range covering one calendar month."""
    start_date: datetime.date
    end_date: datetime.date
    month_label: str
    year: int
    two_digit_month: str


@dataclass(frozen=True)
class RepoTarget:
    """One configured repository."""
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class FormattedRow:
    """One table row derived from a raw activity record."""
    timestamp: str
    num: str
    title: str
    timestamp_label: str = "merged_at"

    def as_dict(self) -> Dict[str, str]:
        return {
            self.timestamp_label: self.timestamp,
            "num": self.num,
            "title": self.title,
        }


@dataclass
class RepositoryReport:
    """Formatted rows for a single repository."""
    repo_name: str
    rows: List[FormattedRow] = field(default_factory=list)
    owner: str = ""


@dataclass(frozen=True)
class FetchOk:
    """Successful fetch; `records` may be empty."""
    records: List[Dict[str, Any]]

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchError:
    """Failed fetch with a human-readable reason."""
    reason: str

    @property
    def is_ok(self) -> bool:
        return False
