"""
Markdown rendering module.

This module builds GitHub-Flavored-Markdown tables and the full monthly
report document from per-repository rows.
"""

from typing import List, Mapping, Sequence

from .models import DateWindow, RepositoryReport

NO_DATA_PLACEHOLDER = "# Dev Report: \n\nNo data available."
RULE = "-------------------------------------------------"


def render_table(rows: Sequence[Mapping[str, str]]) -> str:
    """
    Render rows as a pipe table.

    Column headers come from the first row's keys and every row is
    expected to share them. An empty sequence renders the
    NO_DATA_PLACEHOLDER heading instead of a table.
    """
    if not rows:
        return NO_DATA_PLACEHOLDER

    headers = list(rows[0].keys())
    lines: List[str] = []
    lines.append(f"| {' | '.join(headers)} |")
    lines.append(f"| {' | '.join('---' for _ in headers)} |")
    for row in rows:
        lines.append(f"| {' | '.join(str(row[h]) for h in headers)} |")
    return "\n".join(lines) + "\n"


def anchor_for(repo_name: str) -> str:
    return f"#{repo_name.lower()}"


def render_document(reports: Sequence[RepositoryReport], window: DateWindow, title: str) -> str:
    """
    Build the report document.

    Args:
        reports: Per-repository rows, in configuration order
        window: Reporting window, used for the heading
        title: Report title, e.g. "Merged Pull Requests"

    Returns:
        Markdown document with a table of contents and one table per repository
    """
    doc = f"# {title} for {window.month_label} {window.year}\n\n"

    doc += "## Table of Contents\n\n"
    for report in reports:
        doc += f"- [{report.repo_name.upper()}]({anchor_for(report.repo_name)})\n"

    doc += f"\n{RULE}\n"

    for report in reports:
        table = render_table([row.as_dict() for row in report.rows])
        doc += f"\n## {report.repo_name.upper()}\n\n" + table
    return doc


def count_rows(reports: Sequence[RepositoryReport]) -> int:
    """Total rows across all repository reports."""
    return sum(len(report.rows) for report in reports)
