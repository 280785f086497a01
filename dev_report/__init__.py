"""
Dev Report - monthly Markdown reports of GitHub releases, merged pull requests and issues.
"""

from .models import DateWindow, FetchError, FetchOk, FormattedRow, RecordKind, RepoTarget, RepositoryReport
from .dates import get_date_window
from .fetcher import ActivityFetcher
from .formatter import format_records, truncate_title
from .markdown import count_rows, render_document, render_table
from .writer import write_report
from .config import ReportConfig, load_config

__all__ = [
    'DateWindow',
    'FetchError',
    'FetchOk',
    'FormattedRow',
    'RecordKind',
    'RepoTarget',
    'RepositoryReport',
    'get_date_window',
    'ActivityFetcher',
    'format_records',
    'truncate_title',
    'count_rows',
    'render_document',
    'render_table',
    'write_report',
    'ReportConfig',
    'load_config'
]
