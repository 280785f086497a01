#!/usr/bin/env python3
"""
Main driver script for the activity report generator.

This script provides the command-line interface and coordinates all modules
to build a monthly Markdown report for the configured repositories.

Usage (example):
    python -m dev_report.main --month 2 --year 2024 --kind prs --config settings.yaml --email
"""

import argparse
import datetime
import logging
import sys
from typing import List, Optional, Tuple

from .config import DEFAULT_SETTINGS_PATH, ReportConfig, load_config
from .dates import get_date_window, previous_month
from .fetcher import ActivityFetcher
from .formatter import format_records
from .mailer import send_report
from .markdown import count_rows, render_document
from .models import DateWindow, RecordKind, RepositoryReport
from .writer import report_filename, write_report

# Set up logging
logger = logging.getLogger("dev-report")

KIND_CHOICES = {
    "prs": RecordKind.PULL_REQUEST,
    "issues": RecordKind.ISSUE,
    "releases": RecordKind.RELEASE,
}


def build_reports(
    fetcher: ActivityFetcher,
    config: ReportConfig,
    kind: RecordKind,
    window: DateWindow,
) -> Tuple[List[RepositoryReport], List[str]]:
    """
    Fetch and format every configured repository in order.

    A repository whose fetch fails is left out of the report and its name
    is returned in the failure list.
    """
    reports: List[RepositoryReport] = []
    failed: List[str] = []
    for target in config.repositories:
        try:
            result = fetcher.fetch(kind, target, window)
        except Exception as e:
            logger.error("Failed to fetch %s for %s: %s", kind.heading.lower(), target.full_name, e)
            failed.append(target.full_name)
            continue

        if not result.is_ok:
            logger.warning("Skipping %s: %s", target.full_name, result.reason)
            failed.append(target.full_name)
            continue

        rows = format_records(result.records, kind)
        reports.append(RepositoryReport(repo_name=target.repo, rows=rows, owner=target.owner))
    return reports, failed


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the report generator.

    Parses command line arguments, fetches activity for each configured
    repository, writes the Markdown report and optionally emails it.
    """
    default_month, default_year = previous_month(datetime.date.today())

    parser = argparse.ArgumentParser(description="Generate a monthly GitHub activity report.")
    parser.add_argument("--month", "-m", type=int, default=default_month, help="Report month (1-12), defaults to last month")
    parser.add_argument("--year", "-y", type=int, default=default_year, help="Report year")
    parser.add_argument("--kind", "-k", choices=sorted(KIND_CHOICES), default="prs", help="Record kind to report")
    parser.add_argument("--config", "-c", default=DEFAULT_SETTINGS_PATH, help="YAML settings file")
    parser.add_argument("--token", "-t", required=False, help="GitHub token (overrides settings and GITHUB_TOKEN)")
    parser.add_argument("--output", "-o", required=False, help="Output Markdown filename")
    parser.add_argument("--email", action="store_true", help="Email the report using the mail settings")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args.config)
        if args.token:
            config.token = args.token
        kind = KIND_CHOICES[args.kind]
        window = get_date_window(args.month, args.year)

        logger.info(
            "Building %s report for %s %d (%s to %s)",
            kind.heading.lower(), window.month_label, window.year, window.start_date, window.end_date,
        )
        fetcher = ActivityFetcher(token=config.token, api_url=config.api_url)
        reports, failed = build_reports(fetcher, config, kind, window)

        title = config.title or kind.heading
        document = render_document(reports, window, title)
        path = args.output or report_filename(window, kind, config.output_dir)
        write_report(path, document)
        logger.info("%d %s across %d repositories", count_rows(reports), kind.heading.lower(), len(reports))

        if args.email:
            if config.mail is None:
                logger.error("--email given but no mail settings configured")
                sys.exit(1)
            subject = f"{title} for {window.month_label} {window.year}"
            send_report(config.mail, subject, document, path)

        if failed:
            logger.error("Report incomplete, failed repositories: %s", ", ".join(failed))
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Report generation interrupted by user")
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        logger.error("Report generation failed: %s", e)
        print(f"Error: report generation failed - {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
