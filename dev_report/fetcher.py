"""
GitHub activity fetching module.

This module handles all GitHub API interactions for fetching releases,
merged pull requests and issues of a repository inside a reporting window.
Each call reads a single page of up to 100 records through the PyGithub
requester and filters it client-side by timestamp.
"""

import datetime
import logging
from typing import Any, Dict, List, Optional, Union

import requests

from .models import DateWindow, FetchError, FetchOk, RecordKind, RepoTarget

# External libs
try:
    from github import Auth, Github, GithubException
except Exception as e:
    raise RuntimeError("PyGithub is required. Install with: pip install PyGithub") from e

# Set up logging
logger = logging.getLogger("dev-report.fetcher")

DEFAULT_API_URL = "https://api.github.com"
PAGE_SIZE = 100
BASE_BRANCHES = ("main", "master")

FetchResult = Union[FetchOk, FetchError]


def parse_timestamp(value: str) -> datetime.datetime:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def in_window(value: Optional[str], window: DateWindow) -> bool:
    """
    Check whether a timestamp falls inside the window.

    Both bounds are inclusive and compared on the UTC calendar date.
    Missing timestamps are never inside.
    """
    if not value:
        return False
    day = parse_timestamp(value).date()
    return window.start_date <= day <= window.end_date


class ActivityFetcher:
    """
    Fetch releases, merged pull requests and issues from GitHub.

    Args:
        token: Personal access token sent as a bearer credential.
        api_url: Base URL of the GitHub REST API.
    """

    def __init__(self, token: Optional[str], api_url: str = DEFAULT_API_URL) -> None:
        try:
            auth = Auth.Token(token) if token else None
            self._g = Github(auth=auth, base_url=api_url, per_page=PAGE_SIZE, retry=None)
            self._requester = self._g.requester
            logger.debug("GitHub client initialized (authenticated=%s, api_url=%s)", bool(token), api_url)
        except Exception as e:
            logger.error("Failed to initialize GitHub client: %s", e)
            raise RuntimeError(f"GitHub client initialization failed: {e}") from e

    def _get_page(self, target: RepoTarget, kind: RecordKind, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Request the first page of one endpoint and return the raw records."""
        path = f"/repos/{target.owner}/{target.repo}/{kind.endpoint}"
        query = dict(params)
        query["per_page"] = PAGE_SIZE
        logger.debug("GET %s %s", path, query)
        _headers, data = self._requester.requestJsonAndCheck("GET", path, parameters=query)
        return list(data or [])

    def fetch_releases(self, target: RepoTarget, window: DateWindow) -> List[Dict[str, Any]]:
        """
        Fetch releases published inside the window.

        Errors are not caught here; they abort the caller's report for
        this repository.
        """
        page = self._get_page(target, RecordKind.RELEASE, {})
        releases = [r for r in page if in_window(r.get("published_at"), window)]
        logger.info("Fetched %d releases for %s", len(releases), target.full_name)
        print(f" ✅ - {target.repo} ")
        return releases

    def fetch_issues(self, target: RepoTarget, window: DateWindow) -> List[Dict[str, Any]]:
        """
        Fetch issues created inside the window.

        The issues endpoint also lists pull requests; those carry a
        `pull_request` marker and are dropped.
        """
        page = self._get_page(
            target,
            RecordKind.ISSUE,
            {"state": "all", "sort": "created", "direction": "desc"},
        )
        issues = [
            i for i in page
            if not i.get("pull_request") and in_window(i.get("created_at"), window)
        ]
        logger.info("Fetched %d issues for %s", len(issues), target.full_name)
        print(f" ✅ - {target.repo} ")
        return issues

    def fetch_merged_prs(self, target: RepoTarget, window: DateWindow) -> FetchResult:
        """
        Fetch pull requests merged inside the window.

        Base branches are tried in order and the first one returning any
        closed pull request wins, even if none of them were merged inside
        the window.

        Returns:
            FetchOk with the matching records, or FetchError if the API
            call failed.
        """
        try:
            for base in BASE_BRANCHES:
                page = self._get_page(
                    target,
                    RecordKind.PULL_REQUEST,
                    {"state": "closed", "base": base, "sort": "updated", "direction": "desc"},
                )
                if page:
                    merged = [pr for pr in page if in_window(pr.get("merged_at"), window)]
                    logger.info("Fetched %d merged PRs for %s (base=%s)", len(merged), target.full_name, base)
                    print(f" ✅ - {target.repo} ")
                    return FetchOk(merged)
        except (GithubException, requests.RequestException) as e:
            reason = f"Error fetching PRs for {target.full_name}: {e}"
            logger.error(reason)
            return FetchError(reason)

        logger.info("No closed PRs on %s for %s", "/".join(BASE_BRANCHES), target.full_name)
        return FetchOk([])

    def fetch(self, kind: RecordKind, target: RepoTarget, window: DateWindow) -> FetchResult:
        """
        Fetch one record kind for a repository.

        Only the merged PR fetch turns errors into FetchError; release and
        issue errors propagate.
        """
        if kind is RecordKind.PULL_REQUEST:
            return self.fetch_merged_prs(target, window)
        if kind is RecordKind.RELEASE:
            return FetchOk(self.fetch_releases(target, window))
        return FetchOk(self.fetch_issues(target, window))
