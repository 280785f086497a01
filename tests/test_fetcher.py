import http.server
import threading
from types import SimpleNamespace

import pytest
import requests
from github import GithubException

from dev_report import fetcher
from dev_report.dates import get_date_window
from dev_report.models import FetchError, FetchOk, RecordKind, RepoTarget


TARGET = RepoTarget(owner="near", repo="core")
WINDOW = get_date_window(2, 2024)


#============================================
def make_stub_fetcher(pages):
    """
    Build ActivityFetcher whose requester answers from `pages`.

    `pages` maps the base branch (or endpoint name) to the raw records
    returned; every request is recorded on `fetcher_obj.calls`.
    """
    fetcher_obj = fetcher.ActivityFetcher.__new__(fetcher.ActivityFetcher)
    fetcher_obj.calls = []

    def request_json(verb, path, parameters=None):
        fetcher_obj.calls.append((verb, path, dict(parameters or {})))
        key = (parameters or {}).get("base") or path.rsplit("/", 1)[-1]
        result = pages[key]
        if isinstance(result, Exception):
            raise result
        return {}, result

    fetcher_obj._requester = SimpleNamespace(requestJsonAndCheck=request_json)
    return fetcher_obj


def pr(number, merged_at):
    return {
        "number": number,
        "title": f"PR {number}",
        "html_url": f"https://github.com/near/core/pull/{number}",
        "merged_at": merged_at,
    }


#============================================
def test_in_window_bounds_are_inclusive() -> None:
    assert fetcher.in_window("2024-02-01T00:00:00Z", WINDOW)
    assert fetcher.in_window("2024-02-29T23:59:59Z", WINDOW)
    assert fetcher.in_window("2024-02-15T12:00:00Z", WINDOW)
    assert not fetcher.in_window("2024-01-31T23:59:59Z", WINDOW)
    assert not fetcher.in_window("2024-03-01T00:00:00Z", WINDOW)
    assert not fetcher.in_window(None, WINDOW)


#============================================
def test_merged_prs_fall_back_to_master_when_main_is_empty() -> None:
    """
    main returns nothing, so master's page is filtered to the window.
    """
    stub = make_stub_fetcher({
        "main": [],
        "master": [
            pr(1, "2024-02-03T10:00:00Z"),
            pr(2, "2024-01-20T10:00:00Z"),
            pr(3, "2024-02-28T10:00:00Z"),
        ],
    })
    result = stub.fetch_merged_prs(TARGET, WINDOW)
    assert isinstance(result, FetchOk)
    assert [r["number"] for r in result.records] == [1, 3]
    assert [c[2]["base"] for c in stub.calls] == ["main", "master"]


#============================================
def test_merged_prs_do_not_query_master_when_main_has_results() -> None:
    stub = make_stub_fetcher({
        "main": [pr(1, "2023-12-01T10:00:00Z"), pr(2, "2024-03-02T10:00:00Z")],
        "master": [pr(3, "2024-02-10T10:00:00Z")],
    })
    result = stub.fetch_merged_prs(TARGET, WINDOW)
    assert result.is_ok
    assert result.records == []
    assert len(stub.calls) == 1


#============================================
def test_merged_prs_skip_closed_unmerged() -> None:
    stub = make_stub_fetcher({"main": [pr(1, None), pr(2, "2024-02-10T10:00:00Z")]})
    result = stub.fetch_merged_prs(TARGET, WINDOW)
    assert [r["number"] for r in result.records] == [2]


#============================================
def test_merged_prs_request_parameters() -> None:
    stub = make_stub_fetcher({"main": [pr(1, "2024-02-10T10:00:00Z")]})
    stub.fetch_merged_prs(TARGET, WINDOW)
    verb, path, params = stub.calls[0]
    assert verb == "GET"
    assert path == "/repos/near/core/pulls"
    assert params == {
        "state": "closed",
        "base": "main",
        "sort": "updated",
        "direction": "desc",
        "per_page": 100,
    }


#============================================
def test_merged_prs_error_becomes_fetch_error() -> None:
    """
    API failures are reported as FetchError, not as an empty list.
    """
    stub = make_stub_fetcher({"main": GithubException(500, {"message": "boom"}, None)})
    result = stub.fetch_merged_prs(TARGET, WINDOW)
    assert isinstance(result, FetchError)
    assert not result.is_ok
    assert "near/core" in result.reason


#============================================
def test_merged_prs_all_branches_empty() -> None:
    stub = make_stub_fetcher({"main": [], "master": []})
    result = stub.fetch_merged_prs(TARGET, WINDOW)
    assert result.is_ok
    assert result.records == []


#============================================
def test_releases_filtered_by_published_at() -> None:
    stub = make_stub_fetcher({
        "releases": [
            {"tag_name": "v2", "published_at": "2024-03-01T00:00:01Z"},
            {"tag_name": "v1", "published_at": "2024-02-29T08:00:00Z"},
            {"tag_name": "draft", "published_at": None},
        ],
    })
    releases = stub.fetch_releases(TARGET, WINDOW)
    assert [r["tag_name"] for r in releases] == ["v1"]
    assert stub.calls[0][2] == {"per_page": 100}


#============================================
def test_issues_exclude_pull_requests() -> None:
    stub = make_stub_fetcher({
        "issues": [
            {"number": 5, "created_at": "2024-02-05T00:00:00Z"},
            {"number": 6, "created_at": "2024-02-06T00:00:00Z", "pull_request": {"url": "x"}},
            {"number": 7, "created_at": "2024-01-06T00:00:00Z"},
        ],
    })
    issues = stub.fetch_issues(TARGET, WINDOW)
    assert [i["number"] for i in issues] == [5]
    assert stub.calls[0][2] == {"state": "all", "sort": "created", "direction": "desc", "per_page": 100}


#============================================
def test_issue_errors_propagate() -> None:
    stub = make_stub_fetcher({"issues": GithubException(404, {"message": "Not Found"}, None)})
    with pytest.raises(GithubException):
        stub.fetch_issues(TARGET, WINDOW)


#============================================
def test_fetch_dispatches_by_kind() -> None:
    stub = make_stub_fetcher({"releases": [{"tag_name": "v1", "published_at": "2024-02-02T00:00:00Z"}]})
    result = stub.fetch(RecordKind.RELEASE, TARGET, WINDOW)
    assert isinstance(result, FetchOk)
    assert len(result.records) == 1


#============================================
def test_merged_prs_transport_error_becomes_fetch_error() -> None:
    stub = make_stub_fetcher({"main": requests.ConnectionError("connection refused")})
    result = stub.fetch_merged_prs(TARGET, WINDOW)
    assert isinstance(result, FetchError)
    assert "connection refused" in result.reason
    assert len(stub.calls) == 1


#============================================
def test_release_errors_propagate() -> None:
    stub = make_stub_fetcher({"releases": GithubException(502, {"message": "Bad Gateway"}, None)})
    with pytest.raises(GithubException):
        stub.fetch_releases(TARGET, WINDOW)


#============================================
def test_success_notice_for_every_kind(capsys) -> None:
    stub = make_stub_fetcher({
        "main": [pr(1, "2024-02-10T10:00:00Z")],
        "releases": [],
        "issues": [],
    })
    for kind in (RecordKind.PULL_REQUEST, RecordKind.RELEASE, RecordKind.ISSUE):
        stub.fetch(kind, TARGET, WINDOW)
    assert capsys.readouterr().out.count("✅ - core") == 3


#============================================
def test_server_error_is_requested_once() -> None:
    """
    A 5xx answer is not retried; it becomes FetchError after one request.
    """
    hits = []

    class FailingHandler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            hits.append(self.path)
            body = b'{"message": "Server Error"}'
            self.send_response(500)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    server = http.server.HTTPServer(("127.0.0.1", 0), FailingHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        api_url = f"http://127.0.0.1:{server.server_address[1]}"
        result = fetcher.ActivityFetcher("tok", api_url=api_url).fetch_merged_prs(TARGET, WINDOW)
    finally:
        server.shutdown()
        server.server_close()

    assert isinstance(result, FetchError)
    assert len(hits) == 1
    assert hits[0].startswith("/repos/near/core/pulls?")
