import base64
import json
import urllib.error
import urllib.request

import pytest

from charles_bot.github import GithubClient, GithubIssue


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def read(self):
        return b"" if self.payload is None else json.dumps(self.payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _serve(monkeypatch, routes):
    sent = []

    def urlopen(req, timeout=None):
        sent.append(req)
        key = (req.get_method(), req.full_url)
        if key not in routes:
            raise urllib.error.HTTPError(req.full_url, 404, "Not Found", {}, None)
        return FakeResponse(routes[key])

    monkeypatch.setattr(urllib.request, "urlopen", urlopen)
    return sent


API = "https://api.github.com"


def test_issue_reads(monkeypatch):
    routes = {
        ("GET", f"{API}/repos/bob/docs"): {"name": "docs", "fork": False, "owner": {"login": "bob"}},
        ("GET", f"{API}/repos/bob/docs/branches?per_page=100"): [{"name": "master"}, {"name": "gh-pages"}],
        ("GET", f"{API}/repos/bob/docs/issues/3/comments?per_page=100"): [{"body": "@charles index"}],
        ("GET", f"{API}/users/bob"): {"login": "bob", "email": "bob@example.com"},
    }
    sent = _serve(monkeypatch, routes)
    issue = GithubIssue(GithubClient(API, token="tok"), "bob/docs", 3)
    assert issue.repo()["name"] == "docs"
    assert issue.branches() == ["master", "gh-pages"]
    assert issue.comments() == [{"body": "@charles index"}]
    assert issue.user("bob")["email"] == "bob@example.com"
    assert sent[0].get_header("Authorization") == "token tok"


def test_post_comment_and_star(monkeypatch):
    routes = {
        ("POST", f"{API}/repos/bob/docs/issues/3/comments"): {"id": 1},
        ("PUT", f"{API}/user/starred/bob/docs"): None,
    }
    sent = _serve(monkeypatch, routes)
    issue = GithubIssue(GithubClient(API), "bob/docs", 3)
    issue.post_comment("@bob done")
    issue.star()
    assert json.loads(sent[0].data) == {"body": "@bob done"}
    assert sent[1].data == b""


def test_charles_yml(monkeypatch):
    content = base64.b64encode(b"commanders:\n  - carol\n").decode()
    routes = {("GET", f"{API}/repos/bob/docs/contents/.charles.yml"): {"content": content}}
    _serve(monkeypatch, routes)
    assert GithubIssue(GithubClient(API), "bob/docs", 3).file_content(".charles.yml") == "commanders:\n  - carol\n"


def test_missing_file_and_membership(monkeypatch):
    _serve(monkeypatch, {})
    issue = GithubIssue(GithubClient(API), "bob/docs", 3)
    assert issue.file_content(".charles.yml") is None
    assert issue.org_membership("acme", "bob") is None


def test_other_http_errors_propagate(monkeypatch):
    def urlopen(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 502, "Bad Gateway", {}, None)

    monkeypatch.setattr(urllib.request, "urlopen", urlopen)
    try:
        GithubClient(API).get_file("bob/docs", ".charles.yml")
    except urllib.error.HTTPError as e:
        assert e.code == 502
    else:
        raise AssertionError("expected HTTPError")


def test_create_gist(monkeypatch):
    sent = _serve(monkeypatch, {("POST", f"{API}/gists"): {"html_url": "https://gist.github.com/x"}})
    gist = GithubClient(API).create_gist("abc.log", "log text")
    assert gist["html_url"] == "https://gist.github.com/x"
    assert json.loads(sent[0].data)["files"] == {"abc.log": {"content": "log text"}}


def test_charles_yml_not_utf8(monkeypatch):
    content = base64.b64encode(b"commanders:\n  - caf\xe9\n").decode()
    routes = {("GET", f"{API}/repos/bob/docs/contents/.charles.yml"): {"content": content}}
    _serve(monkeypatch, routes)
    text = GithubIssue(GithubClient(API), "bob/docs", 3).file_content(".charles.yml")
    assert text == "commanders:\n  - caf\ufffd\n"


def test_membership_hidden_from_token(monkeypatch):
    def urlopen(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 403, "Forbidden", {}, None)

    monkeypatch.setattr(urllib.request, "urlopen", urlopen)
    assert GithubIssue(GithubClient(API), "acme/site", 3).org_membership("acme", "bob") is None


def test_forbidden_repo_still_raises(monkeypatch):
    def urlopen(req, timeout=None):
        raise urllib.error.HTTPError(req.full_url, 403, "Forbidden", {}, None)

    monkeypatch.setattr(urllib.request, "urlopen", urlopen)
    with pytest.raises(urllib.error.HTTPError):
        GithubIssue(GithubClient(API), "acme/site", 3).file_content(".charles.yml")
