"""
Minimal GitHub API client (v3 REST) using stdlib urllib.
"""

from __future__ import annotations

import base64
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any


class GithubClient:
    def __init__(self, api_url: str = "https://api.github.com", token: str | None = None) -> None:
        self.base_api = api_url.rstrip("/")
        self.token = token

    # ----- Helpers -----
    def _url(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = self.base_api + path
        if params:
            url += "?" + urllib.parse.urlencode(params)
        return url

    def _headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": "CharlesBot/1.0",
            "Accept": "application/vnd.github+json",
        }
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def _request(self, method: str, url: str, payload: Any = None) -> Any:
        data = None
        headers = self._headers()
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        elif method == "PUT":
            # GitHub wants an explicit zero length on bodiless PUTs (e.g. starring)
            data = b""
        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        with urllib.request.urlopen(req, timeout=8) as resp:  # nosec B310
            body = resp.read()
        if not body:
            return {}
        return json.loads(body.decode("utf-8"))

    def _get_json(self, url: str) -> Any:
        return self._request("GET", url)

    def _get_json_or_none(self, url: str, missing: tuple[int, ...] = (404,)) -> Any:
        try:
            return self._get_json(url)
        except urllib.error.HTTPError as e:
            if e.code in missing:
                return None
            raise

    # ----- Public APIs -----
    def get_issue(self, repo: str, number: int) -> dict[str, Any]:
        return self._get_json(self._url(f"/repos/{repo}/issues/{int(number)}"))

    def list_comments(self, repo: str, number: int, per_page: int = 100) -> list[dict[str, Any]]:
        url = self._url(f"/repos/{repo}/issues/{int(number)}/comments", {"per_page": per_page})
        data = self._get_json(url)
        return list(data) if isinstance(data, list) else []

    def post_comment(self, repo: str, number: int, body: str) -> dict[str, Any]:
        url = self._url(f"/repos/{repo}/issues/{int(number)}/comments")
        return self._request("POST", url, {"body": body})

    def get_repo(self, repo: str) -> dict[str, Any]:
        return self._get_json(self._url(f"/repos/{repo}"))

    def list_branches(self, repo: str) -> list[dict[str, Any]]:
        data = self._get_json(self._url(f"/repos/{repo}/branches", {"per_page": 100}))
        return list(data) if isinstance(data, list) else []

    def star_repo(self, repo: str) -> None:
        self._request("PUT", self._url(f"/user/starred/{repo}"))

    def get_user(self, login: str) -> dict[str, Any]:
        return self._get_json(self._url(f"/users/{urllib.parse.quote(login)}"))

    def get_org_membership(self, org: str, login: str) -> dict[str, Any] | None:
        """Membership of ``login`` in ``org`` ({"state", "role"}).

        None if not a member, or if the token may not see the org's memberships (403).
        """
        url = self._url(
            f"/orgs/{urllib.parse.quote(org)}/memberships/{urllib.parse.quote(login)}"
        )
        return self._get_json_or_none(url, missing=(403, 404))

    def get_file(self, repo: str, path: str) -> str | None:
        """Decoded text of a file in the default branch, None if it does not exist."""
        data = self._get_json_or_none(self._url(f"/repos/{repo}/contents/{path}"))
        if not isinstance(data, dict) or "content" not in data:
            return None
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    # ----- Gist APIs -----
    def create_gist(self, filename: str, content: str, description: str = "") -> dict[str, Any]:
        payload = {
            "description": description,
            "public": False,
            "files": {filename: {"content": content}},
        }
        return self._request("POST", self._url("/gists"), payload)


class GithubIssue:
    """Reference to one issue; everything the command core reads or writes goes through it."""

    def __init__(self, client: GithubClient, repo_full_name: str, number: int) -> None:
        self.client = client
        self.repo_full_name = repo_full_name
        self.number = int(number)

    def json(self) -> dict[str, Any]:
        return self.client.get_issue(self.repo_full_name, self.number)

    def repo(self) -> dict[str, Any]:
        return self.client.get_repo(self.repo_full_name)

    def branches(self) -> list[str]:
        return [b.get("name", "") for b in self.client.list_branches(self.repo_full_name)]

    def comments(self) -> list[dict[str, Any]]:
        return self.client.list_comments(self.repo_full_name, self.number)

    def post_comment(self, body: str) -> dict[str, Any]:
        return self.client.post_comment(self.repo_full_name, self.number, body)

    def star(self) -> None:
        self.client.star_repo(self.repo_full_name)

    def org_membership(self, org: str, login: str) -> dict[str, Any] | None:
        return self.client.get_org_membership(org, login)

    def file_content(self, path: str) -> str | None:
        return self.client.get_file(self.repo_full_name, path)

    def user(self, login: str) -> dict[str, Any]:
        return self.client.get_user(login)

    def __repr__(self) -> str:
        return f"GithubIssue({self.repo_full_name}#{self.number})"
