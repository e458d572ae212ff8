"""
Elasticsearch (Amazon ES) document client using stdlib urllib.

Documents of one repository share the ``repo`` field ``<owner>/<repo>``.
Requests are SigV4-signed through botocore when a region is given.
"""

from __future__ import annotations

import hashlib
import importlib
import json
import urllib.request
from collections.abc import Iterable
from typing import Any

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest

from .crawl import Page


def _boto3():
    # Allow tests to monkeypatch module-level `boto3` symbol.
    return globals().get("boto3") or importlib.import_module("boto3")


def doc_id(key: str, url: str) -> str:
    return hashlib.sha1(f"{key} {url}".encode()).hexdigest()


class EsIndex:
    def __init__(self, endpoint: str, index: str = "charles", region: str | None = None) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.index = index
        self.region = region

    # ----- Helpers -----
    def _sign(self, method: str, url: str, body: bytes, headers: dict[str, str]) -> dict[str, str]:
        creds = _boto3().Session().get_credentials()
        req = AWSRequest(method=method, url=url, data=body, headers=headers)
        SigV4Auth(creds, "es", self.region).add_auth(req)
        return dict(req.headers.items())

    def _post(self, path: str, body: bytes, content_type: str) -> Any:
        url = self.endpoint + path
        headers = {"Content-Type": content_type, "User-Agent": "CharlesBot/1.0"}
        if self.region:
            headers = self._sign("POST", url, body, headers)
        req = urllib.request.Request(url, data=body, headers=headers, method="POST")
        with urllib.request.urlopen(req, timeout=30) as resp:  # nosec B310
            data = resp.read()
        return json.loads(data.decode("utf-8")) if data else {}

    # ----- Public APIs -----
    def upsert(self, key: str, pages: Iterable[Page]) -> int:
        """Index (or overwrite) pages under ``key``. Returns the number sent."""
        lines: list[str] = []
        for page in pages:
            lines.append(json.dumps({"index": {"_index": self.index, "_id": doc_id(key, page.url)}}))
            lines.append(json.dumps({"repo": key, **page.to_doc()}, ensure_ascii=False))
        if not lines:
            return 0
        body = ("\n".join(lines) + "\n").encode("utf-8")
        res = self._post("/_bulk", body, "application/x-ndjson")
        if res.get("errors"):
            raise RuntimeError(f"bulk indexing reported errors for {key}")
        return len(lines) // 2

    def delete(self, key: str) -> int:
        """Delete every document of ``key``. Returns the number deleted."""
        query = {"query": {"term": {"repo.keyword": key}}}
        res = self._post(
            f"/{self.index}/_delete_by_query",
            json.dumps(query).encode("utf-8"),
            "application/json",
        )
        return int(res.get("deleted", 0) or 0)


class IndexSink:
    """Where a crawl exports its pages: one repository's slice of the index."""

    def __init__(self, index: Any, key: str) -> None:
        self.index = index
        self.key = key

    def export(self, pages: list[Page]) -> int:
        return self.index.upsert(self.key, pages)
