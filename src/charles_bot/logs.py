"""
Where the log of an action can be read by the user.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol

from .github import GithubClient


class LogsLocation(Protocol):
    def address(self) -> str: ...


class LogsOnServer:
    """Logs served by the charles-rest endpoint, one file per action."""

    def __init__(self, endpoint: str, filename: str) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.filename = filename

    def address(self) -> str:
        return f"{self.endpoint}/{self.filename}"


class LogsInGist:
    """Logs published as a secret gist.

    The gist is created with the file's content the first time the address
    is asked for; later calls return the same URL.
    """

    def __init__(self, path: str | Path, github: GithubClient) -> None:
        self.path = Path(path)
        self.github = github
        self._url: str | None = None
        self._lock = threading.Lock()

    def address(self) -> str:
        with self._lock:
            if self._url is None:
                content = self.path.read_text(encoding="utf-8") or "(empty log)"
                gist = self.github.create_gist(
                    self.path.name, content, description="Charles action log"
                )
                self._url = str(gist.get("html_url") or "")
            return self._url
