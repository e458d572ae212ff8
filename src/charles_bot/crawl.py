"""
Website crawl feeding the search index.

- StaticCrawl: same-host link walk over the pages as served, up to a page cap.
  Links that cannot be fetched are skipped; an unreadable start page fails the crawl.
"""

from __future__ import annotations

import logging
import re
import urllib.parse
import urllib.request
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Any, Protocol

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://[^\s<>()\[\]\"']+")


def is_http_url(s: str) -> bool:
    try:
        u = urllib.parse.urlparse(s)
        return u.scheme in ("http", "https") and bool(u.netloc)
    except Exception:
        return False


def extract_link(text: str | None) -> str | None:
    """First http(s) link in a comment body, trailing punctuation dropped."""
    if not text:
        return None
    for m in URL_RE.finditer(text):
        url = m.group(0).rstrip(".,;:!?")
        if is_http_url(url):
            return url
    return None


@dataclass(frozen=True)
class Page:
    url: str
    title: str
    text: str
    category: str = "page"

    def to_doc(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "textContent": self.text,
            "category": self.category,
        }


class IgnoredPatterns:
    """Links that are never followed (anchors, mail, downloads)."""

    DEFAULT = ("#", "mailto:", "javascript:", ".pdf", ".zip", ".png", ".jpg", ".gif", ".svg")

    def __init__(self, patterns: Iterable[str] | None = None) -> None:
        self.patterns = tuple(patterns) if patterns is not None else self.DEFAULT

    def ignored(self, url: str) -> bool:
        u = url.lower()
        return any(p in u for p in self.patterns)


class _PageParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.links: list[str] = []
        self.title = ""
        self._chunks: list[str] = []
        self._in_title = False
        self._skip = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "a":
            href = dict(attrs).get("href")
            if href:
                self.links.append(href)
        elif tag == "title":
            self._in_title = True
        elif tag in ("script", "style"):
            self._skip += 1

    def handle_endtag(self, tag: str) -> None:
        if tag == "title":
            self._in_title = False
        elif tag in ("script", "style") and self._skip:
            self._skip -= 1

    def handle_data(self, data: str) -> None:
        if self._in_title:
            self.title += data
        elif not self._skip and data.strip():
            self._chunks.append(data.strip())

    @property
    def text(self) -> str:
        return " ".join(self._chunks)


class Sink(Protocol):
    def export(self, pages: list[Page]) -> int: ...


class StaticCrawl:
    """Walk the site from ``url``, staying on its host, exporting at most ``page_cap`` pages.

    ``browser`` is the headless browser executable configured for the agent;
    pages are read as served, so it is only reported in the crawl's repr.
    """

    def __init__(
        self,
        url: str,
        browser: str,
        ignored: IgnoredPatterns,
        sink: Sink,
        page_cap: int = 20,
    ) -> None:
        self.url = url
        self.browser = browser
        self.ignored = ignored
        self.sink = sink
        self.page_cap = max(1, int(page_cap))

    def _fetch(self, url: str) -> str:
        req = urllib.request.Request(url, headers={"User-Agent": "CharlesBot/1.0"})
        with urllib.request.urlopen(req, timeout=10) as resp:  # nosec B310
            ctype = resp.headers.get("Content-Type", "")
            if "html" not in ctype:
                return ""
            charset = resp.headers.get_content_charset() or "utf-8"
            return resp.read().decode(charset, errors="replace")

    def crawl(self) -> int:
        """Crawl and export; returns the number of pages exported."""
        host = urllib.parse.urlparse(self.url).netloc
        queue = deque([self.url])
        seen = {self.url}
        pages: list[Page] = []
        while queue and len(pages) < self.page_cap:
            url = queue.popleft()
            try:
                html = self._fetch(url)
            except OSError as e:
                if url == self.url:
                    raise
                logger.warning("Skipping %s: %s", url, e)
                continue
            if not html:
                continue
            parser = _PageParser()
            parser.feed(html)
            pages.append(Page(url=url, title=parser.title.strip(), text=parser.text))
            for href in parser.links:
                if self.ignored.ignored(href):
                    continue
                nxt = urllib.parse.urljoin(url, href).split("#", 1)[0]
                if nxt in seen or not is_http_url(nxt):
                    continue
                if urllib.parse.urlparse(nxt).netloc != host:
                    continue
                seen.add(nxt)
                queue.append(nxt)
        if not pages:
            raise RuntimeError(f"no pages could be read from {self.url}")
        return self.sink.export(pages)

    def __repr__(self) -> str:
        return f"StaticCrawl({self.url}, browser={self.browser}, cap={self.page_cap})"
