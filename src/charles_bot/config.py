"""
Configuration helpers and defaults.

Centralize tunables to avoid magic numbers in code/tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_PHANTOMJS_EXEC = "/usr/local/bin/phantomjs"


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


@dataclass(frozen=True)
class Settings:
    log_root: str
    logs_endpoint: str | None
    phantomjs_exec: str
    agent_login: str
    github_token: str | None
    github_api_url: str
    es_endpoint: str | None
    es_index: str
    aws_region: str | None
    mail_sender: str
    crawl_page_cap: int
    webhook_shared_secret: str | None
    idempotency_bucket: str | None


def load_settings() -> Settings:
    """Load settings from environment with safe defaults for local tests."""

    endpoint = (_env("CHARLES_REST_LOGS_ENDPOINT", "") or "").strip().rstrip("/")

    return Settings(
        log_root=(_env("LOG_ROOT", ".") or ".").rstrip("/"),
        logs_endpoint=endpoint or None,
        phantomjs_exec=_env("PHANTOMJS_EXEC") or DEFAULT_PHANTOMJS_EXEC,
        agent_login=_env("AGENT_LOGIN", "charlesmike") or "charlesmike",
        github_token=_env("GITHUB_TOKEN"),
        github_api_url=(_env("GITHUB_API_URL") or "https://api.github.com").rstrip("/"),
        es_endpoint=_env("ES_ENDPOINT"),
        es_index=_env("ES_INDEX", "charles") or "charles",
        aws_region=_env("AWS_REGION"),
        mail_sender=_env("MAIL_SENDER", "charles@example.com") or "charles@example.com",
        crawl_page_cap=int(_env("CRAWL_PAGE_CAP", "20") or 20),
        webhook_shared_secret=_env("WEBHOOK_SHARED_SECRET"),
        idempotency_bucket=_env("IDEMPOTENCY_BUCKET"),
    )
