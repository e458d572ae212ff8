"""
AWS Lambda handler for GitHub Webhook (issue_comment created) -> Action.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any

from . import commands
from .action import Action
from .config import Settings, load_settings
from .github import GithubClient, GithubIssue
from .idempotency import marker_key, s3_record_if_new
from .knowledge import Conversation, Dispatch
from .mail import SesMailer
from .search import EsIndex

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)
    root = logging.getLogger()
    if root.level and root.level > level:
        root.setLevel(level)


def _rid(context: Any) -> str | None:
    try:
        return getattr(context, "aws_request_id", None)
    except Exception:
        return None


def _log(msg: str, **fields: Any) -> None:
    try:
        rec = {"msg": msg, **fields}
        logger.info(json.dumps(rec, ensure_ascii=False))
    except Exception:
        # Fallback to plain log
        logger.info("%s | %s", msg, fields)


def _response(status: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False),
    }


def _raw_body(event: dict[str, Any]) -> bytes:
    body = event.get("body") or b""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def _get_header(event: dict[str, Any], name: str) -> str | None:
    headers = event.get("headers") or {}
    for k, v in headers.items():
        if k.lower() == name.lower():
            return v
    return None


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature_header)


def build_brain(settings: Settings):
    """Knowledge factory for actions: a Conversation over the command dispatch."""
    index = EsIndex(settings.es_endpoint or "", settings.es_index, settings.aws_region)
    mailer = SesMailer(settings.mail_sender, settings.aws_region)
    dispatch = Dispatch(settings, index, mailer)
    return lambda logs: Conversation(logs, dispatch)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    _configure_logging()
    settings = load_settings()
    start_ts = time.time()
    raw = _raw_body(event)

    # 1) Verify webhook signature
    if settings.webhook_shared_secret:
        supplied = _get_header(event, "X-Hub-Signature-256")
        if not verify_signature(settings.webhook_shared_secret, raw, supplied):
            _log("auth_failed", rid=_rid(context), reason="signature_mismatch")
            return _response(401, {"error": "unauthorized"})

    # 2) Only new issue comments are commands
    gh_event = _get_header(event, "X-GitHub-Event")
    try:
        payload = json.loads(raw.decode("utf-8") or "{}")
    except Exception:
        payload = {}
    if gh_event != "issue_comment" or payload.get("action") != "created":
        _log("ignored_event", rid=_rid(context), event=gh_event, action=payload.get("action"))
        return _response(200, {"result": "ignored"})

    comment = payload.get("comment") or {}
    issue = payload.get("issue") or {}
    repo = (payload.get("repository") or {}).get("full_name")
    number = issue.get("number")
    if not comment or not repo or number is None:
        _log("ignored_no_comment_or_issue", rid=_rid(context), repo=repo, issue=number)
        return _response(200, {"result": "ignored"})

    # 3) Mention detection (the action re-validates against the live issue)
    author = commands.comment_author(comment)
    if author.lower() == settings.agent_login.lower():
        _log("ignored_own_comment", rid=_rid(context), repo=repo, issue=number)
        return _response(200, {"result": "ignored"})
    if not commands.is_agent_mentioned(comment.get("body"), settings.agent_login):
        _log("ignored_no_mention", rid=_rid(context), repo=repo, issue=number)
        return _response(200, {"result": "ignored"})

    # 4) Idempotency
    if settings.idempotency_bucket:
        marker = marker_key(repo, number, comment.get("id") or "")
        if not s3_record_if_new(settings.idempotency_bucket, marker):
            _log("duplicate_ignored", rid=_rid(context), repo=repo, issue=number)
            return _response(200, {"result": "duplicate_ignored"})

    # 5) Collaborators
    if not settings.github_token:
        _log("config_error_missing_github_token", rid=_rid(context))
        return _response(500, {"error": "GITHUB_TOKEN not found"})
    if not settings.es_endpoint:
        _log("config_error_missing_es_endpoint", rid=_rid(context))
        return _response(500, {"error": "ES_ENDPOINT not found"})
    gh = GithubClient(settings.github_api_url, settings.github_token)
    gh_issue = GithubIssue(gh, repo, int(number))

    # 6) Take the action
    try:
        action = Action(build_brain(settings), gh_issue, settings.agent_login, settings)
    except OSError as e:
        logger.exception("Action setup failed")
        _log("action_setup_error", rid=_rid(context), error=str(e))
        return _response(500, {"error": f"action setup failed: {e}"})
    action.take()
    action.join()
    _log(
        "ok",
        rid=_rid(context),
        repo=repo,
        issue=number,
        action=action.id,
        ms_total=int((time.time() - start_ts) * 1000),
    )
    return _response(200, {"result": "ok", "action": action.id})
