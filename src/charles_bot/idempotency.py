"""
Delivery de-duplication using S3.

GitHub may deliver the same comment event more than once; one empty marker
object per comment makes sure only the first delivery takes an action.
"""

from __future__ import annotations

import importlib

MARKER_PREFIX = "comments/"


def _boto3():
    # Allow tests to monkeypatch module-level `boto3` symbol.
    return globals().get("boto3") or importlib.import_module("boto3")


def marker_key(repo: str, issue_number: int, comment_id: int | str) -> str:
    return f"{MARKER_PREFIX}{repo}/{int(issue_number)}/{comment_id}"


def s3_record_if_new(bucket: str, key: str) -> bool:
    """Return True if recorded now (i.e., first time), False if already exists."""
    s3 = _boto3().client("s3")
    try:
        s3.head_object(Bucket=bucket, Key=key)
        return False
    except Exception:
        # head_object raises (404) for a missing marker
        pass
    s3.put_object(Bucket=bucket, Key=key, Body=b"")
    return True
