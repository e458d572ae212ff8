"""
Amazon SES minimal wrapper for plain-text mail.
"""

from __future__ import annotations

import importlib


def _boto3():
    # Allow tests to monkeypatch module-level `boto3` symbol.
    return globals().get("boto3") or importlib.import_module("boto3")


def _ses_client(region: str | None = None):
    if region:
        return _boto3().client("ses", region_name=region)
    return _boto3().client("ses")


class SesMailer:
    def __init__(self, sender: str, region: str | None = None) -> None:
        self.sender = sender
        self.region = region

    def send(self, address: str, subject: str, body: str) -> str:
        """Send a plain-text email, returning the SES message id."""
        resp = _ses_client(self.region).send_email(
            Source=self.sender,
            Destination={"ToAddresses": [address]},
            Message={
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": body, "Charset": "UTF-8"}},
            },
        )
        return resp.get("MessageId", "")
