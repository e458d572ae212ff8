"""
Replies posted back to the issue where the command was given.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .commands import Command
    from .github import GithubIssue

ERROR_REPLY = (
    "I'm sorry, something went wrong while handling your command. "
    "The logs are [here]({})."
)


class Reply:
    """A message for the issue; ``send()`` posts it at most once.

    ``text`` may be a callable, resolved only when the reply is sent.
    """

    def __init__(self, issue: GithubIssue, text: str | Callable[[], str]) -> None:
        self.issue = issue
        self._text = text
        self.sent = False

    @property
    def text(self) -> str:
        return self._text() if callable(self._text) else self._text

    def send(self) -> bool:
        """Post the reply. Returns False, without posting, if it was already sent."""
        if self.sent:
            return False
        body = self.text
        self.sent = True
        self.issue.post_comment(body)
        return True


class TextReply(Reply):
    def __init__(self, command: Command, text: str | Callable[[], str]) -> None:
        super().__init__(command.issue, text)


class ErrorReply(Reply):
    def __init__(self, logs_address: str, issue: GithubIssue) -> None:
        super().__init__(issue, ERROR_REPLY.format(logs_address))
