"""
Commands: the last comment of an issue, addressed to the agent.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .github import GithubIssue
    from .language import Language


class NoCommand(ValueError):
    """The last comment is not a fresh mention of the agent."""


def comment_author(comment: dict[str, Any]) -> str:
    return str((comment.get("user") or {}).get("login") or "")


def is_agent_mentioned(body: str | None, agent_login: str) -> bool:
    if not body or not agent_login:
        return False
    pattern = r"(?<![\w-])@" + re.escape(agent_login) + r"(?![\w-])"
    return re.search(pattern, body, re.IGNORECASE) is not None


def last_comment(issue: GithubIssue) -> dict[str, Any] | None:
    comments = issue.comments()
    return comments[-1] if comments else None


class Command:
    def __init__(self, issue: GithubIssue, comment: dict[str, Any], agent_login: str) -> None:
        self.issue = issue
        self.comment = comment
        self.agent_login = agent_login
        self._type: str | None = None
        self._language: Language | None = None
        self._email: str | None = None
        self._email_resolved = False
        self._repo: dict[str, Any] | None = None

    @property
    def author_login(self) -> str:
        return comment_author(self.comment)

    @property
    def body(self) -> str:
        return str(self.comment.get("body") or "")

    @property
    def created_at(self) -> str:
        return str(self.comment.get("created_at") or "")

    @property
    def type(self) -> str:
        if self._type is None:
            raise RuntimeError("command has not been understood yet")
        return self._type

    @property
    def language(self) -> Language:
        if self._language is None:
            raise RuntimeError("command has not been understood yet")
        return self._language

    @property
    def understood(self) -> bool:
        return self._type is not None

    def understand(self, cmd_type: str, language: Language) -> None:
        """Assign (type, language); allowed only once."""
        if self._type is not None:
            raise RuntimeError(
                f"command already understood as {self._type!r} in {self._language!r}"
            )
        self._type = cmd_type
        self._language = language

    def author_email(self) -> str | None:
        """Public email of the commander, fetched on first use."""
        if not self._email_resolved:
            self._email = (self.issue.user(self.author_login) or {}).get("email") or None
            self._email_resolved = True
        return self._email

    def repo(self) -> dict[str, Any]:
        """Repository metadata, read once per command."""
        if self._repo is None:
            self._repo = self.issue.repo()
        return self._repo

    def __repr__(self) -> str:
        return f"Command({self.issue!r}, author={self.author_login!r}, type={self._type!r})"


def valid_command(issue: GithubIssue, agent_login: str) -> Command:
    """Build the Command from the issue's last comment.

    Only the last comment is examined: if the agent wrote it, it has already
    replied. Raises NoCommand when there is nothing to act on.
    """
    comment = last_comment(issue)
    if comment is None:
        raise NoCommand("issue has no comments")
    if comment_author(comment).lower() == agent_login.lower():
        raise NoCommand("agent already replied to the last comment")
    if not is_agent_mentioned(comment.get("body"), agent_login):
        raise NoCommand("last comment does not mention the agent")
    return Command(issue, comment, agent_login)
