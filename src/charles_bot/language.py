"""
Spoken languages: a rule-based classifier plus the reply templates.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .commands import Command

UNKNOWN = "unknown"
COMMAND_TYPES = ("indexsite", "indexpage", "deleteindex", "hello", UNKNOWN)

MENTION_RE = re.compile(r"@[\w-]+")


class Language:
    """A named classifier (ordered regex rules) and its response templates.

    Rules are tried in order; the first pattern found in the body, with
    @mentions stripped, gives the command type.
    """

    def __init__(
        self,
        name: str,
        rules: Sequence[tuple[str, re.Pattern[str]]],
        responses: dict[str, str],
    ) -> None:
        self.name = name
        self.rules = tuple(rules)
        self.responses = dict(responses)

    def categorize(self, command: Command) -> str:
        return self.categorize_text(command.body)

    def categorize_text(self, body: str | None) -> str:
        text = MENTION_RE.sub(" ", body or "")
        for cmd_type, pattern in self.rules:
            if pattern.search(text):
                return cmd_type
        return UNKNOWN

    def response(self, key: str) -> str:
        try:
            return self.responses[key]
        except KeyError:
            raise KeyError(f"{self.name} has no response for {key!r}") from None

    def __repr__(self) -> str:
        return f"Language({self.name})"


ENGLISH = Language(
    "english",
    [
        ("deleteindex", re.compile(r"\b(delete|remove)\b.*\bindex\b", re.IGNORECASE | re.DOTALL)),
        ("indexpage", re.compile(r"\bindex\b.*https?://\S+", re.IGNORECASE | re.DOTALL)),
        ("indexsite", re.compile(r"\bindex\b", re.IGNORECASE)),
        ("hello", re.compile(r"\b(hello|hi|hey)\b", re.IGNORECASE)),
    ],
    {
        "hello.comment": (
            "Hi @{}! I can index your Github Pages website so it becomes searchable. "
            "Just ask me to `index` it."
        ),
        "unknown.comment": (
            "@{} I'm sorry, I do not understand. Say `hello` to see what I can do."
        ),
        "denied.commander.comment": (
            "{} I'm sorry, only the owner of this repository (or a commander "
            "listed in `.charles.yml`) can give me that command."
        ),
        "denied.name.comment": (
            "{} I can only index repositories named `<owner>.github.io` "
            "or repositories with a `gh-pages` branch."
        ),
        "denied.fork.comment": "{} I'm sorry, I do not work with forked repositories.",
        "step.failure.comment": (
            "@{} Something went wrong and I could not finish your command. "
            "The logs are [here]({})."
        ),
        "index.page.comment": "@{} The page has been indexed.",
        "index.deleted.comment": "@{} The index of this repository has been deleted.",
        "index.confirmation.email": (
            "Hello {1},\n\n"
            "Following your command in {0}, I have indexed the website of "
            "repository {2}.\n\n"
            "Best regards,\n{3}"
        ),
    },
)


def match(command: Command, languages: Sequence[Language]) -> tuple[str, Language]:
    """Return (type, language) of the first language that understands the command.

    Falls back to (unknown, first language) when none does.
    """
    if not languages:
        raise ValueError("at least one language is required")
    for lang in languages:
        cmd_type = lang.categorize(command)
        if cmd_type != UNKNOWN:
            return cmd_type, lang
    return UNKNOWN, languages[0]
