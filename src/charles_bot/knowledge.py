"""
Knowledge: what the agent does for a command.

Conversation understands the command and wraps whatever its followup
produces, so the user hears about any failure in their own language.
Dispatch knows the step graph of each command type.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from .checks import GhPagesBranchCheck, RepoNameCheck, RepoOwnershipCheck
from .commands import Command
from .config import Settings
from .crawl import IgnoredPatterns, StaticCrawl
from .language import ENGLISH, Language, match
from .logs import LogsLocation
from .replies import TextReply
from .steps import (
    BestEffort,
    CrawlerFactory,
    DeleteIndex,
    Fallback,
    FinalStep,
    IndexPage,
    IndexSite,
    SendEmail,
    SendReply,
    StarRepo,
    Step,
    Steps,
)

logger = logging.getLogger(__name__)


class Knowledge(Protocol):
    def handle(self, command: Command) -> Step: ...


class Conversation:
    def __init__(self, logs: LogsLocation, followup: Knowledge, *languages: Language) -> None:
        self.logs = logs
        self.followup = followup
        self.languages = languages or (ENGLISH,)

    def handle(self, command: Command) -> Step:
        cmd_type, lang = match(command, self.languages)
        command.understand(cmd_type, lang)
        logger.debug("understood %r as %s (%s)", command, cmd_type, lang.name)
        return self.wrap(self.followup.handle(command), command)

    def wrap(self, steps: Step, command: Command) -> Step:
        """On failure, tell the commander where the logs are."""

        def failure_text() -> str:
            return command.language.response("step.failure.comment").format(
                command.author_login, self.logs.address()
            )

        return Fallback(
            steps,
            Steps(
                SendReply(TextReply(command, failure_text)),
                FinalStep("[ERROR] Some step didn't execute properly."),
            ),
        )


class Dispatch:
    """Command type -> step graph. The graph's shape depends only on the type."""

    def __init__(
        self,
        settings: Settings,
        index: Any,
        mailer: Any,
        crawler: CrawlerFactory = StaticCrawl,
        ignored: IgnoredPatterns | None = None,
    ) -> None:
        self.settings = settings
        self.index = index
        self.mailer = mailer
        self.crawler = crawler
        self.ignored = ignored or IgnoredPatterns()

    def handle(self, command: Command) -> Step:
        builders = {
            "hello": self.hello,
            "indexsite": self.index_site,
            "indexpage": self.index_page,
            "deleteindex": self.delete_index,
        }
        return builders.get(command.type, self.unknown)(command)

    # ----- Replies -----
    def reply(self, command: Command, key: str) -> Step:
        text = command.language.response(key).format(command.author_login)
        return SendReply(TextReply(command, text))

    def denial(self, command: Command, key: str) -> Step:
        text = command.language.response(key).format("@" + command.author_login)
        return SendReply(TextReply(command, text))

    def owned(self, command: Command, action: Step) -> Step:
        return RepoOwnershipCheck(
            action,
            self.denial(command, "denied.commander.comment"),
            self.denial(command, "denied.fork.comment"),
        )

    # ----- Command types -----
    def hello(self, command: Command) -> Step:
        return self.reply(command, "hello.comment")

    def unknown(self, command: Command) -> Step:
        return self.reply(command, "unknown.comment")

    def index_site(self, command: Command) -> Step:
        followup = Steps(
            BestEffort(StarRepo()),
            SendEmail(self.mailer, confirmation_subject, confirmation_message),
        )

        def crawl(gh_pages: bool) -> Step:
            return Steps(
                IndexSite(
                    self.index,
                    self.settings.phantomjs_exec,
                    gh_pages=gh_pages,
                    page_cap=self.settings.crawl_page_cap,
                    crawler=self.crawler,
                    ignored=self.ignored,
                ),
                followup,
            )

        site = RepoNameCheck(
            crawl(gh_pages=False),
            GhPagesBranchCheck(
                crawl(gh_pages=True),
                self.denial(command, "denied.name.comment"),
            ),
        )
        return self.owned(command, site)

    def index_page(self, command: Command) -> Step:
        page = Steps(
            IndexPage(
                self.index,
                self.settings.phantomjs_exec,
                crawler=self.crawler,
                ignored=self.ignored,
            ),
            self.reply(command, "index.page.comment"),
        )
        return self.owned(command, page)

    def delete_index(self, command: Command) -> Step:
        delete = Steps(DeleteIndex(self.index), self.reply(command, "index.deleted.comment"))
        return self.owned(command, delete)


def confirmation_subject(command: Command) -> str:
    return f"Repo {command.repo().get('name', '')} successfully indexed"


def confirmation_message(command: Command) -> str:
    try:
        issue_url = command.issue.json().get("html_url") or "#"
    except OSError as e:
        logger.error("Error when getting the issue url for the confirmation email: %s", e)
        issue_url = "#"
    return command.language.response("index.confirmation.email").format(
        issue_url,
        command.author_login,
        command.repo().get("name", ""),
        command.agent_login,
    )
