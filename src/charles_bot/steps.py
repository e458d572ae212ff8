"""
Steps: the units of work an action is made of.

Every step answers ``perform(command, logger) -> bool``. Expected failures are
logged and reported as False; transport faults (GitHub or SES unreachable)
propagate to the action runner.
"""

from __future__ import annotations

import logging
import urllib.error
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from botocore.exceptions import ClientError

from .commands import Command
from .crawl import IgnoredPatterns, StaticCrawl, extract_link
from .replies import Reply
from .search import IndexSink

CrawlerFactory = Callable[..., Any]


def repo_key(repo: dict[str, Any]) -> str:
    """Index key of a repository: ``<owner>/<repo>``."""
    return f"{(repo.get('owner') or {}).get('login', '')}/{repo.get('name', '')}"


def site_url(repo: dict[str, Any], gh_pages: bool) -> str:
    """Address of the repository's website.

    ``<owner>.github.io`` repositories are sites on their own; others are
    served from their gh-pages branch under the owner's site.
    """
    name = repo.get("name", "")
    if not gh_pages:
        return f"http://{name}"
    owner = (repo.get("owner") or {}).get("login", "")
    return f"http://{owner}.github.io/{name}"


class Step(ABC):
    @abstractmethod
    def perform(self, command: Command, logger: logging.Logger) -> bool:
        """Run the step; True on success."""


class Steps(Step):
    """Run steps in order, stopping at the first one that fails."""

    def __init__(self, *steps: Step) -> None:
        self.steps = steps

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        for step in self.steps:
            if not step.perform(command, logger):
                return False
        return True


class Fallback(Step):
    """Run ``step``; if it fails, run ``on_failure`` and return its outcome."""

    def __init__(self, step: Step, on_failure: Step) -> None:
        self.step = step
        self.on_failure = on_failure

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        if self.step.perform(command, logger):
            return True
        return self.on_failure.perform(command, logger)


class BestEffort(Step):
    """Run ``step`` and succeed whatever its outcome."""

    def __init__(self, step: Step) -> None:
        self.step = step

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        if not self.step.perform(command, logger):
            logger.warning("%s did not succeed, carrying on", type(self.step).__name__)
        return True


class PreconditionCheck(Step):
    """Branch on ``check()``; the outcome is that of the branch taken."""

    def __init__(self, on_true: Step, on_false: Step) -> None:
        self.on_true = on_true
        self.on_false = on_false

    @abstractmethod
    def check(self, command: Command, logger: logging.Logger) -> bool: ...

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        if self.check(command, logger):
            return self.on_true.perform(command, logger)
        return self.on_false.perform(command, logger)


class FinalStep(Step):
    def __init__(self, message: str, success: bool = False) -> None:
        self.message = message
        self.success = success

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        if self.success:
            logger.info(self.message)
        else:
            logger.error(self.message)
        return self.success


class SendReply(Step):
    def __init__(self, reply: Reply) -> None:
        self.reply = reply

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        logger.info("Sending reply...")
        try:
            if not self.reply.send():
                logger.warning("Reply was already sent, not sending it again")
                return False
        except OSError as e:
            logger.error("Error when sending the reply: %s", e)
            return False
        logger.info("Reply sent successfully!")
        return True


class IndexSite(Step):
    """Crawl the repository's website into the index, keyed ``<owner>/<repo>``."""

    def __init__(
        self,
        index: Any,
        browser: str,
        gh_pages: bool = False,
        page_cap: int = 20,
        crawler: CrawlerFactory = StaticCrawl,
        ignored: IgnoredPatterns | None = None,
    ) -> None:
        self.index = index
        self.browser = browser
        self.gh_pages = gh_pages
        self.page_cap = page_cap
        self.crawler = crawler
        self.ignored = ignored or IgnoredPatterns()

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        repo = command.repo()
        url = site_url(repo, self.gh_pages)
        key = repo_key(repo)
        logger.info("Indexing site %s into %s ...", url, key)
        try:
            sink = IndexSink(self.index, key)
            crawl = self.crawler(url, self.browser, self.ignored, sink, self.page_cap)
            exported = crawl.crawl()
        except Exception as e:
            logger.error("Exception while indexing site %s: %s", url, e, exc_info=True)
            return False
        logger.info("Indexed %s pages of %s", exported, url)
        return True


class IndexPage(Step):
    """Index the single page linked in the command's body."""

    def __init__(
        self,
        index: Any,
        browser: str,
        crawler: CrawlerFactory = StaticCrawl,
        ignored: IgnoredPatterns | None = None,
    ) -> None:
        self.index = index
        self.browser = browser
        self.crawler = crawler
        self.ignored = ignored or IgnoredPatterns()

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        link = extract_link(command.body)
        if not link:
            logger.error("No link to a page found in the command: %s", command.body)
            return False
        key = repo_key(command.repo())
        logger.info("Indexing page %s into %s ...", link, key)
        try:
            crawl = self.crawler(link, self.browser, self.ignored, IndexSink(self.index, key), 1)
            crawl.crawl()
        except Exception as e:
            logger.error("Exception while indexing page %s: %s", link, e, exc_info=True)
            return False
        logger.info("Page %s indexed", link)
        return True


class DeleteIndex(Step):
    def __init__(self, index: Any) -> None:
        self.index = index

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        key = repo_key(command.repo())
        logger.info("Deleting the index of %s ...", key)
        try:
            deleted = self.index.delete(key)
        except Exception as e:
            logger.error("Exception while deleting the index of %s: %s", key, e, exc_info=True)
            return False
        logger.info("Deleted %s documents of %s", deleted, key)
        return True


class StarRepo(Step):
    def perform(self, command: Command, logger: logging.Logger) -> bool:
        logger.info("Starring repository %s ...", command.issue.repo_full_name)
        try:
            command.issue.star()
        except urllib.error.HTTPError as e:
            logger.error("Github refused to star the repository: %s", e)
            return False
        logger.info("Repository starred!")
        return True


class SendEmail(Step):
    """Mail the commander; ``subject`` and ``message`` are built from the command.

    A commander without a public email is not an error: nothing is sent.
    """

    def __init__(
        self,
        mailer: Any,
        subject: Callable[[Command], str],
        message: Callable[[Command], str],
    ) -> None:
        self.mailer = mailer
        self.subject = subject
        self.message = message

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        address = command.author_email()
        if not address:
            logger.info("%s has no public email, no email sent", command.author_login)
            return True
        logger.info("Sending email to %s ...", address)
        try:
            self.mailer.send(address, self.subject(command), self.message(command))
        except ClientError as e:
            logger.error("Email could not be sent: %s", e)
            return False
        logger.info("Email sent!")
        return True
