"""
Action: one handling of a mention, on its own worker thread.

Each action logs into ``<LOG_ROOT>/ActionsLogs/<id>.log``; the address of that
log is what the user gets when something goes wrong.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from botocore.exceptions import BotoCoreError

from .commands import NoCommand, valid_command
from .config import Settings
from .github import GithubIssue
from .knowledge import Knowledge
from .logs import LogsInGist, LogsLocation, LogsOnServer
from .replies import ErrorReply, Reply

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(name)s - %(message)s"

# GitHub (urllib) and SES (botocore) I/O faults
TRANSPORT_FAULTS = (OSError, BotoCoreError)


class IsoFormatter(logging.Formatter):
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ts.isoformat(timespec="milliseconds")


def action_log_path(log_root: str, action_id: str) -> Path:
    return Path(f"{log_root}/ActionsLogs/{action_id}.log")


class Action:
    """Handle the last comment of ``issue``.

    ``brain`` builds the Knowledge for the action from its logs location.
    The constructor fails if the log file cannot be created.
    """

    def __init__(
        self,
        brain: Callable[[LogsLocation], Knowledge],
        issue: GithubIssue,
        agent_login: str,
        settings: Settings,
    ) -> None:
        self.id = str(uuid.uuid4())
        self.brain = brain
        self.issue = issue
        self.agent_login = agent_login
        self.log_path = action_log_path(settings.log_root, self.id)
        self.logger, self._handler = self._setup_logger()
        try:
            if settings.logs_endpoint:
                self.logs: LogsLocation = LogsOnServer(settings.logs_endpoint, f"{self.id}.log")
            else:
                self.logs = LogsInGist(self.log_path, issue.client)
        except Exception:
            self.close()
            raise
        self._thread: threading.Thread | None = None

    def _setup_logger(self) -> tuple[logging.Logger, logging.Handler]:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_path.touch()
        handler = logging.FileHandler(self.log_path, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(IsoFormatter(LOG_FORMAT))
        # Not registered with logging.getLogger: the registry would keep one logger per action.
        action_logger = logging.Logger(f"Action_{self.id}", logging.DEBUG)
        action_logger.addHandler(handler)
        return action_logger, handler

    def take(self) -> threading.Thread:
        """Run the action on its own thread."""
        self._thread = threading.Thread(target=self.run, name=self.id)
        self._thread.start()
        return self._thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        log = self.logger
        logger.info("action %s started on %r", self.id, self.issue)
        try:
            log.info("Started action %s", self.id)
            command = valid_command(self.issue, self.agent_login)
            log.info("Received command: %s", command.body)
            steps = self.brain(self.logs).handle(command)
            if steps.perform(command, log):
                log.info("Finished action %s", self.id)
            else:
                log.error("Some steps did not execute successfully! Check above for details.")
        except NoCommand:
            log.info(
                "No command found in the issue or the agent has already replied to the last command!"
            )
        except TRANSPORT_FAULTS as e:
            log.error("Action failed with %s: %s", type(e).__name__, e, exc_info=True)
            self._send_reply(lambda: ErrorReply(self.logs.address(), self.issue))
        except Exception as e:
            log.error("Unexpected %s: %s", type(e).__name__, e, exc_info=True)
            self._send_reply(lambda: ErrorReply(self.logs.address(), self.issue))
        finally:
            self.close()
            logger.info("action %s done", self.id)

    def _send_reply(self, reply: Callable[[], Reply]) -> None:
        try:
            reply().send()
        except Exception:
            self.logger.exception("FAILED TO REPLY!")

    def close(self) -> None:
        self.logger.removeHandler(self._handler)
        self._handler.close()
