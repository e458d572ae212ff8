"""
Precondition checks on the commander and the repository.
"""

from __future__ import annotations

import logging

import yaml

from .commands import Command
from .steps import PreconditionCheck, Step

CHARLES_YML = ".charles.yml"


def _owner(command: Command) -> dict:
    return command.repo().get("owner") or {}


class AuthorOwnerCheck(PreconditionCheck):
    """Is the commander the owner of the repository?"""

    def check(self, command: Command, logger: logging.Logger) -> bool:
        owner = str(_owner(command).get("login") or "")
        logger.info("Checking if %s is the owner of the repo...", command.author_login)
        if owner.lower() == command.author_login.lower():
            logger.info("Commander is the repo owner")
            return True
        logger.info("Commander is not the repo owner (%s)", owner)
        return False


class OrganizationAdminCheck(PreconditionCheck):
    """Is the commander an active admin of the organization owning the repository?"""

    def check(self, command: Command, logger: logging.Logger) -> bool:
        owner = _owner(command)
        if owner.get("type") != "Organization":
            logger.info("Repo is not owned by an organization")
            return False
        org = str(owner.get("login") or "")
        logger.info("Checking if %s is an admin of %s...", command.author_login, org)
        membership = command.issue.org_membership(org, command.author_login) or {}
        if membership.get("state") == "active" and membership.get("role") == "admin":
            logger.info("Commander is an active admin of %s", org)
            return True
        logger.info("Commander is not an active admin of %s", org)
        return False


class CommandersCheck(PreconditionCheck):
    """Is the commander listed under ``commanders`` in the repo's .charles.yml?"""

    def check(self, command: Command, logger: logging.Logger) -> bool:
        logger.info("Checking the commanders in %s...", CHARLES_YML)
        content = command.issue.file_content(CHARLES_YML)
        if content is None:
            logger.info("No %s in the repo", CHARLES_YML)
            return False
        try:
            conf = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            logger.error("Invalid %s: %s", CHARLES_YML, e)
            return False
        commanders = conf.get("commanders") if isinstance(conf, dict) else None
        if not isinstance(commanders, list):
            logger.info("No commanders specified in %s", CHARLES_YML)
            return False
        author = command.author_login.lower()
        if any(str(c).strip().lstrip("@").lower() == author for c in commanders):
            logger.info("Commander is listed in %s", CHARLES_YML)
            return True
        logger.info("Commander is not listed in %s", CHARLES_YML)
        return False


class RepoForkCheck(PreconditionCheck):
    """True branch for an original repository, false branch for a fork."""

    def check(self, command: Command, logger: logging.Logger) -> bool:
        logger.info("Checking if the repo is a fork...")
        if command.repo().get("fork"):
            logger.info("Repo is a fork")
            return False
        logger.info("Repo is not a fork")
        return True


class RepoNameCheck(PreconditionCheck):
    """Is the repository named ``<owner>.github.io``?"""

    def check(self, command: Command, logger: logging.Logger) -> bool:
        name = str(command.repo().get("name") or "")
        expected = f"{_owner(command).get('login', '')}.github.io"
        logger.info("Checking repository name %s...", name)
        if name.lower() == expected.lower():
            logger.info("Repository is a website on its own")
            return True
        logger.info("Repository name does not match %s", expected)
        return False


class GhPagesBranchCheck(PreconditionCheck):
    def check(self, command: Command, logger: logging.Logger) -> bool:
        logger.info("Checking for a gh-pages branch...")
        if "gh-pages" in command.issue.branches():
            logger.info("Found gh-pages branch")
            return True
        logger.info("No gh-pages branch")
        return False


class RepoOwnershipCheck(Step):
    """May the commander give privileged commands on this repository?

    Owner, organization admin or listed commander, and the repository must not
    be a fork. ``on_fork`` defaults to ``on_false``.
    """

    def __init__(self, on_true: Step, on_false: Step, on_fork: Step | None = None) -> None:
        fork_check = RepoForkCheck(on_true, on_fork if on_fork is not None else on_false)
        self.check = AuthorOwnerCheck(
            fork_check,
            OrganizationAdminCheck(
                fork_check,
                CommandersCheck(fork_check, on_false),
            ),
        )

    def perform(self, command: Command, logger: logging.Logger) -> bool:
        return self.check.perform(command, logger)
