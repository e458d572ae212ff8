import logging
import urllib.error

import pytest

from charles_bot.checks import (
    AuthorOwnerCheck,
    CommandersCheck,
    GhPagesBranchCheck,
    OrganizationAdminCheck,
    RepoForkCheck,
    RepoNameCheck,
    RepoOwnershipCheck,
)
from charles_bot.commands import Command
from charles_bot.steps import FinalStep
from fakes import FakeIssue, comment, make_repo

log = logging.getLogger("test.checks")

YES = FinalStep("yes", success=True)
NO = FinalStep("no")


def _command(author, repo, **issue_kw):
    return Command(FakeIssue(repo, **issue_kw), comment(author, "@charles index"), "charles")


def test_author_owner_check():
    repo = make_repo("Alice", "alice.github.io")
    assert AuthorOwnerCheck(YES, NO).perform(_command("alice", repo), log) is True
    assert AuthorOwnerCheck(YES, NO).perform(_command("mallory", repo), log) is False


def test_organization_admin_check():
    repo = make_repo("acme", "acme.github.io", org=True)
    memberships = {
        ("acme", "root"): {"state": "active", "role": "admin"},
        ("acme", "newbie"): {"state": "pending", "role": "admin"},
        ("acme", "dev"): {"state": "active", "role": "member"},
    }
    check = OrganizationAdminCheck(YES, NO)
    assert check.perform(_command("root", repo, memberships=memberships), log) is True
    assert check.perform(_command("newbie", repo, memberships=memberships), log) is False
    assert check.perform(_command("dev", repo, memberships=memberships), log) is False
    assert check.perform(_command("stranger", repo, memberships=memberships), log) is False


def test_organization_admin_check_user_repo():
    repo = make_repo("alice", "alice.github.io")
    memberships = {("alice", "bob"): {"state": "active", "role": "admin"}}
    assert OrganizationAdminCheck(YES, NO).perform(_command("bob", repo, memberships=memberships), log) is False


@pytest.mark.parametrize(
    "content,expect",
    [
        ("commanders:\n  - bob\n  - carol\n", True),
        ("commanders:\n  - '@Bob'\n", True),
        ("commanders:\n  - carol\n", False),
        ("commanders: bob\n", False),
        ("other: 1\n", False),
        ("commanders: [bob\n", False),
        (None, False),
    ],
)
def test_commanders_check(content, expect):
    files = {".charles.yml": content} if content is not None else {}
    com = _command("bob", make_repo("alice", "alice.github.io"), files=files)
    assert CommandersCheck(YES, NO).perform(com, log) is expect


def test_fork_check():
    fork = make_repo("alice", "alice.github.io", fork=True)
    assert RepoForkCheck(YES, NO).perform(_command("alice", fork), log) is False
    assert RepoForkCheck(YES, NO).perform(_command("alice", make_repo("alice", "x")), log) is True


def test_repo_name_check():
    assert RepoNameCheck(YES, NO).perform(_command("alice", make_repo("alice", "Alice.GitHub.io")), log)
    assert not RepoNameCheck(YES, NO).perform(_command("bob", make_repo("bob", "docs")), log)


def test_gh_pages_branch_check():
    repo = make_repo("bob", "docs")
    assert GhPagesBranchCheck(YES, NO).perform(_command("bob", repo, branches=["master", "gh-pages"]), log)
    assert not GhPagesBranchCheck(YES, NO).perform(_command("bob", repo), log)


class TestRepoOwnershipCheck:
    def _perform(self, author, repo, **issue_kw):
        trail = []

        class Mark(FinalStep):
            def perform(self, command, logger):
                trail.append(self.message)
                return super().perform(command, logger)

        check = RepoOwnershipCheck(Mark("ok", True), Mark("denied"), Mark("fork"))
        check.perform(_command(author, repo, **issue_kw), log)
        return trail

    def test_owner(self):
        assert self._perform("alice", make_repo("alice", "site")) == ["ok"]

    def test_owner_of_fork(self):
        assert self._perform("alice", make_repo("alice", "site", fork=True)) == ["fork"]

    def test_org_admin(self):
        memberships = {("acme", "root"): {"state": "active", "role": "admin"}}
        repo = make_repo("acme", "site", org=True)
        assert self._perform("root", repo, memberships=memberships) == ["ok"]

    def test_commander(self):
        files = {".charles.yml": "commanders:\n  - carol\n"}
        assert self._perform("carol", make_repo("alice", "site"), files=files) == ["ok"]

    def test_stranger(self):
        assert self._perform("mallory", make_repo("alice", "site")) == ["denied"]

    def test_stranger_on_fork_is_denied_as_commander(self):
        assert self._perform("mallory", make_repo("alice", "site", fork=True)) == ["denied"]

    def test_fork_defaults_to_on_false(self):
        check = RepoOwnershipCheck(YES, NO)
        com = _command("alice", make_repo("alice", "site", fork=True))
        assert check.perform(com, log) is False


def test_github_fault_propagates():
    com = _command("alice", make_repo("alice", "site"), fail_repo=True)
    with pytest.raises(urllib.error.URLError):
        RepoOwnershipCheck(YES, NO).perform(com, log)
