from charles_bot.commands import Command
from charles_bot.logs import LogsInGist, LogsOnServer
from charles_bot.replies import ErrorReply, TextReply
from fakes import FakeClient, FakeIssue, comment, make_repo


def test_logs_on_server():
    logs = LogsOnServer("https://charles.example.com/logs/", "abc.log")
    assert logs.address() == "https://charles.example.com/logs/abc.log"


def test_logs_in_gist_published_once(tmp_path):
    path = tmp_path / "abc.log"
    path.write_text("2016-10-10T10:00:00.000+00:00 Action_abc - Started action abc\n", encoding="utf-8")
    client = FakeClient()
    logs = LogsInGist(path, client)
    assert client.gists == []
    first = logs.address()
    second = logs.address()
    assert first == second == "https://gist.github.com/charles/1"
    assert client.gists == [("abc.log", path.read_text(encoding="utf-8"))]


def test_reply_sent_at_most_once():
    issue = FakeIssue(make_repo("alice", "alice.github.io"))
    reply = ErrorReply("https://logs/abc.log", issue)
    assert reply.send() is True
    assert reply.send() is False
    assert issue.posted == [reply.text]
    assert "https://logs/abc.log" in reply.text


def test_lazy_reply_text():
    issue = FakeIssue(make_repo("alice", "alice.github.io"))
    calls = []
    reply = TextReply(Command(issue, comment("alice", "@charles hi"), "charles"), lambda: calls.append(1) or "hi")
    assert calls == []
    reply.send()
    assert calls == [1]
    assert issue.posted == ["hi"]
