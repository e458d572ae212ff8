"""
Charles GitHub agent (command-handling core).

Where: AWS Lambda via Function URL (GitHub webhook target), or any caller that hands over issues.
What:  Validate the @mention in an issue's last comment, dispatch it through a step graph, reply.
Why:   Let repository owners index their Github Pages websites from an issue comment.
"""

__all__ = [
    "action",
    "checks",
    "commands",
    "config",
    "crawl",
    "github",
    "handler",
    "idempotency",
    "knowledge",
    "language",
    "logs",
    "mail",
    "replies",
    "search",
    "steps",
]
