"""Pull request source engine — GitHub reads and writes for one repository."""

from clabot.engines.pull_requests.github_client import GitHubClient
from clabot.engines.pull_requests.models import PullRequest
from clabot.engines.pull_requests.patch_parser import extract_author_email
from clabot.engines.pull_requests.source import PullRequestSource

__all__ = [
    "GitHubClient",
    "PullRequest",
    "PullRequestSource",
    "extract_author_email",
]
