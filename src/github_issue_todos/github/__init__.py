"""GitHub REST API access: the client and the payload models it returns."""

from github_issue_todos.github.client import GitHubApiError, GitHubAuthError, GitHubClient
from github_issue_todos.github.models import Comment, Issue, Label, RepositoryRef

__all__ = [
    "Comment",
    "GitHubApiError",
    "GitHubAuthError",
    "GitHubClient",
    "Issue",
    "Label",
    "RepositoryRef",
]
