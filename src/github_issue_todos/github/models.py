"""Pydantic models for the subset of the GitHub REST payloads we consume."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

IssueState = Literal["open", "closed"]


class _GitHubModel(BaseModel):
    # GitHub payloads are large; keep only the fields declared below.
    model_config = ConfigDict(extra="ignore")


class RepositoryRef(BaseModel):
    """An ``owner/name`` pair identifying a GitHub repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> RepositoryRef:
        """Parse ``"owner/name"`` (surrounding slashes and whitespace are ignored)."""

        normalized = value.strip().strip("/")
        owner, sep, name = normalized.partition("/")
        if not sep or not owner.strip() or not name.strip() or "/" in name:
            raise ValueError("repository must be in the form 'owner/repo'")
        return cls(owner=owner.strip(), name=name.strip())

    def __str__(self) -> str:
        return self.full_name


class Label(_GitHubModel):
    name: str
    color: str = ""
    description: str | None = None


class GitHubUser(_GitHubModel):
    login: str


class Comment(_GitHubModel):
    id: int
    user: GitHubUser | None = None
    body: str = ""
    created_at: datetime


class Issue(_GitHubModel):
    number: int
    title: str
    body: str | None = None
    state: IssueState
    created_at: datetime
    updated_at: datetime
    html_url: str = ""
    labels: list[Label] = Field(default_factory=list)

    # Present only when the "issue" is actually a pull request.
    pull_request: dict[str, Any] | None = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]


class ConnectionInfo(_GitHubModel):
    """Result of a successful connection test."""

    login: str
    repository: str
