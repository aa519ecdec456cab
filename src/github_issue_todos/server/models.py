"""Request/response models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from github_issue_todos.labels import Priority


class ConnectRequest(BaseModel):
    """Connection details; omitted fields fall back to env settings / the stored connection."""

    token: str | None = None
    owner: str | None = None
    name: str | None = None


class ConnectionResponse(BaseModel):
    connected: bool
    login: str | None = None
    repository: str | None = None


class RepositoryRequest(BaseModel):
    owner: str = Field(min_length=1)
    name: str = Field(min_length=1)


class CreateTodoRequest(BaseModel):
    title: str
    description: str = ""
    priority: Priority = Priority.LOW
    labels: list[str] = Field(default_factory=list)


class UpdateTodoRequest(BaseModel):
    """Full-field edit; ``labels`` must be the complete label set."""

    title: str | None = None
    body: str | None = None
    labels: list[str] | None = None


class SetLabelsRequest(BaseModel):
    labels: list[str]


class CommentRequest(BaseModel):
    body: str


class CreateLabelRequest(BaseModel):
    name: str = Field(min_length=1)
    color: str
    description: str = ""
