"""Configuration for the todo CLI and server.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Unlike a typical service config, a token is NOT required at startup: the
`connect` command (or `POST /api/connect`) can supply one, after which it is
remembered in the local connection file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TodoSettings(BaseSettings):
    """Settings for the todo tools.

    Environment variables:
    - TODOS_GITHUB_TOKEN   (optional; overrides the stored connection)
    - TODOS_REPO_OWNER     (optional; overrides the stored connection)
    - TODOS_REPO_NAME      (optional; overrides the stored connection)
    - GITHUB_BASE_URL      (optional)
    - LOG_LEVEL            (optional)
    - LOG_FORMAT           (optional; json or text)
    - TODOS_STATE_PATH     (optional)
    - TODOS_HTTP_TIMEOUT   (optional)
    - TODOS_CORS_ORIGINS   (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `TodoSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="TODOS_GITHUB_TOKEN",
        description="GitHub personal access token",
    )
    repo_owner: str = Field(
        default="",
        validation_alias="TODOS_REPO_OWNER",
        description="Owner (user or org) of the todo repository",
    )
    repo_name: str = Field(
        default="",
        validation_alias="TODOS_REPO_NAME",
        description="Name of the todo repository",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        validation_alias="LOG_FORMAT",
        description="Log record format written to stderr",
    )

    state_path: Path = Field(
        default=Path(".todos"),
        validation_alias="TODOS_STATE_PATH",
        description="Directory where the last successful connection is remembered",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias="TODOS_HTTP_TIMEOUT",
        description="Per-request timeout for GitHub calls",
        gt=0,
    )

    # Dev-friendly CORS for a browser front-end. Override via TODOS_CORS_ORIGINS=...
    cors_origins: str = Field(
        default="http://localhost:5173,http://127.0.0.1:5173",
        validation_alias="TODOS_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    @property
    def connection_state_file(self) -> Path:
        """Path where the last successfully tested connection is persisted."""

        return self.state_path / "connection.json"

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
