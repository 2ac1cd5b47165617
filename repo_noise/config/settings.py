"""
Configuration system using Pydantic for type-safe settings management.

Settings are read once from the process environment (the way GitHub Actions
and cron wrappers inject them) and turned into an immutable RunContext by the
environment resolver. No stage reads the environment directly.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from repo_noise.exceptions import ConfigurationError

DEFAULT_GIT_USER_NAME = "github-actions[bot]"
DEFAULT_GIT_USER_EMAIL = "github-actions[bot]@users.noreply.github.com"

_TRUTHY = {"1", "true", "yes", "on", "y"}

# Environment variable names reported when a mandatory field is missing
_ENV_NAMES = {
    "github_token": "GITHUB_TOKEN",
    "github_repository": "GITHUB_REPOSITORY",
}


def parse_probability(value: Any) -> float:
    """Coerce a probability setting into the closed range [0, 100].

    Non-numeric input maps to 0 so that the gate always fails rather than
    aborting the run.

    Example:
        >>> parse_probability("150")
        100.0
        >>> parse_probability("often")
        0.0
    """
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return min(100.0, max(0.0, number))


def parse_flag(value: Any) -> bool:
    """Interpret an environment flag; anything unrecognised is False."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


class NoiseSettings(BaseSettings):
    """Process-level settings for a single noise run.

    Field names double as environment variable names (case-insensitive),
    except where a ``validation_alias`` names the variable explicitly.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    github_token: SecretStr = Field(..., description="Access token for the GitHub REST API")
    github_repository: str = Field(..., description="Repository identifier in owner/name form")
    default_branch: str | None = Field(default=None, description="Explicit default branch override")
    git_user_name: str = Field(default=DEFAULT_GIT_USER_NAME, description="Committer name")
    git_user_email: str = Field(default=DEFAULT_GIT_USER_EMAIL, description="Committer email")
    issue_probability: float = Field(default=100.0, description="Issue stage gate threshold (0-100)")
    pr_probability: float = Field(default=100.0, description="Change stage gate threshold (0-100)")
    approve_prs: bool = Field(default=False, description="Attempt an approving review")
    reviewers: str = Field(default="", description="Comma-separated reviewer logins to request")
    github_api_url: str = Field(default="https://api.github.com", description="REST API base URL")
    workdir: Path = Field(
        default_factory=Path.cwd,
        validation_alias="NOISE_WORKDIR",
        description="Path of the working copy",
    )

    @field_validator("github_token")
    @classmethod
    def _token_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("github_repository")
    @classmethod
    def _repository_shape(cls, value: str) -> str:
        value = value.strip()
        parts = value.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"expected owner/name, got {value!r}")
        return value

    @field_validator("default_branch", mode="before")
    @classmethod
    def _blank_branch_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("issue_probability", "pr_probability", mode="before")
    @classmethod
    def _clamp_probability(cls, value: Any) -> float:
        return parse_probability(value)

    @field_validator("approve_prs", mode="before")
    @classmethod
    def _parse_approve(cls, value: Any) -> bool:
        return parse_flag(value)

    @field_validator("github_api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def owner(self) -> str:
        return self.github_repository.split("/")[0]

    @property
    def repo_name(self) -> str:
        return self.github_repository.split("/")[1]

    @property
    def reviewer_list(self) -> tuple[str, ...]:
        """Reviewer logins, blanks removed, order preserved."""
        return tuple(login.strip() for login in self.reviewers.split(",") if login.strip())

    @classmethod
    def from_env(cls, **overrides: Any) -> NoiseSettings:
        """Load settings from the environment.

        Args:
            **overrides: Field values that take precedence over the environment

        Returns:
            NoiseSettings instance

        Raises:
            ConfigurationError: If mandatory values are missing or malformed
        """
        try:
            return cls(**overrides)
        except ValidationError as e:
            problems = []
            for error in e.errors():
                field = str(error["loc"][0]) if error["loc"] else "settings"
                name = _ENV_NAMES.get(field, field.upper())
                if error["type"] == "missing":
                    problems.append(f"{name} is not set")
                else:
                    problems.append(f"{name}: {error['msg']}")
            raise ConfigurationError("Invalid configuration: " + "; ".join(problems)) from e
