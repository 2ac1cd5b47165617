"""Custom exception hierarchy for repo-noise.

Exception Hierarchy:
    RepoNoiseError (base)
    ├── ConfigurationError
    ├── GitOperationError
    ├── PlatformError
    │   └── TransientPlatformError
    └── StageError

Example Usage:
    >>> from repo_noise.exceptions import ConfigurationError
    >>> try:
    ...     settings = NoiseSettings.from_env()
    ... except ConfigurationError as e:
    ...     print(e.message)
"""


class RepoNoiseError(Exception):
    """Base exception for all repo-noise errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(RepoNoiseError):
    """Mandatory configuration is missing or malformed.

    Examples:
        - GITHUB_TOKEN not set
        - GITHUB_REPOSITORY not in owner/name form
    """

    pass


class GitOperationError(RepoNoiseError):
    """A git command exited non-zero.

    Attributes:
        command: The argv that was executed
        returncode: Process exit code
        stderr: Captured standard error (may be empty when streamed)
    """

    def __init__(
        self,
        message: str,
        command: tuple[str, ...] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr

        full_message = message
        if returncode is not None:
            full_message = f"{message} (exit {returncode})"
        if stderr.strip():
            full_message = f"{full_message}: {stderr.strip()}"

        super().__init__(full_message)
        self.message = message


class PlatformError(RepoNoiseError):
    """GitHub REST call returned a non-success response.

    Attributes:
        method: HTTP method of the failed call
        path: Request path relative to the API base
        status_code: HTTP status code, or None when no response was received
        response_text: Response body text
    """

    def __init__(
        self,
        method: str,
        path: str,
        status_code: int | None = None,
        response_text: str = "",
    ) -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        self.response_text = response_text

        status = status_code if status_code is not None else "no response"
        super().__init__(f"{method} {path} -> {status} {response_text}".rstrip())


class TransientPlatformError(PlatformError):
    """Server-side or transport failure that may succeed on retry (5xx, 429, network)."""

    pass


class StageError(RepoNoiseError):
    """A pipeline stage failed in a way that aborts the run.

    Attributes:
        stage: Name of the stage that failed
    """

    def __init__(self, message: str, stage: str | None = None) -> None:
        self.stage = stage
        full_message = f"{message} (stage: {stage})" if stage else message
        super().__init__(full_message)
        self.message = message
