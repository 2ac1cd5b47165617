"""Git working copy operations.

Each method maps onto a single git command so callers can reason about side
effects. Commands run through ``run_command`` and a non-zero exit is raised as
``GitOperationError``.
"""

import subprocess
from pathlib import Path

import structlog

from repo_noise.exceptions import GitOperationError
from repo_noise.utils.async_subprocess import CommandResult, run_command

log = structlog.get_logger(__name__)

REMOTE = "origin"


class GitWorkspace:
    """Async wrapper around the ``git`` CLI for one working copy."""

    def __init__(self, path: Path | str, remote: str = REMOTE, timeout: float | None = None) -> None:
        self.path = Path(path)
        self.remote = remote
        self.timeout = timeout

    async def _git(self, *args: str) -> CommandResult:
        command = ("git", *args)
        try:
            result = await run_command(*command, cwd=self.path, timeout=self.timeout)
        except subprocess.CalledProcessError as e:
            raise GitOperationError(
                f"git {' '.join(args)} failed",
                command=command,
                returncode=e.returncode,
                stderr=e.stderr or e.stdout or "",
            ) from e
        except FileNotFoundError as e:
            raise GitOperationError("git executable not found", command=command) from e

        for stream in (result.stdout, result.stderr):
            if stream.strip():
                log.debug("git_output", command=" ".join(args), output=stream.strip())
        return result

    async def configure_identity(self, name: str, email: str) -> None:
        """Set the committer identity for this working copy."""
        await self._git("config", "user.name", name)
        await self._git("config", "user.email", email)

    async def remote_default_branch(self) -> str:
        """Return the branch ``origin/HEAD`` points to, without the remote prefix."""
        result = await self._git("symbolic-ref", "--short", f"refs/remotes/{self.remote}/HEAD")
        ref = result.stdout.strip()
        prefix = f"{self.remote}/"
        return ref[len(prefix) :] if ref.startswith(prefix) else ref

    async def checkout(self, branch: str) -> None:
        await self._git("checkout", branch)

    async def create_branch(self, branch: str) -> None:
        """Create ``branch`` from HEAD and switch to it."""
        await self._git("checkout", "-b", branch)

    async def delete_local_branch(self, branch: str) -> None:
        await self._git("branch", "-D", branch)

    def append(self, relative_path: str, text: str) -> Path:
        """Append text to a tracked file, creating parent directories as needed."""
        target = self.path / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "a", encoding="utf-8") as f:
            f.write(text)
        return target

    async def add(self, *paths: str) -> None:
        await self._git("add", "--", *paths)

    async def commit(self, message: str) -> None:
        """Record staged changes; raises when there is nothing to commit."""
        await self._git("commit", "-m", message)

    async def push(self, branch: str, set_upstream: bool = False) -> None:
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args.extend([self.remote, branch])
        await self._git(*args)
