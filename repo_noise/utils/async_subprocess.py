"""Async subprocess utilities.

Provides non-blocking subprocess execution so git invocations can be awaited
in the same event loop as the platform calls.

Example:
    >>> from repo_noise.utils.async_subprocess import run_command
    >>> result = await run_command("git", "status", "--porcelain", cwd="/repo")
    >>> result.ok
    True
"""

import asyncio
import os
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import NamedTuple


class CommandResult(NamedTuple):
    """Outcome of a finished subprocess; unpacks as (stdout, stderr, returncode)."""

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    check: bool = True,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command asynchronously without shell interpolation.

    Output is always captured so that failures can carry stderr; callers that
    want it on the console log it themselves.

    Args:
        *args: Command and arguments as separate strings, e.g.
            "git", "commit", "-m", "message"
        cwd: Working directory. None uses the parent's working directory.
        check: If True (default), raise CalledProcessError on a non-zero exit.
        timeout: Maximum seconds to wait; the process is killed and
            TimeoutError raised when exceeded. None waits indefinitely.
        env: Extra environment variables layered over the parent's environment.

    Returns:
        CommandResult with UTF-8 decoded output (invalid bytes replaced).

    Raises:
        subprocess.CalledProcessError: If check=True and the command exits non-zero.
        TimeoutError: If timeout is exceeded.
        FileNotFoundError: If the executable is not found.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env={**os.environ, **env} if env else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    result = CommandResult(
        stdout=(stdout_bytes or b"").decode("utf-8", errors="replace"),
        stderr=(stderr_bytes or b"").decode("utf-8", errors="replace"),
        returncode=process.returncode or 0,
    )

    if check and not result.ok:
        raise subprocess.CalledProcessError(result.returncode, args, result.stdout, result.stderr)

    return result
