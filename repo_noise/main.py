"""CLI entry point for repo-noise.

Intended to be invoked by an external scheduler (a cron-triggered workflow,
for instance) once per run:

    repo-noise run

Exit codes: 0 when the run completes (including skipped or degraded stages),
1 on configuration errors or any uncaught stage failure, 130 on Ctrl-C.
"""

import asyncio
import random
import secrets
import sys

import click
import structlog

from repo_noise import __version__
from repo_noise.config.settings import NoiseSettings
from repo_noise.engine.orchestrator import NoiseOrchestrator
from repo_noise.engine.report import RunReport, report_outcome
from repo_noise.engine.resolver import EnvironmentResolver
from repo_noise.exceptions import ConfigurationError, RepoNoiseError
from repo_noise.git.workspace import GitWorkspace
from repo_noise.providers.github_rest import GitHubRestClient
from repo_noise.utils.logging_config import bind_run, configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option("--log-level", default="INFO", envvar="NOISE_LOG_LEVEL", help="Logging level")
@click.option("--console-logs", is_flag=True, help="Human-readable log lines instead of JSON")
@click.version_option(__version__, prog_name="repo-noise")
def cli(log_level: str, console_logs: bool) -> None:
    """repo-noise: synthetic commit, issue, and pull request activity."""
    configure_logging(log_level, json_output=not console_logs)


@cli.command()
@click.option("--seed", type=int, default=None, help="Seed the random source for a reproducible run")
def run(seed: int | None) -> None:
    """Run the noise pipeline once against GITHUB_REPOSITORY."""
    try:
        settings = NoiseSettings.from_env()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.error("configuration_error", error=e.message)
        sys.exit(1)

    try:
        report = asyncio.run(_run_noise(settings, seed))
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except RepoNoiseError as e:
        click.echo(f"Error: {e}", err=True)
        log.error("run_failed", error=str(e), exc_info=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("run_failed_unexpected", error=str(e), exc_info=True)
        sys.exit(1)

    report_outcome(report)


@cli.command("show-config")
def show_config() -> None:
    """Print the settings a run would use, without contacting anything."""
    try:
        settings = NoiseSettings.from_env()
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    rows = {
        "repository": settings.github_repository,
        "token": "***",
        "default_branch": settings.default_branch or "(auto-detect)",
        "committer": f"{settings.git_user_name} <{settings.git_user_email}>",
        "issue_probability": settings.issue_probability,
        "pr_probability": settings.pr_probability,
        "approve_prs": settings.approve_prs,
        "reviewers": ", ".join(settings.reviewer_list) or "(none)",
        "api_url": settings.github_api_url,
        "workdir": str(settings.workdir),
    }
    for key, value in rows.items():
        click.echo(f"{key}: {value}")


async def _run_noise(settings: NoiseSettings, seed: int | None = None) -> RunReport:
    """Resolve the run context and execute the pipeline once."""
    bind_run(settings.github_repository, secrets.token_hex(4))
    git = GitWorkspace(settings.workdir)
    platform = GitHubRestClient(
        token=settings.github_token.get_secret_value(),
        owner=settings.owner,
        repo=settings.repo_name,
        base_url=settings.github_api_url,
    )
    async with platform:
        context = await EnvironmentResolver(settings, git, platform).resolve()
        orchestrator = NoiseOrchestrator(context, git, platform, rng=random.Random(seed))
        return await orchestrator.run()


if __name__ == "__main__":
    cli()
