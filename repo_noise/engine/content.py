"""
Randomised content for noise runs.

Every function here is a pure function of a ``random.Random`` instance and a
timestamp, so tests can pass a seeded generator and a fixed clock and assert
exact output.
"""

import random
import string
from datetime import UTC, datetime

from repo_noise.enums import ReviewEvent
from repo_noise.models.domain import WorkingChange

ACTIVITY_FILES = (
    "activity.log",
    "docs/activity.md",
    "notes/heartbeat.txt",
)

COMMIT_MESSAGES = (
    "chore(noise): {timestamp}",
    "chore: update activity log {timestamp}",
    "docs: refresh activity notes ({timestamp})",
    "chore(activity): heartbeat {timestamp}",
)

ISSUE_TITLES = (
    "Noisy issue",
    "Activity check",
    "Housekeeping ping",
    "Automated heartbeat",
)

ISSUE_BODY = "Autogenerated and closed automatically to keep repository activity flowing."

PR_TITLES = (
    "Merge {branch}",
    "Add activity marker from {branch}",
    "chore: sync {branch}",
)

PR_BODIES = (
    "Automatic pull request for repository activity.",
    "Adds a single marker file. Generated and merged automatically.",
    "Routine activity PR; no functional changes.",
)

REVIEW_BODIES = {
    ReviewEvent.APPROVE: "Looks good, approving the automated change.",
    ReviewEvent.COMMENT: "Automated review: marker file only, nothing to flag.",
}

BRANCH_PREFIX = "noise/"
SEED_DIRECTORY = "branches"
TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_LENGTH = 6


def utc_now() -> datetime:
    return datetime.now(UTC)


def timestamp(now: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def random_token(rng: random.Random, length: int = TOKEN_LENGTH) -> str:
    return "".join(rng.choice(TOKEN_ALPHABET) for _ in range(length))


def payload_lines(rng: random.Random, now: datetime) -> tuple[str, ...]:
    """Build 1-3 activity lines of the form ``<timestamp> <letter> <token>``."""
    stamp = timestamp(now)
    count = rng.randint(1, 3)
    return tuple(f"{stamp} {rng.choice(string.ascii_lowercase)} {random_token(rng)}" for _ in range(count))


def build_working_change(rng: random.Random, now: datetime) -> WorkingChange:
    """Choose a target file and commit message independently, then generate the payload."""
    path = rng.choice(ACTIVITY_FILES)
    message = rng.choice(COMMIT_MESSAGES).format(timestamp=timestamp(now))
    return WorkingChange(path=path, lines=payload_lines(rng, now), message=message)


def issue_title(rng: random.Random, now: datetime) -> str:
    return f"{rng.choice(ISSUE_TITLES)} {timestamp(now)}"


def next_run_id(now: datetime, previous: int = 0) -> int:
    """Epoch milliseconds, bumped past ``previous`` when the clock has not advanced."""
    return max(int(now.timestamp() * 1000), previous + 1)


def branch_name(run_id: int) -> str:
    return f"{BRANCH_PREFIX}{run_id}"


def seed_file_path(branch: str) -> str:
    return f"{SEED_DIRECTORY}/{branch}.txt"


def seed_file_content(now: datetime) -> str:
    return f"hello {timestamp(now)}\n"


def pull_request_text(rng: random.Random, branch: str) -> tuple[str, str]:
    """Return (title, body) for the change-stage pull request."""
    title = rng.choice(PR_TITLES).format(branch=branch)
    body = rng.choice(PR_BODIES)
    return title, body


def review_body(event: ReviewEvent) -> str:
    return REVIEW_BODIES[event]
