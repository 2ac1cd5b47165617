"""Hosted platform clients.

Key Components:
    - PlatformClient: Abstract interface used by the pipeline stages
    - GitHubRestClient: httpx implementation against the GitHub REST API
"""

from repo_noise.providers.base import PlatformClient
from repo_noise.providers.github_rest import GitHubRestClient

__all__ = ["GitHubRestClient", "PlatformClient"]
