"""Configuration for repo-noise.

Settings are read from the process environment with pydantic-settings and
validated once at startup.

Example:
    >>> from repo_noise.config import NoiseSettings
    >>> settings = NoiseSettings.from_env()
    >>> settings.owner, settings.repo_name
    ('octo', 'sandbox')
"""

from repo_noise.config.settings import NoiseSettings, parse_flag, parse_probability

__all__ = ["NoiseSettings", "parse_flag", "parse_probability"]
