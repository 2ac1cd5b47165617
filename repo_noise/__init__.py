"""repo-noise: scheduled synthetic activity for GitHub repositories."""

__version__ = "0.3.0"
