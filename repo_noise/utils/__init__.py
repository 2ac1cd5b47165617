"""Shared utilities: subprocess execution, logging setup, and retries."""
