"""
Filewatch Argument Checks.

Small helpers that make constructor preconditions explicit.
"""

from typing import Any

from filewatch.errors import WatcherConfigurationError


def ensure_not_none(value: Any, name: str) -> None:
    """Raise if a required argument is missing."""
    if value is None:
        raise WatcherConfigurationError(f'"{name}" must not be None')


def ensure_that(condition: bool, description: str) -> None:
    """Raise if a precondition does not hold."""
    if not condition:
        raise WatcherConfigurationError(f'"{description}" must be true')
