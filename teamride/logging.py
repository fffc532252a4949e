"""Core error observability.

Call this before re-raising a TeamRideError at a service boundary.
"""

from loguru import logger

from teamride.errors import TeamRideError


def log_core_error(err: TeamRideError, context: dict[str, str | int | float | bool | None]) -> None:
    """Log a core failure with context.

    Args:
        err: The TeamRideError that occurred
        context: Additional context dictionary for logging
    """
    logger.bind(
        error_type=type(err).__name__,
        code=err.code,
        details=err.details,
        **context,
    ).error(f"[CORE] {type(err).__name__} code={err.code}")
