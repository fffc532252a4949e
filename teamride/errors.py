"""Canonical error types for the practice planning core.

No raw RuntimeErrors should leave the core - every failure uses one of these.

Standard error codes:
- NO_ATTENDING_RIDERS: Partition called without any riders
- NO_GROUP_COUNT_CANDIDATES: No group count fits the preferred size range
- INVALID_TRANSITION: Lifecycle transition not allowed from the current state
- DATE_OCCUPIED: Target date already holds an active practice
- GROUP_COUNT_LIMIT: Grow/shrink would leave too few riders or groups
- ROSTER_MISMATCH: Groups reference riders/coaches missing from the roster
- WRITE_FAILED: Repository call failed
- NOT_FOUND: Practice id unknown to the repository
"""


class TeamRideError(RuntimeError):
    """Base error for the planning core.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_TRANSITION")
        details: List of error detail strings
    """

    def __init__(self, code: str, details: list[str]):
        self.code = code
        self.details = details
        super().__init__(f"{code}: {details}")


class ValidationError(TeamRideError):
    """Raised when caller input cannot be used (e.g., zero attending riders)."""


class StateConflictError(TeamRideError):
    """Raised when an operation does not fit the current state of a practice.

    Nothing is mutated when this is raised.
    """


class PersistenceError(TeamRideError):
    """Raised when a repository write fails.

    The operation is treated as not yet applied and is safe to retry.
    """
