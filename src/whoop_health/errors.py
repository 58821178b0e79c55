"""Error types for WHOOP API access.

Every error carries the exit code the CLI uses when it reaches the top
level. None of these are retried or swallowed inside the library.
"""

from typing import Optional


class ExitCode:
    """Process exit codes."""

    GENERAL_ERROR = 1
    AUTH_ERROR = 2
    RATE_LIMIT = 3


class WhoopError(Exception):
    """Base class for all whoop_health errors."""

    exit_code = ExitCode.GENERAL_ERROR

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class AuthRequired(WhoopError):
    """No usable credential; the user must log in interactively."""

    exit_code = ExitCode.AUTH_ERROR


class AuthRefreshFailed(WhoopError):
    """The authorization server rejected the refresh token."""

    exit_code = ExitCode.AUTH_ERROR


class RateLimited(WhoopError):
    """WHOOP API returned 429."""

    exit_code = ExitCode.RATE_LIMIT


class RemoteRequestFailed(WhoopError):
    """Any other non-2xx response or transport failure."""


class ValidationError(WhoopError):
    """Caller-supplied parameters rejected before any network call."""
