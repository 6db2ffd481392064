from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class LeagueError(Exception):
    code: str
    message: str
    details: Optional[Any] = None
    status_code: int = 500

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class InvalidRequest(LeagueError):
    def __init__(self, code: str, message: str, details: Optional[Any] = None):
        super().__init__(code, message, details, 400)


class Unauthorized(LeagueError):
    def __init__(self, message: str = "Missing or invalid cron secret", details: Optional[Any] = None):
        super().__init__(UNAUTHORIZED, message, details, 401)


class UpstreamUnavailable(LeagueError):
    """The Sleeper API could not be reached or answered with an error."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(UPSTREAM_UNAVAILABLE, message, details, 502)


INVALID_ROSTER = "invalid_roster"
INVALID_SEASON = "invalid_season"
INVALID_RUN_TYPE = "invalid_run_type"
UNAUTHORIZED = "unauthorized"
OWNERSHIP_UNAVAILABLE = "ownership_unavailable"
UPSTREAM_UNAVAILABLE = "upstream_unavailable"
SERVER_ERROR = "server_error"
