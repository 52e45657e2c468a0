"""Error types raised by the analytics and recommendation services.

The HTTP layer maps them to status codes:
- NotFoundError -> 404
- InvalidInputError -> 400
- UpstreamQueryError -> 500
"""


class GourmetError(Exception):
    """Base class for all service errors."""

    code = "INTERNAL_ERROR"


class NotFoundError(GourmetError, LookupError):
    """A referenced user or food does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        self.code = f"{entity.upper()}_NOT_FOUND"
        super().__init__(f"{entity.capitalize()} not found: {identifier}")


class UpstreamQueryError(GourmetError):
    """The graph database call failed or timed out."""

    code = "UPSTREAM_QUERY_FAILED"


class InvalidInputError(GourmetError, ValueError):
    """Malformed input rejected before any query is issued."""

    code = "INVALID_INPUT"


def require_positive(name: str, value: int) -> int:
    """Reject non-positive integers such as limits and day windows."""
    if value < 1:
        raise InvalidInputError(f"{name} must be a positive integer, got {value}")
    return value


def require_text(name: str, value: str | None) -> str:
    """Reject missing or blank identifiers and names."""
    if value is None or not value.strip():
        raise InvalidInputError(f"{name} must not be empty")
    return value.strip()
