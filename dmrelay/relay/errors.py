"""Relay error taxonomy and upstream error classification."""

from typing import Any, Literal

RATE_LIMIT_CODE = "rate_limit_exceeded"

ErrorKind = Literal["rate_limit", "unclassified"]


class RelayError(Exception):
    """Base class for errors raised inside the relay pipeline."""


class MessageTooLongError(RelayError):
    """Inbound text is longer than the configured maximum."""

    def __init__(self, length: int, limit: int):
        super().__init__(f"Message has {length} characters, limit is {limit}")
        self.length = length
        self.limit = limit


class CooldownActiveError(RelayError):
    """The sender is still inside their cooldown window."""

    def __init__(self, user_id: str, remaining_seconds: int):
        super().__init__(f"User {user_id} must wait {remaining_seconds}s")
        self.user_id = user_id
        self.remaining_seconds = remaining_seconds


class UpstreamRateLimitError(RelayError):
    """The agent provider throttled the request."""


class ToolExecutionError(RelayError):
    """A single tool invocation failed."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class PurgeError(RelayError):
    """Fetching or deleting direct-message history failed."""

    def __init__(self, message: str, deleted: int = 0):
        super().__init__(message)
        self.deleted = deleted

def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _status(obj: Any) -> Any:
    return _get(obj, "status_code") or _get(obj, "statusCode")


def _payload_code(payload: Any) -> Any:
    error = _get(payload, "error")
    return _get(error, "code") if error is not None else _get(payload, "code")


def _has_rate_limit_code(obj: Any) -> bool:
    codes = (_get(obj, "code"), _payload_code(_get(obj, "data")), _payload_code(_get(obj, "body")))
    return RATE_LIMIT_CODE in codes


def _looks_rate_limited(obj: Any) -> bool:
    """A 429 status together with the ``rate_limit_exceeded`` error code."""
    if isinstance(obj, UpstreamRateLimitError):
        return True
    return _status(obj) == 429 and _has_rate_limit_code(obj)


def is_rate_limit_error(exc: BaseException) -> bool:
    """
    Check whether an exception (or anything it wraps) is an upstream rate limit.

    Only a 429 that carries the ``rate_limit_exceeded`` code counts; other
    429s (exhausted quota, for one) are ordinary failures. Retry wrappers keep
    the final failure on ``last_error``; chained exceptions are followed
    through ``__cause__`` and ``__context__``.
    """
    seen: set[int] = set()
    pending: list[Any] = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if _looks_rate_limited(current):
            return True
        pending.append(_get(current, "last_error") or _get(current, "lastError"))
        if isinstance(current, BaseException):
            pending.append(current.__cause__)
            pending.append(current.__context__)
    return False


def classify_error(exc: BaseException) -> ErrorKind:
    """Map a streaming-path failure to the notice the user should see."""
    if is_rate_limit_error(exc):
        return "rate_limit"
    return "unclassified"
