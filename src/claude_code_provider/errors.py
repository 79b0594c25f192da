"""Error hierarchy for the Claude Code provider.

Upstream failures are classified once, at the translator boundary, into
the typed errors below so callers can drive retry logic from
``is_retryable`` and ``data``. Cancellation is never wrapped: it surfaces
as ``AbortError`` (or the caller's own abort reason) or as
``asyncio.CancelledError``.
"""

from __future__ import annotations

import errno as errno_module
from typing import Any, Dict, Optional

from claude_agent_sdk import CLINotFoundError

DEFAULT_AUTH_MESSAGE = (
    "Authentication failed. Please ensure Claude Code SDK is properly authenticated."
)

STRUCTURED_OUTPUT_RETRIES_MESSAGE = (
    "Failed to generate valid structured output after maximum retries. "
    "The model could not produce a response matching the required schema."
)

AUTH_ERROR_PATTERNS = (
    "not logged in",
    "authentication",
    "unauthorized",
    "auth failed",
    "please login",
    "claude login",
)

RETRYABLE_CODES = frozenset({"ENOENT", "ECONNREFUSED", "ETIMEDOUT", "ECONNRESET"})

PROMPT_EXCERPT_LENGTH = 200


class ClaudeCodeError(Exception):
    """Base exception for all Claude Code provider errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {"name": self.__class__.__name__, "message": self.message}


class APICallError(ClaudeCodeError):
    """A failed call to the Claude Code agent process."""

    def __init__(
        self,
        message: str,
        *,
        is_retryable: bool = False,
        data: Optional[Dict[str, Any]] = None,
        prompt_excerpt: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.is_retryable = is_retryable
        self.data = data
        self.prompt_excerpt = prompt_excerpt

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["isRetryable"] = self.is_retryable
        if self.data is not None:
            result["data"] = self.data
        return result


class AuthenticationError(ClaudeCodeError):
    """The Claude Code CLI is not logged in or rejected its credentials."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or DEFAULT_AUTH_MESSAGE)


class ClaudeCodeTimeoutError(APICallError):
    """The agent process timed out. Always retryable."""

    def __init__(
        self,
        message: str,
        *,
        timeout_ms: Optional[int] = None,
        prompt_excerpt: Optional[str] = None,
    ) -> None:
        data: Dict[str, Any] = {"code": "TIMEOUT", "promptExcerpt": prompt_excerpt}
        if timeout_ms is not None:
            data["timeoutMs"] = timeout_ms
        super().__init__(message, is_retryable=True, data=data, prompt_excerpt=prompt_excerpt)
        self.timeout_ms = timeout_ms


class StructuredOutputError(APICallError):
    """The agent gave up producing output that matches the requested schema."""

    def __init__(self, message: str = STRUCTURED_OUTPUT_RETRIES_MESSAGE) -> None:
        super().__init__(message, is_retryable=False)


class NoSuchModelError(ClaudeCodeError):
    """The requested model id or model type is not available."""

    def __init__(self, model_id: str, model_type: str = "languageModel") -> None:
        super().__init__(f"No such {model_type}: {model_id!r}")
        self.model_id = model_id
        self.model_type = model_type


class AbortError(Exception):
    """Default reason raised when a call is cancelled through its abort signal."""

    def __init__(self, message: str = "This operation was aborted") -> None:
        super().__init__(message)
        self.message = message


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────


def create_api_call_error(
    message: str,
    *,
    code: Optional[str] = None,
    exit_code: Optional[int] = None,
    stderr: Optional[str] = None,
    prompt_excerpt: Optional[str] = None,
    is_retryable: bool = False,
) -> APICallError:
    """Create an ``APICallError`` carrying the process details in ``data``."""
    return APICallError(
        message,
        is_retryable=is_retryable,
        data={
            "code": code,
            "exitCode": exit_code,
            "stderr": stderr,
            "promptExcerpt": prompt_excerpt,
        },
        prompt_excerpt=prompt_excerpt,
    )


def create_authentication_error(message: Optional[str] = None) -> AuthenticationError:
    return AuthenticationError(message)


def create_timeout_error(
    message: str,
    *,
    prompt_excerpt: Optional[str] = None,
    timeout_ms: Optional[int] = None,
) -> ClaudeCodeTimeoutError:
    return ClaudeCodeTimeoutError(message, timeout_ms=timeout_ms, prompt_excerpt=prompt_excerpt)


# ─────────────────────────────────────────────────────────────────────────────
# Detection
# ─────────────────────────────────────────────────────────────────────────────


def is_authentication_error(error: Any) -> bool:
    if isinstance(error, AuthenticationError):
        return True
    return isinstance(error, APICallError) and (error.data or {}).get("exitCode") == 401


def is_timeout_error(error: Any) -> bool:
    if isinstance(error, ClaudeCodeTimeoutError):
        return True
    return isinstance(error, APICallError) and (error.data or {}).get("code") == "TIMEOUT"


def is_abort_error(error: Any) -> bool:
    """True for ``AbortError`` and any error that identifies itself as an abort."""
    if isinstance(error, AbortError):
        return True
    if type(error).__name__ == "AbortError":
        return True
    code = getattr(error, "code", None)
    return isinstance(code, str) and code.upper() == "ABORT_ERR"


def get_error_metadata(error: Any) -> Optional[Dict[str, Any]]:
    """Return the ``data`` of an ``APICallError``, or None."""
    if isinstance(error, APICallError) and error.data:
        return error.data
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Classification
# ─────────────────────────────────────────────────────────────────────────────


def _error_code(error: BaseException) -> str:
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code
    errno_value = getattr(error, "errno", None)
    if isinstance(errno_value, int) and errno_value in errno_module.errorcode:
        return errno_module.errorcode[errno_value]
    if isinstance(error, (FileNotFoundError, CLINotFoundError)):
        return "ENOENT"
    if isinstance(error, ConnectionRefusedError):
        return "ECONNREFUSED"
    if isinstance(error, ConnectionResetError):
        return "ECONNRESET"
    return ""


def _exit_code(error: BaseException) -> Optional[int]:
    for attribute in ("exit_code", "exitCode"):
        value = getattr(error, attribute, None)
        if isinstance(value, int):
            return value
    return None


def classify_error(error: BaseException, prompt: str) -> BaseException:
    """Map an arbitrary upstream failure onto the provider's error types.

    Args:
        error: The exception raised while talking to the agent process.
        prompt: The prompt text sent upstream, used for the excerpt.

    Returns:
        The classified error. Abort errors and errors that are already
        ``ClaudeCodeError`` instances are returned untouched.
    """
    if is_abort_error(error) or isinstance(error, ClaudeCodeError):
        return error

    raw_message = str(error)
    message = raw_message.lower()
    exit_code = _exit_code(error)

    if exit_code == 401 or any(pattern in message for pattern in AUTH_ERROR_PATTERNS):
        return create_authentication_error(raw_message or None)

    code = _error_code(error)
    excerpt = prompt[:PROMPT_EXCERPT_LENGTH]

    if code == "ETIMEDOUT" or isinstance(error, TimeoutError) or "timeout" in message:
        return create_timeout_error(raw_message or "Request timed out", prompt_excerpt=excerpt)

    stderr = getattr(error, "stderr", None)
    return create_api_call_error(
        raw_message or "Claude Code SDK error",
        code=code or None,
        exit_code=exit_code,
        stderr=stderr if isinstance(stderr, str) else None,
        prompt_excerpt=excerpt,
        is_retryable=code in RETRYABLE_CODES,
    )
