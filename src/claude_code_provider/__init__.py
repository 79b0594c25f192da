"""Claude Code Provider.

This package adapts the Claude Agent SDK message stream to AI-SDK-style
stream parts, with a non-streaming ``do_generate`` entry point, a
streaming ``do_stream`` entry point and a FastAPI SSE endpoint.
"""

from .abort import AbortSignal
from .encoder import StreamPartEncoder
from .endpoint import add_claude_code_fastapi_endpoint
from .errors import (
    AbortError,
    APICallError,
    AuthenticationError,
    ClaudeCodeError,
    ClaudeCodeTimeoutError,
    NoSuchModelError,
    StructuredOutputError,
    classify_error,
    create_api_call_error,
    create_authentication_error,
    create_timeout_error,
    get_error_metadata,
    is_abort_error,
    is_authentication_error,
    is_timeout_error,
)
from .language_model import CallOptions, ClaudeCodeLanguageModel, ResponseFormat, StreamResult
from .logging_config import configure_logging, get_logger
from .provider import ClaudeCodeProvider, claude_code, create_claude_code
from .settings import ClaudeCodeSettings, SystemPromptPreset, validate_settings

__all__ = [
    # Provider
    "create_claude_code",
    "claude_code",
    "ClaudeCodeProvider",
    # Model
    "ClaudeCodeLanguageModel",
    "CallOptions",
    "ResponseFormat",
    "StreamResult",
    "AbortSignal",
    # Endpoint
    "add_claude_code_fastapi_endpoint",
    "StreamPartEncoder",
    # Configuration
    "ClaudeCodeSettings",
    "SystemPromptPreset",
    "validate_settings",
    "configure_logging",
    "get_logger",
    # Errors
    "ClaudeCodeError",
    "APICallError",
    "AuthenticationError",
    "ClaudeCodeTimeoutError",
    "StructuredOutputError",
    "NoSuchModelError",
    "AbortError",
    "classify_error",
    "create_api_call_error",
    "create_authentication_error",
    "create_timeout_error",
    "get_error_metadata",
    "is_abort_error",
    "is_authentication_error",
    "is_timeout_error",
]
