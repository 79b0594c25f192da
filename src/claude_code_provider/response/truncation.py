"""Distinguishes a truncated upstream stream from genuinely malformed output."""

from __future__ import annotations

import json

from claude_agent_sdk import CLIJSONDecodeError

MIN_TRUNCATION_LENGTH = 512

TRUNCATION_WARNING = (
    "Claude Code SDK output ended unexpectedly; returning truncated response "
    "from buffered text. Await upstream fix to avoid data loss."
)

# Phrases produced when a parser runs out of input. Position-specific errors
# ("unexpected token ... at position N") never count as truncation.
TRUNCATION_INDICATORS = (
    "unexpected end of json input",
    "unexpected end of input",
    "unexpected end of string",
    "unexpected eof",
    "end of file",
    "unterminated string",
    "unterminated string constant",
)

_PARSE_ERROR_NAMES = ("syntaxerror", "jsondecodeerror")


def _is_parse_error(error: BaseException) -> bool:
    if isinstance(error, (SyntaxError, json.JSONDecodeError, CLIJSONDecodeError)):
        return True
    return type(error).__name__.lower() in _PARSE_ERROR_NAMES


def _linked_errors(error: BaseException) -> list[BaseException]:
    errors = [error]
    for linked in (getattr(error, "original_error", None), error.__cause__):
        if isinstance(linked, BaseException):
            errors.append(linked)
    return errors


def _error_messages(error: BaseException) -> list[str]:
    return [str(linked).lower() for linked in _linked_errors(error)]


def _ran_out_of_input(error: BaseException) -> bool:
    # json reports truncation by position: the failure sits at the end of the document.
    for linked in _linked_errors(error):
        if isinstance(linked, json.JSONDecodeError) and linked.pos >= len(linked.doc.rstrip()):
            return True
    return False


def is_truncation_error(error: BaseException | None, buffered_text: str) -> bool:
    """Decide whether a stream failure is a recoverable truncation.

    Args:
        error: The exception that ended the upstream iteration.
        buffered_text: Assistant text accumulated before the failure.

    Returns:
        True only for a parse error that ran out of input, either by its
        message or by a ``JSONDecodeError`` positioned at the end of the
        document, raised after at least ``MIN_TRUNCATION_LENGTH`` characters of text.
    """
    if error is None or not _is_parse_error(error):
        return False

    if not buffered_text:
        return False

    messages = _error_messages(error)
    ended_early = any(
        indicator in message for message in messages for indicator in TRUNCATION_INDICATORS
    )
    if not (ended_early or _ran_out_of_input(error)):
        return False

    return len(buffered_text) >= MIN_TRUNCATION_LENGTH
