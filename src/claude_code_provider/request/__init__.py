"""Request-side helpers: prompt conversion and SDK option construction."""

from .message_converter import ConvertedPrompt, convert_to_claude_code_messages
from .query_options import build_query_options, check_option_conflicts, wants_streaming_input

__all__ = [
    "ConvertedPrompt",
    "convert_to_claude_code_messages",
    "build_query_options",
    "check_option_conflicts",
    "wants_streaming_input",
]
