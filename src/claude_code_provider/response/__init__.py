"""Upstream stream translation: tools, text, usage and truncation."""

from .event_translator import EventTranslator
from .text_synthesizer import TextSynthesizer
from .tool_call_handler import ToolCallHandler
from .truncation import MIN_TRUNCATION_LENGTH, TRUNCATION_WARNING, is_truncation_error
from .usage import UsageAccumulator

__all__ = [
    "EventTranslator",
    "TextSynthesizer",
    "ToolCallHandler",
    "UsageAccumulator",
    "is_truncation_error",
    "MIN_TRUNCATION_LENGTH",
    "TRUNCATION_WARNING",
]
