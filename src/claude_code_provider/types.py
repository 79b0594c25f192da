"""Internal state types for the Claude Code provider."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

UNKNOWN_TOOL_NAME = "unknown-tool"


# ─────────────────────────────────────────────────────────────────────────────
# Tool Call State
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class ToolCallState:
    """Lifecycle state of a single provider-executed tool invocation.

    The flags only ever move from False to True, and
    ``call_emitted`` implies ``input_closed`` implies ``input_started``.
    """

    id: str
    name: str = UNKNOWN_TOOL_NAME
    last_serialized_input: str | None = None
    input_started: bool = False
    input_closed: bool = False
    call_emitted: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# Text Tracking
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class StreamedTextTracking:
    """Counters reconciling partial token events with cumulative assistant text."""

    streamed_text_length: int = 0
    has_received_partial_events: bool = False
    accumulated_text: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Usage
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class RunUsage:
    """Usage and session facts reported by the terminal result of a run."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float | None = None
    duration_ms: int | None = None
    session_id: str | None = None
    raw_usage: dict[str, Any] | None = field(default=None)
