"""Boundary decoding of the Claude Agent SDK message stream.

Every upstream message is decoded exactly once, on ingestion, into one of
the closed set of dataclasses below. The SDK can hand us either its typed
message objects or the raw stream-json dictionaries emitted by the CLI;
both end up in the same shape so the translator never probes attributes.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from claude_agent_sdk import (
    AssistantMessage,
    ResultMessage as SDKResultMessage,
    SystemMessage,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)
from claude_agent_sdk.types import StreamEvent

from .types import UNKNOWN_TOOL_NAME

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Content parts
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class TextPart:
    text: str


@dataclass
class ThinkingPart:
    thinking: str


@dataclass
class ToolUsePart:
    id: str
    name: str
    input: Any = None


@dataclass
class ToolResultPart:
    id: str
    name: str | None
    result: Any
    is_error: bool = False


@dataclass
class ToolErrorPart:
    id: str
    name: str | None
    error: Any


AssistantPart = Union[TextPart, ThinkingPart, ToolUsePart]


# ─────────────────────────────────────────────────────────────────────────────
# Messages
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class SystemInitMessage:
    """``system``/``init``: the agent session has started."""

    session_id: str | None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class AssistantTurn:
    """An assistant turn. ``content`` is None when the message carried none."""

    content: list[AssistantPart] | None

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.content or [] if isinstance(p, TextPart))

    @property
    def thinking(self) -> list[str]:
        return [p.thinking for p in self.content or [] if isinstance(p, ThinkingPart)]

    @property
    def tool_uses(self) -> list[ToolUsePart]:
        return [p for p in self.content or [] if isinstance(p, ToolUsePart)]


@dataclass
class ToolEcho:
    """A user-role echo of tool results and tool errors."""

    results: list[ToolResultPart] | None
    errors: list[ToolErrorPart] = field(default_factory=list)


@dataclass
class PartialTokenEvent:
    """A fine-grained ``content_block_delta`` event.

    ``kind`` is ``text`` for plain tokens, ``json`` for structured-output
    fragments and ``other`` for every informational event.
    """

    kind: Literal["text", "json", "other"]
    text: str = ""
    event_type: str | None = None


@dataclass
class ResultMessage:
    """The terminal ``result`` message of a run."""

    subtype: str | None
    session_id: str | None = None
    usage: dict[str, Any] | None = None
    total_cost_usd: float | None = None
    duration_ms: int | None = None
    is_error: bool = False
    result: str | None = None
    structured_output: Any = None
    has_structured_output: bool = False


@dataclass
class UnknownMessage:
    """Anything the decoder does not recognise. Logged and ignored."""

    type: str | None
    raw: Any = None


UpstreamMessage = Union[
    SystemInitMessage,
    AssistantTurn,
    ToolEcho,
    PartialTokenEvent,
    ResultMessage,
    UnknownMessage,
]


# ─────────────────────────────────────────────────────────────────────────────
# Decoding
# ─────────────────────────────────────────────────────────────────────────────


def _non_empty_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _generate_id() -> str:
    return str(uuid.uuid4())


def _block_to_dict(block: Any) -> Any:
    """Convert a typed SDK content block into its stream-json form."""
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ThinkingBlock):
        return {"type": "thinking", "thinking": block.thinking}
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    if isinstance(block, ToolResultBlock):
        return {
            "type": "tool_result",
            "tool_use_id": block.tool_use_id,
            "content": block.content,
            "is_error": bool(block.is_error),
        }
    return block


def _decode_assistant_content(content: Any) -> list[AssistantPart] | None:
    if content is None:
        return None
    if isinstance(content, str):
        return [TextPart(text=content)] if content else []
    if not isinstance(content, list):
        return []

    parts: list[AssistantPart] = []
    for item in map(_block_to_dict, content):
        if not isinstance(item, dict):
            continue
        item_type = item.get("type")
        if item_type == "text" and isinstance(item.get("text"), str):
            parts.append(TextPart(text=item["text"]))
        elif item_type == "thinking" and isinstance(item.get("thinking"), str):
            parts.append(ThinkingPart(thinking=item["thinking"]))
        elif item_type == "tool_use":
            parts.append(
                ToolUsePart(
                    id=_non_empty_str(item.get("id")) or _generate_id(),
                    name=_non_empty_str(item.get("name")) or UNKNOWN_TOOL_NAME,
                    input=item.get("input"),
                )
            )
    return parts


def _decode_tool_echo(content: Any) -> ToolEcho:
    if content is None:
        return ToolEcho(results=None)

    echo = ToolEcho(results=[])
    if not isinstance(content, list):
        return echo

    for item in map(_block_to_dict, content):
        if not isinstance(item, dict):
            continue
        item_type = item.get("type")
        if item_type == "tool_result":
            echo.results.append(
                ToolResultPart(
                    id=_non_empty_str(item.get("tool_use_id")) or _generate_id(),
                    name=_non_empty_str(item.get("name")),
                    result=item.get("content"),
                    is_error=bool(item.get("is_error")),
                )
            )
        elif item_type == "tool_error":
            echo.errors.append(
                ToolErrorPart(
                    id=_non_empty_str(item.get("tool_use_id")) or _generate_id(),
                    name=_non_empty_str(item.get("name")),
                    error=item.get("error"),
                )
            )
    return echo


def _decode_partial_event(event: Any) -> PartialTokenEvent:
    if not isinstance(event, dict):
        return PartialTokenEvent(kind="other")

    event_type = event.get("type")
    delta = event.get("delta")
    if event_type != "content_block_delta" or not isinstance(delta, dict):
        return PartialTokenEvent(kind="other", event_type=event_type)

    delta_type = delta.get("type")
    if delta_type == "text_delta" and isinstance(delta.get("text"), str):
        return PartialTokenEvent(kind="text", text=delta["text"], event_type=event_type)
    if delta_type == "input_json_delta" and isinstance(delta.get("partial_json"), str):
        return PartialTokenEvent(kind="json", text=delta["partial_json"], event_type=event_type)
    return PartialTokenEvent(kind="other", event_type=event_type)


def _decode_dict(raw: dict[str, Any]) -> UpstreamMessage:
    message_type = raw.get("type")

    if message_type == "system":
        if raw.get("subtype") == "init":
            return SystemInitMessage(session_id=_non_empty_str(raw.get("session_id")), data=raw)
        return UnknownMessage(type=f"system/{raw.get('subtype')}", raw=raw)

    if message_type == "assistant":
        message = raw.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return AssistantTurn(content=_decode_assistant_content(content))

    if message_type == "user":
        message = raw.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return _decode_tool_echo(content)

    if message_type == "stream_event":
        return _decode_partial_event(raw.get("event"))

    if message_type == "result":
        usage = raw.get("usage")
        return ResultMessage(
            subtype=raw.get("subtype"),
            session_id=_non_empty_str(raw.get("session_id")),
            usage=usage if isinstance(usage, dict) else None,
            total_cost_usd=raw.get("total_cost_usd"),
            duration_ms=raw.get("duration_ms"),
            is_error=bool(raw.get("is_error")),
            result=raw.get("result"),
            structured_output=raw.get("structured_output"),
            has_structured_output=raw.get("structured_output") is not None,
        )

    return UnknownMessage(type=message_type, raw=raw)


def decode_message(raw: Any) -> UpstreamMessage:
    """Decode one upstream message into the closed message union.

    Args:
        raw: A ``claude_agent_sdk`` message object or a stream-json dict.

    Returns:
        The decoded message. Unrecognised input yields ``UnknownMessage``.
    """
    if isinstance(raw, dict):
        return _decode_dict(raw)

    if isinstance(raw, StreamEvent):
        return _decode_partial_event(raw.event)

    if isinstance(raw, SystemMessage):
        if raw.subtype == "init":
            data = raw.data if isinstance(raw.data, dict) else {}
            return SystemInitMessage(session_id=_non_empty_str(data.get("session_id")), data=data)
        return UnknownMessage(type=f"system/{raw.subtype}", raw=raw)

    if isinstance(raw, AssistantMessage):
        return AssistantTurn(content=_decode_assistant_content(raw.content))

    if isinstance(raw, UserMessage):
        return _decode_tool_echo(raw.content)

    if isinstance(raw, SDKResultMessage):
        structured_output = getattr(raw, "structured_output", None)
        return ResultMessage(
            subtype=raw.subtype,
            session_id=_non_empty_str(raw.session_id),
            usage=raw.usage if isinstance(raw.usage, dict) else None,
            total_cost_usd=raw.total_cost_usd,
            duration_ms=raw.duration_ms,
            is_error=bool(raw.is_error),
            result=raw.result,
            structured_output=structured_output,
            has_structured_output=structured_output is not None,
        )

    return UnknownMessage(type=type(raw).__name__, raw=raw)
