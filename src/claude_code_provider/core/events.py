"""
This module contains the stream part types emitted by the Claude Code provider.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import Field, field_serializer

from .types import CallWarning, ConfiguredBaseModel, FinishReason, Usage


class StreamPartType(str, Enum):
    """
    The type of stream part.
    """
    STREAM_START = "stream-start"
    RESPONSE_METADATA = "response-metadata"
    TEXT_START = "text-start"
    TEXT_DELTA = "text-delta"
    TEXT_END = "text-end"
    REASONING_START = "reasoning-start"
    REASONING_DELTA = "reasoning-delta"
    REASONING_END = "reasoning-end"
    TOOL_INPUT_START = "tool-input-start"
    TOOL_INPUT_DELTA = "tool-input-delta"
    TOOL_INPUT_END = "tool-input-end"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    TOOL_ERROR = "tool-error"
    FINISH = "finish"
    ERROR = "error"


class BaseStreamPart(ConfiguredBaseModel):
    """
    Base model for all stream parts.
    """
    type: StreamPartType


class StreamStartPart(BaseStreamPart):
    """
    First part of every stream, carrying the call warnings.
    """
    type: Literal[StreamPartType.STREAM_START] = StreamPartType.STREAM_START  # pyright: ignore[reportIncompatibleVariableOverride]
    warnings: List[CallWarning] = Field(default_factory=list)


class ResponseMetadataPart(BaseStreamPart):
    """
    Informational part emitted once the upstream session is known.
    """
    type: Literal[StreamPartType.RESPONSE_METADATA] = StreamPartType.RESPONSE_METADATA  # pyright: ignore[reportIncompatibleVariableOverride]
    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    model_id: Optional[str] = None


class TextStartPart(BaseStreamPart):
    type: Literal[StreamPartType.TEXT_START] = StreamPartType.TEXT_START  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str


class TextDeltaPart(BaseStreamPart):
    type: Literal[StreamPartType.TEXT_DELTA] = StreamPartType.TEXT_DELTA  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str
    delta: str = Field(min_length=1)


class TextEndPart(BaseStreamPart):
    type: Literal[StreamPartType.TEXT_END] = StreamPartType.TEXT_END  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str


class ReasoningStartPart(BaseStreamPart):
    type: Literal[StreamPartType.REASONING_START] = StreamPartType.REASONING_START  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str


class ReasoningDeltaPart(BaseStreamPart):
    type: Literal[StreamPartType.REASONING_DELTA] = StreamPartType.REASONING_DELTA  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str
    delta: str


class ReasoningEndPart(BaseStreamPart):
    type: Literal[StreamPartType.REASONING_END] = StreamPartType.REASONING_END  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str


class ToolInputStartPart(BaseStreamPart):
    """
    Opens the input stream of a provider-executed tool.
    """
    type: Literal[StreamPartType.TOOL_INPUT_START] = StreamPartType.TOOL_INPUT_START  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str
    tool_name: str
    provider_executed: bool = True
    dynamic: bool = True


class ToolInputDeltaPart(BaseStreamPart):
    type: Literal[StreamPartType.TOOL_INPUT_DELTA] = StreamPartType.TOOL_INPUT_DELTA  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str
    delta: str


class ToolInputEndPart(BaseStreamPart):
    type: Literal[StreamPartType.TOOL_INPUT_END] = StreamPartType.TOOL_INPUT_END  # pyright: ignore[reportIncompatibleVariableOverride]
    id: str


class ToolCallPart(BaseStreamPart):
    """
    A complete tool invocation. ``input`` is the last serialized input seen.
    """
    type: Literal[StreamPartType.TOOL_CALL] = StreamPartType.TOOL_CALL  # pyright: ignore[reportIncompatibleVariableOverride]
    tool_call_id: str
    tool_name: str
    input: str
    provider_executed: bool = True
    dynamic: bool = True
    provider_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ToolResultPart(BaseStreamPart):
    type: Literal[StreamPartType.TOOL_RESULT] = StreamPartType.TOOL_RESULT  # pyright: ignore[reportIncompatibleVariableOverride]
    tool_call_id: str
    tool_name: str
    result: Any = None
    is_error: bool = False
    provider_executed: bool = True
    dynamic: bool = True
    provider_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ToolErrorPart(BaseStreamPart):
    """
    Provider extension: a tool failed while being executed upstream.
    """
    type: Literal[StreamPartType.TOOL_ERROR] = StreamPartType.TOOL_ERROR  # pyright: ignore[reportIncompatibleVariableOverride]
    tool_call_id: str
    tool_name: str
    error: str
    provider_executed: bool = True
    dynamic: bool = True
    provider_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class FinishPart(BaseStreamPart):
    """
    Terminal part of a successful (possibly truncated) run.
    """
    type: Literal[StreamPartType.FINISH] = StreamPartType.FINISH  # pyright: ignore[reportIncompatibleVariableOverride]
    finish_reason: FinishReason
    usage: Usage
    provider_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ErrorPart(BaseStreamPart):
    """
    Terminal part of a failed run. ``error`` is the exception itself.
    """
    type: Literal[StreamPartType.ERROR] = StreamPartType.ERROR  # pyright: ignore[reportIncompatibleVariableOverride]
    error: Any

    @field_serializer("error")
    def _serialize_error(self, error: Any) -> Any:
        if not isinstance(error, BaseException):
            return error
        payload: Dict[str, Any] = {
            "name": type(error).__name__,
            "message": str(error),
        }
        is_retryable = getattr(error, "is_retryable", None)
        if is_retryable is not None:
            payload["isRetryable"] = is_retryable
        data = getattr(error, "data", None)
        if isinstance(data, dict):
            payload["data"] = data
        return payload


StreamPart = Annotated[
    StreamStartPart |
    ResponseMetadataPart |
    TextStartPart |
    TextDeltaPart |
    TextEndPart |
    ReasoningStartPart |
    ReasoningDeltaPart |
    ReasoningEndPart |
    ToolInputStartPart |
    ToolInputDeltaPart |
    ToolInputEndPart |
    ToolCallPart |
    ToolResultPart |
    ToolErrorPart |
    FinishPart |
    ErrorPart,
    Field(discriminator="type")
]

TERMINAL_PART_TYPES = frozenset({StreamPartType.FINISH, StreamPartType.ERROR})
