"""
This module contains the core types and stream parts of the Claude Code provider.
"""

from .events import (
    BaseStreamPart,
    ErrorPart,
    FinishPart,
    ReasoningDeltaPart,
    ReasoningEndPart,
    ReasoningStartPart,
    ResponseMetadataPart,
    StreamPart,
    StreamPartType,
    StreamStartPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
    ToolCallPart,
    ToolErrorPart,
    ToolInputDeltaPart,
    ToolInputEndPart,
    ToolInputStartPart,
    ToolResultPart,
)
from .types import (
    PROVIDER_METADATA_KEY,
    CallWarning,
    ConfiguredBaseModel,
    Content,
    FinishReason,
    GenerateResult,
    ReasoningContent,
    RequestInfo,
    ResponseInfo,
    TextContent,
    ToolCallContent,
    ToolErrorContent,
    ToolResultContent,
    Usage,
)

__all__ = [
    # Stream parts
    "StreamPartType",
    "BaseStreamPart",
    "StreamStartPart",
    "ResponseMetadataPart",
    "TextStartPart",
    "TextDeltaPart",
    "TextEndPart",
    "ReasoningStartPart",
    "ReasoningDeltaPart",
    "ReasoningEndPart",
    "ToolInputStartPart",
    "ToolInputDeltaPart",
    "ToolInputEndPart",
    "ToolCallPart",
    "ToolResultPart",
    "ToolErrorPart",
    "FinishPart",
    "ErrorPart",
    "StreamPart",
    # Types
    "PROVIDER_METADATA_KEY",
    "ConfiguredBaseModel",
    "FinishReason",
    "Usage",
    "CallWarning",
    "Content",
    "TextContent",
    "ReasoningContent",
    "ToolCallContent",
    "ToolResultContent",
    "ToolErrorContent",
    "ResponseInfo",
    "RequestInfo",
    "GenerateResult",
]
