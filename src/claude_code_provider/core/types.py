"""
This module contains the shared value types for the Claude Code provider.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PROVIDER_METADATA_KEY = "claude-code"

FinishReason = Literal["stop", "length", "error"]


class ConfiguredBaseModel(BaseModel):
    """
    A configurable base model.
    """
    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Usage(ConfiguredBaseModel):
    """
    Token usage for a single call.

    ``input_tokens`` includes cache-creation and cache-read tokens.
    """
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class CallWarning(ConfiguredBaseModel):
    """
    A non-fatal warning attached to a call.
    """
    type: Literal["unsupported-setting", "other"]
    setting: Optional[str] = None
    details: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def other(cls, message: str) -> "CallWarning":
        return cls(type="other", message=message)

    @classmethod
    def unsupported_setting(cls, setting: str, details: str) -> "CallWarning":
        return cls(type="unsupported-setting", setting=setting, details=details)

    def to_metadata(self) -> Dict[str, str]:
        """
        JSON-safe form used inside provider metadata.
        """
        return {
            key: str(value)
            for key, value in self.model_dump(exclude_none=True).items()
        }


class TextContent(ConfiguredBaseModel):
    type: Literal["text"] = "text"
    text: str


class ReasoningContent(ConfiguredBaseModel):
    type: Literal["reasoning"] = "reasoning"
    text: str


class ToolCallContent(ConfiguredBaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    input: str
    provider_executed: bool = True


class ToolResultContent(ConfiguredBaseModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: Any = None
    is_error: bool = False
    provider_executed: bool = True


class ToolErrorContent(ConfiguredBaseModel):
    type: Literal["tool-error"] = "tool-error"
    tool_call_id: str
    tool_name: str
    error: str
    provider_executed: bool = True


Content = Annotated[
    Union[TextContent, ReasoningContent, ToolCallContent, ToolResultContent, ToolErrorContent],
    Field(discriminator="type")
]


class ResponseInfo(ConfiguredBaseModel):
    """
    Identification of a generated response.
    """
    id: str
    timestamp: datetime
    model_id: str


class RequestInfo(ConfiguredBaseModel):
    """
    The request as it was sent upstream.
    """
    body: str


class GenerateResult(ConfiguredBaseModel):
    """
    The accumulated outcome of a non-streaming call.
    """
    content: List[Content]
    finish_reason: FinishReason
    usage: Usage
    warnings: List[CallWarning] = Field(default_factory=list)
    response: ResponseInfo
    request: RequestInfo
    provider_metadata: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content if isinstance(part, TextContent))

    @property
    def reasoning(self) -> List[str]:
        return [part.text for part in self.content if isinstance(part, ReasoningContent)]
