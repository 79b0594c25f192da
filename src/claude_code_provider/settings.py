"""Settings schema and validation for the Claude Code provider."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

KNOWN_MODELS = ("opus", "sonnet", "haiku")
MAX_PROMPT_LENGTH = 100_000

_TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(\([^)]*\))?$")
_SESSION_ID_PATTERN = re.compile(r"^[a-zA-Z0-9\-_]+$")


class SystemPromptPreset(BaseModel):
    """The Claude Code preset system prompt, optionally extended."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["preset"] = "preset"
    preset: Literal["claude_code"] = "claude_code"
    append: Optional[str] = None


class ClaudeCodeSettings(BaseModel):
    """Options applied to every call made through a Claude Code model.

    Field names are snake_case; camelCase keys are accepted as well.
    """

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    path_to_claude_code_executable: Optional[str] = None
    system_prompt: Optional[Union[str, SystemPromptPreset]] = None
    custom_system_prompt: Optional[str] = None
    append_system_prompt: Optional[str] = None
    max_turns: Optional[int] = Field(default=None, ge=1, le=100)
    max_thinking_tokens: Optional[int] = Field(default=None, ge=1, le=100_000)
    cwd: Optional[str] = None
    permission_mode: Optional[Literal["default", "acceptEdits", "bypassPermissions", "plan"]] = None
    permission_prompt_tool_name: Optional[str] = None
    continue_conversation: Optional[bool] = None
    resume: Optional[str] = None
    allowed_tools: Optional[List[str]] = None
    disallowed_tools: Optional[List[str]] = None
    setting_sources: Optional[List[Literal["user", "project", "local"]]] = None
    streaming_input: Optional[Literal["auto", "always", "off"]] = None
    can_use_tool: Optional[Callable[..., Any]] = None
    hooks: Optional[Dict[str, List[Any]]] = None
    mcp_servers: Optional[Dict[str, Any]] = None
    verbose: Optional[bool] = None
    logger: Any = None
    env: Optional[Dict[str, Optional[str]]] = None
    additional_directories: Optional[List[str]] = None
    agents: Optional[Dict[str, Any]] = None
    include_partial_messages: Optional[bool] = None
    fallback_model: Optional[str] = None
    fork_session: Optional[bool] = None
    stderr: Optional[Callable[[str], None]] = None
    strict_mcp_config: Optional[bool] = None
    extra_args: Optional[Dict[str, Optional[str]]] = None

    @field_validator("cwd")
    @classmethod
    def _cwd_must_exist(cls, value: Optional[str]) -> Optional[str]:
        if value and not os.path.exists(value):
            raise ValueError("Working directory must exist")
        return value

    @field_validator("logger")
    @classmethod
    def _logger_shape(cls, value: Any) -> Any:
        if value is None or value is False:
            return value
        missing = [
            name for name in ("debug", "info", "error") if not callable(getattr(value, name, None))
        ]
        if not callable(getattr(value, "warning", None)) and not callable(getattr(value, "warn", None)):
            missing.append("warning")
        if missing:
            raise ValueError(f"logger must provide callable {', '.join(missing)}")
        return value

    @field_validator("hooks")
    @classmethod
    def _hooks_non_empty(cls, value: Optional[Dict[str, List[Any]]]) -> Optional[Dict[str, List[Any]]]:
        for event, matchers in (value or {}).items():
            for matcher in matchers:
                hooks = matcher.get("hooks") if isinstance(matcher, dict) else getattr(matcher, "hooks", None)
                if not hooks:
                    raise ValueError(f"hook matcher for {event} must define at least one hook")
        return value


@dataclass
class SettingsValidation:
    """Outcome of ``validate_settings``."""

    valid: bool
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _format_validation_error(error: ValidationError) -> list[str]:
    messages = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        message = issue["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{path}: {message}" if path else message)
    return messages


def validate_settings(settings: Any) -> SettingsValidation:
    """Validate settings and collect non-fatal warnings.

    Args:
        settings: A ``ClaudeCodeSettings`` instance or a mapping of options.

    Returns:
        The validation result. ``errors`` is non-empty only when invalid.
    """
    if settings is None:
        settings = {}

    if isinstance(settings, ClaudeCodeSettings):
        parsed = settings
    else:
        try:
            parsed = ClaudeCodeSettings.model_validate(settings)
        except ValidationError as e:
            return SettingsValidation(valid=False, errors=_format_validation_error(e))

    warnings: list[str] = []

    if parsed.max_turns and parsed.max_turns > 20:
        warnings.append(
            f"High maxTurns value ({parsed.max_turns}) may lead to long-running conversations"
        )

    if parsed.max_thinking_tokens and parsed.max_thinking_tokens > 50_000:
        warnings.append(
            f"Very high maxThinkingTokens ({parsed.max_thinking_tokens}) may increase response time"
        )

    if parsed.allowed_tools is not None and parsed.disallowed_tools is not None:
        warnings.append(
            "Both allowedTools and disallowedTools are specified. Only allowedTools will be used."
        )

    for kind, tools in (("allowed", parsed.allowed_tools), ("disallowed", parsed.disallowed_tools)):
        for tool in tools or []:
            if not _TOOL_NAME_PATTERN.match(tool) and not tool.startswith("mcp__"):
                warnings.append(f"Unusual {kind} tool name format: '{tool}'")

    return SettingsValidation(valid=True, warnings=warnings)


def validate_model_id(model_id: str) -> Optional[str]:
    """Return a warning for unknown model ids.

    Raises:
        ValueError: If the model id is empty or blank.
    """
    if not model_id or not model_id.strip():
        raise ValueError("Model ID cannot be empty")

    if model_id not in KNOWN_MODELS:
        return (
            f"Unknown model ID: '{model_id}'. Proceeding with custom model. "
            f"Known models are: {', '.join(KNOWN_MODELS)}"
        )
    return None


def validate_prompt(prompt: str) -> Optional[str]:
    if len(prompt) > MAX_PROMPT_LENGTH:
        return (
            f"Very long prompt ({len(prompt)} characters) may cause performance issues or timeouts"
        )
    return None


def validate_session_id(session_id: str) -> Optional[str]:
    if session_id and not _SESSION_ID_PATTERN.match(session_id):
        return "Unusual session ID format. This may cause issues with session resumption."
    return None
