"""Builds Claude Agent SDK options from provider settings."""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from claude_agent_sdk import AgentDefinition, ClaudeAgentOptions

from ..settings import ClaudeCodeSettings, SystemPromptPreset

logger = logging.getLogger(__name__)

CAN_USE_TOOL_CONFLICT_MESSAGE = (
    "can_use_tool requires streaming input ('auto' or 'always') and cannot be used with "
    "permission_prompt_tool_name (SDK constraint). Set streaming_input='auto' (or 'always') "
    "and remove permission_prompt_tool_name, or remove can_use_tool."
)

_MODEL_MAP = {
    "opus": "opus",
    "sonnet": "sonnet",
    "haiku": "haiku",
}


def resolve_model(model_id: str) -> str:
    return _MODEL_MAP.get(model_id, model_id)


def wants_streaming_input(settings: ClaudeCodeSettings) -> bool:
    """Whether the prompt is sent as a streaming-input message iterator."""
    mode = settings.streaming_input or "auto"
    return mode == "always" or (mode == "auto" and settings.can_use_tool is not None)


def check_option_conflicts(settings: ClaudeCodeSettings) -> None:
    """Reject option combinations the SDK cannot honour.

    Raises:
        ValueError: If ``can_use_tool`` and ``permission_prompt_tool_name``
            are both set.
    """
    if settings.can_use_tool is not None and settings.permission_prompt_tool_name:
        raise ValueError(CAN_USE_TOOL_CONFLICT_MESSAGE)


def _system_prompt(settings: ClaudeCodeSettings, log: Any) -> Any:
    if settings.system_prompt is not None:
        if isinstance(settings.system_prompt, SystemPromptPreset):
            return settings.system_prompt.model_dump(exclude_none=True)
        return settings.system_prompt

    if settings.custom_system_prompt is not None:
        log.warning(
            "[claude-code] 'custom_system_prompt' is deprecated and will be removed in a future "
            "major release. Please use 'system_prompt' instead (string or "
            "{type: 'preset', preset: 'claude_code', append?})."
        )
        return settings.custom_system_prompt

    if settings.append_system_prompt is not None:
        log.warning(
            "[claude-code] 'append_system_prompt' is deprecated and will be removed in a future "
            "major release. Please use system_prompt={type: 'preset', preset: 'claude_code', "
            "append: <text>} instead."
        )
        return SystemPromptPreset(append=settings.append_system_prompt).model_dump(exclude_none=True)

    return None


def _agents(agents: dict[str, Any]) -> dict[str, Any]:
    return {
        name: AgentDefinition(**definition) if isinstance(definition, dict) else definition
        for name, definition in agents.items()
    }


def build_query_options(
    settings: ClaudeCodeSettings,
    *,
    model_id: str,
    session_id: Optional[str] = None,
    response_format: Optional[dict[str, Any]] = None,
    streaming: bool = False,
    log: Any = None,
) -> ClaudeAgentOptions:
    """Map provider settings to ``ClaudeAgentOptions``.

    Args:
        settings: The model settings.
        model_id: The provider model id.
        session_id: Session id retained from a previous call, used for
            resumption unless ``settings.resume`` is set.
        response_format: ``{"type": "json", "schema": ...}`` for structured
            output, or None.
        streaming: Whether the call is a streaming call; partial messages
            default to on for streaming calls.
        log: Logger facade for deprecation warnings.

    Returns:
        The SDK options for ``query()``.
    """
    log = log or logger

    options: dict[str, Any] = {
        "model": resolve_model(model_id),
        "include_partial_messages": (
            settings.include_partial_messages
            if settings.include_partial_messages is not None
            else streaming
        ),
    }

    resume = settings.resume or session_id
    if resume:
        options["resume"] = resume

    direct = {
        "cli_path": settings.path_to_claude_code_executable,
        "max_turns": settings.max_turns,
        "max_thinking_tokens": settings.max_thinking_tokens,
        "cwd": settings.cwd,
        "permission_mode": settings.permission_mode,
        "permission_prompt_tool_name": settings.permission_prompt_tool_name,
        "continue_conversation": settings.continue_conversation,
        "allowed_tools": settings.allowed_tools,
        "disallowed_tools": settings.disallowed_tools,
        "mcp_servers": settings.mcp_servers,
        "can_use_tool": settings.can_use_tool,
        "setting_sources": settings.setting_sources,
        "add_dirs": settings.additional_directories,
        "fallback_model": settings.fallback_model,
        "fork_session": settings.fork_session,
        "stderr": settings.stderr,
        "hooks": settings.hooks or None,
    }
    options.update({key: value for key, value in direct.items() if value is not None})

    system_prompt = _system_prompt(settings, log)
    if system_prompt is not None:
        options["system_prompt"] = system_prompt

    if settings.agents is not None:
        options["agents"] = _agents(settings.agents)

    extra_args = dict(settings.extra_args or {})
    if settings.strict_mcp_config:
        extra_args["strict-mcp-config"] = None
    if extra_args:
        options["extra_args"] = extra_args

    if settings.env is not None:
        options["env"] = {
            **os.environ,
            **{key: value for key, value in settings.env.items() if value is not None},
        }

    if response_format and response_format.get("type") == "json" and response_format.get("schema"):
        options["output_format"] = {"type": "json_schema", "schema": response_format["schema"]}

    return ClaudeAgentOptions(**options)
