"""Claude Code language model: non-streaming and streaming entry points."""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Literal, Optional

from claude_agent_sdk import query
from pydantic import ConfigDict, Field

from .abort import AbortSignal
from .core.events import (
    BaseStreamPart,
    ErrorPart,
    FinishPart,
    ReasoningDeltaPart,
    StreamStartPart,
    TextDeltaPart,
    ToolCallPart,
    ToolErrorPart,
    ToolResultPart,
)
from .core.types import (
    CallWarning,
    ConfiguredBaseModel,
    Content,
    GenerateResult,
    ReasoningContent,
    RequestInfo,
    ResponseInfo,
    TextContent,
    ToolCallContent,
    ToolErrorContent,
    ToolResultContent,
)
from .errors import NoSuchModelError
from .logging_config import create_verbose_logger
from .request.message_converter import ConvertedPrompt, convert_to_claude_code_messages
from .request.query_options import (
    build_query_options,
    check_option_conflicts,
    wants_streaming_input,
)
from .response.event_translator import EventTranslator, canonical_json
from .settings import ClaudeCodeSettings, validate_model_id, validate_prompt, validate_session_id

logger = logging.getLogger(__name__)

STREAMING_FEATURE_WARNING = (
    "Claude Agent SDK features (hooks/MCP/images) require streaming input. "
    "Set streaming_input='always' or provide can_use_tool "
    "(auto streams only when can_use_tool is set)."
)

JSON_WITHOUT_SCHEMA_DETAILS = (
    "JSON response format requires a schema for the Claude Code provider. "
    "The JSON response_format is ignored and the call is treated as plain text."
)

UNSUPPORTED_CALL_SETTINGS = (
    "temperature",
    "top_p",
    "top_k",
    "presence_penalty",
    "frequency_penalty",
    "stop_sequences",
    "seed",
)


class ResponseFormat(ConfiguredBaseModel):
    """Requested response format. ``json`` with a schema enables structured output."""

    type: Literal["text", "json"] = "text"
    json_schema: Optional[Dict[str, Any]] = Field(default=None, alias="schema")
    name: Optional[str] = None
    description: Optional[str] = None


class CallOptions(ConfiguredBaseModel):
    """Per-call options shared by ``do_generate`` and ``do_stream``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    prompt: List[Any]
    response_format: Optional[ResponseFormat] = None
    abort_signal: Optional[AbortSignal] = None
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    stop_sequences: Optional[List[str]] = None
    seed: Optional[int] = None

    @property
    def json_mode(self) -> bool:
        return self.response_format is not None and self.response_format.type == "json"


@dataclass
class StreamResult:
    """Result of ``do_stream``: the part stream and the request as sent."""

    stream: AsyncIterator[BaseStreamPart]
    request: RequestInfo


class ClaudeCodeLanguageModel:
    """Language model backed by the Claude Code agent.

    Each call runs one agent query. The session id reported by the agent
    is retained on the instance and used to resume the conversation on
    the next call, so calls on one instance must not overlap.

    Examples:
        model = ClaudeCodeLanguageModel("sonnet", ClaudeCodeSettings(max_turns=5))

        result = await model.do_generate(
            CallOptions(prompt=[{"role": "user", "content": "Hello!"}])
        )

        streamed = await model.do_stream(CallOptions(prompt=[...]))
        async for part in streamed.stream:
            print(part.type)
    """

    specification_version = "v2"
    provider = "claude-code"
    default_object_generation_mode = "json"
    supports_image_urls = False
    supports_structured_outputs = True

    def __init__(
        self,
        model_id: str,
        settings: ClaudeCodeSettings | Dict[str, Any] | None = None,
        settings_validation_warnings: Optional[List[str]] = None,
    ) -> None:
        """Initialize the model.

        Args:
            model_id: ``opus``, ``sonnet``, ``haiku`` or a full model id.
            settings: Model settings, as a model or a mapping.
            settings_validation_warnings: Warnings from validating the
                settings, reported on every call.

        Raises:
            NoSuchModelError: If ``model_id`` is empty.
        """
        if isinstance(settings, ClaudeCodeSettings):
            self.settings = settings
        else:
            self.settings = ClaudeCodeSettings.model_validate(settings or {})

        self._log = create_verbose_logger(self.settings.logger, bool(self.settings.verbose))

        if not isinstance(model_id, str) or not model_id.strip():
            raise NoSuchModelError(str(model_id), "languageModel")
        self.model_id = model_id

        self._model_validation_warning = validate_model_id(model_id)
        if self._model_validation_warning:
            self._log.warning(f"Claude Code Model: {self._model_validation_warning}")

        self._settings_validation_warnings = list(settings_validation_warnings or [])
        self._session_id: Optional[str] = None

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    def with_session(self, session_id: Optional[str] = None) -> "ClaudeCodeLanguageModel":
        """Return a copy that shares this model's settings but not its session.

        Args:
            session_id: Session to resume on the copy's first call, if any.

        Returns:
            A model whose session state is independent of this one.
        """
        model = copy.copy(self)
        model._session_id = None
        if session_id:
            model._set_session_id(session_id)
        return model

    def _set_session_id(self, session_id: str) -> None:
        self._session_id = session_id
        warning = validate_session_id(session_id)
        if warning:
            self._log.warning(f"Claude Code Session: {warning}")

    # ── warnings ─────────────────────────────────────────────────────────

    def _call_warnings(self, options: CallOptions, converted: ConvertedPrompt) -> list[CallWarning]:
        warnings: list[CallWarning] = []

        for setting in UNSUPPORTED_CALL_SETTINGS:
            value = getattr(options, setting)
            if value is None or (setting == "stop_sequences" and not value):
                continue
            warnings.append(
                CallWarning.unsupported_setting(
                    setting,
                    f"Claude Code SDK does not support the {setting} parameter. It will be ignored.",
                )
            )

        if self._model_validation_warning:
            warnings.append(CallWarning.other(self._model_validation_warning))

        warnings.extend(CallWarning.other(w) for w in self._settings_validation_warnings)

        if options.json_mode and not options.response_format.json_schema:
            warnings.append(CallWarning.unsupported_setting("response_format", JSON_WITHOUT_SCHEMA_DETAILS))

        prompt_warning = validate_prompt(converted.messages_prompt)
        if prompt_warning:
            warnings.append(CallWarning.other(prompt_warning))

        warnings.extend(CallWarning.other(w) for w in converted.warnings)

        if converted.has_image_parts and not wants_streaming_input(self.settings):
            warnings.append(CallWarning.other(STREAMING_FEATURE_WARNING))

        return warnings

    # ── upstream ─────────────────────────────────────────────────────────

    async def _streaming_prompt(
        self,
        converted: ConvertedPrompt,
        completed: asyncio.Event,
        session_id: Optional[str],
    ) -> AsyncIterator[Dict[str, Any]]:
        yield {
            "type": "user",
            "message": {"role": "user", "content": converted.streaming_content_parts},
            "parent_tool_use_id": None,
            "session_id": session_id or "",
        }
        # The input side must stay open until the result arrives.
        await completed.wait()

    async def _upstream(
        self,
        options: CallOptions,
        converted: ConvertedPrompt,
        translator: EventTranslator,
        streaming: bool,
    ) -> AsyncIterator[Any]:
        response_format = None
        if options.response_format is not None:
            response_format = {
                "type": options.response_format.type,
                "schema": options.response_format.json_schema,
            }

        session = self.settings.resume or self._session_id
        query_options = build_query_options(
            self.settings,
            model_id=self.model_id,
            session_id=self._session_id,
            response_format=response_format,
            streaming=streaming,
            log=self._log,
        )

        streaming_input = wants_streaming_input(self.settings)
        prompt: Any = (
            self._streaming_prompt(converted, translator.completed, session)
            if streaming_input
            else converted.messages_prompt
        )

        self._log.debug(
            f"[claude-code] Starting query with streaming_input: {streaming_input}, "
            f"session: {session or 'new'}"
        )

        async with contextlib.aclosing(query(prompt=prompt, options=query_options)) as messages:
            async for message in messages:
                yield message

    def _translator(self, options: CallOptions, converted: ConvertedPrompt) -> EventTranslator:
        return EventTranslator(
            self.model_id,
            json_mode=options.json_mode,
            session_id=self._session_id,
            prompt=converted.messages_prompt,
            on_session_id=self._set_session_id,
            log=self._log,
        )

    # ── entry points ─────────────────────────────────────────────────────

    async def do_generate(self, options: CallOptions) -> GenerateResult:
        """Run the agent to completion and return the accumulated result.

        Args:
            options: The call options.

        Returns:
            The generated content, usage, warnings and metadata.

        Raises:
            ValueError: If the settings combine incompatible options.
            ClaudeCodeError: For classified upstream failures.
            BaseException: The abort reason when the call is cancelled.
        """
        self._log.debug(f"[claude-code] Starting do_generate request with model: {self.model_id}")

        converted = convert_to_claude_code_messages(options.prompt)
        warnings = self._call_warnings(options, converted)

        if options.abort_signal is not None:
            options.abort_signal.throw_if_aborted()
        check_option_conflicts(self.settings)

        translator = self._translator(options, converted)
        upstream = self._upstream(options, converted, translator, streaming=False)

        reasoning: list[Content] = []
        tool_content: list[Content] = []
        text_deltas: list[str] = []
        finish: Optional[FinishPart] = None

        async with contextlib.aclosing(translator.stream(upstream, options.abort_signal)) as parts:
            async for part in parts:
                if isinstance(part, TextDeltaPart):
                    text_deltas.append(part.delta)
                elif isinstance(part, ReasoningDeltaPart):
                    reasoning.append(ReasoningContent(text=part.delta))
                elif isinstance(part, ToolCallPart):
                    tool_content.append(
                        ToolCallContent(
                            tool_call_id=part.tool_call_id,
                            tool_name=part.tool_name,
                            input=part.input,
                        )
                    )
                elif isinstance(part, ToolResultPart):
                    tool_content.append(
                        ToolResultContent(
                            tool_call_id=part.tool_call_id,
                            tool_name=part.tool_name,
                            result=part.result,
                            is_error=part.is_error,
                        )
                    )
                elif isinstance(part, ToolErrorPart):
                    tool_content.append(
                        ToolErrorContent(
                            tool_call_id=part.tool_call_id,
                            tool_name=part.tool_name,
                            error=part.error,
                        )
                    )
                elif isinstance(part, ErrorPart):
                    raise part.error
                elif isinstance(part, FinishPart):
                    finish = part

        if translator.has_structured_output:
            self._log.debug("[claude-code] Received structured output from SDK")
            text = canonical_json(translator.structured_output)
        else:
            text = "".join(text_deltas)

        warnings.extend(translator.warnings)

        return GenerateResult(
            content=[*reasoning, TextContent(text=text), *tool_content],
            finish_reason=finish.finish_reason,
            usage=finish.usage,
            warnings=warnings,
            response=ResponseInfo(
                id=str(uuid.uuid4()),
                timestamp=datetime.now(timezone.utc),
                model_id=self.model_id,
            ),
            request=RequestInfo(body=converted.messages_prompt),
            provider_metadata=finish.provider_metadata,
        )

    async def do_stream(self, options: CallOptions) -> StreamResult:
        """Start the agent and return a stream of parts.

        The stream starts with ``stream-start`` and ends with exactly one
        ``finish`` or ``error`` part. Cancellation is raised out of the
        stream rather than reported as an ``error`` part.

        Args:
            options: The call options.

        Returns:
            The part stream and the request body.

        Raises:
            ValueError: If the settings combine incompatible options.
            BaseException: The abort reason if the signal is already aborted.
        """
        self._log.debug(f"[claude-code] Starting do_stream request with model: {self.model_id}")

        converted = convert_to_claude_code_messages(options.prompt)
        warnings = self._call_warnings(options, converted)

        if options.abort_signal is not None:
            options.abort_signal.throw_if_aborted()
        check_option_conflicts(self.settings)

        return StreamResult(
            stream=self._stream(options, converted, warnings),
            request=RequestInfo(body=converted.messages_prompt),
        )

    async def _stream(
        self,
        options: CallOptions,
        converted: ConvertedPrompt,
        warnings: list[CallWarning],
    ) -> AsyncIterator[BaseStreamPart]:
        yield StreamStartPart(warnings=warnings)

        translator = self._translator(options, converted)
        upstream = self._upstream(options, converted, translator, streaming=True)
        async with contextlib.aclosing(translator.stream(upstream, options.abort_signal)) as parts:
            async for part in parts:
                yield part
