"""Translates the Claude Agent SDK message stream into stream parts."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from datetime import datetime, timezone
from typing import Any, Callable

from ..abort import AbortSignal, iterate_with_abort
from ..core.events import (
    BaseStreamPart,
    ErrorPart,
    FinishPart,
    ResponseMetadataPart,
)
from ..core.types import PROVIDER_METADATA_KEY, CallWarning, FinishReason
from ..errors import StructuredOutputError, classify_error, is_abort_error
from ..finish_reason import map_finish_reason
from ..upstream import (
    AssistantTurn,
    PartialTokenEvent,
    ResultMessage,
    SystemInitMessage,
    ToolEcho,
    UnknownMessage,
    UpstreamMessage,
    decode_message,
)
from .text_synthesizer import TextSynthesizer
from .tool_call_handler import ToolCallHandler
from .truncation import TRUNCATION_WARNING, is_truncation_error
from .usage import UsageAccumulator

logger = logging.getLogger(__name__)

STRUCTURED_OUTPUT_RETRIES_SUBTYPE = "error_max_structured_output_retries"

STRUCTURED_OUTPUT_MISMATCH_WARNING = (
    "Structured output streamed as fragments differs from the final structured "
    "output reported by Claude Code; the final structured output is authoritative."
)


def canonical_json(value: Any) -> str:
    """Serialize ``value`` to compact JSON text."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _differs_from_streamed(streamed: str, payload: Any) -> bool:
    try:
        return json.loads(streamed) != payload
    except ValueError:
        return True


class EventTranslator:
    """Per-run translator from upstream messages to stream parts.

    Key patterns:
    - One translator per call; only the session id outlives the run
    - Tool lifecycles are delegated to ``ToolCallHandler``
    - Text and reasoning blocks are delegated to ``TextSynthesizer``
    - Every run ends in exactly one terminal part, ``finish`` or ``error``
    """

    def __init__(
        self,
        model_id: str,
        *,
        json_mode: bool = False,
        session_id: str | None = None,
        prompt: str = "",
        on_session_id: Callable[[str], None] | None = None,
        log: Any = None,
    ) -> None:
        """Initialize the translator.

        Args:
            model_id: Model id reported in response metadata.
            json_mode: Whether the caller requested a JSON response.
            session_id: Session id retained from a previous call, if any.
            prompt: Prompt text, used for error excerpts.
            on_session_id: Called whenever the upstream reports a session id.
            log: Logger facade; defaults to this module's logger.
        """
        self.model_id = model_id
        self.json_mode = json_mode
        self.prompt = prompt
        self._on_session_id = on_session_id
        self._log = log or logger

        self.tools = ToolCallHandler(log=self._log)
        self.text = TextSynthesizer(json_mode=json_mode)
        self.usage = UsageAccumulator(session_id=session_id, log=self._log)

        self.warnings: list[CallWarning] = []
        self.finish_reason: FinishReason | None = None
        self.truncated = False
        self.structured_output: Any = None
        self.has_structured_output = False

        self._terminated = False
        self._completed = asyncio.Event()

    # ── state ────────────────────────────────────────────────────────────

    @property
    def session_id(self) -> str | None:
        return self.usage.session_id

    @property
    def completed(self) -> asyncio.Event:
        """One-shot signal set once the terminal result arrived or the run ended."""
        return self._completed

    @property
    def terminated(self) -> bool:
        return self._terminated

    def _set_session_id(self, session_id: str | None) -> None:
        if not session_id:
            return
        self.usage.set_session_id(session_id)
        if self._on_session_id is not None:
            self._on_session_id(session_id)

    def _complete(self) -> None:
        self._completed.set()

    # ── per-message translation ──────────────────────────────────────────

    def translate(self, message: UpstreamMessage) -> list[BaseStreamPart]:
        """Translate one decoded upstream message.

        May return multiple parts for a single message.

        Args:
            message: The decoded upstream message.

        Returns:
            List of stream parts (may be empty).

        Raises:
            StructuredOutputError: For the structured-output retries subtype.
        """
        if self._terminated:
            self._log.debug(f"[claude-code] Ignoring message after terminal part: {type(message).__name__}")
            return []

        if isinstance(message, PartialTokenEvent):
            if message.kind == "text":
                return self.text.on_partial_text(message.text)
            if message.kind == "json":
                return self.text.on_partial_json(message.text)
            return []

        if isinstance(message, AssistantTurn):
            return self._translate_assistant(message)

        if isinstance(message, ToolEcho):
            return self._translate_tool_echo(message)

        if isinstance(message, ResultMessage):
            return self._translate_result(message)

        if isinstance(message, SystemInitMessage):
            self._set_session_id(message.session_id)
            self._log.info(f"[claude-code] Stream session initialized: {message.session_id}")
            return [
                ResponseMetadataPart(
                    id=message.session_id,
                    timestamp=datetime.now(timezone.utc),
                    model_id=self.model_id,
                )
            ]

        if isinstance(message, UnknownMessage):
            self._log.debug(f"[claude-code] Ignoring upstream message of type: {message.type}")
        return []

    def _translate_assistant(self, message: AssistantTurn) -> list[BaseStreamPart]:
        if message.content is None:
            self._log.warning(
                "[claude-code] Unexpected assistant message structure: missing content field. "
                "This may indicate an SDK protocol violation."
            )
            return []

        parts: list[BaseStreamPart] = []
        for tool in message.tool_uses:
            parts.extend(self.tools.observe_tool_use(tool))
        for thinking in message.thinking:
            parts.extend(self.text.on_reasoning(thinking))
        parts.extend(self.text.on_assistant_text(message.text))
        return parts

    def _translate_tool_echo(self, message: ToolEcho) -> list[BaseStreamPart]:
        if message.results is None:
            self._log.warning(
                "[claude-code] Unexpected user message structure: missing content field. "
                "This may indicate an SDK protocol violation."
            )
            return []

        parts: list[BaseStreamPart] = []
        for result in message.results:
            parts.extend(self.tools.emit_result(result))
        for error in message.errors:
            parts.extend(self.tools.emit_error(error))
        return parts

    def _translate_result(self, message: ResultMessage) -> list[BaseStreamPart]:
        self._complete()

        if message.subtype == STRUCTURED_OUTPUT_RETRIES_SUBTYPE:
            raise StructuredOutputError()

        cost = f"${message.total_cost_usd:.4f}" if message.total_cost_usd is not None else "N/A"
        duration = message.duration_ms if message.duration_ms is not None else "N/A"
        self._log.info(
            f"[claude-code] Stream completed - Session: {message.session_id}, "
            f"Cost: {cost}, Duration: {duration}ms"
        )

        self.usage.record_result(
            message.usage,
            total_cost_usd=message.total_cost_usd,
            duration_ms=message.duration_ms,
        )
        self._set_session_id(message.session_id)

        finish_reason = map_finish_reason(message.subtype)
        self._log.debug(f"[claude-code] Stream finish reason: {finish_reason}")

        if message.has_structured_output:
            self.structured_output = message.structured_output
            self.has_structured_output = True

        parts: list[BaseStreamPart] = []
        structured_mismatch = False

        already_streamed_json = (
            self.json_mode and self.text.has_open_text and self.text.has_received_partial_events
        )
        if already_streamed_json:
            parts.extend(self.text.close_text())
            if self.has_structured_output and _differs_from_streamed(
                self.text.accumulated_text, self.structured_output
            ):
                structured_mismatch = True
                self._log.warning(f"[claude-code] {STRUCTURED_OUTPUT_MISMATCH_WARNING}")
                self.warnings.append(CallWarning.other(STRUCTURED_OUTPUT_MISMATCH_WARNING))
        else:
            had_open_text = self.text.has_open_text
            parts.extend(self.text.close_text())
            if self.has_structured_output:
                parts.extend(self.text.emit_block(canonical_json(self.structured_output)))
            elif not had_open_text:
                # JSON mode without a schema: the buffered text is surfaced once.
                parts.extend(self.text.emit_block(self.text.accumulated_text))

        parts.extend(self._finalize_tools())

        metadata = self._finish_metadata()
        if structured_mismatch:
            metadata["structuredOutput"] = self.structured_output

        parts.append(self._finish(finish_reason, metadata))
        return parts

    # ── run end ──────────────────────────────────────────────────────────

    def _finalize_tools(self) -> list[BaseStreamPart]:
        if self.tools.has_pending_calls():
            self._log.debug("[claude-code] Closing tool calls that never received a result")
        return self.tools.finalize_all()

    def _finish_metadata(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        if self.session_id is not None:
            metadata["sessionId"] = self.session_id
        if self.usage.cost_usd is not None:
            metadata["costUsd"] = self.usage.cost_usd
        if self.usage.duration_ms is not None:
            metadata["durationMs"] = self.usage.duration_ms
        if self.usage.raw_usage is not None:
            metadata["rawUsage"] = self.usage.raw_usage
        if self.truncated:
            metadata["truncated"] = True
        if self.warnings:
            metadata["warnings"] = [warning.to_metadata() for warning in self.warnings]
        if self.text.thinking_traces:
            metadata["thinkingTraces"] = list(self.text.thinking_traces)
        return metadata

    def _finish(self, finish_reason: FinishReason, metadata: dict[str, Any]) -> FinishPart:
        self._terminated = True
        self.finish_reason = finish_reason
        return FinishPart(
            finish_reason=finish_reason,
            usage=self.usage.to_usage(),
            provider_metadata={PROVIDER_METADATA_KEY: metadata},
        )

    def finalize(self) -> list[BaseStreamPart]:
        """Close the run after the upstream ended without a result message.

        Returns:
            Closing parts and a ``stop`` finish; empty if already terminated.
        """
        self._complete()
        if self._terminated:
            return []

        self._log.debug("[claude-code] Upstream ended without a result message")
        parts: list[BaseStreamPart] = []
        had_open_text = self.text.has_open_text
        parts.extend(self.text.close_text())
        if not had_open_text:
            parts.extend(self.text.emit_block(self.text.accumulated_text))
        parts.extend(self._finalize_tools())
        parts.append(self._finish("stop", self._finish_metadata()))
        return parts

    def handle_error(self, error: BaseException) -> list[BaseStreamPart]:
        """Turn an upstream failure into the run's terminal parts.

        A recoverable truncation degrades to a ``length`` finish that keeps
        the buffered text. Anything else finalizes pending tools and ends
        in a single ``error`` part.

        Args:
            error: The exception that ended the upstream iteration.

        Returns:
            The terminal parts; empty if the run already terminated.
        """
        self._complete()
        if self._terminated:
            self._log.debug(f"[claude-code] Ignoring error after terminal part: {error}")
            return []

        buffered = self.text.accumulated_text
        if is_truncation_error(error, buffered):
            self._log.warning(
                f"[claude-code] Detected truncated stream response, returning "
                f"{len(buffered)} characters of buffered text"
            )
            self.truncated = True
            self.warnings.append(CallWarning.other(TRUNCATION_WARNING))

            parts: list[BaseStreamPart] = []
            if self.text.has_open_text:
                parts.extend(self.text.close_text())
            else:
                parts.extend(self.text.emit_block(buffered))
            parts.extend(self._finalize_tools())
            parts.append(self._finish("length", self._finish_metadata()))
            return parts

        parts = self._finalize_tools()
        self._terminated = True
        parts.append(ErrorPart(error=classify_error(error, self.prompt)))
        return parts

    # ── driving the upstream ─────────────────────────────────────────────

    async def stream(
        self,
        upstream: AsyncIterable[Any],
        abort_signal: AbortSignal | None = None,
    ) -> AsyncIterator[BaseStreamPart]:
        """Consume the upstream and yield stream parts until a terminal part.

        Args:
            upstream: Async iterable of SDK messages or stream-json dicts.
            abort_signal: Optional cancellation token.

        Yields:
            Stream parts, ending in exactly one ``finish`` or ``error``.

        Raises:
            BaseException: The abort reason, or ``asyncio.CancelledError``,
                unchanged when the run is cancelled.
        """
        try:
            async with contextlib.aclosing(iterate_with_abort(upstream, abort_signal)) as messages:
                async for raw in messages:
                    message = decode_message(raw)
                    self._log.debug(
                        f"[claude-code] Stream received message type: {type(message).__name__}"
                    )
                    for part in self.translate(message):
                        yield part
            parts = self.finalize()
        except asyncio.CancelledError:
            self._log.debug("[claude-code] Stream cancelled")
            raise
        except Exception as error:
            self._log.debug(f"[claude-code] Error during stream: {error}")
            if abort_signal is not None and abort_signal.aborted and (
                error is abort_signal.reason or is_abort_error(error)
            ):
                raise abort_signal.reason
            if is_abort_error(error):
                raise
            parts = self.handle_error(error)
        finally:
            self._complete()

        for part in parts:
            yield part
        self._log.debug("[claude-code] Stream finalized, closing stream")
