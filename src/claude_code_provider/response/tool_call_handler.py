"""Tracks the lifecycle of provider-executed tool calls during a run."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..core.events import (
    BaseStreamPart,
    ToolCallPart,
    ToolErrorPart,
    ToolInputDeltaPart,
    ToolInputEndPart,
    ToolInputStartPart,
    ToolResultPart,
)
from ..core.types import PROVIDER_METADATA_KEY
from ..types import UNKNOWN_TOOL_NAME, ToolCallState
from ..upstream import ToolErrorPart as UpstreamToolError
from ..upstream import ToolResultPart as UpstreamToolResult
from ..upstream import ToolUsePart

logger = logging.getLogger(__name__)


def _to_json_text(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def normalize_tool_result(result: Any) -> Any:
    """Parse string results that hold JSON; return anything else unchanged."""
    if isinstance(result, str):
        try:
            return json.loads(result)
        except ValueError:
            return result
    return result


class ToolCallHandler:
    """Per-run state machine for tool invocations, keyed by tool-call ID.

    Each tool moves through input-start, input deltas, input-end and
    tool-call exactly once, after which any number of results or errors
    may follow. All methods return the stream parts to emit, in order.
    """

    MAX_TOOL_INPUT_SIZE = 1_048_576
    MAX_TOOL_INPUT_WARN = 102_400
    MAX_DELTA_CALC_SIZE = 10_000

    def __init__(self, log: Any = None) -> None:
        """Initialize the handler with empty state.

        Args:
            log: Logger facade; defaults to this module's logger.
        """
        self._log = log or logger
        self._states: dict[str, ToolCallState] = {}

    # ── serialization ────────────────────────────────────────────────────

    def _check_input_size(self, text: str) -> str:
        length = len(text)
        if length > self.MAX_TOOL_INPUT_SIZE:
            raise ValueError(
                f"Tool input exceeds maximum size of {self.MAX_TOOL_INPUT_SIZE} bytes "
                f"(got {length} bytes). This may indicate a malformed request or an "
                "attempt to process excessively large data."
            )
        if length > self.MAX_TOOL_INPUT_WARN:
            self._log.warning(
                f"[claude-code] Large tool input detected: {length} bytes. "
                "Performance may be impacted. Consider chunking or reducing input size."
            )
        return text

    def serialize_tool_input(self, tool_input: Any) -> str:
        """Serialize a tool input to canonical JSON text.

        Args:
            tool_input: The raw input payload from the upstream tool-use block.

        Returns:
            The serialized input; an empty string when no input was given.

        Raises:
            ValueError: If the serialized input exceeds ``MAX_TOOL_INPUT_SIZE``.
        """
        if isinstance(tool_input, str):
            return self._check_input_size(tool_input)
        if tool_input is None:
            return ""
        return self._check_input_size(_to_json_text(tool_input))

    # ── lifecycle ────────────────────────────────────────────────────────

    def get_state(self, tool_id: str) -> ToolCallState | None:
        return self._states.get(tool_id)

    def has_pending_calls(self) -> bool:
        return any(not state.call_emitted for state in self._states.values())

    def _compute_delta(self, state: ToolCallState, serialized: str) -> str:
        previous = state.last_serialized_input
        if previous is None:
            return serialized if len(serialized) <= self.MAX_DELTA_CALC_SIZE else ""
        if (
            len(serialized) <= self.MAX_DELTA_CALC_SIZE
            and len(previous) <= self.MAX_DELTA_CALC_SIZE
            and serialized.startswith(previous)
        ):
            return serialized[len(previous):]
        # Replacement or oversized input: the tool-call part carries the full payload.
        return ""

    def observe_tool_use(self, tool: ToolUsePart) -> list[BaseStreamPart]:
        """Handle a tool-use block from an assistant turn.

        Args:
            tool: The decoded tool-use block.

        Returns:
            ``tool-input-start`` on first sighting, then any input delta.
        """
        parts: list[BaseStreamPart] = []

        state = self.get_state(tool.id)
        if state is None:
            state = ToolCallState(id=tool.id, name=tool.name)
            self._states[tool.id] = state
            self._log.debug(f"[claude-code] New tool use detected - Tool: {tool.name}, ID: {tool.id}")

        if not state.call_emitted and tool.name != UNKNOWN_TOOL_NAME:
            state.name = tool.name

        if not state.input_started:
            self._log.debug(f"[claude-code] Tool input started - Tool: {tool.name}, ID: {tool.id}")
            parts.append(ToolInputStartPart(id=tool.id, tool_name=state.name))
            state.input_started = True

        serialized = self.serialize_tool_input(tool.input)
        if serialized:
            if not state.input_closed:
                delta = self._compute_delta(state, serialized)
                if delta:
                    parts.append(ToolInputDeltaPart(id=tool.id, delta=delta))
            state.last_serialized_input = serialized

        return parts

    def _synthesize_state(self, tool_id: str, tool_name: str, kind: str) -> tuple[ToolCallState, list[BaseStreamPart]]:
        self._log.warning(f"[claude-code] Received tool {kind} for unknown tool ID: {tool_id}")
        state = ToolCallState(id=tool_id, name=tool_name)
        self._states[tool_id] = state
        parts: list[BaseStreamPart] = [
            ToolInputStartPart(id=tool_id, tool_name=tool_name),
            ToolInputEndPart(id=tool_id),
        ]
        state.input_started = True
        state.input_closed = True
        return state, parts

    def emit_call(self, state: ToolCallState) -> list[BaseStreamPart]:
        """Close the tool input and emit its call, at most once.

        Args:
            state: The tracked tool state.

        Returns:
            ``tool-input-end`` (if still open) and ``tool-call``; empty when
            the call was already emitted.
        """
        if state.call_emitted:
            return []

        parts: list[BaseStreamPart] = []
        if state.input_started and not state.input_closed:
            parts.append(ToolInputEndPart(id=state.id))
            state.input_closed = True

        serialized = state.last_serialized_input or ""
        parts.append(
            ToolCallPart(
                tool_call_id=state.id,
                tool_name=state.name,
                input=serialized,
                provider_metadata={PROVIDER_METADATA_KEY: {"rawInput": serialized}},
            )
        )
        state.call_emitted = True
        return parts

    def emit_result(self, result: UpstreamToolResult) -> list[BaseStreamPart]:
        """Handle a tool result echoed back in a user message.

        Args:
            result: The decoded tool-result block.

        Returns:
            Any synthesized lifecycle parts, the call (once) and the result.
        """
        parts: list[BaseStreamPart] = []
        state = self.get_state(result.id)
        tool_name = result.name or (state.name if state else None) or UNKNOWN_TOOL_NAME
        self._log.debug(f"[claude-code] Tool result received - Tool: {tool_name}, ID: {result.id}")

        if state is None:
            state, synthesized = self._synthesize_state(result.id, tool_name, "result")
            parts.extend(synthesized)
        state.name = tool_name

        raw_result = result.result if isinstance(result.result, str) else _to_json_text(result.result)

        parts.extend(self.emit_call(state))
        parts.append(
            ToolResultPart(
                tool_call_id=result.id,
                tool_name=tool_name,
                result=normalize_tool_result(result.result),
                is_error=result.is_error,
                provider_metadata={PROVIDER_METADATA_KEY: {"rawResult": raw_result}},
            )
        )
        return parts

    def emit_error(self, error: UpstreamToolError) -> list[BaseStreamPart]:
        """Handle a tool error echoed back in a user message.

        Args:
            error: The decoded tool-error block.

        Returns:
            Any synthesized lifecycle parts, the call (once) and the error.
        """
        parts: list[BaseStreamPart] = []
        state = self.get_state(error.id)
        tool_name = error.name or (state.name if state else None) or UNKNOWN_TOOL_NAME
        self._log.debug(f"[claude-code] Tool error received - Tool: {tool_name}, ID: {error.id}")

        if state is None:
            state, synthesized = self._synthesize_state(error.id, tool_name, "error")
            parts.extend(synthesized)

        if isinstance(error.error, str):
            raw_error = error.error
        elif isinstance(error.error, (dict, list)):
            raw_error = _to_json_text(error.error)
        else:
            raw_error = str(error.error)

        parts.extend(self.emit_call(state))
        parts.append(
            ToolErrorPart(
                tool_call_id=error.id,
                tool_name=tool_name,
                error=raw_error,
                provider_metadata={PROVIDER_METADATA_KEY: {"rawError": raw_error}},
            )
        )
        return parts

    def finalize_all(self) -> list[BaseStreamPart]:
        """Force-emit every pending call and stop tracking all tools.

        Returns:
            The closing parts for every tool whose call was not yet emitted.
        """
        parts: list[BaseStreamPart] = []
        for state in self._states.values():
            parts.extend(self.emit_call(state))
        self._states.clear()
        return parts
