"""Text and reasoning block synthesis with partial-event deduplication."""

from __future__ import annotations

import uuid

from ..core.events import (
    BaseStreamPart,
    ReasoningDeltaPart,
    ReasoningEndPart,
    ReasoningStartPart,
    TextDeltaPart,
    TextEndPart,
    TextStartPart,
)
from ..types import StreamedTextTracking


class TextSynthesizer:
    """Owns the single open text block and the reasoning blocks of a run.

    Text can arrive twice: token by token through partial events and again
    in the cumulative assistant message. Once any partial event was seen,
    assistant text is treated as the authoritative total and only the
    suffix beyond what was already streamed is emitted.

    In JSON mode plain text is only accumulated; structured-output
    fragments are the visible channel instead.
    """

    def __init__(self, json_mode: bool = False) -> None:
        self.json_mode = json_mode
        self.tracking = StreamedTextTracking()
        self.thinking_traces: list[str] = []
        self._text_part_id: str | None = None

    @property
    def accumulated_text(self) -> str:
        return self.tracking.accumulated_text

    @property
    def has_open_text(self) -> bool:
        return self._text_part_id is not None

    @property
    def has_received_partial_events(self) -> bool:
        return self.tracking.has_received_partial_events

    def _generate_id(self) -> str:
        return str(uuid.uuid4())

    def _emit_text(self, delta: str) -> list[BaseStreamPart]:
        parts: list[BaseStreamPart] = []
        if self._text_part_id is None:
            self._text_part_id = self._generate_id()
            parts.append(TextStartPart(id=self._text_part_id))
        parts.append(TextDeltaPart(id=self._text_part_id, delta=delta))
        return parts

    def on_partial_text(self, text: str) -> list[BaseStreamPart]:
        """Handle a plain-text token from a partial event."""
        if not text:
            return []
        tracking = self.tracking
        tracking.has_received_partial_events = True
        tracking.accumulated_text += text
        tracking.streamed_text_length += len(text)
        if self.json_mode:
            return []
        return self._emit_text(text)

    def on_partial_json(self, fragment: str) -> list[BaseStreamPart]:
        """Handle a structured-output fragment from a partial event."""
        if not fragment:
            return []
        tracking = self.tracking
        tracking.has_received_partial_events = True
        if not self.json_mode:
            return []
        tracking.accumulated_text += fragment
        tracking.streamed_text_length += len(fragment)
        return self._emit_text(fragment)

    def on_assistant_text(self, text: str) -> list[BaseStreamPart]:
        """Handle the joined text of a cumulative assistant message.

        Args:
            text: All text parts of the assistant message, concatenated.

        Returns:
            The text parts for whatever has not been emitted yet.
        """
        if not text:
            return []

        tracking = self.tracking
        if tracking.has_received_partial_events:
            already = tracking.streamed_text_length
            delta = text[already:] if len(text) > already else ""
            tracking.accumulated_text = text
            tracking.streamed_text_length = len(text)
        else:
            delta = text
            tracking.accumulated_text += text

        if self.json_mode or not delta:
            return []
        return self._emit_text(delta)

    def on_reasoning(self, thinking: str) -> list[BaseStreamPart]:
        """Emit one self-contained reasoning block for a thinking chunk."""
        self.thinking_traces.append(thinking)
        reasoning_id = self._generate_id()
        return [
            ReasoningStartPart(id=reasoning_id),
            ReasoningDeltaPart(id=reasoning_id, delta=thinking),
            ReasoningEndPart(id=reasoning_id),
        ]

    def close_text(self) -> list[BaseStreamPart]:
        """Close the open text block, if any."""
        if self._text_part_id is None:
            return []
        part = TextEndPart(id=self._text_part_id)
        self._text_part_id = None
        return [part]

    def emit_block(self, text: str) -> list[BaseStreamPart]:
        """Emit ``text`` as a complete, separate text block."""
        if not text:
            return []
        block_id = self._generate_id()
        return [
            TextStartPart(id=block_id),
            TextDeltaPart(id=block_id, delta=text),
            TextEndPart(id=block_id),
        ]
