"""
This module contains the StreamPartEncoder class.
"""

from __future__ import annotations

from .core.events import BaseStreamPart

SSE_CONTENT_TYPE = "text/event-stream"


class StreamPartEncoder:
    """
    Encodes stream parts as Server-Sent Events.
    """
    def __init__(self, accept: str | None = None):
        self.accept = accept

    def get_content_type(self) -> str:
        """
        Returns the content type of the encoder
        """
        return SSE_CONTENT_TYPE

    def encode(self, part: BaseStreamPart) -> str:
        """
        Encodes a stream part.
        """
        return self._encode_sse(part)

    def _encode_sse(self, part: BaseStreamPart) -> str:
        """
        Encodes a stream part into an SSE string.
        """
        return f"data: {part.model_dump_json(by_alias=True, exclude_none=True)}\n\n"
