"""FastAPI endpoint factory for Claude Code language models."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import StreamingResponse

from .core.events import ErrorPart
from .core.types import ConfiguredBaseModel
from .encoder import StreamPartEncoder
from .language_model import CallOptions, ClaudeCodeLanguageModel, ResponseFormat

logger = logging.getLogger(__name__)


class StreamRequest(ConfiguredBaseModel):
    """Request body accepted by the streaming endpoint."""

    prompt: List[Dict[str, Any]]
    session_id: Optional[str] = None
    response_format: Optional[ResponseFormat] = None
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    stop_sequences: Optional[List[str]] = None
    seed: Optional[int] = None

    def to_call_options(self) -> CallOptions:
        fields = dict(self)
        fields.pop("session_id")
        return CallOptions(**fields)


def add_claude_code_fastapi_endpoint(
    app: FastAPI | APIRouter,
    model: ClaudeCodeLanguageModel,
    path: str = "/",
) -> None:
    """Add a Claude Code streaming endpoint to a FastAPI app.

    Each POST runs ``do_stream`` on a copy of ``model`` with its own session
    state and writes every stream part as a Server-Sent Event. A request
    resumes a conversation only when its body carries ``sessionId``.

    Args:
        app: FastAPI application or APIRouter instance.
        model: Configured ClaudeCodeLanguageModel instance.
        path: API endpoint path (default: "/").

    Example:
        ```python
        from fastapi import FastAPI
        from claude_code_provider import add_claude_code_fastapi_endpoint, claude_code

        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, claude_code("sonnet"), path="/claude")
        ```
    """

    @app.post(path)
    async def claude_code_endpoint(input_data: StreamRequest, request: Request):
        """Claude Code streaming endpoint."""

        encoder = StreamPartEncoder(accept=request.headers.get("accept"))

        async def event_generator():
            """Generate SSE frames from the model's stream."""
            try:
                request_model = model.with_session(input_data.session_id)
                result = await request_model.do_stream(input_data.to_call_options())
                async for part in result.stream:
                    try:
                        encoded = encoder.encode(part)
                        logger.debug(f"HTTP Response: {encoded}")
                        yield encoded
                    except Exception as encoding_error:
                        logger.error(f"Stream part encoding error: {encoding_error}", exc_info=True)
                        yield encoder.encode(ErrorPart(error=encoding_error))
                        break

            except Exception as model_error:
                logger.error(f"Model error: {model_error}", exc_info=True)
                try:
                    yield encoder.encode(ErrorPart(error=model_error))
                except Exception:
                    logger.error("Failed to encode model error, yielding basic SSE error")
                    yield 'data: {"type": "error", "error": {"message": "Model execution failed"}}\n\n'

        return StreamingResponse(
            event_generator(), media_type=encoder.get_content_type()
        )
