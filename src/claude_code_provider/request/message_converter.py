"""Converts caller conversation history into a Claude Code prompt."""

from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

IMAGE_URL_WARNING = "Image URLs are not supported by this provider; supply base64/data URLs."
IMAGE_CONVERSION_WARNING = "Unable to convert image content; supply base64/data URLs."

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)
_DATA_URL = re.compile(r"^data:([^;]+);base64,(.+)$", re.IGNORECASE | re.DOTALL)
_BASE64_PREFIX = re.compile(r"^base64:([^,]+),(.+)$", re.IGNORECASE | re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


@dataclass
class ConvertedPrompt:
    """The prompt as handed to the agent.

    Attributes:
        messages_prompt: Flattened transcript used as a plain string prompt.
        system_prompt: The last system message, if any.
        warnings: Conversion warnings (unsupported images and the like).
        streaming_content_parts: Ordered text and image blocks for
            streaming input.
        has_image_parts: Whether any image was converted.
    """

    messages_prompt: str
    system_prompt: str | None = None
    warnings: list[str] = field(default_factory=list)
    streaming_content_parts: list[dict[str, Any]] = field(default_factory=list)
    has_image_parts: bool = False


def _get(part: Any, *keys: str) -> Any:
    """Read the first present key from a dict or attribute from an object."""
    for key in keys:
        value = part.get(key) if isinstance(part, dict) else getattr(part, key, None)
        if value is not None:
            return value
    return None


def _mime_type(candidate: Any) -> str | None:
    if isinstance(candidate, str) and candidate.strip():
        return candidate.strip()
    return None


def _image_content(media_type: str, data: str) -> dict[str, Any] | None:
    media_type = media_type.strip()
    data = _WHITESPACE.sub("", data.strip())
    if not media_type or not data:
        return None
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": data},
    }


def _parse_string_image(value: str, fallback_mime_type: str | None) -> tuple[dict | None, str | None]:
    trimmed = value.strip()

    if _HTTP_URL.match(trimmed):
        return None, IMAGE_URL_WARNING

    for pattern in (_DATA_URL, _BASE64_PREFIX):
        match = pattern.match(trimmed)
        if match:
            content = _image_content(match.group(1), match.group(2))
            return (content, None) if content else (None, IMAGE_CONVERSION_WARNING)

    if fallback_mime_type:
        content = _image_content(fallback_mime_type, trimmed)
        if content:
            return content, None

    return None, IMAGE_CONVERSION_WARNING


def _parse_binary_image(data: bytes, mime_type: str) -> tuple[dict | None, str | None]:
    content = _image_content(mime_type, base64.b64encode(bytes(data)).decode("ascii"))
    return (content, None) if content else (None, IMAGE_CONVERSION_WARNING)


def _parse_image_part(part: Any) -> tuple[dict | None, str | None]:
    image = _get(part, "image")
    mime_type = _mime_type(_get(part, "mimeType", "mime_type", "mediaType", "media_type"))

    if isinstance(image, str):
        return _parse_string_image(image, mime_type)

    if isinstance(image, (bytes, bytearray, memoryview)):
        if mime_type:
            return _parse_binary_image(image, mime_type)
        return None, IMAGE_CONVERSION_WARNING

    if isinstance(image, dict):
        data = image.get("data")
        object_mime = _mime_type(
            _get(image, "mimeType", "mediaType", "media_type") or mime_type
        )
        content = _image_content(object_mime, data) if isinstance(data, str) and object_mime else None
        return (content, None) if content else (None, IMAGE_CONVERSION_WARNING)

    return None, IMAGE_CONVERSION_WARNING


def _parse_file_part(part: Any) -> tuple[dict | None, str | None]:
    mime_type = _mime_type(_get(part, "mediaType", "media_type", "mimeType", "mime_type"))
    if not mime_type or not mime_type.lower().startswith("image/"):
        return None, None

    data = _get(part, "data")
    if isinstance(data, str):
        content = _image_content(mime_type, data)
        return (content, None) if content else (None, IMAGE_CONVERSION_WARNING)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return _parse_binary_image(data, mime_type)
    return None, IMAGE_CONVERSION_WARNING


def _text_of(content: list[Any]) -> str:
    return "\n".join(
        _get(part, "text") or "" for part in content if _get(part, "type") == "text"
    )


def _tool_result_text(tool: Any) -> str:
    output = _get(tool, "output")
    if isinstance(output, dict) and "type" in output:
        value = output.get("value")
        if output["type"] == "text":
            return str(value)
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    # Tool messages without a typed output envelope
    result = _get(tool, "result")
    return result if isinstance(result, str) else json.dumps(result, ensure_ascii=False)


def convert_to_claude_code_messages(prompt: list[Any]) -> ConvertedPrompt:
    """Flatten a conversation into a Claude Code prompt.

    System text is placed first, then the transcript with ``Human:``,
    ``Assistant:`` and ``Tool Result (name):`` labels, separated by blank
    lines. Image parts are collected for streaming input; unsupported
    variants produce warnings.

    Args:
        prompt: Messages with ``role`` and ``content`` (dicts or objects).

    Returns:
        The converted prompt.
    """
    transcript: list[str] = []
    warnings: list[str] = []
    system_prompt: str | None = None
    segments: list[str] = []
    images: dict[int, list[dict[str, Any]]] = {}

    def add_segment(formatted: str) -> int:
        segments.append(formatted)
        return len(segments) - 1

    def add_image(index: int, content: dict | None, warning: str | None) -> None:
        if content is not None:
            images.setdefault(index, []).append(content)
        elif warning:
            warnings.append(warning)

    for message in prompt:
        role = _get(message, "role")
        content = _get(message, "content")

        if role == "system":
            system_prompt = content
            add_segment(content if isinstance(content, str) and content.strip() else "")

        elif role == "user":
            if isinstance(content, str):
                transcript.append(f"Human: {content}")
                add_segment(f"Human: {content}")
                continue

            text = _text_of(content or [])
            index = add_segment(f"Human: {text}" if text else "")
            if text:
                transcript.append(f"Human: {text}")

            for part in content or []:
                part_type = _get(part, "type")
                if part_type == "image":
                    add_image(index, *_parse_image_part(part))
                elif part_type == "file":
                    add_image(index, *_parse_file_part(part))

        elif role == "assistant":
            if isinstance(content, str):
                assistant_text = content
            else:
                assistant_text = _text_of(content or [])
                if any(_get(part, "type") == "tool-call" for part in content or []):
                    assistant_text += "\n[Tool calls made]"
            formatted = f"Assistant: {assistant_text}"
            transcript.append(formatted)
            add_segment(formatted)

        elif role == "tool":
            for tool in content or []:
                formatted = f"Tool Result ({_get(tool, 'toolName', 'tool_name')}): {_tool_result_text(tool)}"
                transcript.append(formatted)
                add_segment(formatted)

        else:
            logger.debug(f"[claude-code] Skipping message with unsupported role: {role}")

    messages_prompt = system_prompt or ""
    if transcript:
        joined = "\n\n".join(transcript)
        messages_prompt = f"{messages_prompt}\n\n{joined}" if messages_prompt else joined

    streaming_parts: list[dict[str, Any]] = []
    pending_text = ""
    emitted_text = False

    def flush_text() -> None:
        nonlocal pending_text, emitted_text
        if pending_text:
            streaming_parts.append({"type": "text", "text": pending_text})
            pending_text = ""
            emitted_text = True

    for index, segment in enumerate(segments):
        if segment:
            if not pending_text:
                pending_text = f"\n\n{segment}" if emitted_text else segment
            else:
                pending_text += f"\n\n{segment}"
        if index in images:
            flush_text()
            streaming_parts.extend(images[index])
    flush_text()

    if not streaming_parts:
        streaming_parts = [{"type": "text", "text": messages_prompt}]

    return ConvertedPrompt(
        messages_prompt=messages_prompt,
        system_prompt=system_prompt,
        warnings=warnings,
        streaming_content_parts=streaming_parts,
        has_image_parts=bool(images),
    )
