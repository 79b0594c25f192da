"""Pytest configuration and shared fixtures for Claude Code provider tests."""

from types import SimpleNamespace

import pytest


def init_message(session_id="session-1"):
    return {"type": "system", "subtype": "init", "session_id": session_id}


def assistant_message(*content):
    return {"type": "assistant", "message": {"role": "assistant", "content": list(content)}}


def text_block(text):
    return {"type": "text", "text": text}


def thinking_block(thinking):
    return {"type": "thinking", "thinking": thinking}


def tool_use_block(tool_id, name, tool_input=None):
    return {"type": "tool_use", "id": tool_id, "name": name, "input": tool_input}


def tool_result_message(tool_id, content, name=None, is_error=False):
    block = {"type": "tool_result", "tool_use_id": tool_id, "content": content, "is_error": is_error}
    if name is not None:
        block["name"] = name
    return {"type": "user", "message": {"role": "user", "content": [block]}}


def tool_error_message(tool_id, error, name=None):
    block = {"type": "tool_error", "tool_use_id": tool_id, "error": error}
    if name is not None:
        block["name"] = name
    return {"type": "user", "message": {"role": "user", "content": [block]}}


def text_delta_event(text):
    return {
        "type": "stream_event",
        "event": {"type": "content_block_delta", "delta": {"type": "text_delta", "text": text}},
    }


def json_delta_event(fragment):
    return {
        "type": "stream_event",
        "event": {
            "type": "content_block_delta",
            "delta": {"type": "input_json_delta", "partial_json": fragment},
        },
    }


def result_message(subtype="success", session_id="session-1", usage=None, **extra):
    message = {
        "type": "result",
        "subtype": subtype,
        "session_id": session_id,
        "usage": usage if usage is not None else {"input_tokens": 10, "output_tokens": 5},
        "total_cost_usd": 0.001,
        "duration_ms": 1200,
        "is_error": False,
    }
    message.update(extra)
    return message


@pytest.fixture
def msgs():
    """Builders for stream-json upstream messages."""
    return SimpleNamespace(
        init=init_message,
        assistant=assistant_message,
        text=text_block,
        thinking=thinking_block,
        tool_use=tool_use_block,
        tool_result=tool_result_message,
        tool_error=tool_error_message,
        text_delta=text_delta_event,
        json_delta=json_delta_event,
        result=result_message,
    )


@pytest.fixture
def make_upstream():
    """Build an async upstream from a list of messages, optionally failing at the end."""

    def factory(messages, error=None):
        async def upstream():
            for message in messages:
                yield message
            if error is not None:
                raise error

        return upstream()

    return factory


async def collect(stream):
    return [part async for part in stream]


@pytest.fixture
def collect_parts():
    return collect


def part_types(parts):
    return [part.type.value for part in parts]


@pytest.fixture
def types_of():
    return part_types
