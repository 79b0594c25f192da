"""Unit tests for the FastAPI streaming endpoint."""

import json
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from claude_code_provider import (
    ClaudeCodeLanguageModel,
    StreamPartEncoder,
    add_claude_code_fastapi_endpoint,
)
from claude_code_provider.core.events import TextDeltaPart


def _make_request_body(**overrides):
    body = {"prompt": [{"role": "user", "content": "hello"}]}
    body.update(overrides)
    return body


def _frames(text):
    return [json.loads(chunk[len("data: "):]) for chunk in text.split("\n\n") if chunk.startswith("data: ")]


@pytest.fixture
def model():
    return ClaudeCodeLanguageModel("sonnet", {"logger": False})


class TestStreamPartEncoder:
    def test_sse_frame(self):
        encoder = StreamPartEncoder()
        encoded = encoder.encode(TextDeltaPart(id="t1", delta="hi"))

        assert encoder.get_content_type() == "text/event-stream"
        assert encoded == 'data: {"type":"text-delta","id":"t1","delta":"hi"}\n\n'


class TestEndpoint:
    def test_streams_parts_as_sse(self, model, msgs):
        async def query(*, prompt, options):
            yield msgs.init()
            yield msgs.assistant(msgs.text("Hello there"))
            yield msgs.result()

        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, model, path="/claude")

        with patch("claude_code_provider.language_model.query", query):
            client = TestClient(app)
            resp = client.post("/claude", json=_make_request_body(temperature=0.1))

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        frames = _frames(resp.text)
        assert [frame["type"] for frame in frames] == [
            "stream-start",
            "response-metadata",
            "text-start",
            "text-delta",
            "text-end",
            "finish",
        ]
        assert frames[0]["warnings"][0]["setting"] == "temperature"
        assert frames[3]["delta"] == "Hello there"
        assert frames[-1]["finishReason"] == "stop"
        assert frames[-1]["providerMetadata"]["claude-code"]["sessionId"] == "session-1"

    def test_upstream_error_is_an_error_frame(self, model):
        async def query(*, prompt, options):
            raise RuntimeError("Not logged in")
            yield

        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, model)

        with patch("claude_code_provider.language_model.query", query):
            resp = TestClient(app).post("/", json=_make_request_body())

        frames = _frames(resp.text)
        assert [frame["type"] for frame in frames] == ["stream-start", "error"]
        assert frames[-1]["error"]["name"] == "AuthenticationError"

    def test_failure_before_first_part_is_single_error_frame(self):
        async def allow(tool_name, tool_input, context):
            return {"behavior": "allow"}

        model = ClaudeCodeLanguageModel(
            "sonnet",
            {"logger": False, "can_use_tool": allow, "permission_prompt_tool_name": "stdio"},
        )
        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, model)

        resp = TestClient(app).post("/", json=_make_request_body())

        frames = _frames(resp.text)
        assert len(frames) == 1
        assert frames[0]["type"] == "error"
        assert frames[0]["error"]["name"] == "ValueError"

    def test_requests_do_not_share_sessions(self, model, msgs):
        seen = []

        async def query(*, prompt, options):
            seen.append(options.resume)
            yield msgs.init("session-of-first-client")
            yield msgs.result(session_id="session-of-first-client")

        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, model)

        with patch("claude_code_provider.language_model.query", query):
            client = TestClient(app)
            client.post("/", json=_make_request_body())
            client.post("/", json=_make_request_body())

        assert seen == [None, None]
        assert model.session_id is None

    def test_session_id_in_body_resumes(self, model, msgs):
        seen = []

        async def query(*, prompt, options):
            seen.append(options.resume)
            yield msgs.result(session_id="abc-123")

        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, model)

        with patch("claude_code_provider.language_model.query", query):
            resp = TestClient(app).post("/", json=_make_request_body(sessionId="abc-123"))

        assert seen == ["abc-123"]
        assert _frames(resp.text)[-1]["providerMetadata"]["claude-code"]["sessionId"] == "abc-123"
        assert model.session_id is None

    def test_invalid_body_is_rejected(self, model):
        app = FastAPI()
        add_claude_code_fastapi_endpoint(app, model)

        resp = TestClient(app).post("/", json={"messages": []})

        assert resp.status_code == 422
