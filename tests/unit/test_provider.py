"""Unit tests for the provider factory."""

from unittest.mock import MagicMock, patch

import pytest

from claude_code_provider import (
    CallOptions,
    ClaudeCodeLanguageModel,
    ClaudeCodeProvider,
    ClaudeCodeSettings,
    NoSuchModelError,
    claude_code,
    create_claude_code,
)


class TestCreateClaudeCode:
    def test_default_provider_instance(self):
        assert isinstance(claude_code, ClaudeCodeProvider)
        assert isinstance(claude_code("sonnet"), ClaudeCodeLanguageModel)

    def test_invalid_defaults_raise(self):
        with pytest.raises(ValueError, match="Invalid default settings"):
            create_claude_code({"max_turns": 0})

    def test_default_warnings_are_logged(self):
        log = MagicMock()
        create_claude_code({"max_turns": 30, "logger": log})

        assert "High maxTurns value (30)" in log.warning.call_args[0][0]

    def test_model_settings_override_defaults(self):
        provider = create_claude_code({"max_turns": 3, "permission_mode": "plan"})
        model = provider.language_model("opus", {"max_turns": 7})

        assert model.settings.max_turns == 7
        assert model.settings.permission_mode == "plan"

    def test_settings_model_is_accepted(self):
        provider = create_claude_code(ClaudeCodeSettings(max_turns=2))
        model = provider("haiku", ClaudeCodeSettings(verbose=True))

        assert model.settings.max_turns == 2
        assert model.settings.verbose is True

    def test_invalid_model_settings_raise(self):
        with pytest.raises(ValueError, match="Invalid settings"):
            create_claude_code().language_model("sonnet", {"permission_mode": "yolo"})

    def test_chat_is_an_alias(self):
        assert isinstance(create_claude_code().chat("sonnet"), ClaudeCodeLanguageModel)

    def test_image_models_are_unsupported(self):
        with pytest.raises(NoSuchModelError) as exc_info:
            create_claude_code().image_model("dall-e")

        assert exc_info.value.model_type == "imageModel"

    @pytest.mark.asyncio
    async def test_validation_warnings_reach_call_warnings(self, msgs):
        async def query(*, prompt, options):
            yield msgs.result()

        model = create_claude_code({"logger": False}).language_model("sonnet", {"max_turns": 25})
        with patch("claude_code_provider.language_model.query", query):
            result = await model.do_generate(CallOptions(prompt=[{"role": "user", "content": "x"}]))

        assert [w.message for w in result.warnings] == [
            "High maxTurns value (25) may lead to long-running conversations"
        ]
