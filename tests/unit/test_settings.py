"""Unit tests for settings schema and validation."""

import pytest
from pydantic import ValidationError

from claude_code_provider.settings import (
    ClaudeCodeSettings,
    SystemPromptPreset,
    validate_model_id,
    validate_prompt,
    validate_session_id,
    validate_settings,
)


class TestClaudeCodeSettings:
    def test_camel_case_keys_are_accepted(self):
        settings = ClaudeCodeSettings.model_validate({"maxTurns": 3, "permissionMode": "plan"})

        assert settings.max_turns == 3
        assert settings.permission_mode == "plan"

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(ValidationError):
            ClaudeCodeSettings.model_validate({"temperature": 0.2})

    def test_max_turns_range(self):
        with pytest.raises(ValidationError):
            ClaudeCodeSettings(max_turns=0)
        with pytest.raises(ValidationError):
            ClaudeCodeSettings(max_turns=101)

    def test_cwd_must_exist(self, tmp_path):
        assert ClaudeCodeSettings(cwd=str(tmp_path)).cwd == str(tmp_path)
        with pytest.raises(ValidationError, match="Working directory must exist"):
            ClaudeCodeSettings(cwd=str(tmp_path / "missing"))

    def test_system_prompt_preset(self):
        settings = ClaudeCodeSettings(system_prompt={"type": "preset", "preset": "claude_code", "append": "Be brief."})

        assert isinstance(settings.system_prompt, SystemPromptPreset)
        assert settings.system_prompt.append == "Be brief."

    def test_logger_must_have_methods(self):
        with pytest.raises(ValidationError, match="logger must provide callable"):
            ClaudeCodeSettings(logger=object())

    def test_logger_false_is_allowed(self):
        assert ClaudeCodeSettings(logger=False).logger is False

    def test_hook_matchers_need_hooks(self):
        with pytest.raises(ValidationError, match="must define at least one hook"):
            ClaudeCodeSettings(hooks={"PreToolUse": [{"matcher": "Bash", "hooks": []}]})


class TestValidateSettings:
    def test_valid_settings_without_warnings(self):
        result = validate_settings({"max_turns": 5})

        assert result.valid is True
        assert result.warnings == []
        assert result.errors == []

    def test_none_is_valid(self):
        assert validate_settings(None).valid is True

    def test_invalid_settings_report_errors(self):
        result = validate_settings({"max_turns": "many"})

        assert result.valid is False
        assert result.errors[0].split(":")[0] in ("max_turns", "maxTurns")

    def test_high_values_warn(self):
        result = validate_settings({"max_turns": 50, "max_thinking_tokens": 60000})

        assert "High maxTurns value (50) may lead to long-running conversations" in result.warnings
        assert "Very high maxThinkingTokens (60000) may increase response time" in result.warnings

    def test_both_tool_lists_warn(self):
        result = validate_settings({"allowed_tools": ["Read"], "disallowed_tools": ["Bash"]})

        assert any("Both allowedTools and disallowedTools" in w for w in result.warnings)

    def test_tool_name_formats(self):
        result = validate_settings(
            {"allowed_tools": ["Read", "Bash(git log:*)", "mcp__server__tool", "bad name!"]}
        )

        assert result.warnings == ["Unusual allowed tool name format: 'bad name!'"]


class TestValidators:
    def test_known_model_has_no_warning(self):
        assert validate_model_id("opus") is None

    def test_unknown_model_warns(self):
        assert "Unknown model ID: 'claude-x'" in validate_model_id("claude-x")

    def test_empty_model_raises(self):
        with pytest.raises(ValueError, match="Model ID cannot be empty"):
            validate_model_id("  ")

    def test_long_prompt_warns(self):
        assert validate_prompt("x" * 100_001).startswith("Very long prompt (100001 characters)")
        assert validate_prompt("short") is None

    def test_session_id_format(self):
        assert validate_session_id("abc-123_X") is None
        assert validate_session_id("abc 123") is not None
