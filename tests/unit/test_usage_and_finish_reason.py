"""Unit tests for usage aggregation and finish-reason mapping."""

from unittest.mock import MagicMock

import pytest

from claude_code_provider.finish_reason import map_finish_reason
from claude_code_provider.response.usage import UsageAccumulator


class TestUsageAccumulator:
    def test_input_tokens_include_cache_tokens(self):
        usage = UsageAccumulator()
        usage.record_result(
            {
                "input_tokens": 10,
                "cache_creation_input_tokens": 5,
                "cache_read_input_tokens": 3,
                "output_tokens": 7,
            }
        )

        result = usage.to_usage()
        assert result.input_tokens == 18
        assert result.output_tokens == 7
        assert result.total_tokens == 25

    def test_missing_usage_reports_zero(self):
        usage = UsageAccumulator()
        usage.record_result(None, total_cost_usd=0.5, duration_ms=10)

        assert usage.to_usage().total_tokens == 0
        assert usage.cost_usd == 0.5
        assert usage.duration_ms == 10
        assert usage.raw_usage is None

    def test_non_integer_counts_are_ignored(self):
        usage = UsageAccumulator()
        usage.record_result({"input_tokens": "12", "output_tokens": 4})

        assert usage.to_usage().input_tokens == 0
        assert usage.to_usage().output_tokens == 4

    def test_session_id_is_refreshed_only_when_present(self):
        usage = UsageAccumulator(session_id="previous")
        usage.record_result({}, session_id=None)
        assert usage.session_id == "previous"

        usage.record_result({}, session_id="fresh")
        assert usage.session_id == "fresh"

    def test_token_usage_is_logged_through_given_logger(self, caplog):
        log = MagicMock()
        usage = UsageAccumulator(log=log)

        with caplog.at_level("DEBUG", logger="claude_code_provider"):
            usage.record_result({"input_tokens": 2, "output_tokens": 3})

        assert "Token usage - Input: 2, Output: 3, Total: 5" in log.debug.call_args[0][0]
        assert caplog.records == []


class TestMapFinishReason:
    @pytest.mark.parametrize(
        "subtype, expected",
        [
            ("success", "stop"),
            ("error_max_turns", "length"),
            ("error_during_execution", "error"),
            ("something_new", "stop"),
            ("SUCCESS", "stop"),
            ("Error_Max_Turns", "stop"),
            (None, "stop"),
            ("", "stop"),
        ],
    )
    def test_mapping(self, subtype, expected):
        assert map_finish_reason(subtype) == expected
