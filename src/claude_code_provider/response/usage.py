"""Aggregates token usage, cost, duration and session identity for a run."""

from __future__ import annotations

import logging
from typing import Any

from ..core.types import Usage
from ..types import RunUsage

logger = logging.getLogger(__name__)


def _token_count(usage: dict[str, Any], key: str) -> int:
    value = usage.get(key)
    return value if isinstance(value, int) else 0


class UsageAccumulator:
    """Collects the usage facts reported by the terminal result message.

    Input tokens are the sum of raw, cache-creation and cache-read input
    tokens. The session id is captured from the init message and refreshed
    from the result.
    """

    def __init__(self, session_id: str | None = None, log: Any = None) -> None:
        self._run = RunUsage(session_id=session_id)
        self._log = log or logger

    @property
    def session_id(self) -> str | None:
        return self._run.session_id

    @property
    def cost_usd(self) -> float | None:
        return self._run.cost_usd

    @property
    def duration_ms(self) -> int | None:
        return self._run.duration_ms

    @property
    def raw_usage(self) -> dict[str, Any] | None:
        return self._run.raw_usage

    def set_session_id(self, session_id: str | None) -> None:
        if session_id:
            self._run.session_id = session_id

    def record_result(
        self,
        usage: dict[str, Any] | None,
        total_cost_usd: float | None = None,
        duration_ms: int | None = None,
        session_id: str | None = None,
    ) -> None:
        """Record the usage block of a terminal result message.

        Args:
            usage: The raw upstream usage dictionary, if any.
            total_cost_usd: Total cost reported by the agent.
            duration_ms: Wall-clock duration reported by the agent.
            session_id: Session id reported by the result.
        """
        self.set_session_id(session_id)
        self._run.cost_usd = total_cost_usd
        self._run.duration_ms = duration_ms

        if usage is None:
            return

        input_tokens = (
            _token_count(usage, "cache_creation_input_tokens")
            + _token_count(usage, "cache_read_input_tokens")
            + _token_count(usage, "input_tokens")
        )
        output_tokens = _token_count(usage, "output_tokens")

        self._run.raw_usage = usage
        self._run.input_tokens = input_tokens
        self._run.output_tokens = output_tokens
        self._run.total_tokens = input_tokens + output_tokens

        self._log.debug(
            f"[claude-code] Token usage - Input: {input_tokens}, Output: {output_tokens}, "
            f"Total: {self._run.total_tokens}"
        )

    def to_usage(self) -> Usage:
        return Usage(
            input_tokens=self._run.input_tokens,
            output_tokens=self._run.output_tokens,
            total_tokens=self._run.total_tokens,
        )
