"""Maps Claude Code result subtypes to finish reasons."""

from __future__ import annotations

from typing import Optional

from .core.types import FinishReason

_FINISH_REASONS: dict[str, FinishReason] = {
    "success": "stop",
    "error_max_turns": "length",
    "error_during_execution": "error",
}


def map_finish_reason(subtype: Optional[str]) -> FinishReason:
    """Map a result subtype to a finish reason. Unknown subtypes map to ``stop``."""
    if not isinstance(subtype, str):
        return "stop"
    return _FINISH_REASONS.get(subtype, "stop")
