"""Provider factory for Claude Code language models."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .errors import NoSuchModelError
from .language_model import ClaudeCodeLanguageModel
from .logging_config import get_logger
from .settings import ClaudeCodeSettings, validate_settings

logger = logging.getLogger(__name__)


def _as_dict(settings: ClaudeCodeSettings | Dict[str, Any] | None) -> Dict[str, Any]:
    if settings is None:
        return {}
    if isinstance(settings, ClaudeCodeSettings):
        return dict(settings.model_dump(exclude_unset=True))
    return dict(settings)


class ClaudeCodeProvider:
    """Creates ``ClaudeCodeLanguageModel`` instances sharing default settings.

    The provider is callable: ``provider("sonnet")`` is the same as
    ``provider.language_model("sonnet")``.
    """

    def __init__(self, default_settings: Optional[Dict[str, Any]] = None) -> None:
        self.default_settings = dict(default_settings or {})

    def language_model(
        self,
        model_id: str,
        settings: ClaudeCodeSettings | Dict[str, Any] | None = None,
    ) -> ClaudeCodeLanguageModel:
        """Create a language model.

        Per-model settings are merged over the provider defaults and
        validated; warnings are logged and attached to every call.

        Raises:
            ValueError: If the merged settings are invalid.
        """
        merged = {**self.default_settings, **_as_dict(settings)}

        validation = validate_settings(merged)
        if not validation.valid:
            raise ValueError(f"Invalid settings: {', '.join(validation.errors)}")

        log = get_logger(merged.get("logger"))
        for warning in validation.warnings:
            log.warning(f"Claude Code Provider: {warning}")

        return ClaudeCodeLanguageModel(
            model_id,
            ClaudeCodeSettings.model_validate(merged),
            settings_validation_warnings=validation.warnings,
        )

    chat = language_model

    def __call__(
        self,
        model_id: str,
        settings: ClaudeCodeSettings | Dict[str, Any] | None = None,
    ) -> ClaudeCodeLanguageModel:
        return self.language_model(model_id, settings)

    def image_model(self, model_id: str) -> Any:
        raise NoSuchModelError(model_id, "imageModel")


def create_claude_code(
    default_settings: ClaudeCodeSettings | Dict[str, Any] | None = None,
) -> ClaudeCodeProvider:
    """Create a Claude Code provider.

    Args:
        default_settings: Settings applied to every model the provider creates.

    Returns:
        The provider.

    Raises:
        ValueError: If ``default_settings`` is invalid.

    Example:
        ```python
        from claude_code_provider import create_claude_code

        provider = create_claude_code({"max_turns": 5, "permission_mode": "plan"})
        model = provider("sonnet")
        ```
    """
    defaults = _as_dict(default_settings)

    validation = validate_settings(defaults)
    if not validation.valid:
        raise ValueError(f"Invalid default settings: {', '.join(validation.errors)}")

    log = get_logger(defaults.get("logger"))
    for warning in validation.warnings:
        log.warning(f"Claude Code Provider: {warning}")

    return ClaudeCodeProvider(defaults)


claude_code = create_claude_code()
