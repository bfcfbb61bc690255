"""Agent configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .session import DEFAULT_MODEL

DEFAULT_MAX_STEPS = 100


@dataclass
class AgentConfig:
    model: str = DEFAULT_MODEL
    system_prompt: str = ""
    max_steps: int = DEFAULT_MAX_STEPS
    max_tokens: int | None = None
    temperature: float | None = None
    # None disables the per-call timeout
    tool_timeout_ms: int | None = None
    api_key: str | None = None
    base_url: str | None = None

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {self.max_steps}")
        if self.tool_timeout_ms is not None and self.tool_timeout_ms <= 0:
            raise ValueError(f"tool_timeout_ms must be positive, got {self.tool_timeout_ms}")

    @classmethod
    def from_env(cls, **overrides) -> AgentConfig:
        """Build a config from SHUTTLE_* / OPENAI_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict = {
            "model": os.getenv("SHUTTLE_MODEL") or DEFAULT_MODEL,
            "system_prompt": os.getenv("SHUTTLE_SYSTEM_PROMPT", ""),
            "api_key": os.getenv("OPENAI_API_KEY"),
            "base_url": os.getenv("OPENAI_BASE_URL"),
        }
        if os.getenv("SHUTTLE_MAX_STEPS"):
            values["max_steps"] = int(os.environ["SHUTTLE_MAX_STEPS"])
        if os.getenv("SHUTTLE_TOOL_TIMEOUT_MS"):
            values["tool_timeout_ms"] = int(os.environ["SHUTTLE_TOOL_TIMEOUT_MS"])
        values.update(overrides)
        return cls(**values)
