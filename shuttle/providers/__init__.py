"""Inference providers."""

from ..types import InferenceProvider
from .anthropic import AnthropicProvider
from .base import BaseProvider, RetryConfig
from .openai import OpenAIProvider
from .scripted import ScriptedProvider, response_to_events

__all__ = [
    "InferenceProvider",
    "BaseProvider", "RetryConfig",
    "OpenAIProvider", "AnthropicProvider",
    "ScriptedProvider", "response_to_events",
]
