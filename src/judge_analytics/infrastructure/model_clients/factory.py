"""
Model client factory

Creates the appropriate client instance based on the model name.
"""

from __future__ import annotations

from judge_analytics.analytics_config import AnalyticsConfig, load_config
from judge_analytics.infrastructure.model_clients.base import ModelClient
from judge_analytics.infrastructure.model_clients.claude import ClaudeClient
from judge_analytics.infrastructure.model_clients.openai_compat import LMSTUDIO_PREFIX, OpenAIClient
from judge_analytics.infrastructure.model_clients.vertex_ai import VertexAIClient


def create_client(
    model_name: str,
    config: AnalyticsConfig | None = None,
    max_tokens: int = 1500,
    temperature: float = 0.0,
) -> ModelClient:
    """
    Create the appropriate client based on the model name

    Args:
        model_name: Model name (claude*, gemini*, lmstudio/*, otherwise OpenAI)
        config: AnalyticsConfig (loads from env if not provided)
        max_tokens: Maximum number of output tokens for this capability
        temperature: Sampling temperature for this capability

    Returns:
        ModelClient: The appropriate client instance

    Raises:
        ValueError: If the provider's credentials are not configured
    """
    if config is None:
        config = load_config()

    timeout = config.capabilities.timeout_seconds

    if model_name.startswith(LMSTUDIO_PREFIX):
        return OpenAIClient(
            model_name,
            base_url=config.openai_compat.base_url,
            api_key=config.openai_compat.api_key,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout_seconds=timeout,
        )
    elif model_name.startswith("claude"):
        return ClaudeClient(model_name, max_tokens=max_tokens, temperature=temperature, timeout_seconds=timeout)
    elif model_name.startswith("gemini"):
        return VertexAIClient(model_name, max_tokens=max_tokens, temperature=temperature, timeout_seconds=timeout)
    else:
        return OpenAIClient(model_name, max_tokens=max_tokens, temperature=temperature, timeout_seconds=timeout)
