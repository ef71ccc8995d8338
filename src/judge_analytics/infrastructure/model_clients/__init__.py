"""
Model client package

Provides a unified interface to each LLM provider.
"""

from judge_analytics.infrastructure.model_clients.base import ModelClient
from judge_analytics.infrastructure.model_clients.factory import create_client
from judge_analytics.domain.value_objects import ModelResponse

__all__ = ["ModelClient", "ModelResponse", "create_client"]
