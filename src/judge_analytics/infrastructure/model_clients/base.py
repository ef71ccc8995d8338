"""
Model client base class and fail-fast mixin

Defines the abstract base class inherited by all model clients and the
FailFastMixin that makes exactly one call and translates transport errors.
"""

from abc import ABC, abstractmethod

from judge_analytics.domain.errors import CapabilityCallFailure
from judge_analytics.domain.value_objects import ModelResponse


class FailFastMixin:
    """Single-attempt calls. Transport errors become CapabilityCallFailure."""

    model_name: str = ""

    def _call_once(self, fn, transport_exceptions=(Exception,)):
        """
        Execute fn exactly once.

        Args:
            fn: The function to call (a callable with no arguments)
            transport_exceptions: Tuple of SDK exception types treated as transport failures

        Returns:
            The return value of fn()

        Raises:
            CapabilityCallFailure: If fn raises one of transport_exceptions
        """
        try:
            return fn()
        except transport_exceptions as e:
            raise CapabilityCallFailure(f"{self.model_name} call failed: {e}") from e


class ModelClient(ABC):
    """Abstract base class for model clients"""

    @abstractmethod
    def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:
        """Send a prompt (with optional system instructions) and retrieve the response"""
        pass
