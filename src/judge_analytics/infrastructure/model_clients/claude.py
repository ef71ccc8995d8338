"""
Anthropic Claude model client
"""

import os
import time

from anthropic import Anthropic, APIConnectionError, RateLimitError, APIStatusError

from judge_analytics.domain.value_objects import ModelResponse
from judge_analytics.infrastructure.model_clients.base import FailFastMixin, ModelClient


class ClaudeClient(FailFastMixin, ModelClient):
    """Claude client using the Anthropic API"""

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        max_tokens: int = 1500,
        temperature: float = 0.0,
        timeout_seconds: int = 60,
    ):
        """
        Args:
            model_name: Model name (e.g. claude-sonnet-4-5-20250514)
            api_key: Anthropic API key (falls back to environment variable if not specified)
            max_tokens: Maximum number of output tokens
            temperature: Sampling temperature
            timeout_seconds: Request timeout in seconds
        """
        self.model_name = model_name
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.max_tokens = max_tokens
        self.temperature = temperature

        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")

        # SDK-level retries are disabled; failed calls are not retried
        self.client = Anthropic(api_key=self.api_key, timeout=timeout_seconds, max_retries=0)

    def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Args:
            prompt: Input prompt
            system_prompt: Instructions sent as the system prompt

        Returns:
            ModelResponse: The model's response

        Raises:
            CapabilityCallFailure: If the API call fails
        """
        def _call():
            kwargs = {}
            if system_prompt:
                kwargs["system"] = system_prompt
            start_time = time.time()
            response = self.client.messages.create(
                model=self.model_name,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
            end_time = time.time()

            latency_ms = int((end_time - start_time) * 1000)
            output = response.content[0].text.strip()

            input_tokens = getattr(response.usage, "input_tokens", 0) or 0
            output_tokens = getattr(response.usage, "output_tokens", 0) or 0

            return ModelResponse(
                output=output,
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        return self._call_once(
            _call,
            transport_exceptions=(APIConnectionError, RateLimitError, APIStatusError),
        )
