"""
OpenAI / OpenAI-compatible API (LMStudio etc.) model client
"""

import os
import time

import openai
from openai import OpenAI

from judge_analytics.domain.value_objects import ModelResponse
from judge_analytics.infrastructure.model_clients.base import FailFastMixin, ModelClient

LMSTUDIO_PREFIX = "lmstudio/"


class OpenAIClient(FailFastMixin, ModelClient):
    """Client using the OpenAI chat completions API (or a compatible local server)"""

    def __init__(
        self,
        model_name: str,
        base_url: str | None = None,
        api_key: str | None = None,
        max_tokens: int = 1500,
        temperature: float = 0.0,
        timeout_seconds: int = 60,
    ):
        """
        Args:
            model_name: Model name (e.g. gpt-4o-mini, or lmstudio/qwen2.5-7b for a local server)
            base_url: API endpoint (None for api.openai.com)
            api_key: API key (falls back to OPENAI_API_KEY if not specified)
            max_tokens: Maximum number of output tokens
            temperature: Sampling temperature
            timeout_seconds: Request timeout in seconds
        """
        self.model_name = model_name
        # Strip the lmstudio/ prefix to get the model name for the API
        self.api_model_name = model_name.removeprefix(LMSTUDIO_PREFIX)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.base_url = base_url

        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY is not set")

        # SDK-level retries are disabled; failed calls are not retried
        self.client = OpenAI(base_url=base_url, api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Args:
            prompt: Input prompt
            system_prompt: Instructions sent as the system message

        Returns:
            ModelResponse: The model's response

        Raises:
            CapabilityCallFailure: If the API call fails
        """
        def _call():
            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            start_time = time.time()
            response = self.client.chat.completions.create(
                model=self.api_model_name,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            end_time = time.time()

            latency_ms = int((end_time - start_time) * 1000)
            output = (response.choices[0].message.content or "").strip()

            input_tokens = 0
            output_tokens = 0
            if response.usage:
                input_tokens = response.usage.prompt_tokens or 0
                output_tokens = response.usage.completion_tokens or 0

            return ModelResponse(
                output=output,
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        return self._call_once(
            _call,
            transport_exceptions=(
                openai.APIConnectionError,
                openai.RateLimitError,
                openai.APIStatusError,
            ),
        )
