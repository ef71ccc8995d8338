"""
Vertex AI (Google GenAI SDK) model client
"""

import os
import time

from google import genai
from google.api_core import exceptions as google_exceptions
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig, HttpOptions

from judge_analytics.domain.value_objects import ModelResponse
from judge_analytics.infrastructure.model_clients.base import FailFastMixin, ModelClient


class VertexAIClient(FailFastMixin, ModelClient):
    """Model client using Google GenAI SDK (via Vertex AI)"""

    def __init__(
        self,
        model_name: str,
        project_id: str | None = None,
        location: str | None = None,
        max_tokens: int = 1500,
        temperature: float = 0.0,
        timeout_seconds: int = 60,
    ):
        """
        Args:
            model_name: Model name (e.g. gemini-2.5-pro, gemini-2.5-flash)
            project_id: GCP project ID (falls back to environment variable if not specified)
            location: Region (defaults to "global")
            max_tokens: Maximum number of output tokens
            temperature: Sampling temperature
            timeout_seconds: Timeout in seconds
        """
        self.model_name = model_name
        self.project_id = project_id or os.environ.get("GCP_PROJECT_ID")
        self.location = location or "global"
        self.max_tokens = max_tokens
        self.temperature = temperature

        if not self.project_id:
            raise ValueError("GCP_PROJECT_ID is not set")

        # Timeout is configured via HttpOptions (milliseconds)
        self.client = genai.Client(
            vertexai=True,
            project=self.project_id,
            location=self.location,
            http_options=HttpOptions(timeout=timeout_seconds * 1000),
        )

    def generate(self, prompt: str, system_prompt: str | None = None) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Args:
            prompt: Input prompt
            system_prompt: Instructions sent as the system instruction

        Returns:
            ModelResponse: The model's response

        Raises:
            CapabilityCallFailure: If the API call fails
        """
        def _call():
            config = GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
                system_instruction=system_prompt,
            )
            start_time = time.time()
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=config,
            )
            end_time = time.time()

            latency_ms = int((end_time - start_time) * 1000)

            input_tokens = 0
            output_tokens = 0
            if hasattr(response, "usage_metadata") and response.usage_metadata:
                input_tokens = getattr(response.usage_metadata, "prompt_token_count", 0) or 0
                output_tokens = getattr(response.usage_metadata, "candidates_token_count", 0) or 0

            return ModelResponse(
                output=(response.text or "").strip(),
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        return self._call_once(
            _call,
            transport_exceptions=(
                genai_errors.APIError,
                google_exceptions.DeadlineExceeded,
                google_exceptions.ServiceUnavailable,
                google_exceptions.ResourceExhausted,
            ),
        )
