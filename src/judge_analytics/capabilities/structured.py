"""
Structured capability

One interface for the detector, validator, and summary: send a prompt,
get back a value matching a fixed pydantic schema, or fail with a typed error.
"""

from __future__ import annotations

import logging
import re
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from judge_analytics.domain.errors import (
    CapabilityCallFailure,
    CapabilityContractViolation,
    CapabilityError,
)
from judge_analytics.infrastructure.model_clients.base import ModelClient

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def extract_json(raw: str) -> str:
    """
    Extract the JSON portion of a model response

    Prefers a fenced code block; otherwise takes the outermost {...} span.
    """
    text = raw.strip()
    match = _CODE_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def parse_structured_output(raw: str, schema: type[SchemaT], capability: str = "capability") -> SchemaT:
    """
    Validate a model response against a schema

    Args:
        raw: Model response text
        schema: Pydantic model the response must match
        capability: Capability name, for error messages

    Returns:
        The validated model instance

    Raises:
        CapabilityContractViolation: If the response is not valid JSON or fails validation
    """
    try:
        return schema.model_validate_json(extract_json(raw))
    except ValidationError as e:
        raise CapabilityContractViolation(
            f"{capability} output does not match {schema.__name__}: {e.error_count()} error(s); "
            f"first: {e.errors()[0]['msg'] if e.errors() else 'unknown'}; response: {raw[:200]}"
        ) from e


class StructuredCapability(Generic[SchemaT]):
    """A model client bound to fixed instructions and an output schema"""

    def __init__(self, name: str, client: ModelClient, instructions: str, schema: type[SchemaT]) -> None:
        self.name = name
        self._client = client
        self.instructions = instructions
        self.schema = schema

    def invoke(self, prompt: str) -> SchemaT:
        """
        Call the capability once

        Any failure of the client call surfaces as CapabilityCallFailure, whether
        or not the client translated it.

        Raises:
            CapabilityCallFailure: If the underlying call fails
            CapabilityContractViolation: If the output fails schema validation
        """
        try:
            response = self._client.generate(prompt, system_prompt=self.instructions)
        except CapabilityError:
            raise
        except Exception as e:
            raise CapabilityCallFailure(f"{self.name} call failed: {type(e).__name__}: {e}") from e
        logger.debug(
            "%s responded in %d ms (%d in / %d out tokens)",
            self.name, response.latency_ms, response.input_tokens, response.output_tokens,
        )
        return parse_structured_output(response.output, self.schema, self.name)
