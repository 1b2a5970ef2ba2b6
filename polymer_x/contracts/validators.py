"""Validators for raw sample readings and remote model outputs.

Provides utilities for:
- Normalizing raw readings into ``WaterAnalysis`` (the Input Normalizer)
- Extracting the payload from fenced code blocks in model responses
- Validating payloads against Pydantic schemas
"""

import json
import re
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from polymer_x.contracts.schemas import RemoteDesignPayload, WaterAnalysis
from polymer_x.errors import RemoteParseError, ValidationError

T = TypeVar("T", bound=BaseModel)

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


# =============================================================================
# Sample Normalization
# =============================================================================


def normalize_sample(raw: WaterAnalysis | Mapping[str, Any]) -> WaterAnalysis:
    """Shape a raw reading into a validated ``WaterAnalysis``.

    Salinity above the practical range and the stress flag pass through
    unchanged; negative or non-finite salinity is rejected.

    Raises:
        ValidationError: unknown plastic type, out-of-range coordinates,
            bad salinity or missing fields.
    """
    if isinstance(raw, WaterAnalysis):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Expected a mapping, got {type(raw).__name__}")

    try:
        return WaterAnalysis.model_validate(dict(raw))
    except PydanticValidationError as e:
        errors = [_format_error(err) for err in e.errors()]
        raise ValidationError("Invalid water analysis: " + "; ".join(errors), errors) from e


def _format_error(err: dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ())) or "input"
    return f"{loc}: {err.get('msg', 'invalid')}"


# =============================================================================
# Remote Payload Extraction
# =============================================================================


def extract_fenced_payload(response: str) -> str:
    """Return the first fenced code block, or the whole text if there is none.

    Handles:
    - ```json ... ``` blocks
    - ``` ... ``` blocks (no language specified)
    - Raw text
    """
    match = FENCED_BLOCK.search(response)
    if match:
        return match.group(1).strip()
    return response.strip()


def parse_and_validate(response: str, schema: type[T]) -> T:
    """Parse a model response and validate it against a Pydantic schema.

    Raises:
        RemoteParseError: if the payload is not JSON or fails validation.
    """
    payload = extract_fenced_payload(response)
    if not payload:
        raise RemoteParseError("Empty response payload")

    try:
        data = json.loads(payload)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integer literals and runaway nesting
        raise RemoteParseError(f"JSON parse error: {e}") from e

    if not isinstance(data, dict):
        raise RemoteParseError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [_format_error(err) for err in e.errors()]
        raise RemoteParseError("Schema validation failed: " + "; ".join(errors)) from e


def parse_design_payload(response: str) -> RemoteDesignPayload:
    """Parse remote text into an untrusted ``RemoteDesignPayload``."""
    return parse_and_validate(response, RemoteDesignPayload)
