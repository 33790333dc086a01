"""
Structured completion engine.

Drives a conversation with a completion provider until the reply parses as
JSON and validates against a target schema, feeding each validation failure
back to the model as a corrective turn. Fence stripping is lenient; schema
validation is strict.
"""

import json
import logging
import re
from typing import Any, Dict, Optional, Type

from ..models import (
    CompletionRequest,
    Conversation,
    ConversationTurn,
    SchemaCheck,
    WireModel,
    check_schema,
)
from .errors import SchemaValidationError, truncate_detail
from .llm import BaseLLMClient
from .llm_constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_RETRY_BUDGET,
    DEFAULT_TEMPERATURE,
)

logger = logging.getLogger(__name__)

JSON_GUARD_TEMPLATE = """
You MUST return ONLY valid, parseable JSON with no surrounding text or markdown fences.
Match this shape exactly. Do not add extra keys. Do not include comments.

Example shape:
{example}
"""

REPAIR_TEMPLATE = (
    "Your previous output failed JSON validation:\n{error}\n\n"
    "Return ONLY valid JSON that matches the required shape."
)

# Stands in for a blank reply so every assistant turn has content
EMPTY_OUTPUT_PLACEHOLDER = "(empty response)"

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


def render_json_guard(example_json: str) -> str:
    """Render the fixed JSON-only guard around a literal example shape."""
    return JSON_GUARD_TEMPLATE.format(example=example_json)


def strip_code_fences(raw: Optional[str]) -> str:
    """Remove a leading ```json (or bare ```) fence and a trailing ``` fence."""
    text = str(raw or "").strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


def parse_structured_output(raw: Optional[str], schema: Type[WireModel]) -> SchemaCheck:
    """
    Parse raw model output and validate it against ``schema``.

    Returns:
        SchemaCheck with the validated wire dict, or the parse/validation error
    """
    cleaned = strip_code_fences(raw)
    if not cleaned:
        return SchemaCheck.failure("Empty response: expected a JSON object")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        return SchemaCheck.failure(f"Invalid JSON: {e}")
    return check_schema(schema, data)


def opening_conversation(request: CompletionRequest) -> Conversation:
    """Build the single user turn that opens every structured completion."""
    guard = render_json_guard(request.example)
    return (ConversationTurn("user", f"{guard}\n\n{request.instruction_text}"),)


def with_repair_turns(conversation: Conversation, raw_output: str, error: str) -> Conversation:
    """Return a new conversation extended with the bad output and a corrective turn."""
    correction = REPAIR_TEMPLATE.format(error=truncate_detail(error) or "Validation failed")
    if not (raw_output or "").strip():
        raw_output = EMPTY_OUTPUT_PLACEHOLDER
    return conversation + (
        ConversationTurn("assistant", raw_output),
        ConversationTurn("user", correction),
    )


def complete_structured(provider: BaseLLMClient, request: CompletionRequest) -> Dict[str, Any]:
    """
    Run the parse/validate/repair loop for one structured completion.

    Provider errors propagate unchanged on the attempt where they happen;
    only parse and validation failures consume the retry budget.

    Args:
        provider: Completion provider
        request: Instruction text, target schema and generation parameters

    Returns:
        Validated object using wire (camelCase) field names

    Raises:
        SchemaValidationError: If all ``retry_budget + 1`` attempts fail validation
        ProviderError: If the provider call itself fails
    """
    schema_name = request.target_schema.__name__
    conversation = opening_conversation(request)
    total_attempts = request.retry_budget + 1
    last_error = "Validation failed"

    for attempt in range(1, total_attempts + 1):
        logger.debug(
            f"Structured completion attempt {attempt}/{total_attempts} "
            f"for {schema_name} ({len(conversation)} turns)"
        )
        raw_output = provider.complete(
            conversation,
            model=request.model,
            max_output_tokens=request.max_output_tokens,
            temperature=request.temperature,
        )

        outcome = parse_structured_output(raw_output, request.target_schema)
        if outcome.ok:
            if attempt > 1:
                logger.info(f"{schema_name} validated after {attempt} attempts")
            return outcome.value

        last_error = outcome.error or last_error
        logger.warning(
            f"{schema_name} attempt {attempt}/{total_attempts} failed validation: "
            f"{truncate_detail(last_error, 200)}"
        )
        conversation = with_repair_turns(conversation, raw_output or "", last_error)

    raise SchemaValidationError(last_error, attempts=total_attempts, schema_name=schema_name)


def complete_json(
    provider: BaseLLMClient,
    instruction_text: str,
    target_schema: Type[WireModel],
    example_shape: Optional[str] = None,
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    retry_budget: int = DEFAULT_RETRY_BUDGET,
    model: Optional[str] = None,
) -> Dict[str, Any]:
    """Keyword-argument convenience wrapper around ``complete_structured``."""
    request = CompletionRequest(
        instruction_text=instruction_text,
        target_schema=target_schema,
        max_output_tokens=max_output_tokens,
        temperature=temperature,
        retry_budget=retry_budget,
        example_shape=example_shape,
        model=model,
    )
    return complete_structured(provider, request)
