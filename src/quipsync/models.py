"""
Structured result schemas and request models.

The two result schemas (ScriptResult, StyleProfile) are declarative Pydantic
models. Field names are snake_case in Python and camelCase on the wire; extra
keys are rejected and types are checked strictly. ``check_schema`` interprets
any of these schemas and returns a tagged ``SchemaCheck`` instead of raising.
"""

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .utils.llm_constants import SCRIPT_COUNT


class WireModel(BaseModel):
    """Base for schemas exchanged with the model and with API callers."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="forbid",
        frozen=True,
    )

    # Literal example rendered into the JSON guard of the completion prompt
    EXAMPLE_SHAPE: ClassVar[Dict[str, Any]] = {}

    @classmethod
    def example_json(cls) -> str:
        return json.dumps(cls.EXAMPLE_SHAPE, indent=2)

    def to_wire(self) -> Dict[str, Any]:
        """Dump using camelCase wire names."""
        return self.model_dump(by_alias=True)


class ScriptEntry(WireModel):
    """One transition script and how to deliver it."""
    script: StrictStr = Field(..., min_length=1)
    delivery_notes: StrictStr = Field(..., min_length=1)


class ScriptResult(WireModel):
    """
    Story research, song analysis and exactly three transition scripts.

    Scripts are ordered long, medium, short; callers label them by position.
    """
    story_details: StrictStr = Field(..., min_length=1)
    song_analysis: StrictStr = Field(..., min_length=1)
    why_this_works: StrictStr = Field(..., min_length=1)
    scripts: List[ScriptEntry] = Field(..., min_length=SCRIPT_COUNT, max_length=SCRIPT_COUNT)

    EXAMPLE_SHAPE = {
        "storyDetails": "string",
        "songAnalysis": "string",
        "whyThisWorks": "string",
        "scripts": [
            {"script": "string", "deliveryNotes": "string"},
            {"script": "string", "deliveryNotes": "string"},
            {"script": "string", "deliveryNotes": "string"},
        ],
    }


class StyleProfile(WireModel):
    """A DJ's personal writing style, distilled from their own scripts."""
    style_profile: StrictStr = Field(..., min_length=1)
    key_characteristics: List[StrictStr] = Field(..., min_length=1)
    sample_phrases: List[StrictStr] = Field(..., min_length=1)
    instructions: StrictStr = Field(..., min_length=1)

    EXAMPLE_SHAPE = {
        "styleProfile": "string",
        "keyCharacteristics": ["string"],
        "samplePhrases": ["string"],
        "instructions": "string",
    }


@dataclass(frozen=True)
class SchemaCheck:
    """Tagged outcome of validating data against a schema."""
    ok: bool
    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Dict[str, Any]) -> "SchemaCheck":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "SchemaCheck":
        return cls(ok=False, error=error)


def check_schema(schema: Type[WireModel], data: Any) -> SchemaCheck:
    """
    Validate already-parsed data against a schema.

    Args:
        schema: WireModel subclass describing the expected shape
        data: Parsed JSON value

    Returns:
        SchemaCheck holding the normalized wire dict, or the validation diagnostic
    """
    if not isinstance(data, dict):
        return SchemaCheck.failure(
            f"Expected a JSON object for {schema.__name__}, got {type(data).__name__}"
        )
    try:
        model = schema.model_validate(data)
    except PydanticValidationError as e:
        return SchemaCheck.failure(str(e))
    return SchemaCheck.success(model.to_wire())


@dataclass(frozen=True)
class ConversationTurn:
    """A single message in a completion conversation."""
    role: str
    content: str

    def __post_init__(self):
        if self.role not in ("user", "assistant"):
            raise ValueError(f"Unknown conversation role: {self.role!r}")


Conversation = Tuple[ConversationTurn, ...]


@dataclass(frozen=True)
class CompletionRequest:
    """Parameters of one structured completion call."""
    instruction_text: str
    target_schema: Type[WireModel]
    max_output_tokens: int
    temperature: float
    retry_budget: int
    example_shape: Optional[str] = None
    model: Optional[str] = None

    def __post_init__(self):
        if self.retry_budget < 0:
            raise ValueError("retry_budget must be >= 0")
        if self.max_output_tokens < 1:
            raise ValueError("max_output_tokens must be >= 1")

    @property
    def example(self) -> str:
        return self.example_shape or self.target_schema.example_json()


@dataclass(frozen=True)
class ScriptRequest:
    """Validated input for transition script generation."""
    story_input: str
    song_title: str
    artist: str
    style_selection: str
    pg_safe: bool
    personal_style: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class StyleProfileRequest:
    """Validated input for personal style extraction."""
    style_description: str
    script_samples: Tuple[str, ...]
