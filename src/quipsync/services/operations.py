"""
Public operation surface.

The two user-facing operations take camelCase payloads and return an
OperationResult instead of raising: either the validated data, or an error
carrying its kind, the stage where it happened and a short message.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..utils.errors import APIError
from .script_generation_service import ScriptGenerationService
from .style_profile_service import StyleProfileService

logger = logging.getLogger(__name__)

INTERNAL_ERROR = {
    "kind": "internal",
    "stage": "internal",
    "message": "An unexpected error occurred. Please try again.",
}


@dataclass(frozen=True)
class OperationResult:
    """Tagged outcome of a public operation."""
    data: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, str]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Dict[str, Any]) -> "OperationResult":
        return cls(data=data)

    @classmethod
    def failure(cls, error: APIError) -> "OperationResult":
        return cls(error=error.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error}


def generate_scripts(
    payload: Any,
    service: Optional[ScriptGenerationService] = None,
) -> OperationResult:
    """
    Generate transition scripts from a camelCase payload.

    Payload keys: storyInput, songTitle, artist, styleSelection, pgSafe,
    personalStyle. Unknown keys are rejected.
    """
    service = service or ScriptGenerationService()
    try:
        request = service.validator.validate_script_payload(payload)
        return OperationResult.success(service.generate_from_request(request))
    except APIError as e:
        logger.info(f"generate_scripts failed at {e.stage}: {e.kind}")
        return OperationResult.failure(e)
    except Exception:
        logger.exception("Unexpected error in generate_scripts")
        return OperationResult(error=dict(INTERNAL_ERROR))


def create_style_profile(
    payload: Any,
    service: Optional[StyleProfileService] = None,
) -> OperationResult:
    """
    Create a personal style profile from a camelCase payload.

    Payload keys: styleDescription, scriptSamples. Unknown keys are rejected.
    """
    service = service or StyleProfileService()
    try:
        request = service.validator.validate_style_profile_payload(payload)
        return OperationResult.success(service.create_from_request(request))
    except APIError as e:
        logger.info(f"create_style_profile failed at {e.stage}: {e.kind}")
        return OperationResult.failure(e)
    except Exception:
        logger.exception("Unexpected error in create_style_profile")
        return OperationResult(error=dict(INTERNAL_ERROR))
