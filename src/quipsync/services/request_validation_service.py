"""
Request validation service.

Handles all input validation for QuipSync operations, including:
- Script generation input (story, song, artist, style, PG-safety)
- Personal style profiles supplied with a request
- Style profile creation input (description and script samples)
- Story URLs for the extraction endpoint

Every check runs before any network or provider I/O.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from ..models import ScriptRequest, StyleProfile, StyleProfileRequest, check_schema
from ..styles import DEFAULT_STYLE_ID, PERSONAL_STYLE_ID, SCRIPT_STYLES, is_known_style
from ..utils.errors import ValidationError
from ..utils.extraction import is_url

logger = logging.getLogger(__name__)

SCRIPT_PAYLOAD_FIELDS = {
    "storyInput": "story_input",
    "songTitle": "song_title",
    "artist": "artist",
    "styleSelection": "style_selection",
    "pgSafe": "pg_safe",
    "personalStyle": "personal_style",
}

STYLE_PROFILE_PAYLOAD_FIELDS = {
    "styleDescription": "style_description",
    "scriptSamples": "script_samples",
}


class RequestValidationService:
    """Service for validating and normalizing operation input."""

    MAX_STORY_INPUT_LENGTH = 20000
    MAX_SONG_FIELD_LENGTH = 300
    MAX_STYLE_DESCRIPTION_LENGTH = 2000
    MAX_SCRIPT_SAMPLES = 20
    MAX_SCRIPT_SAMPLE_LENGTH = 20000

    def _require_text(self, value: Any, field: str, label: str, max_length: int) -> str:
        if value is None:
            raise ValidationError(f"{label} is required.", details={"field": field})
        if not isinstance(value, str):
            raise ValidationError(
                f"{label} must be a string.",
                details={"field": field, "type": type(value).__name__}
            )
        value = value.strip()
        if not value:
            raise ValidationError(f"{label} cannot be empty.", details={"field": field})
        if len(value) > max_length:
            raise ValidationError(
                f"{label} is too long (maximum {max_length} characters).",
                details={"field": field, "length": len(value), "max_length": max_length}
            )
        return value

    def _reject_unknown_keys(self, payload: Any, allowed: Iterable[str]) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise ValidationError(
                "Request body must be a JSON object.",
                details={"type": type(payload).__name__}
            )
        unknown = sorted(set(payload) - set(allowed))
        if unknown:
            raise ValidationError(
                f"Unknown field(s): {', '.join(unknown)}.",
                details={"fields": unknown}
            )
        return payload

    def validate_personal_style(self, personal_style: Any) -> Dict[str, Any]:
        """
        Validate a personal StyleProfile supplied with a script request.

        Returns:
            Normalized profile using wire (camelCase) field names

        Raises:
            ValidationError: If the profile is missing or malformed
        """
        if personal_style is None:
            raise ValidationError(
                "The personal style needs a style profile. Create one first.",
                details={"field": "personalStyle"}
            )
        outcome = check_schema(StyleProfile, personal_style)
        if not outcome.ok:
            raise ValidationError(
                "Personal style profile is invalid.",
                details={"field": "personalStyle", "reason": outcome.error[:800]}
            )
        return outcome.value

    def validate_script_input(
        self,
        story_input: Any,
        song_title: Any,
        artist: Any,
        style_selection: Any = DEFAULT_STYLE_ID,
        pg_safe: Any = True,
        personal_style: Any = None,
    ) -> ScriptRequest:
        """
        Validate script generation input.

        Args:
            story_input: Story text or URL
            song_title: Song title
            artist: Artist name
            style_selection: Predefined style id or "personal"
            pg_safe: Whether to add the content safety clause (must be a bool)
            personal_style: StyleProfile dict, required when style is "personal"

        Returns:
            ScriptRequest with trimmed fields

        Raises:
            ValidationError: If validation fails
        """
        story = self._require_text(story_input, "storyInput", "Story", self.MAX_STORY_INPUT_LENGTH)
        title = self._require_text(song_title, "songTitle", "Song title", self.MAX_SONG_FIELD_LENGTH)
        artist_name = self._require_text(artist, "artist", "Artist", self.MAX_SONG_FIELD_LENGTH)

        if style_selection is None:
            style_selection = DEFAULT_STYLE_ID
        if not isinstance(style_selection, str) or not is_known_style(style_selection.strip()):
            allowed = list(SCRIPT_STYLES) + [PERSONAL_STYLE_ID]
            raise ValidationError(
                f"Unknown script style: {style_selection!r}. "
                f"Available styles: {', '.join(allowed)}",
                details={"field": "styleSelection", "allowed": allowed}
            )
        style_selection = style_selection.strip()

        if not isinstance(pg_safe, bool):
            raise ValidationError(
                "pgSafe must be a boolean.",
                details={"field": "pgSafe", "type": type(pg_safe).__name__}
            )

        profile: Optional[Dict[str, Any]] = None
        if style_selection == PERSONAL_STYLE_ID:
            profile = self.validate_personal_style(personal_style)
        elif personal_style is not None:
            logger.debug(f"Ignoring personal style profile for style '{style_selection}'")

        return ScriptRequest(
            story_input=story,
            song_title=title,
            artist=artist_name,
            style_selection=style_selection,
            pg_safe=pg_safe,
            personal_style=profile,
        )

    def validate_script_payload(self, payload: Any) -> ScriptRequest:
        """Validate a camelCase script generation payload."""
        payload = self._reject_unknown_keys(payload, SCRIPT_PAYLOAD_FIELDS)
        kwargs = {
            name: payload[key]
            for key, name in SCRIPT_PAYLOAD_FIELDS.items()
            if key in payload
        }
        return self.validate_script_input(
            kwargs.pop("story_input", None),
            kwargs.pop("song_title", None),
            kwargs.pop("artist", None),
            **kwargs
        )

    def validate_style_profile_input(
        self,
        style_description: Any,
        script_samples: Any,
    ) -> StyleProfileRequest:
        """
        Validate personal style creation input.

        Blank samples are dropped; at least one non-blank sample must remain.

        Raises:
            ValidationError: If validation fails
        """
        description = self._require_text(
            style_description,
            "styleDescription",
            "Style description",
            self.MAX_STYLE_DESCRIPTION_LENGTH,
        )

        if isinstance(script_samples, str) or not isinstance(script_samples, (list, tuple)):
            raise ValidationError(
                "scriptSamples must be a list of script texts.",
                details={"field": "scriptSamples", "type": type(script_samples).__name__}
            )

        samples = []
        for index, sample in enumerate(script_samples):
            if not isinstance(sample, str):
                raise ValidationError(
                    "Every script sample must be a string.",
                    details={"field": f"scriptSamples[{index}]", "type": type(sample).__name__}
                )
            sample = sample.strip()
            if not sample:
                continue
            if len(sample) > self.MAX_SCRIPT_SAMPLE_LENGTH:
                raise ValidationError(
                    f"Script sample is too long (maximum {self.MAX_SCRIPT_SAMPLE_LENGTH} characters).",
                    details={"field": f"scriptSamples[{index}]", "length": len(sample)}
                )
            samples.append(sample)

        if not samples:
            raise ValidationError(
                "Please provide at least one script sample.",
                details={"field": "scriptSamples"}
            )
        if len(samples) > self.MAX_SCRIPT_SAMPLES:
            raise ValidationError(
                f"Too many script samples (maximum {self.MAX_SCRIPT_SAMPLES}).",
                details={"field": "scriptSamples", "count": len(samples)}
            )

        return StyleProfileRequest(style_description=description, script_samples=tuple(samples))

    def validate_style_profile_payload(self, payload: Any) -> StyleProfileRequest:
        """Validate a camelCase style profile payload."""
        payload = self._reject_unknown_keys(payload, STYLE_PROFILE_PAYLOAD_FIELDS)
        return self.validate_style_profile_input(
            payload.get("styleDescription"),
            payload.get("scriptSamples"),
        )

    def validate_story_url(self, url: Any) -> str:
        """
        Validate a story URL for extraction.

        Raises:
            ValidationError: If the value is not a single http(s) URL
        """
        if not isinstance(url, str) or not is_url(url):
            raise ValidationError("Invalid URL", details={"field": "url"})
        return url.strip()
