"""
Prompt builder for transition script and personal style generation.

This module builds the instruction text handed to the structured completion
engine. The JSON guard and example shape are added by the engine itself.

Key Components:
- ResolvedStyle: style instructions plus the descriptor that feeds the cache key
- resolve_style: predefined style id or personal profile -> ResolvedStyle
- build_script_prompt / build_style_prompt: the two request shapes
- split_song_phrase: "Song Title by Artist" convenience splitter
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from ..styles import PERSONAL_STYLE_ID
from .llm_constants import (
    MAX_QUOTED_LYRIC_WORDS,
    SCRIPT_SAMPLE_SEPARATOR,
    SCRIPT_SLOTS,
    STORY_SUMMARY_MAX_WORDS,
)

PG_SAFE_CLAUSE = (
    "Content safety: Keep humor clean (PG-safe). "
    "Avoid profanity or sensitive topics unless directly provided in input."
)

PERSONAL_STYLE_DIRECTIVE = (
    "Use this personal style to match the DJ's unique voice, "
    "word choices, rhythm, and approach."
)

SCRIPT_FORMAT_EXAMPLE = """{
  "storyDetails": "brief summary",
  "songAnalysis": "themes/emotions",
  "whyThisWorks": "one-sentence rationale PDs would appreciate",
  "scripts": [
    { "script": "first script (long)", "deliveryNotes": "timing/delivery guidance" },
    { "script": "second script (medium)", "deliveryNotes": "timing/delivery guidance" },
    { "script": "third script (short)", "deliveryNotes": "timing/delivery guidance" }
  ]
}"""

STYLE_FORMAT_EXAMPLE = """{
  "styleProfile": "Detailed analysis of the DJ's writing style, voice, and approach",
  "keyCharacteristics": ["list", "of", "specific", "style", "traits"],
  "samplePhrases": ["example phrases", "that capture their voice"],
  "instructions": "Specific guidance for replicating this style in new scripts"
}"""


@dataclass(frozen=True)
class ResolvedStyle:
    """Style selection turned into prompt text and a cache descriptor."""
    selection: str
    instructions: str
    descriptor: str


def style_descriptor(style_selection: str, personal_style: Optional[Dict[str, Any]] = None) -> str:
    """
    Compact text that identifies the style for cache keying.

    The style id for predefined styles; compact JSON of the profile for the
    personal style, so editing the profile invalidates older entries.
    """
    if style_selection == PERSONAL_STYLE_ID and personal_style is not None:
        return json.dumps(personal_style, separators=(",", ":"), ensure_ascii=False)
    return style_selection


def build_personal_style_block(profile: Dict[str, Any]) -> str:
    """Render a StyleProfile (wire names) as a style instruction block."""
    lines = [
        f"PERSONAL STYLE PROFILE: {profile['styleProfile']}",
        f"KEY CHARACTERISTICS: {', '.join(profile.get('keyCharacteristics') or [])}",
        f"SAMPLE PHRASES: {', '.join(profile.get('samplePhrases') or [])}",
        f"REPLICATION INSTRUCTIONS: {profile['instructions']}",
        PERSONAL_STYLE_DIRECTIVE,
    ]
    return "\n".join(lines)


def resolve_style(style_selection: str, personal_style: Optional[Dict[str, Any]] = None) -> ResolvedStyle:
    """
    Resolve a style selection into prompt instructions.

    Args:
        style_selection: Predefined style id or "personal"
        personal_style: Validated StyleProfile (wire names), required for "personal"

    Returns:
        ResolvedStyle for prompt building and cache keying
    """
    if style_selection == PERSONAL_STYLE_ID and personal_style is not None:
        instructions = build_personal_style_block(personal_style)
    else:
        instructions = f"Write in a {style_selection} style."
    return ResolvedStyle(
        selection=style_selection,
        instructions=instructions,
        descriptor=style_descriptor(style_selection, personal_style),
    )


def build_safety_clause(pg_safe: bool) -> str:
    return PG_SAFE_CLAUSE if pg_safe else ""


def build_timing_hint() -> str:
    """Word-count targets per script slot. Advisory only."""
    lines = ["Timing & word-count targets (approx):"]
    for position, slot in enumerate(SCRIPT_SLOTS, start=1):
        lines.append(
            f"- Script {position} ({slot['name']}): "
            f"{slot['min_words']}-{slot['max_words']} words"
        )
    return "\n".join(lines)


def build_script_prompt(
    cleaned_story: str,
    song_title: str,
    artist: str,
    style: ResolvedStyle,
    pg_safe: bool,
) -> str:
    """
    Build the instruction text for transition script generation.

    Args:
        cleaned_story: Story text (already extracted and truncated for URLs)
        song_title: Song title
        artist: Artist name
        style: Resolved style
        pg_safe: Whether to add the content safety clause

    Returns:
        Instruction text for the structured completion engine
    """
    song = f'"{song_title}" by {artist}'
    prompt_parts = [
        "You are helping a radio DJ create compelling transition scripts "
        "that connect a story to a song.",
        "",
        f'STORY INPUT (CLEANED TEXT): "{cleaned_story}"',
        f"SONG: {song}",
        f"SCRIPT STYLE: {style.selection}",
        style.instructions,
    ]

    safety = build_safety_clause(pg_safe)
    if safety:
        prompt_parts.append(safety)

    prompt_parts.extend([
        "",
        "Do the following, in order:",
        "1) Create a brief radio-friendly summary of the story "
        f"(assume it's current/trending; <= {STORY_SUMMARY_MAX_WORDS} words).",
        f"2) Analyze the general themes and emotional core of {song} "
        f"without quoting lyrics beyond {MAX_QUOTED_LYRIC_WORDS} words.",
        "3) Propose the best single bridging angle that logically links the story "
        "to the song for mainstream radio.",
        "4) Generate 3 different transition scripts that connect the story to the song, "
        "each matching the specified tone and the word-length targets below. "
        "End each with a clean handoff into the song without naming the DJ.",
        "",
        build_timing_hint(),
        "",
        "Return ONLY strict JSON in this format:",
        SCRIPT_FORMAT_EXAMPLE,
    ])
    return "\n".join(prompt_parts)


def build_style_prompt(style_description: str, script_samples: Sequence[str]) -> str:
    """
    Build the instruction text for personal style analysis.

    Samples are joined with a horizontal-rule separator so the model can tell
    them apart.
    """
    joined_samples = SCRIPT_SAMPLE_SEPARATOR.join(script_samples)
    return (
        "Analyze these script samples from a radio DJ to create a personalized style profile:\n"
        "\n"
        f'USER\'S STYLE DESCRIPTION: "{style_description}"\n'
        "\n"
        "SCRIPT SAMPLES:\n"
        f"{joined_samples}\n"
        "\n"
        "Respond with JSON:\n"
        f"{STYLE_FORMAT_EXAMPLE}"
    )


def split_song_phrase(phrase: str) -> Tuple[str, Optional[str]]:
    """
    Split a spoken "Song Title by Artist" phrase.

    Only an unambiguous phrase (exactly one " by ") is split; otherwise the
    whole phrase is treated as the title and the artist is None.

    Returns:
        Tuple of (song_title, artist_or_None)
    """
    text = (phrase or "").strip()
    lowered = text.lower()
    if lowered.count(" by ") != 1:
        return text, None
    index = lowered.index(" by ")
    title = text[:index].strip()
    artist = text[index + len(" by "):].strip()
    if not title or not artist:
        return text, None
    return title, artist
