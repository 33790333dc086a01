"""
Constants for LLM script generation.

This module centralizes the magic numbers used when building prompts and
calling the structured completion engine.
"""

# Structured completion defaults
DEFAULT_MAX_OUTPUT_TOKENS = 1400
DEFAULT_TEMPERATURE = 0.7
DEFAULT_RETRY_BUDGET = 2

# Transition script generation
SCRIPT_MAX_OUTPUT_TOKENS = 1600
SCRIPT_TEMPERATURE = 0.7
SCRIPT_RETRY_BUDGET = 2

# Personal style analysis (lower temperature for a steadier profile)
STYLE_MAX_OUTPUT_TOKENS = 1200
STYLE_TEMPERATURE = 0.5
STYLE_RETRY_BUDGET = 2

# Extracted article text is truncated to this many characters before it
# goes into the prompt or the cache key.
MAX_STORY_CHARS = 8000

# Story summary length requested from the model
STORY_SUMMARY_MAX_WORDS = 120

# Lyrics quoted in the song analysis are capped at this many words
MAX_QUOTED_LYRIC_WORDS = 10

# Separator placed between uploaded script samples in the style prompt
SCRIPT_SAMPLE_SEPARATOR = "\n\n---\n\n"

# Script slots, in the order the model must return them.
# Radio read speed is roughly 2.5-3.0 words per second, so each word range
# maps onto an on-air timing window. Advisory only: never checked on output.
SCRIPT_SLOTS = (
    {"name": "long", "min_words": 60, "max_words": 75, "timing": "~20–25s"},
    {"name": "medium", "min_words": 30, "max_words": 40, "timing": "~10–15s"},
    {"name": "short", "min_words": 18, "max_words": 28, "timing": "~5–10s"},
)

WORD_TARGETS = {
    slot["name"]: {"min": slot["min_words"], "max": slot["max_words"]}
    for slot in SCRIPT_SLOTS
}

# Number of transition scripts every ScriptResult must contain
SCRIPT_COUNT = len(SCRIPT_SLOTS)
