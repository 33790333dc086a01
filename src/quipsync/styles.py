"""
Script style catalog for transition script generation.

Each predefined style is a tone the model is asked to write in. The special
``personal`` style id defers to a StyleProfile derived from the DJ's own
script samples instead of a catalog entry.

Styles set TONE, not CONTENT: every script still has to bridge the specific
story to the specific song.
"""

PERSONAL_STYLE_ID = "personal"

DEFAULT_STYLE_ID = "conversational"

SCRIPT_STYLES = {
    "conversational": {
        "name": "Conversational",
        "description": "Natural, friendly, relatable",
    },
    "humorous": {
        "name": "Humorous",
        "description": "Light, witty, entertaining",
    },
    "touching": {
        "name": "Touching",
        "description": "Emotional, heartfelt, moving",
    },
    "inspiring": {
        "name": "Inspiring",
        "description": "Uplifting, motivational",
    },
    "dramatic": {
        "name": "Dramatic",
        "description": "Bold, impactful storytelling",
    },
    "reflective": {
        "name": "Reflective",
        "description": "Thoughtful, contemplative",
    },
}


def get_style(style_id):
    """
    Get catalog entry for a predefined style.

    Args:
        style_id: Style id (exact match; ids are lowercase)

    Returns:
        Dict with id, name and description, or None if not a predefined style
    """
    entry = SCRIPT_STYLES.get(style_id)
    if entry is None:
        return None
    return {"id": style_id, **entry}


def get_available_styles():
    """
    Get the predefined styles in display order.

    Returns:
        List of dicts with id, name and description
    """
    return [get_style(style_id) for style_id in SCRIPT_STYLES]


def is_known_style(style_id):
    """True for predefined style ids and the personal style id."""
    return style_id == PERSONAL_STYLE_ID or style_id in SCRIPT_STYLES
