"""
QuipSync

Turns a trending story and a song into three short on-air transition scripts
for radio DJs, optionally written in the DJ's own personal style.
"""

from .styles import (
    SCRIPT_STYLES,
    PERSONAL_STYLE_ID,
    get_style,
    get_available_styles,
)
from .models import ScriptResult, StyleProfile

__version__ = "0.1.0"

__all__ = [
    "SCRIPT_STYLES",
    "PERSONAL_STYLE_ID",
    "get_style",
    "get_available_styles",
    "ScriptResult",
    "StyleProfile",
]
