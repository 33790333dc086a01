"""
Tests for the script style catalog.

Tests cover style retrieval, the personal style id, and catalog ordering.
"""

import pytest
from quipsync.styles import (
    DEFAULT_STYLE_ID,
    PERSONAL_STYLE_ID,
    SCRIPT_STYLES,
    get_available_styles,
    get_style,
    is_known_style,
)

from tests.test_constants import INVALID_STYLE, STYLE_CONVERSATIONAL, STYLE_PERSONAL


class TestStyleRetrieval:
    """Test style catalog retrieval."""

    def test_get_available_styles_keeps_catalog_order(self):
        """Styles come back in display order with their ids."""
        styles = get_available_styles()
        assert [style["id"] for style in styles] == list(SCRIPT_STYLES)

    def test_get_style_returns_entry(self):
        style = get_style("dramatic")
        assert style == {
            "id": "dramatic",
            "name": "Dramatic",
            "description": "Bold, impactful storytelling",
        }

    def test_get_style_unknown(self):
        assert get_style(INVALID_STYLE) is None

    def test_personal_is_not_a_catalog_entry(self):
        assert get_style(PERSONAL_STYLE_ID) is None

    def test_default_style(self):
        assert DEFAULT_STYLE_ID == STYLE_CONVERSATIONAL
        assert DEFAULT_STYLE_ID in SCRIPT_STYLES


class TestIsKnownStyle:
    @pytest.mark.parametrize("style_id", list(SCRIPT_STYLES) + [STYLE_PERSONAL])
    def test_known(self, style_id):
        assert is_known_style(style_id)

    @pytest.mark.parametrize("style_id", [INVALID_STYLE, "Touching", "", None])
    def test_unknown(self, style_id):
        assert not is_known_style(style_id)
