"""
Flask route handlers for the QuipSync API.

Routes fetch their services from ``current_app.extensions["quipsync"]`` and let
APIError subclasses propagate to the handlers registered in utils.errors.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from flask import Flask
    from flask_limiter import Limiter

from flask import current_app, jsonify, request

from ..styles import PERSONAL_STYLE_ID, get_available_styles
from ..utils.errors import ValidationError
from ..utils.llm_constants import SCRIPT_SLOTS

logger = logging.getLogger(__name__)

EXTENSION_KEY = "quipsync"


def get_services() -> Dict[str, Any]:
    """Services registered on the current app by create_app."""
    return current_app.extensions[EXTENSION_KEY]


def get_json_body() -> Any:
    """
    Parse the JSON request body.

    Raises:
        ValidationError: If the body is missing or not valid JSON
    """
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be valid JSON.")
    return data


def register_routes(flask_app: 'Flask', limiter_instance: 'Limiter') -> None:
    """
    Register all API routes on a Flask app.

    Args:
        flask_app: Flask application instance
        limiter_instance: Limiter instance for rate limiting
    """

    @flask_app.route('/api/health')
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok"})

    @flask_app.route('/api/styles', methods=['GET'])
    def get_styles():
        """
        List the predefined script styles.

        Returns:
            {"styles": [{"id", "name", "description"}, ...], "personalStyleId": "personal"}
        """
        return jsonify({
            "styles": get_available_styles(),
            "personalStyleId": PERSONAL_STYLE_ID,
        })

    @flask_app.route('/api/script-slots', methods=['GET'])
    def get_script_slots():
        """Word-count targets and on-air timing label for each script position."""
        slots = [
            {
                "name": slot["name"],
                "minWords": slot["min_words"],
                "maxWords": slot["max_words"],
                "timing": slot["timing"],
            }
            for slot in SCRIPT_SLOTS
        ]
        return jsonify({"slots": slots})

    @flask_app.route('/api/scripts', methods=['POST'])
    @limiter_instance.limit(lambda: current_app.config["GENERATE_RATE_LIMIT"])
    def generate_scripts():
        """
        Generate three transition scripts for a story and a song.

        Request Body (JSON):
            - storyInput (str, required): Story text or an http(s) URL
            - songTitle (str, required): Song title
            - artist (str, required): Artist name
            - styleSelection (str, optional): Style id or "personal" (default: conversational)
            - pgSafe (bool, optional): Keep content PG-safe (default: true)
            - personalStyle (object, optional): StyleProfile, required for "personal"

        Returns:
            ScriptResult JSON: storyDetails, songAnalysis, whyThisWorks, scripts[3]
        """
        services = get_services()
        script_request = services["validator"].validate_script_payload(get_json_body())
        result = services["script_service"].generate_from_request(script_request)
        return jsonify(result)

    @flask_app.route('/api/style-profile', methods=['POST'])
    @limiter_instance.limit(lambda: current_app.config["STYLE_PROFILE_RATE_LIMIT"])
    def create_style_profile():
        """
        Create a personal style profile from the DJ's own scripts.

        Request Body (JSON):
            - styleDescription (str, required): The DJ's description of their style
            - scriptSamples (list[str], required): At least one script sample

        Returns:
            StyleProfile JSON: styleProfile, keyCharacteristics, samplePhrases, instructions
        """
        services = get_services()
        profile_request = services["validator"].validate_style_profile_payload(get_json_body())
        profile = services["style_service"].create_from_request(profile_request)
        return jsonify(profile)

    @flask_app.route('/api/extract', methods=['POST'])
    @limiter_instance.limit(lambda: current_app.config["EXTRACT_RATE_LIMIT"])
    def extract_article():
        """
        Extract readable article text from a URL.

        Request Body (JSON):
            - url (str, required): http(s) URL

        Returns:
            {"text": str} ("" when the page has no readable text)
        """
        services = get_services()
        data = get_json_body()
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        url = services["validator"].validate_story_url(data.get("url"))
        text = services["extractor"].extract_text(url)
        return jsonify({"text": text})
