"""Flask web app for QuipSync."""

# Load environment variables from .env file before other imports
from dotenv import load_dotenv  # type: ignore[import-untyped]

load_dotenv()  # noqa: E402

import os  # noqa: E402
import logging  # noqa: E402
from typing import Any, Dict, Optional  # noqa: E402
from flask import Flask  # noqa: E402
from flask_cors import CORS  # type: ignore[import-untyped]  # noqa: E402
from flask_limiter import Limiter  # type: ignore[import-untyped]  # noqa: E402
from flask_limiter.util import get_remote_address  # type: ignore[import-untyped]  # noqa: E402
from quipsync.api.routes import EXTENSION_KEY, register_routes  # noqa: E402
from quipsync.services import (  # noqa: E402
    RequestValidationService,
    ScriptGenerationService,
    StyleProfileService,
)
from quipsync.utils.cache import ScriptCache  # noqa: E402
from quipsync.utils.errors import register_error_handlers  # noqa: E402
from quipsync.utils.extraction import ArticleExtractor  # noqa: E402
from quipsync.utils.llm import BaseLLMClient  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO if os.getenv('FLASK_ENV') != 'development' else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "GENERATE_RATE_LIMIT": os.getenv("GENERATE_RATE_LIMIT", "10 per minute"),
    "STYLE_PROFILE_RATE_LIMIT": os.getenv("STYLE_PROFILE_RATE_LIMIT", "5 per minute"),
    "EXTRACT_RATE_LIMIT": os.getenv("EXTRACT_RATE_LIMIT", "20 per minute"),
    "RATELIMIT_STORAGE_URI": os.getenv("REDIS_URL", "memory://"),
}


def create_app(
    config: Optional[Dict[str, Any]] = None,
    provider: Optional[BaseLLMClient] = None,
    cache: Optional[ScriptCache] = None,
    extractor: Optional[ArticleExtractor] = None,
) -> Flask:
    """
    Create and configure the QuipSync Flask app.

    Args:
        config: Config overrides (rate limits, TESTING, RATELIMIT_ENABLED, ...)
        provider: Completion provider (default provider from LLM_PROVIDER if None)
        cache: Script cache (backend from SCRIPT_CACHE_BACKEND if None)
        extractor: Article extractor for story URLs

    Returns:
        Configured Flask application
    """
    flask_app = Flask(__name__)
    flask_app.config.update(DEFAULT_CONFIG)
    if config:
        flask_app.config.update(config)
    flask_app.json.sort_keys = False

    CORS(flask_app)

    # Configure rate limiting
    limiter = Limiter(
        key_func=get_remote_address,
        app=flask_app,
        default_limits=["200 per day", "50 per hour"],
        storage_uri=flask_app.config["RATELIMIT_STORAGE_URI"],
        headers_enabled=True
    )

    validator = RequestValidationService()
    extractor = extractor or ArticleExtractor()
    flask_app.extensions[EXTENSION_KEY] = {
        "validator": validator,
        "extractor": extractor,
        "script_service": ScriptGenerationService(
            provider=provider,
            cache=cache,
            extractor=extractor,
            validator=validator,
        ),
        "style_service": StyleProfileService(provider=provider, validator=validator),
    }

    register_routes(flask_app, limiter)
    register_error_handlers(flask_app, debug=os.getenv('FLASK_ENV') == 'development')

    return flask_app


def check_llm_setup():
    """
    Check completion provider setup and print helpful feedback.

    Verifies that the configured provider has credentials and an allowed model.
    """
    from quipsync.providers import get_default_provider

    provider_name = os.getenv("LLM_PROVIDER", "gemini")
    try:
        provider = get_default_provider()
    except ValueError as e:
        print(f"⚠️  {e}")
        print(f"   Script generation with '{provider_name}' will fail until this is fixed")
        return

    if provider.check_availability():
        print(f"✅ {provider_name} provider ready: Using model '{provider.model_name}'")
    else:
        print(f"⚠️  {provider_name} provider configured but model '{provider.model_name}' may not be available")


app = create_app()


if __name__ == '__main__':
    check_llm_setup()

    debug_mode = os.getenv('FLASK_ENV') == 'development'
    port = int(os.getenv('PORT', 5000))
    host = os.getenv('HOST', '0.0.0.0')

    app.run(debug=debug_mode, host=host, port=port)
