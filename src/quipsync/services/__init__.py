"""
Service layer for QuipSync.

Services hold the business logic and are independent of the HTTP layer, so
they can be used by:
- Flask route handlers
- CLI commands
- The public operation functions in ``operations``
"""

from .request_validation_service import RequestValidationService
from .script_generation_service import ScriptGenerationService
from .style_profile_service import StyleProfileService
from .operations import OperationResult, generate_scripts, create_style_profile

__all__ = [
    'RequestValidationService',
    'ScriptGenerationService',
    'StyleProfileService',
    'OperationResult',
    'generate_scripts',
    'create_style_profile',
]
