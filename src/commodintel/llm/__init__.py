"""Generation boundary (Gemini) for the engine."""

from .errors import (
    GenerationError,
    RateLimitedError,
    TransientGenerationError,
    is_rate_limit_message,
)
from .gemini_client import (
    GeminiClient,
    GenerationClient,
    GroundedText,
    GroundingSource,
    get_gemini_client,
    search_tool_for,
    strip_code_fence,
    translate_error,
)

__all__ = [
    "GenerationError",
    "RateLimitedError",
    "TransientGenerationError",
    "is_rate_limit_message",
    "GeminiClient",
    "GenerationClient",
    "GroundedText",
    "GroundingSource",
    "get_gemini_client",
    "search_tool_for",
    "strip_code_fence",
    "translate_error",
]
