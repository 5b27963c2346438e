"""Gemini generation client for the commodity intelligence engine.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .errors import (
    GenerationError,
    RateLimitedError,
    TransientGenerationError,
    is_rate_limit_message,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
LEGACY_SEARCH_TOOL = "google_search_retrieval"

_TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    ConnectionError,
    TimeoutError,
)


@dataclass(frozen=True)
class GroundingSource:
    title: str
    uri: str


@dataclass(frozen=True)
class GroundedText:
    """Free text answer plus the web sources the search tool cited."""

    text: str
    sources: Tuple[GroundingSource, ...] = ()


class GenerationClient(Protocol):

    def search(self, prompt: str) -> GroundedText:
        raise NotImplementedError

    def generate_json(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> Any:
        raise NotImplementedError


def search_tool_for(model_name: str) -> Any:
    """Search grounding tool accepted by `model_name`.

    Gemini 1.x models only take the legacy retrieval tool; 2.x and later
    reject it and need `google_search`.
    """
    base = (model_name or "").split("/")[-1]
    if base.startswith("gemini-1."):
        return LEGACY_SEARCH_TOOL
    return genai.protos.Tool(google_search=genai.protos.Tool.GoogleSearch())


def strip_code_fence(raw_text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one anyway."""
    text = (raw_text or "").strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    return text


def translate_error(error: Exception) -> GenerationError:
    if isinstance(error, GenerationError):
        return error
    if isinstance(error, google_exceptions.ResourceExhausted) or is_rate_limit_message(str(error)):
        return RateLimitedError(str(error))
    if isinstance(error, _TRANSIENT_ERRORS):
        return TransientGenerationError(str(error))
    return GenerationError(str(error))


def extract_grounding_sources(response: Any) -> Tuple[GroundingSource, ...]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ()
    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources: List[GroundingSource] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None) if web is not None else None
        if not uri:
            continue
        sources.append(GroundingSource(title=str(getattr(web, "title", "") or ""), uri=str(uri)))
    return tuple(sources)


@dataclass
class GeminiClient:
    """Thin wrapper over google-generativeai.

    Every SDK failure leaves this class as a GenerationError subclass, so
    callers only ever see RateLimitedError / TransientGenerationError /
    GenerationError.
    """

    api_key: Optional[str] = None
    model_name: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", DEFAULT_MODEL))
    temperature: float = field(default_factory=lambda: float(os.getenv("GEMINI_TEMPERATURE", "0.2")))
    _configured: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.api_key is None:
            self.api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")

        if self.api_key:
            genai.configure(api_key=self.api_key)
            self._configured = True
            logger.info(f"[GeminiClient] Initialized with model: {self.model_name}")
        else:
            logger.warning("[GeminiClient] No API key configured (GEMINI_API_KEY). Generation calls will fail.")

    def is_available(self) -> bool:
        return self._configured

    def search(self, prompt: str) -> GroundedText:
        """Search-grounded free text generation."""
        model = self._model(tools=search_tool_for(self.model_name))
        response = self._call(model, prompt, {"temperature": self.temperature})
        text = (getattr(response, "text", "") or "").strip()
        return GroundedText(text=text, sources=extract_grounding_sources(response))

    def generate_json(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> Any:
        """JSON-mode generation, optionally constrained to a response schema.

        Raises json.JSONDecodeError when the model returns something that is
        not JSON.
        """
        config: Dict[str, Any] = {
            "temperature": self.temperature,
            "response_mime_type": "application/json",
        }
        if schema is not None:
            config["response_schema"] = schema

        response = self._call(self._model(), prompt, config)
        raw_text = strip_code_fence(getattr(response, "text", "") or "")
        return json.loads(raw_text)

    def _model(self, tools: Optional[Any] = None) -> Any:
        if not self.is_available():
            raise GenerationError("Gemini API key missing; set GEMINI_API_KEY")
        if tools is None:
            return genai.GenerativeModel(self.model_name)
        return genai.GenerativeModel(self.model_name, tools=tools)

    def _call(self, model: Any, prompt: str, generation_config: Dict[str, Any]) -> Any:
        try:
            return model.generate_content(prompt, generation_config=generation_config)
        except Exception as e:
            translated = translate_error(e)
            logger.warning(f"[GeminiClient] {type(translated).__name__}: {e}")
            raise translated from e


_gemini_client: Optional[GeminiClient] = None


def get_gemini_client() -> GeminiClient:
    """Get or create the process-wide Gemini client."""
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = GeminiClient()
    return _gemini_client
