"""Typed failures raised by the generation boundary.

Downstream code (engine, dashboard) matches on these classes instead of
parsing provider error strings.
"""

from __future__ import annotations

RATE_LIMIT_MARKERS = ("429", "quota")


def is_rate_limit_message(message: str) -> bool:
    text = (message or "").lower()
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


class GenerationError(RuntimeError):
    """Generation call failed and should not be retried within this cycle."""


class RateLimitedError(GenerationError):
    """Provider rejected the call because of rate limiting or exhausted quota."""


class TransientGenerationError(GenerationError):
    """Network/server-side failure; the next scheduled cycle may succeed."""
