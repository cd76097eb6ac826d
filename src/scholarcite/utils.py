"""Utility functions for ScholarCite."""

import asyncio
import json
import re
import time
from datetime import date
from typing import Any

from scholarcite.config import Settings

_CODE_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\s*")
_CODE_FENCE_CLOSE = re.compile(r"\s*```$")


class RateLimiter:
    """Simple rate limiter to prevent hitting API limits."""

    def __init__(self, calls_per_minute: int = 60):
        self.calls_per_minute = calls_per_minute
        self.min_interval = 60.0 / calls_per_minute if calls_per_minute > 0 else 0.0
        self.last_call = 0.0
        self._lock = None
        self._loop = None

    def _get_lock(self):
        """Get or create lock for current event loop."""
        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        # New lock per event loop; asyncio locks are loop-bound
        if self._lock is None or self._loop != current_loop:
            self._lock = asyncio.Lock()
            self._loop = current_loop
        return self._lock

    async def wait(self):
        """Wait if necessary to respect rate limit."""
        async with self._get_lock():
            now = time.time()
            time_since_last = now - self.last_call

            if time_since_last < self.min_interval:
                await asyncio.sleep(self.min_interval - time_since_last)

            self.last_call = time.time()


def create_openai_rate_limiter(settings: Settings) -> RateLimiter:
    """Create a rate limiter for the OpenAI calls made with ``settings``.

    Clients built for one session share the returned limiter.
    """
    return RateLimiter(calls_per_minute=settings.openai_requests_per_minute)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _CODE_FENCE_OPEN.sub("", cleaned, count=1)
        cleaned = _CODE_FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a model answer that should be a JSON object.

    Raises:
        ValueError: If the text is not JSON or not an object
    """
    data = json.loads(strip_code_fences(text))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def truncate_context(text: str, max_chars: int) -> str:
    """Cut text to ``max_chars`` characters, marking the cut with '...'."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def format_access_date(day: date) -> str:
    """Render a date as '19 October 2026'."""
    return f"{day.day} {day.strftime('%B')} {day.year}"
