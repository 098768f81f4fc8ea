"""Slug helpers for naming records uniquely. Callers supply the existence check."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Awaitable, Callable


DEFAULT_MAX_ATTEMPTS = 100

_NON_SLUG = re.compile(r"[^a-z0-9]+")


class SlugExhaustedError(RuntimeError):
    def __init__(self, base: str, attempts: int) -> None:
        super().__init__(f"Could not find a unique slug for '{base}' after {attempts} attempts")
        self.base = base
        self.attempts = attempts


def slugify(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("-", normalized.lower()).strip("-")


async def ensure_unique_slug(
    base: str,
    exists: Callable[[str], Awaitable[bool]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Return ``base`` or the first ``base-N`` for which ``exists`` is false."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    root = slugify(base)
    if not root:
        raise ValueError("Cannot build a slug from an empty value")
    candidate = root
    for attempt in range(1, max_attempts + 1):
        if not await exists(candidate):
            return candidate
        candidate = f"{root}-{attempt}"
    raise SlugExhaustedError(root, max_attempts)
