"""URL slugs for reflections and tags."""

import re
from typing import Awaitable, Callable

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\-]+", re.ASCII)
_HYPHEN_RUNS = re.compile(r"-{2,}")

# Suffixes tried before giving up on an automatically derived slug
MAX_SUFFIX = 100


def create_slug(text: str) -> str:
    """
    Derive a slug from free text.

    Examples:
        >>> create_slug("Hello World")
        'hello-world'
        >>> create_slug("  Spring -- in Kyoto!  ")
        'spring-in-kyoto'
        >>> create_slug("Café au lait")
        'caf-au-lait'
    """
    slug = _WHITESPACE.sub("-", text.strip().lower())
    slug = _NON_WORD.sub("", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return slug.strip("-")


async def unique_slug(base: str, is_taken: Callable[[str], Awaitable[bool]]) -> str:
    """
    First free slug among `base`, `base-2`, `base-3`, ...

    `is_taken` is a database probe. The unique constraint still decides races
    between concurrent writers.
    """
    if not await is_taken(base):
        return base
    for n in range(2, MAX_SUFFIX + 1):
        candidate = f"{base}-{n}"
        if not await is_taken(candidate):
            return candidate
    raise ValueError(f"No free slug left for '{base}'")
