# slugs.py
# URL-safe, collision-free slugs for recipes and meals.

import logging
from typing import Callable

from slugify import slugify as _slugify

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "untitled"


def slugify(value: str) -> str:
    """
    Lower-case, ASCII-only, hyphen separated form of `value`. Non-ASCII
    letters are transliterated rather than dropped.
    "Smørrebrød (Mom's)" -> "smorrebrod-mom-s"
    """
    return _slugify(value) or FALLBACK_SLUG


def make_unique_slug(exists: Callable[[str], bool], base_name: str) -> str:
    """
    Slugify `base_name` and, while the candidate is already taken, append
    -1, -2, ... until `exists` reports it free.
    """
    base = slugify(base_name)
    candidate = base
    suffix = 0
    while exists(candidate):
        suffix += 1
        logger.debug(f"Slug {candidate} already exists, trying suffix {suffix}")
        candidate = f"{base}-{suffix}"
    return candidate
