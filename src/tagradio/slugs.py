"""URL-safe slug helpers for tags and stations."""
import re

_INVALID_RUN = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUN = re.compile(r"-+")
_VALID_SLUG = re.compile(r"[a-z0-9-]+")


def slugify(name: str) -> str:
    """
    Derive a slug from a display name.

    >>> slugify("Heavy Hitters!!")
    'heavy-hitters'
    >>> slugify("  a -- b  ")
    'a-b'
    """
    slug = _INVALID_RUN.sub("-", name.lower())
    slug = _HYPHEN_RUN.sub("-", slug)
    return slug.strip("-")


def is_valid_slug(slug: str) -> bool:
    """Lowercase letters, digits and hyphens only."""
    return bool(slug) and _VALID_SLUG.fullmatch(slug) is not None
