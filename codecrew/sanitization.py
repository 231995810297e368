"""
Input Sanitization Module

Normalizes free-form user input before it is stored or used in queries:
- Tag lists (trim, dedupe, bound length and count)
- Search terms for LIKE patterns
"""

from typing import Iterable, List

from .constants import MAX_TAG_LENGTH, MAX_TAGS


# =============================================================================
# Tags
# =============================================================================

def sanitize_tags(tags: Iterable[str]) -> List[str]:
    """
    Clean a list of tags.

    Whitespace is trimmed, empty entries dropped and duplicates removed
    (first occurrence wins, case-insensitive).

    Raises:
        ValueError: If a tag is too long or there are too many tags
            (surfaced as a 400 by request validation)

    Examples:
        >>> sanitize_tags([" react ", "React", "", "hooks"])
        ['react', 'hooks']
    """
    cleaned: List[str] = []
    seen = set()
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(tag)

    if len(cleaned) > MAX_TAGS:
        raise ValueError(f"At most {MAX_TAGS} tags are allowed")
    return cleaned


# =============================================================================
# Search
# =============================================================================

def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user search text matches literally (escape char '\\')."""
    return (
        term.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
