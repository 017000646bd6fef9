"""Classify file content as version-bearing and apply the custom filter."""

import re
from typing import List, Optional

from .tokens import VERSION_TOKENS


def is_version_bearing(text: str) -> bool:
    """True if any recognized token syntax carries a 4-part version."""
    return any(token.present_in(text) for token in VERSION_TOKENS)


def find_tokens(text: str) -> List[str]:
    """Names of the token syntaxes present in ``text``, in priority order."""
    return [token.name for token in VERSION_TOKENS if token.present_in(text)]


def matches_custom_filter(
    text: str, filter_pattern: Optional[str], filter_enabled: bool
) -> bool:
    """
    Gate a file on the optional custom filter.

    Args:
        text: File content
        filter_pattern: Regular expression (a plain word works as a substring)
        filter_enabled: Whether filtering is switched on

    Returns:
        True when filtering is off, the pattern is empty, or the pattern
        is found in ``text``
    """
    if not filter_enabled or not filter_pattern:
        return True
    return re.search(filter_pattern, text) is not None
