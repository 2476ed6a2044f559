"""
Plain-text helpers for markup-bearing API fields.
"""

import re

from bs4 import BeautifulSoup


def clean_text(text: str) -> str:
    """
    Strip markup and entities from a text and collapse whitespace.

    Args:
        text: Text that may contain HTML tags or entities

    Returns:
        Plain text on a single line
    """
    if not text:
        return ""

    plain = BeautifulSoup(text, "html.parser").get_text(separator=" ")
    plain = plain.replace("\xa0", " ")
    return re.sub(r"\s+", " ", plain).strip()


def excerpt(text: str, limit: int = 200) -> str:
    """Plain-text excerpt of at most ``limit`` characters plus an ellipsis."""
    plain = clean_text(text)
    if len(plain) <= limit:
        return plain
    return plain[:limit].rstrip() + "..."
