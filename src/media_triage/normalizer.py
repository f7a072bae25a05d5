import re
from typing import List

# Title portion, optional separators, then a release year (19xx or 20xx).
# Only the start is anchored; anything after the year is discarded.
RELEASE_YEAR_PATTERN = re.compile(r"^([a-z0-9 ._-]+?)[ ._-]*(?:19|20)\d{2}", re.IGNORECASE)


def _title_case_words(text: str) -> List[str]:
    """Upper-cases the first character of each whitespace-separated word."""
    return [word[0].upper() + word[1:] for word in text.strip().split()]


def clean_filename(name: str) -> str:
    """
    Derives a human-readable title from a raw release folder name.

    Dots and underscores become spaces. When a release year is present,
    everything from the year onwards is dropped; otherwise the whole name
    is kept. Each remaining word gets an upper-cased first character.

    Args:
        name: The raw folder name (e.g. 'The.Matrix.1999.1080p').

    Returns:
        The suggested title (e.g. 'The Matrix'), or '' for an empty name.
    """
    spaced = name.replace('.', ' ').replace('_', ' ')
    match = RELEASE_YEAR_PATTERN.match(spaced)
    title = match.group(1) if match else spaced
    return " ".join(_title_case_words(title))
