"""Slug generation utilities."""

from slugify import slugify


def create_slug(text: str, max_length: int = 60) -> str:
    """
    Create a filesystem-friendly slug from a report or taxonomy name.

    Args:
        text: The text to convert to a slug
        max_length: Longest slug returned (0 disables truncation)

    Returns:
        A lowercase, hyphenated slug, or "report" when nothing survives

    Examples:
        >>> create_slug("Skills Gap Analysis")
        'skills-gap-analysis'
        >>> create_slug("Q3: Team Performance & Growth")
        'q3-team-performance-growth'
    """
    slug = slugify(text, lowercase=True, separator="-", max_length=max_length)
    return slug or "report"
