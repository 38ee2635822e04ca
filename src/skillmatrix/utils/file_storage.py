"""File storage utilities for exported reports and taxonomy files."""

import os
from pathlib import Path


def _resolve_path(filepath: str) -> str:
    """
    Resolve a file path to an absolute path.

    Relative paths are resolved under ``settings.data_root`` so that exported
    files land in the configured data directory. Absolute paths are returned
    unchanged.

    Args:
        filepath: An absolute or relative path string.

    Returns:
        Absolute path string.
    """
    if os.path.isabs(filepath):
        return filepath

    # Import here to avoid circular imports at module load time
    from skillmatrix.config import settings

    return os.path.join(settings.data_root, filepath)


def file_exists(filepath: str) -> bool:
    """
    Check if a file exists.

    Args:
        filepath: The path to check (absolute or relative to data_root).

    Returns:
        True if the file exists, False otherwise.
    """
    return os.path.exists(_resolve_path(filepath))


def load_file(filepath: str) -> str:
    """
    Load content from a file.

    Args:
        filepath: The path to the file to load (absolute or relative to data_root).

    Returns:
        The file content as a string.

    Raises:
        FileNotFoundError: If the file doesn't exist.

    Examples:
        >>> csv_text = load_file("reports/skills-gap-analysis-12.csv")
    """
    resolved = _resolve_path(filepath)
    with open(resolved, "r", encoding="utf-8", newline="") as f:
        return f.read()


def save_file(content: str, filepath: str) -> str:
    """
    Save content to a file, creating directories if needed.

    Args:
        content: The content to save.
        filepath: The destination path (absolute or relative to data_root).

    Returns:
        The absolute path where the file was saved.

    Examples:
        >>> save_file("Category,Skill\n", "reports/skills-gap-analysis-12.csv")
    """
    resolved = _resolve_path(filepath)
    Path(resolved).parent.mkdir(parents=True, exist_ok=True)
    with open(resolved, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return resolved
