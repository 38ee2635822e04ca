"""Utility functions package."""

from skillmatrix.utils.dates import utcnow, week_start
from skillmatrix.utils.file_storage import load_file, save_file
from skillmatrix.utils.numbers import round_half_up
from skillmatrix.utils.slug import create_slug

__all__ = ["create_slug", "save_file", "load_file", "round_half_up", "utcnow", "week_start"]
