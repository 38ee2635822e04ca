"""Skill matrix backend package."""
