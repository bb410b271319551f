"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import re

SLUG_PATTERN = re.compile(r"[\W_]+")
MAX_SLUG_LENGTH = 100


def slugify(value: str, fallback: str = "untitled") -> str:
    """Generate a filesystem-friendly slug, keeping letters and digits of any script."""
    normalized = SLUG_PATTERN.sub("-", value or "").strip("-")
    return normalized[:MAX_SLUG_LENGTH] or fallback
