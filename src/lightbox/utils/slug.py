"""Slug helpers for story URLs."""
from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Return a URL slug for ``title``.

    Lowercases, collapses every run of non-alphanumeric characters into a
    single hyphen and trims hyphens from both ends. May return an empty string
    for titles with no ASCII letters or digits.
    """
    return _NON_ALNUM.sub("-", title.lower()).strip("-")
