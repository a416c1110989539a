"""Split free-form user input into the list of target words.

Accepts newlines, commas (ASCII and full-width ``，``) and any whitespace
as separators.  Order and duplicates are kept; case is untouched.
"""
from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[\n,，\s]+")


def parse_word_list(text: str) -> list[str]:
    if not text:
        return []
    return [w.strip() for w in _SEPARATORS.split(text) if w.strip()]
