from __future__ import annotations

import re
from typing import Iterable, List

from .tables import Table

_SEPARATORS = re.compile(r"[,\n]+")


def _dedupe(candidates: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    unique: List[str] = []
    for word in candidates:
        key = word.casefold()
        if key not in seen:
            seen.add(key)
            unique.append(word)
    return unique


def process_words(raw: str) -> List[str]:
    """Split free text on commas/newlines, trim, and drop case-insensitive repeats.

    The first spelling of a word wins and first-seen order is kept.
    """
    if not raw or not isinstance(raw, str):
        return []
    candidates = (part.strip() for part in _SEPARATORS.split(raw))
    return _dedupe(word for word in candidates if word)


def extract_column(table: Table, column_index: int) -> List[str]:
    """Non-empty trimmed cells of one column, header excluded.

    Unlike process_words this keeps repeats; use merge_words to combine sources.
    """
    table.validate()
    words: List[str] = []
    for row in table.rows:
        if column_index < len(row) and row[column_index]:
            word = str(row[column_index]).strip()
            if word:
                words.append(word)
    return words


def merge_words(*sources: Iterable[str]) -> List[str]:
    return _dedupe(word.strip() for source in sources for word in source if word and word.strip())
