from __future__ import annotations

import hashlib
import json
from typing import Iterable, List, Sequence


def word_keys(words: Iterable[str]) -> List[str]:
    return [w.casefold() for w in words]


def has_duplicate_words(words: Sequence[str]) -> bool:
    keys = word_keys(words)
    return len(set(keys)) != len(keys)


def words_hash(words: Sequence[str]) -> str:
    payload = json.dumps(list(words), ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


def cards_hash(cards: Iterable[Sequence[str]]) -> str:
    hashes = [words_hash(words) for words in cards]
    payload = json.dumps(hashes, ensure_ascii=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()
