from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Sequence

from .generator import BingoCard
from .uniqueness import has_duplicate_words, word_keys, words_hash


@dataclass
class RepetitionReport:
    distinct_words_used: int
    repeated_across_cards: int
    max_occurrences: int


def compute_frequencies(cards: Sequence[BingoCard]) -> Dict[str, int]:
    counts: Counter[str] = Counter()
    for card in cards:
        counts.update(card.words)
    return dict(counts)


def check_no_duplicates_within_cards(cards: Sequence[BingoCard]) -> bool:
    return not any(has_duplicate_words(card.words) for card in cards)


def check_words_from_pool(cards: Sequence[BingoCard], pool: Sequence[str]) -> bool:
    allowed = set(word_keys(pool))
    return all(key in allowed for card in cards for key in word_keys(card.words))


def check_no_identical_cards(cards: Sequence[BingoCard]) -> bool:
    seen = set()
    for card in cards:
        h = words_hash(card.words)
        if h in seen:
            return False
        seen.add(h)
    return True


def repetition_report(cards: Sequence[BingoCard]) -> RepetitionReport:
    per_word: Counter[str] = Counter()
    for card in cards:
        per_word.update(set(word_keys(card.words)))
    return RepetitionReport(
        distinct_words_used=len(per_word),
        repeated_across_cards=sum(1 for c in per_word.values() if c > 1),
        max_occurrences=max(per_word.values(), default=0),
    )


def verify(cards: Sequence[BingoCard], *, pool: Sequence[str]) -> Dict[str, object]:
    """Audit a batch: within-card uniqueness, pool membership and cross-card reuse."""
    shapes_ok = all(len(card.words) == card.grid_size**2 for card in cards)
    rep = repetition_report(cards)
    return {
        "cards": len(cards),
        "pool_size": len(pool),
        "frequencies": compute_frequencies(cards),
        "repetition": {
            "distinct_words_used": rep.distinct_words_used,
            "repeated_across_cards": rep.repeated_across_cards,
            "max_occurrences": rep.max_occurrences,
        },
        "ok_card_shapes": shapes_ok,
        "ok_no_duplicates_within_cards": check_no_duplicates_within_cards(cards),
        "ok_words_from_pool": check_words_from_pool(cards, pool),
        "ok_no_identical_cards": check_no_identical_cards(cards),
    }
