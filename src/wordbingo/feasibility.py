from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class Feasibility:
    feasible: bool
    required: int
    available: int
    reasons: List[str] = field(default_factory=list)


def cells_per_card(grid_size: int) -> int:
    return grid_size * grid_size


def required_word_count(grid_size: int, num_cards: int) -> int:
    """Words needed if no word were ever reused across cards.

    Display threshold only: generation draws every card from the full pool.
    """
    return cells_per_card(grid_size) * num_cards


def sufficient_words(pool_size: int, grid_size: int, num_cards: int) -> bool:
    # num_cards is deliberately ignored: only within-card uniqueness is enforced.
    return pool_size >= cells_per_card(grid_size)


def check_feasibility(*, pool_size: int, grid_size: int, num_cards: int) -> Feasibility:
    need = cells_per_card(grid_size)
    reasons: List[str] = []
    ok = sufficient_words(pool_size, grid_size, num_cards)
    if not ok:
        reasons.append(f"pool has {pool_size} words, one {grid_size}x{grid_size} card needs {need}")
    elif pool_size < required_word_count(grid_size, num_cards):
        reasons.append("words will repeat across cards (pool smaller than cells x cards)")
    return Feasibility(
        feasible=ok,
        required=required_word_count(grid_size, num_cards),
        available=pool_size,
        reasons=reasons,
    )
