"""Random card generation from a word pool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import InsufficientWordsError, InvalidConfigError
from .feasibility import cells_per_card, sufficient_words
from .rng import RandomSource, create_rng, derive_card_seed, fisher_yates

logger = logging.getLogger(__name__)

GRID_SIZES = (3, 4, 5, 6)
MIN_CARDS = 1
MAX_CARDS = 100


@dataclass
class CardConfig:
    """Parameters for a batch of cards."""

    grid_size: int = 5
    num_cards: int = 1
    # Kept for parity with the UI toggle; generation ignores it (cards always
    # draw from the full pool, so words may repeat across cards).
    allow_repetition: bool = True

    def validate(self) -> "CardConfig":
        if self.grid_size not in GRID_SIZES:
            raise InvalidConfigError(
                f"grid_size must be one of {', '.join(map(str, GRID_SIZES))}, got {self.grid_size}"
            )
        if not MIN_CARDS <= self.num_cards <= MAX_CARDS:
            raise InvalidConfigError(
                f"num_cards must be between {MIN_CARDS} and {MAX_CARDS}, got {self.num_cards}"
            )
        return self


@dataclass(frozen=True)
class BingoCard:
    id: str
    words: Tuple[str, ...]
    grid_size: int

    def rows(self) -> List[List[str]]:
        g = self.grid_size
        return [list(self.words[r * g : (r + 1) * g]) for r in range(g)]


def batch_card_id(index: int) -> str:
    return f"card-{index + 1}"


def generate_one(
    pool: Sequence[str], grid_size: int, card_id: str, *, rng: Optional[RandomSource] = None
) -> BingoCard:
    """Draw one card: shuffle the whole pool, keep the first grid_size**2 words."""
    need = cells_per_card(grid_size)
    if len(pool) < need:
        raise InsufficientWordsError(need=need, have=len(pool))
    source = rng if rng is not None else create_rng("py_random")
    shuffled = fisher_yates(pool, source)
    return BingoCard(id=card_id, words=tuple(shuffled[:need]), grid_size=grid_size)


def generate_batch(
    pool: Sequence[str],
    config: CardConfig,
    *,
    seed: Optional[int] = None,
    rng_engine: str = "py_random",
) -> Tuple[BingoCard, ...]:
    """Generate ``config.num_cards`` independent cards.

    With a seed, card i is drawn from an RNG seeded by (seed, i), so each card is
    reproducible on its own. Without one, every card uses fresh OS entropy.
    """
    config.validate()
    need = cells_per_card(config.grid_size)
    if not sufficient_words(len(pool), config.grid_size, config.num_cards):
        raise InsufficientWordsError(need=need, have=len(pool))

    words = tuple(pool)
    cards: List[BingoCard] = []
    for index in range(config.num_cards):
        card_seed = None if seed is None else derive_card_seed(seed, index)
        rng = create_rng(rng_engine, card_seed)
        cards.append(generate_one(words, config.grid_size, batch_card_id(index), rng=rng))

    logger.info(
        "Generated %d card(s) of %dx%d from %d words",
        len(cards),
        config.grid_size,
        config.grid_size,
        len(words),
    )
    return tuple(cards)
