from __future__ import annotations

import math
from dataclasses import dataclass

CARD_PADDING = 20
CARD_BORDER = 2
CELL_SPACING = 1


@dataclass(frozen=True)
class CardDimensions:
    cell_width: int
    cell_height: int
    card_width: int
    card_height: int


def calculate_card_dimensions(
    grid_size: int,
    container_width: float,
    container_height: float,
    *,
    padding: float = CARD_PADDING,
    border: float = CARD_BORDER,
    spacing: float = CELL_SPACING,
) -> CardDimensions:
    """Pixel geometry of a card filling the container.

    Padding and border are taken off both sides, then the remaining space is split
    into grid_size cells separated by ``spacing``. Cell sizes are floored and never
    negative, so a container smaller than its own chrome yields empty cells.
    """
    if grid_size <= 0:
        raise ValueError("grid_size must be positive")
    available_w = container_width - padding * 2 - border * 2
    available_h = container_height - padding * 2 - border * 2
    cell_w = (available_w - spacing * (grid_size - 1)) / grid_size
    cell_h = (available_h - spacing * (grid_size - 1)) / grid_size
    return CardDimensions(
        cell_width=max(0, math.floor(cell_w)),
        cell_height=max(0, math.floor(cell_h)),
        card_width=int(container_width),
        card_height=int(container_height),
    )
