"""Word bingo card generator: word pools, random cards, PDF/PNG/ZIP export."""

from .version import __version__

__all__ = ["__version__"]
