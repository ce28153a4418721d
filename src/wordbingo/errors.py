"""Exception hierarchy shared by the generator, the table loader and the exporters."""

from __future__ import annotations


class BingoError(Exception):
    """Base error; the CLI turns any of these into a single message line."""


class InsufficientWordsError(BingoError):
    def __init__(self, need: int, have: int):
        self.need = need
        self.have = have
        super().__init__(f"Not enough unique words. Need {need}, have {have}")

    @property
    def shortfall(self) -> int:
        return self.need - self.have


class InvalidFileTypeError(BingoError):
    pass


class ParseError(BingoError):
    pass


class InvalidConfigError(BingoError, ValueError):
    pass


class ExportError(BingoError):
    pass


class ExportCancelledError(ExportError):
    pass
