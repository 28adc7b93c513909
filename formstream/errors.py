from __future__ import annotations

import os


class FormStreamError(Exception):
    """Base error for formstream."""


class MultipartWriteError(FormStreamError):
    """
    Raised when a multipart body could not be written.

    The failing location is kept in ``path`` and the platform error in
    ``error`` (also chained as ``__cause__``).
    """

    def __init__(self, path: str | os.PathLike | int, error: OSError) -> None:
        self.path = path
        self.error = error
        super().__init__(f"{self.describe()}: {path!r}: {error}")

    def describe(self) -> str:
        return "multipart write failed"


class InputUnreadableError(MultipartWriteError):
    """Raised when the input file cannot be opened for reading."""

    def describe(self) -> str:
        return "input file is not readable"


class OutputUnwritableError(MultipartWriteError):
    """Raised when the output location cannot be created or written."""

    def describe(self) -> str:
        return "output file is not writable"


class CopyFailedError(MultipartWriteError):
    """Raised when reading or writing fails while streaming file bytes."""

    def describe(self) -> str:
        return "I/O failure while copying file data"
