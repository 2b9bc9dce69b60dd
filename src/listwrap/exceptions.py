"""Error kinds raised by listwrap."""

from __future__ import annotations

from pathlib import Path


class WrapError(Exception):
    """Base class for listwrap failures."""


class SourceSyntaxError(WrapError):
    """The input could not be parsed.

    The message is surfaced to the caller verbatim; ``lineno`` and ``offset`` are
    filled in when the parser reported them.
    """

    def __init__(self, message: str, *, lineno: int | None = None, offset: int | None = None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.offset = offset

    @classmethod
    def from_syntax_error(cls, exc: SyntaxError) -> SourceSyntaxError:
        message = exc.msg or str(exc)
        if exc.lineno is not None:
            message = f"line {exc.lineno}: {message}"
        return cls(message, lineno=exc.lineno, offset=exc.offset)


class SourceIOError(WrapError):
    """Reading or writing a source file failed."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class PostSpliceFormatError(WrapError):
    """The canonical formatter rejected the spliced buffer."""
