from typing import Optional


class NormalizeError(Exception):
    """Base class for failures of a normalization pass."""


class XmlSyntaxError(NormalizeError):
    """The input is not well-formed XML."""

    def __init__(self, message: str, lineno: Optional[int] = None, position: Optional[int] = None):
        self.lineno = lineno
        self.position = position
        if lineno is not None:
            message = f"line {lineno}, column {position}: {message}"
        super().__init__(message)


class XmlIOError(NormalizeError):
    """The source could not be read or the sink rejected output."""
