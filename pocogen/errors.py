"""Exceptions raised by pocogen"""

from typing import Optional


class PocoGenError(Exception):
    """Base class for all pocogen errors"""


class InvalidArgumentError(PocoGenError, ValueError):
    """A public entry point was called with a missing or empty argument"""


class TupleArityError(PocoGenError):
    """A tuple wrapper does not carry the number of arguments its identity implies.

    Aborts the run: output produced before the error must be discarded.
    """

    def __init__(self, type_name: str, expected: int, actual: int):
        super().__init__(
            f"{type_name} is a {expected}-tuple but has {actual} generic arguments")
        self.type_name = type_name
        self.expected = expected
        self.actual = actual


class DuplicateTypeError(PocoGenError):
    """Two declarations share one full name"""


class ParseError(PocoGenError):
    """Malformed POCO source"""

    def __init__(self, message: str, line: Optional[int] = None):
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
        self.line = line
