"""Exception hierarchy for type introspection, rendering and rewriting.

Every failure raised by elmbridge derives from ElmBridgeError and from the
closest builtin exception, so ``except ValueError`` style handlers keep
working. None of these are retried: they signal a logic error in the input,
not a transient fault.
"""

from __future__ import annotations

from pathlib import Path


class ElmBridgeError(Exception):
    """Base class for all elmbridge errors."""


class TypeAnalysisError(ElmBridgeError, TypeError):
    """The shape of a Python type could not be determined unambiguously."""


class UnsupportedShape(ElmBridgeError, TypeError):
    """A shape has no representation in the Elm type grammar."""


class UnknownTypeReference(ElmBridgeError, LookupError):
    """A NamedRef points at a name missing from the ShapeRegistry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown type reference '{name}'")


class ShapeConflictError(ElmBridgeError, ValueError):
    """Two structurally different shapes were registered under one name."""


class UnbalancedDelimiters(ElmBridgeError, ValueError):
    """Input ended before a delimited block was closed."""

    def __init__(self, offset: int, depth: int, message: str | None = None) -> None:
        self.offset = offset
        self.depth = depth
        super().__init__(
            message
            or f"Block opened before offset {offset} is never closed "
            f"({depth} delimiter(s) left open)",
        )


class InvalidExportFormat(ElmBridgeError, ValueError):
    """The export payload markers could not be located."""

    def __init__(self, marker: str) -> None:
        self.marker = marker
        super().__init__(f"{self.describe()}: {marker!r}")

    def describe(self) -> str:
        """Short description used as the message prefix."""
        return "Invalid export format"


class StartMarkerNotFound(InvalidExportFormat):
    """The export start marker does not occur in the source."""

    def describe(self) -> str:
        """Short description used as the message prefix."""
        return "Could not find start of exports"


class EndMarkerNotFound(InvalidExportFormat):
    """No export end marker follows the start marker."""

    def describe(self) -> str:
        """Short description used as the message prefix."""
        return "Could not find end of exports"


class InvalidElmCall(ElmBridgeError, ValueError):
    """A qualified function name is not of the form Module.Sub.function."""

    def __init__(self, qualified_name: str) -> None:
        self.qualified_name = qualified_name
        super().__init__(
            f"Invalid Elm call {qualified_name!r}. "
            "Expected format is MyModule.MySubmodule.myFunction.",
        )


class CompileError(ElmBridgeError):
    """The Elm compiler could not be launched or reported an error."""


class DiskIOError(ElmBridgeError, OSError):
    """Reading, writing or removing a temporary file failed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Disk I/O error at {str(path)!r}: {reason}")


class DecodeError(ElmBridgeError, ValueError):
    """A value returned across the boundary does not match the declared type."""

    def __init__(self, path: str, expected: str, actual: object) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"{path}: expected {expected}, got {actual!r}")
