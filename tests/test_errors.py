"""Tests for elmbridge.errors module."""

from pathlib import Path

import pytest

from elmbridge.errors import (
    CompileError,
    DecodeError,
    DiskIOError,
    ElmBridgeError,
    EndMarkerNotFound,
    InvalidElmCall,
    InvalidExportFormat,
    ShapeConflictError,
    StartMarkerNotFound,
    TypeAnalysisError,
    UnbalancedDelimiters,
    UnknownTypeReference,
    UnsupportedShape,
)


class TestHierarchy:
    """Test that errors can be caught by family and by builtin base."""

    @pytest.mark.parametrize(
        ("error", "builtin"),
        [
            (TypeAnalysisError("x"), TypeError),
            (UnsupportedShape("x"), TypeError),
            (UnknownTypeReference("X"), LookupError),
            (ShapeConflictError("x"), ValueError),
            (UnbalancedDelimiters(0, 1), ValueError),
            (StartMarkerNotFound("m"), ValueError),
            (InvalidElmCall("x"), ValueError),
            (DiskIOError(Path("f"), "gone"), OSError),
            (DecodeError("$", "int", "a"), ValueError),
        ],
    )
    def test_builtin_bases(self, error: ElmBridgeError, builtin: type) -> None:
        """Test each error against its builtin base."""
        assert isinstance(error, ElmBridgeError)
        assert isinstance(error, builtin)

    def test_compile_error(self) -> None:
        """Test that compile errors belong to the family."""
        assert isinstance(CompileError("boom"), ElmBridgeError)


class TestMessages:
    """Test error messages and attributes."""

    def test_export_markers(self) -> None:
        """Test that marker errors name the marker."""
        start = StartMarkerNotFound("_Platform_export(")
        end = EndMarkerNotFound(");}(this));")
        assert isinstance(start, InvalidExportFormat)
        assert isinstance(end, InvalidExportFormat)
        assert str(start) == "Could not find start of exports: '_Platform_export('"
        assert str(end) == "Could not find end of exports: ');}(this));'"
        assert start.marker == "_Platform_export("

    def test_unbalanced(self) -> None:
        """Test the default unbalanced-delimiter message."""
        error = UnbalancedDelimiters(offset=4, depth=2)
        assert error.offset == 4
        assert error.depth == 2
        assert "offset 4" in str(error)

    def test_unknown_reference(self) -> None:
        """Test that the missing name is kept."""
        assert UnknownTypeReference("Point").name == "Point"

    def test_decode_error(self) -> None:
        """Test the decode error message."""
        assert str(DecodeError("$.a", "int", "x")) == "$.a: expected int, got 'x'"
