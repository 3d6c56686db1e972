"""Tests for elmbridge.codecs module."""

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, NotRequired, TypedDict

import pytest

from elmbridge.codecs import from_builtins, to_builtins
from elmbridge.errors import DecodeError
from elmbridge.shapes import Char


@dataclass
class StructIn:
    a: int | None
    b: list[bool]


@dataclass
class StructOut:
    c: list[int]
    d: bool | None


@dataclass
class Outer:
    name: str
    items: list[StructOut]
    lookup: dict[str, float]


@dataclass
class Box[T]:
    item: T


class Point(NamedTuple):
    x: float
    y: float


class Movie(TypedDict):
    title: str
    year: NotRequired[int]


class Color(enum.Enum):
    RED = 1
    GREEN = 2


class TestToBuiltins:
    """Test encoding values for the wire."""

    def test_dataclass(self) -> None:
        """Test that a dataclass becomes an object."""
        assert to_builtins(StructIn(a=5, b=[True, False])) == {"a": 5, "b": [True, False]}

    def test_nested(self) -> None:
        """Test nested dataclasses, lists and dicts."""
        value = Outer(name="o", items=[StructOut(c=[1], d=None)], lookup={"k": 1.5})
        assert to_builtins(value) == {
            "name": "o",
            "items": [{"c": [1], "d": None}],
            "lookup": {"k": 1.5},
        }

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ((1, "a"), [1, "a"]),
            ({3}, [3]),
            (frozenset({4}), [4]),
            (Point(1.0, 2.0), [1.0, 2.0]),
            (Color.GREEN, "GREEN"),
            (b"hi", "aGk="),
            (None, None),
        ],
    )
    def test_values(self, value: Any, expected: Any) -> None:
        """Test encodings of non-JSON-native values."""
        assert to_builtins(value) == expected

    def test_unencodable(self) -> None:
        """Test that arbitrary objects are rejected."""
        with pytest.raises(TypeError, match="Cannot encode"):
            to_builtins(object())


class TestFromBuiltins:
    """Test decoding values from the wire."""

    def test_dataclass(self) -> None:
        """Test decoding a list of dataclasses."""
        data = [{"c": [5], "d": True}]
        assert from_builtins(data, list[StructOut]) == [StructOut(c=[5], d=True)]

    def test_round_trip_nested(self) -> None:
        """Test that encoding then decoding restores the value."""
        value = Outer(name="o", items=[StructOut(c=[1, 2], d=None)], lookup={"k": 1.5})
        assert from_builtins(to_builtins(value), Outer) == value

    @pytest.mark.parametrize(
        ("data", "py_type", "expected"),
        [
            (6, int, 6),
            (6.0, int, 6),
            (3, float, 3.0),
            ("x", Char, "x"),
            ([1, "a"], tuple[int, str], (1, "a")),
            ([1, 2, 3], tuple[int, ...], (1, 2, 3)),
            ([1, 2], set[int], {1, 2}),
            ([1.0, 2.0], Point, Point(1.0, 2.0)),
            ("RED", Color, Color.RED),
            ("aGk=", bytes, b"hi"),
            ({"1": "a"}, dict[int, str], {1: "a"}),
            ([1], Sequence[int], [1]),
            (None, int | None, None),
            (4, int | None, 4),
            ({"item": 3}, Box[int], Box(item=3)),
            ({"title": "Up"}, Movie, {"title": "Up"}),
            ("anything", Any, "anything"),
        ],
    )
    def test_values(self, data: Any, py_type: Any, expected: Any) -> None:
        """Test type-directed decoding."""
        assert from_builtins(data, py_type) == expected

    @pytest.mark.parametrize(
        ("data", "py_type"),
        [
            ("6", int),
            (True, int),
            (1.5, int),
            (1, bool),
            ("ab", Char),
            ([1, 2, 3], tuple[int, str]),
            ("PURPLE", Color),
            ({"c": [1]}, StructOut),
            ([1], dict[str, int]),
            ({"x": 1}, dict[int, int]),
            ("not base64!", bytes),
        ],
    )
    def test_mismatch(self, data: Any, py_type: Any) -> None:
        """Test that mismatching data raises DecodeError."""
        with pytest.raises(DecodeError):
            from_builtins(data, py_type)

    def test_error_path(self) -> None:
        """Test that the error names the offending location."""
        with pytest.raises(DecodeError) as exc_info:
            from_builtins([{"c": [1, "two"], "d": None}], list[StructOut])
        assert exc_info.value.path == "$[0].c[1]"
        assert exc_info.value.expected == "int"


class TestTypedEncoding:
    """Test encoding values against their declared type."""

    def test_absent_not_required_key_sent_as_null(self) -> None:
        """Test that a missing NotRequired key is present as null."""
        encoded = to_builtins(Movie(title="Up"), Movie)
        assert encoded == {"title": "Up", "year": None}

    def test_present_not_required_key(self) -> None:
        """Test that a present NotRequired key keeps its value."""
        assert to_builtins(Movie(title="Up", year=2009), Movie) == {
            "title": "Up",
            "year": 2009,
        }

    def test_nested_typed_dicts(self) -> None:
        """Test that TypedDicts inside containers are filled too."""
        encoded = to_builtins([Movie(title="a")], list[Movie])
        assert encoded == [{"title": "a", "year": None}]

    @pytest.mark.parametrize("py_type", [tuple[()], None, type(None)])
    def test_unit_is_null(self, py_type: Any) -> None:
        """Test that the unit value is sent as null."""
        assert to_builtins((), py_type) is None

    def test_unit_inside_record(self) -> None:
        """Test that unit fields are null."""

        @dataclass
        class WithUnit:
            done: tuple[()]

        assert to_builtins(WithUnit(done=()), WithUnit) == {"done": None}

    @pytest.mark.parametrize(
        ("value", "py_type", "expected"),
        [
            (StructIn(a=None, b=[True]), StructIn, {"a": None, "b": [True]}),
            ((1, "a"), tuple[int, str], [1, "a"]),
            ((1, 2), tuple[int, ...], [1, 2]),
            (Point(1.0, 2.0), Point, [1.0, 2.0]),
            (Box(item=Movie(title="b")), Box[Movie], {"item": {"title": "b", "year": None}}),
            ({"k": Movie(title="c")}, dict[str, Movie], {"k": {"title": "c", "year": None}}),
            (Movie(title="d"), Movie | None, {"title": "d", "year": None}),
            (None, Movie | None, None),
            (Color.RED, Color, "RED"),
            (b"hi", bytes, "aGk="),
            ("x", Char, "x"),
        ],
    )
    def test_typed_values(self, value: Any, py_type: Any, expected: Any) -> None:
        """Test typed encoding across containers and records."""
        assert to_builtins(value, py_type) == expected

    def test_tuple_length_mismatch(self) -> None:
        """Test that a tuple of the wrong length is rejected."""
        with pytest.raises(TypeError, match="length 2"):
            to_builtins((1,), tuple[int, str])

    def test_typed_round_trip(self) -> None:
        """Test that typed encoding decodes back to the same value."""
        value = [Movie(title="Up")]
        decoded = from_builtins(to_builtins(value, list[Movie]), list[Movie])
        assert decoded == [{"title": "Up", "year": None}]
