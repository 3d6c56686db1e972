"""Structural shape representation for types crossing the Elm boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, NewType, dataclass_transform

# Python has no character type; annotate a field as Char to get Elm's Char.
Char = NewType("Char", str)


@dataclass(frozen=True)
class FixedLength:
    """Annotated marker for fixed-size arrays.

    Annotated[list[int], FixedLength(3)] → FixedArrayShape(IntShape(), 3).
    The size is carried for completeness; Elm cannot express it.
    """

    size: int


@dataclass(frozen=True)
@dataclass_transform(frozen_default=True)
class Shape:
    """Base for shape variants."""

    tag: ClassVar[str]
    registry: ClassVar[dict[str, type[Shape]]] = {}

    def __init_subclass__(cls, tag: str | None = None) -> None:
        """Register shape subclass with automatic tag derivation."""
        dataclass(frozen=True)(cls)
        cls.tag = tag if tag is not None else cls.__name__.lower().removesuffix("shape")

        if (existing := Shape.registry.get(cls.tag)) and existing is not cls:
            msg = (
                f"Tag '{cls.tag}' already registered to {existing}. "
                "Choose a different tag."
            )
            raise ValueError(msg)

        Shape.registry[cls.tag] = cls


class UnitShape(Shape, tag="unit"):
    """Unit type: None → ()."""


class BoolShape(Shape, tag="bool"):
    """Boolean type."""


class IntShape(Shape, tag="int"):
    """Integer type of any width."""


class FloatShape(Shape, tag="float"):
    """Floating point type of any width."""


class CharShape(Shape, tag="char"):
    """Single character."""


class StrShape(Shape, tag="str"):
    """String type."""


class BytesShape(Shape, tag="bytes"):
    """Binary data type."""


class OptionalShape(Shape, tag="optional"):
    """Optional value: int | None → OptionalShape(inner=IntShape())."""

    inner: Shape


class SequenceShape(Shape, tag="sequence"):
    """Variable-length sequence: list[int] → SequenceShape(element=IntShape())."""

    element: Shape


class FixedArrayShape(Shape, tag="fixed_array"):
    """Fixed-length homogeneous array."""

    element: Shape
    size: int


class MapShape(Shape, tag="map"):
    """Associative map: dict[str, int] → MapShape(key=StrShape(), value=IntShape())."""

    key: Shape
    value: Shape


class TupleShape(Shape, tag="tuple"):
    """Heterogeneous tuple: tuple[int, str] → TupleShape(elements=(...))."""

    elements: tuple[Shape, ...]


class NamedRef(Shape, tag="ref"):
    """Reference to a composite shape held in a ShapeRegistry."""

    name: str


class FieldShape(Shape, tag="field"):
    """Named field of a ProductShape."""

    name: str
    shape: Shape


class ProductShape(Shape, tag="product"):
    """Record with named fields, from a dataclass or TypedDict."""

    name: str
    fields: tuple[FieldShape, ...]


class TupleProductShape(Shape, tag="tuple_product"):
    """Positional record, from a NamedTuple."""

    name: str
    elements: tuple[Shape, ...]


class VariantShape(Shape, tag="variant"):
    """Sum type, from an Enum, Literal or union.

    Elm bindings cannot express these; the renderer rejects them.
    """

    name: str
    cases: tuple[str, ...]


PRIMITIVE_SHAPES: tuple[type[Shape], ...] = (
    UnitShape,
    BoolShape,
    IntShape,
    FloatShape,
    CharShape,
    StrShape,
    BytesShape,
)

# Shapes rendered as multi-token type applications ("Maybe x", "List x", ...)
TYPE_APPLICATIONS: tuple[type[Shape], ...] = (
    OptionalShape,
    SequenceShape,
    FixedArrayShape,
    MapShape,
)
