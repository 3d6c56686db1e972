"""Render shapes as Elm type expressions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from elmbridge.errors import UnsupportedShape
from elmbridge.registry import ShapeRegistry
from elmbridge.shapes import (
    TYPE_APPLICATIONS,
    BoolShape,
    BytesShape,
    CharShape,
    FixedArrayShape,
    FloatShape,
    IntShape,
    MapShape,
    NamedRef,
    OptionalShape,
    ProductShape,
    SequenceShape,
    Shape,
    StrShape,
    TupleProductShape,
    TupleShape,
    UnitShape,
    VariantShape,
)
from elmbridge.trace import Tracer, trace


@dataclass(frozen=True)
class RenderContext:
    """Position of the shape being rendered.

    parenthesize is set when the parent is itself a type application
    (Maybe, List, Dict), so a nested application must be wrapped. resolving
    holds the NamedRefs currently being inlined.
    """

    registry: ShapeRegistry
    parenthesize: bool = False
    resolving: tuple[str, ...] = ()

    def nested(self) -> RenderContext:
        """Context for the argument of a type application."""
        return replace(self, parenthesize=True)

    def slot(self) -> RenderContext:
        """Context for a tuple slot or record field."""
        return replace(self, parenthesize=False)


def render(
    shape: Shape,
    registry: ShapeRegistry,
    *,
    parenthesize: bool = False,
) -> str:
    """Render a shape as an Elm type expression.

    Args:
        shape: The shape to render
        registry: Registry resolving the NamedRefs inside shape
        parenthesize: Whether the expression is an argument of a type
            application and must be wrapped if it is one itself

    Returns:
        A single-line Elm type expression, e.g. "List (Maybe Int)"

    Raises:
        UnknownTypeReference: If a NamedRef is missing from registry
        UnsupportedShape: For variant shapes and recursive types

    """
    return _render(shape, RenderContext(registry, parenthesize=parenthesize))


def type_expression(
    py_type: Any,
    *,
    parenthesize: bool = False,
    tracer: Tracer | None = None,
) -> str:
    """Trace a Python type and render it as an Elm type expression."""
    shape, registry = trace(py_type, tracer)
    return render(shape, registry, parenthesize=parenthesize)


def _render(shape: Shape, ctx: RenderContext) -> str:
    if isinstance(shape, NamedRef):
        return _render_ref(shape, ctx)

    renderer = _RENDERERS.get(type(shape))
    if renderer is None:
        msg = f"Cannot render {type(shape).__name__} as an Elm type"
        raise UnsupportedShape(msg)

    rendered = renderer(shape, ctx)
    if ctx.parenthesize and isinstance(shape, TYPE_APPLICATIONS):
        return f"({rendered})"
    return rendered


def _render_ref(ref: NamedRef, ctx: RenderContext) -> str:
    if ref.name in ctx.resolving:
        cycle = " -> ".join((*ctx.resolving, ref.name))
        msg = f"Recursive type cannot be inlined as an Elm type: {cycle}"
        raise UnsupportedShape(msg)
    resolved = ctx.registry.get(ref.name)
    return _render(resolved, replace(ctx, resolving=(*ctx.resolving, ref.name)))


def _render_variant(shape: VariantShape, _: RenderContext) -> str:
    msg = (
        f"Sum type {shape.name} ({' | '.join(shape.cases)}) "
        "has no representation in Elm bindings"
    )
    raise UnsupportedShape(msg)


def _render_items(items: tuple[Shape, ...], ctx: RenderContext) -> str:
    if not items:
        return "()"
    return f"( {', '.join(_render(item, ctx.slot()) for item in items)} )"


def _render_product(shape: ProductShape, ctx: RenderContext) -> str:
    if not shape.fields:
        return "{}"
    body = ", ".join(f"{f.name} : {_render(f.shape, ctx.slot())}" for f in shape.fields)
    return f"{{ {body} }}"


_RENDERERS: dict[type[Shape], Callable[[Any, RenderContext], str]] = {
    UnitShape: lambda s, c: "()",
    BoolShape: lambda s, c: "Bool",
    IntShape: lambda s, c: "Int",
    FloatShape: lambda s, c: "Float",
    CharShape: lambda s, c: "Char",
    StrShape: lambda s, c: "String",
    BytesShape: lambda s, c: "Bytes",
    OptionalShape: lambda s, c: f"Maybe {_render(s.inner, c.nested())}",
    SequenceShape: lambda s, c: f"List {_render(s.element, c.nested())}",
    # Elm lists carry no length, the size is dropped
    FixedArrayShape: lambda s, c: f"List {_render(s.element, c.nested())}",
    MapShape: lambda s, c: (
        f"Dict {_render(s.key, c.nested())} {_render(s.value, c.nested())}"
    ),
    TupleShape: lambda s, c: _render_items(s.elements, c),
    TupleProductShape: lambda s, c: _render_items(s.elements, c),
    ProductShape: _render_product,
    VariantShape: _render_variant,
}
