"""Shape introspection for Python type annotations."""

from __future__ import annotations

import types
from abc import ABC, abstractmethod
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from collections.abc import Set as AbstractSet
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    Literal,
    NewType,
    NotRequired,
    Required,
    TypeAliasType,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from elmbridge.errors import ShapeConflictError, TypeAnalysisError
from elmbridge.registry import ShapeRegistry
from elmbridge.shapes import (
    BoolShape,
    BytesShape,
    Char,
    CharShape,
    FieldShape,
    FixedArrayShape,
    FixedLength,
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

_SEQUENCE_ORIGINS: frozenset[Any] = frozenset(
    {list, set, frozenset, Sequence, MutableSequence, AbstractSet},
)
_MAPPING_ORIGINS: frozenset[Any] = frozenset({dict, Mapping, MutableMapping})


class Tracer(ABC):
    """Capability that derives a Shape from a Python type.

    Implementations must be deterministic: the same type always yields an
    equal root shape and an equal registry.
    """

    @abstractmethod
    def trace(self, py_type: Any) -> tuple[Shape, ShapeRegistry]:
        """Return the root shape of py_type and the registry it refers to."""
        ...


class AnnotationTracer(Tracer):
    """Tracer built on static reflection over type annotations."""

    def trace(self, py_type: Any) -> tuple[Shape, ShapeRegistry]:
        session = _TraceSession()
        root = session.extract(py_type)
        return root, session.registry


def trace(py_type: Any, tracer: Tracer | None = None) -> tuple[Shape, ShapeRegistry]:
    """Trace py_type into a root shape and a freshly populated registry.

    Args:
        py_type: A Python type annotation (dataclass, NamedTuple, list[int], ...)
        tracer: Tracing capability to use (default AnnotationTracer)

    Returns:
        The root shape and the registry holding every named composite
        reachable from it.

    Raises:
        TypeAnalysisError: If the shape cannot be determined unambiguously
        ShapeConflictError: If two distinct classes share a name

    """
    return (tracer if tracer is not None else AnnotationTracer()).trace(py_type)


class _TraceSession:
    """State of one introspection: the registry and the class owning each name."""

    def __init__(self) -> None:
        self.registry = ShapeRegistry()
        self._owners: dict[str, object] = {}

    def extract(self, py_type: Any) -> Shape:  # noqa: C901, PLR0911, PLR0912
        """Convert a Python type annotation to a Shape."""
        origin = get_origin(py_type)
        args = get_args(py_type)

        if py_type is None or py_type is type(None):
            return UnitShape()
        if py_type is Char:
            return CharShape()
        if py_type is Any:
            msg = "Any has no fixed shape"
            raise TypeAnalysisError(msg)

        if origin is Annotated:
            return self._extract_annotated(args[0], py_type.__metadata__)
        if origin is Required:
            return self.extract(args[0])
        if origin is NotRequired:
            return OptionalShape(self.extract(args[0]))

        if isinstance(py_type, NewType):
            return self.extract(py_type.__supertype__)

        # Expand PEP 695 type aliases
        if isinstance(py_type, TypeAliasType):
            return self.extract(py_type.__value__)
        if isinstance(origin, TypeAliasType):
            return self.extract(_substitute_alias(origin, args))

        # bool is a subclass of int, check it first
        if py_type is bool:
            return BoolShape()
        if py_type is int:
            return IntShape()
        if py_type is float:
            return FloatShape()
        if py_type is str:
            return StrShape()
        if py_type is bytes or py_type is bytearray:
            return BytesShape()

        if origin is Literal:
            return VariantShape(
                name="Literal",
                cases=tuple(repr(value) for value in args),
            )

        if isinstance(py_type, types.UnionType) or origin is Union:
            return self._extract_union(args)

        if origin in _SEQUENCE_ORIGINS:
            if not args:
                msg = f"{_label(origin)} type must have an element type"
                raise TypeAnalysisError(msg)
            return SequenceShape(self.extract(args[0]))

        if origin in _MAPPING_ORIGINS:
            if len(args) != 2:  # noqa: PLR2004
                msg = f"{_label(origin)} type must have key and value types"
                raise TypeAnalysisError(msg)
            return MapShape(key=self.extract(args[0]), value=self.extract(args[1]))

        if origin is tuple:
            if not args:
                return UnitShape()
            if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
                return SequenceShape(self.extract(args[0]))
            return TupleShape(tuple(self.extract(arg) for arg in args))

        if origin is not None and is_dataclass(origin):
            return self._extract_generic_dataclass(origin, args)

        if isinstance(py_type, type):
            return self._extract_class(py_type)

        msg = f"Cannot trace type: {py_type!r}"
        raise TypeAnalysisError(msg)

    def _extract_annotated(self, base: Any, metadata: tuple[Any, ...]) -> Shape:
        shape = self.extract(base)
        for marker in metadata:
            if isinstance(marker, FixedLength):
                if not isinstance(shape, SequenceShape):
                    msg = f"FixedLength applies to sequences, not {base!r}"
                    raise TypeAnalysisError(msg)
                return FixedArrayShape(element=shape.element, size=marker.size)
        return shape

    def _extract_union(self, args: tuple[Any, ...]) -> Shape:
        options = [arg for arg in args if arg is not type(None)]
        optional = len(options) < len(args)
        if len(options) == 1:
            inner = self.extract(options[0])
        else:
            inner = VariantShape(
                name="Union",
                cases=tuple(_label(option) for option in options),
            )
        return OptionalShape(inner) if optional else inner

    def _extract_class(self, cls: type) -> Shape:
        if issubclass(cls, Enum):
            members = tuple(member.name for member in cls)
            if not members:
                msg = f"Enum {cls.__name__} has no members"
                raise TypeAnalysisError(msg)
            return self._named(cls, cls.__name__, lambda: VariantShape(cls.__name__, members))

        if is_dataclass(cls):
            return self._named(
                cls,
                cls.__name__,
                lambda: self._product(cls.__name__, cls, _hints(cls), {}),
            )

        if is_typeddict(cls):
            return self._named(cls, cls.__name__, lambda: self._typed_dict(cls))

        if issubclass(cls, tuple) and hasattr(cls, "_fields"):
            return self._named(cls, cls.__name__, lambda: self._named_tuple(cls))

        if cls in (list, dict, set, frozenset, tuple):
            msg = f"{cls.__name__} type must be parameterized"
            raise TypeAnalysisError(msg)

        msg = f"Cannot trace type: {cls!r}"
        raise TypeAnalysisError(msg)

    def _extract_generic_dataclass(self, origin: type, args: tuple[Any, ...]) -> Shape:
        params = getattr(origin, "__parameters__", ())
        if len(params) != len(args):
            msg = (
                f"Generic {origin.__name__} expects {len(params)} "
                f"arguments but got {len(args)}"
            )
            raise TypeAnalysisError(msg)
        substitutions = dict(zip(params, args, strict=True))
        name = f"{origin.__name__}[{', '.join(_label(arg) for arg in args)}]"
        return self._named(
            (origin, args),
            name,
            lambda: self._product(name, origin, _hints(origin), substitutions),
        )

    def _named(self, owner: object, name: str, build: Any) -> NamedRef:
        """Register a composite once and return a reference to it.

        The owner is recorded before the shape is built so that a recursive
        reference to the same type resolves to the NamedRef under construction.
        """
        if name in self._owners:
            if self._owners[name] != owner:
                msg = (
                    f"Type name '{name}' is used by both "
                    f"{self._owners[name]!r} and {owner!r}"
                )
                raise ShapeConflictError(msg)
            return NamedRef(name)
        self._owners[name] = owner
        self.registry.insert(name, build())
        return NamedRef(name)

    def _product(
        self,
        name: str,
        cls: type,
        hints: dict[str, Any],
        substitutions: dict[Any, Any],
    ) -> ProductShape:
        product_fields = tuple(
            FieldShape(
                name=f.name,
                shape=self.extract(substitute_type_params(hints[f.name], substitutions)),
            )
            for f in fields(cls)
            if not f.name.startswith("_")
        )
        return ProductShape(name=name, fields=product_fields)

    def _typed_dict(self, cls: type) -> ProductShape:
        hints = _hints(cls)
        return ProductShape(
            name=cls.__name__,
            fields=tuple(
                FieldShape(name=key, shape=self.extract(hint))
                for key, hint in hints.items()
            ),
        )

    def _named_tuple(self, cls: type) -> TupleProductShape:
        hints = _hints(cls)
        missing = [name for name in cls._fields if name not in hints]  # type: ignore[attr-defined]
        if missing:
            msg = f"NamedTuple {cls.__name__} has untyped fields: {missing}"
            raise TypeAnalysisError(msg)
        return TupleProductShape(
            name=cls.__name__,
            elements=tuple(self.extract(hints[name]) for name in cls._fields),  # type: ignore[attr-defined]
        )


def _hints(cls: type) -> dict[str, Any]:
    """Resolve annotations of cls, keeping Annotated metadata."""
    try:
        return get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as exc:
        msg = f"Cannot resolve annotations of {cls.__name__}: {exc}"
        raise TypeAnalysisError(msg) from exc


def _label(py_type: Any) -> str:
    return getattr(py_type, "__name__", None) or repr(py_type)


def _substitute_alias(alias: TypeAliasType, args: tuple[Any, ...]) -> Any:
    type_params = alias.__type_params__
    if len(type_params) != len(args):
        msg = (
            f"Type alias {alias.__name__} expects {len(type_params)} "
            f"arguments but got {len(args)}"
        )
        raise TypeAnalysisError(msg)
    return substitute_type_params(alias.__value__, dict(zip(type_params, args, strict=True)))


def substitute_type_params(type_expr: Any, substitutions: dict[Any, Any]) -> Any:
    """Recursively substitute type parameters in a type expression."""
    if not substitutions:
        return type_expr
    if type_expr in substitutions:
        return substitutions[type_expr]

    origin = get_origin(type_expr)
    args = get_args(type_expr)

    if origin is None or not args:
        return type_expr

    new_args = tuple(substitute_type_params(arg, substitutions) for arg in args)

    # UnionType (| operator) needs special reconstruction
    if isinstance(type_expr, types.UnionType):
        result = new_args[0]
        for arg in new_args[1:]:
            result = result | arg
        return result

    if origin is Annotated:
        return Annotated[(new_args[0], *type_expr.__metadata__)]

    return origin[new_args]
