"""Session-scoped catalogue of named composite shapes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from elmbridge.errors import ShapeConflictError, UnknownTypeReference

if TYPE_CHECKING:
    from collections.abc import ItemsView, Iterator

    from elmbridge.shapes import Shape


class ShapeRegistry:
    """Maps composite type names to their shapes.

    One registry belongs to one introspection session. Lookup is by name
    only; there is no removal.
    """

    def __init__(self) -> None:
        self._shapes: dict[str, Shape] = {}

    def insert(self, name: str, shape: Shape) -> None:
        """Register a shape under a name.

        Re-inserting an equal shape is a no-op.

        Raises:
            ShapeConflictError: If a different shape is already registered
                under this name.

        """
        if (existing := self._shapes.get(name)) is not None and existing != shape:
            msg = (
                f"Type name '{name}' already registered with a different shape: "
                f"{existing!r} vs {shape!r}"
            )
            raise ShapeConflictError(msg)
        self._shapes[name] = shape

    def get(self, name: str) -> Shape:
        """Return the shape registered under name.

        Raises:
            UnknownTypeReference: If nothing is registered under name.

        """
        try:
            return self._shapes[name]
        except KeyError:
            raise UnknownTypeReference(name) from None

    def items(self) -> ItemsView[str, Shape]:
        return self._shapes.items()

    def __contains__(self, name: object) -> bool:
        return name in self._shapes

    def __iter__(self) -> Iterator[str]:
        return iter(self._shapes)

    def __len__(self) -> int:
        return len(self._shapes)

    def __repr__(self) -> str:
        return f"ShapeRegistry({sorted(self._shapes)})"
