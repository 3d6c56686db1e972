"""Conversion between Python values and the JSON builtins Elm ports exchange.

Encoding mirrors what Elm's port decoders accept: records become objects,
tuples and lists become arrays, Maybe becomes null or the value. Decoding is
driven by the declared Python type, so the result has the caller's classes
back (dataclasses, NamedTuples, enums, tuples, sets).
"""

from __future__ import annotations

import base64
import binascii
import types
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

from elmbridge.errors import DecodeError
from elmbridge.shapes import Char
from elmbridge.trace import substitute_type_params


_UNTYPED: Any = object()


def to_builtins(obj: Any, py_type: Any = _UNTYPED) -> Any:  # noqa: PLR0911
    """Convert a value to JSON-compatible Python builtins.

    With a declared type the encoding follows the Elm type derived from it:
    the unit value becomes null and absent ``NotRequired`` keys are sent as
    null, since Elm record decoders need every field present.

    Args:
        obj: Value to encode (dataclass, NamedTuple, container or primitive)
        py_type: The Python type annotation the value was declared with

    Returns:
        JSON-compatible Python value (dict, list, str, int, float, bool, None)

    Raises:
        TypeError: If the value has no JSON representation

    """
    if py_type is not _UNTYPED:
        return _encode(obj, py_type)

    if isinstance(obj, Enum):
        return obj.name

    if obj is None or isinstance(obj, bool | int | float | str):
        return obj

    if isinstance(obj, bytes | bytearray):
        return base64.b64encode(obj).decode("ascii")

    # NamedTuples are positional records, check before generic dataclass/tuple
    if isinstance(obj, tuple) and hasattr(obj, "_fields"):
        return [to_builtins(item) for item in obj]

    if is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_builtins(getattr(obj, f.name))
            for f in fields(obj)
            if not f.name.startswith("_")
        }

    if isinstance(obj, Mapping):
        return {to_builtins(k): to_builtins(v) for k, v in obj.items()}

    if isinstance(obj, AbstractSet | Sequence):
        return [to_builtins(item) for item in obj]

    msg = f"Cannot encode object of type {type(obj).__name__}"
    raise TypeError(msg)


def _encode(obj: Any, py_type: Any) -> Any:  # noqa: C901, PLR0911, PLR0912
    """Encode obj as declared by py_type, untyped below types without structure."""
    origin = get_origin(py_type)
    args = get_args(py_type)

    if py_type is None or py_type is type(None):
        return None

    if origin is Annotated or origin is Required or origin is NotRequired:
        return _encode(obj, args[0])
    if isinstance(py_type, NewType):
        return _encode(obj, py_type.__supertype__)
    if isinstance(py_type, TypeAliasType):
        return _encode(obj, py_type.__value__)
    if isinstance(origin, TypeAliasType):
        value = substitute_type_params(
            origin.__value__,
            dict(zip(origin.__type_params__, args, strict=True)),
        )
        return _encode(obj, value)

    if isinstance(py_type, types.UnionType) or origin is Union:
        options = [arg for arg in args if arg is not type(None)]
        if obj is None:
            return None
        if len(options) == 1:
            return _encode(obj, options[0])
        return to_builtins(obj)

    if origin in (list, Sequence, MutableSequence, set, frozenset, AbstractSet):
        return [_encode(item, args[0]) for item in obj]

    if origin is tuple:
        # tuple[()] is Elm's unit, which ports exchange as null
        if not args:
            return None
        if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
            return [_encode(item, args[0]) for item in obj]
        if len(obj) != len(args):
            msg = f"Expected a tuple of length {len(args)}, got {len(obj)}"
            raise TypeError(msg)
        return [_encode(item, arg) for item, arg in zip(obj, args, strict=True)]

    if origin in (dict, Mapping, MutableMapping):
        return {_encode(k, args[0]): _encode(v, args[1]) for k, v in obj.items()}

    if origin is not None and is_dataclass(origin):
        substitutions = dict(zip(origin.__parameters__, args, strict=True))
        return _encode_dataclass(obj, origin, substitutions)

    if isinstance(py_type, type):
        if is_typeddict(py_type):
            hints = get_type_hints(py_type, include_extras=True)
            return {key: _encode(obj.get(key), hint) for key, hint in hints.items()}
        if is_dataclass(py_type):
            return _encode_dataclass(obj, py_type, {})
        if issubclass(py_type, tuple) and hasattr(py_type, "_fields"):
            hints = get_type_hints(py_type, include_extras=True)
            return [
                _encode(getattr(obj, name), hints[name])
                for name in py_type._fields  # type: ignore[attr-defined]
            ]

    return to_builtins(obj)


def _encode_dataclass(obj: Any, cls: type, substitutions: dict[Any, Any]) -> dict[str, Any]:
    hints = get_type_hints(cls, include_extras=True)
    return {
        f.name: _encode(
            getattr(obj, f.name),
            substitute_type_params(hints[f.name], substitutions),
        )
        for f in fields(cls)
        if not f.name.startswith("_")
    }


def from_builtins(data: Any, py_type: Any, path: str = "$") -> Any:  # noqa: C901, PLR0911, PLR0912
    """Decode JSON builtins into a value of py_type.

    Args:
        data: Decoded JSON value
        py_type: The Python type annotation the value must satisfy
        path: Location of data within the outermost value, for errors

    Returns:
        A value of py_type.

    Raises:
        DecodeError: If data does not match py_type

    """
    origin = get_origin(py_type)
    args = get_args(py_type)

    if py_type is None or py_type is type(None):
        if data is not None:
            raise DecodeError(path, "null", data)
        return None
    if py_type is Any:
        return data

    if py_type is Char:
        if not isinstance(data, str) or len(data) != 1:
            raise DecodeError(path, "a single character", data)
        return data

    if origin is Annotated or origin is Required:
        return from_builtins(data, args[0], path)
    if origin is NotRequired:
        return from_builtins(data, args[0] | None, path)
    if isinstance(py_type, NewType):
        return from_builtins(data, py_type.__supertype__, path)
    if isinstance(py_type, TypeAliasType):
        return from_builtins(data, py_type.__value__, path)
    if isinstance(origin, TypeAliasType):
        value = substitute_type_params(
            origin.__value__,
            dict(zip(origin.__type_params__, args, strict=True)),
        )
        return from_builtins(data, value, path)

    if decoder := _PRIMITIVE_DECODERS.get(py_type):
        return decoder(data, path)

    if origin is Literal:
        if data not in args:
            raise DecodeError(path, f"one of {list(args)}", data)
        return data

    if isinstance(py_type, types.UnionType) or origin is Union:
        return _decode_union(data, args, path)

    if origin in (list, Sequence, MutableSequence):
        return _decode_items(data, args[0], path)
    if origin in (set, AbstractSet):
        return set(_decode_items(data, args[0], path))
    if origin is frozenset:
        return frozenset(_decode_items(data, args[0], path))

    if origin is tuple:
        return _decode_tuple(data, args, path)

    if origin in (dict, Mapping, MutableMapping):
        return _decode_mapping(data, args[0], args[1], path)

    if origin is not None and is_dataclass(origin):
        substitutions = dict(zip(origin.__parameters__, args, strict=True))
        return _decode_dataclass(data, origin, substitutions, path)

    if isinstance(py_type, type):
        return _decode_class(data, py_type, path)

    msg = f"Cannot decode into type: {py_type!r}"
    raise TypeError(msg)


def _decode_bool(data: Any, path: str) -> bool:
    if not isinstance(data, bool):
        raise DecodeError(path, "bool", data)
    return data


def _decode_int(data: Any, path: str) -> int:
    # JavaScript has a single number type; integral floats are accepted
    if isinstance(data, float) and data.is_integer():
        return int(data)
    if isinstance(data, bool) or not isinstance(data, int):
        raise DecodeError(path, "int", data)
    return data


def _decode_float(data: Any, path: str) -> float:
    if isinstance(data, bool) or not isinstance(data, int | float):
        raise DecodeError(path, "float", data)
    return float(data)


def _decode_str(data: Any, path: str) -> str:
    if not isinstance(data, str):
        raise DecodeError(path, "str", data)
    return data


def _decode_bytes(data: Any, path: str) -> bytes:
    if not isinstance(data, str):
        raise DecodeError(path, "base64 string", data)
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as exc:
        raise DecodeError(path, "base64 string", data) from exc


_PRIMITIVE_DECODERS: dict[Any, Any] = {
    bool: _decode_bool,
    int: _decode_int,
    float: _decode_float,
    str: _decode_str,
    bytes: _decode_bytes,
    bytearray: lambda data, path: bytearray(_decode_bytes(data, path)),
}


def _array(data: Any, path: str) -> list[Any]:
    if not isinstance(data, list):
        raise DecodeError(path, "array", data)
    return data


def _decode_items(data: Any, element_type: Any, path: str) -> list[Any]:
    return [
        from_builtins(item, element_type, f"{path}[{i}]")
        for i, item in enumerate(_array(data, path))
    ]


def _decode_union(data: Any, options: tuple[Any, ...], path: str) -> Any:
    if data is None and type(None) in options:
        return None
    for option in options:
        if option is type(None):
            continue
        try:
            return from_builtins(data, option, path)
        except DecodeError:
            continue
    expected = " | ".join(getattr(o, "__name__", repr(o)) for o in options)
    raise DecodeError(path, expected, data)


def _decode_tuple(data: Any, args: tuple[Any, ...], path: str) -> tuple[Any, ...]:
    if not args:
        if data not in (None, []):
            raise DecodeError(path, "()", data)
        return ()
    if len(args) == 2 and args[1] is Ellipsis:  # noqa: PLR2004
        return tuple(_decode_items(data, args[0], path))
    items = _array(data, path)
    if len(items) != len(args):
        raise DecodeError(path, f"array of length {len(args)}", data)
    return tuple(
        from_builtins(item, arg, f"{path}[{i}]")
        for i, (item, arg) in enumerate(zip(items, args, strict=True))
    )


def _decode_mapping(
    data: Any,
    key_type: Any,
    value_type: Any,
    path: str,
) -> dict[Any, Any]:
    if not isinstance(data, dict):
        raise DecodeError(path, "object", data)
    return {
        _decode_key(key, key_type, path): from_builtins(value, value_type, f"{path}.{key}")
        for key, value in data.items()
    }


def _decode_key(key: Any, key_type: Any, path: str) -> Any:
    # JSON object keys are always strings
    if key_type is int and isinstance(key, str):
        try:
            return int(key)
        except ValueError as exc:
            raise DecodeError(path, "integer key", key) from exc
    return from_builtins(key, key_type, path)


def _decode_class(data: Any, cls: type, path: str) -> Any:
    if issubclass(cls, Enum):
        if not isinstance(data, str) or data not in cls.__members__:
            raise DecodeError(path, f"one of {list(cls.__members__)}", data)
        return cls[data]

    if is_dataclass(cls):
        return _decode_dataclass(data, cls, {}, path)

    if is_typeddict(cls):
        if not isinstance(data, dict):
            raise DecodeError(path, "object", data)
        hints = get_type_hints(cls, include_extras=True)
        return {
            key: from_builtins(data.get(key), hint, f"{path}.{key}")
            for key, hint in hints.items()
            if key in data or key in cls.__required_keys__  # type: ignore[attr-defined]
        }

    if issubclass(cls, tuple) and hasattr(cls, "_fields"):
        items = _array(data, path)
        hints = get_type_hints(cls, include_extras=True)
        names = cls._fields  # type: ignore[attr-defined]
        if len(items) != len(names):
            raise DecodeError(path, f"array of length {len(names)}", data)
        return cls(
            *(
                from_builtins(item, hints[name], f"{path}.{name}")
                for item, name in zip(items, names, strict=True)
            ),
        )

    msg = f"Cannot decode into type: {cls!r}"
    raise TypeError(msg)


def _decode_dataclass(
    data: Any,
    cls: type,
    substitutions: dict[Any, Any],
    path: str,
) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(path, f"object for {cls.__name__}", data)
    hints = get_type_hints(cls, include_extras=True)
    field_values = {}
    for f in fields(cls):
        if f.name.startswith("_") or not f.init:
            continue
        if f.name not in data:
            raise DecodeError(f"{path}.{f.name}", "a value", None)
        field_type = substitute_type_params(hints[f.name], substitutions)
        field_values[f.name] = from_builtins(data[f.name], field_type, f"{path}.{f.name}")
    return cls(**field_values)
