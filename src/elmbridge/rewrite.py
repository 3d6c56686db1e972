"""Turn compiled Elm output into an ES module.

`elm make` emits a script that wraps everything in an IIFE and publishes the
program through ``_Platform_export(...)`` onto ``this``. To load it as a
module the export helpers are deactivated and the exported object is
re-bound as ``export const Elm = ...;``.

Deactivated code is commented out rather than deleted so that line numbers
in runtime stack traces still match the compiler output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from elmbridge.errors import EndMarkerNotFound, StartMarkerNotFound
from elmbridge.scanner import Span, find_block

if TYPE_CHECKING:
    from collections.abc import Iterable

ELM_EXPORT_FUNCTIONS = (
    "_Platform_export",
    "_Platform_mergeExportsProd",
    "_Platform_mergeExportsDebug",
)
ELM_EXPORT_START = "_Platform_export("
ELM_EXPORT_ENDS = (");}(this));", ");\n}(this));")
ELM_PROLOGUE = (
    "(function(scope){",
    "(function (scope) {",
    "'use strict';",
    '"use strict";',
)

_PROLOGUE_PREFIX = "// -- "


@dataclass(frozen=True)
class ExportLocation:
    """Where the exported expression sits in the source."""

    payload: Span  # between the markers
    statement: Span  # from the start of the start marker past the end marker


@dataclass(frozen=True)
class _Replacement:
    span: Span
    text: str


def find_functions(source: str, name: str) -> list[Span]:
    """Return the spans of every ``function <name>`` definition in source.

    Each span runs from ``function`` through the brace closing the body.
    The name must match a whole identifier.

    Raises:
        UnbalancedDelimiters: If a matched function body is never closed

    """
    needle = f"function {name}"
    spans: list[Span] = []
    position = source.find(needle)
    while position != -1:
        after = position + len(needle)
        if _is_boundary(source, position - 1) and _is_boundary(source, after):
            span = find_block(source, position)
            spans.append(span)
            position = source.find(needle, span.end)
        else:
            position = source.find(needle, after)
    return spans


def locate_export(source: str, start_marker: str, end_marker: str) -> ExportLocation:
    """Locate the expression between the first start marker and the next end marker.

    Occurrences of the start marker that belong to a ``function`` header are
    skipped: the helper that performs the export is defined under the same
    name the export call uses.

    Raises:
        StartMarkerNotFound: If start_marker does not occur
        EndMarkerNotFound: If end_marker does not occur after the start marker

    """
    start = source.find(start_marker)
    while start != -1 and source.endswith("function ", 0, start):
        start = source.find(start_marker, start + 1)
    if start == -1:
        raise StartMarkerNotFound(start_marker)
    payload_start = start + len(start_marker)
    end = source.find(end_marker, payload_start)
    if end == -1:
        raise EndMarkerNotFound(end_marker)
    return ExportLocation(
        payload=Span(payload_start, end),
        statement=Span(start, end + len(end_marker)),
    )


def comment_out(text: str) -> str:
    """Wrap text in a comment without removing any of its lines."""
    if "*/" in text:
        return "".join(f"// {line}\n" for line in text.split("\n"))
    return f"/*\n{text}\n*/"


def rewrite(  # noqa: PLR0913
    source: str,
    function_names: Iterable[str],
    export_start: str,
    export_end: str,
    *,
    bound: str = "Elm",
    elide_export_statement: bool = False,
    prologue: Iterable[str] = (),
) -> str:
    """Elide named functions and re-export the marked expression.

    Both passes read the original source: the export payload is captured
    before anything is commented out, so the order of the passes does not
    matter.

    Args:
        source: Compiler output
        function_names: Functions whose definitions are commented out
        export_start: Text immediately preceding the exported expression
        export_end: Text immediately following the exported expression
        bound: Name of the synthesized ``export const``
        elide_export_statement: Also comment out the statement holding the
            markers and the payload
        prologue: Line prefixes (after leading whitespace) of lines to
            deactivate with a ``// -- `` prefix

    Returns:
        The module text followed by ``export const <bound> = <payload>;``.

    Raises:
        StartMarkerNotFound: If export_start is missing
        EndMarkerNotFound: If export_end is missing
        UnbalancedDelimiters: If an elided function body is never closed

    """
    location = locate_export(source, export_start, export_end)
    payload = location.payload.text(source)

    replacements = [
        _Replacement(span, comment_out(span.text(source)))
        for name in function_names
        for span in find_functions(source, name)
    ]
    replacements.extend(_prologue_replacements(source, tuple(prologue)))
    if elide_export_statement:
        statement = location.statement
        replacements.append(_Replacement(statement, comment_out(statement.text(source))))

    body = _apply(source, replacements)
    return f"{body}\nexport const {bound} = {payload};\n"


def to_es_module(js: str, *, bound: str = "Elm") -> str:
    """Convert `elm make` output into an ES module exporting ``Elm``."""
    end_marker = next(
        (marker for marker in ELM_EXPORT_ENDS if marker in js),
        ELM_EXPORT_ENDS[0],
    )
    return rewrite(
        js,
        ELM_EXPORT_FUNCTIONS,
        ELM_EXPORT_START,
        end_marker,
        bound=bound,
        elide_export_statement=True,
        prologue=ELM_PROLOGUE,
    )


def _is_boundary(text: str, index: int) -> bool:
    """Return True if text[index] cannot be part of a JavaScript identifier."""
    if index < 0 or index >= len(text):
        return True
    char = text[index]
    return not (char.isalnum() or char in "_$")


def _prologue_replacements(source: str, prefixes: tuple[str, ...]) -> list[_Replacement]:
    if not prefixes:
        return []
    replacements = []
    offset = 0
    for line in source.split("\n"):
        content = line.rstrip("\r")
        if content.strip().startswith(prefixes):
            replacements.append(
                _Replacement(
                    Span(offset, offset + len(content)),
                    _PROLOGUE_PREFIX + content,
                ),
            )
        offset += len(line) + 1
    return replacements


def _apply(source: str, replacements: list[_Replacement]) -> str:
    """Splice replacements into source, skipping any that overlap an earlier one."""
    parts: list[str] = []
    cursor = 0
    for replacement in sorted(replacements, key=lambda r: (r.span.start, -r.span.end)):
        if replacement.span.start < cursor:
            continue
        parts.append(source[cursor : replacement.span.start])
        parts.append(replacement.text)
        cursor = replacement.span.end
    parts.append(source[cursor:])
    return "".join(parts)
