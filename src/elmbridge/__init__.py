"""elmbridge - Call Elm functions from Python with typed input and output."""

from elmbridge.binding import (
    ElmCompiler,
    ElmFunctionHandle,
    ElmMake,
    ElmRoot,
    ModuleRuntime,
    QualifiedFunction,
)
from elmbridge.codecs import (
    from_builtins,
    to_builtins,
)
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
from elmbridge.registry import ShapeRegistry
from elmbridge.render import (
    render,
    type_expression,
)
from elmbridge.rewrite import (
    rewrite,
    to_es_module,
)
from elmbridge.scanner import (
    Span,
    find_block,
    scan_block,
)
from elmbridge.shapes import (
    Char,
    FixedLength,
    Shape,
)
from elmbridge.trace import (
    AnnotationTracer,
    Tracer,
    trace,
)

__all__ = [
    # Introspection
    "AnnotationTracer",
    "Char",
    # Errors
    "CompileError",
    "DecodeError",
    "DiskIOError",
    "ElmBridgeError",
    # Binding
    "ElmCompiler",
    "ElmFunctionHandle",
    "ElmMake",
    "ElmRoot",
    "EndMarkerNotFound",
    "FixedLength",
    "InvalidElmCall",
    "InvalidExportFormat",
    "ModuleRuntime",
    "QualifiedFunction",
    "Shape",
    "ShapeConflictError",
    "ShapeRegistry",
    # Source rewriting
    "Span",
    "StartMarkerNotFound",
    "Tracer",
    "TypeAnalysisError",
    "UnbalancedDelimiters",
    "UnknownTypeReference",
    "UnsupportedShape",
    "find_block",
    # Wire codec
    "from_builtins",
    # Rendering
    "render",
    "rewrite",
    "scan_block",
    "to_builtins",
    "to_es_module",
    "trace",
    "type_expression",
]
