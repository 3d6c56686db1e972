"""Prepare Elm functions for calls from Python.

Preparing a function generates a small Elm port module around it, compiles
that module with the Elm compiler, rewrites the output into an ES module and
loads it into a JavaScript runtime supplied by the caller::

    root = ElmRoot("./elm/src")
    add5 = root.prepare("Test.add5", int, int, runtime)
    assert add5.call(1) == 6

The compiler and the JavaScript runtime are collaborators behind the
ElmCompiler and ModuleRuntime interfaces.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from elmbridge.codecs import from_builtins, to_builtins
from elmbridge.errors import CompileError, DiskIOError, InvalidElmCall
from elmbridge.render import type_expression
from elmbridge.rewrite import to_es_module
from elmbridge.templates import render_binding, render_runner

logger = logging.getLogger(__name__)

_MODULE_SEGMENT = re.compile(r"[A-Z][A-Za-z0-9_]*")
_FUNCTION_NAME = re.compile(r"[a-z][A-Za-z0-9_]*")


@dataclass(frozen=True)
class QualifiedFunction:
    """An Elm function named the way it is called without import aliases."""

    module_path: str
    function_name: str

    @classmethod
    def parse(cls, qualified_name: str) -> QualifiedFunction:
        """Split "MyModule.Submodule.myFunction" into module and function.

        Raises:
            InvalidElmCall: If the name has no module part or is not a valid
                Elm identifier path

        """
        *modules, function_name = qualified_name.split(".")
        if (
            not modules
            or not all(_MODULE_SEGMENT.fullmatch(m) for m in modules)
            or not _FUNCTION_NAME.fullmatch(function_name)
        ):
            raise InvalidElmCall(qualified_name)
        return cls(module_path=".".join(modules), function_name=function_name)

    def binding_module_name(self, seed: int) -> str:
        """Unique module name for a binding generated around this function."""
        segments = (*self.module_path.split("."), self.function_name)
        return f"{'_'.join(segments)}_Binding{seed}"


@dataclass(frozen=True)
class CompiledBinding:
    """Compiler output for one generated binding module."""

    module_name: str
    javascript: str

    @property
    def runner_name(self) -> str:
        """Name under which the runner module is loaded."""
        return f"call_{self.module_name}.js"


class ElmCompiler(ABC):
    """Compiles one Elm source file inside a source directory."""

    @abstractmethod
    def compile(self, root_path: Path, source_name: str, output_name: str) -> None:
        """Compile root_path/source_name to root_path/output_name.

        Raises:
            CompileError: If the compiler cannot be launched or reports errors

        """
        ...


@dataclass(frozen=True)
class ElmMake(ElmCompiler):
    """The `elm make` command line compiler."""

    executable: str = "elm"
    optimize: bool = True

    def command(self, source_name: str, output_name: str) -> list[str]:
        """Build the argument list for one compilation."""
        command = [self.executable, "make", source_name, f"--output={output_name}"]
        if self.optimize:
            command.append("--optimize")
        return command

    def compile(self, root_path: Path, source_name: str, output_name: str) -> None:
        command = self.command(source_name, output_name)
        logger.debug("Running %s in %s", shlex.join(command), root_path)
        try:
            result = subprocess.run(  # noqa: S603
                command,
                cwd=root_path,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            msg = f"Failed to invoke elm compiler: {exc}"
            raise CompileError(msg) from exc
        # elm make reports problems on stderr, even with a zero exit code
        if result.stderr:
            stderr = result.stderr.decode("utf-8", errors="replace")
            msg = f"The elm binding failed to compile: {stderr}"
            raise CompileError(msg)


class ModuleRuntime(ABC):
    """An embedded JavaScript runtime that can host ES modules.

    Implementations resolve module specifiers against the names passed to
    load, and resolve returned promises before handing back a value.
    """

    @abstractmethod
    def load(self, name: str, source: str) -> None:
        """Make source importable under name."""
        ...

    @abstractmethod
    def call(self, name: str, args: list[Any]) -> Any:
        """Call the default export of module name and return its JSON result."""
        ...


class ElmFunctionHandle[I, O]:
    """A prepared Elm function. The only thing you can do with it is call it."""

    def __init__(
        self,
        runtime: ModuleRuntime,
        entrypoint: str,
        input_type: type[I],
        output_type: type[O],
    ) -> None:
        self._runtime = runtime
        self._entrypoint = entrypoint
        self._input_type = input_type
        self._output_type = output_type

    @property
    def entrypoint(self) -> str:
        """Runtime module name of the runner."""
        return self._entrypoint

    def call(self, value: I) -> O:
        """Call the Elm function with value and return its output.

        Raises:
            DecodeError: If the Elm function returned a value that does not
                match the output type

        """
        flags = to_builtins(value, self._input_type)
        result = self._runtime.call(self._entrypoint, [flags])
        return from_builtins(result, self._output_type)

    def __repr__(self) -> str:
        return f"ElmFunctionHandle({self._entrypoint!r})"


@dataclass(frozen=True)
class ElmRoot:
    """A directory with .elm files inside of it.

    root_path is the source directory holding the modules (usually ./src),
    not the directory with elm.json in it: elm.json may list any
    source-directories, and the generated binding must sit next to the
    modules it imports.

    In debug mode generated files are kept on disk and the runner logs its
    input.
    """

    root_path: Path
    debug: bool = False
    compiler: ElmCompiler = field(default_factory=ElmMake)

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_path", Path(self.root_path))

    def with_debug(self) -> ElmRoot:
        """Return a copy of this root in debug mode."""
        return replace(self, debug=True)

    def prepare[I, O](
        self,
        qualified_function: str,
        input_type: type[I],
        output_type: type[O],
        runtime: ModuleRuntime,
    ) -> ElmFunctionHandle[I, O]:
        """Prepare an Elm function for execution.

        The input and output types must be known up front: the generated
        port module needs type annotations, which are derived from them.

        Args:
            qualified_function: e.g. "MyModule.Submodule.myFun"
            input_type: Python type of the argument passed to call
            output_type: Python type of the value call returns
            runtime: JavaScript runtime the compiled binding is loaded into

        Raises:
            InvalidElmCall: If qualified_function is malformed
            TypeAnalysisError: If a type cannot be traced
            UnsupportedShape: If a type has no Elm representation
            CompileError: If the binding does not compile
            DiskIOError: If a temporary file cannot be written, read or removed
            InvalidExportFormat: If the compiler output has an unexpected form

        """
        binding = self.compile_binding(qualified_function, input_type, output_type)
        esm = to_es_module(binding.javascript)
        if self.debug:
            _write(self.root_path / f"{binding.module_name}-esm.mjs", esm)

        runtime.load(f"{binding.module_name}.js", esm)
        runtime.load(
            binding.runner_name,
            render_runner(binding.module_name, debug=self.debug),
        )
        return ElmFunctionHandle(runtime, binding.runner_name, input_type, output_type)

    def compile_binding(
        self,
        qualified_function: str,
        input_type: Any,
        output_type: Any,
    ) -> CompiledBinding:
        """Generate and compile the port module wrapping a function."""
        seed = uuid.uuid4().int
        logger.debug("Running with seed: %s", seed)

        # The flags type is an argument of Program, so it must be wrapped
        input_expr = type_expression(input_type, parenthesize=True)
        logger.debug("Inferred input type: %s", input_expr)
        output_expr = type_expression(output_type)
        logger.debug("Inferred output type: %s", output_expr)

        function = QualifiedFunction.parse(qualified_function)
        logger.debug("Inferred function name: %s", function.function_name)
        logger.debug("Inferred module name: %s", function.module_path)
        module_name = function.binding_module_name(seed)
        logger.debug("Inferred binding module name: %s", module_name)

        source_path = self.root_path / f"{module_name}.elm"
        output_path = self.root_path / f"{module_name}.js"
        _write(
            source_path,
            render_binding(
                module_path=function.module_path,
                function_name=function.function_name,
                file_name=module_name,
                input_type=input_expr,
                output_type=output_expr,
            ),
        )
        try:
            self.compiler.compile(self.root_path, source_path.name, output_path.name)
        finally:
            if not self.debug:
                _remove(source_path)

        try:
            javascript = _read(output_path)
        finally:
            if not self.debug:
                _remove(output_path)
        return CompiledBinding(module_name=module_name, javascript=javascript)


def _write(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise DiskIOError(path, str(exc)) from exc


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DiskIOError(path, str(exc)) from exc


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        raise DiskIOError(path, str(exc)) from exc
