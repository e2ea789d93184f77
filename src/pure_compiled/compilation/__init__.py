"""Compilation of generated sources into bytecode artifacts."""

from __future__ import annotations

from pure_compiled.compilation.compiler import (
    PythonCompiler,
    compile_and_write,
    pyc_bytes,
    write_class_files,
)
from pure_compiled.compilation.models import (
    GENERATED_ROOT_PACKAGE,
    CompileDiagnostic,
    CompiledModule,
)

__all__: list[str] = [
    "GENERATED_ROOT_PACKAGE",
    "CompileDiagnostic",
    "CompiledModule",
    "PythonCompiler",
    "compile_and_write",
    "pyc_bytes",
    "write_class_files",
]
