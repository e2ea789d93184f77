"""Compile generated sources into importable bytecode.

Modules compile with the interpreter's built-in compiler. Artifacts are
sourceless ``.pyc`` files laid out as packages under the classes directory,
so adding that directory to ``sys.path`` makes them importable.

Groups marked externally visible compile under the external API package
instead of ``pure_generated``.
"""

from __future__ import annotations

import importlib.util
import marshal
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pure_compiled.compilation.models import (
    GENERATED_ROOT_PACKAGE,
    PACKAGE_INIT,
    CompileDiagnostic,
    CompiledModule,
)
from pure_compiled.errors import CodeCompilationError
from pure_compiled.events import PipelineLog
from pure_compiled.generation.generator import module_path
from pure_compiled.generation.models import GenerationResult, group_package

COMPILATION_STEP = "code compilation"
WRITE_CLASSES_STEP = "writing compiled classes"

# Header of an unchecked pyc: magic, flags, then two unused words
_PYC_FLAGS = (0).to_bytes(4, "little")
_PYC_UNUSED = (0).to_bytes(8, "little")


def pyc_bytes(bytecode: bytes) -> bytes:
    """Wrap marshalled bytecode in a pyc header for the running interpreter."""
    return importlib.util.MAGIC_NUMBER + _PYC_FLAGS + _PYC_UNUSED + bytecode


def group_root(result: GenerationResult, group: str) -> str:
    """Package a group's modules compile into."""
    if result.is_externalizable(group) and result.external_api_package:
        return f"{result.external_api_package}.{group_package(group)}"
    return f"{GENERATED_ROOT_PACKAGE}.{group_package(group)}"


class PythonCompiler:
    """Compile every module of a GenerationResult.

    All modules are compiled before anything is reported, so a failure lists
    every broken module at once.

    Example:
        >>> modules = PythonCompiler().compile(result)
        >>> write_class_files(modules, Path("build/classes"))
    """

    def compile(self, result: GenerationResult) -> list[CompiledModule]:
        """Compile all groups.

        Raises:
            CodeCompilationError: With one diagnostic per failing module.
        """
        compiled: dict[str, CompiledModule] = {}
        diagnostics: list[CompileDiagnostic] = []

        for group, modules in result.sources_by_group.items():
            root = group_root(result, group)
            for name, source in modules.items():
                qualified = f"{root}.{name}"
                if qualified in compiled:
                    other = compiled[qualified].group
                    diagnostics.append(
                        CompileDiagnostic(
                            group=group,
                            module=qualified,
                            message=f"module also generated by group '{other}'",
                        )
                    )
                    continue
                filename = f"{group}/{module_path(name).as_posix()}"
                try:
                    code = compile(source, filename, "exec", dont_inherit=True)
                except SyntaxError as e:
                    diagnostics.append(
                        CompileDiagnostic(
                            group=group,
                            module=qualified,
                            line=e.lineno,
                            column=e.offset,
                            message=e.msg or str(e),
                        )
                    )
                    continue
                compiled[qualified] = CompiledModule(
                    name=qualified, group=group, bytecode=marshal.dumps(code)
                )

        if diagnostics:
            raise CodeCompilationError(diagnostics)

        for package in _implicit_packages(compiled):
            code = compile("", f"{package}/{PACKAGE_INIT}.py", "exec", dont_inherit=True)
            compiled[package] = CompiledModule(name=package, bytecode=marshal.dumps(code))

        return [compiled[name] for name in sorted(compiled)]


def _implicit_packages(names: Iterable[str]) -> list[str]:
    """Ancestor packages of ``names`` that are not compiled modules themselves."""
    existing = set(names)
    missing: set[str] = set()
    for name in existing:
        parts = name.split(".")
        for depth in range(1, len(parts)):
            ancestor = ".".join(parts[:depth])
            if ancestor not in existing:
                missing.add(ancestor)
    return sorted(missing)


def write_class_files(modules: Iterable[CompiledModule], classes_directory: Path) -> list[Path]:
    """Write every module's pyc under ``classes_directory``.

    Each file is written to a temporary name and moved into place.

    Raises:
        OSError: If a file cannot be written.
    """
    written: list[Path] = []
    for module in modules:
        target = classes_directory / module.artifact_path
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(pyc_bytes(module.bytecode))
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        written.append(target)
    return written


def compile_and_write(
    result: GenerationResult,
    classes_directory: Path,
    log: PipelineLog,
    *,
    compiler: PythonCompiler | None = None,
) -> list[Path]:
    """Compile a GenerationResult and write its artifacts as timed steps."""
    compiler = compiler or PythonCompiler()

    start = log.begin_step(COMPILATION_STEP)
    modules = compiler.compile(result)
    log.complete_step(COMPILATION_STEP, start)

    start = log.begin_step(WRITE_CLASSES_STEP)
    written = write_class_files(modules, classes_directory)
    log.info(f"    Wrote {len(written)} compiled modules to {classes_directory}")
    log.complete_step(WRITE_CLASSES_STEP, start)
    return written
