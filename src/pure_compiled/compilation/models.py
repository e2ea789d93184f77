"""Compilation output models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Root package of compiled modules that are not externally visible
GENERATED_ROOT_PACKAGE = "pure_generated"

PACKAGE_INIT = "__init__"


class CompileDiagnostic(BaseModel):
    """One error reported while compiling a generated module.

    Attributes:
        group: Group the module belongs to.
        module: Qualified module name.
        line: 1-based line number, when known.
        column: 1-based column, when known.
        message: Compiler message.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    group: str
    module: str
    line: int | None = None
    column: int | None = None
    message: str

    def format(self) -> str:
        location = self.module
        if self.line is not None:
            location += f":{self.line}"
            if self.column is not None:
                location += f":{self.column}"
        return f"{location}: {self.message}"


class CompiledModule(BaseModel):
    """A compiled module ready to be written.

    Every generated module is a package, so its artifact is
    ``<name as path>/__init__.pyc``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Qualified module name")
    group: str | None = Field(default=None, description="Group, or None for implicit packages")
    bytecode: bytes = Field(..., description="Marshalled code object")

    @property
    def artifact_path(self) -> Path:
        return Path(*self.name.split(".")) / f"{PACKAGE_INIT}.pyc"
