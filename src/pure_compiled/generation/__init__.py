"""Python source generation."""

from __future__ import annotations

from pure_compiled.generation.generator import (
    CodeGenerator,
    generate_code,
    module_name,
    module_path,
    render_module,
    write_sources,
)
from pure_compiled.generation.models import GenerationResult, group_package

__all__: list[str] = [
    "CodeGenerator",
    "GenerationResult",
    "generate_code",
    "group_package",
    "module_name",
    "module_path",
    "render_module",
    "write_sources",
]
