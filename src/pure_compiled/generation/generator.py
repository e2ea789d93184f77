"""Python code generation from a compiled graph.

Every element package becomes one module per group: classes become plain
slotted classes and enumerations become ``enum.Enum`` subclasses.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path

from pure_compiled.events import PipelineLog
from pure_compiled.generation.models import GenerationResult
from pure_compiled.graph.graph import Graph, GraphElement
from pure_compiled.graph.models import (
    PATH_SEPARATOR,
    ClassElement,
    EnumerationElement,
    PropertyDefinition,
)
from pure_compiled.plan import GenerationPlan, GenerationUnit

GENERATION_STEP = "code generation"

_PYTHON_TYPES = {
    "Boolean": "bool",
    "Date": "datetime.date",
    "DateTime": "datetime.datetime",
    "Decimal": "decimal.Decimal",
    "Float": "float",
    "Integer": "int",
    "StrictDate": "datetime.date",
    "String": "str",
}

_INDENT = "    "


def module_name(package: str) -> str:
    """Dotted module name of an element package (``meta::demo`` -> ``meta.demo``)."""
    return package.replace(PATH_SEPARATOR, ".")


def module_path(name: str) -> Path:
    """Relative file path of a dotted module name.

    Each element package is generated as a Python package so that nested
    element packages can live beneath it.
    """
    return Path(*name.split(".")) / "__init__.py"


def _annotation(prop: PropertyDefinition) -> str:
    python_type = _PYTHON_TYPES.get(prop.type, "object")
    return f"list[{python_type}]" if prop.is_many else f"{python_type} | None"


def _render_class(element: ClassElement) -> list[str]:
    lines = [
        f"class {element.name}:",
        f"{_INDENT}__pure_path__ = {element.path!r}",
        f"{_INDENT}__pure_supertypes__ = {tuple(element.supertypes)!r}",
        f"{_INDENT}__pure_stereotypes__ = {tuple(element.stereotypes)!r}",
        f"{_INDENT}__slots__ = {tuple(p.name for p in element.properties)!r}",
        "",
    ]
    if not element.properties:
        lines.append(f"{_INDENT}def __init__(self) -> None:")
        lines.append(f"{_INDENT * 2}pass")
        return lines

    params = ", ".join(f"{p.name}: {_annotation(p)} = None" for p in element.properties)
    lines.append(f"{_INDENT}def __init__(self, *, {params}) -> None:")
    for prop in element.properties:
        if prop.is_many:
            value = f"list({prop.name}) if {prop.name} is not None else []"
        else:
            value = prop.name
        lines.append(f"{_INDENT * 2}self.{prop.name} = {value}")
    return lines


def _render_enumeration(element: EnumerationElement) -> list[str]:
    lines = [f"class {element.name}(enum.Enum):"]
    lines.extend(f"{_INDENT}{value} = {value!r}" for value in element.values)
    lines.append("")
    lines.append(f"{element.name}.__pure_path__ = {element.path!r}")
    lines.append(f"{element.name}.__pure_stereotypes__ = {tuple(element.stereotypes)!r}")
    return lines


def render_module(origin: str, elements: Iterable[GraphElement]) -> str:
    """Render the source of one module holding ``elements``."""
    elements = list(elements)
    lines = [
        f'"""Generated from {origin}. Do not edit."""',
        "",
        "from __future__ import annotations",
        "",
        "import enum",
        "",
        f"__pure_elements__ = {tuple(e.path for e in elements)!r}",
    ]
    for element in elements:
        lines.extend(["", ""])
        if isinstance(element, ClassElement):
            lines.extend(_render_class(element))
        else:
            lines.extend(_render_enumeration(element))
    return "\n".join(lines) + "\n"


class CodeGenerator:
    """Generate Python sources for the units of a plan.

    Args:
        graph: READY graph to generate from.
        add_external_api: Mark groups holding externalizable elements.
        external_api_package: Package externalizable groups compile into.
        codegen_directory: Optional directory receiving a copy of every module.

    Example:
        >>> generator = CodeGenerator(graph)
        >>> result = generator.generate(build_plan(GenerationType.MODULAR, ("demo",)))
    """

    def __init__(
        self,
        graph: Graph,
        *,
        add_external_api: bool = False,
        external_api_package: str = "",
        codegen_directory: Path | None = None,
    ) -> None:
        if not graph.is_ready:
            raise ValueError(f"Graph is not ready (state: {graph.state.value})")
        self.graph = graph
        self.add_external_api = add_external_api
        self.external_api_package = external_api_package
        self.codegen_directory = codegen_directory

    def generate(self, plan: GenerationPlan) -> GenerationResult:
        sources_by_group: dict[str, dict[str, str]] = {}
        externalizable: set[str] = set()
        for unit in plan.units:
            elements = list(self.graph.elements(unit.repository))
            sources_by_group[unit.name] = self._generate_unit(unit, elements)
            if self.add_external_api and any(e.is_externalizable for e in elements):
                externalizable.add(unit.name)

        result = GenerationResult(
            generation_type=plan.generation_type,
            sources_by_group=sources_by_group,
            externalizable_groups=frozenset(externalizable),
            external_api_package=self.external_api_package if self.add_external_api else None,
        )
        if self.codegen_directory is not None:
            write_sources(result, self.codegen_directory)
        return result

    def _generate_unit(
        self, unit: GenerationUnit, elements: list[GraphElement]
    ) -> dict[str, str]:
        by_package: dict[str, list[GraphElement]] = defaultdict(list)
        for element in elements:
            by_package[element.package].append(element)

        origin = f"repository {unit.repository}" if unit.repository else "all repositories"
        return {
            module_name(package): render_module(origin, by_package[package])
            for package in sorted(by_package)
        }


def write_sources(result: GenerationResult, codegen_directory: Path) -> list[Path]:
    """Write every generated module under ``<codegen_directory>/<group>/``."""
    written: list[Path] = []
    for group, modules in result.sources_by_group.items():
        for name, source in modules.items():
            path = codegen_directory / group / module_path(name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
            written.append(path)
    return written


def generate_code(
    graph: Graph,
    plan: GenerationPlan,
    log: PipelineLog,
    *,
    add_external_api: bool = False,
    external_api_package: str = "",
    codegen_directory: Path | None = None,
) -> GenerationResult:
    """Run code generation as a timed pipeline step."""
    start = log.begin_step(GENERATION_STEP)
    generator = CodeGenerator(
        graph,
        add_external_api=add_external_api,
        external_api_package=external_api_package,
        codegen_directory=codegen_directory,
    )
    result = generator.generate(plan)
    log.info(
        f"    Generated {result.module_count} modules in {len(result.groups)} group(s)",
        step=GENERATION_STEP,
    )
    log.complete_step(GENERATION_STEP, start)
    return result
