"""Compile repository sources into a Graph.

Compilation runs in two fixed phases:
1. core: the bootstrap ``platform`` repository
2. system: every other repository, in dependency order

Each phase parses its sources, adds the declared elements, then resolves
supertypes and property types. A reference must point at an element of the
same repository or of one of its transitive dependencies.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from pure_compiled.errors import RebuildCompilationError
from pure_compiled.graph.graph import Graph, GraphElement
from pure_compiled.graph.models import (
    PRIMITIVE_TYPES,
    ClassDeclaration,
    ClassElement,
    EnumerationElement,
    SourceFile,
    qualify,
)
from pure_compiled.repositories.models import CodeRepository


def source_id(repository: CodeRepository, path: Path) -> str:
    """Stable identifier of a source file: ``/<repository>/<relative path>``."""
    return f"/{repository.name}/{path.relative_to(repository.root).as_posix()}"


def parse_source(repository: CodeRepository, path: Path) -> list[GraphElement]:
    """Parse one source file into elements.

    Raises:
        RebuildCompilationError: If the file is not valid YAML or fails validation.
    """
    sid = source_id(repository, path)
    try:
        with path.open("r", encoding="utf-8") as f:
            raw: dict[str, Any] = yaml.safe_load(f) or {}
        source = SourceFile.model_validate(raw)
    except yaml.YAMLError as e:
        raise RebuildCompilationError("Invalid YAML", source_id=sid, internal_details=str(e)) from e
    except PydanticValidationError as e:
        raise RebuildCompilationError(
            "Invalid source declarations", source_id=sid, internal_details=str(e)
        ) from e

    elements: list[GraphElement] = []
    for declaration in source.elements:
        element_path = qualify(source.package, declaration.name)
        if isinstance(declaration, ClassDeclaration):
            elements.append(
                ClassElement(
                    path=element_path,
                    repository=repository.name,
                    source_id=sid,
                    stereotypes=declaration.stereotypes,
                    supertypes=declaration.extends,
                    properties=declaration.properties,
                )
            )
        else:
            elements.append(
                EnumerationElement(
                    path=element_path,
                    repository=repository.name,
                    source_id=sid,
                    stereotypes=declaration.stereotypes,
                    values=declaration.values,
                )
            )
    return elements


class GraphCompiler:
    """Loads and compiles repository sources into a graph.

    Args:
        on_message: Optional callback receiving progress messages.

    Example:
        >>> compiler = GraphCompiler()
        >>> compiler.load_and_compile_core(graph)
        >>> compiler.load_and_compile_system(graph)
    """

    def __init__(self, on_message: Callable[[str], None] | None = None) -> None:
        self._on_message = on_message

    def load_and_compile_core(self, graph: Graph) -> int:
        """Compile the bootstrap repository. Returns the number of elements added."""
        core = [repo for repo in graph.repositories if repo.is_core]
        return self._compile(graph, core, phase="core")

    def load_and_compile_system(self, graph: Graph) -> int:
        """Compile every non-core repository. Returns the number of elements added."""
        system = [repo for repo in graph.repositories.dependency_order() if not repo.is_core]
        return self._compile(graph, system, phase="system")

    def _compile(self, graph: Graph, repositories: Iterable[CodeRepository], *, phase: str) -> int:
        added: list[GraphElement] = []
        for repository in repositories:
            files = repository.source_files()
            self._message(f"Loading {phase} repository '{repository.name}' ({len(files)} sources)")
            for path in files:
                for element in parse_source(repository, path):
                    existing = graph.get(element.path)
                    if existing is not None:
                        raise RebuildCompilationError(
                            f"Duplicate element '{element.path}'",
                            source_id=element.source_id,
                            internal_details=f"first defined in {existing.source_id}",
                        )
                    graph.add(element)
                    added.append(element)

        for element in added:
            self._resolve(graph, element)
        self._message(f"Compiled {len(added)} {phase} elements")
        return len(added)

    def _resolve(self, graph: Graph, element: GraphElement) -> None:
        if not isinstance(element, ClassElement):
            return
        visible = graph.repositories.visible_from(element.repository)
        for supertype in element.supertypes:
            target = self._lookup(graph, element, supertype, visible)
            if not isinstance(target, ClassElement):
                raise RebuildCompilationError(
                    f"'{element.path}' extends '{supertype}', which is not a class",
                    source_id=element.source_id,
                )
        for prop in element.properties:
            if prop.type not in PRIMITIVE_TYPES:
                self._lookup(graph, element, prop.type, visible)

    def _lookup(
        self,
        graph: Graph,
        element: GraphElement,
        path: str,
        visible: frozenset[str],
    ) -> GraphElement:
        target = graph.get(path)
        if target is None:
            raise RebuildCompilationError(
                f"'{element.path}' references unknown element '{path}'",
                source_id=element.source_id,
            )
        if target.repository not in visible:
            raise RebuildCompilationError(
                f"'{element.path}' references '{path}' from repository "
                f"'{target.repository}', which '{element.repository}' does not depend on",
                source_id=element.source_id,
            )
        return target

    def _message(self, message: str) -> None:
        if self._on_message is not None:
            self._on_message(message)
