"""Unit tests for Python code generation."""

from __future__ import annotations

from pathlib import Path

import pytest

from pure_compiled.config import GenerationType
from pure_compiled.events import PipelineLog
from pure_compiled.generation import CodeGenerator, module_name, module_path, write_sources
from pure_compiled.graph import Graph
from pure_compiled.initializer import RuntimeInitializer
from pure_compiled.plan import MONOLITHIC_UNIT, build_plan
from pure_compiled.repositories import RepositorySet

SELECTION = ("repo-a", "repo-b")


@pytest.fixture
def graph(pipeline_log: PipelineLog, demo_repositories: RepositorySet) -> Graph:
    return RuntimeInitializer(pipeline_log).initialize(demo_repositories, SELECTION)


class TestModuleNaming:
    def test_module_name(self) -> None:
        """Element packages map to dotted module names."""
        assert module_name("meta::pure::metamodel::type") == "meta.pure.metamodel.type"

    def test_module_path_is_a_package(self) -> None:
        """Every module is written as a package."""
        assert module_path("demo.a") == Path("demo/a/__init__.py")


class TestCodeGenerator:
    """Tests for CodeGenerator."""

    def test_modular_groups_follow_selection(self, graph: Graph) -> None:
        """Modular output has one group per selected repository."""
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MODULAR, SELECTION))

        assert result.groups == ("repo-a", "repo-b")
        assert list(result.sources_by_group["repo-a"]) == ["demo.a"]
        assert list(result.sources_by_group["repo-b"]) == ["demo.b"]
        assert result.module_count == 2

    def test_monolithic_single_group(self, graph: Graph) -> None:
        """Monolithic output has one group covering the whole graph."""
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MONOLITHIC, SELECTION))

        assert result.groups == (MONOLITHIC_UNIT,)
        modules = result.sources_by_group[MONOLITHIC_UNIT]
        assert "demo.a" in modules
        assert "meta.pure.metamodel.type" in modules

    def test_rendered_source(self, graph: Graph) -> None:
        """Classes and enumerations render with their metadata."""
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MODULAR, ("repo-a",)))
        source = result.sources_by_group["repo-a"]["demo.a"]

        assert "class Person:" in source
        assert "__pure_path__ = 'demo::a::Person'" in source
        assert "nicknames: list[str] = None" in source
        assert "class Color(enum.Enum):" in source
        assert "RED = 'RED'" in source

    def test_external_api_marks_groups_with_externalizable_elements(self, graph: Graph) -> None:
        """Only groups holding an externalizable element are exposed."""
        generator = CodeGenerator(
            graph, add_external_api=True, external_api_package="org.example.api"
        )
        result = generator.generate(build_plan(GenerationType.MODULAR, SELECTION))

        assert result.external_api_package == "org.example.api"
        assert result.is_externalizable("repo-a")
        assert not result.is_externalizable("repo-b")

    def test_external_api_disabled(self, graph: Graph) -> None:
        """Without the flag no group is exposed."""
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MODULAR, SELECTION))

        assert result.externalizable_groups == frozenset()
        assert result.external_api_package is None

    def test_sources_side_channel(self, graph: Graph, tmp_path: Path) -> None:
        """A codegen directory receives every module."""
        codegen = tmp_path / "generated-sources"
        result = CodeGenerator(graph, codegen_directory=codegen).generate(
            build_plan(GenerationType.MODULAR, SELECTION)
        )

        written = codegen / "repo-a" / "demo" / "a" / "__init__.py"
        assert written.read_text() == result.sources_by_group["repo-a"]["demo.a"]
        assert (codegen / "repo-b" / "demo" / "b" / "__init__.py").is_file()

    def test_write_sources_returns_paths(self, graph: Graph, tmp_path: Path) -> None:
        """write_sources reports every file written."""
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MODULAR, SELECTION))
        assert len(write_sources(result, tmp_path / "src")) == result.module_count

    def test_requires_ready_graph(self, demo_repositories: RepositorySet) -> None:
        """Generation needs a READY graph."""
        with pytest.raises(ValueError, match="not ready"):
            CodeGenerator(Graph(demo_repositories))
