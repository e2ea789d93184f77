"""Unit tests for compiling generated sources into importable modules."""

from __future__ import annotations

import enum
import importlib
import importlib.util
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pure_compiled.compilation import (
    GENERATED_ROOT_PACKAGE,
    PythonCompiler,
    compile_and_write,
    pyc_bytes,
)
from pure_compiled.config import GenerationType
from pure_compiled.errors import CodeCompilationError
from pure_compiled.events import PipelineLog
from pure_compiled.generation import CodeGenerator, GenerationResult
from pure_compiled.graph import Graph
from pure_compiled.initializer import RuntimeInitializer
from pure_compiled.plan import build_plan
from pure_compiled.repositories import RepositorySet

if TYPE_CHECKING:
    from conftest import RecordingSink

SELECTION = ("repo-a", "repo-b")


@pytest.fixture
def graph(pipeline_log: PipelineLog, demo_repositories: RepositorySet) -> Graph:
    return RuntimeInitializer(pipeline_log).initialize(demo_repositories, SELECTION)


class TestPythonCompiler:
    """Tests for PythonCompiler."""

    def test_modules_and_implicit_packages(self, graph: Graph) -> None:
        """Each group compiles under pure_generated with its ancestor packages."""
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MODULAR, SELECTION))

        names = [m.name for m in PythonCompiler().compile(result)]

        assert names == sorted(names)
        assert "pure_generated.repo_a.demo.a" in names
        assert "pure_generated.repo_b.demo.b" in names
        assert GENERATED_ROOT_PACKAGE in names
        assert "pure_generated.repo_a.demo" in names

    def test_syntax_errors_are_collected(self) -> None:
        """Every failing module is reported at once."""
        result = GenerationResult(
            generation_type=GenerationType.MODULAR,
            sources_by_group={
                "one": {"ok": "x = 1\n", "bad": "def broken(:\n"},
                "two": {"worse": "class\n"},
            },
        )

        with pytest.raises(CodeCompilationError) as exc_info:
            PythonCompiler().compile(result)

        modules = sorted(d.module for d in exc_info.value.diagnostics)
        assert modules == ["pure_generated.one.bad", "pure_generated.two.worse"]
        assert str(exc_info.value).startswith("2 compilation error(s):")
        assert all(d.line == 1 for d in exc_info.value.diagnostics)

    def test_external_api_package(self) -> None:
        """Externalizable groups compile under the external API package."""
        result = GenerationResult(
            generation_type=GenerationType.MODULAR,
            sources_by_group={"repo-a": {"demo": "X = 1\n"}, "repo-b": {"demo": "Y = 2\n"}},
            externalizable_groups=frozenset({"repo-a"}),
            external_api_package="org.example.api",
        )

        names = {m.name for m in PythonCompiler().compile(result)}

        assert "org.example.api.repo_a.demo" in names
        assert "pure_generated.repo_b.demo" in names
        assert {"org", "org.example", "org.example.api"} <= names


class TestCompileAndWrite:
    """Tests for writing compiled modules."""

    def test_pyc_header(self) -> None:
        """Artifacts start with the interpreter's magic number."""
        data = pyc_bytes(b"payload")
        assert data[:4] == importlib.util.MAGIC_NUMBER
        assert len(data) == 16 + len(b"payload")

    def test_compiled_modules_are_importable(
        self,
        graph: Graph,
        pipeline_log: PipelineLog,
        sink: RecordingSink,
        tmp_path: Path,
        import_from: Callable[[Path], None],
    ) -> None:
        """The classes directory can be put on sys.path and imported from."""
        classes = tmp_path / "classes"
        result = CodeGenerator(graph).generate(build_plan(GenerationType.MODULAR, SELECTION))

        written = compile_and_write(result, classes, pipeline_log)

        assert (classes / "pure_generated" / "repo_a" / "demo" / "a" / "__init__.pyc") in written
        assert not list(classes.rglob("*.py"))
        assert "Finished writing compiled classes" in sink.messages[-1]

        import_from(classes)
        module_a = importlib.import_module("pure_generated.repo_a.demo.a")
        person = module_a.Person(name="Ada", nicknames=["A"])
        assert person.name == "Ada"
        assert person.nicknames == ["A"]
        assert module_a.Person.__pure_path__ == "demo::a::Person"
        assert issubclass(module_a.Color, enum.Enum)
        assert module_a.Color.RED.value == "RED"

        module_b = importlib.import_module("pure_generated.repo_b.demo.b")
        assert module_b.Employee.__pure_supertypes__ == ("demo::a::Person",)
        assert module_b.Employee().employeeId is None
