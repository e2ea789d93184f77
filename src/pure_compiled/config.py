"""Generation configuration and output layout.

GenerationConfig carries every switch of a run. OutputLayout resolves where
metadata, generated sources and compiled classes go:

- use_single_dir=False: ``<target>/metadata-distributed/``,
  ``<target>/generated-sources/`` (or ``generated-test-sources/``), ``<classes>/``
- use_single_dir=True: metadata shares ``<classes>/``
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Environment variable holding the graph cache path
CACHE_ENV_VAR = "PURE_COMPILED_CACHE"

METADATA_DIRECTORY_NAME = "metadata-distributed"
SOURCES_DIRECTORY_NAME = "generated-sources"
TEST_SOURCES_DIRECTORY_NAME = "generated-test-sources"

# Dotted Python package name, e.g. "org.example.api"
EXTERNAL_API_PACKAGE_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$"


class GenerationType(str, Enum):
    """How output is partitioned."""

    MONOLITHIC = "monolithic"
    MODULAR = "modular"


class OutputLayout(BaseModel):
    """Resolved output directories.

    Attributes:
        classes_directory: Where compiled artifacts are written.
        metadata_directory: Where distributed metadata is written, or None.
        codegen_directory: Where generated sources are written, or None.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    classes_directory: Path
    metadata_directory: Path | None = None
    codegen_directory: Path | None = None


class GenerationConfig(BaseModel):
    """All inputs of a generation run.

    Example:
        >>> config = GenerationConfig(
        ...     repositories=frozenset({"demo"}),
        ...     classes_directory=Path("build/classes"),
        ...     target_directory=Path("build"),
        ... )
        >>> config.layout.metadata_directory
        PosixPath('build/metadata-distributed')
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    repositories: frozenset[str] = Field(
        default_factory=frozenset,
        description="Requested repositories; empty means all",
    )
    excluded_repositories: frozenset[str] = Field(default_factory=frozenset)
    extra_repositories: tuple[str, ...] = Field(
        default=(),
        description="Resource (package:path) or filesystem descriptors of extra repositories",
    )
    generation_type: GenerationType = GenerationType.MODULAR
    skip: bool = False
    add_external_api: bool = False
    external_api_package: str = ""
    generate_metadata: bool = True
    use_single_dir: bool = False
    generate_sources: bool = False
    generate_test: bool = False
    prevent_compilation: bool = False
    classes_directory: Path
    target_directory: Path
    cache_path: Path | None = Field(
        default=None, description="Graph cache snapshot to hydrate from"
    )

    @model_validator(mode="after")
    def _check_external_api_package(self) -> GenerationConfig:
        if self.add_external_api and not re.match(
            EXTERNAL_API_PACKAGE_PATTERN, self.external_api_package
        ):
            raise ValueError(
                "external_api_package must be a dotted package name when "
                f"add_external_api is set, got '{self.external_api_package}'"
            )
        return self

    @property
    def layout(self) -> OutputLayout:
        if not self.generate_metadata:
            metadata_directory = None
        elif self.use_single_dir:
            metadata_directory = self.classes_directory
        else:
            metadata_directory = self.target_directory / METADATA_DIRECTORY_NAME

        codegen_directory = None
        if self.generate_sources:
            name = TEST_SOURCES_DIRECTORY_NAME if self.generate_test else SOURCES_DIRECTORY_NAME
            codegen_directory = self.target_directory / name

        return OutputLayout(
            classes_directory=self.classes_directory,
            metadata_directory=metadata_directory,
            codegen_directory=codegen_directory,
        )
