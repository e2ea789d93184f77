"""Code generation output model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pure_compiled.config import GenerationType


class GenerationResult(BaseModel):
    """Generated Python source, partitioned by group.

    Monolithic runs produce a single group; modular runs produce one group
    per selected repository.

    Attributes:
        generation_type: Mode the sources were generated in.
        sources_by_group: Group name to (module name to source text). Module
            names are relative, dotted package paths.
        externalizable_groups: Groups exposed under the external API package.
        external_api_package: Package the externalizable groups compile into.

    Example:
        >>> sorted(result.sources_by_group["demo"])
        ['meta.demo', 'meta.demo.model']
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    generation_type: GenerationType
    sources_by_group: dict[str, dict[str, str]] = Field(default_factory=dict)
    externalizable_groups: frozenset[str] = Field(default_factory=frozenset)
    external_api_package: str | None = None

    @property
    def groups(self) -> tuple[str, ...]:
        return tuple(self.sources_by_group)

    @property
    def module_count(self) -> int:
        return sum(len(modules) for modules in self.sources_by_group.values())

    def is_externalizable(self, group: str) -> bool:
        return group in self.externalizable_groups


def group_package(group: str) -> str:
    """Python package name of a group (repository names may contain '-')."""
    return group.replace("-", "_")
