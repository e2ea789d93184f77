"""Generation plan: the single place the generation type is interpreted.

Metadata serialization and code generation both iterate the same units, so
the two stages cannot disagree about how output is partitioned.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pure_compiled.config import GenerationType

# Unit name used when the whole graph is one unit
MONOLITHIC_UNIT = "monolithic"


class GenerationUnit(BaseModel):
    """One output unit.

    Attributes:
        name: Unit name; the repository name in modular mode.
        repository: Repository covered by the unit, or None for the whole graph.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    repository: str | None = None


class GenerationPlan(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    generation_type: GenerationType
    units: tuple[GenerationUnit, ...]

    @property
    def is_modular(self) -> bool:
        return self.generation_type is GenerationType.MODULAR


def build_plan(generation_type: GenerationType, selected: tuple[str, ...]) -> GenerationPlan:
    """Build the units for a generation type.

    Monolithic: one unit over the whole graph. Modular: one unit per selected
    repository, in selection order.

    Example:
        >>> build_plan(GenerationType.MODULAR, ("repo-a", "repo-b")).units[0].name
        'repo-a'
    """
    if generation_type is GenerationType.MONOLITHIC:
        units = (GenerationUnit(name=MONOLITHIC_UNIT),)
    elif generation_type is GenerationType.MODULAR:
        units = tuple(GenerationUnit(name=name, repository=name) for name in selected)
    else:
        raise ValueError(f"Unhandled generation type: {generation_type}")
    return GenerationPlan(generation_type=generation_type, units=units)
