"""Graph element and source models.

Source models describe the ``*.pure.yaml`` declarations as written; element
models are the compiled, fully-qualified form held by the Graph.

Source file format:

    package: meta::demo
    elements:
      - kind: class
        name: Person
        stereotypes: [externalizable]
        extends: [meta::pure::metamodel::type::Any]
        properties:
          - {name: name, type: String, multiplicity: "1"}
      - kind: enumeration
        name: Color
        values: [RED, GREEN]
"""

from __future__ import annotations

import keyword
from collections import Counter
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Classifier of each element kind, as recorded in distributed metadata
CLASS_CLASSIFIER = "meta::pure::metamodel::type::Class"
ENUMERATION_CLASSIFIER = "meta::pure::metamodel::type::Enumeration"

# Property types that need no resolution
PRIMITIVE_TYPES = frozenset(
    {"Boolean", "Date", "DateTime", "Decimal", "Float", "Integer", "StrictDate", "String"}
)

# Stereotype marking elements exposed through the external API
EXTERNALIZABLE_STEREOTYPE = "externalizable"

PATH_SEPARATOR = "::"

IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"
PACKAGE_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*(::[A-Za-z_][A-Za-z0-9_]*)*$"

Multiplicity = Literal["1", "0..1", "*", "1..*"]


def check_identifier(name: str) -> str:
    """Reject names that cannot be used as Python identifiers in generated code.

    Args:
        name: Name already matching IDENTIFIER_PATTERN.

    Returns:
        The name, unchanged.

    Raises:
        ValueError: If the name is a Python keyword.
    """
    if keyword.iskeyword(name):
        raise ValueError(f"'{name}' is a reserved word")
    return name


def _check_unique(kind: str, names: list[str]) -> None:
    duplicates = sorted(name for name, count in Counter(names).items() if count > 1)
    if duplicates:
        raise ValueError(f"Duplicate {kind}: {', '.join(duplicates)}")


class PropertyDefinition(BaseModel):
    """A typed property of a class."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., pattern=IDENTIFIER_PATTERN)
    type: str = Field(..., min_length=1, description="Primitive name or element path")
    multiplicity: Multiplicity = Field(default="1")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_identifier(v)

    @property
    def is_many(self) -> bool:
        return self.multiplicity in ("*", "1..*")


class ClassDeclaration(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["class"]
    name: str = Field(..., pattern=IDENTIFIER_PATTERN)
    stereotypes: tuple[str, ...] = ()
    extends: tuple[str, ...] = ()
    properties: tuple[PropertyDefinition, ...] = ()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_identifier(v)

    @model_validator(mode="after")
    def validate_property_names(self) -> ClassDeclaration:
        _check_unique("property names", [p.name for p in self.properties])
        return self


class EnumerationDeclaration(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["enumeration"]
    name: str = Field(..., pattern=IDENTIFIER_PATTERN)
    stereotypes: tuple[str, ...] = ()
    values: tuple[Annotated[str, Field(pattern=IDENTIFIER_PATTERN)], ...] = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_identifier(v)

    @field_validator("values")
    @classmethod
    def validate_values(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for value in v:
            check_identifier(value)
        _check_unique("enumeration values", list(v))
        return v


Declaration = Annotated[ClassDeclaration | EnumerationDeclaration, Field(discriminator="kind")]


class SourceFile(BaseModel):
    """Schema of one ``*.pure.yaml`` source file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    package: str = Field(..., pattern=PACKAGE_PATTERN)
    elements: tuple[Declaration, ...] = ()

    @field_validator("package")
    @classmethod
    def validate_package(cls, v: str) -> str:
        for segment in v.split(PATH_SEPARATOR):
            check_identifier(segment)
        return v


class _ElementBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., pattern=PACKAGE_PATTERN)
    repository: str
    source_id: str
    stereotypes: tuple[str, ...] = ()

    @property
    def package(self) -> str:
        return self.path.rpartition(PATH_SEPARATOR)[0]

    @property
    def name(self) -> str:
        return self.path.rpartition(PATH_SEPARATOR)[2]

    @property
    def is_externalizable(self) -> bool:
        return EXTERNALIZABLE_STEREOTYPE in self.stereotypes


class ClassElement(_ElementBase):
    """A compiled class."""

    kind: Literal["class"] = "class"
    supertypes: tuple[str, ...] = ()
    properties: tuple[PropertyDefinition, ...] = ()

    @property
    def classifier(self) -> str:
        return CLASS_CLASSIFIER


class EnumerationElement(_ElementBase):
    """A compiled enumeration."""

    kind: Literal["enumeration"] = "enumeration"
    values: tuple[str, ...]

    @property
    def classifier(self) -> str:
        return ENUMERATION_CLASSIFIER


Element = Annotated[ClassElement | EnumerationElement, Field(discriminator="kind")]


def qualify(package: str, name: str) -> str:
    """Join a package and a name into an element path."""
    return f"{package}{PATH_SEPARATOR}{name}"
