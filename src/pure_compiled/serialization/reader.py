"""Distributed binary metadata reader.

Loads one unit directory on its own: every id in a unit resolves against
that unit's string pools.
"""

from __future__ import annotations

import struct
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from pure_compiled.serialization.format import (
    FORMAT_VERSION,
    I32,
    I64,
    INDEX_FILE,
    OBJECT_HEADER,
    OBJECTS_FILE,
    OBJECTS_MAGIC,
    STRINGS_FILE,
    STRINGS_MAGIC,
    U8,
    U16,
    U32,
    MetadataFormatError,
    UnitIndex,
    ValueTag,
)
from pure_compiled.serialization.string_index import StringTable


class MetadataValue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    tag: ValueTag
    value: bool | int | str


class MetadataObject(BaseModel):
    """One element as stored in a unit."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    classifier: str
    path: str
    repository: str
    source_id: str
    properties: dict[str, tuple[MetadataValue, ...]]

    def values(self, name: str) -> list[bool | int | str]:
        return [v.value for v in self.properties.get(name, ())]


class MetadataUnit(BaseModel):
    """A fully loaded unit."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    index: UnitIndex
    classifier_ids: tuple[str, ...]
    strings: tuple[str, ...]
    objects: tuple[MetadataObject, ...]

    def get(self, path: str) -> MetadataObject | None:
        return next((o for o in self.objects if o.path == path), None)


class _Buffer:
    def __init__(self, data: bytes, name: str) -> None:
        self._data = data
        self._offset = 0
        self._name = name

    def read(self, fmt: struct.Struct) -> int:
        try:
            (value,) = fmt.unpack_from(self._data, self._offset)
        except struct.error as e:
            raise MetadataFormatError(f"{self._name}: truncated at offset {self._offset}") from e
        self._offset += fmt.size
        return value

    def read_bytes(self, length: int) -> bytes:
        end = self._offset + length
        if end > len(self._data):
            raise MetadataFormatError(f"{self._name}: truncated at offset {self._offset}")
        chunk = self._data[self._offset : end]
        self._offset = end
        return chunk

    def expect_header(self, magic: bytes) -> None:
        if self.read_bytes(len(magic)) != magic:
            raise MetadataFormatError(f"{self._name}: bad magic")
        version = self.read(U16)
        if version != FORMAT_VERSION:
            raise MetadataFormatError(f"{self._name}: unsupported format version {version}")

    def expect_end(self) -> None:
        if self._offset != len(self._data):
            trailing = len(self._data) - self._offset
            raise MetadataFormatError(f"{self._name}: {trailing} trailing bytes")


def _read_strings(data: bytes) -> StringTable:
    buffer = _Buffer(data, STRINGS_FILE)
    buffer.expect_header(STRINGS_MAGIC)
    pools: list[list[str]] = []
    for _ in range(2):
        count = buffer.read(U32)
        pools.append([buffer.read_bytes(buffer.read(U32)).decode("utf-8") for _ in range(count)])
    buffer.expect_end()
    return StringTable(pools[0], pools[1])


def _read_value(buffer: _Buffer, table: StringTable) -> MetadataValue:
    try:
        tag = ValueTag(buffer.read(U8))
    except ValueError as e:
        raise MetadataFormatError(f"{OBJECTS_FILE}: {e}") from e
    if tag is ValueTag.BOOLEAN:
        return MetadataValue(tag=tag, value=buffer.read(U8) != 0)
    if tag is ValueTag.INTEGER:
        return MetadataValue(tag=tag, value=buffer.read(I64))
    return MetadataValue(tag=tag, value=table.string(buffer.read(I32)))


def _read_objects(data: bytes, table: StringTable) -> list[MetadataObject]:
    buffer = _Buffer(data, OBJECTS_FILE)
    buffer.expect_header(OBJECTS_MAGIC)
    objects: list[MetadataObject] = []
    for _ in range(buffer.read(U32)):
        classifier_id, path_id, repository_id, source_id = OBJECT_HEADER.unpack(
            buffer.read_bytes(OBJECT_HEADER.size)
        )
        properties: dict[str, tuple[MetadataValue, ...]] = {}
        for _ in range(buffer.read(U32)):
            name = table.string(buffer.read(I32))
            properties[name] = tuple(_read_value(buffer, table) for _ in range(buffer.read(U32)))
        objects.append(
            MetadataObject(
                classifier=table.classifier(classifier_id),
                path=table.string(path_id),
                repository=table.string(repository_id),
                source_id=table.string(source_id),
                properties=properties,
            )
        )
    buffer.expect_end()
    return objects


def read_unit(unit_directory: Path) -> MetadataUnit:
    """Load a unit written by the distributed metadata writer.

    Raises:
        MetadataFormatError: If any file is missing or malformed.
    """
    try:
        index = UnitIndex.model_validate_json((unit_directory / INDEX_FILE).read_bytes())
        strings_data = (unit_directory / STRINGS_FILE).read_bytes()
        objects_data = (unit_directory / OBJECTS_FILE).read_bytes()
    except FileNotFoundError as e:
        raise MetadataFormatError(f"Incomplete metadata unit: {e.filename}") from e
    except PydanticValidationError as e:
        raise MetadataFormatError(f"{INDEX_FILE}: {e}") from e

    if index.format_version != FORMAT_VERSION:
        raise MetadataFormatError(f"{INDEX_FILE}: unsupported format version")

    try:
        table = _read_strings(strings_data)
        objects = _read_objects(objects_data, table)
    except MetadataFormatError:
        raise
    except ValueError as e:
        raise MetadataFormatError(f"Corrupt metadata unit {unit_directory}: {e}") from e

    if len(objects) != index.object_count:
        raise MetadataFormatError(
            f"{INDEX_FILE}: expected {index.object_count} objects, found {len(objects)}"
        )
    return MetadataUnit(
        index=index,
        classifier_ids=table.classifier_ids,
        strings=table.strings,
        objects=tuple(objects),
    )
