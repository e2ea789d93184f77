"""Distributed binary metadata writer.

Each unit is staged in a temporary directory inside the destination and
moved into place only once every file is complete. In modular mode a failure
stops the loop; units already moved into place are left untouched.
"""

from __future__ import annotations

import io
import os
import tempfile
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

from pure_compiled.errors import MetadataSerializationError
from pure_compiled.events import PipelineLog
from pure_compiled.graph.graph import Graph, GraphElement
from pure_compiled.graph.models import PRIMITIVE_TYPES, ClassElement
from pure_compiled.plan import GenerationPlan, GenerationUnit
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
    UnitIndex,
    ValueTag,
)
from pure_compiled.serialization.string_index import StringIndex

METADATA_STEP = "writing distributed metadata"

PropertyValue = tuple[ValueTag, str | int | bool]


def element_properties(element: GraphElement) -> list[tuple[str, list[PropertyValue]]]:
    """Flatten an element into ordered (name, values) pairs."""
    properties: list[tuple[str, list[PropertyValue]]] = []
    if element.stereotypes:
        properties.append(("stereotypes", [(ValueTag.STRING, s) for s in element.stereotypes]))

    if isinstance(element, ClassElement):
        if element.supertypes:
            properties.append(
                ("supertypes", [(ValueTag.REFERENCE, s) for s in element.supertypes])
            )
        for prop in element.properties:
            type_tag = ValueTag.STRING if prop.type in PRIMITIVE_TYPES else ValueTag.REFERENCE
            properties.append(
                (
                    f"properties.{prop.name}",
                    [(type_tag, prop.type), (ValueTag.STRING, prop.multiplicity)],
                )
            )
    else:
        properties.append(("values", [(ValueTag.STRING, v) for v in element.values]))
    return properties


class DistributedBinaryGraphSerializer:
    """Serialize a graph, or one repository of it, as one metadata unit.

    Example:
        >>> unit = GenerationUnit(name="demo", repository="demo")
        >>> serializer = DistributedBinaryGraphSerializer(graph, unit)
        >>> serializer.serialize_to_directory(Path("target/metadata-distributed/demo"))
    """

    def __init__(self, graph: Graph, unit: GenerationUnit) -> None:
        if not graph.is_ready:
            raise ValueError(f"Graph is not ready (state: {graph.state.value})")
        self.graph = graph
        self.unit = unit

    def serialize(self) -> dict[str, bytes]:
        """Return the unit's files as name to content."""
        elements = list(self.graph.elements(self.unit.repository))
        index = StringIndex()
        objects = self._write_objects(elements, index)
        strings = self._write_strings(index)

        unit_index = UnitIndex(
            format_version=FORMAT_VERSION,
            unit=self.unit.name,
            repository=self.unit.repository,
            object_count=len(elements),
            classifier_count=len(index.classifier_ids),
            string_count=len(index.strings),
            classifiers=dict(sorted(Counter(e.classifier for e in elements).items())),
        )
        return {
            STRINGS_FILE: strings,
            OBJECTS_FILE: objects,
            INDEX_FILE: unit_index.model_dump_json(indent=2).encode("utf-8"),
        }

    def serialize_to_directory(
        self,
        unit_directory: Path,
        *,
        staging_root: Path | None = None,
    ) -> Path:
        """Write the unit into ``unit_directory`` via a staging directory.

        Args:
            unit_directory: Directory receiving the unit files.
            staging_root: Existing directory to stage in; defaults to the
                parent of ``unit_directory``.
        """
        files = self.serialize()
        staging_root = staging_root or unit_directory.parent
        staging_root.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(dir=staging_root, prefix=".metadata-staging-") as staging:
            staging_dir = Path(staging)
            for name, content in files.items():
                (staging_dir / name).write_bytes(content)
            unit_directory.mkdir(parents=True, exist_ok=True)
            # index.json is moved last: a unit with an index is complete
            for name in sorted(files, key=lambda n: n == INDEX_FILE):
                os.replace(staging_dir / name, unit_directory / name)
        return unit_directory

    def _write_objects(self, elements: Iterable[GraphElement], index: StringIndex) -> bytes:
        buffer = io.BytesIO()
        elements = list(elements)
        buffer.write(OBJECTS_MAGIC)
        buffer.write(U16.pack(FORMAT_VERSION))
        buffer.write(U32.pack(len(elements)))
        for element in elements:
            buffer.write(
                OBJECT_HEADER.pack(
                    index.classifier_id(element.classifier),
                    index.string_id(element.path),
                    index.string_id(element.repository),
                    index.string_id(element.source_id),
                )
            )
            properties = element_properties(element)
            buffer.write(U32.pack(len(properties)))
            for name, values in properties:
                buffer.write(I32.pack(index.string_id(name)))
                buffer.write(U32.pack(len(values)))
                for tag, value in values:
                    buffer.write(U8.pack(tag))
                    buffer.write(self._encode_value(tag, value, index))
        return buffer.getvalue()

    @staticmethod
    def _encode_value(tag: ValueTag, value: str | int | bool, index: StringIndex) -> bytes:
        if tag is ValueTag.BOOLEAN:
            return U8.pack(1 if value else 0)
        if tag is ValueTag.INTEGER:
            return I64.pack(int(value))
        return I32.pack(index.string_id(str(value)))

    @staticmethod
    def _write_strings(index: StringIndex) -> bytes:
        buffer = io.BytesIO()
        buffer.write(STRINGS_MAGIC)
        buffer.write(U16.pack(FORMAT_VERSION))
        for pool in (index.classifier_ids, index.strings):
            buffer.write(U32.pack(len(pool)))
            for value in pool:
                encoded = value.encode("utf-8")
                buffer.write(U32.pack(len(encoded)))
                buffer.write(encoded)
        return buffer.getvalue()


def serialize_metadata(
    graph: Graph,
    plan: GenerationPlan,
    destination: Path,
    log: PipelineLog,
) -> list[Path]:
    """Write distributed metadata for every unit of the plan.

    Monolithic units are written directly into ``destination``; modular units
    into ``destination/<repository>``.

    Raises:
        MetadataSerializationError: On the first unit that fails.
    """
    start = log.begin_step(METADATA_STEP)
    written: list[Path] = []
    for unit in plan.units:
        unit_directory = destination / unit.repository if unit.repository else destination
        unit_step = f"{METADATA_STEP} for {unit.name}"
        unit_start = log.begin_step(unit_step) if plan.is_modular else None
        try:
            serializer = DistributedBinaryGraphSerializer(graph, unit)
            written.append(
                serializer.serialize_to_directory(unit_directory, staging_root=destination)
            )
        except (OSError, ValueError) as e:
            raise MetadataSerializationError(unit.name, internal_details=str(e)) from e
        if unit_start is not None:
            log.complete_step(unit_step, unit_start)
    log.complete_step(METADATA_STEP, start)
    return written
