"""Distributed binary metadata: string ids, writer and reader."""

from __future__ import annotations

from pure_compiled.serialization.format import MetadataFormatError, UnitIndex, ValueTag
from pure_compiled.serialization.reader import MetadataObject, MetadataUnit, read_unit
from pure_compiled.serialization.string_index import (
    StringIndex,
    StringTable,
    classifier_id_to_index,
    classifier_index_to_id,
    general_id_to_index,
    general_index_to_id,
)
from pure_compiled.serialization.writer import (
    DistributedBinaryGraphSerializer,
    serialize_metadata,
)

__all__: list[str] = [
    "DistributedBinaryGraphSerializer",
    "MetadataFormatError",
    "MetadataObject",
    "MetadataUnit",
    "StringIndex",
    "StringTable",
    "UnitIndex",
    "ValueTag",
    "classifier_id_to_index",
    "classifier_index_to_id",
    "general_id_to_index",
    "general_index_to_id",
    "read_unit",
    "serialize_metadata",
]
