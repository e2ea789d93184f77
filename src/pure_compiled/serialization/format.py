"""Distributed metadata file format.

A unit directory holds three files:

- ``strings.bin``: magic ``PMSP``, u16 version, then the classifier-id pool
  and the general pool, each as u32 count followed by (u32 length, UTF-8)
- ``objects.bin``: magic ``PMOB``, u16 version, u32 object count; per
  object: i32 classifier id, i32 path id, i32 repository id, i32 source id,
  u32 property count, and per property: i32 name id, u32 value count, and per
  value a u8 tag plus payload (i32 string id, i64 integer, u8 boolean, or
  i32 path id for references)
- ``index.json``: unit summary, written last

All integers are big-endian.
"""

from __future__ import annotations

import struct
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

FORMAT_VERSION = 1

STRINGS_FILE = "strings.bin"
OBJECTS_FILE = "objects.bin"
INDEX_FILE = "index.json"

STRINGS_MAGIC = b"PMSP"
OBJECTS_MAGIC = b"PMOB"

U8 = struct.Struct(">B")
U16 = struct.Struct(">H")
U32 = struct.Struct(">I")
I32 = struct.Struct(">i")
I64 = struct.Struct(">q")
OBJECT_HEADER = struct.Struct(">iiii")


class ValueTag(IntEnum):
    """Type tag of a property value."""

    STRING = 1
    INTEGER = 2
    BOOLEAN = 3
    REFERENCE = 4


class MetadataFormatError(ValueError):
    """Raised when a unit's files do not match the format."""


class UnitIndex(BaseModel):
    """Contents of ``index.json``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    format_version: int = Field(..., ge=1)
    unit: str
    repository: str | None = None
    object_count: int = Field(..., ge=0)
    classifier_count: int = Field(..., ge=0)
    string_count: int = Field(..., ge=0)
    classifiers: dict[str, int] = Field(
        default_factory=dict,
        description="Object count per classifier",
    )
