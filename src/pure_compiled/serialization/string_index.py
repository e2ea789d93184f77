"""Signed string ids shared by two string pools.

Distributed metadata references strings through a single signed integer:

- classifier-id pool: index ``i`` is stored as ``-i - 1`` (always negative)
- general pool: index ``i`` is stored as ``i + 1`` (always positive)

Zero is never produced. Pool membership is carried by the sign alone, so a
reader must decode each field with the pool the format says it holds.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


def classifier_index_to_id(index: int) -> int:
    """Encode a classifier-id pool index."""
    _check_index(index)
    return -index - 1


def classifier_id_to_index(string_id: int) -> int:
    """Decode an id produced by :func:`classifier_index_to_id`."""
    if string_id >= 0:
        raise ValueError(f"Not a classifier id: {string_id}")
    return -string_id - 1


def general_index_to_id(index: int) -> int:
    """Encode a general string pool index."""
    _check_index(index)
    return index + 1


def general_id_to_index(string_id: int) -> int:
    """Decode an id produced by :func:`general_index_to_id`."""
    if string_id <= 0:
        raise ValueError(f"Not a general string id: {string_id}")
    return string_id - 1


def _check_index(index: int) -> None:
    if index < 0:
        raise ValueError(f"String pool index must be non-negative: {index}")


class StringIndex:
    """Interns strings into the two pools while a unit is being written.

    Pools are filled in first-use order, so writing the same objects in the
    same order always yields the same ids.

    Example:
        >>> index = StringIndex()
        >>> index.classifier_id("meta::pure::metamodel::type::Class")
        -1
        >>> index.string_id("name")
        1
    """

    def __init__(self) -> None:
        self._classifiers: dict[str, int] = {}
        self._strings: dict[str, int] = {}

    def classifier_id(self, classifier: str) -> int:
        index = self._classifiers.setdefault(classifier, len(self._classifiers))
        return classifier_index_to_id(index)

    def string_id(self, value: str) -> int:
        index = self._strings.setdefault(value, len(self._strings))
        return general_index_to_id(index)

    @property
    def classifier_ids(self) -> tuple[str, ...]:
        return tuple(self._classifiers)

    @property
    def strings(self) -> tuple[str, ...]:
        return tuple(self._strings)


class StringTable:
    """Resolves signed ids back to strings for a loaded unit."""

    def __init__(self, classifier_ids: Iterable[str], strings: Iterable[str]) -> None:
        self._classifiers: Sequence[str] = tuple(classifier_ids)
        self._strings: Sequence[str] = tuple(strings)

    def classifier(self, string_id: int) -> str:
        index = classifier_id_to_index(string_id)
        try:
            return self._classifiers[index]
        except IndexError:
            raise ValueError(f"Unknown classifier id: {string_id}") from None

    def string(self, string_id: int) -> str:
        index = general_id_to_index(string_id)
        try:
            return self._strings[index]
        except IndexError:
            raise ValueError(f"Unknown string id: {string_id}") from None

    @property
    def classifier_ids(self) -> tuple[str, ...]:
        return tuple(self._classifiers)

    @property
    def strings(self) -> tuple[str, ...]:
        return tuple(self._strings)
