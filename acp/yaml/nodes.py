# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Node tree for the YAML subset.

A document is a tree of Scalar, Mapping and Sequence nodes. Comment and
blank lines ride along on the entries they precede so the serializer can
put them back where they were.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union


@dataclass
class Scalar:
    """Leaf value. `value` is None for a null (`key:` with nothing below)."""
    value: Optional[str] = None
    style: Optional[str] = None      # '"', "'" or None (plain)
    comment: Optional[str] = None    # inline comment
    line: Optional[int] = None

    @property
    def is_null(self) -> bool:
        return self.value is None


@dataclass
class MappingEntry:
    """One `key: value` pair."""
    key: str
    value: "Node"
    line: Optional[int] = None
    comment: Optional[str] = None    # inline comment on a `key:` line that opens a block
    leading: List[str] = field(default_factory=list)


@dataclass
class Mapping:
    """Ordered mapping of unique keys."""
    entries: List[MappingEntry] = field(default_factory=list)
    line: Optional[int] = None

    def get(self, key: str) -> Optional["Node"]:
        entry = self.entry(key)
        return entry.value if entry else None

    def entry(self, key: str) -> Optional[MappingEntry]:
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def set(self, key: str, value: "Node") -> None:
        """Replace the value of `key` in place, or append a new entry."""
        entry = self.entry(key)
        if entry:
            entry.value = value
        else:
            self.entries.append(MappingEntry(key=key, value=value))

    def remove(self, key: str) -> bool:
        for i, entry in enumerate(self.entries):
            if entry.key == key:
                del self.entries[i]
                return True
        return False

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]

    def __contains__(self, key: str) -> bool:
        return self.entry(key) is not None

    def __iter__(self) -> Iterator[MappingEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class SequenceItem:
    value: "Node"
    line: Optional[int] = None
    leading: List[str] = field(default_factory=list)


@dataclass
class Sequence:
    """Dash-introduced list of scalars or small mappings."""
    items: List[SequenceItem] = field(default_factory=list)
    line: Optional[int] = None

    @property
    def is_object_array(self) -> bool:
        return any(isinstance(item.value, Mapping) for item in self.items)

    def values(self) -> List["Node"]:
        return [item.value for item in self.items]

    def append(self, value: "Node") -> None:
        self.items.append(SequenceItem(value=value))

    def __iter__(self) -> Iterator["Node"]:
        return iter(self.values())

    def __len__(self) -> int:
        return len(self.items)


Node = Union[Scalar, Mapping, Sequence]


@dataclass
class Document:
    """Parsed document: a root mapping plus trailing comment lines."""
    root: Mapping = field(default_factory=Mapping)
    trailing: List[str] = field(default_factory=list)


def to_python(node: Node) -> Union[None, str, list, dict]:
    """Plain Python view of a node (str/None leaves, lists, dicts)."""
    if isinstance(node, Scalar):
        return node.value
    if isinstance(node, Sequence):
        return [to_python(value) for value in node]
    result: Dict[str, object] = {}
    for entry in node:
        result[entry.key] = to_python(entry.value)
    return result


def from_python(value) -> Node:
    """Build a node tree from str/None/int/list/dict values."""
    if isinstance(value, dict):
        mapping = Mapping()
        for key, item in value.items():
            mapping.entries.append(MappingEntry(key=str(key), value=from_python(item)))
        return mapping
    if isinstance(value, (list, tuple)):
        sequence = Sequence()
        for item in value:
            sequence.append(from_python(item))
        return sequence
    if value is None:
        return Scalar()
    if isinstance(value, bool):
        return Scalar("true" if value else "false")
    return Scalar(str(value))
