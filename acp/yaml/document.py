# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Query and mutation API over a parsed subset document.

Paths use dotted keys with optional indexes: `version`,
`contents.patterns`, `contents.commands[0].name`.
"""

import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from acp.core.errors import MissingKeyError, ParseError
from acp.utils import atomic_write_text
from acp.yaml.nodes import Document, Mapping, Node, Scalar, Sequence
from acp.yaml.parser import parse
from acp.yaml.serializer import serialize
from acp.yaml.tokenizer import unquote

_SEGMENT_RE = re.compile(r"^(?P<key>[^\[\]]+)(?:\[(?P<index>\d+)\])?$")

PathSegment = Tuple[str, Optional[int]]


def parse_path(path: str) -> List[PathSegment]:
    """Split `a.b[0].field` into [('a', None), ('b', 0), ('field', None)]."""
    if not path:
        raise ValueError("Empty key path")

    segments = []
    for part in path.split("."):
        match = _SEGMENT_RE.match(part)
        if not match:
            raise ValueError(f"Invalid key path: {path}")
        index = match.group("index")
        segments.append((match.group("key"), int(index) if index is not None else None))
    return segments


class YamlDocument:
    """A subset document held as a node tree."""

    def __init__(self, document: Optional[Document] = None, path: Optional[Path] = None):
        self.document = document or Document()
        self.path = path

    @classmethod
    def from_text(cls, text: str) -> "YamlDocument":
        return cls(parse(text))

    @classmethod
    def load(cls, path: Union[str, Path]) -> "YamlDocument":
        """
        Parse a document from disk.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ParseError: If the document is malformed or not UTF-8
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"{path}: not valid UTF-8 (byte {e.start})")
        return cls(parse(text), path=path)

    @classmethod
    def empty(cls, header: str = "YAML file") -> "YamlDocument":
        return cls(Document(trailing=[f"# {header}"]))

    @property
    def root(self) -> Mapping:
        return self.document.root

    # -- queries --

    def get_node(self, path: str) -> Optional[Node]:
        """Node at `path`, or None if any segment is missing."""
        node: Optional[Node] = self.root
        for key, index in parse_path(path):
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
            if index is not None:
                if not isinstance(node, Sequence) or index >= len(node):
                    return None
                node = node.items[index].value
            if node is None:
                return None
        return node

    def has_key(self, path: str) -> bool:
        node = self.get_node(path)
        return node is not None and not (isinstance(node, Scalar) and node.is_null)

    def read(self, key: str) -> Optional[str]:
        """
        Scalar value at `key`.

        Returns:
            The value, or None for an absent, null or non-scalar key
        """
        node = self.get_node(key)
        if isinstance(node, Scalar):
            return node.value
        return None

    def get_array(self, key: str) -> Union[List[str], int]:
        """
        Values of the array at `key`.

        Returns:
            Scalar values in document order for a scalar array, or the
            number of entries for an array of objects. An absent key or a
            non-array value yields an empty list.
        """
        node = self.get_node(key)
        if not isinstance(node, Sequence):
            return []
        if node.is_object_array:
            return len(node)
        return [value.value if value.value is not None else "" for value in node]

    def get_objects(self, key: str) -> List[Mapping]:
        """Object entries of the array at `key`; scalar entries are skipped."""
        node = self.get_node(key)
        if not isinstance(node, Sequence):
            return []
        return [value for value in node if isinstance(value, Mapping)]

    def get_nested(self, path: str) -> Optional[str]:
        """Scalar at an indexed path such as `contents.commands[0].name`."""
        return self.read(path)

    # -- mutation --

    def write(self, key: str, value: str) -> None:
        """
        Replace the scalar at `key`, keeping its inline comment.

        A value wrapped in quotes is written quoted.

        Raises:
            MissingKeyError: If `key` does not exist
            ParseError: If `key` holds a mapping or sequence
        """
        segments = parse_path(key)
        parent_path = ".".join(_format_segment(s) for s in segments[:-1])
        parent = self.get_node(parent_path) if parent_path else self.root
        last_key, last_index = segments[-1]

        if not isinstance(parent, Mapping) or last_key not in parent:
            raise MissingKeyError(key)

        entry = parent.entry(last_key)
        target = entry.value
        if last_index is not None:
            if not isinstance(target, Sequence) or last_index >= len(target):
                raise MissingKeyError(key)
            item = target.items[last_index]
            if not isinstance(item.value, Scalar):
                raise ParseError(f"'{key}' is not a scalar")
            item.value = _replacement(item.value, value)
            return

        if not isinstance(target, Scalar):
            raise ParseError(f"'{key}' is not a scalar")
        entry.value = _replacement(target, value)

    def remove(self, key: str) -> bool:
        return self.root.remove(key)

    # -- output --

    def to_text(self) -> str:
        return serialize(self.document)

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the document atomically to `path` (or where it was loaded from)."""
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No path to save document to")
        atomic_write_text(target, self.to_text())
        self.path = target
        return target


def _format_segment(segment: PathSegment) -> str:
    key, index = segment
    return f"{key}[{index}]" if index is not None else key


def _replacement(old: Scalar, value: str) -> Scalar:
    text, style = unquote(value)
    return Scalar(value=text, style=style, comment=old.comment, line=old.line)


def init_document(path: Union[str, Path], header: str = "YAML file") -> YamlDocument:
    """Create an empty document on disk with a header comment."""
    document = YamlDocument.empty(header)
    document.save(path)
    return document
