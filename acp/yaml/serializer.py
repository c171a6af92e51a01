# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tree-to-text serializer for the YAML subset.

The only code path that produces document text. Output always re-parses
to the same tree: two-space indentation, object items as `- key: value`
with sibling keys aligned under the first key, and double quotes for any
scalar that would not survive as a plain value.
"""

import re
from typing import List

from acp.core.errors import UnwritableError
from acp.yaml.nodes import Document, Mapping, MappingEntry, Node, Scalar, Sequence

INDENT = 2

# characters that change meaning at the start of a plain scalar
_SPECIAL_START = set("-?:,[]{}#&*!|>'\"%@`")
_KEY_RE = re.compile(r"^[A-Za-z0-9_][^:#]*$")


def serialize(document: Document) -> str:
    """Render a document tree to text."""
    lines: List[str] = []
    _emit_mapping(document.root, 0, lines)
    lines.extend(document.trailing)
    # trailing blank lines collapse to the single final newline
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines) + "\n" if lines else ""


def format_scalar(scalar: Scalar) -> str:
    """Text of a non-null scalar, quoted when needed."""
    text = scalar.value
    if scalar.style == "'" and "\n" not in text:
        return "'" + text.replace("'", "''") + "'"
    if scalar.style == '"' or needs_quoting(text):
        escaped = (
            text.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\t", "\\t")
            .replace("\r", "\\r")
        )
        return f'"{escaped}"'
    return text


def needs_quoting(text: str) -> bool:
    """True when `text` would not read back unchanged as a plain scalar."""
    if text == "" or text != text.strip():
        return True
    if text[0] in _SPECIAL_START:
        return True
    if ": " in text or " #" in text or text.endswith(":"):
        return True
    return any(ch in text for ch in "\n\t\r")


def _comment(comment) -> str:
    return f" # {comment}" if comment else ""


def _emit_leading(leading: List[str], indent: int, lines: List[str]) -> None:
    for text in leading:
        lines.append(" " * indent + text if text else "")


def _emit_mapping(mapping: Mapping, indent: int, lines: List[str]) -> None:
    for entry in mapping:
        _emit_leading(entry.leading, indent, lines)
        _emit_entry(" " * indent, indent, entry, lines)


def _emit_entry(prefix: str, key_col: int, entry: MappingEntry, lines: List[str]) -> None:
    """Write one entry; `prefix` holds the indentation (and dash, for a first item key)."""
    if not _KEY_RE.match(entry.key) or entry.key != entry.key.strip():
        raise UnwritableError(f"Key cannot be written in this YAML subset: {entry.key!r}")

    value = entry.value
    head = f"{prefix}{entry.key}:"

    if isinstance(value, Scalar):
        if value.is_null:
            lines.append(head + _comment(value.comment or entry.comment))
        else:
            lines.append(f"{head} {format_scalar(value)}{_comment(value.comment)}")
    elif isinstance(value, Mapping):
        if not value.entries:
            lines.append(f"{head} {{}}")
        else:
            lines.append(head + _comment(entry.comment))
            _emit_mapping(value, key_col + INDENT, lines)
    elif isinstance(value, Sequence):
        if not value.items:
            lines.append(f"{head} []")
        else:
            lines.append(head + _comment(entry.comment))
            _emit_sequence(value, key_col + INDENT, lines)
    else:
        raise TypeError(f"Unknown node type: {type(value).__name__}")


def _emit_sequence(sequence: Sequence, indent: int, lines: List[str]) -> None:
    pad = " " * indent
    for item in sequence.items:
        _emit_leading(item.leading, indent, lines)
        _emit_item(pad, indent, item.value, lines)


def _emit_item(pad: str, indent: int, value: Node, lines: List[str]) -> None:
    if isinstance(value, Scalar):
        if value.is_null:
            lines.append(f"{pad}-{_comment(value.comment)}")
        else:
            lines.append(f"{pad}- {format_scalar(value)}{_comment(value.comment)}")
    elif isinstance(value, Mapping):
        if not value.entries:
            lines.append(f"{pad}- {{}}")
            return
        key_col = indent + INDENT
        first, rest = value.entries[0], value.entries[1:]
        _emit_entry(f"{pad}- ", key_col, first, lines)
        for entry in rest:
            _emit_leading(entry.leading, key_col, lines)
            _emit_entry(" " * key_col, key_col, entry, lines)
    else:
        raise UnwritableError("Nested sequences cannot be written in this YAML subset")
