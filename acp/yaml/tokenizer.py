# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Line tokenizer for the YAML subset.

Turns document text into one indentation-aware token per line. The
parser never looks at raw text again, so every lexical rule of the
subset lives here: comment stripping, quoting, and the rejection of
YAML features the subset does not support.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from acp.core.errors import ParseError


class TokenKind(str, Enum):
    """Kind of a tokenized line"""
    KEY = "key"          # key:  /  key: value
    ITEM = "item"        # - value  /  - key: value  /  -
    COMMENT = "comment"  # full-line comment or blank line


@dataclass
class Token:
    """One meaningful line of a subset document."""
    kind: TokenKind
    indent: int
    line: int
    key: Optional[str] = None
    value: Optional[str] = None        # raw value text, quotes still attached
    comment: Optional[str] = None      # inline comment, without the '#'
    text: str = ""                     # COMMENT tokens: stripped line text
    item_offset: int = 0               # ITEM tokens: column of content after "- "

    @property
    def item_key_indent(self) -> int:
        """Column an object item's mapping starts at."""
        return self.indent + self.item_offset


# key must start with a word char; value (if any) is separated by whitespace
_KEY_RE = re.compile(r"^(?P<key>[A-Za-z0-9_][^:#]*?)\s*:(?:[ \t]+(?P<rest>.*))?$")
_ITEM_RE = re.compile(r"^-(?P<gap>[ \t]+|$)(?P<rest>.*)$")
_DOC_MARKER = "---"


def tokenize(text: str) -> List[Token]:
    """
    Tokenize subset document text.

    Args:
        text: Document text

    Returns:
        Tokens in document order, one per line

    Raises:
        ParseError: On tabs in indentation or unsupported YAML features
    """
    tokens: List[Token] = []
    seen_marker = False
    seen_content = False

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip()
        stripped = line.lstrip(" ")
        indent = len(line) - len(stripped)

        if not stripped or stripped.startswith("#"):
            tokens.append(Token(TokenKind.COMMENT, indent=indent, line=line_no, text=stripped))
            continue

        if stripped.startswith("\t"):
            raise ParseError("tabs are not allowed in indentation", line=line_no)

        if stripped == _DOC_MARKER and indent == 0:
            if seen_marker or seen_content:
                raise ParseError("multiple documents are not supported", line=line_no)
            seen_marker = True
            tokens.append(Token(TokenKind.COMMENT, indent=0, line=line_no, text=stripped))
            continue

        seen_content = True
        tokens.append(_tokenize_content(stripped, indent, line_no))

    return tokens


def _tokenize_content(stripped: str, indent: int, line_no: int) -> Token:
    item = _ITEM_RE.match(stripped)
    if item:
        rest = item.group("rest")
        offset = 1 + len(item.group("gap"))
        if rest.startswith("- ") or rest == "-":
            raise ParseError("nested sequences are not supported", line=line_no)
        if not rest:
            return Token(TokenKind.ITEM, indent=indent, line=line_no, item_offset=2)

        key, value, comment = _split_key_value(rest, line_no)
        if key is not None:
            return Token(
                TokenKind.ITEM, indent=indent, line=line_no, key=key,
                value=value, comment=comment, item_offset=offset
            )
        value, comment = split_inline_comment(rest, line_no)
        _reject_unsupported(value, line_no)
        return Token(
            TokenKind.ITEM, indent=indent, line=line_no,
            value=value, comment=comment, item_offset=offset
        )

    key, value, comment = _split_key_value(stripped, line_no)
    if key is None:
        raise ParseError(f"expected 'key: value' or '- item', got '{stripped}'", line=line_no)
    return Token(TokenKind.KEY, indent=indent, line=line_no, key=key, value=value, comment=comment)


def _split_key_value(text: str, line_no: int) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Split `key: value # comment`; key is None when text is not a mapping entry."""
    if text[0] in "\"'":
        # quoted scalar item, never a key in this subset
        return None, None, None

    match = _KEY_RE.match(text)
    if not match:
        return None, None, None

    key = match.group("key").rstrip()
    rest = match.group("rest")
    if rest is None:
        return key, None, None

    value, comment = split_inline_comment(rest, line_no)
    _reject_unsupported(value, line_no)
    return key, value, comment


def split_inline_comment(text: str, line_no: int) -> Tuple[Optional[str], Optional[str]]:
    """
    Strip an inline comment from a value.

    A quote opens a quoted scalar only as the first character of the
    value; inside a plain scalar it is an ordinary character. A '#' starts
    a comment only outside quotes and when preceded by whitespace (or at
    the start of the value).

    Returns:
        (value or None if empty, comment text or None)
    """
    start = len(text) - len(text.lstrip())
    quote = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\" and quote == '"':
                i += 2
                continue
            if ch == quote:
                if quote == "'" and text[i + 1:i + 2] == "'":
                    i += 2
                    continue
                quote = None
        elif ch in "\"'" and i == start:
            quote = ch
        elif ch == "#" and (i == 0 or text[i - 1] in " \t"):
            value = text[:i].rstrip()
            return (value or None), text[i + 1:].strip()
        i += 1

    if quote:
        raise ParseError("unterminated quoted string", line=line_no)

    value = text.strip()
    return (value or None), None


def _reject_unsupported(value: Optional[str], line_no: int) -> None:
    if value is None:
        return
    if value in ("|", ">") or re.match(r"^[|>][+-]?\d*$", value):
        raise ParseError("block scalars are not supported", line=line_no)
    if value[0] in "[{" and value not in ("[]", "{}"):
        raise ParseError("flow collections are not supported", line=line_no)
    if value[0] in "&*!":
        raise ParseError("anchors, aliases and tags are not supported", line=line_no)


def unquote(value: str) -> Tuple[str, Optional[str]]:
    """
    Resolve a raw scalar.

    Returns:
        (text, style) where style is '"', "'" or None for plain scalars
    """
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _unescape_double(value[1:-1]), '"'
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'"), "'"
    return value, None


_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\", "0": "\0", "r": "\r"}


def _unescape_double(body: str) -> str:
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(_ESCAPES.get(body[i + 1], body[i + 1]))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)
