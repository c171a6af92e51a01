# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Recursive-descent parser for the YAML subset.

Builds a typed node tree from tokenizer output. Duplicate keys are
rejected here, once, while the tree is built.
"""

from typing import Dict, List, Optional

from acp.core.errors import DuplicateKeyError, ParseError
from acp.yaml.nodes import Document, Mapping, MappingEntry, Node, Scalar, Sequence, SequenceItem
from acp.yaml.tokenizer import Token, TokenKind, tokenize, unquote


def parse(text: str) -> Document:
    """
    Parse subset document text into a node tree.

    Raises:
        ParseError: Malformed document
        DuplicateKeyError: A mapping repeats a key
    """
    return Parser(tokenize(text)).parse()


class Parser:
    """Parses a token list; one instance per document."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.pending: List[str] = []

    def parse(self) -> Document:
        root = Mapping(line=1)
        tok = self._peek()

        if tok is not None:
            if tok.indent != 0:
                raise ParseError("document must start at column 0", line=tok.line)
            if tok.kind == TokenKind.ITEM:
                raise ParseError("top-level sequences are not supported", line=tok.line)
            root.line = tok.line
            self._parse_mapping_into(root, 0)

            tok = self._peek()
            if tok is not None:
                raise ParseError("unexpected indentation", line=tok.line)

        return Document(root=root, trailing=self._take_pending())

    # -- token stream --

    def _peek(self) -> Optional[Token]:
        """Next content token; comment lines are moved to `pending`."""
        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            if tok.kind != TokenKind.COMMENT:
                return tok
            self.pending.append(tok.text)
            self.pos += 1
        return None

    def _take_pending(self) -> List[str]:
        pending, self.pending = self.pending, []
        return pending

    # -- grammar --

    def _parse_mapping_into(self, mapping: Mapping, indent: int, first: Optional[Token] = None) -> None:
        seen: Dict[str, int] = {}

        if first is not None:
            self._parse_entry(first, indent, mapping, seen, leading=[])

        while True:
            tok = self._peek()
            if tok is None or tok.indent < indent:
                return
            if tok.indent > indent:
                raise ParseError("unexpected indentation", line=tok.line)
            if tok.kind == TokenKind.ITEM:
                raise ParseError("sequence item where a mapping key was expected", line=tok.line)

            self.pos += 1
            self._parse_entry(tok, indent, mapping, seen, leading=self._take_pending())

    def _parse_entry(
        self,
        tok: Token,
        indent: int,
        mapping: Mapping,
        seen: Dict[str, int],
        leading: List[str]
    ) -> None:
        if tok.key in seen:
            raise DuplicateKeyError(tok.key, line=tok.line, first_line=seen[tok.key])
        seen[tok.key] = tok.line

        entry = MappingEntry(key=tok.key, value=Scalar(), line=tok.line, leading=leading)
        if tok.value is not None:
            entry.value = self._scalar(tok)
        else:
            entry.comment = tok.comment
            entry.value = self._parse_block_value(indent, tok.line)
        mapping.entries.append(entry)

    def _parse_block_value(self, indent: int, line: int) -> Node:
        """Value of a `key:` line with nothing after the colon."""
        tok = self._peek()
        if tok is None:
            return Scalar(line=line)

        # compact form: sequence items at the same column as the key
        if tok.kind == TokenKind.ITEM and tok.indent == indent:
            return self._parse_sequence(indent)

        if tok.indent > indent:
            if tok.kind == TokenKind.ITEM:
                return self._parse_sequence(tok.indent)
            mapping = Mapping(line=tok.line)
            self._parse_mapping_into(mapping, tok.indent)
            return mapping

        return Scalar(line=line)

    def _parse_sequence(self, indent: int) -> Sequence:
        sequence = Sequence(line=self._peek().line)

        while True:
            tok = self._peek()
            if tok is None or tok.indent < indent:
                break
            if tok.indent > indent:
                raise ParseError("unexpected indentation", line=tok.line)
            if tok.kind != TokenKind.ITEM:
                break

            self.pos += 1
            leading = self._take_pending()

            if tok.key is not None:
                value: Node = Mapping(line=tok.line)
                self._parse_mapping_into(value, tok.item_key_indent, first=tok)
            elif tok.value is not None:
                value = self._scalar(tok)
            else:
                value = self._parse_bare_item(indent, tok.line)

            sequence.items.append(SequenceItem(value=value, line=tok.line, leading=leading))

        return sequence

    def _parse_bare_item(self, indent: int, line: int) -> Node:
        """Item written as a lone dash with its mapping on the following lines."""
        tok = self._peek()
        if tok is None or tok.indent <= indent:
            return Scalar(line=line)
        if tok.kind == TokenKind.ITEM:
            raise ParseError("nested sequences are not supported", line=tok.line)
        mapping = Mapping(line=tok.line)
        self._parse_mapping_into(mapping, tok.indent)
        return mapping

    @staticmethod
    def _scalar(tok: Token) -> Node:
        if tok.value == "[]":
            return Sequence(line=tok.line)
        if tok.value == "{}":
            return Mapping(line=tok.line)
        text, style = unquote(tok.value)
        return Scalar(value=text, style=style, comment=tok.comment, line=tok.line)
