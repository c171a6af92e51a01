# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
YAML Subset Reader/Writer

Reads and writes the restricted YAML used by ACP manifests and
package.yaml files without a full YAML library:
- tokenizer: indentation-aware line tokens
- parser: recursive descent into a Scalar/Mapping/Sequence tree
- serializer: the single tree-to-text writer
- document: read/write/get_array/get_nested queries on the tree
"""

from .document import YamlDocument, init_document, parse_path
from .nodes import Document, Mapping, MappingEntry, Scalar, Sequence, SequenceItem
from .parser import parse
from .serializer import serialize
from .tokenizer import Token, TokenKind, tokenize

__all__ = [
    "YamlDocument",
    "init_document",
    "parse_path",
    "Document",
    "Mapping",
    "MappingEntry",
    "Scalar",
    "Sequence",
    "SequenceItem",
    "parse",
    "serialize",
    "Token",
    "TokenKind",
    "tokenize",
]
