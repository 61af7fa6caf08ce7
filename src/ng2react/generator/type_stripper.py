"""
Structural TypeScript -> JavaScript type stripping.

Generated modules are parsed with the tree-sitter TSX grammar and every
type-only construct is cut out by byte range: annotations, type arguments
and parameters, interfaces and type aliases, ``import type`` statements,
``as``/``satisfies`` casts, non-null assertions and optional-parameter
markers. Everything else, including carried method bodies, is left as is.
"""

import re
from typing import List, Tuple

import tree_sitter

from ..parser.ts_nodes import parse_tsx
from ..utils.logger import get_logger

logger = get_logger(__name__)

REMOVED_NODES = {"type_annotation", "type_arguments", "type_parameters", "implements_clause"}
REMOVED_DECLARATIONS = {"interface_declaration", "type_alias_declaration"}
CAST_NODES = {"as_expression", "satisfies_expression"}


class TypeStripper:
    """Removes TypeScript-only syntax from generated TS/TSX text."""

    def strip(self, text: str) -> str:
        """
        Strip types from ``text``.

        Args:
            text: TypeScript (or TSX) module text

        Returns:
            JavaScript module text
        """
        tree, source = parse_tsx(text)
        if tree.root_node.has_error:
            logger.debug("Generated module has syntax errors; stripping types best-effort")
        ranges: List[Tuple[int, int]] = []
        self._collect(tree.root_node, ranges)
        stripped = self._cut(source, ranges).decode("utf-8")
        stripped = re.sub(r"\n{3,}", "\n\n", stripped)
        return stripped.strip() + "\n"

    def _collect(self, node: tree_sitter.Node, ranges: List[Tuple[int, int]]) -> None:
        kind = node.type
        if kind in REMOVED_NODES:
            ranges.append((node.start_byte, node.end_byte))
            return
        if kind in REMOVED_DECLARATIONS:
            target = node.parent if node.parent is not None and node.parent.type == "export_statement" else node
            ranges.append((target.start_byte, target.end_byte))
            return
        if kind == "import_statement" and any(child.type == "type" for child in node.children):
            ranges.append((node.start_byte, node.end_byte))
            return
        if kind in CAST_NODES and node.named_children:
            expression = node.named_children[0]
            self._collect(expression, ranges)
            ranges.append((expression.end_byte, node.end_byte))
            return
        if kind == "non_null_expression":
            for child in node.children:
                if child.type == "!":
                    ranges.append((child.start_byte, child.end_byte))
                else:
                    self._collect(child, ranges)
            return
        if kind == "optional_parameter":
            for child in node.children:
                if child.type == "?":
                    ranges.append((child.start_byte, child.end_byte))
        for child in node.children:
            self._collect(child, ranges)

    @staticmethod
    def _cut(source: bytes, ranges: List[Tuple[int, int]]) -> bytes:
        result = bytearray()
        position = 0
        for start, end in sorted(ranges):
            if start < position:
                start = position
            if end <= start:
                continue
            result += source[position:start]
            position = end
        result += source[position:]
        return bytes(result)
