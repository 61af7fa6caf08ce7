"""
Parser for Angular template markup.

Produces an ordered tree of template nodes. Binding syntax is classified at
parse time; two-way bindings are kept as a single node so the original markup
can be reproduced, and are split into property + event halves by the IR
builder.
"""

import bisect
import re
from typing import List, Optional

from ..errors import DuplicateStructuralDirectiveError, MalformedTemplateError
from ..models import (
    Attribute,
    AttributeDirective,
    Container,
    ElementNode,
    EventBinding,
    Interpolation,
    Position,
    PropertyBinding,
    StructuralDirective,
    TemplateNode,
    TemplateRefVar,
    TextNode,
    TwoWayBinding,
)
from .expressions import find_unbalanced, has_pipes, parse_bound_value, parse_microsyntax
from .parser_interface import ParserInterface
from ..utils.logger import get_logger

logger = get_logger(__name__)

VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}
CONTAINER_TAGS = {"ng-container", "ng-template", "ng-content"}
BUILTIN_ATTRIBUTE_DIRECTIVES = {"ngClass", "ngStyle"}

_TAG_NAME_RE = re.compile(r"[a-zA-Z][\w:.-]*")
_ATTR_NAME_RE = re.compile(r"[^\s=>/\"']+")
_UNQUOTED_VALUE_RE = re.compile(r"[^\s>\"'`=<]+")
_CLOSE_TAG_RE = re.compile(r"</\s*([a-zA-Z][\w:.-]*)\s*>")
_WHITESPACE_RE = re.compile(r"\s+")
_CLOSE_TAG_END_RE = re.compile(r"</\s*[a-zA-Z][\w:.-]*\s*>$")


def interpolation_end(text: str, index: int) -> int:
    """Index of the ``}}`` closing an interpolation whose body starts at ``index``, or -1."""
    quote = None
    while index < len(text):
        ch = text[index]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif text.startswith("}}", index):
            return index
        index += 1
    return -1


def _template_literal_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


class _Structural:
    """A ``*name`` attribute awaiting its host element."""

    def __init__(self, name: str, value: str, position: Position):
        self.name = name
        self.value = value
        self.position = position


class TemplateParser(ParserInterface):
    """Parses template text into an ordered list of template nodes."""

    def parse(self, source_code: str) -> List[TemplateNode]:
        self._text = source_code or ""
        self._pos = 0
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(self._text) if ch == "\n"]

        if not self._text.strip():
            return []

        nodes = self._parse_children(None, None)
        logger.debug(f"Parsed template into {len(nodes)} top-level node(s)")
        return nodes

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------
    def _position(self, offset: Optional[int] = None) -> Position:
        offset = self._pos if offset is None else offset
        line_index = bisect.bisect_right(self._line_starts, offset) - 1
        return Position(line_index + 1, offset - self._line_starts[line_index] + 1, offset)

    def _error(self, message: str, offset: int, attribute: Optional[str] = None) -> MalformedTemplateError:
        position = self._position(offset)
        return MalformedTemplateError(message, attribute=attribute, line=position.line, column=position.column)

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------
    def _parse_children(self, parent_tag: Optional[str], parent_start: Optional[int]) -> List[TemplateNode]:
        text = self._text
        nodes: List[TemplateNode] = []

        while self._pos < len(text):
            if text.startswith("<!--", self._pos):
                end = text.find("-->", self._pos + 4)
                if end < 0:
                    raise self._error("Unterminated comment", self._pos)
                self._pos = end + 3
                continue

            if text.startswith("</", self._pos):
                match = _CLOSE_TAG_RE.match(text, self._pos)
                if not match:
                    raise self._error("Malformed closing tag", self._pos)
                tag = match.group(1)
                if parent_tag is None:
                    raise self._error(f"Unexpected closing tag </{tag}>", self._pos)
                if tag.lower() != parent_tag.lower():
                    raise self._error(
                        f"Unexpected closing tag </{tag}>, expected </{parent_tag}>", self._pos
                    )
                self._pos = match.end()
                return nodes

            if text[self._pos] == "<" and text[self._pos + 1:self._pos + 2].isalpha():
                nodes.append(self._parse_element())
                continue

            nodes.extend(self._parse_text())

        if parent_tag is not None:
            raise self._error(f"Unclosed element <{parent_tag}>", parent_start)
        return nodes

    def _parse_text(self) -> List[TemplateNode]:
        """Read text and ``{{ }}`` interpolations up to the next tag."""
        text = self._text
        nodes: List[TemplateNode] = []
        chunk_start = self._pos

        while self._pos < len(text):
            if text.startswith("{{", self._pos):
                self._flush_text(nodes, chunk_start, self._pos)
                nodes.append(self._parse_interpolation())
                chunk_start = self._pos
                continue
            if text[self._pos] == "<" and (
                text[self._pos + 1:self._pos + 2].isalpha()
                or text.startswith("</", self._pos)
                or text.startswith("<!--", self._pos)
            ):
                break
            self._pos += 1

        self._flush_text(nodes, chunk_start, self._pos)
        return nodes

    def _flush_text(self, nodes: List[TemplateNode], start: int, end: int) -> None:
        raw = self._text[start:end]
        if not raw.strip():
            if not self._separates_inline(nodes, raw, start, end):
                return
            raw = " "
        nodes.append(TextNode(text=_WHITESPACE_RE.sub(" ", raw), position=self._position(start)))

    def _separates_inline(self, nodes: List[TemplateNode], raw: str, start: int, end: int) -> bool:
        """Whether blank text sits between an interpolation and another inline sibling."""
        if not raw:
            return False
        text = self._text
        after_interpolation = bool(nodes) and isinstance(nodes[-1], Interpolation)
        before_interpolation = text.startswith("{{", end)
        if after_interpolation and before_interpolation:
            return True
        if "\n" in raw:
            return False
        if after_interpolation:
            return text[end:end + 1] == "<" and text[end + 1:end + 2].isalpha()
        if before_interpolation and not nodes:
            preceding = text[:start]
            return preceding.endswith("/>") or _CLOSE_TAG_END_RE.search(preceding) is not None
        return False

    def _parse_interpolation(self) -> Interpolation:
        start = self._pos
        end = self._find_interpolation_end(start + 2)
        if end < 0:
            raise self._error("Unterminated interpolation '{{'", start)
        expression = self._text[start + 2:end].strip()
        position = self._position(start)
        self._pos = end + 2
        if not expression:
            raise self._error("Empty interpolation", start)
        return Interpolation(
            expression=expression,
            value=parse_bound_value(expression, position),
            position=position,
        )

    def _find_interpolation_end(self, index: int) -> int:
        return interpolation_end(self._text, index)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------
    def _parse_element(self) -> TemplateNode:
        text = self._text
        start = self._pos
        match = _TAG_NAME_RE.match(text, start + 1)
        tag = match.group(0)
        self._pos = match.end()

        attributes = []
        structural: List[_Structural] = []
        self_closing = False

        while True:
            self._skip_whitespace()
            if self._pos >= len(text):
                raise self._error(f"Unterminated start tag <{tag}>", start)
            if text.startswith("/>", self._pos):
                self._pos += 2
                self_closing = True
                break
            if text[self._pos] == ">":
                self._pos += 1
                break
            parsed = self._parse_attribute()
            if isinstance(parsed, _Structural):
                structural.append(parsed)
            else:
                attributes.append(parsed)

        position = self._position(start)
        if len(structural) > 1:
            raise DuplicateStructuralDirectiveError(
                tag, [s.name for s in structural], line=position.line, column=position.column
            )

        children: List[TemplateNode] = []
        if not self_closing and tag.lower() not in VOID_ELEMENTS:
            children = self._parse_children(tag, start)

        if tag in CONTAINER_TAGS:
            node = Container(kind=tag, attributes=attributes, children=children, position=position)
        else:
            node = ElementNode(
                tag=tag,
                attributes=attributes,
                children=children,
                position=position,
                self_closing=self_closing,
            )

        if structural:
            directive = structural[0]
            return StructuralDirective(
                name=directive.name,
                expression=directive.value,
                syntax=parse_microsyntax(directive.name, directive.value),
                child=node,
                position=directive.position,
            )
        return node

    def _parse_attribute(self):
        text = self._text
        attr_start = self._pos
        match = _ATTR_NAME_RE.match(text, attr_start)
        if not match:
            raise self._error("Invalid attribute syntax", attr_start)
        name = match.group(0)
        self._pos = match.end()

        value: Optional[str] = None
        self._skip_whitespace()
        if self._pos < len(text) and text[self._pos] == "=":
            self._pos += 1
            self._skip_whitespace()
            value = self._read_attribute_value(name, attr_start)

        return self._classify_attribute(name, value, attr_start)

    def _read_attribute_value(self, name: str, attr_start: int) -> str:
        text = self._text
        if self._pos < len(text) and text[self._pos] in ("'", '"'):
            quote = text[self._pos]
            end = text.find(quote, self._pos + 1)
            if end < 0:
                raise self._error("Unterminated binding", attr_start, attribute=name)
            value = text[self._pos + 1:end]
            self._pos = end + 1
            return value
        match = _UNQUOTED_VALUE_RE.match(text, self._pos)
        if not match:
            raise self._error("Missing attribute value", attr_start, attribute=name)
        self._pos = match.end()
        return match.group(0)

    def _classify_attribute(self, name: str, value: Optional[str], offset: int):
        position = self._position(offset)

        if name.startswith("[("):
            if not name.endswith(")]") or len(name) <= 4:
                raise self._error("Unterminated binding name", offset, attribute=name)
            return TwoWayBinding(name[2:-2], self._binding_value(name, value, offset), position)
        if name.startswith("bindon-"):
            return TwoWayBinding(name[7:], self._binding_value(name, value, offset), position)

        if name.startswith("[") or name.startswith("bind-"):
            if name.startswith("[") and (not name.endswith("]") or len(name) <= 2):
                raise self._error("Unterminated binding name", offset, attribute=name)
            prop = name[1:-1] if name.startswith("[") else name[5:]
            expression = self._binding_value(name, value, offset)
            if prop in BUILTIN_ATTRIBUTE_DIRECTIVES:
                return AttributeDirective(prop, expression, parse_bound_value(expression, position),
                                          position, bound=True)
            return PropertyBinding(prop, expression, parse_bound_value(expression, position), position)

        if name.startswith("(") or name.startswith("on-"):
            if name.startswith("(") and (not name.endswith(")") or len(name) <= 2):
                raise self._error("Unterminated binding name", offset, attribute=name)
            event = name[1:-1] if name.startswith("(") else name[3:]
            return EventBinding(event, self._binding_value(name, value, offset), position)

        if name.startswith("*"):
            if len(name) == 1:
                raise self._error("Structural directive without a name", offset, attribute=name)
            if value is not None:
                self._check_expression(name, value, offset)
            return _Structural(name[1:], value or "", position)

        if name.startswith("#") or name.startswith("ref-"):
            ref = name[1:] if name.startswith("#") else name[4:]
            return TemplateRefVar(ref, value or None, position)

        if name in BUILTIN_ATTRIBUTE_DIRECTIVES:
            return AttributeDirective(name, value, value, position, bound=False)

        if name[0] in "[(" or name[-1] in "])":
            raise self._error("Unterminated binding name", offset, attribute=name)

        if value is not None and "{{" in value:
            binding = self._interpolated_attribute(name, value, offset, position)
            if binding is not None:
                return binding
        return Attribute(name, value, position)

    def _interpolated_attribute(self, name: str, value: str, offset: int,
                                position: Position) -> Optional[PropertyBinding]:
        """
        ``title="Hi {{ name }}"`` as a binding to a template literal.

        A value that is a single interpolation binds its expression directly.
        Returns None when a piped interpolation shares the value with other
        text; such values stay static attributes.
        """
        texts = []
        expressions = []
        index = 0
        while True:
            start = value.find("{{", index)
            if start < 0:
                texts.append(value[index:])
                break
            end = interpolation_end(value, start + 2)
            if end < 0:
                raise self._error("Unterminated interpolation '{{'", offset, attribute=name)
            expression = value[start + 2:end].strip()
            if not expression:
                raise self._error("Empty interpolation", offset, attribute=name)
            self._check_expression(name, expression, offset)
            texts.append(value[index:start])
            expressions.append(expression)
            index = end + 2

        if len(expressions) == 1 and texts == ["", ""]:
            return PropertyBinding(name, expressions[0], parse_bound_value(expressions[0], position), position)
        if any(has_pipes(e) for e in expressions):
            return None
        literal = "".join(_template_literal_text(t) + "${" + e + "}" for t, e in zip(texts, expressions))
        literal = "`" + literal + _template_literal_text(texts[-1]) + "`"
        return PropertyBinding(name, literal, literal, position)

    def _binding_value(self, name: str, value: Optional[str], offset: int) -> str:
        if value is None or not value.strip():
            raise self._error("Binding has no expression", offset, attribute=name)
        self._check_expression(name, value, offset)
        return value.strip()

    def _check_expression(self, name: str, value: str, offset: int) -> None:
        if "</" in value:
            raise self._error("Unterminated binding", offset, attribute=name)
        problem = find_unbalanced(value)
        if problem:
            raise self._error(f"Unterminated binding ({problem})", offset, attribute=name)
