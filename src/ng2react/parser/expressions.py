"""
Helpers for template expressions.

Template expressions are not re-parsed into a full AST; they are split on
their top-level pipe/statement separators and tokenized with esprima for
identifier extraction and identifier-level rewriting.
"""

import re
from typing import Dict, List, Optional, Tuple

import esprima
from esprima.error_handler import Error as EsprimaError

from ..models import BoundValue, Microsyntax, PipeCall, Position
from ..utils.logger import get_logger

logger = get_logger(__name__)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}
_QUOTES = {"'", '"', "`"}

ASSIGNMENT_OPERATORS = ("=", "+=", "-=", "*=", "/=", "%=", "||=", "&&=", "??=")


def split_top_level(text: str, separator: str) -> List[str]:
    """
    Split ``text`` on a single-character separator outside quotes and brackets.

    ``|`` is special-cased so that ``||`` never splits.
    """
    parts = []
    depth = 0
    quote = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == separator and depth == 0:
            if separator == "|" and (text[i + 1:i + 2] == "|" or text[i - 1:i] == "|"):
                i += 1
                continue
            parts.append(text[start:i])
            start = i + 1
        i += 1
    parts.append(text[start:])
    return parts


def find_unbalanced(text: str) -> Optional[str]:
    """Return a description of the first quote/bracket imbalance, or None."""
    stack = []
    quote = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return f"unexpected '{ch}'"
        i += 1
    if quote:
        return f"unterminated string literal {quote}"
    if stack:
        return f"missing '{stack[-1]}'"
    return None


def parse_bound_value(expression: str, position: Optional[Position] = None) -> BoundValue:
    """
    Parse ``value | p1 | p2:arg`` into nested :class:`PipeCall` nodes.

    Pipes apply left to right, each consuming the previous result, so the
    outermost PipeCall is the rightmost pipe.
    """
    segments = split_top_level(expression, "|")
    value: BoundValue = segments[0].strip()
    for segment in segments[1:]:
        pieces = [p.strip() for p in split_top_level(segment, ":")]
        name = pieces[0]
        value = PipeCall(name=name, input=value, args=pieces[1:], position=position)
    return value


def has_pipes(expression: str) -> bool:
    return len(split_top_level(expression, "|")) > 1


def split_statements(handler: str) -> List[str]:
    return [s.strip() for s in split_top_level(handler, ";") if s.strip()]


# ---------------------------------------------------------------------------
# Structural directive microsyntax
# ---------------------------------------------------------------------------

_FOR_OF_RE = re.compile(r"^let\s+(\w+)\s+of\s+(.+)$", re.S)
_LET_RE = re.compile(r"^let\s+(\w+)\s*=\s*(\w+)$")
_AS_LOCAL_RE = re.compile(r"^(\w+)\s+as\s+(\w+)$")
_ALIAS_RE = re.compile(r"^(.*\S)\s+as\s+(\w+)$", re.S)
_THEN_ELSE_RE = re.compile(r"\b(then|else)\s*:?\s*(\w+)")


def parse_microsyntax(directive: str, expression: str) -> Microsyntax:
    """Decode the ``*directive="..."`` expression into a :class:`Microsyntax`."""
    segments = [s.strip() for s in split_top_level(expression, ";") if s.strip()]
    if not segments:
        return Microsyntax(expression="")

    head = segments[0]
    syntax = Microsyntax(expression=head)

    for_match = _FOR_OF_RE.match(head)
    if for_match:
        syntax.item = for_match.group(1)
        syntax.expression = for_match.group(2).strip()
    else:
        alias_match = _ALIAS_RE.match(head)
        if alias_match:
            syntax.expression = alias_match.group(1).strip()
            syntax.alias = alias_match.group(2)
        then_else = _THEN_ELSE_RE.findall(head)
        if then_else and directive == "ngIf":
            syntax.expression = _THEN_ELSE_RE.sub("", syntax.expression).strip()
            for keyword, ref in then_else:
                setattr(syntax, f"{keyword}_ref", ref)

    for segment in segments[1:]:
        let_match = _LET_RE.match(segment)
        if let_match:
            syntax.locals[let_match.group(1)] = let_match.group(2)
            continue
        as_match = _AS_LOCAL_RE.match(segment)
        if as_match:
            syntax.locals[as_match.group(2)] = as_match.group(1)
            continue
        then_else = _THEN_ELSE_RE.findall(segment)
        if then_else and directive == "ngIf":
            for keyword, ref in then_else:
                setattr(syntax, f"{keyword}_ref", ref)
            continue
        keyed = segment.split(":", 1) if ":" in segment else segment.split(None, 1)
        if len(keyed) == 2:
            key, value = keyed[0].strip(), keyed[1].strip()
            if key == "trackBy":
                syntax.track_by = value
            else:
                syntax.extra[key] = value
    return syntax


# ---------------------------------------------------------------------------
# esprima-based identifier handling
# ---------------------------------------------------------------------------

def tokenize(expression: str) -> list:
    """Tokenize a JavaScript-ish expression; returns [] if esprima rejects it."""
    try:
        return list(esprima.tokenize(expression, range=True))
    except EsprimaError as e:
        logger.debug(f"Could not tokenize expression {expression!r}: {e}")
        return []


def _reference_tokens(tokens: list) -> List[int]:
    """Indexes of Identifier tokens that are variable references (not members/keys)."""
    refs = []
    for i, tok in enumerate(tokens):
        if tok.type != "Identifier":
            continue
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        if prev is not None and prev.type == "Punctuator" and prev.value == ".":
            continue
        if (nxt is not None and nxt.type == "Punctuator" and nxt.value == ":"
                and prev is not None and prev.value in ("{", ",")):
            continue
        refs.append(i)
    return refs


def extract_identifiers(expression: str) -> List[str]:
    """Top-level identifiers referenced by ``expression``, in first-use order."""
    tokens = tokenize(expression)
    names: List[str] = []
    for i in _reference_tokens(tokens):
        name = tokens[i].value
        if name not in names:
            names.append(name)
    return names


def rename_identifiers(expression: str, mapping: Dict[str, str]) -> str:
    """Replace identifier references using ``mapping``; member names are untouched."""
    if not mapping:
        return expression
    tokens = tokenize(expression)
    if not tokens:
        return expression
    edits = []
    for i in _reference_tokens(tokens):
        tok = tokens[i]
        if tok.value in mapping:
            start, end = tok.range
            edits.append((start, end, mapping[tok.value]))
    result = expression
    for start, end, replacement in reversed(edits):
        result = result[:start] + replacement + result[end:]
    return result


def split_assignment(statement: str) -> Optional[Tuple[str, str, str]]:
    """
    Split ``target op value`` at the first top-level assignment operator.

    Returns (target, operator, value) or None when ``statement`` is not an
    assignment. ``x++``/``x--`` are reported as ``+=``/``-=`` with value ``1``.
    """
    tokens = tokenize(statement)
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.type != "Punctuator":
            continue
        if tok.value in _OPENERS:
            depth += 1
        elif tok.value in _CLOSERS:
            depth -= 1
        elif depth == 0 and tok.value in ASSIGNMENT_OPERATORS:
            start, end = tok.range
            return statement[:start].strip(), tok.value, statement[end:].strip()
        elif depth == 0 and tok.value in ("++", "--") and i == len(tokens) - 1:
            start, _ = tok.range
            return statement[:start].strip(), tok.value[0] + "=", "1"
    return None
