"""
Global symbol index.

Built once over every declaration parsed in phase 1, then sealed. After
sealing, the lookup tables are exposed through read-only mapping proxies and
any registration raises :class:`SymbolIndexSealedError`, so phase-2 workers
can share one instance without locking.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional

from ..errors import SymbolIndexSealedError
from ..models import (
    ComponentDecl,
    Declaration,
    DirectiveDecl,
    PipeDecl,
    RouteConfigDecl,
    UnitKind,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

_ATTRIBUTE_SELECTOR_RE = re.compile(r"\[([\w-]+)(?:=[^\]]*)?\]")
_ELEMENT_SELECTOR_RE = re.compile(r"^([a-zA-Z][\w-]*)")


@dataclass(frozen=True)
class Symbol:
    name: str
    kind: UnitKind
    unit: str
    declaration: Declaration


def parse_selector(selector: Optional[str]):
    """Split a selector list into (element names, attribute names)."""
    elements, attributes = [], []
    for part in (selector or "").split(","):
        part = part.strip()
        if not part:
            continue
        element = _ELEMENT_SELECTOR_RE.match(part)
        attrs = _ATTRIBUTE_SELECTOR_RE.findall(part)
        if attrs:
            attributes.extend(attrs)
        elif element:
            elements.append(element.group(1))
    return elements, attributes


class SymbolIndex:
    """Declared name -> declaration kind + unit identity."""

    def __init__(self):
        self._sealed = False
        self._symbols: Dict[str, Symbol] = {}
        self._pipes: Dict[str, Symbol] = {}
        self._elements: Dict[str, Symbol] = {}
        self._attributes: Dict[str, Symbol] = {}
        self._route_tables: Dict[str, Symbol] = {}
        self._types_units: Dict[str, str] = {}

    @classmethod
    def build(cls, declarations: Iterable[Declaration], types_units: Iterable[str] = ()) -> "SymbolIndex":
        index = cls()
        for decl in declarations:
            index.register(decl)
        for path in types_units:
            index.register_types_unit(path)
        index.seal()
        return index

    # ------------------------------------------------------------------
    # Phase 1: registration
    # ------------------------------------------------------------------
    def _check_open(self) -> None:
        if self._sealed:
            raise SymbolIndexSealedError("Symbol index is sealed; no further registration is allowed")

    def register(self, decl: Declaration) -> bool:
        """Register one declaration; returns False on a duplicate name."""
        self._check_open()
        symbol = Symbol(decl.name, decl.kind, decl.source_path, decl)

        if isinstance(decl, RouteConfigDecl):
            self._route_tables.setdefault(decl.name, symbol)
            return True

        if decl.name in self._symbols:
            logger.warning(
                f"Duplicate declaration {decl.name} in {decl.source_path}; "
                f"keeping the one from {self._symbols[decl.name].unit}"
            )
            return False
        self._symbols[decl.name] = symbol

        if isinstance(decl, PipeDecl):
            self._pipes.setdefault(decl.pipe_name, symbol)
        elif isinstance(decl, (ComponentDecl, DirectiveDecl)):
            elements, attributes = parse_selector(decl.selector)
            for element in elements:
                self._elements.setdefault(element, symbol)
            for attribute in attributes:
                self._attributes.setdefault(attribute, symbol)
        return True

    def register_types_unit(self, path: str) -> None:
        self._check_open()
        self._types_units[path] = path

    def seal(self) -> None:
        if self._sealed:
            return
        self._symbols = MappingProxyType(self._symbols)
        self._pipes = MappingProxyType(self._pipes)
        self._elements = MappingProxyType(self._elements)
        self._attributes = MappingProxyType(self._attributes)
        self._route_tables = MappingProxyType(self._route_tables)
        self._types_units = MappingProxyType(self._types_units)
        self._sealed = True
        logger.debug(f"Symbol index sealed with {len(self._symbols)} symbol(s)")

    @property
    def sealed(self) -> bool:
        return self._sealed

    # ------------------------------------------------------------------
    # Phase 2: lookups
    # ------------------------------------------------------------------
    def lookup(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)

    def pipe(self, pipe_name: str) -> Optional[Symbol]:
        return self._pipes.get(pipe_name)

    def element(self, tag: str) -> Optional[Symbol]:
        return self._elements.get(tag)

    def attribute(self, name: str) -> Optional[Symbol]:
        return self._attributes.get(name)

    def route_table(self, name: str) -> Optional[Symbol]:
        return self._route_tables.get(name)

    def is_types_unit(self, path: str) -> bool:
        return path in self._types_units

    def unit_symbols(self, path: str) -> List[Symbol]:
        return [s for s in self._symbols.values() if s.unit == path]

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def names(self) -> List[str]:
        return sorted(self._symbols)
