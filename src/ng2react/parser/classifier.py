"""
Source classifier.

Determines the declaration kind of a TypeScript unit from the decorator
attached to its classes (or, for route configuration files, from a ``Routes``
typed array).
"""

import re
from typing import List

from ..errors import MalformedDeclarationError, UnclassifiedUnitError
from ..models import SourceUnit, UnitKind
from .ts_nodes import decorator_name, find_route_arrays, iter_classes, parse_typescript
from ..utils.logger import get_logger

logger = get_logger(__name__)

DECORATOR_KINDS = {
    "Component": UnitKind.COMPONENT,
    "Injectable": UnitKind.SERVICE,
    "Pipe": UnitKind.PIPE,
    "Directive": UnitKind.DIRECTIVE,
    "NgModule": UnitKind.MODULE,
}

_MARKER_RE = re.compile(r"@(Component|Injectable|Pipe|Directive|NgModule)\s*\(")


class SourceClassifier:
    """Splits a TypeScript file into classified source units, one per decorated class."""

    def classify(self, path: str, text: str) -> List[SourceUnit]:
        tree, source = parse_typescript(text)
        root = tree.root_node

        units = []
        for info in iter_classes(root, source):
            kinds = [DECORATOR_KINDS[n] for n in (decorator_name(d, source) for d in info.decorators)
                     if n in DECORATOR_KINDS]
            if kinds:
                units.append(SourceUnit(path=path, text=text, kind=kinds[0], class_name=info.name))

        if units:
            logger.debug(f"{path}: classified {[(u.class_name, u.kind.value) for u in units]}")
            return units

        if find_route_arrays(root, source):
            logger.debug(f"{path}: classified as route configuration")
            return [SourceUnit(path=path, text=text, kind=UnitKind.ROUTES)]

        marker = _MARKER_RE.search(text)
        if marker:
            line = text.count("\n", 0, marker.start()) + 1
            raise MalformedDeclarationError(
                f"@{marker.group(1)} metadata found but no decorated class could be parsed",
                unit=path, line=line, column=marker.start() - text.rfind("\n", 0, marker.start()),
            )
        raise UnclassifiedUnitError("No recognizable Angular declaration marker", unit=path)
