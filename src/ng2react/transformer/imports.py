"""
Import bookkeeping for one generated module.
"""

import posixpath
import re
from typing import Dict, List, Optional, Tuple

from ..ir.symbol_index import SymbolIndex
from ..models import ImportDecl
from ..utils.logger import get_logger
from .naming import types_ref
from .support import SUPPORT_ARTIFACTS
from .target import ArtifactRef, ImportSpec

logger = get_logger(__name__)

# Names that only exist in the source framework's object model
DROPPED_RXJS_NAMES = {
    "Subject", "BehaviorSubject", "ReplaySubject", "Subscription",
    "firstValueFrom", "lastValueFrom",
}


class ImportCollector:
    """Accumulates imports keyed by module; names are merged per module."""

    def __init__(self):
        self._specs: Dict[Tuple, ImportSpec] = {}

    def _spec(self, module: Optional[str], target: Optional[ArtifactRef], type_only: bool = False,
              prune: bool = False) -> ImportSpec:
        key = (module, target, type_only, prune)
        if key not in self._specs:
            self._specs[key] = ImportSpec(module=module, target=target, type_only=type_only, prune=prune)
        return self._specs[key]

    def add(self, name: Optional[str] = None, module: Optional[str] = None,
            target: Optional[ArtifactRef] = None, default: Optional[str] = None,
            type_only: bool = False, prune: bool = False) -> None:
        spec = self._spec(module, target, type_only, prune)
        if name and name not in spec.names:
            spec.names.append(name)
        if default:
            spec.default = default

    def side_effect(self, target: ArtifactRef) -> None:
        spec = self._spec(None, target)
        spec.side_effect = True

    def react(self, *names: str) -> None:
        for name in names:
            self.add(name, module="react")

    def router(self, *names: str) -> None:
        for name in names:
            self.add(name, module="react-router-dom")

    def artifact(self, ref: ArtifactRef, name: str, default: bool = False) -> None:
        if default:
            self.add(target=ref, default=name)
        else:
            self.add(name, target=ref)

    def specs(self) -> List[ImportSpec]:
        return list(self._specs.values())

    def support_refs(self) -> List[ArtifactRef]:
        """Shared support modules this artifact imports."""
        refs = []
        for spec in self._specs.values():
            if spec.target in SUPPORT_ARTIFACTS and spec.target not in refs:
                refs.append(spec.target)
        return refs

    def carry(self, source_imports: List[ImportDecl], source_path: str, index: SymbolIndex) -> None:
        """Carry a unit's non-framework imports over to its generated module."""
        for decl in source_imports:
            module = decl.module
            if module.startswith("@angular/"):
                continue
            names = list(decl.names)
            if module == "rxjs" or module.startswith("rxjs/"):
                names = [n for n in names if n not in DROPPED_RXJS_NAMES]
                if not names:
                    continue
            if module.startswith("."):
                resolved = posixpath.normpath(posixpath.join(posixpath.dirname(source_path), module))
                if not resolved.endswith(".ts"):
                    resolved += ".ts"
                if index.is_types_unit(resolved):
                    for name in names:
                        self.add(name, target=types_ref(resolved), type_only=True, prune=True)
                    continue
                if not index.unit_symbols(resolved):
                    logger.debug(f"Dropping import of '{module}' from {source_path}: not part of the input")
                continue
            if decl.namespace:
                self.add(module=module, default=f"* as {decl.namespace}", prune=True)
            if decl.default:
                self.add(module=module, default=decl.default, prune=True)
            for name in names:
                self.add(name, module=module, prune=True)


def referenced(name: str, text: str) -> bool:
    """Whether ``name`` (or ``* as name``) is used in ``text``."""
    bare = name.split(" as ")[-1].strip()
    return re.search(rf"(?<![\w$.]){re.escape(bare)}\b", text) is not None
