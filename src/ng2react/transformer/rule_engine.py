"""
Rule engine: maps one IR node to its React artifacts.

Dispatch is a table keyed by IR node type, so every node the IR builder can
produce has exactly one rule. Shared support modules (``classNames``,
``angularPipes``, ``useObservableValue``, ``useHttpClient``) referenced by
an artifact's imports are appended to the result; the pipeline emits each
of them once per run.
"""

from typing import Callable, Dict, List

from ..errors import DiagnosticCode, DiagnosticSink
from ..ir.nodes import ComponentIR, DirectiveIR, IRNode, ModuleIR, PipeIR, RouteTableIR, ServiceIR, StubIR, TypesIR
from ..ir.symbol_index import SymbolIndex
from ..models import UnitKind
from ..utils.logger import get_logger
from .naming import (
    context_ref,
    directive_hoc_name,
    directive_hook_name,
    directive_ref,
    pipe_function_name,
    pipe_util_ref,
    service_hook_name,
    service_ref,
    types_module_name,
    types_ref,
)
from .rules.component_rules import ComponentRules
from .rules.directive_rules import DirectiveRules
from .rules.module_rules import ModuleRules, RouteRules
from .rules.pipe_rules import PipeRules
from .rules.service_rules import ServiceRules
from .support import SUPPORT_ARTIFACTS
from .target import ArtifactRef, HookArtifact, UtilArtifact

logger = get_logger(__name__)


def commented_source(reason: str, source_text: str) -> str:
    """Header comment carrying the stub reason and the original source."""
    lines = [f"// {reason}"]
    if source_text:
        lines.append("// Original source:")
        lines.extend(f"// {line}".rstrip() for line in source_text.splitlines())
    return "\n".join(lines)


class RuleEngine:
    """
    Applies the transformation rules of one unit.

    One engine is created per unit with the unit's diagnostic sink; the
    sealed symbol index is shared.
    """

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.component_rules = ComponentRules(index, sink)
        self.service_rules = ServiceRules(index, sink)
        self.pipe_rules = PipeRules(index, sink)
        self.directive_rules = DirectiveRules(index, sink)
        self.module_rules = ModuleRules(index, sink)
        self.route_rules = RouteRules(index, sink)
        self._rules: Dict[type, Callable[..., list]] = {
            ComponentIR: self.component_rules.transform,
            ServiceIR: self.service_rules.transform,
            PipeIR: self.pipe_rules.transform,
            DirectiveIR: self.directive_rules.transform,
            ModuleIR: self.module_rules.transform,
            RouteTableIR: self.route_rules.transform,
            StubIR: self.stub,
            TypesIR: self.types,
        }

    def transform(self, node: IRNode) -> list:
        """
        Transform an IR node into artifacts.

        Args:
            node: IR node of one unit

        Returns:
            The unit's artifacts followed by any support modules they import
        """
        rule = self._rules.get(type(node))
        if rule is None:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              f"No transformation rule for {type(node).__name__}")
            return []
        artifacts = rule(node)
        return artifacts + self._support(artifacts)

    @staticmethod
    def _support(artifacts: list) -> list:
        refs: List[ArtifactRef] = []
        for artifact in artifacts:
            for spec in getattr(artifact, "imports", []):
                if spec.target in SUPPORT_ARTIFACTS and spec.target not in refs:
                    refs.append(spec.target)
        return [SUPPORT_ARTIFACTS[ref]() for ref in refs]

    # ------------------------------------------------------------------
    # Passthrough
    # ------------------------------------------------------------------
    def types(self, node: TypesIR) -> list:
        logger.debug(f"Copying type declarations of {node.source_path}")
        return [UtilArtifact(types_ref(node.source_path), types_module_name(node.source_path), raw=node.text,
                             typed_only=True)]

    def stub(self, node: StubIR) -> list:
        """
        Pass an unconverted unit through with its reason attached.

        Components (and structural directives) keep a props-compatible stub
        component. Other kinds keep an export of the same name that callers
        already import, so the rest of the output still resolves.
        """
        logger.debug(f"Stubbing {node.name} ({node.reason})")
        kind = node.unit_kind
        symbol = self.index.lookup(node.name)
        header = commented_source(node.reason, node.source_text)

        if kind == UnitKind.COMPONENT:
            return self.component_rules.stub(node)

        if kind == UnitKind.DIRECTIVE and symbol is not None:
            decl = symbol.declaration
            ref = directive_ref(decl.name, symbol.unit, decl.directive_kind, decl.renders_markup)
            if decl.directive_kind == "structural":
                return self.component_rules.stub(node)
            if decl.renders_markup:
                name = directive_hoc_name(decl.name)
                export = f"export default function {name}<T>(Wrapped: T): T {{\n  return Wrapped;\n}}\n"
                return [UtilArtifact(ref, name, raw=f"{header}\n\n{export}")]
            name = directive_hook_name(decl.name)
            export = f"export function {name}(..._args: unknown[]): void {{}}\n"
            return [HookArtifact(ref, name, raw=f"{header}\n\n{export}")]

        if kind == UnitKind.SERVICE:
            name = service_hook_name(node.name)
            export = f"export function {name}(): any {{\n  return {{}};\n}}\n"
            return [HookArtifact(service_ref(node.name, node.source_path), name, raw=f"{header}\n\n{export}")]

        if kind == UnitKind.PIPE and symbol is not None:
            pipe_name = symbol.declaration.pipe_name
            name = pipe_function_name(pipe_name)
            export = f"export function {name}(value: any, ..._args: any[]): any {{\n  return value;\n}}\n"
            return [UtilArtifact(pipe_util_ref(pipe_name, symbol.unit), name, raw=f"{header}\n\n{export}")]

        if kind == UnitKind.MODULE:
            ref = context_ref(node.name, node.source_path)
        else:
            ref = ArtifactRef("utils", types_module_name(node.source_path), node.source_path)
        return [UtilArtifact(ref, ref.name, raw=f"{header}\n\nexport {{}};\n")]
