"""
Rules for transforming Angular services to custom hooks.

- Constructor dependencies become calls to other service hooks
- BehaviorSubject and mutated fields become state cells
- Asynchronous methods are wrapped with their own loading/error cells
- The hook returns the public methods, state, loading/error cells and getters
"""

from typing import List

from ...errors import DiagnosticSink
from ...ir.nodes import MethodIR, ServiceIR
from ...ir.symbol_index import SymbolIndex
from ...utils.logger import get_logger
from ...utils.string_utils import setter_name
from ..body_rewriter import BodyRewriter
from ..imports import ImportCollector
from ..naming import service_hook_name, service_ref
from ..target import FunctionBody, FunctionDecl, HookArtifact, StateDecl
from .hooks_rules import HooksRules

logger = get_logger(__name__)


def _indent(text: str, prefix: str = "  ") -> str:
    return "\n".join(prefix + line if line.strip() else line for line in text.splitlines())


def track_async(function: FunctionDecl, loading_setter: str, error_setter: str) -> None:
    """Wrap ``function`` so its loading/error cells follow every call."""
    head = f"{loading_setter}(true);\n{error_setter}(null);\n"
    if function.is_async:
        function.body = (
            f"{head}"
            f"try {{\n{_indent(function.body)}\n}} catch (caught) {{\n"
            f"  {error_setter}(caught);\n"
            f"  throw caught;\n"
            f"}} finally {{\n"
            f"  {loading_setter}(false);\n"
            f"}}"
        )
        return
    # Promise-returning method: observe the returned promise instead of awaiting it
    function.body = (
        f"{head}"
        f"return Promise.resolve((() => {{\n{_indent(function.body)}\n}})())\n"
        f"  .catch((caught) => {{\n"
        f"    {error_setter}(caught);\n"
        f"    throw caught;\n"
        f"  }})\n"
        f"  .finally(() => {loading_setter}(false));"
    )


class ServiceRules:
    """Builds the ``useXService`` hook of one service."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.hooks = HooksRules(index, sink)

    def transform(self, node: ServiceIR) -> list:
        """
        Transform a service IR node.

        Args:
            node: Service IR

        Returns:
            A single hook artifact
        """
        logger.debug(f"Applying service rules to {node.name}")
        imports = ImportCollector()
        imports.carry(node.source_imports, node.source_path, self.index)

        rewriter = BodyRewriter(self.hooks.rewrite_context(node), self.sink)
        body = self.hooks.transform(node, rewriter, imports)
        tracked = self._track_async_methods(node.methods, body)
        if tracked:
            imports.react("useState")
        self.hooks.dependency_hooks(node, rewriter, imports, body)

        artifact = HookArtifact(service_ref(node.name, node.source_path), service_hook_name(node.name), body=body)
        artifact.returns = self._returns(node, tracked)
        artifact.imports = imports.specs()
        return [artifact]

    @staticmethod
    def _track_async_methods(methods: List[MethodIR], body: FunctionBody) -> List[str]:
        tracked = []
        functions = {f.name: f for f in body.functions}
        for method in methods:
            if not method.asynchronous:
                continue
            loading, error = f"{method.name}Loading", f"{method.name}Error"
            body.state.append(StateDecl(loading, setter_name(loading), "false", "boolean"))
            body.state.append(StateDecl(error, setter_name(error), "null", "unknown"))
            track_async(functions[method.name], setter_name(loading), setter_name(error))
            tracked.extend([loading, error])
        return tracked

    @staticmethod
    def _returns(node: ServiceIR, tracked: List[str]) -> List[str]:
        names = [cell.name for cell in node.state if cell.public]
        names += tracked
        names += [c.name for c in node.constants if c.public and not c.static]
        names += [g.name for g in node.getters]
        names += [m.name for m in node.methods if m.public]
        return names
