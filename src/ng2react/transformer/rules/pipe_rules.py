"""
Rules for transforming Angular pipes.

A pipe becomes a plain exported function (``utils/``) that templates call
directly, plus a ``useX`` hook (``hooks/``) that memoizes the call when the
pipe is pure. Pipe fields become module-level bindings, helper methods
become unexported functions, and injected services become trailing
parameters that the hook fills in.
"""

from typing import List

from ...errors import DiagnosticCode, DiagnosticSink
from ...ir.nodes import DependencyKind, PipeIR
from ...ir.symbol_index import SymbolIndex
from ...models import Param
from ...utils.logger import get_logger
from ..body_rewriter import BodyRewriter, RewriteContext
from ..imports import ImportCollector
from ..naming import pipe_function_name, pipe_hook_name, pipe_hook_ref, pipe_util_ref, service_hook_name, service_ref
from ..support import HTTP_CLIENT_REF
from ..target import ConstDecl, FunctionBody, FunctionDecl, HookArtifact, UtilArtifact

logger = get_logger(__name__)


class PipeRules:
    """Builds the function and hook artifacts of one pipe."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink

    def transform(self, node: PipeIR) -> list:
        """
        Transform a pipe IR node.

        Args:
            node: Pipe IR

        Returns:
            The utility function artifact followed by the hook artifact
        """
        logger.debug(f"Applying pipe rules to {node.name} ('{node.pipe_name}', pure={node.pure})")
        util = self._util(node)
        return [util, self._hook(node, util.name)]

    def _rewriter(self, node: PipeIR) -> BodyRewriter:
        # No state cells: fields live at module level and are assigned directly
        members = (
            {c.name for c in node.constants} | {s.name for s in node.state} | {r.name for r in node.refs}
            | {m.name for m in node.methods} | {d.name for d in node.dependencies}
        )
        return BodyRewriter(RewriteContext(members=members), self.sink)

    def _dependency_params(self, node: PipeIR, imports: ImportCollector) -> List[Param]:
        params = []
        for dep in node.dependencies:
            if dep.kind == DependencyKind.SERVICE:
                hook = service_hook_name(dep.target)
                imports.add(hook, target=service_ref(dep.target, dep.target_unit), type_only=True)
                params.append(Param(dep.name, f"ReturnType<typeof {hook}>"))
            elif dep.type_name == "HttpClient":
                imports.add("useHttpClient", target=HTTP_CLIENT_REF, type_only=True)
                params.append(Param(dep.name, "ReturnType<typeof useHttpClient>"))
            else:
                params.append(Param(dep.name, "any"))
        return params

    def _util(self, node: PipeIR) -> UtilArtifact:
        function = pipe_function_name(node.pipe_name)
        imports = ImportCollector()
        imports.carry(node.source_imports, node.source_path, self.index)
        rewriter = self._rewriter(node)

        util = UtilArtifact(pipe_util_ref(node.pipe_name, node.source_path), function)
        for constant in node.constants:
            util.constants.append(ConstDecl(constant.name, self._value(constant.value, rewriter), constant.type))
        for cell in node.state:
            util.mutable.append(ConstDecl(cell.name, self._value(cell.initial, rewriter), cell.type))
        for ref in node.refs:
            util.mutable.append(ConstDecl(ref.name, self._value(ref.initial, rewriter), ref.type))
        for getter in node.getters:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              f"Getter '{getter.name}' of pipe {node.name} is not converted")
        for method in node.methods:
            util.functions.append(FunctionDecl(method.name, list(method.params), rewriter.rewrite(method.body),
                                               method.return_type, method.is_async))

        transform = node.transform
        params = list(transform.params) + self._dependency_params(node, imports)
        util.functions.append(FunctionDecl(function, params, rewriter.rewrite(transform.body),
                                           transform.return_type, transform.is_async,
                                           comment=f"'{node.pipe_name}' pipe"))
        util.exported = [function]
        util.imports = imports.specs()
        return util

    def _hook(self, node: PipeIR, function: str) -> HookArtifact:
        imports = ImportCollector()
        imports.artifact(pipe_util_ref(node.pipe_name, node.source_path), function)
        body = FunctionBody()
        for dep in node.dependencies:
            if dep.kind == DependencyKind.SERVICE:
                hook = service_hook_name(dep.target)
                imports.artifact(service_ref(dep.target, dep.target_unit), hook)
                body.hook_calls.append(f"const {dep.name} = {hook}();")
            elif dep.type_name == "HttpClient":
                imports.artifact(HTTP_CLIENT_REF, "useHttpClient")
                body.hook_calls.append(f"const {dep.name} = useHttpClient();")
            else:
                body.hook_calls.append(f"const {dep.name}: any = undefined; // {dep.type_name} has no hook")

        params = list(node.transform.params)
        args = [p.name for p in params] + [d.name for d in node.dependencies]
        call = f"{function}({', '.join(args)})"
        if node.pure:
            imports.react("useMemo")
            expression = f"useMemo(() => {call}, [{', '.join(args)}])"
        else:
            expression = call

        hook = HookArtifact(pipe_hook_ref(node.pipe_name, node.source_path), pipe_hook_name(node.pipe_name),
                            params=params, body=body, return_expression=expression)
        hook.imports = imports.specs()
        return hook

    @staticmethod
    def _value(value, rewriter: BodyRewriter) -> str:
        return rewriter.rewrite(value) if value is not None else "undefined"
