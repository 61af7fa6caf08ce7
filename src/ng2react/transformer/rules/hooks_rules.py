"""
Rules for turning class members into the body of a function component or hook.

Shared by components, services and directives: injected dependencies become
hook calls, mutated fields become ``useState`` cells, view queries and
subscription holders become ``useRef`` cells, lifecycle methods become
``useEffect`` calls and methods become local functions.
"""

import re
from typing import Dict, Iterable, List, Optional

from ...errors import DiagnosticCode, DiagnosticSink
from ...ir.nodes import BaseIR, DependencyKind, EffectIR, EffectTrigger
from ...ir.symbol_index import SymbolIndex
from ...models import HostListener
from ...utils.logger import get_logger
from ..body_rewriter import BodyRewriter, RewriteContext
from ..imports import ImportCollector
from ..mappings import AngularReactMappings
from ..naming import service_hook_name, service_ref
from ..support import HTTP_CLIENT_REF
from ..target import ConstDecl, EffectDecl, FunctionBody, FunctionDecl, RefDecl, StateDecl

logger = get_logger(__name__)

_RETURN_ONLY_RE = re.compile(r"^return\s+([\s\S]+?);?$")
_ELEMENT_REF_RE = re.compile(r"^ElementRef\s*<\s*(.+)\s*>$")
_SUBSCRIPTION_RE = re.compile(r"\bSubscription\b")
SUBSCRIPTION_TYPE = "{ unsubscribe(): void }"


def element_ref_type(type_name: Optional[str]) -> str:
    """``ElementRef<HTMLInputElement>`` -> ``HTMLInputElement``."""
    match = _ELEMENT_REF_RE.match((type_name or "").strip())
    if match:
        return match.group(1)
    if not type_name or type_name.startswith("ElementRef"):
        return "HTMLElement"
    return type_name


class HooksRules:
    """Rules for building function bodies out of class members."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.mappings = AngularReactMappings()

    # ------------------------------------------------------------------
    # Rewrite context
    # ------------------------------------------------------------------
    def rewrite_context(self, node: BaseIR, props: Iterable[str] = (), outputs: Optional[Dict[str, str]] = None,
                        element_refs: Optional[Dict[str, str]] = None) -> RewriteContext:
        """
        Describe which role every ``this.x`` member of ``node`` plays.

        Args:
            node: IR node whose members are addressed
            props: Input names that arrive as props
            outputs: Output name -> callback prop name
            element_refs: ElementRef dependency -> ref variable holding the host element

        Returns:
            Context for a :class:`BodyRewriter`
        """
        outputs = dict(outputs or {})
        context = RewriteContext(
            props=set(props),
            outputs=outputs,
            state={cell.name: cell.setter for cell in node.state},
            subjects=set(node.subjects),
            refs={ref.name for ref in node.refs},
            element_refs=dict(element_refs or {}),
            dependencies={dep.name: dep for dep in node.dependencies},
        )
        context.members = (
            set(context.props) | set(outputs) | set(context.state) | context.refs
            | {c.name for c in node.constants} | {m.name for m in node.methods}
            | {g.name for g in node.getters} | set(context.dependencies)
        )
        return context

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------
    def transform(self, node: BaseIR, rewriter: BodyRewriter, imports: ImportCollector) -> FunctionBody:
        """
        Build state, refs, constants, functions, derived values and effects.

        Hook calls for dependencies are added afterwards by :meth:`dependency_hooks`,
        once every body that may need them has been rewritten.
        """
        logger.debug(f"Applying hooks rules to {node.name}")
        body = FunctionBody()

        for cell in node.state:
            body.state.append(StateDecl(cell.name, cell.setter, self._value(cell.initial, rewriter), cell.type))
        if body.state:
            imports.react("useState")

        for ref in node.refs:
            ref_type = element_ref_type(ref.type) if ref.element else ref.type
            if ref_type and not ref.element:
                # rxjs Subscription imports are not carried over
                ref_type = _SUBSCRIPTION_RE.sub(SUBSCRIPTION_TYPE, ref_type)
            initial = "null" if ref.element else self._value(ref.initial, rewriter)
            body.refs.append(RefDecl(ref.name, initial, ref_type))

        for constant in node.constants:
            value = self._value(constant.value, rewriter)
            const_type = constant.type
            if value is None:
                value = "undefined"
                if const_type:
                    const_type = f"{const_type} | undefined"
            body.constants.append(ConstDecl(constant.name, value, const_type))

        for method in node.methods:
            body.functions.append(FunctionDecl(
                name=method.name,
                params=list(method.params),
                body=rewriter.rewrite(method.body),
                return_type=method.return_type,
                is_async=method.is_async,
            ))

        for getter in node.getters:
            body.derived.append(ConstDecl(getter.name, self._getter_value(getter.body, rewriter), getter.type))

        for effect in node.effects:
            body.effects.append(self.effect(effect, rewriter))
        if body.effects:
            imports.react("useEffect")
        return body

    def effect(self, effect: EffectIR, rewriter: BodyRewriter) -> EffectDecl:
        if effect.trigger == EffectTrigger.MOUNT:
            deps: Optional[List[str]] = []
        elif effect.trigger == EffectTrigger.CHANGES:
            deps = list(effect.deps)
        else:
            deps = None
        return EffectDecl(
            body=rewriter.rewrite(effect.body),
            cleanup=rewriter.rewrite(effect.cleanup),
            deps=deps,
            comment=", ".join(effect.origin) if effect.origin else None,
        )

    def host_listener_effects(self, listeners: List[HostListener], rewriter: BodyRewriter,
                              host: Optional[str]) -> List[EffectDecl]:
        """
        Attach ``@HostListener`` handlers with ``addEventListener``.

        ``window:``/``document:`` targets attach globally; anything else attaches
        to the element held by the ``host`` ref. Listeners are re-attached after
        every render so handlers always see current state.
        """
        effects = []
        for listener in listeners:
            target_name, _, event = listener.event.rpartition(":")
            if target_name in ("window", "document"):
                target = target_name
            elif target_name == "body":
                target = "document.body"
            elif host is not None:
                target = f"{host}.current"
            else:
                self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                  f"Host listener '{listener.event}' has no element to attach to")
                continue
            call = rewriter.rewrite_expression(f"{listener.handler}({', '.join(listener.args)})")
            body = (
                f"const target = {target};\n"
                f"if (!target) return;\n"
                f"const listener = (event: Event) => {call};\n"
                f"target.addEventListener('{event}', listener);\n"
                f"return () => target.removeEventListener('{event}', listener);"
            )
            effects.append(EffectDecl(body=body, deps=None, comment=f"@HostListener('{listener.event}')"))
        return effects

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------
    def dependency_hooks(self, node: BaseIR, rewriter: BodyRewriter, imports: ImportCollector,
                         body: FunctionBody, element_refs: Optional[Dict[str, str]] = None,
                         provided: Iterable[str] = ()) -> None:
        """
        Prepend the hook calls that stand in for constructor injection.

        ``provided`` names variables that already exist in scope (such as a
        host ref received as a parameter) and need no declaration.
        """
        element_refs = element_refs or {}
        provided = set(provided)
        calls: List[str] = []
        refs: List[RefDecl] = []
        for dep in node.dependencies:
            if dep.kind == DependencyKind.SERVICE:
                hook = service_hook_name(dep.target)
                imports.artifact(service_ref(dep.target, dep.target_unit), hook)
                calls.append(f"const {dep.name} = {hook}();")
                continue
            if dep.kind == DependencyKind.UNRESOLVED:
                calls.append(f"const {dep.name}: any = undefined; // unresolved dependency: {dep.type_name}")
                continue

            type_name = dep.type_name
            if type_name == "Router":
                if "navigate" in rewriter.uses:
                    imports.router("useNavigate")
                    calls.append("const navigate = useNavigate();")
                if "location" in rewriter.uses:
                    imports.router("useLocation")
                    calls.append("const location = useLocation();")
            elif type_name == "ActivatedRoute":
                if "params" in rewriter.uses:
                    imports.router("useParams")
                    calls.append("const params = useParams();")
                if "searchParams" in rewriter.uses:
                    imports.router("useSearchParams")
                    calls.append("const [searchParams] = useSearchParams();")
            elif type_name == "HttpClient":
                imports.artifact(HTTP_CLIENT_REF, "useHttpClient")
                calls.append(f"const {dep.name} = useHttpClient();")
            elif type_name == "ElementRef":
                name = element_refs.get(dep.name, dep.name)
                if name not in provided and name not in {r.name for r in body.refs}:
                    refs.append(RefDecl(name, "null", "HTMLElement"))
            elif type_name in self.mappings.UNSUPPORTED_PROVIDERS:
                calls.append(f"const {dep.name}: any = undefined; // {type_name} has no React equivalent")

        # Router hooks may also be needed by template handlers without an injected Router
        if "navigate" in rewriter.uses and "const navigate = useNavigate();" not in calls:
            imports.router("useNavigate")
            calls.append("const navigate = useNavigate();")

        body.hook_calls = calls + body.hook_calls
        body.refs = refs + body.refs
        if body.refs:
            imports.react("useRef")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _value(value: Optional[str], rewriter: BodyRewriter) -> Optional[str]:
        if value is None:
            return None
        return rewriter.rewrite(value)

    @staticmethod
    def _getter_value(body: str, rewriter: BodyRewriter) -> str:
        rewritten = rewriter.rewrite(body).strip()
        match = _RETURN_ONLY_RE.match(rewritten)
        if match and ";" not in match.group(1) and "\n" not in match.group(1).strip():
            return match.group(1).strip()
        return f"(() => {{\n{rewritten}\n}})()"
