"""
Rules for transforming Angular directives.

- Attribute directives that only touch their host element become hooks
  taking the host element ref and an options object
- Attribute directives that render markup become higher-order components
- Structural directives become components that decide whether to call
  their ``render`` prop
"""

from typing import List, Optional

from ...errors import DiagnosticSink
from ...ir.nodes import DirectiveIR
from ...ir.symbol_index import SymbolIndex
from ...models import HostBinding, Param
from ...utils.logger import get_logger
from ...utils.string_utils import callback_prop_name, to_camel_case
from ..body_rewriter import BodyRewriter
from ..imports import ImportCollector
from ..naming import component_name, directive_hoc_name, directive_hook_name, directive_ref
from ..target import (
    EffectDecl,
    HookArtifact,
    JsxAttr,
    JsxConditional,
    JsxElement,
    JsxExpression,
    PropField,
    ReactComponentArtifact,
    RefDecl,
)
from .component_rules import emitted_parameter
from .hooks_rules import HooksRules

logger = get_logger(__name__)

HOST = "hostRef"
NOOP = "() => undefined"


def host_binding_statement(binding: HostBinding, value: str) -> str:
    """DOM statement applying one ``@HostBinding``/``host`` entry to ``element``."""
    kind, _, rest = binding.target.partition(".")
    if kind == "class" and rest:
        return f"element.classList.toggle('{rest}', Boolean({value}));"
    if kind == "style" and rest:
        name, _, unit = rest.partition(".")
        prop = to_camel_case(name) if "-" in name else name
        if unit:
            return f"element.style.{prop} = {value} == null ? '' : `${{{value}}}{unit}`;"
        return f"element.style.{prop} = {value} ?? '';"
    if kind == "attr" and rest:
        return (f"if ({value} == null) element.removeAttribute('{rest}'); "
                f"else element.setAttribute('{rest}', String({value}));")
    return f"(element as any).{binding.target} = {value};"


def option_fields(node: DirectiveIR, texts: List[str]) -> List[PropField]:
    """Options accepted by a directive: every input and an ``onX`` callback per output."""
    fields = []
    for prop in node.inputs:
        local = prop.name if prop.public_name != prop.name else None
        fields.append(PropField(prop.public_name, prop.type or "any", optional=True, default=prop.default,
                                local=local))
    for output in node.outputs:
        payload = output.payload_type or "void"
        if payload in ("void", "undefined"):
            callback = "() => void"
        else:
            callback = f"({emitted_parameter(output.name, texts) or 'value'}: {payload}) => void"
        fields.append(PropField(callback_prop_name(output.public_name), callback, optional=True, default=NOOP))
    return fields


class DirectiveRules:
    """Builds the hook, HOC or component artifact of one directive."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.hooks = HooksRules(index, sink)

    def transform(self, node: DirectiveIR) -> list:
        """
        Transform a directive IR node.

        Args:
            node: Directive IR

        Returns:
            A single hook or component artifact
        """
        logger.debug(f"Applying directive rules to {node.name} ({node.directive_kind})")
        if node.directive_kind == "structural":
            return [self._structural(node)]
        if node.renders_markup:
            return [self._hoc(node)]
        return [self._hook(node)]

    # ------------------------------------------------------------------
    # Attribute directives
    # ------------------------------------------------------------------
    def _body(self, node: DirectiveIR, imports: ImportCollector):
        texts = [m.body for m in node.methods] + [e.body for e in node.effects]
        options = option_fields(node, texts)
        element_refs = {d.name: HOST for d in node.dependencies if d.type_name == "ElementRef"}
        outputs = {o.name: callback_prop_name(o.public_name) for o in node.outputs}
        context = self.hooks.rewrite_context(node, props=[i.name for i in node.inputs], outputs=outputs,
                                             element_refs=element_refs)
        rewriter = BodyRewriter(context, self.sink)
        body = self.hooks.transform(node, rewriter, imports)

        body.effects.extend(self.hooks.host_listener_effects(node.host_listeners, rewriter, HOST))
        bindings = self._host_bindings_effect(node, rewriter)
        if bindings is not None:
            body.effects.append(bindings)
        if body.effects:
            imports.react("useEffect")
        self.hooks.dependency_hooks(node, rewriter, imports, body, element_refs, provided=[HOST])
        return options, body

    def _host_bindings_effect(self, node: DirectiveIR, rewriter: BodyRewriter) -> Optional[EffectDecl]:
        if not node.host_bindings:
            return None
        statements = [f"const element = {HOST}.current;", "if (!element) return;"]
        for binding in node.host_bindings:
            value = rewriter.rewrite_expression(binding.member)
            statements.append(host_binding_statement(binding, value))
        return EffectDecl(body="\n".join(statements), deps=None, comment="host bindings")

    def _hook(self, node: DirectiveIR) -> HookArtifact:
        imports = ImportCollector()
        imports.carry(node.source_imports, node.source_path, self.index)
        imports.add("RefObject", module="react", type_only=True)
        options, body = self._body(node, imports)

        name = directive_hook_name(node.name)
        artifact = HookArtifact(
            directive_ref(node.name, node.source_path, node.directive_kind, node.renders_markup),
            name,
            params=[Param(HOST, "RefObject<HTMLElement | null>")],
            body=body,
            returns=[m.name for m in node.methods if m.public],
        )
        if options:
            artifact.options = options
            artifact.options_type = f"{component_name(node.name)}Options"
        artifact.imports = imports.specs()
        return artifact

    def _hoc(self, node: DirectiveIR) -> ReactComponentArtifact:
        imports = ImportCollector()
        imports.carry(node.source_imports, node.source_path, self.index)
        imports.add("ElementType", module="react", type_only=True)
        imports.react("useRef")
        options, body = self._body(node, imports)
        body.refs.insert(0, RefDecl(HOST, "null", "HTMLElement"))

        artifact = ReactComponentArtifact(
            directive_ref(node.name, node.source_path, node.directive_kind, node.renders_markup),
            directive_hoc_name(node.name),
            props=options,
            body=body,
            jsx=JsxElement("Wrapped", [JsxAttr("ref", HOST), JsxAttr("rest", "rest", spread=True)]),
            hoc=True,
            test=False,
        )
        artifact.imports = imports.specs()
        return artifact

    # ------------------------------------------------------------------
    # Structural directives
    # ------------------------------------------------------------------
    def _structural(self, node: DirectiveIR) -> ReactComponentArtifact:
        imports = ImportCollector()
        imports.add("ReactNode", module="react", type_only=True)

        props = []
        for prop in node.inputs:
            required = prop.public_name == node.attribute
            props.append(PropField(prop.public_name, prop.type or "any", optional=not required,
                                   default=prop.default))
        props.append(PropField("render", "() => ReactNode"))

        render = JsxExpression("render()")
        if node.condition is not None:
            jsx = JsxConditional(node.condition, render)
        else:
            jsx = render

        name = component_name(node.name)
        artifact = ReactComponentArtifact(
            directive_ref(node.name, node.source_path, node.directive_kind, node.renders_markup),
            name,
            props=props,
            jsx=jsx,
            test=False,
        )
        artifact.imports = imports.specs()
        return artifact
