"""
Rules for transforming Angular components to React function components.

- Inputs become props (aliases are destructured back to the field name)
- Outputs become required ``onX`` callback props
- ``<ng-content>`` adds an optional ``children`` prop
- Class members, lifecycle hooks and injected services are delegated to HooksRules
- The template is delegated to JSXRules
"""

import re
from typing import Iterable, List, Optional

from ...errors import DiagnosticCode, DiagnosticSink
from ...ir.nodes import ComponentIR, StubIR
from ...ir.symbol_index import SymbolIndex
from ...models import Container, ElementNode, EventBinding, InputProp, OutputProp, StructuralDirective
from ...utils.logger import get_logger
from ...utils.string_utils import callback_prop_name
from ..body_rewriter import BodyRewriter, find_closing
from ..imports import ImportCollector
from ..naming import component_name, component_ref, style_ref
from ..target import JsxAttr, JsxElement, PropField, ReactComponentArtifact, RefDecl, StyleArtifact
from .hooks_rules import HooksRules
from .jsx_rules import JSXRules

logger = get_logger(__name__)

_MEMBER_PATH_RE = re.compile(r"^[A-Za-z_$][\w$]*(?:\??\.[A-Za-z_$][\w$]*)*$")
_NOT_NAMES = {"this", "true", "false", "null", "undefined"}


def emitted_parameter(output: str, texts: Iterable[str]) -> Optional[str]:
    """
    Name the callback parameter after the first argument passed to ``output.emit()``.

    ``this.userSelected.emit(this.userId)`` -> ``userId``; ``emit(user.id)`` -> ``id``.
    """
    pattern = re.compile(rf"(?<![\w$])(?:this\.)?{re.escape(output)}\.emit\(")
    for text in texts:
        for match in pattern.finditer(text or ""):
            close = find_closing(text, match.end() - 1)
            if close < 0:
                continue
            argument = re.sub(r"^this\.", "", text[match.end():close].strip())
            if _MEMBER_PATH_RE.match(argument):
                name = re.split(r"\??\.", argument)[-1]
                if name not in _NOT_NAMES:
                    return name
    return None


def template_handlers(nodes) -> List[str]:
    """Every event handler text in a resolved template."""
    handlers = []
    for node in nodes:
        if isinstance(node, StructuralDirective):
            handlers.extend(template_handlers([node.child]))
        elif isinstance(node, (ElementNode, Container)):
            handlers.extend(a.handler for a in node.attributes if isinstance(a, EventBinding))
            handlers.extend(template_handlers(node.children))
    return handlers


def input_props(inputs: List[InputProp]) -> List[PropField]:
    props = []
    for prop in inputs:
        local = prop.name if prop.alias and prop.alias != prop.name else None
        props.append(PropField(
            name=prop.public_name,
            type=prop.type or "any",
            optional=prop.optional or prop.default is not None,
            default=prop.default,
            local=local,
        ))
    return props


def output_props(outputs: List[OutputProp], texts: List[str]) -> List[PropField]:
    props = []
    for output in outputs:
        payload = output.payload_type or "void"
        if payload in ("void", "undefined"):
            callback_type = "() => void"
        else:
            param = emitted_parameter(output.name, texts) or "value"
            callback_type = f"({param}: {payload}) => void"
        props.append(PropField(callback_prop_name(output.public_name), callback_type))
    return props


class ComponentRules:
    """Builds the React component artifact (and its stylesheet) of one component."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.hooks = HooksRules(index, sink)
        self.jsx = JSXRules(index, sink)

    def transform(self, node: ComponentIR) -> list:
        """
        Transform a component IR node.

        Args:
            node: Component IR

        Returns:
            The component artifact, followed by its stylesheet artifact when it has styles
        """
        logger.debug(f"Applying component rules to {node.name}")
        name = component_name(node.name)
        imports = ImportCollector()
        imports.carry(node.source_imports, node.source_path, self.index)

        texts = [m.body for m in node.methods] + [e.body for e in node.effects]
        texts += template_handlers(node.template)
        props = input_props(node.inputs) + output_props(node.outputs, texts)
        if node.projects_content:
            props.append(PropField("children", "ReactNode", optional=True))
            imports.add("ReactNode", module="react", type_only=True)

        element_refs = {d.name: d.name for d in node.dependencies if d.type_name == "ElementRef"}
        outputs = {o.name: callback_prop_name(o.public_name) for o in node.outputs}
        context = self.hooks.rewrite_context(node, props=[i.name for i in node.inputs], outputs=outputs,
                                             element_refs=element_refs)
        rewriter = BodyRewriter(context, self.sink)
        body = self.hooks.transform(node, rewriter, imports)

        artifact = ReactComponentArtifact(component_ref(node.name, node.source_path), name, props=props, body=body)
        if node.template_error is not None:
            artifact.stub_reason = f"Template could not be parsed: {node.template_error}"
            artifact.stub_source = node.template_source
        else:
            artifact.jsx, artifact.module_constants = self.jsx.transform(node, rewriter, imports, body)

        host = next(iter(element_refs.values()), None)
        if host is None and any(":" not in h.event for h in node.host_listeners):
            host = "hostRef"
            body.refs.append(RefDecl(host, "null", "HTMLElement"))
            imports.react("useRef")
        body.effects.extend(self.hooks.host_listener_effects(node.host_listeners, rewriter, host))
        if body.effects:
            imports.react("useEffect")
        if host is not None:
            self._attach_host_ref(node, artifact, host)

        self.hooks.dependency_hooks(node, rewriter, imports, body, element_refs)
        if body.memos:
            imports.react("useMemo")

        artifacts = [artifact]
        if node.styles:
            ref = style_ref(node.name, node.source_path)
            artifacts.append(StyleArtifact(ref, name, list(node.styles)))
            artifact.style_ref = ref
            imports.side_effect(ref)
        artifact.imports = imports.specs()
        return artifacts

    def _attach_host_ref(self, node: ComponentIR, artifact: ReactComponentArtifact, host: str) -> None:
        root = artifact.jsx
        if isinstance(root, JsxElement) and root.tag[:1].islower():
            if any(a.name == "ref" for a in root.attrs):
                self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                  f"Root element of {node.name} already carries a template reference; "
                                  f"the host element ref is not attached")
                return
            root.attrs.insert(0, JsxAttr("ref", host))
            return
        self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                          f"{node.name} uses its host element but its template has no single root element")

    def stub(self, node: StubIR) -> list:
        """Pass a component that could not be converted through as a props-compatible stub."""
        name = component_name(node.name)
        imports = ImportCollector()
        props = input_props(node.inputs) + output_props(node.outputs, [])
        artifact = ReactComponentArtifact(
            component_ref(node.name, node.source_path),
            name,
            props=props,
            stub_reason=node.reason,
            stub_source=node.source_text or None,
        )
        artifact.imports = imports.specs()
        return [artifact]
