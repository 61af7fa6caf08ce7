"""
Rules for transforming Angular templates to JSX.

- ``*ngIf`` becomes a conditional, ``*ngFor`` a keyed ``.map()``, ``[ngSwitch]``
  a chain of conditionals.
- Bindings become props; ``class``/``style`` bindings are merged into one
  ``className``/``style`` prop per element.
- Pipes become function calls; pure chains at component level are hoisted
  into a ``useMemo``, ``async`` into a ``useObservableValue`` hook call.
- Attribute directives are applied as hook calls on a ref or as
  higher-order components wrapping the element type.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from ...errors import DiagnosticCode, DiagnosticSink
from ...ir.nodes import ComponentIR
from ...ir.symbol_index import SymbolIndex
from ...models import (
    Attribute,
    AttributeDirective,
    BoundValue,
    Container,
    ElementNode,
    EventBinding,
    Interpolation,
    PipeCall,
    Position,
    PropertyBinding,
    StructuralDirective,
    TemplateRefVar,
    TextNode,
)
from ...parser.expressions import extract_identifiers, parse_bound_value
from ...utils.logger import get_logger
from ...utils.string_utils import to_camel_case, to_pascal_case
from ..body_rewriter import BodyRewriter
from ..imports import ImportCollector
from ..mappings import AngularReactMappings
from ..naming import (
    component_name,
    component_ref,
    directive_hoc_name,
    directive_hook_name,
    directive_ref,
    pipe_function_name,
    pipe_util_ref,
)
from ..support import ANGULAR_PIPES_REF, CLASS_NAMES_REF, OBSERVABLE_VALUE_REF
from ..target import (
    ConstDecl,
    FunctionBody,
    JsxAttr,
    JsxConditional,
    JsxElement,
    JsxExpression,
    JsxFragment,
    JsxMap,
    JsxNode,
    JsxRenderProp,
    JsxText,
    MemoDecl,
    RefDecl,
)
from .event_rules import EventRules, Handler, merge_handlers

logger = get_logger(__name__)

ELEMENT_TYPES = {
    "input": "HTMLInputElement",
    "textarea": "HTMLTextAreaElement",
    "select": "HTMLSelectElement",
    "button": "HTMLButtonElement",
    "form": "HTMLFormElement",
    "a": "HTMLAnchorElement",
    "img": "HTMLImageElement",
    "canvas": "HTMLCanvasElement",
    "video": "HTMLVideoElement",
    "audio": "HTMLAudioElement",
    "div": "HTMLDivElement",
    "span": "HTMLSpanElement",
    "ul": "HTMLUListElement",
    "table": "HTMLTableElement",
}
FORM_CONTROLS = {"input", "textarea", "select"}
GLOBAL_NAMES = {
    "Math", "JSON", "Date", "Number", "String", "Object", "Array", "Boolean", "console",
    "window", "document", "parseInt", "parseFloat", "isNaN", "undefined", "null", "true", "false",
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_ACCESS_PATH_RE = re.compile(r"^[\w$.]+")
_NULL = JsxExpression("null")


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _object_key(name: str) -> str:
    return name if _IDENTIFIER_RE.match(name) else _quote(name)


def _style_key(name: str) -> str:
    if name.startswith("--"):
        return _quote(name)
    return to_camel_case(name) if "-" in name else name


@dataclass
class _Scope:
    """Template locals visible at a point of the template and how deep in regions it sits."""

    locals: Dict[str, str] = field(default_factory=dict)
    depth: int = 0
    in_loop: bool = False

    def child(self, local_names: Optional[Dict[str, str]] = None, loop: bool = False) -> "_Scope":
        merged = dict(self.locals)
        merged.update(local_names or {})
        return _Scope(merged, self.depth + 1, self.in_loop or loop)


@dataclass
class _ElementAttrs:
    """Props of one JSX element while they are being collected."""

    ref: Optional[str] = None
    attrs: List[JsxAttr] = field(default_factory=list)
    classes: List[str] = field(default_factory=list)
    class_toggles: List[Tuple[str, str]] = field(default_factory=list)
    class_exprs: List[str] = field(default_factory=list)
    styles: List[Tuple[str, str]] = field(default_factory=list)
    style_spreads: List[str] = field(default_factory=list)
    handlers: Dict[str, List[Handler]] = field(default_factory=dict)

    def handler(self, handler: Optional[Handler]) -> None:
        if handler is not None:
            self.handlers.setdefault(handler.prop, []).append(handler)


class JSXRules:
    """Rules for Angular template to JSX transformations."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.mappings = AngularReactMappings()
        self.events = EventRules(sink)

    def transform(self, node: ComponentIR, rewriter: BodyRewriter, imports: ImportCollector,
                  body: FunctionBody) -> Tuple[Optional[JsxNode], List[ConstDecl]]:
        """
        Convert a component template.

        Args:
            node: Component IR with a resolved template
            rewriter: Rewriter of the component body
            imports: Imports of the component module
            body: Component body; hoisted refs, memos and hook calls are added to it

        Returns:
            (root JSX node or None for an empty template, module-level constants)
        """
        logger.debug(f"Applying JSX rules to {node.name}")
        render = _TemplateRender(self, node, rewriter, imports, body)
        return render.run(), render.module_constants


class _TemplateRender:
    """State of one template conversion."""

    def __init__(self, rules: JSXRules, node: ComponentIR, rewriter: BodyRewriter, imports: ImportCollector,
                 body: FunctionBody):
        self.rules = rules
        self.sink = rules.sink
        self.index = rules.index
        self.mappings = rules.mappings
        self.node = node
        self.rewriter = rewriter
        self.imports = imports
        self.body = body
        self.module_constants: List[ConstDecl] = []
        self.element_refs: Dict[str, str] = {}
        self.taken = set(rewriter.context.members) | set(rewriter.context.outputs.values())
        self.taken.update(r.name for r in body.refs)
        self._async_values: Dict[str, str] = {}
        self._memos: Dict[str, str] = {}
        self._slot_warned = False

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------
    def run(self) -> Optional[JsxNode]:
        scope = _Scope(self._template_ref_locals())
        children = self._nodes(self.node.template, scope)
        if not children:
            return None
        return self._fragment(children)

    def _template_ref_locals(self) -> Dict[str, str]:
        local_names = {}
        for name, ref in self.node.template_refs.items():
            if ref.kind == "template":
                continue
            if ref.kind == "component":
                self._warn(f"Template reference #{name} on a component has no instance to refer to in React")
                local_names[name] = "undefined"
                continue
            var = self.node.view_children.get(name)
            if var is None:
                var = self._unique(name if name not in self.taken else f"{name}Ref")
                tag = ref.node.tag if isinstance(ref.node, ElementNode) else ""
                self.body.refs.append(RefDecl(var, "null", ELEMENT_TYPES.get(tag.lower(), "HTMLElement")))
                self.imports.react("useRef")
            self.element_refs[name] = var
            local_names[name] = f"{var}.current!"
        return local_names

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    def _nodes(self, nodes, scope: _Scope) -> List[JsxNode]:
        result = []
        for child in nodes:
            converted = self._node(child, scope)
            if converted is not None:
                result.append(converted)
        return result

    def _node(self, node, scope: _Scope) -> Optional[JsxNode]:
        if isinstance(node, TextNode):
            return JsxText(node.text)
        if isinstance(node, Interpolation):
            return JsxExpression(self._bound(node.value, scope, position=node.position))
        if isinstance(node, ElementNode):
            return self._element(node, scope)
        if isinstance(node, Container):
            return self._container(node, scope)
        if isinstance(node, StructuralDirective):
            return self._structural(node, scope)
        return None

    def _fragment(self, children: List[JsxNode]) -> JsxNode:
        if not children:
            return _NULL
        if len(children) == 1:
            return children[0]
        return JsxFragment(children)

    def _region(self, node, scope: _Scope) -> JsxNode:
        """Content governed by a structural directive."""
        if isinstance(node, Container) and node.kind in ("ng-container", "ng-template"):
            return self._fragment(self._nodes(node.children, scope))
        converted = self._node(node, scope)
        return converted if converted is not None else _NULL

    def _container(self, node: Container, scope: _Scope) -> Optional[JsxNode]:
        if node.kind == "ng-content":
            if any(isinstance(a, Attribute) and a.name == "select" for a in node.attributes) and not self._slot_warned:
                self._slot_warned = True
                self._warn("Named content slots (<ng-content select>) are merged into children", node.position)
            return JsxExpression("children")
        if node.kind == "ng-template":
            return None
        outlet = next((a for a in node.attributes
                       if isinstance(a, PropertyBinding) and a.name == "ngTemplateOutlet"), None)
        if outlet is not None:
            return self._template_content(outlet.expression.strip(), scope, node.position)
        return self._fragment(self._nodes(node.children, scope))

    def _template_content(self, name: Optional[str], scope: _Scope, position: Position) -> Optional[JsxNode]:
        ref = self.node.template_refs.get(name or "")
        if ref is None or ref.kind != "template":
            self.sink.warning(DiagnosticCode.UNRESOLVED_REFERENCE,
                              f"Template reference '{name}' does not name an <ng-template>",
                              line=position.line, column=position.column)
            return None
        return self._fragment(self._nodes(ref.node.children, scope))

    # ------------------------------------------------------------------
    # Structural directives
    # ------------------------------------------------------------------
    def _structural(self, node: StructuralDirective, scope: _Scope) -> Optional[JsxNode]:
        if node.directive is not None:
            return self._custom_structural(node, scope)
        if node.name == "ngIf":
            return self._ng_if(node, scope)
        if node.name in ("ngFor", "ngForOf"):
            return self._ng_for(node, scope)
        if node.name == "ngTemplateOutlet":
            if node.syntax.extra:
                self._warn("ngTemplateOutlet context is not converted", node.position)
            return self._template_content(node.syntax.expression, scope, node.position)
        if node.name in ("ngSwitchCase", "ngSwitchDefault"):
            self._warn(f"*{node.name} outside of an [ngSwitch] element", node.position)
        return self._region(node.child, scope)

    def _ng_if(self, node: StructuralDirective, scope: _Scope) -> JsxNode:
        syntax = node.syntax
        value = parse_bound_value(syntax.expression, node.position)
        condition = self._bound(value, scope, preferred=syntax.alias, position=node.position)

        local_names = {}
        if syntax.alias:
            local_names[syntax.alias] = condition if _IDENTIFIER_RE.match(condition) else f"({condition})"
        inner = scope.child(local_names)

        if syntax.then_ref:
            then = self._template_content(syntax.then_ref, inner, node.position)
        else:
            then = self._region(node.child, inner)
        otherwise = None
        if syntax.else_ref:
            otherwise = self._template_content(syntax.else_ref, scope.child(), node.position)
        return JsxConditional(condition, then or _NULL, otherwise)

    def _ng_for(self, node: StructuralDirective, scope: _Scope) -> JsxNode:
        syntax = node.syntax
        value = parse_bound_value(syntax.expression, node.position)
        iterable = self._bound(value, scope, position=node.position)
        item = syntax.item or "item"
        index = next((local for local, source in syntax.locals.items() if source == "index"), "index")

        length = f"{iterable}.length" if _ACCESS_PATH_RE.fullmatch(iterable) else f"({iterable}).length"
        derived = {
            "first": f"({index} === 0)",
            "last": f"({index} === {length} - 1)",
            "even": f"({index} % 2 === 0)",
            "odd": f"({index} % 2 === 1)",
            "count": length,
        }
        local_names = {item: item, index: index}
        for local, source in syntax.locals.items():
            if source == "index":
                continue
            if source in derived:
                local_names[local] = derived[source]
            else:
                self._warn(f"*ngFor local '{source}' is not supported", node.position)
        inner = scope.child(local_names, loop=True)

        if syntax.track_by:
            key = self._expr(f"{syntax.track_by}({index}, {item})", inner)
        else:
            key = index
            self.sink.warning(DiagnosticCode.KEY_FALLBACK,
                              f"*ngFor over '{syntax.expression}' has no trackBy; items are keyed by index",
                              line=node.position.line, column=node.position.column)
        body = self._with_key(self._region(node.child, inner), key)
        return JsxMap(iterable, item, index, body)

    def _with_key(self, body: JsxNode, key: str) -> JsxNode:
        if isinstance(body, (JsxElement, JsxRenderProp)):
            body.attrs.insert(0, JsxAttr("key", key))
            return body
        if isinstance(body, JsxFragment):
            self.imports.react("Fragment")
            return replace(body, key=key)
        self.imports.react("Fragment")
        return JsxFragment([body], key=key)

    def _switch_children(self, switch: str, children, scope: _Scope) -> List[JsxNode]:
        cases: List[Tuple[str, JsxNode]] = []
        default: Optional[JsxNode] = None
        others: List[JsxNode] = []
        for child in children:
            if isinstance(child, StructuralDirective) and child.name == "ngSwitchCase":
                value = parse_bound_value(child.syntax.expression, child.position)
                case = self._bound(value, scope, position=child.position)
                cases.append((f"{switch} === {case}", self._region(child.child, scope.child())))
            elif isinstance(child, StructuralDirective) and child.name == "ngSwitchDefault":
                default = self._region(child.child, scope.child())
            else:
                converted = self._node(child, scope)
                if converted is not None:
                    others.append(converted)
        chain = default
        for condition, region in reversed(cases):
            chain = JsxConditional(condition, region, chain)
        return others + ([chain] if chain is not None else [])

    def _custom_structural(self, node: StructuralDirective, scope: _Scope) -> JsxNode:
        symbol = self.index.lookup(node.directive)
        decl = symbol.declaration
        name = component_name(decl.name)
        self.imports.artifact(directive_ref(decl.name, symbol.unit, decl.directive_kind, decl.renders_markup),
                              name, default=True)
        attrs = []
        if node.syntax.expression:
            value = parse_bound_value(node.syntax.expression, node.position)
            attrs.append(JsxAttr(node.name, self._bound(value, scope, position=node.position)))
        for key, expression in node.syntax.extra.items():
            attrs.append(JsxAttr(node.name + key[:1].upper() + key[1:], self._expr(expression, scope)))
        if node.syntax.item or node.syntax.locals:
            self._warn(f"Template context variables of *{node.name} are not converted", node.position)
        return JsxRenderProp(name, attrs, [], self._region(node.child, scope.child()))

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------
    def _element(self, node: ElementNode, scope: _Scope) -> JsxNode:
        component_symbol = self.index.lookup(node.component) if node.component else None
        is_component = component_symbol is not None
        tag = node.tag
        if is_component:
            tag = component_name(component_symbol.name)
            self.imports.artifact(component_ref(component_symbol.name, component_symbol.unit), tag, default=True)
        elif tag == "router-outlet":
            tag = "Outlet"
            self.imports.router("Outlet")

        collected = _ElementAttrs()
        directives = self._directives(node)
        consumed = {name for _, names in directives for name in names}
        form_value = self._form_value(node) if not is_component else None
        link = None
        active_class = None
        switch = None

        for attr in node.attributes:
            if isinstance(attr, AttributeDirective) and attr.directive:
                continue
            name = getattr(attr, "name", None)
            if name in consumed and not isinstance(attr, TemplateRefVar):
                continue

            if isinstance(attr, Attribute):
                if name == "routerLink":
                    link = _quote(attr.value or "")
                elif name == "routerLinkActive":
                    active_class = attr.value
                else:
                    self._static_attribute(attr, collected, is_component)
            elif isinstance(attr, PropertyBinding):
                if name == "ngSwitch":
                    switch = self._bound(attr.value, scope, position=attr.position)
                elif name == "routerLink":
                    link = self._link_target(self._bound(attr.value, scope, position=attr.position))
                else:
                    self._property(attr, collected, scope, is_component, form_value)
            elif isinstance(attr, EventBinding):
                collected.handler(self._event(attr, scope, is_component, form_value))
            elif isinstance(attr, TemplateRefVar):
                if attr.name in self.element_refs:
                    if scope.in_loop:
                        self._warn(f"Template reference #{attr.name} inside *ngFor refers to the last item only",
                                   attr.position)
                    collected.ref = self.element_refs[attr.name]
            elif isinstance(attr, AttributeDirective):
                self._builtin_directive(attr, collected, scope)

        tag = self._link(tag, link, active_class, collected, is_component)
        tag = self._apply_directives(node, tag, is_component, directives, collected, scope)

        if switch is not None:
            children = self._switch_children(switch, node.children, scope)
        else:
            children = self._nodes(node.children, scope)
        return JsxElement(tag, self._finish_attrs(collected, active_class if tag == "NavLink" else None), children)

    def _form_value(self, node: ElementNode) -> Optional[str]:
        if node.tag.lower() not in FORM_CONTROLS:
            return None
        for attr in node.attributes:
            if isinstance(attr, Attribute) and attr.name == "type" and attr.value in ("checkbox", "radio"):
                return "checked"
        return "value"

    def _static_attribute(self, attr: Attribute, collected: _ElementAttrs, is_component: bool) -> None:
        name = attr.name
        if name == "i18n" or name.startswith("i18n-"):
            return
        if attr.value and "{{" in attr.value:
            self._warn(f"Piped interpolation in attribute '{name}' is copied as text", attr.position)
        if name in ("class", "style") and is_component:
            self._warn(f"Host {name} on a component element is not forwarded", attr.position)
            return
        if name == "class":
            collected.classes.extend((attr.value or "").split())
            return
        if name == "style":
            for declaration in (attr.value or "").split(";"):
                key, sep, value = declaration.partition(":")
                if sep and key.strip():
                    collected.styles.append((_style_key(key.strip()), _quote(value.strip())))
            return
        prop = name if is_component else self.mappings.get_jsx_attr_mapping(name)
        if attr.value is None or (attr.value == "" and not is_component):
            collected.attrs.append(JsxAttr(prop, None))
        else:
            collected.attrs.append(JsxAttr(prop, attr.value, expression=False))

    def _property(self, attr: PropertyBinding, collected: _ElementAttrs, scope: _Scope, is_component: bool,
                  form_value: Optional[str]) -> None:
        name = attr.name
        code = self._bound(attr.value, scope, position=attr.position)

        if name == "ngModel":
            if form_value:
                collected.attrs.append(JsxAttr(form_value, code))
            else:
                collected.attrs.append(JsxAttr("value", code))
            return
        if is_component:
            collected.attrs.append(JsxAttr(name, code))
            return

        if name.startswith("class."):
            collected.class_toggles.append((name[len("class."):], code))
        elif name in ("class", "className"):
            collected.class_exprs.append(code)
        elif name.startswith("style."):
            parts = name.split(".")
            key = _style_key(parts[1])
            if len(parts) > 2:
                code = f"`${{{code}}}{parts[2].replace('percent', '%')}`"
            collected.styles.append((key, code))
        elif name == "style":
            collected.style_spreads.append(code)
        elif name.startswith("attr."):
            collected.attrs.append(JsxAttr(self.mappings.get_jsx_attr_mapping(name[len("attr."):]), code))
        elif name == "innerHTML":
            collected.attrs.append(JsxAttr("dangerouslySetInnerHTML", f"{{ __html: {code} }}"))
        else:
            collected.attrs.append(JsxAttr(self.mappings.get_jsx_attr_mapping(name), code))

    def _event(self, binding: EventBinding, scope: _Scope, is_component: bool,
               form_value: Optional[str]) -> Optional[Handler]:
        if binding.name == "ngModelChange":
            if is_component:
                binding = replace(binding, name="valueChange", two_way=True)
            elif form_value:
                binding = replace(binding, two_way=True)
            return self.rules.events.transform(binding, self.rewriter, scope.locals, is_component, form_value)
        return self.rules.events.transform(binding, self.rewriter, scope.locals, is_component)

    def _builtin_directive(self, attr: AttributeDirective, collected: _ElementAttrs, scope: _Scope) -> None:
        if attr.name == "ngClass":
            if attr.bound:
                collected.class_exprs.append(self._bound(attr.value, scope, position=attr.position))
            else:
                collected.classes.extend((attr.expression or "").split())
        elif attr.name == "ngStyle":
            if attr.bound:
                collected.style_spreads.append(self._bound(attr.value, scope, position=attr.position))
            else:
                self._warn("Static ngStyle is not converted", attr.position)

    def _link_target(self, code: str) -> str:
        return f"{code}.join('/')" if code.startswith("[") else code

    def _link(self, tag: str, link: Optional[str], active_class: Optional[str], collected: _ElementAttrs,
              is_component: bool) -> str:
        if link is None:
            return tag
        if tag == "a":
            component = "NavLink" if active_class else "Link"
            self.imports.router(component)
            collected.attrs.insert(0, JsxAttr("to", link))
            return component
        if is_component:
            self._warn(f"routerLink on component <{tag}> is not converted")
            return tag
        self.rewriter.uses.add("navigate")
        collected.handler(Handler("onClick", "event", [f"navigate({link})"]))
        return tag

    # ------------------------------------------------------------------
    # Attribute directives
    # ------------------------------------------------------------------
    def _directives(self, node: ElementNode):
        """Custom attribute directives on ``node`` and the attribute names each consumes."""
        result = []
        claimed = set()
        for attr in node.attributes:
            if not isinstance(attr, AttributeDirective) or not attr.directive:
                continue
            symbol = self.index.lookup(attr.directive)
            if symbol is None:
                continue
            decl = symbol.declaration
            names = {i.public_name for i in decl.inputs} | {o.public_name for o in decl.outputs}
            names -= claimed
            claimed |= names
            result.append(((attr, symbol), names))
        return result

    def _directive_options(self, node: ElementNode, attr: AttributeDirective, decl, names,
                           scope: _Scope) -> List[Tuple[str, str]]:
        options = []
        inputs = {i.public_name for i in decl.inputs}
        outputs = {o.public_name for o in decl.outputs}
        if attr.name in inputs:
            if attr.bound:
                options.append((attr.name, self._bound(attr.value, scope, position=attr.position)))
            elif attr.expression:
                options.append((attr.name, _quote(attr.expression)))
        for other in node.attributes:
            name = getattr(other, "name", None)
            if name not in names or other is attr:
                continue
            if isinstance(other, Attribute) and name in inputs:
                options.append((name, _quote(other.value) if other.value is not None else "true"))
            elif isinstance(other, PropertyBinding) and name in inputs:
                options.append((name, self._bound(other.value, scope, position=other.position)))
            elif isinstance(other, EventBinding) and name in outputs:
                handler = self.rules.events.transform(other, self.rewriter, scope.locals, component=True)
                if handler is not None:
                    options.append((handler.prop, handler.render()))
        return options

    def _apply_directives(self, node: ElementNode, tag: str, is_component: bool, directives,
                          collected: _ElementAttrs, scope: _Scope) -> str:
        wrappers = []
        for (attr, symbol), names in directives:
            decl = symbol.declaration
            if decl.directive_kind == "structural":
                self._warn(f"Structural directive {decl.name} used without '*'", attr.position)
                continue
            options = self._directive_options(node, attr, decl, names, scope)
            ref = directive_ref(decl.name, symbol.unit, decl.directive_kind, decl.renders_markup)

            if decl.renders_markup:
                hoc = directive_hoc_name(decl.name)
                self.imports.artifact(ref, hoc, default=True)
                wrappers.append((decl, hoc))
                collected.attrs.extend(JsxAttr(key, value) for key, value in options)
                continue

            if is_component:
                self._warn(f"Directive {decl.name} on component <{node.tag}> needs a DOM element", attr.position)
                continue
            if scope.in_loop:
                self._warn(f"Directive {decl.name} inside *ngFor is not applied", attr.position)
                continue
            hook = directive_hook_name(decl.name)
            self.imports.artifact(ref, hook)
            if collected.ref is None:
                collected.ref = self._unique(f"{to_camel_case(component_name(decl.name))}Ref")
                self.body.refs.append(RefDecl(collected.ref, "null", ELEMENT_TYPES.get(tag.lower(), "HTMLElement")))
                self.imports.react("useRef")
            if options:
                rendered = ", ".join(f"{_object_key(k)}: {v}" for k, v in options)
                self.body.hook_uses.append(f"{hook}({collected.ref}, {{ {rendered} }});")
            else:
                self.body.hook_uses.append(f"{hook}({collected.ref});")

        if not wrappers:
            return tag
        base = tag if is_component or tag[:1].isupper() else _quote(tag)
        value = base
        for _, hoc in wrappers:
            value = f"{hoc}({value})"
        prefix = tag if tag[:1].isupper() else to_pascal_case(tag)
        name = f"{prefix}With{''.join(component_name(d.name) for d, _ in wrappers)}"
        if all(c.name != name for c in self.module_constants):
            self.module_constants.append(ConstDecl(name, value))
        return name

    # ------------------------------------------------------------------
    # Attribute assembly
    # ------------------------------------------------------------------
    def _finish_attrs(self, collected: _ElementAttrs, active_class: Optional[str]) -> List[JsxAttr]:
        attrs: List[JsxAttr] = []
        if collected.ref:
            attrs.append(JsxAttr("ref", collected.ref))
        attrs.extend(collected.attrs)

        class_attr = self._class_attr(collected, active_class)
        if class_attr is not None:
            attrs.append(class_attr)
        if collected.styles or collected.style_spreads:
            entries = [f"...{s}" for s in collected.style_spreads]
            entries += [f"{k}: {v}" for k, v in collected.styles]
            attrs.append(JsxAttr("style", f"{{ {', '.join(entries)} }}"))
        for prop, handlers in collected.handlers.items():
            attrs.append(JsxAttr(prop, merge_handlers(handlers)))
        return attrs

    def _class_attr(self, collected: _ElementAttrs, active_class: Optional[str]) -> Optional[JsxAttr]:
        parts = []
        if collected.classes:
            parts.append(_quote(" ".join(collected.classes)))
        toggles = list(collected.class_toggles)
        if active_class:
            toggles.extend((c, "isActive") for c in active_class.split())
        if toggles:
            parts.append("{ " + ", ".join(f"{_object_key(k)}: {v}" for k, v in toggles) + " }")
        parts.extend(collected.class_exprs)
        if not parts:
            return None
        if active_class:
            self.imports.artifact(CLASS_NAMES_REF, "classNames")
            return JsxAttr("className", f"({{ isActive }}) => classNames({', '.join(parts)})")
        if not toggles and not collected.class_exprs:
            return JsxAttr("className", " ".join(collected.classes), expression=False)
        self.imports.artifact(CLASS_NAMES_REF, "classNames")
        return JsxAttr("className", f"classNames({', '.join(parts)})")

    # ------------------------------------------------------------------
    # Expressions and pipes
    # ------------------------------------------------------------------
    def _expr(self, text: str, scope: _Scope) -> str:
        return self.rewriter.rewrite_expression(text, scope.locals)

    def _bound(self, value: BoundValue, scope: _Scope, preferred: Optional[str] = None,
               position: Optional[Position] = None) -> str:
        if not isinstance(value, PipeCall):
            return self._expr(value, scope)

        chain = value.chain()
        code = self._expr(value.base, scope)
        sources = [code]
        pure = True
        last_function = None
        for i, call in enumerate(chain):
            last = i == len(chain) - 1
            args = [self._expr(a, scope) for a in call.args]
            if call.name == self.mappings.ASYNC_PIPE:
                code = self._async(code, scope, preferred if last else None, position)
                sources = [code]
                continue
            function, call_pure = self._pipe_function(call.name)
            pure = pure and call_pure
            last_function = function
            sources.extend(args)
            code = f"{function}({', '.join([code] + args)})"

        if last_function is not None and pure and scope.depth == 0:
            return self._memo(code, last_function, sources, preferred)
        return code

    def _pipe_function(self, pipe_name: str) -> Tuple[str, bool]:
        builtin = self.mappings.get_pipe_function(pipe_name)
        if builtin is not None:
            self.imports.artifact(ANGULAR_PIPES_REF, builtin)
            return builtin, True
        symbol = self.index.pipe(pipe_name)
        if symbol is None:
            return pipe_function_name(pipe_name), False
        decl = symbol.declaration
        function = pipe_function_name(decl.pipe_name)
        self.imports.artifact(pipe_util_ref(decl.pipe_name, symbol.unit), function)
        return function, decl.pure

    def _async(self, code: str, scope: _Scope, preferred: Optional[str], position: Optional[Position]) -> str:
        template_locals = {k for k, v in scope.locals.items() if not v.endswith(".current!")}
        if any(name in template_locals for name in extract_identifiers(code)):
            self._warn("async pipe over a template-local value is not converted", position)
            return code
        if code in self._async_values:
            return self._async_values[code]
        match = _ACCESS_PATH_RE.match(code)
        base = match.group(0).split(".")[-1].rstrip("$") if match else ""
        name = self._unique(preferred or base or "asyncValue")
        self._async_values[code] = name
        self.body.derived.append(ConstDecl(name, f"useObservableValue({code})"))
        self.imports.artifact(OBSERVABLE_VALUE_REF, "useObservableValue")
        return name

    def _memo(self, code: str, function: str, sources: List[str], preferred: Optional[str]) -> str:
        if code in self._memos:
            return self._memos[code]
        deps: List[str] = []
        for source in sources:
            for name in extract_identifiers(source):
                if name not in deps and name not in GLOBAL_NAMES:
                    deps.append(name)
        name = self._unique(preferred or f"{function}Value")
        self._memos[code] = name
        self.body.memos.append(MemoDecl(name, code, deps))
        self.imports.react("useMemo")
        return name

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _unique(self, base: str) -> str:
        name = base
        counter = 2
        while name in self.taken:
            name = f"{base}{counter}"
            counter += 1
        self.taken.add(name)
        return name

    def _warn(self, message: str, position: Optional[Position] = None) -> None:
        location = {"line": position.line, "column": position.column} if position is not None else {}
        self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT, message, **location)
