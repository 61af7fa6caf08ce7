"""
IR builder.

Merges a declaration with its parsed template into one framework-neutral IR
node, resolving dependencies, pipes, components and directives against the
sealed :class:`SymbolIndex`. Unresolvable names become diagnostics, never
exceptions.
"""

import re
from dataclasses import replace
from typing import Dict, List, Optional, Set, Tuple

from ..errors import DiagnosticCode, DiagnosticSink, TemplateError
from ..models import (
    Attribute,
    AttributeDirective,
    ComponentDecl,
    Container,
    DirectiveDecl,
    ElementNode,
    EventBinding,
    FieldDecl,
    Interpolation,
    MethodDecl,
    ModuleDecl,
    PipeCall,
    PipeDecl,
    PropertyBinding,
    RouteConfigDecl,
    RouteDecl,
    ServiceDecl,
    StructuralDirective,
    TemplateRefVar,
    TwoWayBinding,
    UnitKind,
)
from ..parser.expressions import parse_bound_value, split_assignment, split_statements
from ..transformer.mappings import AngularReactMappings
from ..utils.logger import get_logger
from .nodes import (
    ComponentIR,
    ConstantIR,
    DependencyIR,
    DependencyKind,
    DirectiveIR,
    EffectIR,
    EffectTrigger,
    GetterIR,
    MethodIR,
    ModuleIR,
    PipeIR,
    RefCell,
    RouteTableIR,
    ServiceIR,
    StateCell,
    StubIR,
    TemplateRef,
)
from .symbol_index import SymbolIndex, parse_selector

logger = get_logger(__name__)

VIEW_QUERIES = ("ViewChild", "ViewChildren", "ContentChild", "ContentChildren")
MUTATING_METHODS = ("push", "pop", "shift", "unshift", "splice", "sort", "reverse")

_SUBJECT_RE = re.compile(r"^new\s+(BehaviorSubject|ReplaySubject|Subject)\s*(?:<(.+)>)?\s*\(([\s\S]*)\)$")
_THIS_ASSIGN_RE = re.compile(r"^this\.([\w$]+)\s*=(?!=)\s*([\s\S]*?);?$")
_SUBSCRIBE_ASSIGN_RE = re.compile(r"^this\.([\w$]+)\s*=(?!=)[\s\S]*\.subscribe\(")
_LOCAL_SUBSCRIBE_RE = re.compile(r"^(?:const|let|var)\s+([\w$]+)\s*=[\s\S]*\.subscribe\(")
_GENERIC_RE = re.compile(r"<.*>$", re.S)
_EMBED_IF_RE = re.compile(r"if\s*\(([^{};]+)\)\s*\{[^{}]*createEmbeddedView", re.S)


def _base_type(type_name: str) -> str:
    return _GENERIC_RE.sub("", type_name or "").strip()


def _mutation_re(name: str) -> re.Pattern:
    member = re.escape(name)
    return re.compile(
        rf"this\.{member}\s*(?:[-+*/%]|\?\?|\|\||&&)?=(?!=)"
        rf"|this\.{member}\s*(?:\+\+|--)"
        rf"|(?:\+\+|--)\s*this\.{member}\b"
        rf"|this\.{member}(?:\.[\w$]+|\[[^\]]*\])+\s*=(?!=)"
        rf"|this\.{member}\.(?:{'|'.join(MUTATING_METHODS)})\("
    )


def _base_identifier(expression: str) -> Optional[str]:
    match = re.match(r"\s*([A-Za-z_$][\w$]*)", expression or "")
    return match.group(1) if match else None


class IRBuilder:
    """Builds the IR node of one declaration against a sealed symbol index."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.mappings = AngularReactMappings()

    def build(self, decl):
        builders = {
            ComponentDecl: self._build_component,
            ServiceDecl: self._build_service,
            PipeDecl: self._build_pipe,
            DirectiveDecl: self._build_directive,
            ModuleDecl: self._build_module,
            RouteConfigDecl: self._build_route_table,
        }
        node = builders[type(decl)](decl)
        logger.debug(f"Built {type(node).__name__} for {decl.name}")
        return node

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------
    def _build_component(self, decl: ComponentDecl):
        for path in decl.missing_resources:
            self.sink.warning(DiagnosticCode.UNRESOLVED_REFERENCE,
                              f"Resource '{path}' referenced by {decl.name} was not found")

        review = self._manual_review_reason(decl)
        if review:
            self.sink.warning(DiagnosticCode.MANUAL_REVIEW_REQUIRED, review)
            return StubIR(decl.name, decl.source_path, UnitKind.COMPONENT, review,
                          inputs=list(decl.inputs), outputs=list(decl.outputs))

        node = ComponentIR(
            name=decl.name,
            source_path=decl.source_path,
            selector=decl.selector,
            inputs=list(decl.inputs),
            outputs=list(decl.outputs),
            host_listeners=list(decl.host_listeners),
            styles=list(decl.styles),
            source_imports=list(decl.source_imports),
        )

        scope = _TemplateScope()
        if isinstance(decl.template_error, TemplateError):
            self.sink.record(decl.template_error)
            node.template_error = decl.template_error.message
            node.template_source = decl.template
        else:
            node.template = self._resolve_nodes(decl.template_nodes, scope)
            node.template_refs = scope.refs
            node.projects_content = scope.projects_content

        node.dependencies = self._dependencies(decl)
        self._classify_fields(decl, node, scope.mutated)
        for name in node.template_refs:
            for f in decl.fields:
                query = _view_query(f)
                if query and query.first_arg() == name:
                    node.view_children[name] = f.name
        self._collect_methods(decl, node, skip={inp.name for inp in decl.inputs if inp.is_setter})
        node.effects = self._lifecycle_effects(decl, node)
        return node

    def _manual_review_reason(self, decl) -> Optional[str]:
        """ngOnChanges combined with hand-written input diffing cannot be mapped reliably."""
        if "ngOnChanges" not in decl.lifecycle_hooks:
            return None
        diffing = []
        if "ngDoCheck" in decl.lifecycle_hooks:
            diffing.append("ngDoCheck")
        diffing.extend(f"@Input() set {i.name}" for i in getattr(decl, "inputs", []) if i.is_setter)
        diffing.extend(d.type_name for d in decl.dependencies
                       if _base_type(d.type_name) in self.mappings.DIFFER_PROVIDERS)
        if not diffing:
            return None
        return (f"{decl.name} combines ngOnChanges with manual input diffing "
                f"({', '.join(diffing)}); generated as a stub for manual review")

    # ------------------------------------------------------------------
    # Template resolution
    # ------------------------------------------------------------------
    def _resolve_nodes(self, nodes, scope: "_TemplateScope") -> list:
        return [self._resolve_node(n, scope) for n in nodes]

    def _resolve_node(self, node, scope: "_TemplateScope"):
        if isinstance(node, ElementNode):
            component = None
            symbol = self.index.element(node.tag)
            if symbol is not None and symbol.kind == UnitKind.COMPONENT:
                component = symbol.name
            elif "-" in node.tag and node.tag not in self.mappings.BUILTIN_ELEMENTS:
                self._unresolved(f"Unknown element <{node.tag}>", node.position)
            attributes = self._resolve_attributes(node.attributes, scope)
            resolved = replace(node, attributes=attributes, component=component,
                               children=self._resolve_nodes(node.children, scope))
            self._register_refs(resolved, attributes, "component" if component else "element", scope)
            return resolved

        if isinstance(node, Container):
            if node.kind == "ng-content":
                scope.projects_content = True
            attributes = self._resolve_attributes(node.attributes, scope)
            resolved = replace(node, attributes=attributes, children=self._resolve_nodes(node.children, scope))
            self._register_refs(resolved, attributes, "template" if node.kind == "ng-template" else "element",
                                scope)
            return resolved

        if isinstance(node, StructuralDirective):
            directive = None
            if node.name not in self.mappings.BUILTIN_DIRECTIVES:
                symbol = self.index.attribute(node.name)
                if symbol is not None and symbol.kind == UnitKind.DIRECTIVE:
                    directive = symbol.name
                else:
                    self._unresolved(f"Unknown structural directive *{node.name}", node.position)
            self._check_pipes_in_text(node.syntax.expression, node.position)
            return replace(node, directive=directive, child=self._resolve_node(node.child, scope))

        if isinstance(node, Interpolation):
            self._check_pipes(node.value, node.position)
        return node

    def _resolve_attributes(self, attributes, scope: "_TemplateScope") -> list:
        resolved = []
        for attr in attributes:
            if isinstance(attr, TwoWayBinding):
                base = _base_identifier(attr.expression)
                if base:
                    scope.mutated.add(base)
                resolved.append(PropertyBinding(attr.name, attr.expression, attr.expression,
                                                attr.position, two_way=True))
                resolved.append(EventBinding(f"{attr.name}Change", f"{attr.expression} = $event",
                                             attr.position, two_way=True))
                continue

            if isinstance(attr, (Attribute, PropertyBinding)):
                symbol = self.index.attribute(attr.name)
                if symbol is not None and symbol.kind == UnitKind.DIRECTIVE:
                    bound = isinstance(attr, PropertyBinding)
                    expression = attr.expression if bound else attr.value
                    resolved.append(AttributeDirective(attr.name, expression,
                                                       attr.value if attr.value is not None else None,
                                                       attr.position, bound=bound, directive=symbol.name))
                    continue
                if isinstance(attr, PropertyBinding):
                    self._check_pipes(attr.value, attr.position)

            elif isinstance(attr, EventBinding):
                for statement in split_statements(attr.handler):
                    assignment = split_assignment(statement)
                    if assignment:
                        base = _base_identifier(assignment[0])
                        if base:
                            scope.mutated.add(base)

            elif isinstance(attr, AttributeDirective) and attr.bound:
                self._check_pipes(attr.value, attr.position)

            resolved.append(attr)
        return resolved

    def _register_refs(self, node, attributes, kind: str, scope: "_TemplateScope") -> None:
        for attr in attributes:
            if isinstance(attr, TemplateRefVar):
                if attr.name in scope.refs:
                    self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                      f"Template reference #{attr.name} is declared more than once",
                                      line=attr.position.line, column=attr.position.column)
                scope.refs[attr.name] = TemplateRef(attr.name, kind, node)

    def _check_pipes(self, value, position) -> None:
        if not isinstance(value, PipeCall):
            return
        for call in value.chain():
            if not self.mappings.is_builtin_pipe(call.name) and self.index.pipe(call.name) is None:
                self._unresolved(f"Unknown pipe '{call.name}'", position)

    def _check_pipes_in_text(self, expression: str, position) -> None:
        self._check_pipes(parse_bound_value(expression, position), position)

    def _unresolved(self, message: str, position=None) -> None:
        location = {"line": position.line, "column": position.column} if position is not None else {}
        self.sink.warning(DiagnosticCode.UNRESOLVED_REFERENCE, message, **location)

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------
    def _dependencies(self, decl) -> List[DependencyIR]:
        resolved = []
        for dep in decl.dependencies:
            type_name = _base_type(dep.type_name)
            if type_name in ("any", "unknown") and dep.token:
                type_name = dep.token
            if self.mappings.is_builtin_provider(type_name):
                if type_name in self.mappings.UNSUPPORTED_PROVIDERS:
                    self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                      f"{type_name} injected into {decl.name} has no React equivalent")
                resolved.append(DependencyIR(dep.name, type_name, DependencyKind.BUILTIN, optional=dep.optional))
                continue
            symbol = self.index.lookup(type_name)
            if symbol is not None and symbol.kind == UnitKind.SERVICE:
                resolved.append(DependencyIR(dep.name, type_name, DependencyKind.SERVICE, target=symbol.name,
                                             target_unit=symbol.unit, optional=dep.optional))
                continue
            self._unresolved(f"Dependency '{dep.name}' of type '{dep.type_name}' in {decl.name} "
                             f"does not resolve to a known service")
            resolved.append(DependencyIR(dep.name, type_name, DependencyKind.UNRESOLVED, optional=dep.optional))
        return resolved

    # ------------------------------------------------------------------
    # Fields and methods
    # ------------------------------------------------------------------
    def _constructor_assignments(self, decl) -> Tuple[Dict[str, str], List[str]]:
        """Split the constructor into field initializers and remaining statements."""
        constructor = decl.method("constructor")
        assigned: Dict[str, str] = {}
        remaining: List[str] = []
        if constructor is None:
            return assigned, remaining
        field_names = {f.name for f in decl.fields}
        for statement in constructor.statements:
            match = _THIS_ASSIGN_RE.match(statement.text)
            if match and match.group(1) in field_names and match.group(1) not in assigned:
                assigned[match.group(1)] = match.group(2).strip()
                continue
            if statement.text.startswith("super("):
                continue
            remaining.append(statement.text)
        return assigned, remaining

    def _mutated_in_methods(self, decl, name: str) -> bool:
        pattern = _mutation_re(name)
        return any(pattern.search(m.body) for m in decl.methods if m.name != "constructor")

    def _subscription_holder(self, decl, f: FieldDecl) -> bool:
        if "Subscription" in (f.type or "") or (f.initializer or "").startswith("new Subscription"):
            return True
        pattern = re.compile(rf"this\.{re.escape(f.name)}\s*=(?!=)[^;]*\.subscribe\(")
        return any(pattern.search(m.body) for m in decl.methods)

    def _classify_fields(self, decl, node, template_mutated: Set[str]) -> None:
        assigned, _ = self._constructor_assignments(decl)
        for f in decl.fields:
            initial = f.initializer if f.initializer is not None else assigned.get(f.name)
            public = f.visibility == "public"

            if f.static:
                node.constants.append(ConstantIR(f.name, f.type, initial, static=True, public=public))
                continue

            if _view_query(f) is not None:
                node.refs.append(RefCell(f.name, f.type, None, element=True))
                continue

            subject = _SUBJECT_RE.match(initial or "")
            if subject:
                value = subject.group(3).strip() or None
                node.state.append(StateCell(f.name, subject.group(2) or f.type, value, origin="subject", public=public))
                node.subjects.append(f.name)
                continue

            if self._subscription_holder(decl, f):
                node.refs.append(RefCell(f.name, f.type, initial))
                continue

            if f.name in template_mutated:
                node.state.append(StateCell(f.name, f.type, initial, origin="two-way", public=public))
            elif self._mutated_in_methods(decl, f.name):
                node.state.append(StateCell(f.name, f.type, initial, public=public))
            else:
                node.constants.append(ConstantIR(f.name, f.type, initial, public=public))

    def _collect_methods(self, decl, node, skip: Set[str] = frozenset()) -> None:
        for method in decl.methods:
            if method.name == "constructor" or method.name in self.mappings.LIFECYCLE_MAPPINGS:
                continue
            if method.name in skip:
                continue
            if method.accessor == "get":
                node.getters.append(GetterIR(method.name, method.body, method.return_type))
                continue
            if method.accessor == "set":
                self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                  f"Property setter '{method.name}' of {decl.name} is not converted",
                                  line=method.line)
                continue
            node.methods.append(_method_ir(method))

    # ------------------------------------------------------------------
    # Lifecycle table
    # ------------------------------------------------------------------
    def _lifecycle_effects(self, decl, node) -> List[EffectIR]:
        hooks = decl.lifecycle_hooks
        effects: List[EffectIR] = []
        _, constructor_rest = self._constructor_assignments(decl)
        ref_names = {r.name for r in node.refs}

        init = decl.method("ngOnInit")
        destroy = decl.method("ngOnDestroy")
        if init is not None or destroy is not None or constructor_rest:
            statements = list(constructor_rest)
            cleanup: List[str] = []
            destroy_body = destroy.body if destroy is not None else ""
            if init is not None:
                body_statements, released = self._release_subscriptions(init, ref_names, destroy_body)
                statements.extend(body_statements)
                cleanup.extend(released)
            if destroy_body:
                cleanup.append(destroy_body)
            origin = [h for h in ("ngOnInit", "ngOnDestroy") if h in hooks]
            effects.append(EffectIR(EffectTrigger.MOUNT, "\n".join(statements), "\n".join(cleanup), [],
                                    origin or ["constructor"]))

        changes = decl.method("ngOnChanges")
        if changes is not None:
            effects.append(self._changes_effect(changes, getattr(node, "inputs", [])))

        for input_prop in getattr(node, "inputs", []):
            if input_prop.is_setter:
                setter = decl.method(input_prop.name)
                if setter is not None and setter.accessor == "set":
                    effects.append(_setter_effect(setter, input_prop.name))

        for hook in ("ngAfterContentInit", "ngAfterViewInit"):
            method = decl.method(hook)
            if method is not None:
                effects.append(EffectIR(EffectTrigger.MOUNT, method.body, "", [], [hook]))

        for hook in ("ngDoCheck", "ngAfterContentChecked", "ngAfterViewChecked"):
            method = decl.method(hook)
            if method is not None:
                effects.append(EffectIR(EffectTrigger.EVERY_RENDER, method.body, "", [], [hook]))
        return effects

    def _release_subscriptions(self, init: MethodDecl, ref_names: Set[str],
                               destroy_body: str) -> Tuple[List[str], List[str]]:
        """Give every subscription opened in ngOnInit a release on the cleanup path."""
        statements, released = [], []
        counter = 0
        for statement in init.statements:
            text = statement.text
            held = _SUBSCRIBE_ASSIGN_RE.match(text)
            local = _LOCAL_SUBSCRIBE_RE.match(text)
            if held:
                name = held.group(1)
                if f"this.{name}.unsubscribe" not in destroy_body:
                    released.append(f"this.{name}.unsubscribe();")
            elif local:
                released.append(f"{local.group(1)}.unsubscribe();")
            elif ".subscribe(" in text and statement.kind == "expression_statement":
                counter += 1
                name = "subscription" if counter == 1 else f"subscription{counter}"
                text = f"const {name} = {text}"
                released.append(f"{name}.unsubscribe();")
            statements.append(text)
        return statements, released

    def _changes_effect(self, method: MethodDecl, inputs) -> EffectIR:
        param = method.params[0].name if method.params else "changes"
        names = [i.name for i in inputs]
        pattern = re.compile(rf"\b{re.escape(param)}(?:\[\s*['\"]([\w$]+)['\"]\s*\]|\.([\w$]+))")
        referenced = []
        for match in pattern.finditer(method.body):
            name = match.group(1) or match.group(2)
            if name in names and name not in referenced:
                referenced.append(name)
        if "previousValue" in method.body:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              "ngOnChanges reads previousValue, which has no counterpart in an effect",
                              line=method.line)
        body = method.body
        for name in referenced:
            access = rf"\b{re.escape(param)}(?:\[\s*['\"]{re.escape(name)}['\"]\s*\]|\.{re.escape(name)}\b)"
            body = re.sub(access + r"\??\.currentValue\b", f"this.{name}", body)
            body = re.sub(access + r"\??\.firstChange\b", "false", body)
            body = re.sub(access + r"(?!\??\.previousValue)", f"(this.{name} !== undefined)", body)
        return EffectIR(EffectTrigger.CHANGES, body, "", referenced or names, ["ngOnChanges"])

    # ------------------------------------------------------------------
    # Services, pipes, directives
    # ------------------------------------------------------------------
    def _build_service(self, decl: ServiceDecl) -> ServiceIR:
        node = ServiceIR(name=decl.name, source_path=decl.source_path, source_imports=list(decl.source_imports))
        node.dependencies = self._dependencies(decl)
        self._classify_fields(decl, node, set())
        self._collect_methods(decl, node)
        node.effects = self._lifecycle_effects(decl, node)
        return node

    def _build_pipe(self, decl: PipeDecl) -> PipeIR:
        node = PipeIR(name=decl.name, source_path=decl.source_path, pipe_name=decl.pipe_name, pure=decl.pure,
                      transform=_method_ir(decl.transform), source_imports=list(decl.source_imports))
        node.dependencies = self._dependencies(decl)
        for dep in node.dependencies:
            if dep.kind == DependencyKind.SERVICE:
                self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                  f"Pipe {decl.name} injects {dep.type_name}; the generated function "
                                  f"receives it as an extra argument")
        self._classify_fields(decl, node, set())
        self._collect_methods(decl, node, skip={"transform"})
        return node

    def _build_directive(self, decl: DirectiveDecl):
        review = self._manual_review_reason(decl)
        if review:
            self.sink.warning(DiagnosticCode.MANUAL_REVIEW_REQUIRED, review)
            return StubIR(decl.name, decl.source_path, UnitKind.DIRECTIVE, review,
                          inputs=list(decl.inputs), outputs=list(decl.outputs))

        _, attributes = parse_selector(decl.selector)
        node = DirectiveIR(
            name=decl.name,
            source_path=decl.source_path,
            selector=decl.selector,
            attribute=attributes[0] if attributes else None,
            directive_kind=decl.directive_kind,
            inputs=list(decl.inputs),
            outputs=list(decl.outputs),
            host_listeners=list(decl.host_listeners),
            host_bindings=list(decl.host_bindings),
            renders_markup=decl.renders_markup,
            source_imports=list(decl.source_imports),
        )
        if node.attribute is None:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              f"Directive {decl.name} has no attribute selector and cannot be applied")
        node.dependencies = self._dependencies(decl)
        self._classify_fields(decl, node, set())

        if decl.directive_kind == "structural":
            node.condition = self._structural_condition(decl, node.attribute)
            if node.condition is None:
                self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                                  f"Could not derive the render condition of structural directive "
                                  f"{decl.name}; the region always renders")
            return node

        self._collect_methods(decl, node, skip={i.name for i in decl.inputs if i.is_setter})
        node.effects = self._lifecycle_effects(decl, node)
        return node

    def _structural_condition(self, decl: DirectiveDecl, attribute: Optional[str]) -> Optional[str]:
        setter = decl.method(attribute) if attribute else None
        if setter is None or setter.accessor != "set" or not setter.params:
            return None
        match = _EMBED_IF_RE.search(setter.body)
        if match is None:
            return None
        param = setter.params[0].name
        terms = [t.strip() for t in re.split(r"&&", match.group(1))]
        # Bookkeeping such as `!this.hasView` tracks the view, not the condition
        kept = [t for t in terms if "this." not in t]
        if not kept:
            return None
        condition = " && ".join(kept)
        return re.sub(rf"\b{re.escape(param)}\b", attribute, condition)

    # ------------------------------------------------------------------
    # Modules and route tables
    # ------------------------------------------------------------------
    def _build_module(self, decl: ModuleDecl) -> ModuleIR:
        node = ModuleIR(name=decl.name, source_path=decl.source_path, declarations=list(decl.declarations),
                        is_routing=decl.is_routing, source_imports=list(decl.source_imports))
        for provider in decl.providers:
            symbol = self.index.lookup(provider)
            if symbol is not None and symbol.kind == UnitKind.SERVICE:
                node.providers.append(DependencyIR(provider, provider, DependencyKind.SERVICE,
                                                   target=symbol.name, target_unit=symbol.unit))
            else:
                self._unresolved(f"Provider '{provider}' of {decl.name} does not resolve to a known service")
        for name in decl.declarations:
            if name not in self.index:
                self._unresolved(f"Declaration '{name}' of {decl.name} was not found in the input set")

        routes = list(decl.routes)
        if decl.route_source:
            table = self.index.route_table(decl.route_source)
            if table is None:
                self._unresolved(f"Route table '{decl.route_source}' used by {decl.name} was not found")
            else:
                routes = list(table.declaration.routes)
                if table.unit != decl.source_path:
                    node.route_table_unit = table.unit
        node.routes = routes
        self._check_route_components(routes)
        return node

    def _build_route_table(self, decl: RouteConfigDecl) -> RouteTableIR:
        self._check_route_components(decl.routes)
        return RouteTableIR(name=decl.name, source_path=decl.source_path, routes=list(decl.routes),
                            source_imports=list(decl.source_imports))

    def _check_route_components(self, routes: List[RouteDecl]) -> None:
        for route in routes:
            if route.component:
                symbol = self.index.lookup(route.component)
                if symbol is None or symbol.kind != UnitKind.COMPONENT:
                    self._unresolved(f"Route '{route.path}' refers to unknown component {route.component}")
            self._check_route_components(route.children)


class _TemplateScope:
    """State gathered while resolving one template."""

    def __init__(self):
        self.refs: Dict[str, TemplateRef] = {}
        self.mutated: Set[str] = set()
        self.projects_content = False


def _view_query(f: FieldDecl):
    for decorator in f.decorators:
        if decorator.name in VIEW_QUERIES:
            return decorator
    return None


def _method_ir(method: MethodDecl) -> MethodIR:
    return MethodIR(
        name=method.name,
        params=list(method.params),
        body=method.body,
        return_type=method.return_type,
        is_async=method.is_async,
        asynchronous=method.is_asynchronous,
        public=method.visibility == "public",
    )


def _setter_effect(setter: MethodDecl, input_name: str) -> EffectIR:
    body = setter.body
    if setter.params:
        param = setter.params[0].name
        if param != input_name:
            body = re.sub(rf"(?<![\w$.]){re.escape(param)}\b", f"this.{input_name}", body)
    return EffectIR(EffectTrigger.CHANGES, body, "", [input_name], [f"set {input_name}"])
