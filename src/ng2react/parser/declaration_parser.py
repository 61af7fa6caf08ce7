"""
Declaration parser.

Extracts a typed declaration record from a classified source unit: decorator
metadata, inputs/outputs in declaration order, constructor dependencies,
lifecycle hooks, methods, fields and (for components) the parsed template.
"""

import posixpath
import re
from typing import Dict, List, Mapping, Optional

import tree_sitter

from ..errors import MalformedDeclarationError, TemplateError, UnclassifiedUnitError
from ..models import (
    Call,
    ComponentDecl,
    DecoratorInfo,
    Dependency,
    DirectiveDecl,
    Expr,
    FieldDecl,
    HostBinding,
    HostListener,
    ImportDecl,
    InputProp,
    MethodDecl,
    ModuleDecl,
    OutputProp,
    Param,
    PipeDecl,
    RouteConfigDecl,
    RouteDecl,
    ServiceDecl,
    SourceUnit,
    Statement,
    UnitKind,
)
from .parser_interface import ParserInterface
from .template_parser import TemplateParser
from .ts_nodes import (
    block_text,
    child_of_type,
    children_of_type,
    decorator_arguments,
    decorator_name,
    find_class,
    find_route_arrays,
    has_token,
    iter_imports,
    literal_value,
    metadata_name,
    node_text,
    parse_typescript,
    type_annotation_text,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

LIFECYCLE_HOOKS = (
    "ngOnChanges", "ngOnInit", "ngDoCheck", "ngAfterContentInit", "ngAfterContentChecked",
    "ngAfterViewInit", "ngAfterViewChecked", "ngOnDestroy",
)

# Source text markers of a directive that renders its own host markup
MARKUP_MARKERS = ("createElement(", "appendChild(", "insertBefore(", "createComponent(", ".innerHTML")

_EMITTER_RE = re.compile(r"EventEmitter\s*<(.+)>", re.S)
_INJECT_CALL_RE = re.compile(r"^inject\s*\(\s*([\w.]+)")
_LOAD_MODULE_RE = re.compile(r"\.then\(\s*\(?\s*(\w+)\s*\)?\s*=>\s*\1\.(\w+)")


class DeclarationParser(ParserInterface):
    """Parses a classified :class:`SourceUnit` into its declaration record."""

    def __init__(self, resources: Optional[Mapping[str, Optional[str]]] = None):
        """
        Args:
            resources: read-only mapping of resource path -> text used to
                resolve ``templateUrl``/``styleUrls`` references.
        """
        self.resources = resources or {}

    def parse(self, unit: SourceUnit):
        if unit.kind is None:
            raise UnclassifiedUnitError("Unit has not been classified", unit=unit.path)

        tree, source = parse_typescript(unit.text)
        root = tree.root_node

        if unit.kind == UnitKind.ROUTES:
            return self._parse_route_config(unit, root, source)

        info = find_class(root, source, unit.class_name or "")
        if info is None:
            raise MalformedDeclarationError(f"Class {unit.class_name} not found", unit=unit.path)

        decorator = self._find_decorator(info.decorators, source, unit)
        metadata = self._metadata(decorator, source, unit)
        context = _ClassContext(unit, info.name, source)
        context.source_imports = iter_imports(root, source)
        self._collect_members(info.node, context)

        parsers = {
            UnitKind.COMPONENT: self._build_component,
            UnitKind.SERVICE: self._build_service,
            UnitKind.PIPE: self._build_pipe,
            UnitKind.DIRECTIVE: self._build_directive,
            UnitKind.MODULE: self._build_module,
        }
        declaration = parsers[unit.kind](unit, metadata, context, root, source)
        logger.debug(f"Parsed {unit.kind.value} {info.name} from {unit.path}")
        return declaration

    # ------------------------------------------------------------------
    # Decorator metadata
    # ------------------------------------------------------------------
    _DECORATOR_NAMES = {
        UnitKind.COMPONENT: "Component",
        UnitKind.SERVICE: "Injectable",
        UnitKind.PIPE: "Pipe",
        UnitKind.DIRECTIVE: "Directive",
        UnitKind.MODULE: "NgModule",
    }

    def _find_decorator(self, decorators: List[tree_sitter.Node], source: bytes,
                        unit: SourceUnit) -> tree_sitter.Node:
        expected = self._DECORATOR_NAMES[unit.kind]
        for decorator in decorators:
            if decorator_name(decorator, source) == expected:
                return decorator
        raise MalformedDeclarationError(f"@{expected} decorator not found on {unit.class_name}",
                                        unit=unit.path)

    def _metadata(self, decorator: tree_sitter.Node, source: bytes, unit: SourceUnit) -> Dict:
        line = decorator.start_point.row + 1
        column = decorator.start_point.column + 1
        if decorator.has_error:
            raise MalformedDeclarationError(
                f"Unparsable decorator metadata: {node_text(decorator, source)[:60]!r}",
                unit=unit.path, line=line, column=column,
            )
        args = decorator_arguments(decorator)
        if args is None:
            raise MalformedDeclarationError("Decorator is not called", unit=unit.path, line=line, column=column)
        if not args:
            if unit.kind in (UnitKind.SERVICE, UnitKind.MODULE, UnitKind.DIRECTIVE):
                return {}
            raise MalformedDeclarationError("Decorator metadata is missing", unit=unit.path,
                                            line=line, column=column)
        metadata = literal_value(args[0], source)
        if not isinstance(metadata, dict):
            raise MalformedDeclarationError("Decorator metadata is not an object literal",
                                            unit=unit.path, line=line, column=column)
        return metadata

    # ------------------------------------------------------------------
    # Class members
    # ------------------------------------------------------------------
    def _collect_members(self, class_node: tree_sitter.Node, ctx: "_ClassContext") -> None:
        body = class_node.child_by_field_name("body")
        if body is None:
            return
        pending: List[tree_sitter.Node] = []
        for member in body.children:
            if member.type == "decorator":
                pending.append(member)
                continue
            if member.type == "method_definition":
                decorators = pending + children_of_type(member, "decorator")
                pending = []
                self._collect_method(member, decorators, ctx)
            elif member.type == "public_field_definition":
                decorators = pending + children_of_type(member, "decorator")
                pending = []
                self._collect_field(member, decorators, ctx)

    def _decorator_info(self, decorator: tree_sitter.Node, source: bytes) -> DecoratorInfo:
        args = decorator_arguments(decorator) or []
        return DecoratorInfo(
            name=decorator_name(decorator, source),
            args=[literal_value(a, source) for a in args],
            text=node_text(decorator, source),
        )

    def _collect_method(self, node: tree_sitter.Node, decorators: List[tree_sitter.Node],
                        ctx: "_ClassContext") -> None:
        source = ctx.source
        name = node_text(node.child_by_field_name("name"), source)
        params_node = node.child_by_field_name("parameters")
        body_node = node.child_by_field_name("body")
        infos = [self._decorator_info(d, source) for d in decorators]

        if name == "constructor":
            ctx.dependencies.extend(self._constructor_dependencies(params_node, source))

        method = MethodDecl(
            name=name,
            params=self._params(params_node, source),
            return_type=type_annotation_text(node.child_by_field_name("return_type"), source),
            body=self._body_text(body_node, source),
            statements=self._statements(body_node, source),
            is_async=has_token(node, "async"),
            accessor="get" if has_token(node, "get") else "set" if has_token(node, "set") else None,
            decorators=infos,
            visibility=_visibility(node, source),
            line=node.start_point.row + 1,
        )

        for info in infos:
            if info.name == "Input" and method.accessor == "set":
                param = method.params[0] if method.params else Param("value")
                alias, required = _input_options(info)
                ctx.inputs.append(InputProp(name=name, type=param.type or "any", optional=not required,
                                            alias=alias, is_setter=True))
            elif info.name == "HostListener":
                event = info.first_arg("")
                extra = info.args[1] if len(info.args) > 1 and isinstance(info.args[1], list) else []
                ctx.host_listeners.append(HostListener(event=str(event), handler=name,
                                                       args=[str(a) for a in extra]))
            elif info.name == "HostBinding":
                ctx.host_bindings.append(HostBinding(target=str(info.first_arg(name)), member=name))

        ctx.methods.append(method)
        if name in LIFECYCLE_HOOKS and name not in ctx.lifecycle_hooks:
            ctx.lifecycle_hooks.append(name)

    def _collect_field(self, node: tree_sitter.Node, decorators: List[tree_sitter.Node],
                       ctx: "_ClassContext") -> None:
        source = ctx.source
        name = node_text(node.child_by_field_name("name"), source)
        type_text = type_annotation_text(node.child_by_field_name("type"), source)
        value_node = node.child_by_field_name("value")
        initializer = node_text(value_node, source) if value_node is not None else None
        infos = [self._decorator_info(d, source) for d in decorators]
        names = [info.name for info in infos]

        if "Input" in names:
            alias, required = _input_options(infos[names.index("Input")])
            optional = (has_token(node, "?") or initializer is not None) and not required
            ctx.inputs.append(InputProp(name=name, type=type_text or _infer_type(initializer),
                                        optional=optional, alias=alias, default=initializer))
            return

        if "Output" in names:
            alias = infos[names.index("Output")].first_arg()
            ctx.outputs.append(OutputProp(
                name=name,
                payload_type=_emitter_payload(type_text, initializer),
                alias=alias if isinstance(alias, str) else None,
            ))
            return

        inject_match = _INJECT_CALL_RE.match(initializer or "")
        if inject_match:
            ctx.dependencies.append(Dependency(name=name, type_name=inject_match.group(1)))
            return

        for info in infos:
            if info.name == "HostBinding":
                ctx.host_bindings.append(HostBinding(target=str(info.first_arg(name)), member=name))

        ctx.fields.append(FieldDecl(
            name=name,
            type=type_text,
            initializer=initializer,
            decorators=infos,
            readonly=has_token(node, "readonly"),
            static=has_token(node, "static"),
            visibility=_visibility(node, source),
            line=node.start_point.row + 1,
        ))

    def _params(self, params_node: Optional[tree_sitter.Node], source: bytes) -> List[Param]:
        params = []
        if params_node is None:
            return params
        for param in params_node.named_children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            value = param.child_by_field_name("value")
            params.append(Param(
                name=node_text(param.child_by_field_name("pattern"), source),
                type=type_annotation_text(param.child_by_field_name("type"), source),
                optional=param.type == "optional_parameter",
                default=node_text(value, source) if value is not None else None,
            ))
        return params

    def _constructor_dependencies(self, params_node: Optional[tree_sitter.Node],
                                  source: bytes) -> List[Dependency]:
        dependencies = []
        if params_node is None:
            return dependencies
        for param in params_node.named_children:
            if param.type not in ("required_parameter", "optional_parameter"):
                continue
            decorators = [self._decorator_info(d, source) for d in children_of_type(param, "decorator")]
            token = None
            optional = param.type == "optional_parameter"
            for info in decorators:
                if info.name == "Inject":
                    token = metadata_name(info.first_arg(""))
                elif info.name == "Optional":
                    optional = True
            type_name = type_annotation_text(param.child_by_field_name("type"), source) or token or "any"
            dependencies.append(Dependency(
                name=node_text(param.child_by_field_name("pattern"), source),
                type_name=type_name,
                optional=optional,
                token=token,
            ))
        return dependencies

    def _body_text(self, body: Optional[tree_sitter.Node], source: bytes) -> str:
        if body is None:
            return ""
        text = block_text(body, source)
        inner = text[1:-1] if text.startswith("{") and text.endswith("}") else text
        lines = inner.split("\n")
        return _dedent_lines(lines).strip("\n")

    def _statements(self, body: Optional[tree_sitter.Node], source: bytes) -> List[Statement]:
        if body is None:
            return []
        return [Statement(kind=child.type, text=block_text(child, source)) for child in body.named_children]

    # ------------------------------------------------------------------
    # Declaration builders
    # ------------------------------------------------------------------
    def _build_component(self, unit, metadata, ctx, root, source) -> ComponentDecl:
        decl = ComponentDecl(
            name=ctx.class_name,
            source_path=unit.path,
            selector=_str_or_none(metadata.get("selector")),
            standalone=metadata.get("standalone") is True,
            **ctx.common(),
        )
        decl.inputs = _metadata_inputs(metadata) + ctx.inputs
        decl.outputs = _metadata_outputs(metadata) + ctx.outputs
        listeners, bindings = _host_metadata(metadata)
        decl.host_listeners = listeners + ctx.host_listeners

        template = metadata.get("template")
        template_url = _str_or_none(metadata.get("templateUrl"))
        if isinstance(template, str):
            decl.template = template
        elif template is not None:
            raise MalformedDeclarationError("Component template is not a string literal", unit=unit.path)
        elif template_url:
            decl.template_url = template_url
            decl.template = self._resource(unit, template_url, decl)

        styles = metadata.get("styles")
        if isinstance(styles, str):
            decl.styles = [styles]
        elif isinstance(styles, list):
            decl.styles = [s for s in styles if isinstance(s, str)]
        style_urls = metadata.get("styleUrls") or []
        if isinstance(metadata.get("styleUrl"), str):
            style_urls = [metadata["styleUrl"]]
        decl.style_urls = [s for s in style_urls if isinstance(s, str)]
        for url in decl.style_urls:
            content = self._resource(unit, url, decl)
            if content is not None:
                decl.styles.append(content)

        if decl.template is not None:
            try:
                decl.template_nodes = TemplateParser().parse(decl.template)
            except TemplateError as e:
                e.unit = unit.path
                decl.template_error = e
        return decl

    def _build_service(self, unit, metadata, ctx, root, source) -> ServiceDecl:
        provided_in = metadata.get("providedIn")
        return ServiceDecl(
            name=ctx.class_name,
            source_path=unit.path,
            provided_in=provided_in if isinstance(provided_in, str) else None,
            **ctx.common(),
        )

    def _build_pipe(self, unit, metadata, ctx, root, source) -> PipeDecl:
        pipe_name = metadata.get("name")
        if not isinstance(pipe_name, str) or not pipe_name:
            raise MalformedDeclarationError("@Pipe metadata has no name", unit=unit.path)
        transform = next((m for m in ctx.methods if m.name == "transform"), None)
        if transform is None:
            raise MalformedDeclarationError(f"Pipe {ctx.class_name} has no transform() method",
                                            unit=unit.path)
        return PipeDecl(
            name=ctx.class_name,
            source_path=unit.path,
            pipe_name=pipe_name,
            pure=metadata.get("pure") is not False,
            transform=transform,
            **ctx.common(),
        )

    def _build_directive(self, unit, metadata, ctx, root, source) -> DirectiveDecl:
        structural = any(d.type_name.startswith("TemplateRef") for d in ctx.dependencies)
        listeners, bindings = _host_metadata(metadata)
        class_text = node_text(find_class(root, source, ctx.class_name).node, source)
        return DirectiveDecl(
            name=ctx.class_name,
            source_path=unit.path,
            selector=_str_or_none(metadata.get("selector")),
            directive_kind="structural" if structural else "attribute",
            inputs=_metadata_inputs(metadata) + ctx.inputs,
            outputs=_metadata_outputs(metadata) + ctx.outputs,
            host_listeners=listeners + ctx.host_listeners,
            host_bindings=bindings + ctx.host_bindings,
            renders_markup=not structural and any(marker in class_text for marker in MARKUP_MARKERS),
            **ctx.common(),
        )

    def _build_module(self, unit, metadata, ctx, root, source) -> ModuleDecl:
        def names(key):
            value = metadata.get(key) or []
            return [metadata_name(v) for v in value] if isinstance(value, list) else [metadata_name(value)]

        decl = ModuleDecl(
            name=ctx.class_name,
            source_path=unit.path,
            declarations=names("declarations"),
            imports=names("imports"),
            exports=names("exports"),
            providers=names("providers"),
            bootstrap=names("bootstrap"),
            **ctx.common(),
        )
        arrays = find_route_arrays(root, source)
        for entry in metadata.get("imports") or []:
            if not isinstance(entry, Call) or not re.search(r"RouterModule\.for(Root|Child)$", entry.callee):
                continue
            if not entry.args:
                continue
            routes_arg = entry.args[0]
            if isinstance(routes_arg, list):
                decl.routes = _routes(routes_arg)
            elif isinstance(routes_arg, Expr) and routes_arg.text in arrays:
                decl.routes = _routes(literal_value(arrays[routes_arg.text], source))
            elif isinstance(routes_arg, Expr):
                decl.route_source = routes_arg.text
        return decl

    def _parse_route_config(self, unit, root, source) -> RouteConfigDecl:
        arrays = find_route_arrays(root, source)
        if not arrays:
            raise UnclassifiedUnitError("No route array found", unit=unit.path)
        routes: List[RouteDecl] = []
        for array_node in arrays.values():
            routes.extend(_routes(literal_value(array_node, source)))
        return RouteConfigDecl(name=next(iter(arrays)), source_path=unit.path, routes=routes)

    # ------------------------------------------------------------------
    def _resource(self, unit: SourceUnit, url: str, decl: ComponentDecl) -> Optional[str]:
        path = posixpath.normpath(posixpath.join(posixpath.dirname(unit.path), url))
        content = self.resources.get(path)
        if content is None:
            decl.missing_resources.append(path)
        return content


class _ClassContext:
    """Member collection state for one class."""

    def __init__(self, unit: SourceUnit, class_name: str, source: bytes):
        self.unit = unit
        self.class_name = class_name
        self.source = source
        self.dependencies: List[Dependency] = []
        self.methods: List[MethodDecl] = []
        self.fields: List[FieldDecl] = []
        self.lifecycle_hooks: List[str] = []
        self.inputs: List[InputProp] = []
        self.outputs: List[OutputProp] = []
        self.host_listeners: List[HostListener] = []
        self.host_bindings: List[HostBinding] = []
        self.source_imports: List[ImportDecl] = []

    def common(self) -> Dict:
        return {
            "dependencies": self.dependencies,
            "methods": self.methods,
            "fields": self.fields,
            "lifecycle_hooks": self.lifecycle_hooks,
            "source_imports": self.source_imports,
        }


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _str_or_none(value) -> Optional[str]:
    return value if isinstance(value, str) else None


def _visibility(node: tree_sitter.Node, source: bytes) -> str:
    modifier = child_of_type(node, "accessibility_modifier")
    return node_text(modifier, source) if modifier is not None else "public"


def _dedent_lines(lines: List[str]) -> str:
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    cut = min(indents) if indents else 0
    return "\n".join(line[cut:] if line.strip() else "" for line in lines)


def _input_options(info: DecoratorInfo):
    """(alias, required) from ``@Input('alias')`` or ``@Input({alias, required})``."""
    arg = info.first_arg()
    if isinstance(arg, str):
        return arg, False
    if isinstance(arg, dict):
        alias = arg.get("alias")
        return (alias if isinstance(alias, str) else None), arg.get("required") is True
    return None, False


def _emitter_payload(type_text: Optional[str], initializer: Optional[str]) -> str:
    for text in (type_text, initializer):
        match = _EMITTER_RE.search(text or "")
        if match:
            return match.group(1).strip()
    return "void"


def _infer_type(initializer: Optional[str]) -> str:
    if not initializer:
        return "any"
    value = initializer.strip()
    if value[:1] in ("'", '"', "`"):
        return "string"
    if value in ("true", "false"):
        return "boolean"
    if re.fullmatch(r"-?\d+(\.\d+)?", value):
        return "number"
    if value.startswith("["):
        return "any[]"
    return "any"


def _split_binding_entry(entry: str):
    """``'name: alias'`` -> ('name', 'alias')."""
    name, _, alias = entry.partition(":")
    return name.strip(), (alias.strip() or None)


def _metadata_inputs(metadata: Dict) -> List[InputProp]:
    inputs = []
    for entry in metadata.get("inputs") or []:
        if isinstance(entry, str):
            name, alias = _split_binding_entry(entry)
            inputs.append(InputProp(name=name, optional=True, alias=alias))
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            inputs.append(InputProp(name=entry["name"], optional=entry.get("required") is not True,
                                    alias=_str_or_none(entry.get("alias"))))
    return inputs


def _metadata_outputs(metadata: Dict) -> List[OutputProp]:
    outputs = []
    for entry in metadata.get("outputs") or []:
        if isinstance(entry, str):
            name, alias = _split_binding_entry(entry)
            outputs.append(OutputProp(name=name, alias=alias))
    return outputs


def _host_metadata(metadata: Dict):
    listeners, bindings = [], []
    host = metadata.get("host")
    if not isinstance(host, dict):
        return listeners, bindings
    for key, value in host.items():
        if key.startswith("(") and key.endswith(")") and isinstance(value, str):
            handler, _, rest = value.partition("(")
            args = [a.strip() for a in rest.rstrip(")").split(",") if a.strip()]
            listeners.append(HostListener(event=key[1:-1], handler=handler.strip(), args=args))
        elif key.startswith("[") and key.endswith("]") and isinstance(value, str):
            bindings.append(HostBinding(target=key[1:-1], member=value))
    return listeners, bindings


def _routes(values) -> List[RouteDecl]:
    routes = []
    for value in values if isinstance(values, list) else []:
        if isinstance(value, dict):
            routes.append(_route(value))
    return routes


def _route(data: Dict) -> RouteDecl:
    route = RouteDecl(path=data.get("path") if isinstance(data.get("path"), str) else "")
    component = data.get("component")
    if isinstance(component, Expr):
        route.component = component.text
    route.redirect_to = _str_or_none(data.get("redirectTo"))
    route.path_match = _str_or_none(data.get("pathMatch"))
    route.title = _str_or_none(data.get("title"))
    route.children = _routes(data.get("children"))
    lazy = data.get("loadChildren") or data.get("loadComponent")
    if isinstance(lazy, Expr):
        match = _LOAD_MODULE_RE.search(lazy.text)
        route.load_children = match.group(2) if match else lazy.text
    for key in ("canActivate", "canActivateChild", "canDeactivate", "canMatch", "resolve"):
        guards = data.get(key)
        if isinstance(guards, list):
            route.guards.extend(f"{key}:{metadata_name(g)}" for g in guards)
        elif isinstance(guards, dict):
            route.guards.extend(f"{key}:{name}" for name in guards)
    return route
