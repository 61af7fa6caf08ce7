"""
Declaration and template data models.

These are pure data containers produced by the parsers; they hold no parsing
logic. A :class:`SourceUnit` is immutable; declarations own their template
tree.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class UnitKind(str, Enum):
    COMPONENT = "component"
    SERVICE = "service"
    PIPE = "pipe"
    DIRECTIVE = "directive"
    MODULE = "module"
    ROUTES = "routes"


@dataclass(frozen=True)
class SourceUnit:
    """Raw text + detected kind + file identity."""

    path: str
    text: str
    kind: Optional[UnitKind] = None
    class_name: Optional[str] = None


# ---------------------------------------------------------------------------
# Literal values pulled out of decorator metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Expr:
    """A metadata value that is not a plain literal (identifier, call, ...)."""

    text: str


@dataclass(frozen=True)
class Call:
    """A call expression inside metadata, e.g. ``RouterModule.forRoot(routes)``."""

    callee: str
    args: tuple
    text: str


MetadataValue = Union[str, int, float, bool, None, Expr, Call, list, dict]


# ---------------------------------------------------------------------------
# Class members
# ---------------------------------------------------------------------------

@dataclass
class Param:
    name: str
    type: Optional[str] = None
    optional: bool = False
    default: Optional[str] = None

    def signature(self, typed: bool = True) -> str:
        text = self.name
        if typed and self.type:
            text += ("?" if self.optional and not self.default else "") + f": {self.type}"
        if self.default:
            text += f" = {self.default}"
        return text


@dataclass
class Statement:
    """One top-level statement of a method body, with its tree-sitter node type."""

    kind: str
    text: str


@dataclass
class MethodDecl:
    name: str
    params: List[Param] = field(default_factory=list)
    return_type: Optional[str] = None
    body: str = ""
    statements: List[Statement] = field(default_factory=list)
    is_async: bool = False
    accessor: Optional[str] = None  # "get" | "set"
    decorators: List["DecoratorInfo"] = field(default_factory=list)
    visibility: str = "public"
    line: int = 0

    @property
    def is_asynchronous(self) -> bool:
        return self.is_async or (self.return_type or "").startswith("Promise")


@dataclass
class FieldDecl:
    name: str
    type: Optional[str] = None
    initializer: Optional[str] = None
    decorators: List["DecoratorInfo"] = field(default_factory=list)
    readonly: bool = False
    static: bool = False
    visibility: str = "public"
    line: int = 0


@dataclass
class DecoratorInfo:
    name: str
    args: List[MetadataValue] = field(default_factory=list)
    text: str = ""

    def first_arg(self, default: Any = None) -> Any:
        return self.args[0] if self.args else default


@dataclass
class InputProp:
    name: str
    type: str = "any"
    optional: bool = False
    alias: Optional[str] = None
    default: Optional[str] = None
    is_setter: bool = False

    @property
    def public_name(self) -> str:
        return self.alias or self.name


@dataclass
class OutputProp:
    name: str
    payload_type: str = "void"
    alias: Optional[str] = None

    @property
    def public_name(self) -> str:
        return self.alias or self.name


@dataclass
class Dependency:
    """A constructor parameter, recorded by declared type name even if unresolved."""

    name: str
    type_name: str
    optional: bool = False
    token: Optional[str] = None


@dataclass
class HostListener:
    event: str
    handler: str
    args: List[str] = field(default_factory=list)


@dataclass
class HostBinding:
    target: str
    member: str


@dataclass
class ImportDecl:
    """One ES import statement of a source unit."""

    module: str
    names: List[str] = field(default_factory=list)
    default: Optional[str] = None
    namespace: Optional[str] = None


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

@dataclass
class BaseDecl:
    name: str
    source_path: str
    dependencies: List[Dependency] = field(default_factory=list)
    methods: List[MethodDecl] = field(default_factory=list)
    fields: List[FieldDecl] = field(default_factory=list)
    lifecycle_hooks: List[str] = field(default_factory=list)
    source_imports: List[ImportDecl] = field(default_factory=list)

    def method(self, name: str) -> Optional[MethodDecl]:
        for m in self.methods:
            if m.name == name:
                return m
        return None


@dataclass
class ComponentDecl(BaseDecl):
    selector: Optional[str] = None
    inputs: List[InputProp] = field(default_factory=list)
    outputs: List[OutputProp] = field(default_factory=list)
    template: Optional[str] = None
    template_url: Optional[str] = None
    template_nodes: List["TemplateNode"] = field(default_factory=list)
    template_error: Optional[Exception] = None
    styles: List[str] = field(default_factory=list)
    style_urls: List[str] = field(default_factory=list)
    missing_resources: List[str] = field(default_factory=list)
    host_listeners: List[HostListener] = field(default_factory=list)
    standalone: bool = False

    kind = UnitKind.COMPONENT


@dataclass
class ServiceDecl(BaseDecl):
    provided_in: Optional[str] = None

    kind = UnitKind.SERVICE


@dataclass
class PipeDecl(BaseDecl):
    pipe_name: str = ""
    pure: bool = True
    transform: Optional[MethodDecl] = None

    kind = UnitKind.PIPE


@dataclass
class DirectiveDecl(BaseDecl):
    selector: Optional[str] = None
    directive_kind: str = "attribute"  # "attribute" | "structural"
    inputs: List[InputProp] = field(default_factory=list)
    outputs: List[OutputProp] = field(default_factory=list)
    host_listeners: List[HostListener] = field(default_factory=list)
    host_bindings: List[HostBinding] = field(default_factory=list)
    renders_markup: bool = False

    kind = UnitKind.DIRECTIVE


@dataclass
class RouteDecl:
    path: str = ""
    component: Optional[str] = None
    redirect_to: Optional[str] = None
    path_match: Optional[str] = None
    children: List["RouteDecl"] = field(default_factory=list)
    load_children: Optional[str] = None
    guards: List[str] = field(default_factory=list)
    title: Optional[str] = None


@dataclass
class ModuleDecl(BaseDecl):
    declarations: List[str] = field(default_factory=list)
    imports: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    providers: List[str] = field(default_factory=list)
    bootstrap: List[str] = field(default_factory=list)
    routes: List[RouteDecl] = field(default_factory=list)
    route_source: Optional[str] = None  # name of a routes variable declared elsewhere

    kind = UnitKind.MODULE

    @property
    def is_routing(self) -> bool:
        return bool(self.routes) or self.route_source is not None


@dataclass
class RouteConfigDecl(BaseDecl):
    routes: List[RouteDecl] = field(default_factory=list)

    kind = UnitKind.ROUTES


Declaration = Union[ComponentDecl, ServiceDecl, PipeDecl, DirectiveDecl, ModuleDecl, RouteConfigDecl]


# ---------------------------------------------------------------------------
# Template tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Position:
    line: int
    column: int
    offset: int = 0


@dataclass
class PipeCall:
    """``input | name:arg1:arg2``; ``input`` is either raw text or another PipeCall."""

    name: str
    input: Union["PipeCall", str]
    args: List[str] = field(default_factory=list)
    position: Optional[Position] = None

    def chain(self) -> List["PipeCall"]:
        """Pipes in application order (leftmost first)."""
        calls = []
        node: Union[PipeCall, str] = self
        while isinstance(node, PipeCall):
            calls.append(node)
            node = node.input
        return list(reversed(calls))

    @property
    def base(self) -> str:
        node: Union[PipeCall, str] = self
        while isinstance(node, PipeCall):
            node = node.input
        return node


BoundValue = Union[PipeCall, str]


@dataclass
class TextNode:
    text: str
    position: Position


@dataclass
class Interpolation:
    expression: str
    value: BoundValue
    position: Position


@dataclass
class Attribute:
    """A static attribute such as ``class="card"``."""

    name: str
    value: Optional[str]
    position: Position


@dataclass
class PropertyBinding:
    name: str
    expression: str
    value: BoundValue
    position: Position
    two_way: bool = False


@dataclass
class EventBinding:
    name: str
    handler: str
    position: Position
    two_way: bool = False


@dataclass
class TwoWayBinding:
    name: str
    expression: str
    position: Position


@dataclass
class TemplateRefVar:
    name: str
    value: Optional[str]
    position: Position


@dataclass
class AttributeDirective:
    name: str
    expression: Optional[str]
    value: Optional[BoundValue]
    position: Position
    bound: bool = False
    directive: Optional[str] = None  # resolved class name


@dataclass
class Microsyntax:
    """Decoded ``*ngFor``/``*ngIf`` microsyntax."""

    expression: str
    item: Optional[str] = None
    locals: Dict[str, str] = field(default_factory=dict)
    track_by: Optional[str] = None
    else_ref: Optional[str] = None
    then_ref: Optional[str] = None
    alias: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class ElementNode:
    tag: str
    attributes: List[Any] = field(default_factory=list)
    children: List["TemplateNode"] = field(default_factory=list)
    position: Position = Position(1, 1)
    self_closing: bool = False
    component: Optional[str] = None  # resolved component class name


@dataclass
class StructuralDirective:
    name: str
    expression: str
    syntax: Microsyntax
    child: Union[ElementNode, "Container"]
    position: Position
    directive: Optional[str] = None  # resolved class for custom directives


@dataclass
class Container:
    """``ng-container``, ``ng-template`` or ``ng-content`` placeholders."""

    kind: str
    attributes: List[Any] = field(default_factory=list)
    children: List["TemplateNode"] = field(default_factory=list)
    position: Position = Position(1, 1)


TemplateNode = Union[
    ElementNode, TextNode, Interpolation, StructuralDirective, Container,
    Attribute, PropertyBinding, EventBinding, TwoWayBinding, TemplateRefVar,
    AttributeDirective, PipeCall,
]
