"""
Framework-neutral intermediate representation.

One IR node is built per source unit by :class:`~ng2react.ir.ir_builder.IRBuilder`.
Method and lifecycle bodies are still source-framework text here; rewriting
them is the rule engine's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from ..models import (
    HostBinding,
    HostListener,
    ImportDecl,
    InputProp,
    OutputProp,
    Param,
    RouteDecl,
    TemplateNode,
    UnitKind,
)
from ..utils.string_utils import setter_name


class DependencyKind(str, Enum):
    SERVICE = "service"
    BUILTIN = "builtin"
    UNRESOLVED = "unresolved"


class EffectTrigger(str, Enum):
    MOUNT = "mount"              # empty dependency list
    CHANGES = "changes"          # keyed on inputs
    EVERY_RENDER = "every_render"  # no dependency list


@dataclass
class StateCell:
    name: str
    type: Optional[str] = None
    initial: Optional[str] = None
    origin: str = "field"  # "field" | "subject" | "two-way"
    public: bool = True

    @property
    def setter(self) -> str:
        return setter_name(self.name)


@dataclass
class RefCell:
    name: str
    type: Optional[str] = None
    initial: Optional[str] = None
    element: bool = False  # bound to a template element


@dataclass
class ConstantIR:
    name: str
    type: Optional[str] = None
    value: Optional[str] = None
    static: bool = False
    public: bool = True


@dataclass
class DependencyIR:
    name: str
    type_name: str
    kind: DependencyKind
    target: Optional[str] = None  # resolved class name
    target_unit: Optional[str] = None
    optional: bool = False


@dataclass
class EffectIR:
    trigger: EffectTrigger
    body: str = ""
    cleanup: str = ""
    deps: List[str] = field(default_factory=list)
    origin: List[str] = field(default_factory=list)  # lifecycle hooks folded into this effect


@dataclass
class MethodIR:
    name: str
    params: List[Param] = field(default_factory=list)
    body: str = ""
    return_type: Optional[str] = None
    is_async: bool = False
    asynchronous: bool = False  # async or Promise-returning
    public: bool = True


@dataclass
class GetterIR:
    name: str
    body: str
    type: Optional[str] = None


@dataclass
class TemplateRef:
    """A ``#name`` declared in a template."""

    name: str
    kind: str  # "element" | "template" | "component"
    node: Optional[TemplateNode] = None


@dataclass
class BaseIR:
    name: str
    source_path: str
    dependencies: List[DependencyIR] = field(default_factory=list)
    state: List[StateCell] = field(default_factory=list)
    refs: List[RefCell] = field(default_factory=list)
    constants: List[ConstantIR] = field(default_factory=list)
    methods: List[MethodIR] = field(default_factory=list)
    getters: List[GetterIR] = field(default_factory=list)
    effects: List[EffectIR] = field(default_factory=list)
    subjects: List[str] = field(default_factory=list)  # state cells backed by a Subject
    source_imports: List[ImportDecl] = field(default_factory=list)


@dataclass
class ComponentIR(BaseIR):
    selector: Optional[str] = None
    inputs: List[InputProp] = field(default_factory=list)
    outputs: List[OutputProp] = field(default_factory=list)
    template: List[TemplateNode] = field(default_factory=list)
    template_refs: Dict[str, TemplateRef] = field(default_factory=dict)
    host_listeners: List[HostListener] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    projects_content: bool = False
    template_error: Optional[str] = None
    template_source: Optional[str] = None
    view_children: Dict[str, str] = field(default_factory=dict)  # template ref name -> ref cell

    kind = UnitKind.COMPONENT


@dataclass
class ServiceIR(BaseIR):
    kind = UnitKind.SERVICE


@dataclass
class PipeIR(BaseIR):
    pipe_name: str = ""
    pure: bool = True
    transform: Optional[MethodIR] = None

    kind = UnitKind.PIPE


@dataclass
class DirectiveIR(BaseIR):
    selector: Optional[str] = None
    attribute: Optional[str] = None
    directive_kind: str = "attribute"
    inputs: List[InputProp] = field(default_factory=list)
    outputs: List[OutputProp] = field(default_factory=list)
    host_listeners: List[HostListener] = field(default_factory=list)
    host_bindings: List[HostBinding] = field(default_factory=list)
    renders_markup: bool = False
    condition: Optional[str] = None  # structural: expression deciding whether the region renders

    kind = UnitKind.DIRECTIVE


@dataclass
class ModuleIR(BaseIR):
    providers: List[DependencyIR] = field(default_factory=list)
    declarations: List[str] = field(default_factory=list)
    routes: List[RouteDecl] = field(default_factory=list)
    is_routing: bool = False
    route_table_unit: Optional[str] = None  # unit declaring the routes when they live elsewhere

    kind = UnitKind.MODULE


@dataclass
class RouteTableIR(BaseIR):
    routes: List[RouteDecl] = field(default_factory=list)

    kind = UnitKind.ROUTES


@dataclass
class StubIR:
    """A unit passed through unconverted, with the reason attached."""

    name: str
    source_path: str
    unit_kind: Optional[UnitKind]
    reason: str
    source_text: str = ""
    inputs: List[InputProp] = field(default_factory=list)
    outputs: List[OutputProp] = field(default_factory=list)


@dataclass
class TypesIR:
    """A unit declaring only interfaces, type aliases and enums."""

    name: str
    source_path: str
    text: str


IRNode = Union[ComponentIR, ServiceIR, PipeIR, DirectiveIR, ModuleIR, RouteTableIR, StubIR, TypesIR]
