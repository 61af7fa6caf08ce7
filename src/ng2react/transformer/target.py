"""
Target IR: React artifacts and JSX trees ready for code generation.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..models import Param


# ---------------------------------------------------------------------------
# Artifact identity and imports
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ArtifactRef:
    """Where an artifact lives: category folder, module name and originating unit."""

    category: str  # components | hooks | services | utils | contexts | pages | types | styles
    name: str
    source_path: str = ""
    extension: Optional[str] = None  # fixed extension (styles, types); None = decided by language


@dataclass
class ImportSpec:
    """``import default, { names } from module``; ``target`` points at another artifact."""

    names: List[str] = field(default_factory=list)
    default: Optional[str] = None
    module: Optional[str] = None
    target: Optional[ArtifactRef] = None
    side_effect: bool = False
    type_only: bool = False
    prune: bool = False  # drop names the generated code never references


# ---------------------------------------------------------------------------
# JSX
# ---------------------------------------------------------------------------

@dataclass
class JsxAttr:
    name: str
    value: Optional[str] = None
    expression: bool = True  # {value} vs "value"
    spread: bool = False


@dataclass
class JsxElement:
    tag: str
    attrs: List[JsxAttr] = field(default_factory=list)
    children: List["JsxNode"] = field(default_factory=list)


@dataclass
class JsxText:
    text: str


@dataclass
class JsxExpression:
    code: str


@dataclass
class JsxFragment:
    children: List["JsxNode"] = field(default_factory=list)
    key: Optional[str] = None


@dataclass
class JsxConditional:
    condition: str
    then: "JsxNode"
    otherwise: Optional["JsxNode"] = None


@dataclass
class JsxMap:
    iterable: str
    item: str
    index: str
    body: "JsxNode"


@dataclass
class JsxRenderProp:
    """``<Component {...attrs} render={(params) => body} />``."""

    component: str
    attrs: List[JsxAttr] = field(default_factory=list)
    params: List[str] = field(default_factory=list)
    body: Optional["JsxNode"] = None


@dataclass
class JsxStub:
    """Passthrough placeholder rendered as a JSX comment."""

    comment: str


JsxNode = Union[JsxElement, JsxText, JsxExpression, JsxFragment, JsxConditional, JsxMap, JsxRenderProp, JsxStub]


# ---------------------------------------------------------------------------
# Function bodies
# ---------------------------------------------------------------------------

@dataclass
class PropField:
    name: str
    type: str = "any"
    optional: bool = False
    default: Optional[str] = None
    local: Optional[str] = None  # destructured local name when it differs from the prop name


@dataclass
class StateDecl:
    name: str
    setter: str
    initial: Optional[str] = None
    type: Optional[str] = None


@dataclass
class RefDecl:
    name: str
    initial: Optional[str] = None
    type: Optional[str] = None


@dataclass
class ConstDecl:
    name: str
    value: str
    type: Optional[str] = None


@dataclass
class MemoDecl:
    name: str
    expression: str
    deps: List[str] = field(default_factory=list)


@dataclass
class EffectDecl:
    body: str = ""
    cleanup: str = ""
    deps: Optional[List[str]] = None  # None = run after every render
    comment: Optional[str] = None


@dataclass
class FunctionDecl:
    name: str
    params: List[Param] = field(default_factory=list)
    body: str = ""
    return_type: Optional[str] = None
    is_async: bool = False
    comment: Optional[str] = None


@dataclass
class FunctionBody:
    """Statements of a component or hook body, in render-safe order."""

    hook_calls: List[str] = field(default_factory=list)
    state: List[StateDecl] = field(default_factory=list)
    refs: List[RefDecl] = field(default_factory=list)
    constants: List[ConstDecl] = field(default_factory=list)
    functions: List[FunctionDecl] = field(default_factory=list)
    derived: List[ConstDecl] = field(default_factory=list)
    memos: List[MemoDecl] = field(default_factory=list)
    hook_uses: List[str] = field(default_factory=list)  # statement-form hook calls, e.g. directive hooks
    effects: List[EffectDecl] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------

@dataclass
class ReactComponentArtifact:
    ref: ArtifactRef
    name: str
    props: List[PropField] = field(default_factory=list)
    imports: List[ImportSpec] = field(default_factory=list)
    body: FunctionBody = field(default_factory=FunctionBody)
    jsx: Optional[JsxNode] = None
    module_constants: List[ConstDecl] = field(default_factory=list)  # e.g. HOC-wrapped element types
    hoc: bool = False  # render as withX(Wrapped) factory
    stub_reason: Optional[str] = None
    stub_source: Optional[str] = None
    style_ref: Optional[ArtifactRef] = None
    test: bool = True


@dataclass
class HookArtifact:
    ref: ArtifactRef
    name: str
    params: List[Param] = field(default_factory=list)
    imports: List[ImportSpec] = field(default_factory=list)
    body: FunctionBody = field(default_factory=FunctionBody)
    returns: List[str] = field(default_factory=list)  # returned object members
    return_expression: Optional[str] = None
    options_type: Optional[str] = None
    options: List[PropField] = field(default_factory=list)
    raw: Optional[str] = None  # prebuilt module text
    shared: bool = False


@dataclass
class ContextArtifact:
    ref: ArtifactRef
    name: str  # context object, e.g. AppContext
    provider: str
    hook: str
    imports: List[ImportSpec] = field(default_factory=list)
    providers: List[ConstDecl] = field(default_factory=list)  # key -> hook call
    comment: Optional[str] = None


@dataclass
class RouteEntry:
    path: Optional[str] = None
    index: bool = False
    element: Optional[str] = None  # component name
    redirect: Optional[str] = None
    children: List["RouteEntry"] = field(default_factory=list)
    comment: Optional[str] = None


@dataclass
class RouteArtifact:
    ref: ArtifactRef
    name: str  # routes component, e.g. AppRoutes
    table: str  # exported RouteObject[] constant
    imports: List[ImportSpec] = field(default_factory=list)
    routes: List[RouteEntry] = field(default_factory=list)


@dataclass
class UtilArtifact:
    ref: ArtifactRef
    name: str
    imports: List[ImportSpec] = field(default_factory=list)
    constants: List[ConstDecl] = field(default_factory=list)
    mutable: List[ConstDecl] = field(default_factory=list)  # module-level `let` bindings
    functions: List[FunctionDecl] = field(default_factory=list)
    exported: List[str] = field(default_factory=list)
    raw: Optional[str] = None  # prebuilt module or copied text
    shared: bool = False
    typed_only: bool = False  # emitted only when generating TypeScript


@dataclass
class StyleArtifact:
    ref: ArtifactRef
    name: str
    styles: List[str] = field(default_factory=list)


Artifact = Union[ReactComponentArtifact, HookArtifact, ContextArtifact, RouteArtifact, UtilArtifact, StyleArtifact]
