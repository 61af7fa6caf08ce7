"""
Rules for transforming Angular modules and route configurations.

A module becomes a context whose provider calls the hooks of the module's
declared providers. Routes (inline in ``RouterModule.forRoot/forChild`` or
in a standalone ``Routes`` array) become a react-router ``RouteObject[]``
table plus a component rendering it with ``useRoutes``.
"""

from typing import List

from ...errors import DiagnosticCode, DiagnosticSink
from ...ir.nodes import ModuleIR, RouteTableIR
from ...ir.symbol_index import SymbolIndex
from ...models import RouteDecl, UnitKind
from ...utils.logger import get_logger
from ...utils.string_utils import to_camel_case
from ..imports import ImportCollector
from ..naming import (
    component_name,
    component_ref,
    context_names,
    context_ref,
    module_base_name,
    route_base_name,
    routes_names,
    routes_ref,
    service_hook_name,
    service_ref,
)
from ..target import ConstDecl, ContextArtifact, RouteArtifact, RouteEntry

logger = get_logger(__name__)


class ModuleRules:
    """Builds context and route artifacts for modules."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink
        self.routes = RouteRules(index, sink)

    def transform(self, node: ModuleIR) -> list:
        """
        Transform a module IR node.

        A routing module without providers or declarations yields only its
        route table; every other module yields a context.

        Args:
            node: Module IR

        Returns:
            The context artifact and/or the route artifact
        """
        logger.debug(f"Applying module rules to {node.name}")
        artifacts = []
        if not node.is_routing or node.providers or node.declarations:
            artifacts.append(self._context(node))
        if node.is_routing and node.route_table_unit is None:
            base = module_base_name(node.name)
            artifacts.append(self.routes.build(base, node.source_path, node.routes))
        return artifacts

    def _context(self, node: ModuleIR) -> ContextArtifact:
        context, provider, hook = context_names(node.name)
        imports = ImportCollector()
        imports.react("createContext", "useContext", "useMemo")
        imports.add("ReactNode", module="react", type_only=True)

        providers = []
        for dep in node.providers:
            hook_name = service_hook_name(dep.target)
            imports.artifact(service_ref(dep.target, dep.target_unit), hook_name)
            providers.append(ConstDecl(to_camel_case(dep.target), f"{hook_name}()",
                                       f"ReturnType<typeof {hook_name}>"))

        artifact = ContextArtifact(context_ref(node.name, node.source_path), context, provider, hook,
                                   providers=providers)
        declared = [component_name(d) for d in node.declarations if d in self.index]
        if declared:
            artifact.comment = f"Declarations: {', '.join(declared)}"
        artifact.imports = imports.specs()
        return artifact


class RouteRules:
    """Converts route declarations to react-router route objects."""

    def __init__(self, index: SymbolIndex, sink: DiagnosticSink):
        self.index = index
        self.sink = sink

    def transform(self, node: RouteTableIR) -> list:
        logger.debug(f"Applying route rules to {node.source_path}")
        return [self.build(route_base_name(node.source_path), node.source_path, node.routes)]

    def build(self, base: str, source_path: str, routes: List[RouteDecl]) -> RouteArtifact:
        """
        Build the route artifact named after ``base``.

        Args:
            base: Name stem, e.g. ``App`` for ``AppRoutes``/``appRoutes``
            source_path: Unit the routes were declared in
            routes: Route declarations, in declaration order

        Returns:
            Route artifact
        """
        name, table = routes_names(base)
        imports = ImportCollector()
        imports.router("useRoutes")
        imports.add("RouteObject", module="react-router-dom", type_only=True)
        entries = [self._entry(route, imports, top=True) for route in routes]
        artifact = RouteArtifact(routes_ref(base, source_path), name, table, routes=entries)
        artifact.imports = imports.specs()
        return artifact

    def _entry(self, route: RouteDecl, imports: ImportCollector, top: bool) -> RouteEntry:
        entry = RouteEntry()
        notes = []
        path = "*" if route.path == "**" else route.path

        if route.redirect_to is not None:
            target = route.redirect_to
            if top and not target.startswith("/"):
                target = "/" + target
            entry.redirect = target
            imports.router("Navigate")

        if route.component:
            symbol = self.index.lookup(route.component)
            if symbol is not None and symbol.kind == UnitKind.COMPONENT:
                entry.element = component_name(symbol.name)
                imports.artifact(component_ref(symbol.name, symbol.unit), entry.element, default=True)
            else:
                notes.append(f"component {route.component} was not found")

        if route.load_children:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              f"Lazy route '{route.path}' (loadChildren) is not converted")
            notes.append(f"loadChildren: {route.load_children} is not converted")
        for guard in route.guards:
            key, _, guard_name = guard.partition(":")
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              f"Route {key} {guard_name} on '{route.path}' is not converted")
            notes.append(f"{key}: {guard_name} is not converted")
        if route.title:
            notes.append(f"title: {route.title}")

        entry.children = [self._entry(child, imports, top=False) for child in route.children]
        if path == "" and not entry.children:
            entry.index = True
        elif path:
            entry.path = path
        entry.comment = "; ".join(notes) or None
        return entry
