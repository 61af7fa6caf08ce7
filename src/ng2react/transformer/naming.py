"""
Naming transforms from Angular declarations to React artifacts.

Every function here is a pure function of the declaration name (and unit
path), so two runs over the same input always agree on file and symbol names.
"""

import posixpath
import re
from typing import Optional

from ..ir.symbol_index import Symbol
from ..models import UnitKind
from ..utils.string_utils import hook_name, strip_declaration_suffix, to_camel_case, to_pascal_case
from .target import ArtifactRef


def component_name(class_name: str) -> str:
    return to_pascal_case(strip_declaration_suffix(class_name)) or class_name


def service_hook_name(class_name: str) -> str:
    return hook_name(to_pascal_case(class_name))


def pipe_function_name(pipe_name: str) -> str:
    return to_camel_case(pipe_name)


def pipe_hook_name(pipe_name: str) -> str:
    return hook_name(to_pascal_case(pipe_name))


def directive_hook_name(class_name: str) -> str:
    return hook_name(component_name(class_name))


def directive_hoc_name(class_name: str) -> str:
    return "with" + component_name(class_name)


def module_base_name(class_name: str) -> str:
    base = strip_declaration_suffix(class_name)
    base = re.sub(r"Routing$", "", base) or base
    return to_pascal_case(base)


def route_base_name(source_path: str) -> str:
    stem = posixpath.basename(source_path)
    stem = re.sub(r"\.ts$", "", stem)
    stem = re.sub(r"([.-](routes|routing|module))+$", "", stem)
    return to_pascal_case(stem) or "App"


def context_names(class_name: str):
    """(context, provider, hook) names of a module's context."""
    base = module_base_name(class_name)
    return f"{base}Context", f"{base}Provider", f"use{base}Context"


def routes_names(base: str):
    """(component, table constant) names of a route table."""
    return f"{base}Routes", f"{base[:1].lower()}{base[1:]}Routes"


def types_module_name(source_path: str) -> str:
    return re.sub(r"\.ts$", "", posixpath.basename(source_path))


# ---------------------------------------------------------------------------
# Artifact references of declarations
# ---------------------------------------------------------------------------

def component_ref(class_name: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("components", component_name(class_name), source_path)


def service_ref(class_name: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("services", service_hook_name(class_name), source_path)


def pipe_util_ref(pipe_name: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("utils", pipe_function_name(pipe_name), source_path)


def pipe_hook_ref(pipe_name: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("hooks", pipe_hook_name(pipe_name), source_path)


def directive_ref(class_name: str, source_path: str, directive_kind: str, renders_markup: bool) -> ArtifactRef:
    if directive_kind == "structural":
        return ArtifactRef("components", component_name(class_name), source_path)
    if renders_markup:
        return ArtifactRef("components", directive_hoc_name(class_name), source_path)
    return ArtifactRef("hooks", directive_hook_name(class_name), source_path)


def context_ref(class_name: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("contexts", context_names(class_name)[0], source_path)


def routes_ref(base: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("pages", routes_names(base)[0], source_path)


def types_ref(source_path: str) -> ArtifactRef:
    return ArtifactRef("types", types_module_name(source_path), source_path)


def style_ref(class_name: str, source_path: str) -> ArtifactRef:
    return ArtifactRef("styles", component_name(class_name), source_path, extension=".css")


def symbol_ref(symbol: Symbol) -> Optional[ArtifactRef]:
    """Primary artifact of an indexed declaration."""
    decl = symbol.declaration
    if symbol.kind == UnitKind.COMPONENT:
        return component_ref(symbol.name, symbol.unit)
    if symbol.kind == UnitKind.SERVICE:
        return service_ref(symbol.name, symbol.unit)
    if symbol.kind == UnitKind.PIPE:
        return pipe_util_ref(decl.pipe_name, symbol.unit)
    if symbol.kind == UnitKind.DIRECTIVE:
        return directive_ref(symbol.name, symbol.unit, decl.directive_kind, decl.renders_markup)
    if symbol.kind == UnitKind.MODULE:
        return context_ref(symbol.name, symbol.unit)
    return None
