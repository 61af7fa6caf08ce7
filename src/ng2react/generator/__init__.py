"""Code generation module for React artifacts."""

from .code_generator import CodeGenerator, is_jsx
from .component_generator import ComponentGenerator
from .context_generator import ContextGenerator
from .css_generator import CSSGenerator
from .hook_generator import HookGenerator
from .route_generator import RouteGenerator
from .test_generator import TestGenerator
from .type_stripper import TypeStripper
from .util_generator import UtilGenerator

__all__ = [
    "CodeGenerator",
    "is_jsx",
    "ComponentGenerator",
    "HookGenerator",
    "ContextGenerator",
    "RouteGenerator",
    "UtilGenerator",
    "CSSGenerator",
    "TestGenerator",
    "TypeStripper",
]
