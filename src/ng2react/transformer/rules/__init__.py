"""Transformation rules for converting Angular declarations to React."""

from .component_rules import ComponentRules
from .directive_rules import DirectiveRules
from .event_rules import EventRules
from .hooks_rules import HooksRules
from .jsx_rules import JSXRules
from .module_rules import ModuleRules, RouteRules
from .pipe_rules import PipeRules
from .service_rules import ServiceRules

__all__ = [
    "ComponentRules",
    "ServiceRules",
    "PipeRules",
    "DirectiveRules",
    "ModuleRules",
    "RouteRules",
    "JSXRules",
    "HooksRules",
    "EventRules",
]
