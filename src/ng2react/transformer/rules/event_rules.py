"""
Rules for transforming Angular event bindings to React event handler props.

Includes:
- keyed events such as ``(keyup.enter)`` and ``(keydown.shift.tab)``
- two-way binding halves (``xChange``) as value callbacks
- ``ngModelChange`` on form controls as ``onChange`` reading ``event.target``
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from ...errors import DiagnosticCode, DiagnosticSink
from ...models import EventBinding
from ...utils.logger import get_logger
from ...utils.string_utils import callback_prop_name
from ..body_rewriter import BodyRewriter
from ..mappings import AngularReactMappings

logger = get_logger(__name__)

MODIFIER_KEYS = {"shift": "shiftKey", "control": "ctrlKey", "ctrl": "ctrlKey", "alt": "altKey", "meta": "metaKey"}


@dataclass
class Handler:
    """A converted handler: ``(param) => { if (guard) { statements } }``."""

    prop: str
    param: str
    statements: List[str]
    guard: Optional[str] = None

    def block(self) -> str:
        inner = " ".join(f"{s};" for s in self.statements)
        return f"if ({self.guard}) {{ {inner} }}" if self.guard else inner

    def render(self) -> str:
        uses_param = self.guard is not None or any(
            re.search(rf"(?<![\w$.]){self.param}\b", s) for s in self.statements
        )
        head = f"({self.param}) =>" if uses_param else "() =>"
        if self.guard is None and len(self.statements) == 1:
            return f"{head} {self.statements[0]}"
        return f"{head} {{ {self.block()} }}"


def merge_handlers(handlers: List[Handler]) -> str:
    """Render several handlers bound to the same prop as one function."""
    if len(handlers) == 1:
        return handlers[0].render()
    param = handlers[0].param
    parts = []
    for handler in handlers:
        if handler.param != param:
            parts.append(f"{{ const {handler.param} = {param}; {handler.block()} }}")
        else:
            parts.append(handler.block())
    return f"({param}) => {{ {' '.join(parts)} }}"


class EventRules:
    def __init__(self, sink: DiagnosticSink):
        self.sink = sink
        self.mappings = AngularReactMappings()

    def transform(self, binding: EventBinding, rewriter: BodyRewriter, local_names: Dict[str, str],
                  component: bool = False, form_value: Optional[str] = None) -> Optional[Handler]:
        """
        Convert one event binding.

        Args:
            binding: The ``(event)="handler"`` binding
            rewriter: Rewriter of the enclosing component
            local_names: Template locals visible at the binding
            component: Whether the element is a generated component (outputs become ``onX`` props)
            form_value: ``"value"``/``"checked"`` when this is the ngModelChange half on a form control

        Returns:
            The converted handler, or None when the binding cannot be converted
        """
        target, _, name = binding.name.rpartition(":")
        if target:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                              f"Global event binding ({binding.name}) in a template is not converted",
                              line=binding.position.line, column=binding.position.column)
            return None

        event, *modifiers = name.split(".")
        if binding.two_way and form_value:
            prop, param, value = "onChange", "event", f"event.target.{form_value}"
        elif binding.two_way:
            prop, param, value = callback_prop_name(event), "value", "value"
        elif component:
            prop, param, value = callback_prop_name(event), "event", "event"
        else:
            prop, param, value = self.mappings.get_event_mapping(event), "event", "event"

        statements = rewriter.rewrite_statements(binding.handler, {**local_names, "$event": value})
        logger.debug(f"Event ({binding.name}) -> {prop}")
        return Handler(prop, param, statements, self._key_guard(modifiers))

    def _key_guard(self, modifiers: List[str]) -> Optional[str]:
        if not modifiers:
            return None
        conditions = [f"event.{MODIFIER_KEYS[m.lower()]}" for m in modifiers[:-1] if m.lower() in MODIFIER_KEYS]
        key = modifiers[-1]
        if key.lower() in MODIFIER_KEYS:
            conditions.append(f"event.{MODIFIER_KEYS[key.lower()]}")
        else:
            conditions.append(f"event.key === '{self.mappings.get_key_mapping(key)}'")
        return " && ".join(conditions)
