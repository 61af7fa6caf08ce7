"""
Shared pieces of the React code generators.

Generators always produce TypeScript; JavaScript output is obtained by
stripping the types afterwards (see :mod:`.type_stripper`). Imports are
rendered last, from the finished module body, so names a pruned import
carries over but the body never uses are dropped.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..transformer.imports import referenced
from ..transformer.target import (
    ArtifactRef,
    ConstDecl,
    EffectDecl,
    FunctionBody,
    FunctionDecl,
    ImportSpec,
    PropField,
    RefDecl,
    StateDecl,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

INDENT = "  "
_AWAIT_RE = re.compile(r"(?<![\w$.])await\b")
_ASYNC_SCOPE_RE = re.compile(r"\basync\b")


@dataclass
class GenerationContext:
    """What a generator needs to know beyond the artifact itself."""

    typescript: bool = True
    react_major: int = 18
    import_path: Callable[[ArtifactRef], str] = lambda ref: f"./{ref.name}"


def indent(text: str, level: int = 1) -> str:
    prefix = INDENT * level
    return "\n".join(prefix + line if line.strip() else "" for line in text.splitlines())


def quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def generic(type_name: Optional[str]) -> str:
    return f"<{type_name}>" if type_name else ""


def annotation(type_name: Optional[str]) -> str:
    return f": {type_name}" if type_name else ""


class BaseGenerator:
    """Rendering helpers shared by every artifact generator."""

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------
    def _generate_imports(self, specs: List[ImportSpec], body_text: str, context: GenerationContext,
                          jsx: bool = False) -> str:
        """
        Render import statements for a module body.

        Args:
            specs: Imports collected by the rules
            body_text: The rendered module body (everything below the imports)
            context: Generation context
            jsx: Whether the module contains JSX (classic runtime needs React in scope)

        Returns:
            Import block, one statement per line
        """
        rendered = []
        react_default = jsx and context.react_major < 17
        has_react = False
        for spec in sorted(specs, key=lambda s: self._import_order(s, context)):
            module = spec.module if spec.module is not None else context.import_path(spec.target)
            if spec.side_effect:
                rendered.append(f"import {quote(module)};")
                continue
            names = sorted(spec.names)
            default = spec.default
            if spec.prune:
                names = [n for n in names if referenced(n, body_text)]
                if default and not referenced(default, body_text):
                    default = None
            if module == "react" and not spec.type_only:
                has_react = True
                if react_default:
                    default = "React"
            if not names and not default:
                continue
            rendered.append(self._import_statement(module, default, names, spec.type_only))
        if react_default and not has_react:
            rendered.insert(0, "import React from 'react';")
        return "\n".join(rendered)

    @staticmethod
    def _import_statement(module: str, default: Optional[str], names: List[str], type_only: bool) -> str:
        parts = []
        if default:
            parts.append(default)
        if names:
            parts.append("{ " + ", ".join(names) + " }")
        keyword = "import type" if type_only else "import"
        return f"{keyword} {', '.join(parts)} from {quote(module)};"

    @staticmethod
    def _import_order(spec: ImportSpec, context: GenerationContext):
        if spec.side_effect:
            group = 4
        elif spec.module == "react":
            group = 0
        elif spec.module == "react-router-dom":
            group = 1
        elif spec.module is not None:
            group = 2
        else:
            group = 3
        module = spec.module if spec.module is not None else context.import_path(spec.target)
        return group, module, spec.type_only

    def _compose(self, specs: List[ImportSpec], body_text: str, context: GenerationContext,
                 jsx: bool = False) -> str:
        """Imports + body as one module text ending with a newline."""
        imports = self._generate_imports(specs, body_text, context, jsx)
        text = f"{imports}\n\n{body_text.strip()}" if imports else body_text.strip()
        return text.rstrip() + "\n"

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    @staticmethod
    def _generate_interface(name: str, fields: List[PropField], all_optional: bool = False) -> str:
        if not fields:
            return f"export type {name} = Record<string, never>;"
        lines = [f"export interface {name} {{"]
        for prop in fields:
            optional = "?" if all_optional or prop.optional else ""
            key = prop.name if re.match(r"^[A-Za-z_$][\w$]*$", prop.name) else quote(prop.name)
            lines.append(f"{INDENT}{key}{optional}: {prop.type};")
        lines.append("}")
        return "\n".join(lines)

    @staticmethod
    def _destructure(fields: List[PropField], rest: Optional[str] = None) -> str:
        parts = []
        for prop in fields:
            part = prop.name
            if prop.local:
                part += f": {prop.local}"
            if prop.default is not None:
                part += f" = {prop.default}"
            parts.append(part)
        if rest:
            parts.append(f"...{rest}")
        return "{ " + ", ".join(parts) + " }" if parts else "{}"

    @staticmethod
    def _generate_state(state: StateDecl) -> str:
        initial = state.initial if state.initial is not None else ""
        return f"const [{state.name}, {state.setter}] = useState{generic(state.type)}({initial});"

    @staticmethod
    def _generate_ref(ref: RefDecl) -> str:
        type_name = ref.type
        initial = ref.initial
        if initial is None:
            initial = "undefined"
            if type_name:
                type_name = f"{type_name} | undefined"
        return f"const {ref.name} = useRef{generic(type_name)}({initial});"

    @staticmethod
    def _generate_const(const: ConstDecl, keyword: str = "const") -> str:
        return f"{keyword} {const.name}{annotation(const.type)} = {const.value};"

    def _generate_function(self, function: FunctionDecl, exported: bool = False) -> str:
        params = ", ".join(p.signature() for p in function.params)
        head = "export " if exported else ""
        if function.is_async:
            head += "async "
        lines = []
        if function.comment:
            lines.append(f"// {function.comment}")
        lines.append(f"{head}function {function.name}({params}){annotation(function.return_type)} {{")
        if function.body.strip():
            lines.append(indent(function.body))
        lines.append("}")
        return "\n".join(lines)

    def _generate_effect(self, effect: EffectDecl) -> str:
        body = effect.body.strip()
        if body and _AWAIT_RE.search(body) and not _ASYNC_SCOPE_RE.search(body):
            body = f"(async () => {{\n{indent(body)}\n}})();"
        lines = []
        if effect.comment:
            lines.append(f"// {effect.comment}")
        lines.append("useEffect(() => {")
        if body:
            lines.append(indent(body))
        if effect.cleanup.strip():
            lines.append(f"{INDENT}return () => {{")
            lines.append(indent(effect.cleanup.strip(), 2))
            lines.append(f"{INDENT}}};")
        if effect.deps is None:
            lines.append("});")
        else:
            lines.append(f"}}, [{', '.join(effect.deps)}]);")
        return "\n".join(lines)

    def _generate_body(self, body: FunctionBody) -> str:
        """
        Render a function body in render-safe order.

        Hook calls come first, then state, refs and constants, then local
        functions, derived values and memos, then statement-form hook uses
        and finally effects. Groups are separated by a blank line.
        """
        groups = [
            list(body.hook_calls),
            [self._generate_state(s) for s in body.state],
            [self._generate_ref(r) for r in body.refs],
            [self._generate_const(c) for c in body.constants],
            ["\n\n".join(self._generate_function(f) for f in body.functions)] if body.functions else [],
            [self._generate_const(c) for c in body.derived],
            [f"const {m.name} = useMemo(() => {m.expression}, [{', '.join(m.deps)}]);" for m in body.memos],
            list(body.hook_uses),
            ["\n\n".join(self._generate_effect(e) for e in body.effects)] if body.effects else [],
        ]
        return "\n\n".join("\n".join(group) for group in groups if group)
