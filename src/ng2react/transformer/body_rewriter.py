"""
Rewrites class-method bodies and template expressions into function-component code.

Angular bodies address everything through ``this``. The rewriter turns
emitter calls into callback props, assignments to state fields into setter
calls, ref fields into ``.current`` accesses and framework service calls into
their React/DOM counterparts, then drops the remaining ``this.`` prefixes.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from ..errors import DiagnosticCode, DiagnosticSink
from ..ir.nodes import DependencyIR, DependencyKind
from ..parser.expressions import rename_identifiers, split_statements, split_top_level
from ..utils.logger import get_logger

logger = get_logger(__name__)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}
_QUOTES = {"'", '"', "`"}
_CONTINUATION = tuple(".?:+-*/%&|,=<>")

ARRAY_APPEND = {"push": "[...{name}, {args}]", "unshift": "[{args}, ...{name}]"}
ARRAY_MUTATORS = ("pop", "shift", "splice", "sort", "reverse", "fill", "copyWithin")
CHANGE_DETECTION_CALLS = ("detectChanges", "markForCheck", "detach", "reattach", "checkNoChanges")


@dataclass
class RewriteContext:
    """Names visible in one generated function body, by role."""

    props: Set[str] = field(default_factory=set)
    outputs: Dict[str, str] = field(default_factory=dict)     # output -> callback prop
    state: Dict[str, str] = field(default_factory=dict)       # state -> setter
    subjects: Set[str] = field(default_factory=set)
    refs: Set[str] = field(default_factory=set)
    element_refs: Dict[str, str] = field(default_factory=dict)  # ElementRef dependency -> ref variable
    dependencies: Dict[str, DependencyIR] = field(default_factory=dict)
    members: Set[str] = field(default_factory=set)            # everything addressable through `this`


def find_closing(text: str, open_index: int) -> int:
    """Index of the bracket closing the one at ``open_index`` (quote aware), or -1."""
    stack = []
    quote = None
    i = open_index
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in _CLOSERS:
            if not stack or stack.pop() != ch:
                return -1
            if not stack:
                return i
        i += 1
    return -1


def expression_end(text: str, start: int) -> int:
    """End index (exclusive) of the expression starting at ``start``."""
    depth = 0
    quote = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            if depth == 0:
                return i
            depth -= 1
        elif depth == 0 and ch in ";,":
            return i
        elif depth == 0 and ch == "\n":
            rest = text[i:].lstrip()
            if not rest.startswith(_CONTINUATION) and not text[:i].rstrip().endswith(_CONTINUATION):
                return i
        i += 1
    return len(text)


def _simple(expression: str) -> bool:
    return re.fullmatch(r"[\w$.]+|'[^']*'|\"[^\"]*\"", expression.strip()) is not None


class BodyRewriter:
    """Rewrites bodies against one :class:`RewriteContext`."""

    def __init__(self, context: RewriteContext, sink: Optional[DiagnosticSink] = None):
        self.context = context
        self.sink = sink
        self.uses: Set[str] = set()  # router hooks the rewritten code relies on

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def rewrite(self, body: str) -> str:
        if not body:
            return ""
        text = body
        text = self._unwrap_calls(text, ("firstValueFrom", "lastValueFrom", "$any"))
        text = re.sub(r"\.toPromise\(\)", "", text)
        text = self._rewrite_dependencies(text)
        text = self._rewrite_outputs(text)
        text = self._rewrite_subjects(text)
        text = self._rewrite_state(text)
        text = self._rewrite_refs(text)
        text = re.sub(r"\.bind\(this\)", "", text)
        text = re.sub(r"\bthis\.(?=[\w$])", "", text)
        return _drop_blank_runs(text)

    def rewrite_expression(self, expression: str, local_names: Optional[Dict[str, str]] = None) -> str:
        """Rewrite a template expression; ``local_names`` maps template locals to replacements."""
        local_names = dict(local_names or {})
        local_names.setdefault("$event", "event")
        mapping = {m: f"this.{m}" for m in self.context.members if m not in local_names}
        mapping.update({k: v for k, v in local_names.items() if k != v})
        return self.rewrite(rename_identifiers(expression.strip(), mapping))

    def rewrite_statements(self, handler: str, local_names: Optional[Dict[str, str]] = None) -> List[str]:
        return [self.rewrite_expression(s, local_names) for s in split_statements(handler)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _warn(self, message: str) -> None:
        if self.sink is not None:
            self.sink.warning(DiagnosticCode.UNSUPPORTED_CONSTRUCT, message)

    def _unwrap_calls(self, text: str, names) -> str:
        for name in names:
            pattern = re.compile(rf"(?<![\w$.]){re.escape(name)}\(")
            match = pattern.search(text)
            while match:
                close = find_closing(text, match.end() - 1)
                if close < 0:
                    break
                inner = text[match.end():close]
                text = text[:match.start()] + inner + text[close + 1:]
                match = pattern.search(text, match.start())
        return text

    def _replace_member_calls(self, text: str, member: str,
                              handler: Callable[[str, List[str]], Optional[str]]) -> str:
        """Replace ``this.member.method(args)`` with ``handler(method, args)`` where it returns text."""
        pattern = re.compile(rf"\bthis\.{re.escape(member)}\.([\w$]+)\(")
        pos = 0
        while True:
            match = pattern.search(text, pos)
            if match is None:
                return text
            close = find_closing(text, match.end() - 1)
            if close < 0:
                return text
            inner = text[match.end():close]
            args = [a.strip() for a in split_top_level(inner, ",")] if inner.strip() else []
            replacement = handler(match.group(1), args)
            if replacement is None:
                pos = match.end()
                continue
            text = text[:match.start()] + replacement + text[close + 1:]
            pos = match.start() + len(replacement)

    # ------------------------------------------------------------------
    # Framework services
    # ------------------------------------------------------------------
    def _rewrite_dependencies(self, text: str) -> str:
        for name, dep in self.context.dependencies.items():
            if dep.kind != DependencyKind.BUILTIN:
                continue
            rewrite = getattr(self, f"_rewrite_{dep.type_name.lower()}", None)
            if rewrite is not None:
                text = rewrite(text, name)
        return text

    def _rewrite_router(self, text: str, name: str) -> str:
        def navigate(method, args):
            if method == "navigate" and args:
                self.uses.add("navigate")
                target = args[0]
                return f"navigate({target}.join('/'))" if target.startswith("[") else f"navigate({target})"
            if method == "navigateByUrl" and args:
                self.uses.add("navigate")
                return f"navigate({args[0]})"
            self._warn(f"Router.{method}() has no react-router counterpart")
            return None

        text = self._replace_member_calls(text, name, navigate)
        if re.search(rf"\bthis\.{re.escape(name)}\.url\b", text):
            self.uses.add("location")
            text = re.sub(rf"\bthis\.{re.escape(name)}\.url\b", "location.pathname", text)
        return text

    def _rewrite_activatedroute(self, text: str, name: str) -> str:
        route = rf"\bthis\.{re.escape(name)}\.snapshot"
        if re.search(route + r"\.(?:paramMap|params)\b", text):
            self.uses.add("params")
        text = self._replace_snapshot_get(text, route + r"\.paramMap\.get\(", "params[{}]")
        text = re.sub(route + r"\.params\b", "params", text)
        if re.search(route + r"\.(?:queryParamMap|queryParams)\b", text):
            self.uses.add("searchParams")
        text = self._replace_snapshot_get(text, route + r"\.queryParamMap\.get\(", "searchParams.get({})")
        text = re.sub(route + r"\.queryParams\[([^\]]+)\]", r"searchParams.get(\1)", text)
        text = re.sub(route + r"\.queryParams\.([\w$]+)", r"searchParams.get('\1')", text)
        if re.search(rf"\bthis\.{re.escape(name)}\.(?:paramMap|params|queryParamMap|queryParams)\b", text):
            self._warn("Observable route parameters are read once through useParams()")
            self.uses.add("params")
            text = re.sub(rf"\bthis\.{re.escape(name)}\.(?:paramMap|params)\b", "params", text)
        return text

    def _replace_snapshot_get(self, text: str, prefix: str, template: str) -> str:
        pattern = re.compile(prefix)
        match = pattern.search(text)
        while match:
            close = find_closing(text, match.end() - 1)
            if close < 0:
                break
            replacement = template.format(text[match.end():close].strip())
            text = text[:match.start()] + replacement + text[close + 1:]
            match = pattern.search(text, match.start() + len(replacement))
        return text

    def _rewrite_elementref(self, text: str, name: str) -> str:
        target = self.context.element_refs.get(name, name)
        text = _dereference(text, rf"\bthis\.{re.escape(name)}\.nativeElement\.", target)
        return re.sub(rf"\bthis\.{re.escape(name)}\.nativeElement\b", f"{target}.current", text)

    def _rewrite_renderer2(self, text: str, name: str) -> str:
        def dom(method, args):
            a = args + [""] * 3
            calls = {
                "setStyle": f"{a[0]}.style.setProperty({a[1]}, {a[2]})",
                "removeStyle": f"{a[0]}.style.removeProperty({a[1]})",
                "addClass": f"{a[0]}.classList.add({a[1]})",
                "removeClass": f"{a[0]}.classList.remove({a[1]})",
                "setAttribute": f"{a[0]}.setAttribute({a[1]}, {a[2]})",
                "removeAttribute": f"{a[0]}.removeAttribute({a[1]})",
                "setProperty": f"{a[0]}[{a[1]}] = {a[2]}",
                "appendChild": f"{a[0]}.appendChild({a[1]})",
                "removeChild": f"{a[0]}.removeChild({a[1]})",
                "insertBefore": f"{a[0]}.insertBefore({a[1]}, {a[2]})",
                "createElement": f"document.createElement({a[0]})",
                "createText": f"document.createTextNode({a[0]})",
                "createComment": f"document.createComment({a[0]})",
                "setValue": f"{a[0]}.nodeValue = {a[1]}",
            }
            if method == "listen":
                target = {"'window'": "window", "'document'": "document", "'body'": "document.body"}.get(a[0], a[0])
                return (f"((target, type, listener) => {{ target.addEventListener(type, listener); "
                        f"return () => target.removeEventListener(type, listener); }})({target}, {a[1]}, {a[2]})")
            if method in calls:
                return calls[method]
            self._warn(f"Renderer2.{method}() is not converted")
            return None

        return self._replace_member_calls(text, name, dom)

    def _rewrite_changedetectorref(self, text: str, name: str) -> str:
        calls = "|".join(CHANGE_DETECTION_CALLS)
        return re.sub(rf"[ \t]*\bthis\.{re.escape(name)}\.(?:{calls})\(\)\s*;?", "", text)

    # ------------------------------------------------------------------
    # Component members
    # ------------------------------------------------------------------
    def _rewrite_outputs(self, text: str) -> str:
        for output, callback in self.context.outputs.items():
            text = re.sub(rf"\bthis\.{re.escape(output)}\.emit\(", f"{callback}(", text)
        return text

    def _rewrite_subjects(self, text: str) -> str:
        for name in self.context.subjects:
            setter = self.context.state.get(name)
            member = rf"\bthis\.{re.escape(name)}"
            if setter:
                text = re.sub(member + r"\.next\(", f"{setter}(", text)
            text = re.sub(member + r"\.(?:getValue|asObservable)\(\)", f"this.{name}", text)
            text = re.sub(member + r"\.value\b", f"this.{name}", text)
            if re.search(member + r"\.(?:pipe|subscribe)\(", text):
                self._warn(f"Stream operators on '{name}' are not converted")
        return text

    def _rewrite_state(self, text: str) -> str:
        names = set(self.context.state) | self.context.props
        if not names:
            return text
        pattern = re.compile(r"(\+\+|--)?\s*\bthis\.([\w$]+)")
        pos = 0
        while True:
            match = pattern.search(text, pos)
            if match is None:
                return text
            name = match.group(2)
            if name not in names:
                pos = match.end()
                continue
            result = self._state_update(text, match, name)
            if result is None:
                pos = match.end()
                continue
            start, end, replacement = result
            text = text[:start] + replacement + text[end:]
            pos = start + len(replacement)

    def _state_update(self, text: str, match, name: str):
        """Return (start, end, replacement) for a state write at ``match``, or None for a read."""
        setter = self.context.state.get(name)
        after = match.end()
        prefix_op = match.group(1)
        start = match.start() if prefix_op else match.start(2) - len("this.")

        if prefix_op:
            if setter is None:
                return None
            sign = "+" if prefix_op == "++" else "-"
            return start, after, f"{setter}({name} {sign} 1)"

        rest = text[after:]
        postfix = re.match(r"\s*(\+\+|--)", rest)
        if postfix:
            if setter is None:
                self._warn(f"Input '{name}' is modified locally; the prop is read-only")
                return None
            sign = "+" if postfix.group(1) == "++" else "-"
            return start, after + postfix.end(), f"{setter}({name} {sign} 1)"

        call = re.match(r"\.([\w$]+)\(", rest)
        if call and setter and (call.group(1) in ARRAY_APPEND or call.group(1) in ARRAY_MUTATORS):
            open_index = after + call.end() - 1
            close = find_closing(text, open_index)
            if close < 0:
                return None
            args = text[open_index + 1:close].strip()
            method = call.group(1)
            if method in ARRAY_APPEND:
                return start, close + 1, f"{setter}({ARRAY_APPEND[method].format(name=name, args=args)})"
            return start, close + 1, (f"{setter}((prev) => {{ const next = [...prev]; "
                                      f"next.{method}({args}); return next; }})")

        path = re.match(r"((?:\.[\w$]+|\[[^\]]+\])*)\s*(\?\?=|\|\|=|&&=|[-+*/%]?=)(?!=)", rest)
        if not path:
            return None
        if setter is None:
            self._warn(f"Input '{name}' is assigned locally; the prop is read-only")
            return None
        members, operator = path.group(1), path.group(2)
        value_start = after + path.end()
        while value_start < len(text) and text[value_start] in " \t":
            value_start += 1
        value_end = expression_end(text, value_start)
        value = text[value_start:value_end].strip()

        target = f"{name}{members}"
        if operator != "=":
            base_operator = operator[:-1]
            value = f"{target} {base_operator} {value if _simple(value) else f'({value})'}"

        if not members:
            return start, value_end, f"{setter}({value})"
        return start, value_end, f"{setter}({_spread_update(name, members, value)})"

    def _rewrite_refs(self, text: str) -> str:
        for name in self.context.refs:
            member = rf"\bthis\.{re.escape(name)}"
            text = _dereference(text, member + r"\.nativeElement\.", name)
            text = re.sub(member + r"\.nativeElement\b", f"{name}.current", text)
            text = re.sub(member + r"(?=\s*=(?!=))", f"{name}.current", text)
            text = _dereference(text, member + r"\.", name)
            text = re.sub(member + r"\b", f"{name}.current", text)
        return text


_ASSIGNMENT_TARGET = re.compile(r"[\w$]+(?:\.[\w$]+|\[[^\]]+\])*\s*(?:\?\?=|\|\|=|&&=|[-+*/%]?=)(?!=)")


def _dereference(text: str, prefix: str, ref: str) -> str:
    """Replace ``prefix`` with ``ref.current?.``, or ``ref.current!.`` where the chain is assigned to."""
    def replace(match) -> str:
        if _ASSIGNMENT_TARGET.match(text, match.end()):
            return f"{ref}.current!."
        return f"{ref}.current?."

    return re.sub(prefix, replace, text)


def _spread_update(name: str, members: str, value: str) -> str:
    """``user`` + ``.address.city`` + ``v`` -> ``{ ...user, address: { ...user.address, city: v } }``."""
    keys = re.findall(r"\.([\w$]+)|\[([^\]]+)\]", members)
    if any(index for _, index in keys):
        return f"(() => {{ const next = structuredClone({name}); next{members} = {value}; return next; }})()"
    parts = [key for key, _ in keys]

    def build(depth: int) -> str:
        if depth == len(parts):
            return value
        base = ".".join([name] + parts[:depth])
        return f"{{ ...{base}, {parts[depth]}: {build(depth + 1)} }}"

    return build(0)


def _drop_blank_runs(text: str) -> str:
    lines = text.split("\n")
    result: List[str] = []
    for line in lines:
        if not line.strip() and result and not result[-1].strip():
            continue
        result.append(line.rstrip())
    return "\n".join(result).strip("\n")
