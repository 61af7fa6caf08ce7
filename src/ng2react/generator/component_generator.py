"""
React component generator.

Renders :class:`ReactComponentArtifact` objects as TSX modules: the props
interface, the default-exported function component (or HOC factory) and
its JSX tree.
"""

import re
from typing import List, Optional

from ..transformer.target import (
    FunctionBody,
    JsxAttr,
    JsxConditional,
    JsxElement,
    JsxExpression,
    JsxFragment,
    JsxMap,
    JsxNode,
    JsxRenderProp,
    JsxStub,
    JsxText,
    ReactComponentArtifact,
)
from ..utils.logger import get_logger
from .base_generator import INDENT, BaseGenerator, GenerationContext, indent, quote

logger = get_logger(__name__)

MAX_LINE = 100
_TEXT_ESCAPES = re.compile(r"[{}<>]")
_TEXT_REPLACEMENTS = {"{": "{'{'}", "}": "{'}'}", "<": "&lt;", ">": "&gt;"}


def escape_text(text: str) -> str:
    return _TEXT_ESCAPES.sub(lambda m: _TEXT_REPLACEMENTS[m.group(0)], text)


def _wrap(lines: List[str], prefix: str, suffix: str) -> List[str]:
    if len(lines) == 1:
        return [prefix + lines[0] + suffix]
    return [prefix + lines[0]] + lines[1:-1] + [lines[-1] + suffix]


class JsxRenderer:
    """Renders a JSX tree as a list of lines (relative indentation)."""

    def render(self, node: JsxNode) -> List[str]:
        """Lines of ``node`` used as an expression (``return (...)``, ternary branch...)."""
        if isinstance(node, (JsxElement, JsxRenderProp)):
            return self._element(node)
        if isinstance(node, JsxFragment):
            return self._fragment(node)
        if isinstance(node, JsxText):
            text = re.sub(r"\s+", " ", node.text).strip()
            return [quote(text)]
        if isinstance(node, JsxExpression):
            return node.code.splitlines() or ["null"]
        if isinstance(node, JsxConditional):
            return self._conditional(node)
        if isinstance(node, JsxMap):
            return self._map(node)
        if isinstance(node, JsxStub):
            return [f"null /* {node.comment} */"]
        raise TypeError(f"Unknown JSX node {type(node).__name__}")

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------
    @staticmethod
    def _attr(attr: JsxAttr) -> str:
        if attr.spread:
            return f"{{...{attr.value or attr.name}}}"
        if attr.value is None:
            return attr.name
        if not attr.expression:
            return f'{attr.name}="{attr.value.replace(chr(34), "&quot;")}"'
        return f"{attr.name}={{{attr.value}}}"

    def _open_tag(self, tag: str, attrs: List[str], close: str) -> List[str]:
        single = f"<{tag}{''.join(' ' + a for a in attrs)}{close}"
        if len(single) <= MAX_LINE and not any("\n" in a for a in attrs):
            return [single]
        lines = [f"<{tag}"]
        for attr in attrs:
            lines.extend(indent(attr).splitlines())
        lines.append(close.strip())
        return lines

    def _element(self, node) -> List[str]:
        if isinstance(node, JsxRenderProp):
            tag = node.component
            attrs = [self._attr(a) for a in node.attrs]
            body = self.render(node.body) if node.body is not None else ["null"]
            params = ", ".join(node.params)
            if len(body) == 1:
                attrs.append(f"render={{({params}) => {body[0]}}}")
            else:
                attrs.append("\n".join([f"render={{({params}) => ("] + [indent(b) for b in body] + ["))}"]))
            return self._open_tag(tag, attrs, " />")

        attrs = [self._attr(a) for a in node.attrs]
        if not node.children:
            return self._open_tag(node.tag, attrs, " />")
        children = self._children(node.children)
        opening = self._open_tag(node.tag, attrs, ">")
        closing = f"</{node.tag}>"
        if len(opening) == 1 and len(children) == 1:
            single = opening[0] + children[0] + closing
            if len(single) <= MAX_LINE and self._inline_only(node.children):
                return [single]
        return opening + [indent(c) if c else c for c in children] + [closing]

    def _fragment(self, node: JsxFragment) -> List[str]:
        opening = f"<Fragment key={{{node.key}}}>" if node.key is not None else "<>"
        closing = "</Fragment>" if node.key is not None else "</>"
        children = self._children(node.children)
        if len(children) == 1 and len(opening + children[0] + closing) <= MAX_LINE \
                and self._inline_only(node.children):
            return [opening + children[0] + closing]
        return [opening] + [indent(c) if c else c for c in children] + [closing]

    @staticmethod
    def _inline_only(children: List[JsxNode]) -> bool:
        return all(isinstance(c, JsxText) or (isinstance(c, JsxExpression) and "\n" not in c.code)
                   for c in children)

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------
    def _children(self, children: List[JsxNode]) -> List[str]:
        """
        Child lines of an element.

        Runs of text and single-line expressions stay on one line so the
        spacing between them survives; whitespace bordering a block sibling
        is kept as ``{' '}``.
        """
        lines: List[str] = []
        run: List[JsxNode] = []
        blocks_before = False

        def flush(block_after: bool) -> None:
            if not run:
                return
            text = ""
            for item in run:
                if isinstance(item, JsxText):
                    text += escape_text(re.sub(r"\s+", " ", item.text))
                else:
                    text += f"{{{item.code}}}"
            raw = "".join(i.text if isinstance(i, JsxText) else "x" for i in run)
            stripped = text.strip()
            if not stripped:
                if "\n" not in raw and blocks_before and block_after:
                    lines.append("{' '}")
            else:
                if text[:1] == " " and blocks_before and "\n" not in raw[:len(raw) - len(raw.lstrip())]:
                    stripped = "{' '}" + stripped
                if text[-1:] == " " and block_after and "\n" not in raw[len(raw.rstrip()):]:
                    stripped = stripped + "{' '}"
                lines.append(stripped)
            run.clear()

        for child in children:
            if isinstance(child, JsxText) or (isinstance(child, JsxExpression) and "\n" not in child.code):
                run.append(child)
                continue
            flush(block_after=True)
            lines.extend(self._child_block(child))
            blocks_before = True
        flush(block_after=False)
        return lines

    def _child_block(self, node: JsxNode) -> List[str]:
        if isinstance(node, (JsxElement, JsxRenderProp, JsxFragment)):
            return self.render(node)
        if isinstance(node, JsxStub):
            return [f"{{/* {node.comment} */}}"]
        return _wrap(self.render(node), "{", "}")

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------
    def _branch(self, node: Optional[JsxNode]) -> List[str]:
        if node is None:
            return ["null"]
        lines = self.render(node)
        if isinstance(node, JsxConditional):
            return _wrap(lines, "(", ")")
        return lines

    def _conditional(self, node: JsxConditional) -> List[str]:
        condition = node.condition if "\n" not in node.condition else f"({node.condition})"
        then = self._branch(node.then)
        otherwise = self._branch(node.otherwise)
        if len(then) == 1 and len(otherwise) == 1:
            single = f"{condition} ? {then[0]} : {otherwise[0]}"
            if len(single) <= MAX_LINE:
                return [single]
        lines = [f"{condition} ? ("]
        lines.extend(indent(line) if line else line for line in then)
        if len(otherwise) == 1:
            lines.append(f") : {otherwise[0]}")
        else:
            lines.append(") : (")
            lines.extend(indent(line) if line else line for line in otherwise)
            lines.append(")")
        return lines

    def _map(self, node: JsxMap) -> List[str]:
        body = self.render(node.body)
        uses_index = any(re.search(rf"(?<![\w$.]){re.escape(node.index)}\b", line) for line in body)
        params = f"({node.item}, {node.index})" if uses_index else f"({node.item})"
        iterable = node.iterable if re.fullmatch(r"[\w$.]+", node.iterable) else f"({node.iterable})"
        head = f"{iterable}?.map({params} => "
        if len(body) == 1 and len(head + body[0]) + 1 <= MAX_LINE:
            return [f"{head}{body[0]})"]
        return [head + "("] + [indent(line) if line else line for line in body] + ["))"]


class ComponentGenerator(BaseGenerator):
    """Generates function component modules."""

    def __init__(self):
        self.jsx = JsxRenderer()

    def generate(self, artifact: ReactComponentArtifact, context: GenerationContext) -> str:
        """
        Generate a component module.

        Args:
            artifact: Component artifact
            context: Generation context

        Returns:
            TSX module text
        """
        logger.debug(f"Generating component {artifact.name}")
        if artifact.hoc:
            body_text = self._generate_hoc(artifact)
        else:
            body_text = self._generate_component(artifact)
        return self._compose(artifact.imports, body_text, context, jsx=True)

    def _props_name(self, artifact: ReactComponentArtifact) -> str:
        base = artifact.name[4:] if artifact.hoc and artifact.name.startswith("with") else artifact.name
        return f"{base}Props"

    def _generate_return(self, artifact: ReactComponentArtifact) -> str:
        root = artifact.jsx
        if root is None or (isinstance(root, JsxExpression) and root.code == "null"):
            return "return null;"
        if isinstance(root, (JsxText, JsxMap)):
            root = JsxFragment([root])
        lines = self.jsx.render(root)
        if len(lines) == 1:
            return f"return {lines[0]};"
        return "\n".join(["return ("] + [indent(line) if line else line for line in lines] + [");"])

    def _generate_stub_note(self, artifact: ReactComponentArtifact) -> str:
        lines = [f"// {artifact.stub_reason}"]
        if artifact.stub_source:
            lines.append("// Unconverted source:")
            lines.extend(f"// {line}".rstrip() for line in artifact.stub_source.splitlines())
        return "\n".join(lines)

    def _generate_component(self, artifact: ReactComponentArtifact) -> str:
        sections = []
        props_name = self._props_name(artifact)
        if artifact.props:
            sections.append(self._generate_interface(props_name, artifact.props))
        for const in artifact.module_constants:
            sections.append(self._generate_const(const))

        if artifact.props:
            param = f"{self._destructure(artifact.props)}: {props_name}"
            if artifact.stub_reason and artifact.body == FunctionBody():
                param = f"_props: {props_name}"
        else:
            param = ""

        inner = []
        body = self._generate_body(artifact.body)
        if body:
            inner.append(body)
        if artifact.stub_reason:
            inner.append(self._generate_stub_note(artifact))
            inner.append("return null;")
        else:
            inner.append(self._generate_return(artifact))

        function = [f"export default function {artifact.name}({param}) {{", indent("\n\n".join(inner)), "}"]
        sections.append("\n".join(function))
        return "\n\n".join(sections)

    def _generate_hoc(self, artifact: ReactComponentArtifact) -> str:
        props_name = self._props_name(artifact)
        inner_name = artifact.name[:1].upper() + artifact.name[1:]
        if artifact.props:
            param = f"{self._destructure(artifact.props, rest='rest')}: {props_name} & Record<string, unknown>"
        else:
            param = "{ ...rest }: Record<string, unknown>"
        inner = []
        body = self._generate_body(artifact.body)
        if body:
            inner.append(body)
        inner.append(self._generate_return(artifact))
        component = [f"function {inner_name}({param}) {{", indent("\n\n".join(inner)), "}"]
        factory = [
            f"export default function {artifact.name}(Wrapped: ElementType) {{",
            indent("\n".join(component)),
            "",
            f"{INDENT}return {inner_name};",
            "}",
        ]
        if not artifact.props:
            return "\n".join(factory)
        return "\n\n".join([self._generate_interface(props_name, artifact.props), "\n".join(factory)])
