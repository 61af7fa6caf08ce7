"""tree-sitter helpers for TypeScript source units.

Thin wrappers over the tree-sitter node API: text extraction, child lookup,
decorated-class discovery and evaluation of decorator metadata literals.
"""

import textwrap
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import tree_sitter
import tree_sitter_typescript

from ..models import Call, Expr, ImportDecl, MetadataValue

TS_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_tsx())

_ESCAPES = (("\\n", "\n"), ("\\t", "\t"), ("\\'", "'"), ('\\"', '"'), ("\\`", "`"), ("\\\\", "\\"))


class ClassInfo(NamedTuple):
    node: tree_sitter.Node
    name: str
    decorators: List[tree_sitter.Node]
    exported: bool


def parse_typescript(text: str) -> Tuple[tree_sitter.Tree, bytes]:
    """Parse TypeScript text; a fresh parser per call keeps this thread-safe."""
    source = text.encode("utf-8")
    parser = tree_sitter.Parser(TS_LANGUAGE)
    return parser.parse(source), source


def parse_tsx(text: str) -> Tuple[tree_sitter.Tree, bytes]:
    """Parse generated TSX (TypeScript with JSX) text."""
    source = text.encode("utf-8")
    parser = tree_sitter.Parser(TSX_LANGUAGE)
    return parser.parse(source), source


def node_text(node: Optional[tree_sitter.Node], source: bytes) -> str:
    if node is None:
        return ""
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def block_text(node: tree_sitter.Node, source: bytes) -> str:
    """Text of a multi-line node, dedented as if it started at column 0."""
    return textwrap.dedent(" " * node.start_point.column + node_text(node, source)).strip()


def child_of_type(node: tree_sitter.Node, *types: str) -> Optional[tree_sitter.Node]:
    for child in node.children:
        if child.type in types:
            return child
    return None


def children_of_type(node: tree_sitter.Node, *types: str) -> List[tree_sitter.Node]:
    return [child for child in node.children if child.type in types]


def has_token(node: tree_sitter.Node, token: str) -> bool:
    return any(child.type == token for child in node.children)


def type_annotation_text(node: Optional[tree_sitter.Node], source: bytes) -> Optional[str]:
    """``: Foo<Bar>`` -> ``Foo<Bar>``."""
    if node is None:
        return None
    return node_text(node, source).lstrip(":").strip() or None


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

def iter_classes(root: tree_sitter.Node, source: bytes) -> Iterator[ClassInfo]:
    """Yield top-level classes with the decorators attached to them.

    Decorators written before ``export`` belong to the export statement in the
    grammar; those written after it belong to the class itself.
    """
    for child in root.children:
        exported = child.type == "export_statement"
        outer_decorators = children_of_type(child, "decorator") if exported else []
        class_node = child
        if exported:
            class_node = child_of_type(child, "class_declaration", "abstract_class_declaration")
        if class_node is None or class_node.type not in ("class_declaration", "abstract_class_declaration"):
            continue
        name = node_text(class_node.child_by_field_name("name"), source)
        decorators = outer_decorators + children_of_type(class_node, "decorator")
        yield ClassInfo(class_node, name, decorators, exported)


def find_class(root: tree_sitter.Node, source: bytes, name: str) -> Optional[ClassInfo]:
    for info in iter_classes(root, source):
        if info.name == name:
            return info
    return None


def decorator_name(decorator: tree_sitter.Node, source: bytes) -> str:
    target = decorator.named_children[0] if decorator.named_children else None
    if target is None:
        return ""
    if target.type == "call_expression":
        target = target.child_by_field_name("function")
    return node_text(target, source).split(".")[-1]


def decorator_arguments(decorator: tree_sitter.Node) -> Optional[List[tree_sitter.Node]]:
    """Argument nodes of ``@Name(...)``, or None for a bare ``@Name``."""
    target = decorator.named_children[0] if decorator.named_children else None
    if target is None or target.type != "call_expression":
        return None
    arguments = target.child_by_field_name("arguments")
    if arguments is None:
        return None
    return [arg for arg in arguments.named_children if arg.type != "comment"]


def iter_variable_arrays(root: tree_sitter.Node, source: bytes) -> Iterator[Tuple[str, Optional[str], tree_sitter.Node]]:
    """Yield ``(name, type, array_node)`` for top-level ``const x = [...]`` declarations."""
    for child in root.children:
        declaration = child
        if child.type == "export_statement":
            declaration = child_of_type(child, "lexical_declaration", "variable_declaration")
        if declaration is None or declaration.type not in ("lexical_declaration", "variable_declaration"):
            continue
        for declarator in children_of_type(declaration, "variable_declarator"):
            value = declarator.child_by_field_name("value")
            if value is None or value.type != "array":
                continue
            name = node_text(declarator.child_by_field_name("name"), source)
            type_text = type_annotation_text(declarator.child_by_field_name("type"), source)
            yield name, type_text, value


def find_route_arrays(root: tree_sitter.Node, source: bytes) -> Dict[str, tree_sitter.Node]:
    """Top-level arrays typed ``Routes``/``Route[]``."""
    arrays = {}
    for name, type_text, value in iter_variable_arrays(root, source):
        if type_text and type_text.replace(" ", "") in ("Routes", "Route[]", "Array<Route>"):
            arrays[name] = value
    return arrays


def has_type_declarations_only(root: tree_sitter.Node) -> bool:
    """True when every top-level statement is an interface, type alias, enum or import."""
    allowed = {"interface_declaration", "type_alias_declaration", "enum_declaration", "import_statement", "comment"}
    found = False
    for child in root.children:
        node = child
        if child.type == "export_statement":
            node = child_of_type(child, *allowed) or child
        if node.type not in allowed:
            return False
        if node.type in ("interface_declaration", "type_alias_declaration", "enum_declaration"):
            found = True
    return found


# ---------------------------------------------------------------------------
# Metadata literals
# ---------------------------------------------------------------------------

def _unescape(text: str) -> str:
    for escaped, plain in _ESCAPES:
        text = text.replace(escaped, plain)
    return text


def _key_text(node: tree_sitter.Node, source: bytes) -> str:
    text = node_text(node, source)
    if node.type == "string":
        return _unescape(text[1:-1])
    return text


def literal_value(node: tree_sitter.Node, source: bytes) -> MetadataValue:
    """Evaluate an object/array/string literal; anything else is kept as :class:`Expr`."""
    node_type = node.type

    if node_type == "object":
        result = {}
        for child in node.named_children:
            if child.type == "pair":
                key = _key_text(child.child_by_field_name("key"), source)
                result[key] = literal_value(child.child_by_field_name("value"), source)
            elif child.type == "shorthand_property_identifier":
                name = node_text(child, source)
                result[name] = Expr(name)
        return result

    if node_type == "array":
        return [literal_value(c, source) for c in node.named_children if c.type != "comment"]

    if node_type in ("string", "template_string"):
        return _unescape(node_text(node, source)[1:-1])

    if node_type == "number":
        text = node_text(node, source)
        try:
            return int(text)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return Expr(text)

    if node_type == "true":
        return True
    if node_type == "false":
        return False
    if node_type == "null":
        return None

    if node_type == "parenthesized_expression" and node.named_children:
        return literal_value(node.named_children[0], source)

    if node_type == "call_expression":
        arguments = node.child_by_field_name("arguments")
        args = ()
        if arguments is not None:
            args = tuple(literal_value(a, source) for a in arguments.named_children if a.type != "comment")
        return Call(node_text(node.child_by_field_name("function"), source), args, node_text(node, source))

    return Expr(node_text(node, source))


def metadata_name(value: MetadataValue) -> str:
    """Symbol name carried by a metadata entry (``Foo``, ``Foo.forRoot()``, ``{provide: Foo}``)."""
    if isinstance(value, Expr):
        return value.text
    if isinstance(value, Call):
        return value.callee
    if isinstance(value, dict) and "provide" in value:
        return metadata_name(value["provide"])
    if isinstance(value, str):
        return value
    return str(value)


def iter_imports(root: tree_sitter.Node, source: bytes) -> List[ImportDecl]:
    """Top-level ``import`` statements in source order."""
    imports = []
    for child in root.children:
        if child.type != "import_statement":
            continue
        module_node = child.child_by_field_name("source")
        if module_node is None:
            continue
        decl = ImportDecl(module=node_text(module_node, source)[1:-1])
        clause = child_of_type(child, "import_clause")
        for part in clause.named_children if clause is not None else []:
            if part.type == "identifier":
                decl.default = node_text(part, source)
            elif part.type == "namespace_import":
                decl.namespace = node_text(child_of_type(part, "identifier"), source)
            elif part.type == "named_imports":
                for spec in children_of_type(part, "import_specifier"):
                    alias = spec.child_by_field_name("alias")
                    decl.names.append(node_text(alias or spec.child_by_field_name("name"), source))
        imports.append(decl)
    return imports
