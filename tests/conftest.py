import logging

import pytest

from ng2react.config import TranspilerConfig
from ng2react.errors import DiagnosticSink
from ng2react.ir import IRBuilder, SymbolIndex
from ng2react.parser import DeclarationParser, SourceClassifier
from ng2react.transpiler import Transpiler


@pytest.fixture
def parse_declarations():
    """Classify and parse one file into its declarations."""

    def parse(text, path="src/app/unit.ts", resources=None):
        parser = DeclarationParser(resources)
        return [parser.parse(unit) for unit in SourceClassifier().classify(path, text)]

    return parse


@pytest.fixture
def build_ir(parse_declarations):
    """Parse ``text`` and build the IR of its first declaration against the given files."""

    def build(text, path="src/app/unit.ts", others=None):
        decls = parse_declarations(text, path)
        for other_path, other_text in (others or {}).items():
            decls.extend(parse_declarations(other_text, other_path))
        index = SymbolIndex.build(decls)
        sink = DiagnosticSink(path)
        return IRBuilder(index, sink).build(decls[0]), sink

    return build


@pytest.fixture
def transpile():
    """Run the whole pipeline over in-memory sources without writing anything."""

    def run(sources, **options):
        config = TranspilerConfig(dry_run=True, **options)
        return Transpiler(config).transpile_sources(sources)

    return run


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
