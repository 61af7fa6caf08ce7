"""Intermediate representation and the global symbol index."""

from .ir_builder import IRBuilder
from .nodes import (
    ComponentIR,
    DirectiveIR,
    IRNode,
    ModuleIR,
    PipeIR,
    RouteTableIR,
    ServiceIR,
    StubIR,
    TypesIR,
)
from .symbol_index import Symbol, SymbolIndex

__all__ = [
    "IRBuilder",
    "Symbol",
    "SymbolIndex",
    "IRNode",
    "ComponentIR",
    "ServiceIR",
    "PipeIR",
    "DirectiveIR",
    "ModuleIR",
    "RouteTableIR",
    "StubIR",
    "TypesIR",
]
