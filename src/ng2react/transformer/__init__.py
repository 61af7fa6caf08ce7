"""Transformer module for converting the Angular IR to React artifacts."""

from .mappings import AngularReactMappings
from .rule_engine import RuleEngine

__all__ = ["RuleEngine", "AngularReactMappings"]
