"""Parser module for Angular source units and templates."""

from .parser_interface import ParserInterface
from .classifier import SourceClassifier
from .declaration_parser import DeclarationParser
from .template_parser import TemplateParser

__all__ = ["ParserInterface", "SourceClassifier", "DeclarationParser", "TemplateParser"]
