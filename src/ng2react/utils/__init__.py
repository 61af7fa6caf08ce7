"""Utility modules for the transpiler."""

from .string_utils import to_pascal_case, to_camel_case
from .file_utils import collect_sources, read_file, write_file, ensure_directory
from .logger import configure_logging, get_logger, set_log_level

__all__ = [
    "to_pascal_case",
    "to_camel_case",
    "collect_sources",
    "read_file",
    "write_file",
    "ensure_directory",
    "configure_logging",
    "get_logger",
    "set_log_level",
]
