"""Angular to React transpiler."""

from .config import TranspilerConfig
from .errors import Diagnostic, DiagnosticReport, TranspilerError
from .transpiler import RunResult, Transpiler

__version__ = "0.1.0"

__all__ = [
    "Transpiler",
    "TranspilerConfig",
    "RunResult",
    "Diagnostic",
    "DiagnosticReport",
    "TranspilerError",
    "__version__",
]
