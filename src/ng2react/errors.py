"""
Error taxonomy and the diagnostic report.

Exceptions are raised by the parsers and caught at the unit boundary by the
pipeline, where they become :class:`Diagnostic` entries. Only
:class:`ConfigurationError` and :class:`PipelineInputError` abort a run.
"""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class TranspilerError(Exception):
    """Base class for all transpiler errors."""


class UnitError(TranspilerError):
    """An error confined to a single source unit."""

    def __init__(self, message: str, unit: str = "", line: Optional[int] = None,
                 column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.unit = unit
        self.line = line
        self.column = column


class MalformedDeclarationError(UnitError):
    """Decorator metadata is present but cannot be parsed."""


class UnclassifiedUnitError(UnitError):
    """The unit carries no recognizable declaration marker."""


class TemplateError(UnitError):
    """Base class for template parse failures."""


class MalformedTemplateError(TemplateError):
    """Unterminated or structurally invalid template markup."""

    def __init__(self, message: str, attribute: Optional[str] = None, line: Optional[int] = None,
                 column: Optional[int] = None, unit: str = ""):
        location = f" at line {line}, column {column}" if line is not None else ""
        subject = f" in attribute '{attribute}'" if attribute else ""
        super().__init__(f"{message}{subject}{location}", unit=unit, line=line, column=column)
        self.attribute = attribute


class DuplicateStructuralDirectiveError(TemplateError):
    """More than one ``*directive`` on the same element."""

    def __init__(self, element: str, directives: List[str], line: Optional[int] = None,
                 column: Optional[int] = None, unit: str = ""):
        names = ", ".join(f"*{d}" for d in directives)
        super().__init__(
            f"Element <{element}> carries multiple structural directives ({names}) "
            f"at line {line}, column {column}",
            unit=unit, line=line, column=column,
        )
        self.element = element
        self.directives = directives


class ConfigurationError(TranspilerError):
    """Invalid configuration; fatal for the whole run."""


class PipelineInputError(TranspilerError):
    """The input set is missing, empty or unreadable; fatal for the whole run."""


class SymbolIndexSealedError(TranspilerError):
    """Raised on any attempt to register a symbol after the index was sealed."""


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(str, Enum):
    MALFORMED_DECLARATION = "MalformedDeclarationError"
    MALFORMED_TEMPLATE = "MalformedTemplateError"
    UNCLASSIFIED_UNIT = "UnclassifiedUnitError"
    DUPLICATE_STRUCTURAL_DIRECTIVE = "DuplicateStructuralDirectiveError"
    UNRESOLVED_REFERENCE = "UnresolvedReferenceWarning"
    MANUAL_REVIEW_REQUIRED = "ManualReviewRequired"
    KEY_FALLBACK = "KeyFallbackWarning"
    UNSUPPORTED_CONSTRUCT = "UnsupportedConstructWarning"
    UNIT_FAILURE = "UnitFailure"


# Exception type -> (code, severity) used when converting at the unit boundary
ERROR_CODES = {
    MalformedDeclarationError: (DiagnosticCode.MALFORMED_DECLARATION, Severity.ERROR),
    UnclassifiedUnitError: (DiagnosticCode.UNCLASSIFIED_UNIT, Severity.WARNING),
    DuplicateStructuralDirectiveError: (DiagnosticCode.DUPLICATE_STRUCTURAL_DIRECTIVE, Severity.ERROR),
    MalformedTemplateError: (DiagnosticCode.MALFORMED_TEMPLATE, Severity.ERROR),
}


@dataclass(frozen=True)
class Diagnostic:
    unit: str
    severity: Severity
    code: DiagnosticCode
    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    @classmethod
    def from_error(cls, error: UnitError, unit: str) -> "Diagnostic":
        code, severity = DiagnosticCode.UNIT_FAILURE, Severity.ERROR
        for error_type, mapped in ERROR_CODES.items():
            if isinstance(error, error_type):
                code, severity = mapped
                break
        return cls(unit, severity, code, error.message, error.line, error.column)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["code"] = self.code.value
        return {k: v for k, v in data.items() if v is not None}

    def format(self) -> str:
        location = f":{self.line}:{self.column}" if self.line is not None else ""
        return f"{self.unit}{location}: {self.severity.value}: [{self.code.value}] {self.message}"


class DiagnosticSink:
    """Collects diagnostics for one unit in emission order."""

    def __init__(self, unit: str):
        self.unit = unit
        self.items: List[Diagnostic] = []

    def add(self, severity: Severity, code: DiagnosticCode, message: str,
            line: Optional[int] = None, column: Optional[int] = None) -> None:
        self.items.append(Diagnostic(self.unit, severity, code, message, line, column))

    def info(self, code: DiagnosticCode, message: str, **location) -> None:
        self.add(Severity.INFO, code, message, **location)

    def warning(self, code: DiagnosticCode, message: str, **location) -> None:
        self.add(Severity.WARNING, code, message, **location)

    def error(self, code: DiagnosticCode, message: str, **location) -> None:
        self.add(Severity.ERROR, code, message, **location)

    def record(self, error: UnitError) -> None:
        self.items.append(Diagnostic.from_error(error, self.unit))


class DiagnosticReport:
    """Ordered, aggregated diagnostics of a pipeline run."""

    def __init__(self, diagnostics: Optional[List[Diagnostic]] = None):
        self.diagnostics: List[Diagnostic] = list(diagnostics or [])

    def extend(self, diagnostics: List[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    def __iter__(self):
        return iter(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def by_code(self, code: DiagnosticCode) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def for_unit(self, unit: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.unit == unit]

    def counts(self) -> Dict[str, int]:
        counts = {severity.value: 0 for severity in Severity}
        for d in self.diagnostics:
            counts[d.severity.value] += 1
        return counts

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.counts(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def format_text(self) -> str:
        if not self.diagnostics:
            return "No diagnostics."
        lines = [d.format() for d in self.diagnostics]
        counts = self.counts()
        lines.append(
            f"{counts['error']} error(s), {counts['warning']} warning(s), {counts['info']} info"
        )
        return "\n".join(lines)
