import json

from ng2react.errors import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticReport,
    DiagnosticSink,
    DuplicateStructuralDirectiveError,
    MalformedTemplateError,
    Severity,
)


class TestDiagnostics:
    def test_sink_maps_errors_to_codes(self):
        sink = DiagnosticSink("src/app/a.component.ts")
        sink.record(MalformedTemplateError("Unclosed element <div>", line=3, column=5))
        sink.record(DuplicateStructuralDirectiveError("li", ["ngIf", "ngFor"], line=1, column=1))
        sink.warning(DiagnosticCode.KEY_FALLBACK, "No trackBy; using the index as key")
        assert [(d.code, d.severity) for d in sink.items] == [
            (DiagnosticCode.MALFORMED_TEMPLATE, Severity.ERROR),
            (DiagnosticCode.DUPLICATE_STRUCTURAL_DIRECTIVE, Severity.ERROR),
            (DiagnosticCode.KEY_FALLBACK, Severity.WARNING),
        ]
        assert sink.items[0].line == 3

    def test_format(self):
        diagnostic = Diagnostic("a.ts", Severity.WARNING, DiagnosticCode.UNRESOLVED_REFERENCE, "Unknown pipe 'x'",
                                line=2, column=7)
        assert diagnostic.format() == "a.ts:2:7: warning: [UnresolvedReferenceWarning] Unknown pipe 'x'"

    def test_report(self):
        report = DiagnosticReport()
        assert report.format_text() == "No diagnostics."
        report.extend([
            Diagnostic("a.ts", Severity.INFO, DiagnosticCode.UNSUPPORTED_CONSTRUCT, "note"),
            Diagnostic("b.ts", Severity.ERROR, DiagnosticCode.UNIT_FAILURE, "boom"),
        ])
        assert report.has_errors
        assert report.counts() == {"info": 1, "warning": 0, "error": 1}
        assert [d.unit for d in report.for_unit("b.ts")] == ["b.ts"]
        data = json.loads(report.to_json())
        assert data["diagnostics"][1] == {
            "unit": "b.ts", "severity": "error", "code": "UnitFailure", "message": "boom",
        }
        assert report.format_text().endswith("1 error(s), 0 warning(s), 1 info")
