import json

import pytest

from ng2react.config import TranspilerConfig
from ng2react.errors import DiagnosticCode, PipelineInputError, Severity
from ng2react.transpiler import Transpiler, main

GREETING = """
import { Component, Input } from '@angular/core';

@Component({ selector: 'app-greeting', template: '<p>Hello {{ name }}</p>' })
export class GreetingComponent {
  @Input() name = 'world';
}
"""

CLOCK = """
import { Injectable } from '@angular/core';

@Injectable({ providedIn: 'root' })
export class ClockService {
  now() {
    return Date.now();
  }
}
"""

BROKEN = """
import { Component } from '@angular/core';

@Component({ selector: 'app-broken', template: '<p>x</p>'
export class BrokenComponent {}
"""

CONSTANTS = "export const answer = 42;\n"


def _sources():
    return {
        "src/app/greeting.component.ts": GREETING,
        "src/app/clock.service.ts": CLOCK,
        "src/app/constants.ts": CONSTANTS,
    }


def _write_project(root):
    app = root / "src" / "app"
    app.mkdir(parents=True)
    for path, text in _sources().items():
        (root / path).write_text(text)
    return root


class TestPipeline:
    def test_output_is_deterministic(self, transpile):
        first = transpile(_sources())
        second = transpile(dict(reversed(list(_sources().items()))), max_workers=1)
        assert first.files == second.files
        assert first.report.to_dict() == second.report.to_dict()
        assert list(first.files) == sorted(first.files)

    def test_expected_artifacts(self, transpile):
        result = transpile(_sources())
        assert set(result.files) == {"components/Greeting.tsx", "services/useClockService.ts"}
        assert result.written == list(result.files)

    def test_unclassified_unit_is_reported_not_fatal(self, transpile):
        result = transpile(_sources())
        (diagnostic,) = result.report.by_code(DiagnosticCode.UNCLASSIFIED_UNIT)
        assert diagnostic.unit == "src/app/constants.ts"
        assert diagnostic.severity == Severity.WARNING
        assert not result.has_errors

    def test_broken_unit_does_not_affect_the_others(self, transpile):
        sources = _sources()
        clean = transpile(sources)
        sources["src/app/broken.component.ts"] = BROKEN
        result = transpile(sources)

        assert result.has_errors
        errors = [d for d in result.report if d.severity == Severity.ERROR]
        assert {d.unit for d in errors} == {"src/app/broken.component.ts"}
        assert errors[0].code == DiagnosticCode.MALFORMED_DECLARATION
        for path, text in clean.files.items():
            assert result.files[path] == text

    def test_unreadable_unit(self, transpile):
        sources = _sources()
        sources["src/app/locked.component.ts"] = None
        result = transpile(sources)
        (diagnostic,) = result.report.for_unit("src/app/locked.component.ts")
        assert diagnostic.code == DiagnosticCode.UNIT_FAILURE
        assert "components/Greeting.tsx" in result.files

    def test_no_source_units(self, transpile):
        with pytest.raises(PipelineInputError):
            transpile({"src/app/app.component.html": "<p></p>"})
        with pytest.raises(PipelineInputError):
            transpile({"src/app/app.component.ts": None})

    def test_diagnostics_follow_unit_order(self, transpile):
        sources = _sources()
        sources["src/app/a.ts"] = CONSTANTS
        result = transpile(sources)
        units = [d.unit for d in result.report.by_code(DiagnosticCode.UNCLASSIFIED_UNIT)]
        assert units == ["src/app/a.ts", "src/app/constants.ts"]


class TestRun:
    def test_files_are_written(self, tmp_path):
        source = _write_project(tmp_path / "ng")
        output = tmp_path / "react"
        result = Transpiler(TranspilerConfig(source_dir=str(source), output_dir=str(output))).run()
        assert sorted(result.written) == ["components/Greeting.tsx", "services/useClockService.ts"]
        assert (output / "components" / "Greeting.tsx").read_text() == result.files["components/Greeting.tsx"]

    def test_dry_run_writes_nothing(self, tmp_path):
        source = _write_project(tmp_path / "ng")
        output = tmp_path / "react"
        config = TranspilerConfig(source_dir=str(source), output_dir=str(output), dry_run=True)
        result = Transpiler(config).run()
        assert "components/Greeting.tsx" in result.written
        assert not output.exists()


class TestCommandLine:
    def test_successful_run(self, tmp_path, capsys):
        source = _write_project(tmp_path / "ng")
        output = tmp_path / "react"
        assert main([str(source), str(output)]) == 0
        assert (output / "services" / "useClockService.ts").exists()
        assert "components/Greeting.tsx" in capsys.readouterr().out

    def test_missing_source_directory(self, tmp_path):
        assert main([str(tmp_path / "missing"), str(tmp_path / "out")]) == 2

    def test_unknown_config_option(self, tmp_path):
        config = tmp_path / "ng2react.json"
        config.write_text(json.dumps({"sourceDir": str(tmp_path), "colour": "blue"}))
        assert main(["--config", str(config)]) == 2

    def test_errors_set_the_exit_code(self, tmp_path):
        source = _write_project(tmp_path / "ng")
        (source / "src" / "app" / "broken.component.ts").write_text(BROKEN)
        assert main([str(source), "--dry-run", "-q"]) == 1

    def test_report_json_and_dry_run(self, tmp_path):
        source = _write_project(tmp_path / "ng")
        output = tmp_path / "react"
        report = tmp_path / "report.json"
        assert main([str(source), str(output), "--dry-run", "--report-json", str(report)]) == 0
        assert not output.exists()
        data = json.loads(report.read_text())
        assert data["summary"] == {"info": 0, "warning": 1, "error": 0}
        assert data["diagnostics"][0]["code"] == "UnclassifiedUnitError"

    def test_config_file_with_cli_overrides(self, tmp_path):
        source = _write_project(tmp_path / "ng")
        output = tmp_path / "react"
        config = tmp_path / "ng2react.json"
        config.write_text(json.dumps({"sourceDir": str(source), "outputDir": str(output)}))
        assert main(["--config", str(config), "--no-typescript"]) == 0
        assert (output / "components" / "Greeting.jsx").exists()
