"""
Main transpiler class that orchestrates the conversion process.

The run has two phases separated by a barrier:

1. every source file is classified and parsed (in parallel); the resulting
   declarations are registered in a :class:`SymbolIndex` which is then sealed;
2. every unit is built into IR, transformed and generated (in parallel),
   sharing only the sealed index.

Failures never cross a unit boundary: they become diagnostics and the unit
is emitted as a stub.
"""

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .config import TranspilerConfig
from .errors import (
    ConfigurationError,
    Diagnostic,
    DiagnosticCode,
    DiagnosticReport,
    DiagnosticSink,
    MalformedDeclarationError,
    PipelineInputError,
    Severity,
    UnclassifiedUnitError,
    UnitError,
)
from .generator import CodeGenerator
from .ir import IRBuilder, SymbolIndex
from .ir.nodes import StubIR, TypesIR
from .models import Declaration, SourceUnit
from .parser import DeclarationParser, SourceClassifier
from .parser.ts_nodes import has_type_declarations_only, parse_typescript
from .transformer import RuleEngine
from .transformer.naming import types_module_name
from .transformer.target import ReactComponentArtifact
from .utils.file_utils import collect_sources, write_file
from .utils.logger import configure_logging, get_logger
from .writer import DryRunWriter, FileWriter, OutputPlanner

logger = get_logger(__name__)

LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

WorkItem = Union[Declaration, StubIR, TypesIR]


@dataclass
class _FileWork:
    """Phase-1 outcome of one source file."""

    path: str
    text: str
    sink: DiagnosticSink
    items: List[WorkItem] = field(default_factory=list)


@dataclass
class _GeneratedFile:
    path: str
    text: str
    unit: str
    support: bool = False


@dataclass
class _UnitOutput:
    """Phase-2 outcome of one unit."""

    files: List[_GeneratedFile] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class RunResult:
    """Generated files keyed by logical path, plus the diagnostic report."""

    files: Dict[str, str]
    report: DiagnosticReport
    written: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.report.has_errors


def is_source_unit(path: str) -> bool:
    return path.endswith(".ts")


class Transpiler:
    """Main transpiler class that converts an Angular project to React."""

    def __init__(self, config: TranspilerConfig):
        """
        Initialize the transpiler.

        Args:
            config: Run configuration; validated when the run starts
        """
        self.config = config
        self.classifier = SourceClassifier()
        self.planner = OutputPlanner(config.use_typescript, config.preserve_structure)
        self._generator: Optional[CodeGenerator] = None

    @property
    def generator(self) -> CodeGenerator:
        if self._generator is None:
            self._generator = CodeGenerator(self.config.use_typescript, self.config.react_major)
        return self._generator

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def run(self) -> RunResult:
        """
        Transpile every source unit below ``config.source_dir``.

        Returns:
            The run result; files are written unless ``dry_run`` is set

        Raises:
            ConfigurationError: On an invalid configuration
            PipelineInputError: When no readable source unit is found
        """
        self.config.validate()
        logger.info(f"Collecting sources from {self.config.source_dir}")
        sources = collect_sources(self.config.source_dir)
        return self.transpile_sources(sources)

    def transpile_sources(self, sources: Mapping[str, Optional[str]]) -> RunResult:
        """
        Transpile an in-memory source set.

        Args:
            sources: Relative POSIX path -> file text (None for unreadable
                files). ``.ts`` entries are source units; everything else is
                a resource reachable through ``templateUrl``/``styleUrls``.

        Returns:
            The run result
        """
        self.config.validate(require_source=False)
        units = {path: text for path, text in sources.items() if is_source_unit(path)}
        if not units:
            raise PipelineInputError("The input set contains no TypeScript source units")
        if all(text is None for text in units.values()):
            raise PipelineInputError("None of the source units could be read")
        resources = {path: text for path, text in sources.items() if not is_source_unit(path)}

        works = self._phase_one(units, resources)
        index = self._build_index(works)
        outputs = self._phase_two(works, index)
        files, report = self._merge(works, outputs)
        written = self._write(files, report)

        counts = report.counts()
        logger.info(f"Generated {len(files)} file(s): {counts['error']} error(s), "
                    f"{counts['warning']} warning(s)")
        return RunResult(files=files, report=report, written=written)

    # ------------------------------------------------------------------
    # Phase 1: classification and parsing
    # ------------------------------------------------------------------
    def _phase_one(self, units: Dict[str, Optional[str]], resources: Dict[str, Optional[str]]) -> List[_FileWork]:
        logger.info(f"Phase 1: parsing {len(units)} source file(s)")
        parser = DeclarationParser(resources)
        paths = sorted(units)
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            return list(executor.map(lambda p: self._prepare(p, units[p], parser), paths))

    def _prepare(self, path: str, text: Optional[str], parser: DeclarationParser) -> _FileWork:
        work = _FileWork(path, text or "", DiagnosticSink(path))
        if text is None:
            work.sink.error(DiagnosticCode.UNIT_FAILURE, "Source file could not be read")
            return work
        try:
            self._classify_and_parse(work, parser)
        except Exception as e:
            logger.exception(f"Unexpected failure while parsing {path}")
            work.sink.error(DiagnosticCode.UNIT_FAILURE, f"Unexpected failure while parsing: {e}")
            work.items = [StubIR(types_module_name(path), path, None, f"Parsing failed: {e}", text)]
        return work

    def _classify_and_parse(self, work: _FileWork, parser: DeclarationParser) -> None:
        try:
            units = self.classifier.classify(work.path, work.text)
        except UnclassifiedUnitError as e:
            work.sink.record(e)
            tree, _ = parse_typescript(work.text)
            if has_type_declarations_only(tree.root_node):
                logger.debug(f"{work.path}: copying type declarations")
                work.items.append(TypesIR(types_module_name(work.path), work.path, work.text))
            return
        except MalformedDeclarationError as e:
            work.sink.record(e)
            work.items.append(StubIR(types_module_name(work.path), work.path, None, e.message, work.text))
            return

        for unit in units:
            try:
                work.items.append(parser.parse(unit))
            except UnitError as e:
                work.sink.record(e)
                work.items.append(self._unit_stub(unit, e.message))

    @staticmethod
    def _unit_stub(unit: SourceUnit, reason: str) -> StubIR:
        name = unit.class_name or types_module_name(unit.path)
        return StubIR(name, unit.path, unit.kind, reason, unit.text)

    def _build_index(self, works: List[_FileWork]) -> SymbolIndex:
        declarations = [item for work in works for item in work.items
                        if not isinstance(item, (StubIR, TypesIR))]
        types_units = [item.source_path for work in works for item in work.items if isinstance(item, TypesIR)]
        index = SymbolIndex.build(declarations, types_units)
        logger.info(f"Symbol index built with {len(index.names())} declaration(s)")
        return index

    # ------------------------------------------------------------------
    # Phase 2: IR, rules and generation
    # ------------------------------------------------------------------
    def _phase_two(self, works: List[_FileWork], index: SymbolIndex) -> List[List[_UnitOutput]]:
        jobs: List[Tuple[int, _FileWork, WorkItem]] = [
            (position, work, item) for position, work in enumerate(works) for item in work.items
        ]
        logger.info(f"Phase 2: converting {len(jobs)} unit(s)")
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            results = list(executor.map(lambda job: self._convert(job[1], job[2], index), jobs))

        outputs: List[List[_UnitOutput]] = [[] for _ in works]
        for (position, _, _), output in zip(jobs, results):
            outputs[position].append(output)
        return outputs

    def _convert(self, work: _FileWork, item: WorkItem, index: SymbolIndex) -> _UnitOutput:
        sink = DiagnosticSink(work.path)
        engine = RuleEngine(index, sink)
        try:
            if isinstance(item, (StubIR, TypesIR)):
                node = item
            else:
                node = IRBuilder(index, sink).build(item)
            artifacts = engine.transform(node)
        except UnitError as e:
            sink.record(e)
            artifacts = engine.stub(self._failure_stub(work, item, e.message))
        except Exception as e:
            logger.exception(f"Unexpected failure while converting {item.name} ({work.path})")
            sink.error(DiagnosticCode.UNIT_FAILURE, f"Unexpected failure while converting {item.name}: {e}")
            artifacts = engine.stub(self._failure_stub(work, item, f"Conversion failed: {e}"))

        output = _UnitOutput()
        for artifact in artifacts:
            try:
                output.files.extend(self._generate(artifact, work.path))
            except Exception as e:
                logger.exception(f"Failed to generate {artifact.name} ({work.path})")
                sink.error(DiagnosticCode.UNIT_FAILURE, f"Failed to generate {artifact.name}: {e}")
        output.diagnostics = sink.items
        return output

    @staticmethod
    def _failure_stub(work: _FileWork, item: WorkItem, reason: str) -> StubIR:
        kind = getattr(item, "kind", None) or getattr(item, "unit_kind", None)
        return StubIR(item.name, work.path, kind, reason, work.text,
                      inputs=list(getattr(item, "inputs", [])), outputs=list(getattr(item, "outputs", [])))

    def _generate(self, artifact, unit: str) -> List[_GeneratedFile]:
        path = self.planner.path_for(artifact)
        text = self.generator.generate(artifact, lambda ref: self.planner.import_path(path, ref))
        if text is None:
            return []
        support = not artifact.ref.source_path
        files = [_GeneratedFile(path, text, unit, support)]
        if self.config.generate_tests and isinstance(artifact, ReactComponentArtifact) and not artifact.hoc:
            test_path = self.planner.test_path(artifact)
            test_text = self.generator.generate_test(
                artifact, lambda ref: self.planner.import_path(test_path, ref))
            files.append(_GeneratedFile(test_path, test_text, unit))
        return files

    # ------------------------------------------------------------------
    # Aggregation and output
    # ------------------------------------------------------------------
    def _merge(self, works: List[_FileWork],
               outputs: List[List[_UnitOutput]]) -> Tuple[Dict[str, str], DiagnosticReport]:
        """
        Combine per-unit outputs in sorted unit order.

        Shared support modules are kept once; any other path produced twice
        keeps the first producer and warns on the later one.
        """
        report = DiagnosticReport()
        produced: Dict[str, _GeneratedFile] = {}
        for work, unit_outputs in zip(works, outputs):
            diagnostics = list(work.sink.items)
            for output in unit_outputs:
                diagnostics.extend(output.diagnostics)
                for generated in output.files:
                    existing = produced.get(generated.path)
                    if existing is None:
                        produced[generated.path] = generated
                    elif not (generated.support and existing.support):
                        diagnostics.append(Diagnostic(
                            work.path, Severity.WARNING, DiagnosticCode.UNSUPPORTED_CONSTRUCT,
                            f"Output path {generated.path} is already produced by {existing.unit}; skipped",
                        ))
            for diagnostic in diagnostics:
                logger.log(LOG_LEVELS[diagnostic.severity], diagnostic.format())
            report.extend(diagnostics)
        files = {path: produced[path].text for path in sorted(produced)}
        return files, report

    def _write(self, files: Dict[str, str], report: DiagnosticReport) -> List[str]:
        if self.config.dry_run:
            writer = DryRunWriter()
        else:
            writer = FileWriter(self.config.output_dir)
        for path, text in files.items():
            if not writer.write(path, text):
                report.extend([Diagnostic(path, Severity.ERROR, DiagnosticCode.UNIT_FAILURE,
                                          "Could not write output file")])
        if self.config.dry_run:
            logger.info(f"Dry run: {len(writer.written)} file(s) would be written")
        else:
            logger.info(f"Wrote {len(writer.written)} file(s) to {self.config.output_dir}")
        return writer.written


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ng2react", description="Transpile an Angular project to React")
    parser.add_argument("source", nargs="?", help="Angular source directory")
    parser.add_argument("output", nargs="?", help="Output directory")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--no-typescript", action="store_true", help="Emit .jsx/.js instead of .tsx/.ts")
    parser.add_argument("--generate-tests", action="store_true", help="Emit a smoke test per component")
    parser.add_argument("--preserve-structure", action="store_true",
                        help="Keep source directories under each category folder")
    parser.add_argument("--react-version", help="Target React version (default 18)")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be written")
    parser.add_argument("--report-json", metavar="FILE", help="Write the diagnostic report as JSON")
    parser.add_argument("--workers", type=int, help="Worker threads per phase")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only warnings and errors")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_arg_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "WARNING" if args.quiet else "INFO")

    try:
        config = TranspilerConfig.from_file(args.config) if args.config else TranspilerConfig()
        config = config.merged({
            "source_dir": args.source,
            "output_dir": args.output,
            "use_typescript": False if args.no_typescript else None,
            "generate_tests": True if args.generate_tests else None,
            "preserve_structure": True if args.preserve_structure else None,
            "react_version": args.react_version,
            "dry_run": True if args.dry_run else None,
            "max_workers": args.workers,
        })
        result = Transpiler(config).run()
    except (ConfigurationError, PipelineInputError) as e:
        logger.error(f"Transpilation failed: {e}")
        return 2

    if args.report_json and not write_file(args.report_json, result.report.to_json()):
        logger.error(f"Could not write report to {args.report_json}")

    print("Files that would be written:" if config.dry_run else "Successfully transpiled to:")
    for path in result.written:
        print(f"  {path}")
    print(result.report.format_text())
    return 1 if result.has_errors else 0


if __name__ == "__main__":
    sys.exit(main())
