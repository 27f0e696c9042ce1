"""
LeakLens memory scanner.

High-level interface for analyzing source code for memory leaks.
Integrates the full pipeline:
    Source Code → Comment Stripper → Event Extractor → Allocation Tracker → Report
                                                     Quality Scanner ↗

Usage:
    from leaklens.scanner import MemoryScanner

    scanner = MemoryScanner(language="c")
    result = scanner.analyze_file("buffer.c")

    for leak in result.leaks:
        print(f"{leak.variable} (line {leak.line}): {leak.size_bytes} bytes")
        print(f"  Fix: {leak.fix}")
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import json
import sys
import traceback

from leaklens.analyzers.allocation_tracker import (
    AllocationRecord,
    AllocationTracker,
    FreeRecord,
    LeakReport,
    WarningReport,
)
from leaklens.analyzers.quality_scanner import scan_quality
from leaklens.comments import strip_comments
from leaklens.errors import InvalidSourceError
from leaklens.frontends.extractor import EventExtractor, NO_EXTRACTOR
from leaklens.specs.language_specs import EXTENSION_LANGUAGES
from leaklens.types import Language, LeakKind, Severity, WarningType, resolve_language


# Input size the CLI accepts by default; the library itself has no limit
MAX_INPUT_CHARS = 100000

SORT_KEYS = ("line", "size", "variable")


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable result of analyzing one source text"""
    language: str
    allocations: Tuple[AllocationRecord, ...] = ()
    frees: Tuple[FreeRecord, ...] = ()
    leaks: Tuple[LeakReport, ...] = ()
    warnings: Tuple[WarningReport, ...] = ()
    timeline: Tuple[Tuple[int, int], ...] = ()
    extractor: str = NO_EXTRACTOR
    filename: str = "<input>"

    @classmethod
    def analysis_error(cls, language: str, error: Exception, filename: str = "<input>") -> "AnalysisResult":
        """A result holding only the error that stopped the analysis"""
        warning = WarningReport(
            warning_type=WarningType.ANALYSIS_ERROR,
            line=0,
            message=f"Analysis encountered an error: {error}. Some results may be incomplete.",
            line_text="",
        )
        return cls(language=language, warnings=(warning,), filename=filename)

    @property
    def has_leaks(self) -> bool:
        return len(self.leaks) > 0

    @property
    def leaked_bytes(self) -> int:
        return sum(leak.size_bytes for leak in self.leaks)

    @property
    def error(self) -> Optional[str]:
        """Message of the analysis error, if the analysis failed"""
        for warning in self.warnings:
            if warning.warning_type == WarningType.ANALYSIS_ERROR:
                return warning.message
        return None

    @property
    def statistics(self) -> dict:
        return {
            "total_allocations": len(self.allocations),
            "total_frees": len(self.frees),
            "memory_leaks": len(self.leaks),
            "leaked_bytes": self.leaked_bytes,
            "warnings": len(self.warnings),
        }

    def _timeline_dicts(self) -> List[dict]:
        return [{"line": line, "memory": memory} for line, memory in self.timeline]

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "language": self.language,
            "extractor": self.extractor,
            "allocations": [a.to_dict() for a in self.allocations],
            "frees": [f.to_dict() for f in self.frees],
            "leaks": [leak.to_dict() for leak in self.leaks],
            "warnings": [w.to_dict() for w in self.warnings],
            "timeline": self._timeline_dicts(),
            "summary": self.statistics,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_export_dict(self, timestamp: Optional[str] = None) -> dict:
        """Export document: timestamp, language, statistics and all sequences"""
        if timestamp is None:
            timestamp = datetime.now(timezone.utc).isoformat()
        return {
            "timestamp": timestamp,
            "language": self.language,
            "statistics": self.statistics,
            "allocations": [a.to_dict() for a in self.allocations],
            "frees": [f.to_dict() for f in self.frees],
            "leaks": [leak.to_dict() for leak in self.leaks],
            "warnings": [w.to_dict() for w in self.warnings],
            "timeline": self._timeline_dicts(),
        }

    def to_sarif(self) -> dict:
        """Convert to SARIF format for GitHub/Azure DevOps integration"""
        rules = {}
        results = []

        findings = [(_leak_rule(leak.kind), leak.kind.value, leak.severity, leak.line, leak.fix)
                    for leak in self.leaks]
        findings += [(_warning_rule(w.warning_type), w.warning_type.value, w.severity, w.line, w.message)
                     for w in self.warnings]

        for rule_id, name, severity, line, text in findings:
            if rule_id not in rules:
                rules[rule_id] = {
                    "id": rule_id,
                    "name": name.replace("_", " ").title(),
                    "shortDescription": {"text": name},
                    "defaultConfiguration": {
                        "level": _severity_to_sarif_level(severity)
                    },
                }

            results.append({
                "ruleId": rule_id,
                "level": _severity_to_sarif_level(severity),
                "message": {"text": text},
                "locations": [{
                    "physicalLocation": {
                        "artifactLocation": {"uri": self.filename},
                        "region": {"startLine": max(1, line)},
                    }
                }],
            })

        return {
            "$schema": "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json",
            "version": "2.1.0",
            "runs": [{
                "tool": {
                    "driver": {
                        "name": "LeakLens",
                        "version": "0.1.0",
                        "rules": list(rules.values()),
                    }
                },
                "results": results,
            }]
        }


def _leak_rule(kind: LeakKind) -> str:
    return f"leaklens/leak-{kind.value}"


def _warning_rule(warning_type: WarningType) -> str:
    return "leaklens/" + warning_type.value.lower().replace(" ", "-")


def _severity_to_sarif_level(severity: Severity) -> str:
    mapping = {
        Severity.HIGH: "error",
        Severity.MEDIUM: "warning",
        Severity.LOW: "note",
        Severity.INFO: "note",
    }
    return mapping.get(severity, "warning")


class MemoryScanner:
    """
    Main memory leak scanner.

    Analyzes source code in one pass:
    1. Strip comments
    2. Extract allocation and release events (tree-sitter or line scanner)
    3. Track allocations per variable, reporting leaks and double frees
    4. Scan the original lines for unsafe string functions
    """

    def __init__(self, language: str = "c", verbose: bool = False, max_chars: Optional[int] = None):
        """
        Initialize the scanner.

        Args:
            language: Source language ("c", "cpp", "javascript", ...);
                unrecognized names are analyzed as C
            verbose: Enable verbose output on stderr
            max_chars: Reject sources longer than this (no limit if None)
        """
        self.language = language
        self.verbose = verbose
        self.max_chars = max_chars

    def analyze(self, source_code: str, filename: str = "<input>", language: Optional[str] = None) -> AnalysisResult:
        """
        Analyze source code for memory leaks.

        Args:
            source_code: Source code string
            filename: Filename for reporting
            language: Overrides the scanner's language for this call

        Returns:
            AnalysisResult with allocations, frees, leaks, warnings and timeline

        Raises:
            InvalidSourceError: if source_code is not a non-empty string, or
                is longer than max_chars
        """
        if not isinstance(source_code, str):
            raise InvalidSourceError(f"Source code must be a string, not {type(source_code).__name__}")
        if not source_code:
            raise InvalidSourceError("Source code is empty")
        if self.max_chars is not None and len(source_code) > self.max_chars:
            raise InvalidSourceError(
                f"Source code is too large ({len(source_code)} characters, limit {self.max_chars})"
            )

        requested = _language_name(language if language is not None else self.language)
        resolved = resolve_language(requested)

        try:
            if self.verbose:
                print(f"[Scanner] Analyzing {filename} as {resolved.value}...", file=sys.stderr)

            cleaned = strip_comments(source_code, verbose=self.verbose)
            extraction = EventExtractor(verbose=self.verbose).extract(cleaned, resolved)

            tracker = AllocationTracker(resolved, verbose=self.verbose)
            for event in extraction.events:
                tracker.process(event)
            tracker.finish()

            quality = scan_quality(source_code.split('\n'), verbose=self.verbose)

            result = AnalysisResult(
                language=requested,
                allocations=tuple(tracker.allocations),
                frees=tuple(tracker.frees),
                leaks=tuple(tracker.leaks),
                warnings=tuple(tracker.warnings) + tuple(quality),
                timeline=tuple(tracker.timeline),
                extractor=extraction.extractor,
                filename=filename,
            )
        except Exception as e:
            if self.verbose:
                traceback.print_exc()
            return AnalysisResult.analysis_error(requested, e, filename)

        if self.verbose:
            print(f"[Scanner] Analysis complete: {len(result.leaks)} leaks, "
                  f"{len(result.warnings)} warnings", file=sys.stderr)

        return result

    def analyze_file(self, filepath: str, language: Optional[str] = None) -> AnalysisResult:
        """
        Analyze a source file.

        Args:
            filepath: Path to source file
            language: Source language (auto-detected from the extension if None)

        Returns:
            AnalysisResult for the file
        """
        path = Path(filepath)
        if not path.is_file():
            raise InvalidSourceError(f"File not found: {filepath}")

        if language is None:
            language = detect_language(path, default=self.language)

        source_code = path.read_text(encoding='utf-8', errors='replace')
        return self.analyze(source_code, str(path), language=language)

    def analyze_directory(self, dirpath: str, pattern: Optional[str] = None,
                          language: Optional[str] = None) -> List[AnalysisResult]:
        """
        Analyze all matching files in a directory.

        Empty files are skipped.

        Args:
            dirpath: Directory path
            pattern: Glob pattern for files (all recognized source
                extensions if None)
            language: Source language (auto-detected per file if None)

        Returns:
            List of AnalysisResult, one per analyzed file
        """
        results = []
        dir_path = Path(dirpath)

        for filepath in source_files(dir_path, pattern):
            try:
                results.append(self.analyze_file(str(filepath), language=language))
            except InvalidSourceError as e:
                if self.verbose:
                    print(f"[Scanner] Skipping {filepath}: {e}", file=sys.stderr)

        return results


def source_files(dirpath, pattern: Optional[str] = None) -> List[Path]:
    """Files under `dirpath` matching `pattern`, or with a recognized extension"""
    dir_path = Path(dirpath)
    if pattern:
        return sorted(p for p in dir_path.glob(pattern) if p.is_file())
    return sorted(p for p in dir_path.glob("**/*")
                  if p.is_file() and p.suffix.lower() in EXTENSION_LANGUAGES)


def detect_language(filepath, default: str = "c") -> str:
    """Language name for a file, from its extension"""
    detected = EXTENSION_LANGUAGES.get(Path(filepath).suffix.lower())
    return detected.value if detected else default


def _language_name(language) -> str:
    if isinstance(language, Language):
        return language.value
    if language is None:
        return Language.C.value
    known = Language.from_name(language)
    return known.value if known else str(language).strip().lower()


def analyze(source_code: str, language: str = "c") -> AnalysisResult:
    """
    Convenience function to analyze source code.

    Args:
        source_code: Source code string
        language: Programming language; unrecognized names are analyzed as C

    Returns:
        AnalysisResult for the source
    """
    return MemoryScanner(language=language).analyze(source_code)


def analyze_file(filepath: str, language: Optional[str] = None) -> AnalysisResult:
    """
    Convenience function to analyze a file.

    Args:
        filepath: Path to source file
        language: Programming language (auto-detected if not specified)

    Returns:
        AnalysisResult for the file
    """
    return MemoryScanner().analyze_file(filepath, language=language)


def sort_leaks(leaks: Iterable[LeakReport], by: str = "line") -> List[LeakReport]:
    """
    Re-order leaks for display.

    by="line" sorts ascending, "size" largest first, "variable"
    alphabetically. The sort is stable: ties keep their reported order.
    """
    if by == "line":
        return sorted(leaks, key=lambda leak: leak.line)
    if by == "size":
        return sorted(leaks, key=lambda leak: -leak.size_bytes)
    if by == "variable":
        return sorted(leaks, key=lambda leak: leak.variable)
    raise ValueError(f"Unknown sort key: {by!r} (expected one of {', '.join(SORT_KEYS)})")
