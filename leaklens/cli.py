#!/usr/bin/env python3
"""
LeakLens CLI.

Command-line interface for analyzing source code for memory leaks.

Usage:
    # Analyze a single file (language from the extension)
    python -m leaklens analyze buffer.c

    # SARIF output (for GitHub Actions)
    python -m leaklens analyze buffer.c --format sarif -o results.sarif

    # Analyze a directory
    python -m leaklens analyze src/ --pattern "**/*.cpp"

    # Summary text for sharing, leaks largest first
    python -m leaklens analyze app.js --format share --sort size
"""

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import List, Optional

from leaklens.errors import InvalidSourceError, UnsupportedLanguageError
from leaklens.scanner import (
    AnalysisResult,
    MemoryScanner,
    MAX_INPUT_CHARS,
    SORT_KEYS,
    sort_leaks,
    source_files,
)
from leaklens.types import Language


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser"""
    parser = argparse.ArgumentParser(
        prog="leaklens",
        description="LeakLens - heuristic static memory leak analyzer",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze files for memory leaks")
    analyze_parser.add_argument(
        "target",
        help="File or directory to analyze"
    )
    analyze_parser.add_argument(
        "-l", "--language",
        default=None,
        help="Source language: " + ", ".join(lang.value for lang in Language)
             + " (default: detected from the file extension, else c)"
    )
    analyze_parser.add_argument(
        "-p", "--pattern",
        default=None,
        help="Glob pattern for directory analysis (default: all recognized source files)"
    )
    analyze_parser.add_argument(
        "-f", "--format",
        default="text",
        choices=["text", "json", "sarif", "share", "export"],
        help="Output format (default: text)"
    )
    analyze_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)"
    )
    analyze_parser.add_argument(
        "--sort",
        default=None,
        choices=list(SORT_KEYS),
        help="Re-order reported leaks (default: order found)"
    )
    analyze_parser.add_argument(
        "--max-chars",
        type=int,
        default=MAX_INPUT_CHARS,
        help=f"Report files longer than this many characters as input errors (default: {MAX_INPUT_CHARS})"
    )
    analyze_parser.add_argument(
        "--fail-on",
        choices=["leak", "warning", "any", "none"],
        default="leak",
        help="Exit with error if findings of this kind are reported (default: leak)"
    )
    analyze_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output on stderr"
    )

    return parser


# =============================================================================
# Formatting
# =============================================================================

def format_bytes(size: float) -> str:
    """Human-readable byte count: 1024-based units, up to two decimals"""
    if not size or size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[unit]}"


def format_share_text(result: AnalysisResult) -> str:
    """Plain-text summary for pasting into chat or an issue"""
    stats = result.statistics
    lines = [
        "Memory Leak Analysis Results",
        "=" * 40,
        "",
        f"Total Allocations: {stats['total_allocations']}",
        f"Total Frees: {stats['total_frees']}",
        f"Memory Leaks: {stats['memory_leaks']}",
        f"Leaked Bytes: {format_bytes(stats['leaked_bytes'])}",
        f"Warnings: {stats['warnings']}",
        "",
    ]

    if result.leaks:
        lines.append("Memory Leaks:")
        lines.append("-" * 40)
        for i, leak in enumerate(result.leaks, 1):
            lines.append(f"{i}. {leak.variable or 'unknown'} (Line {leak.line}) - {format_bytes(leak.size_bytes)}")

    return "\n".join(lines) + "\n"


def summary_line(result: AnalysisResult) -> str:
    """One-line outcome of an analysis"""
    if result.error:
        return result.error
    if not result.leaks:
        return "Analysis complete! No memory leaks detected."
    return f"Analysis complete! Found {len(result.leaks)} memory leak(s)."


def format_text_result(result: AnalysisResult) -> str:
    """Format analysis result as human-readable text"""
    lines = []

    # Header
    lines.append(f"\n{'='*60}")
    lines.append(f"LeakLens Analysis: {result.filename}")
    lines.append(f"{'='*60}")

    # Stats
    stats = result.statistics
    lines.append(f"\nLanguage: {result.language} (extractor: {result.extractor})")
    lines.append(f"Allocations: {stats['total_allocations']}  Frees: {stats['total_frees']}")
    lines.append(f"Leaked: {format_bytes(stats['leaked_bytes'])}")
    if result.timeline:
        peak = max(memory for _, memory in result.timeline)
        lines.append(f"Peak memory: {format_bytes(peak)}")

    if result.leaks:
        lines.append(f"\nMemory Leaks: {len(result.leaks)}")
        lines.append("-" * 40)
        for i, leak in enumerate(result.leaks, 1):
            where = f" in {leak.enclosing_function}()" if leak.enclosing_function else ""
            loop = " [in loop]" if leak.in_loop else ""
            lines.append(f"\n{i}. [{leak.kind.value.upper()}] {leak.variable} = {leak.primitive}(...)"
                         f" line {leak.line}{where}{loop}")
            lines.append(f"   Size: {format_bytes(leak.size_bytes)}")
            lines.append(f"   Fix: {leak.fix}")

    if result.warnings:
        lines.append(f"\nWarnings: {len(result.warnings)}")
        lines.append("-" * 40)
        for warning in result.warnings:
            lines.append(f"  line {warning.line}: [{warning.warning_type.value}] {warning.message}")
            if warning.line_text:
                lines.append(f"      {warning.line_text}")

    lines.append(f"\n{summary_line(result)}")
    lines.append(f"\n{'='*60}\n")

    return "\n".join(lines)


def format_json_result(results: List[AnalysisResult]) -> str:
    """Format results as JSON"""
    if len(results) == 1:
        return results[0].to_json()
    combined = {
        "files": [r.to_dict() for r in results],
        "summary": {
            "files_analyzed": len(results),
            "total_leaks": sum(len(r.leaks) for r in results),
            "leaked_bytes": sum(r.leaked_bytes for r in results),
            "total_warnings": sum(len(r.warnings) for r in results),
        }
    }
    return json.dumps(combined, indent=2)


def format_export_result(results: List[AnalysisResult]) -> str:
    """Format results as export documents"""
    if len(results) == 1:
        return json.dumps(results[0].to_export_dict(), indent=2)
    return json.dumps([r.to_export_dict() for r in results], indent=2)


def format_sarif_result(results: List[AnalysisResult]) -> str:
    """Format results as SARIF"""
    if len(results) == 1:
        return json.dumps(results[0].to_sarif(), indent=2)

    # Combine multiple files into one SARIF run
    all_results = []
    rules = {}

    for result in results:
        run = result.to_sarif()["runs"][0]
        all_results.extend(run.get("results", []))
        for rule in run["tool"]["driver"].get("rules", []):
            rules[rule["id"]] = rule

    combined = results[0].to_sarif()
    combined["runs"][0]["tool"]["driver"]["rules"] = list(rules.values())
    combined["runs"][0]["results"] = all_results
    return json.dumps(combined, indent=2)


def should_fail(results: List[AnalysisResult], fail_on: str) -> bool:
    """Determine if the run should fail based on findings"""
    if fail_on == "none":
        return False
    has_leaks = any(r.leaks for r in results)
    has_warnings = any(r.warnings for r in results)
    if fail_on == "leak":
        return has_leaks
    if fail_on == "warning":
        return has_warnings
    return has_leaks or has_warnings


# =============================================================================
# Commands
# =============================================================================

def main(argv: List[str] = None) -> int:
    """Main CLI entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "analyze":
        return cmd_analyze(args)

    return 0


def resolve_cli_language(name: Optional[str]) -> Optional[str]:
    """Validate the --language flag"""
    if name is None:
        return None
    language = Language.from_name(name)
    if language is None:
        raise UnsupportedLanguageError(
            f"Unsupported language: {name} (expected one of {', '.join(lang.value for lang in Language)})"
        )
    return language.value


def cmd_analyze(args) -> int:
    """Execute analyze command"""
    target = Path(args.target)

    if not target.exists():
        print(f"Error: Target not found: {args.target}", file=sys.stderr)
        return 1

    try:
        language = resolve_cli_language(args.language)
    except UnsupportedLanguageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    scanner = MemoryScanner(language=language or "c", verbose=args.verbose, max_chars=args.max_chars)

    files = [target] if target.is_file() else source_files(target, args.pattern)
    if not files:
        print("No files found to analyze.", file=sys.stderr)
        return 1

    results = []
    input_error = False
    for path in files:
        try:
            results.append(scanner.analyze_file(str(path), language=language))
        except InvalidSourceError as e:
            print(f"Error: {path}: {e}", file=sys.stderr)
            input_error = True

    if args.sort:
        results = [dataclasses.replace(r, leaks=tuple(sort_leaks(r.leaks, args.sort))) for r in results]

    if results:
        if args.format == "text":
            output = "".join(format_text_result(r) for r in results)
        elif args.format == "json":
            output = format_json_result(results)
        elif args.format == "sarif":
            output = format_sarif_result(results)
        elif args.format == "export":
            output = format_export_result(results)
        else:
            output = "\n".join(format_share_text(r) for r in results)

        if args.output:
            with open(args.output, 'w') as f:
                f.write(output)
        else:
            print(output)

    if input_error or should_fail(results, args.fail_on):
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
