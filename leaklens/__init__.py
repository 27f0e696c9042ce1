"""
LeakLens: heuristic static memory leak analysis.

Scans source text for allocation and release primitives and reports
suspected leaks, double frees, unsafe string functions and a running
memory timeline. Nothing is executed; results are best effort.

The library is organized into logical modules:
- comments: comment removal
- events: Allocation and Deallocation events
- frontends: event extraction (tree-sitter for JavaScript, line scanner)
- analyzers: size estimation, allocation tracking, quality scan
- scanner: the analysis pipeline and its result
- specs: pattern and size tables
"""

# Events and types
from leaklens.events import Allocation, Deallocation, MemoryEvent, EventKind
from leaklens.types import Language, LeakKind, WarningType, Severity, resolve_language
from leaklens.errors import LeakLensError, InvalidSourceError, UnsupportedLanguageError

# Pipeline stages
from leaklens.comments import strip_comments
from leaklens.frontends import EventExtractor, Extraction
from leaklens.analyzers import (
    AllocationTracker, AllocationRecord, FreeRecord, LeakReport, WarningReport,
    estimate_size, scan_quality,
)

# Main entry points
from leaklens.scanner import (
    AnalysisResult, MemoryScanner, analyze, analyze_file, sort_leaks, MAX_INPUT_CHARS,
)

__version__ = "0.1.0"
__all__ = [
    # Events and types
    "Allocation", "Deallocation", "MemoryEvent", "EventKind",
    "Language", "LeakKind", "WarningType", "Severity", "resolve_language",
    # Errors
    "LeakLensError", "InvalidSourceError", "UnsupportedLanguageError",
    # Pipeline stages
    "strip_comments", "EventExtractor", "Extraction",
    "AllocationTracker", "AllocationRecord", "FreeRecord", "LeakReport", "WarningReport",
    "estimate_size", "scan_quality",
    # Entry points
    "AnalysisResult", "MemoryScanner", "analyze", "analyze_file", "sort_leaks",
    "MAX_INPUT_CHARS",
]
