"""
Analyzers for LeakLens.

- size_estimator: byte size of an allocation event
- allocation_tracker: per-variable allocation stacks, leaks, timeline
- quality_scanner: unsafe string function calls
"""

from leaklens.analyzers.size_estimator import estimate_size, type_size
from leaklens.analyzers.allocation_tracker import (
    AllocationRecord,
    AllocationTracker,
    FreeRecord,
    LeakReport,
    WarningReport,
    release_hint,
)
from leaklens.analyzers.quality_scanner import scan_quality

__all__ = [
    "estimate_size",
    "type_size",
    "AllocationRecord",
    "AllocationTracker",
    "FreeRecord",
    "LeakReport",
    "WarningReport",
    "release_hint",
    "scan_quality",
]
