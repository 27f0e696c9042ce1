"""
Allocation tracking over an ordered event stream.

The tracker keeps, for every variable, a stack of live allocations:

    Allocation(p)      push a record; a live record already bound to p is
                       evicted and reported as a reassignment leak
    Deallocation(p)    pop the most recent record (LIFO); releasing a
                       variable with nothing live is a double-free warning
    end of stream      every record still live is a leak

`current_memory` is the summed size of all live records, and every event
appends one (line, current_memory) sample to the timeline.

The tracker is a heuristic. It does not model loop iteration, so an
allocation freed and re-made on every pass of a loop can still be reported
when the same variable is re-bound on a later line.
"""

import sys
import traceback
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from leaklens.analyzers.size_estimator import estimate_size
from leaklens.events import Allocation, Deallocation, MemoryEvent
from leaklens.specs.c_specs import MALLOC_FAMILY, MATCHING_RELEASE
from leaklens.specs.language_specs import ENTRY_POINTS, MANAGED_RELEASE_HINT
from leaklens.types import Language, LeakKind, Severity, SEVERITY_MAP, WarningType, resolve_language


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class AllocationRecord:
    """A live or historical allocation"""
    alloc_id: str
    variable: str
    line: int
    primitive: str
    size_bytes: int
    in_loop: bool = False
    enclosing_function: Optional[str] = None
    is_array: bool = False
    line_text: str = ""

    def to_dict(self) -> dict:
        return {
            "alloc_id": self.alloc_id,
            "variable": self.variable,
            "line": self.line,
            "primitive": self.primitive,
            "size_bytes": self.size_bytes,
            "in_loop": self.in_loop,
            "function": self.enclosing_function,
            "is_array": self.is_array,
            "line_text": self.line_text,
        }


@dataclass(frozen=True)
class FreeRecord:
    """A release matched to the allocation it popped"""
    variable: str
    line: int
    primitive: str
    freed_alloc_id: str
    line_text: str = ""

    def to_dict(self) -> dict:
        return {
            "variable": self.variable,
            "line": self.line,
            "primitive": self.primitive,
            "freed_alloc_id": self.freed_alloc_id,
            "line_text": self.line_text,
        }


@dataclass(frozen=True)
class LeakReport:
    """An allocation never released before reassignment or end of input"""
    variable: str
    line: int
    primitive: str
    size_bytes: int
    in_loop: bool
    fix: str
    kind: LeakKind = LeakKind.UNRELEASED
    enclosing_function: Optional[str] = None
    alloc_id: str = ""
    line_text: str = ""

    @property
    def severity(self) -> Severity:
        return SEVERITY_MAP[self.kind]

    def to_dict(self) -> dict:
        return {
            "variable": self.variable,
            "line": self.line,
            "primitive": self.primitive,
            "size_bytes": self.size_bytes,
            "in_loop": self.in_loop,
            "function": self.enclosing_function,
            "kind": self.kind.value,
            "fix": self.fix,
            "alloc_id": self.alloc_id,
        }


@dataclass(frozen=True)
class WarningReport:
    """An anomaly found while tracking, or a quality finding"""
    warning_type: WarningType
    line: int
    message: str
    line_text: str = ""
    variable: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return SEVERITY_MAP[self.warning_type]

    def to_dict(self) -> dict:
        return {
            "type": self.warning_type.value,
            "line": self.line,
            "message": self.message,
            "line_text": self.line_text,
            "variable": self.variable,
        }


# =============================================================================
# Remediation text
# =============================================================================

def release_hint(variable: str, primitive: str, language=Language.C) -> str:
    """The statement that releases memory made by `primitive`"""
    language = resolve_language(language)
    if not language.is_c_family and primitive not in MALLOC_FAMILY:
        return MANAGED_RELEASE_HINT.format(var=variable)
    release = MATCHING_RELEASE.get(primitive, "free")
    if release == "free":
        return f"free({variable});"
    return f"{release} {variable};"


def reassignment_fix(record: AllocationRecord, new_line: int, language=Language.C) -> str:
    return (
        f"Memory leak: {record.variable} was reassigned on line {new_line} without freeing "
        f"the previous allocation on line {record.line}. "
        f"Add {release_hint(record.variable, record.primitive, language)} before the reassignment."
    )


def unreleased_fix(record: AllocationRecord, language=Language.C) -> str:
    release = release_hint(record.variable, record.primitive, language)
    if record.in_loop:
        return (f"Add {release} inside the loop after use, "
                f"or collect pointers and free them after the loop.")
    if record.enclosing_function and record.enclosing_function not in ENTRY_POINTS:
        return (f"Memory allocated in {record.enclosing_function}() on line {record.line}. "
                f"Ensure caller frees this memory, or free it before function return.")
    return f"Add {release} before function return or at appropriate cleanup point."


# =============================================================================
# Tracker
# =============================================================================

class AllocationTracker:
    """
    Consumes memory events in document order.

    A tracker is used for exactly one analysis:

        tracker = AllocationTracker("c")
        for event in events:
            tracker.process(event)
        tracker.finish()
        tracker.leaks, tracker.warnings, tracker.timeline
    """

    def __init__(self, language=Language.C, verbose: bool = False):
        self.language = resolve_language(language)
        self.verbose = verbose

        self.live_allocations: Dict[str, List[AllocationRecord]] = {}
        self.current_memory = 0
        self.timeline: List[Tuple[int, int]] = []

        self.allocations: List[AllocationRecord] = []
        self.frees: List[FreeRecord] = []
        self.leaks: List[LeakReport] = []
        self.warnings: List[WarningReport] = []

        self._finished = False

    def process(self, event: MemoryEvent) -> None:
        """
        Apply one event. A malformed event is skipped, but it still
        records a timeline sample.
        """
        try:
            if not event.variable:
                if self.verbose:
                    print(f"[Tracker] skipping event without a variable: {event!r}", file=sys.stderr)
            elif isinstance(event, Allocation):
                self._on_allocation(event)
            elif isinstance(event, Deallocation):
                self._on_deallocation(event)
            elif self.verbose:
                print(f"[Tracker] skipping unknown event: {event!r}", file=sys.stderr)
        except Exception as e:
            if self.verbose:
                print(f"[Tracker] error processing {event}: {e}", file=sys.stderr)
                traceback.print_exc()
        finally:
            self.timeline.append((getattr(event, "line", 0) or 0, self.current_memory))

    def finish(self) -> List[LeakReport]:
        """Report every live allocation as a leak, in allocation order"""
        if self._finished:
            return self.leaks
        self._finished = True

        live_ids = {r.alloc_id for stack in self.live_allocations.values() for r in stack}
        for record in self.allocations:
            if record.alloc_id in live_ids:
                self.leaks.append(self._leak(record, LeakKind.UNRELEASED,
                                             unreleased_fix(record, self.language)))

        if self.verbose:
            print(f"[Tracker] {len(self.allocations)} allocations, {len(self.frees)} frees, "
                  f"{len(self.leaks)} leaks", file=sys.stderr)
        return self.leaks

    # =========================================================================
    # Event handlers
    # =========================================================================

    def _on_allocation(self, event: Allocation) -> None:
        stack = self.live_allocations.get(event.variable)
        if stack:
            previous = stack.pop()
            self.current_memory -= previous.size_bytes
            self.leaks.append(self._leak(previous, LeakKind.REASSIGNMENT,
                                         reassignment_fix(previous, event.line, self.language)))

        record = AllocationRecord(
            alloc_id=self._new_id(event.variable, event.line),
            variable=event.variable,
            line=event.line,
            primitive=event.primitive,
            size_bytes=estimate_size(event, self.language, verbose=self.verbose),
            in_loop=event.in_loop,
            enclosing_function=event.enclosing_function,
            is_array=event.is_array_form,
            line_text=event.line_text,
        )
        self.live_allocations.setdefault(event.variable, []).append(record)
        self.allocations.append(record)
        self.current_memory += record.size_bytes

    def _on_deallocation(self, event: Deallocation) -> None:
        var = event.variable

        if var not in self.live_allocations:
            self.warnings.append(WarningReport(
                warning_type=WarningType.POTENTIAL_DOUBLE_FREE,
                line=event.line,
                message=f"free() called on {var} which may not be allocated or already freed.",
                line_text=event.line_text,
                variable=var,
            ))
            return

        stack = self.live_allocations[var]
        if not stack:
            self.warnings.append(WarningReport(
                warning_type=WarningType.DOUBLE_FREE,
                line=event.line,
                message=f"free() called on {var} which has already been freed.",
                line_text=event.line_text,
                variable=var,
            ))
            return

        record = stack.pop()
        self.frees.append(FreeRecord(
            variable=var,
            line=event.line,
            primitive=event.primitive,
            freed_alloc_id=record.alloc_id,
            line_text=event.line_text,
        ))
        self.current_memory -= record.size_bytes
        if not stack:
            del self.live_allocations[var]

        self._check_release_family(record, event)

    def _check_release_family(self, record: AllocationRecord, event: Deallocation) -> None:
        """Warn when memory is released with the wrong primitive (malloc/delete, new[]/delete)"""
        expected = MATCHING_RELEASE.get(record.primitive)
        released = event.primitive
        if expected is None or released not in MATCHING_RELEASE.values():
            return
        if released == expected:
            return

        alloc_type = "malloc-family" if record.primitive in MALLOC_FAMILY else record.primitive
        self.warnings.append(WarningReport(
            warning_type=WarningType.MISMATCHED_DEALLOCATION,
            line=event.line,
            message=(f"Mismatched allocation/deallocation for '{record.variable}': allocated with "
                     f"{alloc_type} on line {record.line} but released with {released}. "
                     f"Use {release_hint(record.variable, record.primitive, self.language)}"),
            line_text=event.line_text,
            variable=record.variable,
        ))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _leak(self, record: AllocationRecord, kind: LeakKind, fix: str) -> LeakReport:
        return LeakReport(
            variable=record.variable,
            line=record.line,
            primitive=record.primitive,
            size_bytes=record.size_bytes,
            in_loop=record.in_loop,
            fix=fix,
            kind=kind,
            enclosing_function=record.enclosing_function,
            alloc_id=record.alloc_id,
            line_text=record.line_text,
        )

    @staticmethod
    def _new_id(variable: str, line: int) -> str:
        return f"{variable}_line{line}_{uuid.uuid4().hex[:12]}"
