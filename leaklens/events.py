"""
Memory events extracted from source code.

Every frontend produces the same closed set of events, consumed in
document order by the allocation tracker:

    Allocation    p = malloc(10)        new Foo(3)        const xs = [1, 2]
    Deallocation  free(p)               delete[] arr      p = null

An event is immutable; its kind is fixed by its class, so one event can
never describe both an allocation and a release.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Union


class EventKind(Enum):
    ALLOCATION = "Allocation"
    DEALLOCATION = "Deallocation"


# Argument text for line-scanned events, evaluated values for parsed ones
RawArguments = Union[str, Tuple[Any, ...]]


@dataclass(frozen=True)
class MemoryEvent(ABC):
    """
    Base class for memory events.

    Attributes:
        variable: Name bound to the memory ("unknown" if unparsable)
        line: 1-based source line of the statement
        primitive: Call or construct used (malloc, new[], free, ...)
        raw_arguments: Unparsed argument text or evaluated argument values
        enclosing_function: Name of the function containing the line
        in_loop: True if the line lies inside a detected loop
        is_array_form: True for array allocation or array release forms
        line_text: Trimmed text of the statement
    """
    variable: str
    line: int
    primitive: str
    raw_arguments: RawArguments = ""
    enclosing_function: Optional[str] = None
    in_loop: bool = False
    is_array_form: bool = False
    line_text: str = ""

    @property
    @abstractmethod
    def kind(self) -> EventKind:
        pass

    @abstractmethod
    def __str__(self) -> str:
        pass


@dataclass(frozen=True)
class Allocation(MemoryEvent):
    """Memory acquired and bound to `variable`"""

    @property
    def kind(self) -> EventKind:
        return EventKind.ALLOCATION

    def __str__(self) -> str:
        args = self.raw_arguments
        if isinstance(args, tuple):
            args = ", ".join(repr(a) for a in args)
        return f"{self.variable} = {self.primitive}({args}) @{self.line}"


@dataclass(frozen=True)
class Deallocation(MemoryEvent):
    """Memory bound to `variable` released"""

    @property
    def kind(self) -> EventKind:
        return EventKind.DEALLOCATION

    def __str__(self) -> str:
        return f"{self.primitive}({self.variable}) @{self.line}"
