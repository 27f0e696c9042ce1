"""
Pattern and size specifications.

This module provides the data tables the analyzers are driven by:
- C/C++: allocation, constructor and deallocation patterns, type sizes,
  unsafe string functions
- Per-language element sizes, statement and scope conventions, file
  extensions
"""

from leaklens.specs.c_specs import (
    AllocationPattern,
    DeallocationPattern,
    UnsafeFunctionRule,
    ALLOCATION_CALL_PATTERNS,
    CONSTRUCTOR_PATTERNS,
    C_ALLOCATION_PATTERNS,
    C_DEALLOCATION_PATTERNS,
    MALLOC_FAMILY,
    MATCHING_RELEASE,
    TYPE_SIZES,
    DEFAULT_TYPE_SIZE,
    UNSAFE_FUNCTION_RULES,
)
from leaklens.specs.language_specs import (
    LANGUAGE_SIZES,
    NEWLINE_TERMINATED,
    INDENT_SCOPED,
    ENTRY_POINTS,
    MANAGED_RELEASE_HINT,
    EXTENSION_LANGUAGES,
)

__all__ = [
    "AllocationPattern", "DeallocationPattern", "UnsafeFunctionRule",
    "ALLOCATION_CALL_PATTERNS", "CONSTRUCTOR_PATTERNS",
    "C_ALLOCATION_PATTERNS", "C_DEALLOCATION_PATTERNS",
    "MALLOC_FAMILY", "MATCHING_RELEASE",
    "TYPE_SIZES", "DEFAULT_TYPE_SIZE", "UNSAFE_FUNCTION_RULES",
    "LANGUAGE_SIZES", "NEWLINE_TERMINATED", "INDENT_SCOPED",
    "ENTRY_POINTS", "MANAGED_RELEASE_HINT", "EXTENSION_LANGUAGES",
]
