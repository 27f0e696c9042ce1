"""
Memory primitive specifications for C and C++ style code.

This module defines the ordered pattern tables used by the line-scanning
frontend:
- Allocation calls (malloc, calloc, realloc)
- Constructor-style allocation (new T(...), new T[n], new T)
- Deallocation forms (free, delete[], delete)
- Unsafe string functions flagged by the quality scanner

Priority matters. Each table is tried top to bottom and the first match
wins, so the order below changes which variable, primitive and arguments an
event gets. Do not sort these by specificity or match length.
"""

import re
from typing import List, NamedTuple, Optional, Pattern, Tuple


class AllocationPattern(NamedTuple):
    """
    One allocation form.

    `regex` must define a `var` group. Allocation-call forms define a
    `func` group and end at the opening parenthesis; the balanced argument
    list is read from there. Bracket forms define a `count` group.
    """
    name: str
    regex: Pattern
    primitive: Optional[str]    # None: take the `func` group
    call_args: bool             # arguments follow the match as "( ... )"
    is_array: bool = False


class DeallocationPattern(NamedTuple):
    """One release form; `regex` must define a `var` group"""
    name: str
    regex: Pattern
    primitive: str
    is_array: bool = False


class UnsafeFunctionRule(NamedTuple):
    """A line-local textual rule for an unbounded function call"""
    function: str
    regex: Pattern
    message: str


def _alloc(name: str, pattern: str, primitive: Optional[str] = None,
           call_args: bool = True, is_array: bool = False) -> AllocationPattern:
    """Create an allocation pattern"""
    return AllocationPattern(name, re.compile(pattern), primitive, call_args, is_array)


def _dealloc(name: str, pattern: str, primitive: str, is_array: bool = False) -> DeallocationPattern:
    """Create a deallocation pattern"""
    return DeallocationPattern(name, re.compile(pattern), primitive, is_array)


def _unsafe(function: str, message: str) -> UnsafeFunctionRule:
    """Create an unsafe-function rule matching `function(` as a whole word"""
    return UnsafeFunctionRule(function, re.compile(rf'(?<![\w.]){function}\s*\('), message)


_ALLOC_FUNC = r'(?P<func>malloc|calloc|realloc)'
_NEW_TYPE = r'new\s+[\w:.]+(?:\s*<[^;()]*>)?'
_TYPED_PTR = r'\b\w+\s+\*\s*(?P<var>\w+)\s*=\s*'
_TYPED_PTR_ATTACHED = r'\b\w+\*\s*(?P<var>\w+)\s*=\s*'
_ASSIGN = r'\b(?P<var>\w+)\s*=\s*'


# =============================================================================
# Allocation calls (stdlib.h)
# =============================================================================

ALLOCATION_CALL_PATTERNS: List[AllocationPattern] = [
    # type *var = malloc(...)
    _alloc("typed_pointer", _TYPED_PTR + _ALLOC_FUNC + r'\s*\('),
    # type* var = malloc(...)
    _alloc("typed_pointer_attached", _TYPED_PTR_ATTACHED + _ALLOC_FUNC + r'\s*\('),
    # var = (type*)malloc(...)
    _alloc("cast_assignment", _ASSIGN + r'\([^)]*\)\s*' + _ALLOC_FUNC + r'\s*\('),
    # var = malloc(...)
    _alloc("assignment", _ASSIGN + _ALLOC_FUNC + r'\s*\('),
]


# =============================================================================
# Constructor-style allocation (C++, Java, JavaScript fallback)
# =============================================================================

CONSTRUCTOR_PATTERNS: List[AllocationPattern] = [
    # type *var = new T(...)
    _alloc("typed_new_call", _TYPED_PTR + _NEW_TYPE + r'\s*\(', "new"),
    _alloc("typed_new_call_attached", _TYPED_PTR_ATTACHED + _NEW_TYPE + r'\s*\(', "new"),
    # type *var = new T[n]
    _alloc("typed_new_array", _TYPED_PTR + _NEW_TYPE + r'\s*\[\s*(?P<count>[^\]]+?)\s*\]',
           "new[]", call_args=False, is_array=True),
    _alloc("typed_new_array_attached", _TYPED_PTR_ATTACHED + _NEW_TYPE + r'\s*\[\s*(?P<count>[^\]]+?)\s*\]',
           "new[]", call_args=False, is_array=True),
    # type *var = new T
    _alloc("typed_new", _TYPED_PTR + _NEW_TYPE, "new", call_args=False),
    _alloc("typed_new_attached", _TYPED_PTR_ATTACHED + _NEW_TYPE, "new", call_args=False),
    # var = new T(...)
    _alloc("new_call", _ASSIGN + _NEW_TYPE + r'\s*\(', "new"),
    # var = new T[n]
    _alloc("new_array", _ASSIGN + _NEW_TYPE + r'\s*\[\s*(?P<count>[^\]]+?)\s*\]',
           "new[]", call_args=False, is_array=True),
    # var = new T
    _alloc("new", _ASSIGN + _NEW_TYPE, "new", call_args=False),
]

C_ALLOCATION_PATTERNS: List[AllocationPattern] = ALLOCATION_CALL_PATTERNS + CONSTRUCTOR_PATTERNS


# =============================================================================
# Deallocation
# =============================================================================

C_DEALLOCATION_PATTERNS: List[DeallocationPattern] = [
    # free(var)
    _dealloc("free", r'\bfree\s*\(\s*(?P<var>\w+)\s*\)', "free"),
    # delete[] var, delete[](var)
    _dealloc("delete_array", r'\bdelete\s*\[\s*\]\s*(?:\(\s*)?(?P<var>\w+)', "delete[]", is_array=True),
    # delete var, delete (var)
    _dealloc("delete", r'\bdelete(?:\s*\(\s*|\s+)(?P<var>\w+)', "delete"),
]


# Release expected for each allocation primitive
MALLOC_FAMILY = {"malloc", "calloc", "realloc"}

MATCHING_RELEASE = {
    "malloc": "free",
    "calloc": "free",
    "realloc": "free",
    "new": "delete",
    "new[]": "delete[]",
}


# =============================================================================
# Type sizes (bytes) for sizeof() resolution
# =============================================================================

# Checked in order against the sizeof() operand; the first keyword it
# contains decides the size ("unsigned char" is 1, "long long int" is 4)
TYPE_SIZES: List[Tuple[str, int]] = [
    ("char", 1),
    ("int", 4),
    ("float", 4),
    ("double", 8),
    ("long long", 8),
]

DEFAULT_TYPE_SIZE = 4


# =============================================================================
# Unsafe string functions (string.h, stdio.h)
# =============================================================================

UNSAFE_FUNCTION_RULES: List[UnsafeFunctionRule] = [
    _unsafe("strcpy", "strcpy() used without bounds checking. Consider using strncpy() or strcpy_s()."),
    _unsafe("strcat", "strcat() used without bounds checking. Consider using strncat() or strcat_s()."),
    _unsafe("sprintf", "sprintf() used without bounds checking. Consider using snprintf()."),
    _unsafe("vsprintf", "vsprintf() used without bounds checking. Consider using vsnprintf()."),
    _unsafe("gets", "gets() cannot limit the input length. Use fgets() instead."),
    _unsafe("wcscpy", "wcscpy() used without bounds checking. Consider using wcsncpy() or wcscpy_s()."),
    _unsafe("wcscat", "wcscat() used without bounds checking. Consider using wcsncat() or wcscat_s()."),
]
