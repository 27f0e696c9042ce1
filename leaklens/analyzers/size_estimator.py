"""
Allocation size estimation.

Sizes are heuristic. C-family calls are sized from their argument text:

    malloc(10 * sizeof(int))    -> 40
    calloc(5, 8)                -> 40
    calloc(5, sizeof(double))   -> 5     (non-numeric operands count as 1)
    malloc(sizeof(double))      -> 1     (no count, no integer)
    malloc(10)                  -> 10
    new int[8]                  -> 32

Other languages multiply a per-language element size by the first numeric
argument. The estimate is always at least 1 byte.
"""

import re
import sys
from typing import Any, Optional

from leaklens.events import MemoryEvent
from leaklens.specs.c_specs import TYPE_SIZES, DEFAULT_TYPE_SIZE
from leaklens.specs.language_specs import LANGUAGE_SIZES
from leaklens.types import Language, resolve_language


_SIZEOF = r'sizeof\s*\(\s*(?P<type>[^()]*?)\s*\)'
_COUNT_TIMES_SIZEOF = re.compile(r'(?<![\w.])(?P<count>[\w.]+)\s*\*\s*' + _SIZEOF)
_SIZEOF_TIMES_COUNT = re.compile(_SIZEOF + r'\s*\*\s*(?P<count>[\w.]+)')
_INTEGER = re.compile(r'(?<![\w.])\d+')
_LEADING_INTEGER = re.compile(r'^\s*(\d+)')


def type_size(type_name: str) -> int:
    """Byte size of a C type name, DEFAULT_TYPE_SIZE if unrecognized"""
    for keyword, size in TYPE_SIZES:
        if keyword in type_name:
            return size
    return DEFAULT_TYPE_SIZE


def estimate_size(event: MemoryEvent, language=Language.C, verbose: bool = False) -> int:
    """
    Estimate the number of bytes an allocation event acquires.

    Args:
        event: An allocation event
        language: Source language; unrecognized names are sized like C
        verbose: Print diagnostics to stderr

    Returns:
        Estimated size, at least 1
    """
    language = resolve_language(language)
    try:
        if language.is_c_family:
            size = _c_family_size(event.primitive, _argument_text(event.raw_arguments))
        else:
            size = _managed_size(event.raw_arguments, language)
    except Exception as e:
        if verbose:
            print(f"[Size] could not size {event.variable} at line {event.line}: {e}", file=sys.stderr)
        size = _language_default(language)
    return max(1, int(size))


def _c_family_size(primitive: str, args: str) -> int:
    if primitive == "calloc":
        return _calloc_size(args)
    if primitive == "new[]":
        return (_first_integer(args) or 1) * DEFAULT_TYPE_SIZE
    if primitive == "new":
        return DEFAULT_TYPE_SIZE

    match = _COUNT_TIMES_SIZEOF.search(args) or _SIZEOF_TIMES_COUNT.search(args)
    if match:
        return _count(match.group("count")) * type_size(match.group("type"))

    return _first_integer(args) or 1


def _calloc_size(args: str) -> int:
    """calloc(count, size): each operand is a bare integer, else 1"""
    parts = _split_top_level(args)
    count = _count(parts[0]) if parts else 1
    size = _count(parts[1]) if len(parts) > 1 else 1
    return count * size


def _managed_size(args: Any, language: Language) -> int:
    element = _language_default(language)
    count = None
    if isinstance(args, tuple):
        if args and _is_number(args[0]):
            count = args[0]
    elif args:
        match = _LEADING_INTEGER.match(str(args))
        if match:
            count = int(match.group(1))
    return element * (count or 1)


def _language_default(language: Language) -> int:
    return LANGUAGE_SIZES.get(language, DEFAULT_TYPE_SIZE)


def _count(text: str) -> int:
    """Integer value of a count operand; anything non-numeric (or 0) counts as 1"""
    text = text.strip()
    if text.isdigit():
        return int(text) or 1
    return 1


def _first_integer(args: str) -> Optional[int]:
    match = _INTEGER.search(args)
    return int(match.group(0)) if match else None


def _split_top_level(args: str):
    """Split an argument list at commas outside nested parentheses"""
    parts = []
    depth = 0
    current = []
    for ch in args:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == ',' and depth == 0:
            parts.append(''.join(current))
            current = []
            continue
        current.append(ch)
    parts.append(''.join(current))
    return [p.strip() for p in parts]


def _argument_text(args: Any) -> str:
    if isinstance(args, tuple):
        return ", ".join("" if a is None else str(a) for a in args)
    return args or ""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
