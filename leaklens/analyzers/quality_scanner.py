"""
Unsafe-function scan.

A stateless, line-local textual pass over the original source lines. Every
call to an unbounded string function in UNSAFE_FUNCTION_RULES yields one
"Unsafe Function" warning per occurrence. Bounded variants (strncpy,
snprintf, ...) never match because the rules require the exact name.
"""

import sys
from typing import Iterable, List, Sequence

from leaklens.analyzers.allocation_tracker import WarningReport
from leaklens.specs.c_specs import UNSAFE_FUNCTION_RULES, UnsafeFunctionRule
from leaklens.types import WarningType


def scan_quality(
    lines: Iterable[str],
    rules: Sequence[UnsafeFunctionRule] = UNSAFE_FUNCTION_RULES,
    verbose: bool = False,
) -> List[WarningReport]:
    """
    Scan source lines for unsafe function calls.

    Args:
        lines: Original (comment-bearing) source lines
        rules: Ordered rule table
        verbose: Print diagnostics to stderr

    Returns:
        Warnings in line order, rule order within a line
    """
    warnings: List[WarningReport] = []

    for line_num, line in enumerate(lines, start=1):
        for rule in rules:
            for _ in rule.regex.finditer(line):
                warnings.append(WarningReport(
                    warning_type=WarningType.UNSAFE_FUNCTION,
                    line=line_num,
                    message=rule.message,
                    line_text=line.strip(),
                ))

    if verbose and warnings:
        print(f"[Quality] {len(warnings)} unsafe function calls", file=sys.stderr)

    return warnings
