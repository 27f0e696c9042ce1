"""
Line-scanning frontend.

Extracts memory events from any language by scanning cleaned source text
line by line. It handles:
- Enclosing function tracking (definition heads, never control statements)
- Loop nesting (for/while/do heads, closed by braces or indentation)
- Statements spanning several physical lines
- Several statements on one line (split at top-level semicolons)

Each statement is matched against the ordered pattern tables in
`leaklens.specs.c_specs`; the first allocation pattern and the first
deallocation pattern that match win.
"""

import re
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from leaklens.events import Allocation, Deallocation, MemoryEvent
from leaklens.specs.c_specs import (
    AllocationPattern,
    DeallocationPattern,
    C_ALLOCATION_PATTERNS,
    C_DEALLOCATION_PATTERNS,
)
from leaklens.specs.language_specs import NEWLINE_TERMINATED, INDENT_SCOPED
from leaklens.types import Language, resolve_language


_CONTROL_HEAD = re.compile(r'\b(?:if|while|for|switch)\s*\(')

_FUNCTION_HEAD = re.compile(
    r'^(?P<prefix>[^=(){};]*?(?:\([^()]*\)[^=(){};]*?)?)'
    r'\b(?!(?:func|function|fn|def|if|while|for|switch|catch|return|sizeof|elif|with)\b)'
    r'(?P<name>\w+)\s*\((?P<params>.*)\)\s*(?P<suffix>[^=;{}()]*)[{:]?\s*$'
)

# A head preceded by one of these is a call, expression or control statement
_NOT_A_DEFINITION = {
    "return", "new", "else", "delete", "throw", "case", "await", "yield", "print",
    "if", "elif", "for", "while", "do", "switch", "with", "catch", "except",
    "assert", "raise", "del", "not", "and", "or", "in", "go", "defer", "loop", "match",
    "class",
}

_LOOP_HEAD = re.compile(r'\b(?:for|while)\s*\(|^(?:\}\s*)?(?:for|while)\b|^do\b|\bloop\s*\{')


@dataclass
class _Scope:
    """An open function or loop body"""
    kind: str                   # "function" or "loop"
    name: Optional[str]
    level: int                  # brace depth or indentation at the head
    braced: bool = False


class LineScanningFrontend:
    """
    Extracts allocation and deallocation events with line-oriented regexes.

    Usage:
        frontend = LineScanningFrontend(Language.C)
        events = frontend.extract(cleaned_source)
    """

    name = "line"

    def __init__(
        self,
        language=Language.C,
        allocation_patterns: Sequence[AllocationPattern] = None,
        deallocation_patterns: Sequence[DeallocationPattern] = None,
        verbose: bool = False,
    ):
        """
        Initialize the frontend.

        Args:
            language: Source language; decides statement and scope conventions
            allocation_patterns: Ordered allocation table (defaults to C/C++)
            deallocation_patterns: Ordered deallocation table (defaults to C/C++)
            verbose: Print diagnostics to stderr
        """
        self.language = resolve_language(language)
        self.allocation_patterns = list(allocation_patterns or C_ALLOCATION_PATTERNS)
        self.deallocation_patterns = list(deallocation_patterns or C_DEALLOCATION_PATTERNS)
        self.verbose = verbose

        self.newline_terminated = self.language in NEWLINE_TERMINATED
        self.indent_scoped = self.language in INDENT_SCOPED
        self.skip_directives = self.language != Language.JAVASCRIPT

        # State during extraction
        self._lines: List[str] = []
        self._events: List[MemoryEvent] = []
        self._scopes: List[_Scope] = []
        self._brace_depth = 0
        self._statement: List[str] = []
        self._balance = 0
        self._statement_line = 0
        self._in_directive = False

    # =========================================================================
    # Public API
    # =========================================================================

    def extract(self, source_code: str) -> List[MemoryEvent]:
        """
        Extract memory events from comment-free source text.

        Args:
            source_code: Source text with comments already removed

        Returns:
            Events in document order
        """
        self._lines = source_code.split('\n')
        self._events = []
        self._scopes = []
        self._brace_depth = 0
        self._statement = []
        self._balance = 0
        self._statement_line = 0
        self._in_directive = False

        for line_num, line in enumerate(self._lines, start=1):
            self._scan_line(line, line_num)

        # A statement still open at end of input is matched as-is
        if self._statement:
            self._flush_statement()

        if self.verbose:
            print(f"[Extractor] line scanner found {len(self._events)} events", file=sys.stderr)

        return self._events

    # =========================================================================
    # Line processing
    # =========================================================================

    def _scan_line(self, line: str, line_num: int) -> None:
        """Update scope state for one physical line and match completed statements"""
        trimmed = line.strip()
        if not trimmed:
            return

        # Preprocessor directives (and Python comments) are not statements
        if self._in_directive or (self.skip_directives and trimmed.startswith('#') and not self._statement):
            self._in_directive = trimmed.endswith('\\')
            return

        if self.indent_scoped and not self._statement:
            self._close_indented_scopes(self._indent(line))

        level = self._indent(line) if self.indent_scoped else self._brace_depth

        function_name = self._function_head(trimmed)
        if function_name:
            self._scopes.append(_Scope("function", function_name, level))

        if _LOOP_HEAD.search(trimmed):
            self._scopes.append(_Scope("loop", None, level))

        opens = trimmed.count('{')
        closes = trimmed.count('}')
        self._brace_depth += opens - closes
        if not self.indent_scoped:
            for scope in self._scopes:
                if self._brace_depth > scope.level:
                    scope.braced = True

        completed = self._accumulate(trimmed, line_num)
        if completed:
            self._flush_statement()

        if not self.indent_scoped:
            self._close_brace_scopes(closes, completed)

    def _accumulate(self, trimmed: str, line_num: int) -> bool:
        """
        Add a physical line to the pending statement.

        Returns True when the statement is complete.
        """
        continued = trimmed.endswith('\\')
        text = trimmed[:-1].rstrip() if continued else trimmed

        if not self._statement:
            self._statement_line = line_num
        self._statement.append(text)
        self._balance += self._bracket_balance(text)

        if continued:
            return False
        if self.newline_terminated:
            return self._balance <= 0
        return trimmed.endswith((';', '{', '}'))

    def _flush_statement(self) -> None:
        """Match every segment of the pending statement"""
        statement, line_num = ' '.join(self._statement), self._statement_line
        self._statement = []
        self._balance = 0
        self._statement_line = 0

        line_text = self._lines[line_num - 1].strip() if 0 < line_num <= len(self._lines) else statement
        for segment in self._split_statements(statement):
            alloc = self._match_allocation(segment, line_num, line_text)
            if alloc:
                self._events.append(alloc)
            dealloc = self._match_deallocation(segment, line_num, line_text)
            if dealloc:
                self._events.append(dealloc)

    # =========================================================================
    # Pattern matching
    # =========================================================================

    def _match_allocation(self, statement: str, line_num: int, line_text: str) -> Optional[Allocation]:
        """Return an Allocation for the first matching allocation pattern"""
        for pattern in self.allocation_patterns:
            match = pattern.regex.search(statement)
            if not match:
                continue

            groups = match.groupdict()
            primitive = pattern.primitive or groups.get("func") or "unknown"
            if pattern.call_args:
                args = self._call_arguments(statement, match.end())
            else:
                args = (groups.get("count") or "").strip()

            return Allocation(
                variable=groups.get("var") or "unknown",
                line=line_num,
                primitive=primitive,
                raw_arguments=args,
                enclosing_function=self._current_function(),
                in_loop=self._in_loop(),
                is_array_form=pattern.is_array,
                line_text=line_text,
            )
        return None

    def _match_deallocation(self, statement: str, line_num: int, line_text: str) -> Optional[Deallocation]:
        """Return a Deallocation for the first matching deallocation pattern"""
        for pattern in self.deallocation_patterns:
            match = pattern.regex.search(statement)
            if not match:
                continue

            return Deallocation(
                variable=match.group("var") or "unknown",
                line=line_num,
                primitive=pattern.primitive,
                enclosing_function=self._current_function(),
                in_loop=self._in_loop(),
                is_array_form=pattern.is_array,
                line_text=line_text,
            )
        return None

    @staticmethod
    def _call_arguments(text: str, start: int) -> str:
        """Text between the opening parenthesis before `start` and its match"""
        depth = 1
        for i in range(start, len(text)):
            ch = text[i]
            if ch == '(':
                depth += 1
            elif ch == ')':
                depth -= 1
                if depth == 0:
                    return text[start:i].strip()
        return text[start:].strip()

    # =========================================================================
    # Statement helpers
    # =========================================================================

    @staticmethod
    def _split_statements(statement: str) -> List[str]:
        """Split at semicolons outside parentheses, brackets and quotes"""
        segments = []
        current = []
        depth = 0
        quote = None
        escaped = False

        for ch in statement:
            if quote:
                current.append(ch)
                if escaped:
                    escaped = False
                elif ch == '\\':
                    escaped = True
                elif ch == quote:
                    quote = None
                continue

            if ch in ('"', "'"):
                quote = ch
            elif ch in '([':
                depth += 1
            elif ch in ')]':
                depth = max(0, depth - 1)
            elif ch == ';' and depth == 0:
                segments.append(''.join(current).strip())
                current = []
                continue
            current.append(ch)

        segments.append(''.join(current).strip())
        return [s for s in segments if s]

    @staticmethod
    def _bracket_balance(text: str) -> int:
        return text.count('(') + text.count('[') - text.count(')') - text.count(']')

    @staticmethod
    def _indent(line: str) -> int:
        return len(line) - len(line.lstrip())

    # =========================================================================
    # Scope tracking
    # =========================================================================

    @staticmethod
    def _function_head(trimmed: str) -> Optional[str]:
        """Name of the function defined on this line, if it looks like a definition head"""
        if ';' in trimmed or _CONTROL_HEAD.search(trimmed):
            return None

        match = _FUNCTION_HEAD.match(trimmed)
        if not match:
            return None

        prefix = match.group("prefix").strip()
        if not prefix or prefix.endswith(('.', '->')):
            return None
        if prefix.split()[0] in _NOT_A_DEFINITION:
            return None
        return match.group("name")

    def _close_brace_scopes(self, closes: int, completed: bool) -> None:
        """Close scopes whose body ended on this line"""
        if closes:
            while self._scopes and self._brace_depth <= self._scopes[-1].level:
                self._scopes.pop()
        if completed:
            # Single-statement bodies without braces
            while (self._scopes and not self._scopes[-1].braced
                   and self._brace_depth <= self._scopes[-1].level):
                self._scopes.pop()

    def _close_indented_scopes(self, indent: int) -> None:
        while self._scopes and indent <= self._scopes[-1].level:
            self._scopes.pop()

    def _current_function(self) -> Optional[str]:
        for scope in reversed(self._scopes):
            if scope.kind == "function":
                return scope.name
        return None

    def _in_loop(self) -> bool:
        return any(scope.kind == "loop" for scope in self._scopes)
