"""
JavaScript frontend.

This module extracts memory events from JavaScript using tree-sitter for
parsing. It handles:
- Declarations initialized with `new` constructions (new Foo(a, 2 * 8))
- Declarations initialized with array and object literals
- Release by assigning null or undefined to a plain identifier

The tree is walked depth-first over every child node. Source with syntax
errors yields no result so the caller can fall back to line scanning.
"""

import sys
from typing import Any, List, Optional, Tuple

try:
    import tree_sitter_javascript as tsjavascript
    from tree_sitter import Language as TSLanguage, Parser, Node as TSNode
    TREE_SITTER_JS_AVAILABLE = True
except ImportError:
    TREE_SITTER_JS_AVAILABLE = False
    TSNode = Any

from leaklens.events import Allocation, Deallocation, MemoryEvent


DECLARATION_NODES = {"lexical_declaration", "variable_declaration"}

FUNCTION_NODES = {
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
}

LOOP_NODES = {"for_statement", "for_in_statement", "while_statement", "do_statement"}

OBJECT_MEMBER_NODES = {
    "pair",
    "shorthand_property_identifier",
    "method_definition",
    "spread_element",
}


class JavaScriptFrontend:
    """
    Extracts allocation and deallocation events from a JavaScript syntax tree.

    Usage:
        frontend = JavaScriptFrontend()
        events = frontend.extract(source_code)
        if events is None:
            ...  # syntax error, fall back to line scanning
    """

    name = "javascript"

    def __init__(self, verbose: bool = False):
        """
        Initialize the JavaScript frontend.

        Args:
            verbose: Print diagnostics to stderr
        """
        if not TREE_SITTER_JS_AVAILABLE:
            raise ImportError(
                "tree-sitter-javascript is required. "
                "Install with: pip install tree-sitter tree-sitter-javascript"
            )
        self.parser = Parser(TSLanguage(tsjavascript.language()))
        self.verbose = verbose

        # State during extraction
        self._source = b""
        self._lines: List[str] = []
        self._events: List[MemoryEvent] = []

    def extract(self, source_code: str) -> Optional[List[MemoryEvent]]:
        """
        Extract memory events from JavaScript source.

        Args:
            source_code: Source text with comments already removed

        Returns:
            Events in document order, or None if the source does not parse
        """
        self._source = bytes(source_code, "utf8")
        self._lines = source_code.split('\n')
        self._events = []

        tree = self.parser.parse(self._source)
        if tree.root_node.has_error:
            if self.verbose:
                print("[Extractor] javascript source has syntax errors", file=sys.stderr)
            return None

        self._walk(tree.root_node)
        return self._events

    # =========================================================================
    # Tree walk
    # =========================================================================

    def _walk(self, root: TSNode) -> None:
        """Depth-first, pre-order walk carrying function and loop context"""
        stack: List[Tuple[TSNode, Optional[str], bool]] = [(root, None, False)]

        while stack:
            node, function_name, in_loop = stack.pop()

            if node.type == "variable_declarator":
                self._visit_declarator(node, function_name, in_loop)
            elif node.type == "assignment_expression":
                self._visit_assignment(node, function_name, in_loop)

            if node.type in FUNCTION_NODES:
                function_name = self._function_name(node)
                in_loop = False
            elif node.type in LOOP_NODES:
                in_loop = True

            for child in reversed(node.children):
                stack.append((child, function_name, in_loop))

    def _visit_declarator(self, node: TSNode, function_name: Optional[str], in_loop: bool) -> None:
        """Allocation for `name = new X(...)`, `name = [...]` or `name = {...}`"""
        value = node.child_by_field_name("value")
        if value is None:
            return

        if value.type == "new_expression":
            constructor = value.child_by_field_name("constructor")
            if constructor is not None and constructor.type in ("identifier", "member_expression"):
                primitive = self._get_text(constructor)
            else:
                primitive = "new"
            arguments = value.child_by_field_name("arguments")
            args = tuple(self._evaluate(arg) for arg in self._named(arguments))
            is_array = primitive == "Array"
        elif value.type == "array":
            primitive = "Array"
            args = (len(self._named(value)),)
            is_array = True
        elif value.type == "object":
            primitive = "Object"
            args = (sum(1 for c in value.named_children if c.type in OBJECT_MEMBER_NODES),)
            is_array = False
        else:
            return

        name_node = node.child_by_field_name("name")
        variable = self._get_text(name_node) if name_node is not None and name_node.type == "identifier" else "unknown"

        # Report the whole declaration's line, as in `const a = [\n 1,\n 2\n];`
        anchor = node.parent if node.parent is not None and node.parent.type in DECLARATION_NODES else node
        line = anchor.start_point[0] + 1

        self._events.append(Allocation(
            variable=variable,
            line=line,
            primitive=primitive,
            raw_arguments=args,
            enclosing_function=function_name,
            in_loop=in_loop,
            is_array_form=is_array,
            line_text=self._line_text(line),
        ))

    def _visit_assignment(self, node: TSNode, function_name: Optional[str], in_loop: bool) -> None:
        """Deallocation for `name = null` and `name = undefined`"""
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "identifier":
            return
        if not self._is_nullish(right):
            return

        line = node.start_point[0] + 1
        self._events.append(Deallocation(
            variable=self._get_text(left),
            line=line,
            primitive="null-assignment",
            enclosing_function=function_name,
            in_loop=in_loop,
            line_text=self._line_text(line),
        ))

    # =========================================================================
    # Expression evaluation
    # =========================================================================

    def _evaluate(self, node: TSNode) -> Any:
        """
        Evaluate a constructor argument.

        Numeric literals give their value, identifiers their name, and `+`
        or `*` over two numeric operands the computed result. Anything else
        is None.
        """
        try:
            if node.type == "number":
                return self._parse_number(self._get_text(node))
            if node.type == "identifier":
                return self._get_text(node)
            if node.type == "binary_expression":
                operator = node.child_by_field_name("operator")
                op = self._get_text(operator) if operator is not None else ""
                left = self._evaluate(node.child_by_field_name("left"))
                right = self._evaluate(node.child_by_field_name("right"))
                if self._is_number(left) and self._is_number(right):
                    if op == "*":
                        return left * right
                    if op == "+":
                        return left + right
            return None
        except Exception as e:
            if self.verbose:
                print(f"[Extractor] could not evaluate argument: {e}", file=sys.stderr)
            return None

    @staticmethod
    def _parse_number(text: str) -> Optional[float]:
        text = text.replace("_", "").rstrip("n")
        try:
            return int(text, 0)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def _is_nullish(self, node: TSNode) -> bool:
        if node.type in ("null", "undefined"):
            return True
        return node.type == "identifier" and self._get_text(node) == "undefined"

    # =========================================================================
    # Helpers
    # =========================================================================

    def _function_name(self, node: TSNode) -> str:
        """Name of a function node, falling back to the binding it is assigned to"""
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            return self._get_text(name_node)

        parent = node.parent
        if parent is not None:
            if parent.type == "variable_declarator":
                binding = parent.child_by_field_name("name")
                if binding is not None:
                    return self._get_text(binding)
            elif parent.type == "pair":
                key = parent.child_by_field_name("key")
                if key is not None:
                    return self._get_text(key)
            elif parent.type == "assignment_expression":
                target = parent.child_by_field_name("left")
                if target is not None:
                    return self._get_text(target)
        return "anonymous"

    @staticmethod
    def _named(node: Optional[TSNode]) -> List[TSNode]:
        """Named children, ignoring comments"""
        if node is None:
            return []
        return [c for c in node.named_children if c.type != "comment"]

    def _get_text(self, node: TSNode) -> str:
        """Get text of a node"""
        if node is None:
            return ""
        return self._source[node.start_byte:node.end_byte].decode("utf8", errors="replace")

    def _line_text(self, line: int) -> str:
        if 0 < line <= len(self._lines):
            return self._lines[line - 1].strip()
        return ""
