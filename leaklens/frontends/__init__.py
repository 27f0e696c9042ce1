"""
Language frontends for LeakLens.

Each frontend turns comment-free source text into a sequence of memory
events (Allocation, Deallocation).

Available frontends:
- LineScanningFrontend: regex line scanner, every language
- JavaScriptFrontend: tree-sitter syntax walk for JavaScript

EventExtractor chains them: specific frontend, then line scanner, then an
empty sequence.
"""

from leaklens.frontends.line_frontend import LineScanningFrontend
from leaklens.frontends.javascript_frontend import (
    JavaScriptFrontend,
    TREE_SITTER_JS_AVAILABLE as JS_FRONTEND_AVAILABLE,
)
from leaklens.frontends.extractor import (
    EventExtractor,
    Extraction,
    NO_EXTRACTOR,
    get_frontend,
)

__all__ = [
    "LineScanningFrontend",
    "JavaScriptFrontend",
    "EventExtractor",
    "Extraction",
    "NO_EXTRACTOR",
    "get_frontend",
    "JS_FRONTEND_AVAILABLE",
]
