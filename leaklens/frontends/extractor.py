"""
Event extraction with an explicit fallback chain.

For each language the chain is:

    language-specific frontend (if any and importable)
      -> line-scanning frontend
      -> empty event sequence

A frontend that raises, or returns no events, hands over to the next link.
`EventExtractor.extract` never raises.
"""

import sys
import traceback
from dataclasses import dataclass
from typing import List, Optional, Tuple

from leaklens.events import MemoryEvent
from leaklens.frontends.javascript_frontend import JavaScriptFrontend, TREE_SITTER_JS_AVAILABLE
from leaklens.frontends.line_frontend import LineScanningFrontend
from leaklens.types import Language, resolve_language


NO_EXTRACTOR = "none"


@dataclass(frozen=True)
class Extraction:
    """Events produced for one source text and the frontend that produced them"""
    events: Tuple[MemoryEvent, ...]
    extractor: str


def get_frontend(language, verbose: bool = False):
    """
    Get the language-specific frontend for a language.

    Returns None when the language has none or its parser is not installed.
    """
    language = resolve_language(language)
    if language == Language.JAVASCRIPT and TREE_SITTER_JS_AVAILABLE:
        return JavaScriptFrontend(verbose=verbose)
    return None


class EventExtractor:
    """
    Runs the frontend chain for a language.

    Usage:
        extraction = EventExtractor().extract(cleaned_source, "cpp")
        for event in extraction.events:
            ...
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def chain(self, language) -> List:
        """Frontends to try for `language`, in order"""
        language = resolve_language(language)
        frontends = []
        try:
            specific = get_frontend(language, verbose=self.verbose)
        except Exception as e:
            if self.verbose:
                print(f"[Extractor] {language.value} frontend unavailable: {e}", file=sys.stderr)
            specific = None
        if specific is not None:
            frontends.append(specific)
        frontends.append(LineScanningFrontend(language, verbose=self.verbose))
        return frontends

    def extract(self, source_code: str, language=Language.C) -> Extraction:
        """
        Extract events from comment-free source.

        Args:
            source_code: Source text with comments already removed
            language: Source language name or Language

        Returns:
            Extraction holding the first non-empty event sequence
        """
        last_ran: Optional[str] = None

        for frontend in self.chain(language):
            try:
                events = frontend.extract(source_code)
            except Exception as e:
                if self.verbose:
                    print(f"[Extractor] {frontend.name} frontend failed: {e}", file=sys.stderr)
                    traceback.print_exc()
                continue

            if events is None:
                continue
            last_ran = frontend.name
            if events:
                if self.verbose:
                    print(f"[Extractor] {len(events)} events from {frontend.name} frontend", file=sys.stderr)
                return Extraction(tuple(events), frontend.name)

        return Extraction((), last_ran or NO_EXTRACTOR)
