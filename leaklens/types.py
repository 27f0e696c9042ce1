"""
Core type definitions for LeakLens.

This module defines the small vocabulary shared by every stage:
- Supported source languages and their families
- Leak kinds and warning types reported by the analyzers
- Severity levels used by the report formats
"""

from enum import Enum
from typing import Optional, Union


# =============================================================================
# Languages
# =============================================================================

class Language(Enum):
    """Source languages recognized by the analyzer"""
    C = "c"
    CPP = "cpp"
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JAVA = "java"
    RUST = "rust"
    GO = "go"

    @classmethod
    def from_name(cls, name: Union[str, "Language", None]) -> Optional["Language"]:
        """
        Look up a language by name.

        Accepts an existing Language, a canonical value ("cpp") or a common
        alias ("c++", "js"). Returns None for anything unrecognized.
        """
        if isinstance(name, Language):
            return name
        if not isinstance(name, str):
            return None
        key = name.strip().lower()
        key = LANGUAGE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None

    @property
    def is_c_family(self) -> bool:
        return self in (Language.C, Language.CPP)


LANGUAGE_ALIASES = {
    "c++": "cpp",
    "cxx": "cpp",
    "js": "javascript",
    "node": "javascript",
    "py": "python",
    "rs": "rust",
    "golang": "go",
}


def resolve_language(name: Union[str, Language, None]) -> Language:
    """Resolve a language name; unrecognized names behave like C"""
    return Language.from_name(name) or Language.C


# =============================================================================
# Findings
# =============================================================================

class LeakKind(Enum):
    """Why an allocation was reported as leaked"""
    REASSIGNMENT = "reassignment"   # variable re-bound while still live
    UNRELEASED = "unreleased"       # still live at end of input


class WarningType(Enum):
    """Anomaly categories reported alongside leaks"""
    POTENTIAL_DOUBLE_FREE = "Potential Double Free"
    DOUBLE_FREE = "Double Free"
    MISMATCHED_DEALLOCATION = "Mismatched Deallocation"
    UNSAFE_FUNCTION = "Unsafe Function"
    ANALYSIS_ERROR = "Analysis Error"


class Severity(Enum):
    """Finding severity levels"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


SEVERITY_MAP = {
    LeakKind.REASSIGNMENT: Severity.HIGH,
    LeakKind.UNRELEASED: Severity.HIGH,
    WarningType.POTENTIAL_DOUBLE_FREE: Severity.MEDIUM,
    WarningType.DOUBLE_FREE: Severity.HIGH,
    WarningType.MISMATCHED_DEALLOCATION: Severity.HIGH,
    WarningType.UNSAFE_FUNCTION: Severity.MEDIUM,
    WarningType.ANALYSIS_ERROR: Severity.INFO,
}
