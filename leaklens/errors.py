"""
Exceptions raised by LeakLens.

Only input validation escapes `analyze`; every other failure is absorbed
and reported inside the analysis result.
"""


class LeakLensError(Exception):
    """Base class for LeakLens errors"""
    pass


class InvalidSourceError(LeakLensError, ValueError):
    """Exception raised when the source to analyze is empty or not text"""
    pass


class UnsupportedLanguageError(LeakLensError, ValueError):
    """Exception raised when a language name is not recognized"""
    pass
