"""
Comment removal applied before any pattern matching.

String literals are not tracked: a `//` inside a string starts a comment
as far as this module is concerned.
"""

import re
import sys

_LINE_COMMENT = re.compile(r'//.*$', re.MULTILINE)
_BLOCK_COMMENT = re.compile(r'/\*[\s\S]*?\*/')


def _blank_block(match: "re.Match") -> str:
    # Keep the newlines so later line numbers still match the source
    return "\n" * match.group(0).count("\n")


def strip_comments(code: str, verbose: bool = False) -> str:
    """
    Remove `//` line comments and `/* */` block comments.

    Never raises: on failure the input is returned unchanged.
    """
    try:
        cleaned = _LINE_COMMENT.sub('', code)
        return _BLOCK_COMMENT.sub(_blank_block, cleaned)
    except Exception as e:
        if verbose:
            print(f"[Comments] Error removing comments: {e}", file=sys.stderr)
        return code
