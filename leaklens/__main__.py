#!/usr/bin/env python3
"""
LeakLens CLI entry point for `python -m leaklens`.

Usage:
    python -m leaklens analyze buffer.c
    python -m leaklens analyze src/ --format sarif -o results.sarif
"""

import sys
from leaklens.cli import main

if __name__ == "__main__":
    sys.exit(main())
