#!/usr/bin/env python3
"""candle entry point — docs reports and sentinel logging commands."""

import sys
import pathlib

if sys.version_info < (3, 11):
    print(f"ERROR: Python 3.11+ required (found {sys.version_info.major}.{sys.version_info.minor})")
    sys.exit(1)

# Ensure project root is on sys.path
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent))

from doctools.cli import main

if __name__ == "__main__":
    sys.exit(main())
