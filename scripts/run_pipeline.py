#!/usr/bin/env python3
"""
SettleWatch Pipeline Runner Script.

Watches SOURCE_DIR and converts files once they stop changing.
Requires Python 3.11+.

Usage:
    python scripts/run_pipeline.py /path/to/incoming --dest-dir /path/to/out
"""

import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from pipeline.app import main


if __name__ == "__main__":
    sys.exit(main())
