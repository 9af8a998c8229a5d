#!/usr/bin/env python3
"""
recompress - command line entry point
Recompress an image to a target structural similarity
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(__file__))

from recompress.cli import main


if __name__ == "__main__":
    sys.exit(main())
