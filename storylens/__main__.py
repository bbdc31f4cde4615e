"""
Entry point for running the package as a module.

Usage:
    python -m storylens serve
    python -m storylens generate photo.jpg --wait
"""

import sys
from storylens.cli import main

if __name__ == "__main__":
    sys.exit(main())
