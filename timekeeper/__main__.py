"""
Allow running the CLI as a module.

Usage:
    python -m timekeeper capture URL
"""

from .cli import main
import sys

if __name__ == "__main__":
    sys.exit(main())
