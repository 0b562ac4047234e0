"""
Entry point for the Via CLI.

Usage:
    python -m via gen
"""

from .cli import main

if __name__ == "__main__":
    main()
