"""
Entry point for running headings as a module.

Usage:
    python -m headings
"""

from headings.cli.main import main

if __name__ == "__main__":
    main()
