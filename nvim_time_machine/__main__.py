"""
Entry point for running nvim_time_machine as a module.

Usage:
    python -m nvim_time_machine --list-capsules
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
