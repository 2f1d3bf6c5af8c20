"""
Entry point for module execution (``python -m ssg_macro``).

This module delegates execution to the CLI handler in ``ssg_macro.cli.__main__``.
"""

import sys
from ssg_macro.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
