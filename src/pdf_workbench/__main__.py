"""Entry point for ``python -m pdf_workbench``."""

from __future__ import annotations

import sys

from pdf_workbench.cli import main

if __name__ == "__main__":
    sys.exit(main())
