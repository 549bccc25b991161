"""Allow ``python -m gizmo``."""

import sys

from gizmo.cli import main

if __name__ == "__main__":
    sys.exit(main())
