"""
Entry point for running the Gizmo LSP server as a module.

Usage:
    python -m gizmo.lsp
    python -m gizmo.lsp --tcp --port 2088
"""

from gizmo.lsp.server import main

if __name__ == "__main__":
    main()
