"""
Gizmo Language Server.

Editor support for Gizmo scripts: diagnostics and completions.
"""

from gizmo.lsp.completions import CompletionProvider
from gizmo.lsp.diagnostics import DiagnosticProvider, get_diagnostics_for_document
from gizmo.lsp.symbols import Symbol, SymbolCollector, SymbolKind, SymbolTable, collect_symbols

__all__ = [
    "CompletionProvider",
    "DiagnosticProvider",
    "Symbol",
    "SymbolCollector",
    "SymbolKind",
    "SymbolTable",
    "collect_symbols",
    "get_diagnostics_for_document",
]
