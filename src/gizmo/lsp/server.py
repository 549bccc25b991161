"""
Gizmo Language Server Protocol (LSP) Server.

Implements a small LSP server for Gizmo scripts using pygls:

- Document synchronization (open, change, save, close)
- Diagnostics (lex, parse and runtime errors)
- Completion suggestions

Usage:
    # Start the server in stdio mode (for IDE integration)
    gizmo-lsp

    # Start in TCP mode (for debugging)
    gizmo-lsp --tcp --port 2088
"""

import argparse
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from gizmo import __version__
from gizmo.lsp.completions import CompletionProvider
from gizmo.lsp.diagnostics import DEFAULT_TIME_LIMIT_MS, DiagnosticProvider
from gizmo.lsp.symbols import SymbolTable, collect_symbols

logger = logging.getLogger("gizmo-lsp")


class GizmoLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for Gizmo.

    Keeps the symbol table of each open document so completion requests
    do not have to re-parse. Documents are checked on a single worker
    thread, in the order edits arrive, so a slow script never blocks the
    event loop.
    """

    def __init__(
        self,
        execute_scripts: bool = True,
        time_limit_ms: Optional[float] = DEFAULT_TIME_LIMIT_MS,
    ) -> None:
        super().__init__(name="gizmo-lsp", version=f"v{__version__}")
        self.execute_scripts = execute_scripts
        self.time_limit_ms = time_limit_ms
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="gizmo-check")
        self._symbols: dict[str, SymbolTable] = {}
        self._completions = CompletionProvider()
        self._register_handlers()

    def _register_handlers(self) -> None:
        """Register all LSP request and notification handlers."""
        self.feature(types.TEXT_DOCUMENT_DID_OPEN)(self._on_did_open)
        self.feature(types.TEXT_DOCUMENT_DID_CHANGE)(self._on_did_change)
        self.feature(types.TEXT_DOCUMENT_DID_SAVE)(self._on_did_save)
        self.feature(types.TEXT_DOCUMENT_DID_CLOSE)(self._on_did_close)
        self.feature(
            types.TEXT_DOCUMENT_COMPLETION,
            types.CompletionOptions(trigger_characters=["(", ",", " "], resolve_provider=False),
        )(self._on_completion)

    def analyze(self, uri: str, text: str) -> list[types.Diagnostic]:
        """Compute diagnostics for a document and cache its symbols."""
        provider = DiagnosticProvider(
            text, uri, execute=self.execute_scripts, time_limit_ms=self.time_limit_ms
        )
        diagnostics = provider.get_diagnostics()
        if provider.program is not None:
            self._symbols[uri] = collect_symbols(provider.program)
        return diagnostics

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    async def _analyze_and_publish(self, uri: str, text: str) -> None:
        """Check a document on the worker thread and publish the result."""
        loop = asyncio.get_running_loop()
        diagnostics = await loop.run_in_executor(self._executor, self.analyze, uri, text)
        self._publish_diagnostics(uri, diagnostics)

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    async def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        document = params.text_document
        logger.info("Document opened: %s", document.uri)
        await self._analyze_and_publish(document.uri, document.text)

    async def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        uri = params.text_document.uri
        document = self.workspace.get_text_document(uri)
        logger.debug("Document changed: %s", uri)
        await self._analyze_and_publish(uri, document.source)

    async def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info("Document saved: %s", uri)
        document = self.workspace.get_text_document(uri)
        await self._analyze_and_publish(uri, document.source)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)
        self._symbols.pop(uri, None)
        self._publish_diagnostics(uri, [])

    # =========================================================================
    # Completion
    # =========================================================================

    def _on_completion(self, params: types.CompletionParams) -> Optional[types.CompletionList]:
        table = self._symbols.get(params.text_document.uri)
        symbols = table.variables() if table is not None else []
        return types.CompletionList(
            is_incomplete=False,
            items=self._completions.get_all_completions(symbols),
        )


def create_server(
    execute_scripts: bool = True,
    time_limit_ms: Optional[float] = DEFAULT_TIME_LIMIT_MS,
) -> GizmoLanguageServer:
    """Create and configure a Gizmo language server instance."""
    server = GizmoLanguageServer(execute_scripts=execute_scripts, time_limit_ms=time_limit_ms)

    @server.feature(types.INITIALIZED)
    def on_initialized(params: types.InitializedParams) -> None:  # noqa: ARG001
        logger.info("Gizmo Language Server initialized")

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the Gizmo language server.

    Starts the server in stdio mode for IDE integration.
    """
    parser = argparse.ArgumentParser(
        description="Gizmo Language Server",
        prog="gizmo-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2088,
        help="Port to listen on in TCP mode (default: 2088)",
    )
    parser.add_argument(
        "--no-execute",
        action="store_true",
        help="Only report syntax errors; never run scripts",
    )
    parser.add_argument(
        "--time-limit",
        type=float,
        default=DEFAULT_TIME_LIMIT_MS,
        metavar="MS",
        help=f"Stop running a script after this many ms (default: {DEFAULT_TIME_LIMIT_MS:g})",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    server = create_server(execute_scripts=not args.no_execute, time_limit_ms=args.time_limit)

    if args.tcp:
        logger.info("Starting Gizmo LSP in TCP mode on %s:%s", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting Gizmo LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
