"""
Gizmo Command-Line Interface.

Runs Gizmo scripts and shows their frames in the terminal.

Usage:
    gizmo run heart.gzmo            # Print the frames a script produces
    gizmo run life.gzmo --click 3   # Fire the click handler three times first
    gizmo preview spinner.gzmo      # Play the animation in the terminal
    gizmo check heart.gzmo          # Syntax check only
    gizmo tokens heart.gzmo         # Dump tokens (debug)
    gizmo ast heart.gzmo            # Dump the syntax tree (debug)
"""

import argparse
import dataclasses
import logging
import os
import sys
import time
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from gizmo import __version__
from gizmo.compiler.lexer import Lexer
from gizmo.compiler.parser import Parser
from gizmo.render import FrameRenderer, collect_frames, scale_frame
from gizmo.runtime.frame import Frame
from gizmo.runtime.interpreter import Interpreter, InterpreterConfig
from gizmo.utils.errors import GizmoError

logger = logging.getLogger("gizmo")


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    # Cursor control for preview
    CLEAR = "\033[2J\033[H"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""
        cls.CLEAR = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    # Disable colors if not a TTY or if NO_COLOR is set
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


# Initialize on module load
_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="gizmo",
        description="Gizmo - a tiny language for procedural pixel-art animation",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Shared options for commands that execute a script
    exec_options = argparse.ArgumentParser(add_help=False)
    exec_options.add_argument("input", type=Path, help="Input .gzmo file")
    exec_options.add_argument(
        "--style",
        choices=["ascii", "blocks"],
        default="ascii",
        help="How pixels are drawn (default: ascii)",
    )
    exec_options.add_argument(
        "--scale",
        nargs=2,
        type=int,
        metavar=("WIDTH", "HEIGHT"),
        help="Resample frames to this size before drawing",
    )
    exec_options.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for random()",
    )
    exec_options.add_argument(
        "--frame-duration",
        type=int,
        default=InterpreterConfig.default_frame_duration_ms,
        help="Default milliseconds per frame for play()/loop()",
    )

    run_parser = subparsers.add_parser(
        "run",
        parents=[exec_options],
        help="Run a script and print its frames",
    )
    run_parser.add_argument(
        "--click",
        type=int,
        default=0,
        metavar="N",
        help="Fire the click handler N times after running",
    )
    run_parser.add_argument(
        "--idle",
        type=int,
        action="append",
        default=[],
        metavar="MS",
        help="Fire the idle handler registered for MS milliseconds (repeatable)",
    )
    run_parser.add_argument(
        "--current",
        action="store_true",
        help="Print only the current frame",
    )

    preview_parser = subparsers.add_parser(
        "preview",
        parents=[exec_options],
        help="Play a script's animation in the terminal",
    )
    preview_parser.add_argument(
        "--ticks",
        type=int,
        default=50,
        help="Number of animation updates to show (default: 50)",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Check a script for syntax errors",
    )
    check_parser.add_argument("input", type=Path, help="Input .gzmo file")

    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Show lexer tokens (debug)",
    )
    tokens_parser.add_argument("input", type=Path, help="Input .gzmo file")

    ast_parser = subparsers.add_parser(
        "ast",
        help="Show the syntax tree (debug)",
    )
    ast_parser.add_argument("input", type=Path, help="Input .gzmo file")

    return parser


# =============================================================================
# Helpers
# =============================================================================


def _read_source(input_path: Path) -> Optional[str]:
    if not input_path.exists():
        print(f"{Colors.RED}Error:{Colors.RESET} File not found: {input_path}", file=sys.stderr)
        return None
    return input_path.read_text(encoding="utf-8")


def _print_error(error: GizmoError) -> None:
    print(f"{Colors.RED}Error:{Colors.RESET} {error}", file=sys.stderr)


def _load(args: argparse.Namespace, source: str) -> Interpreter:
    """Lex, parse and execute ``source`` with settings from the command line."""
    config = InterpreterConfig(
        default_frame_duration_ms=args.frame_duration,
        seed=args.seed,
    )
    interpreter = Interpreter(config, source=source)
    interpreter.run_source(source, str(args.input))
    return interpreter


def _draw(frame: Frame, args: argparse.Namespace) -> str:
    if args.scale:
        frame = scale_frame(frame, args.scale[0], args.scale[1])
    return FrameRenderer.named(args.style).render(frame)


# =============================================================================
# Commands
# =============================================================================


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the run command."""
    source = _read_source(args.input)
    if source is None:
        return 1

    try:
        interpreter = _load(args, source)
        for _ in range(args.click):
            interpreter.handle_click_event()
        for elapsed in args.idle:
            interpreter.handle_idle_event(elapsed)
    except GizmoError as e:
        _print_error(e)
        return 1

    if args.current:
        current = interpreter.get_current_frame()
        frames = [current] if current is not None else collect_frames(interpreter)[0]
        duration = interpreter.get_frame_duration_ms()
    else:
        frames, duration = collect_frames(interpreter)

    for index, frame in enumerate(frames):
        header = f"frame {index + 1}/{len(frames)}  {frame.width}x{frame.height}  {duration} ms"
        print(f"{Colors.CYAN}{header}{Colors.RESET}")
        print(_draw(frame, args))
        print()

    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    """Handle the preview command."""
    source = _read_source(args.input)
    if source is None:
        return 1

    try:
        interpreter = _load(args, source)
    except GizmoError as e:
        _print_error(e)
        return 1

    frames, _ = collect_frames(interpreter)
    frame = interpreter.get_current_frame() or frames[0]

    try:
        for tick in range(max(args.ticks, 1)):
            duration = interpreter.get_frame_duration_ms()
            print(Colors.CLEAR, end="")
            print(_draw(frame, args))
            print(f"{Colors.GRAY}tick {tick + 1}/{args.ticks}  {duration} ms{Colors.RESET}")
            time.sleep(duration / 1000.0)
            frame = interpreter.update(duration) or frame
    except KeyboardInterrupt:
        print()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the check command."""
    source = _read_source(args.input)
    if source is None:
        return 1

    try:
        tokens = Lexer(source, str(args.input)).tokenize()
        Parser(tokens, source, str(args.input)).parse()
    except GizmoError as e:
        _print_error(e)
        return 1

    print(f"{Colors.GREEN}OK:{Colors.RESET} {args.input} (no syntax errors)")
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle the tokens command (debug)."""
    source = _read_source(args.input)
    if source is None:
        return 1

    try:
        tokens = Lexer(source, str(args.input)).tokenize()
    except GizmoError as e:
        _print_error(e)
        return 1

    for token in tokens:
        print(token)
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    source = _read_source(args.input)
    if source is None:
        return 1

    try:
        tokens = Lexer(source, str(args.input)).tokenize()
        program = Parser(tokens, source, str(args.input)).parse()
    except GizmoError as e:
        _print_error(e)
        return 1

    _print_ast(program)
    return 0


def _print_ast(node: Any, indent: int = 0) -> None:
    """Pretty print an AST node."""
    prefix = "  " * indent
    attrs = {
        f.name: getattr(node, f.name)
        for f in dataclasses.fields(node)
        if f.name != "location"
    }

    print(f"{prefix}{type(node).__name__}:")
    for key, value in attrs.items():
        if dataclasses.is_dataclass(value):
            print(f"{prefix}  {key}:")
            _print_ast(value, indent + 2)
        elif isinstance(value, tuple) and value and dataclasses.is_dataclass(value[0]):
            print(f"{prefix}  {key}: [")
            for item in value:
                _print_ast(item, indent + 2)
            print(f"{prefix}  ]")
        elif isinstance(value, Enum):
            print(f"{prefix}  {key}: {value.value}")
        else:
            print(f"{prefix}  {key}: {value!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(name)s %(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "run": cmd_run,
        "preview": cmd_preview,
        "check": cmd_check,
        "tokens": cmd_tokens,
        "ast": cmd_ast,
    }

    handler = command_handlers.get(args.command)
    if handler:
        logger.debug("Running %s on %s", args.command, args.input)
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
