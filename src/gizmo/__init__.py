"""
Gizmo - a tiny language for procedural pixel-art animation.

Scripts build monochrome frames by evaluating an expression once per
pixel, optionally driven by time or by the previous generation of a
cellular automaton.

Example:
    import gizmo

    interpreter = gizmo.run('''
        frame diagonal = pattern(8, 8) { return row == col }
        play(diagonal)
    ''')
    frame = interpreter.get_current_frame()
"""

__version__ = "0.3.0"

from gizmo.compiler.lexer import tokenize
from gizmo.compiler.parser import parse
from gizmo.runtime.frame import Frame
from gizmo.runtime.interpreter import Interpreter, InterpreterConfig, run
from gizmo.utils.errors import GizmoError

__all__ = [
    "Frame",
    "GizmoError",
    "Interpreter",
    "InterpreterConfig",
    "__version__",
    "parse",
    "run",
    "tokenize",
]
