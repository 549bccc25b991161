"""
Gizmo tree-walking interpreter.

Executes a parsed ``Program`` against a persistent global scope. Besides
ordinary statements and expressions the interpreter owns:

- the generator execution model (``pattern``/``animate``/``evolve``), which
  evaluates a body once per pixel in a reusable, isolated pixel scope
- the event handler table filled by ``when`` statements
- the output frames and animation state set by ``play``/``loop`` calls

Hosts drive it through ``execute``, ``update``, ``handle_click_event``,
``handle_idle_event`` and the ``get_*`` queries.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

import numpy as np

from gizmo.compiler.ast_nodes import (
    AnimateGenerator,
    ArrayLiteral,
    Assignment,
    ASTVisitor,
    BinaryExpression,
    BinaryOperator,
    BooleanLiteral,
    CallExpression,
    ConditionalExpression,
    DeclaredType,
    EventKind,
    EvolveGenerator,
    Expression,
    ExpressionStatement,
    Identifier,
    IfStatement,
    IndexExpression,
    NumberLiteral,
    PatternGenerator,
    Program,
    RepeatStatement,
    ReturnStatement,
    Statement,
    StringLiteral,
    UnaryExpression,
    UnaryOperator,
    VarDeclaration,
    WhenStatement,
)
from gizmo.compiler.parser import parse
from gizmo.runtime import builtins as _builtins
from gizmo.runtime.animation import (
    DEFAULT_FRAME_DURATION_MS,
    MAX_FRAME_DURATION_MS,
    MIN_FRAME_DURATION_MS,
    AnimationState,
    clamp_duration,
)
from gizmo.runtime.builtins import BUILTINS, BuiltinRegistry
from gizmo.runtime.environment import GLOBAL_SCOPE, Environment
from gizmo.runtime.frame import Frame
from gizmo.runtime.values import (
    Frames,
    Value,
    as_frames,
    is_frames,
    is_number,
    is_truthy,
    to_display,
    to_number,
    type_name,
    values_equal,
)
from gizmo.utils.errors import (
    ArgumentError,
    DivisionByZeroError,
    ExecutionTimeoutError,
    GizmoRuntimeError,
    IndexOutOfBoundsError,
    SourceLocation,
    TypeMismatchError,
    UndefinedFunctionError,
)

logger = logging.getLogger(__name__)

# Calls handled by the interpreter itself instead of the builtin registry
ANIMATION_CALLS: dict[str, str] = {
    "play": "play(frames)",
    "loop": "loop(frames)",
    "play_speed": "play_speed(frames, ms)",
    "loop_speed": "loop_speed(frames, ms)",
    "stop": "stop()",
    "add_frame": "add_frame(name, frame)",
}

CLICK_EVENT = "clicked"


def idle_event_key(milliseconds: float) -> str:
    return f"idle_{int(milliseconds)}"


class Flow(Enum):
    """How control leaves a statement."""

    CONTINUE = auto()
    RETURN = auto()


@dataclass(frozen=True, slots=True)
class ExecResult:
    """
    Outcome of executing a statement or block.

    ``value`` is the returned value for ``Flow.RETURN`` and the value of an
    expression statement for ``Flow.CONTINUE``.
    """

    flow: Flow = Flow.CONTINUE
    value: Optional[Value] = None

    @property
    def returned(self) -> bool:
        return self.flow is Flow.RETURN


CONTINUE = ExecResult()


@dataclass(frozen=True, slots=True)
class InterpreterConfig:
    """
    Runtime settings for an interpreter instance.

    Attributes:
        default_frame_duration_ms: duration used by ``play``/``loop``
        min_frame_duration_ms: lower clamp for ``*_speed`` calls
        max_frame_duration_ms: upper clamp for ``*_speed`` calls
        start_time_ms: initial clock value; None uses the wall clock
        seed: seed for ``random()``; None leaves the generator alone. The
            generator is shared by every interpreter in the process, so
            constructing a seeded interpreter restarts it for all of them
        time_limit_ms: wall-clock budget for one ``execute`` or event
            dispatch; None runs without a limit
    """

    default_frame_duration_ms: int = DEFAULT_FRAME_DURATION_MS
    min_frame_duration_ms: int = MIN_FRAME_DURATION_MS
    max_frame_duration_ms: int = MAX_FRAME_DURATION_MS
    start_time_ms: Optional[float] = None
    seed: Optional[int] = None
    time_limit_ms: Optional[float] = None


class Interpreter(ASTVisitor):
    """
    Executes Gizmo programs.

    Usage:
        interpreter = Interpreter()
        interpreter.execute(parse(source))
        frame = interpreter.get_current_frame()
    """

    def __init__(
        self,
        config: Optional[InterpreterConfig] = None,
        source: Optional[str] = None,
        builtins: Optional[BuiltinRegistry] = None,
    ) -> None:
        self.config = config or InterpreterConfig()
        self.environment = Environment()
        self.builtins = builtins or BUILTINS
        self.event_handlers: dict[str, tuple[Statement, ...]] = {}
        self.output_frames: list[Frame] = []
        self.animation_state: Optional[AnimationState] = None
        self.frame_duration_ms = clamp_duration(
            self.config.default_frame_duration_ms,
            self.config.min_frame_duration_ms,
            self.config.max_frame_duration_ms,
        )
        if self.config.start_time_ms is None:
            self.current_time = time.time() * 1000.0
        else:
            self.current_time = float(self.config.start_time_ms)
        if self.config.seed is not None:
            _builtins.set_seed(self.config.seed)

        self._scope = GLOBAL_SCOPE
        self._source_lines = source.splitlines() if source is not None else None
        self._deadline: Optional[float] = None

    # -------------------------------------------------------------------------
    # Host surface
    # -------------------------------------------------------------------------

    def execute(self, program: Program) -> None:
        """
        Run every top-level statement once.

        A top-level ``return`` ends the program early.

        Raises:
            GizmoRuntimeError: on the first failing statement; state already
                committed by earlier statements is kept
        """
        self._scope = GLOBAL_SCOPE
        self._start_clock()
        for statement in program.statements:
            result = self._execute(statement)
            if result.returned:
                logger.debug("Program returned %s", to_display(result.value))
                break

    def run_source(self, source: str, filename: Optional[str] = None) -> None:
        """Parse and execute ``source`` in this interpreter."""
        self._source_lines = source.splitlines()
        self.execute(parse(source, filename))

    def get_animation_frames(self) -> list[Frame]:
        return list(self.output_frames)

    def get_current_frame(self) -> Optional[Frame]:
        """The frame the host should show now, if any."""
        if self.animation_state is not None:
            frame = self.animation_state.current()
            if frame is not None:
                return frame
        if self.output_frames:
            return self.output_frames[0]
        return None

    def get_frame_duration_ms(self) -> int:
        if self.animation_state is not None:
            return self.animation_state.frame_duration
        return self.frame_duration_ms

    def update(self, delta_ms: float) -> Optional[Frame]:
        """Advance the clock by ``delta_ms`` and return the now-current frame."""
        self.current_time += delta_ms
        if self.animation_state is None:
            return None
        self.animation_state.update(self.current_time)
        return self.animation_state.current()

    def handle_click_event(self) -> bool:
        """Run the ``when clicked`` handler. Returns False if none is registered."""
        return self._dispatch(CLICK_EVENT)

    def handle_idle_event(self, elapsed_ms: float) -> bool:
        """Run the ``when idle > elapsed_ms`` handler, if registered."""
        return self._dispatch(idle_event_key(elapsed_ms))

    def _dispatch(self, key: str) -> bool:
        body = self.event_handlers.get(key)
        if body is None:
            logger.debug("No handler registered for %s", key)
            return False

        logger.debug("Dispatching %s", key)
        saved = self._scope
        self._scope = GLOBAL_SCOPE
        self._start_clock()
        try:
            self._execute_block(body)
        finally:
            self._scope = saved
        return True

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _start_clock(self) -> None:
        limit = self.config.time_limit_ms
        self._deadline = None if limit is None else time.monotonic() + limit / 1000.0

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise ExecutionTimeoutError(self.config.time_limit_ms)

    def _execute(self, statement: Statement) -> ExecResult:
        self._check_deadline()
        try:
            return statement.accept(self)
        except GizmoRuntimeError as exc:
            exc.with_location(statement.location, self._line_text(statement.location))
            raise

    def _execute_block(self, statements: Sequence[Statement]) -> ExecResult:
        """
        Execute statements in order, stopping at the first return.

        Without a return, the result of the last statement is passed on so
        a trailing expression statement's value stays available.
        """
        result = CONTINUE
        for statement in statements:
            result = self._execute(statement)
            if result.returned:
                return result
        return result

    def _line_text(self, location: Optional[SourceLocation]) -> Optional[str]:
        if location is None or self._source_lines is None:
            return None
        index = location.line - 1
        if 0 <= index < len(self._source_lines):
            return self._source_lines[index]
        return None

    def visit_program(self, node: Program) -> ExecResult:
        return self._execute_block(node.statements)

    def visit_var_declaration(self, node: VarDeclaration) -> ExecResult:
        value = self._coerce_declared(node.var_type, self.evaluate(node.value), node.name)
        self.environment.define(self._scope, node.name, value)
        return CONTINUE

    def _coerce_declared(self, var_type: DeclaredType, value: Value, name: str) -> Value:
        """Convert ``value`` to the declared type or fail."""
        if var_type is DeclaredType.NUM:
            return to_number(value)
        if var_type is DeclaredType.TEXT:
            return to_display(value)
        if var_type is DeclaredType.FRAME:
            if isinstance(value, Frame):
                return value
            # A nested array literal evaluates to one-row frames; declaring it
            # as a frame stacks the rows
            if is_frames(value) and value and all(frame.height == 1 for frame in value):
                return Frame.stack(value)
            raise TypeMismatchError(f"Cannot assign {type_name(value)} to frame '{name}'")
        if isinstance(value, Frame) or is_frames(value):
            return as_frames(value, f"frames '{name}'")
        raise TypeMismatchError(f"Cannot assign {type_name(value)} to frames '{name}'")

    def visit_assignment(self, node: Assignment) -> ExecResult:
        self.environment.assign(self._scope, node.name, self.evaluate(node.value))
        return CONTINUE

    def visit_expression_statement(self, node: ExpressionStatement) -> ExecResult:
        return ExecResult(Flow.CONTINUE, self.evaluate(node.expression))

    def visit_if_statement(self, node: IfStatement) -> ExecResult:
        if is_truthy(self.evaluate(node.condition)):
            return self._execute_block(node.then_body)
        for clause in node.elsif_clauses:
            if is_truthy(self.evaluate(clause.condition)):
                return self._execute_block(clause.body)
        if node.else_body is not None:
            return self._execute_block(node.else_body)
        return CONTINUE

    def visit_repeat_statement(self, node: RepeatStatement) -> ExecResult:
        count = to_number(self.evaluate(node.count))
        if not math.isfinite(count):
            raise GizmoRuntimeError(f"Repeat count must be finite, got {to_display(count)}")
        for _ in range(int(count)):
            self._check_deadline()
            result = self._execute_block(node.body)
            if result.returned:
                return result
        return CONTINUE

    def visit_when_statement(self, node: WhenStatement) -> ExecResult:
        if node.event is EventKind.CLICKED:
            key = CLICK_EVENT
        else:
            threshold = to_number(self.evaluate(node.threshold))
            if not math.isfinite(threshold):
                raise GizmoRuntimeError("Idle threshold must be finite")
            key = idle_event_key(threshold)
        self.event_handlers[key] = node.body
        logger.debug("Registered %s handler (%d statements)", key, len(node.body))
        return CONTINUE

    def visit_return_statement(self, node: ReturnStatement) -> ExecResult:
        return ExecResult(Flow.RETURN, self.evaluate(node.value))

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def evaluate(self, expression: Expression) -> Value:
        return expression.accept(self)

    def visit_number_literal(self, node: NumberLiteral) -> Value:
        return node.value

    def visit_string_literal(self, node: StringLiteral) -> Value:
        return node.value

    def visit_boolean_literal(self, node: BooleanLiteral) -> Value:
        return node.value

    def visit_identifier(self, node: Identifier) -> Value:
        return self.environment.get(self._scope, node.name)

    def visit_array_literal(self, node: ArrayLiteral) -> Value:
        """
        Type an array literal from its elements.

        - all frames (or empty): a Frames sequence
        - all numbers: a one-row frame, nonzero meaning on

        A nested literal is therefore Frames of one-row frames; a ``frame``
        declaration stacks those into a single frame.
        """
        values = [self.evaluate(element) for element in node.elements]

        if all(isinstance(value, Frame) for value in values):
            return tuple(values)

        if all(is_number(value) for value in values):
            return Frame.from_rows([[float(value) != 0.0 for value in values]])

        raise TypeMismatchError("Mixed array types in frame definition")

    def visit_conditional_expression(self, node: ConditionalExpression) -> Value:
        if is_truthy(self.evaluate(node.condition)):
            return self.evaluate(node.then_expr)
        return self.evaluate(node.else_expr)

    def visit_unary_expression(self, node: UnaryExpression) -> Value:
        operand = self.evaluate(node.operand)
        if node.operator is UnaryOperator.NOT:
            return not is_truthy(operand)
        return -to_number(operand)

    def visit_binary_expression(self, node: BinaryExpression) -> Value:
        op = node.operator

        # Short-circuit
        if op is BinaryOperator.AND:
            return is_truthy(self.evaluate(node.left)) and is_truthy(self.evaluate(node.right))
        if op is BinaryOperator.OR:
            return is_truthy(self.evaluate(node.left)) or is_truthy(self.evaluate(node.right))

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)

        if op is BinaryOperator.EQ:
            return values_equal(left, right)
        if op is BinaryOperator.NE:
            return not values_equal(left, right)

        a = to_number(left)
        b = to_number(right)

        if op is BinaryOperator.ADD:
            return a + b
        if op is BinaryOperator.SUB:
            return a - b
        if op is BinaryOperator.MUL:
            return a * b
        if op is BinaryOperator.DIV:
            if b == 0.0:
                raise DivisionByZeroError()
            return a / b
        if op is BinaryOperator.MOD:
            if b == 0.0:
                raise DivisionByZeroError()
            return _modulo(a, b)
        if op is BinaryOperator.POW:
            return _power(a, b)
        if op is BinaryOperator.LT:
            return a < b
        if op is BinaryOperator.GT:
            return a > b
        if op is BinaryOperator.LE:
            return a <= b
        if op is BinaryOperator.GE:
            return a >= b

        raise GizmoRuntimeError(f"Unsupported operator {op.value}")

    def visit_index_expression(self, node: IndexExpression) -> Value:
        target = self.evaluate(node.target)
        index_value = self.evaluate(node.index)

        if not (isinstance(target, Frame) or is_frames(target)):
            raise TypeMismatchError(
                f"Invalid index operation on {type_name(target)}"
            )
        if not is_number(index_value):
            raise TypeMismatchError(
                f"Invalid index operation with {type_name(index_value)} index"
            )

        index = float(index_value)
        length = target.height if isinstance(target, Frame) else len(target)
        if not math.isfinite(index) or index < 0 or int(index) >= length:
            raise IndexOutOfBoundsError(
                f"Index {to_display(index)} out of range for {type_name(target)} of length {length}"
            )

        if isinstance(target, Frame):
            return target.row(int(index))
        return target[int(index)]

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    def visit_call_expression(self, node: CallExpression) -> Value:
        if node.name in ANIMATION_CALLS:
            return self._call_animation(node)

        builtin = self.builtins.get(node.name)
        if builtin is None:
            raise UndefinedFunctionError(node.name)

        args = [self.evaluate(argument) for argument in node.arguments]
        return builtin(args)

    def _call_animation(self, node: CallExpression) -> Value:
        name = node.name

        if name == "add_frame":
            return self._add_frame(node)

        args = [self.evaluate(argument) for argument in node.arguments]
        expected = {"play": 1, "loop": 1, "play_speed": 2, "loop_speed": 2, "stop": 0}[name]
        if len(args) != expected:
            raise ArgumentError(f"{name}() takes {expected} argument(s), got {len(args)}")

        if name == "stop":
            if self.animation_state is not None:
                self.animation_state.playing = False
                logger.debug("Animation stopped at frame %d", self.animation_state.current_frame)
            return True

        frames = as_frames(args[0], f"{name}()")
        if name.endswith("_speed"):
            duration = to_number(args[1])
            self.frame_duration_ms = clamp_duration(
                duration,
                self.config.min_frame_duration_ms,
                self.config.max_frame_duration_ms,
            )
        self._start_animation(frames, loop=name.startswith("loop"))
        return True

    def _start_animation(self, frames: Frames, loop: bool) -> None:
        self.output_frames = list(frames)
        self.animation_state = AnimationState(
            frames=tuple(frames),
            loop=loop,
            frame_duration=self.frame_duration_ms,
            last_frame_time=self.current_time,
        )
        logger.debug(
            "%s %d frame(s) at %d ms per frame",
            "Looping" if loop else "Playing",
            len(frames),
            self.frame_duration_ms,
        )

    def _add_frame(self, node: CallExpression) -> Value:
        """``add_frame(name, frame)``: append to the Frames variable ``name``."""
        if len(node.arguments) != 2:
            raise ArgumentError(f"add_frame() takes 2 argument(s), got {len(node.arguments)}")
        target = node.arguments[0]
        if not isinstance(target, Identifier):
            raise ArgumentError("add_frame() first argument must be a variable name")

        frame = self.evaluate(node.arguments[1])
        if not isinstance(frame, Frame):
            raise ArgumentError(f"add_frame() second argument must be a Frame, got {type_name(frame)}")

        if self.environment.contains(self._scope, target.name):
            current = self.environment.get(self._scope, target.name)
            if not is_frames(current):
                raise TypeMismatchError(
                    f"add_frame() target '{target.name}' is {type_name(current)}, not Frames"
                )
            updated = current + (frame,)
            self.environment.assign(self._scope, target.name, updated)
        else:
            updated = (frame,)
            self.environment.define(self._scope, target.name, updated)
        return updated

    # -------------------------------------------------------------------------
    # Generators
    # -------------------------------------------------------------------------

    def visit_pattern_generator(self, node: PatternGenerator) -> Value:
        return self._run_generator(node.width, node.height, node.body, {})

    def visit_animate_generator(self, node: AnimateGenerator) -> Value:
        return self._run_generator(
            node.width, node.height, node.body, {node.time_var: self.current_time}
        )

    def visit_evolve_generator(self, node: EvolveGenerator) -> Value:
        if not self.environment.contains(self._scope, node.prev_var):
            raise GizmoRuntimeError("Cellular automaton requires previous frame")
        previous = self.environment.get(self._scope, node.prev_var)
        if not isinstance(previous, Frame):
            raise GizmoRuntimeError("Cellular automaton requires previous frame")
        return self._run_generator(
            node.width, node.height, node.body, {node.prev_var: previous}
        )

    def _generator_size(self, expression: Expression, what: str) -> int:
        size = to_number(self.evaluate(expression))
        if not math.isfinite(size) or size < 0:
            raise GizmoRuntimeError(
                f"Generator {what} must be a non-negative number, got {to_display(size)}"
            )
        return int(size)

    def _run_generator(
        self,
        width_expr: Expression,
        height_expr: Expression,
        body: tuple[Statement, ...],
        captured: dict[str, Value],
    ) -> Frame:
        """
        Evaluate ``body`` once per pixel, row-major, and collect the results.

        A single isolated pixel scope is pushed under the current scope and
        reset before every pixel, so nothing a pixel defines or assigns is
        visible to the next pixel or to the enclosing scope.
        """
        width = self._generator_size(width_expr, "width")
        height = self._generator_size(height_expr, "height")
        frame = Frame.blank(width, height)
        trailing_expression = bool(body) and isinstance(body[-1], ExpressionStatement)

        parent = self._scope
        pixel_scope = self.environment.push(parent, isolated=True)
        self._scope = pixel_scope
        try:
            for row in range(height):
                for col in range(width):
                    self._check_deadline()
                    bindings: dict[str, Value] = {"row": float(row), "col": float(col)}
                    bindings.update(captured)
                    self.environment.reset(pixel_scope, bindings)

                    result = self._execute_block(body)
                    if result.returned or trailing_expression:
                        on = is_truthy(result.value)
                    else:
                        on = False
                    if on:
                        frame.set_pixel(row, col, True)
        finally:
            self._scope = parent
            self.environment.pop(pixel_scope)

        return frame


def _power(base: float, exponent: float) -> float:
    # Overflow gives inf and a negative base with a fractional exponent gives nan
    with np.errstate(all="ignore"):
        return float(np.power(np.float64(base), np.float64(exponent)))


def _modulo(dividend: float, divisor: float) -> float:
    # Sign follows the dividend; an infinite dividend gives nan
    with np.errstate(all="ignore"):
        return float(np.fmod(np.float64(dividend), np.float64(divisor)))


def run(
    source: str,
    filename: Optional[str] = None,
    config: Optional[InterpreterConfig] = None,
) -> Interpreter:
    """
    Parse and execute ``source`` in a fresh interpreter and return it.

    Raises:
        GizmoError: on any lex, parse or runtime failure
    """
    interpreter = Interpreter(config, source=source)
    interpreter.execute(parse(source, filename))
    return interpreter
