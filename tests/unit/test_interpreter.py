"""
Unit tests for the Gizmo interpreter.

Tests cover:
- Declarations and typed coercion
- Operators, short-circuiting and errors
- Array literal typing and indexing
- Generators (pattern, animate, evolve) and pixel scope isolation
- Animation calls and the host surface
- Event handlers
"""

import math

import pytest

from gizmo.runtime.frame import Frame
from gizmo.runtime.interpreter import Interpreter, InterpreterConfig, run as run_script
from gizmo.utils.errors import (
    ArgumentError,
    DivisionByZeroError,
    ExecutionTimeoutError,
    GizmoRuntimeError,
    IndexOutOfBoundsError,
    InvalidFrameError,
    TypeMismatchError,
    UndefinedFunctionError,
    UndefinedVariableError,
)


class TestDeclarations:
    """Tests for declarations, assignments and typed coercion."""

    def test_num_declaration(self, run, global_value):
        interp = run("num x = 2 + 3")
        assert global_value(interp, "x") == 5.0

    def test_num_coerces_string(self, run, global_value):
        assert global_value(run('num x = "3"'), "x") == 3.0

    def test_num_rejects_frame(self, run):
        with pytest.raises(TypeMismatchError):
            run("num x = create_frame(1, 1)")

    def test_text_coerces_number(self, run, global_value):
        assert global_value(run("text t = 5"), "t") == "5"
        assert global_value(run("text t = 1 == 1"), "t") == "true"

    def test_frame_rejects_number(self, run):
        with pytest.raises(TypeMismatchError, match="Cannot assign Number to frame 'f'"):
            run("frame f = 3")

    def test_frame_stacks_nested_rows(self, run, global_value, make_frame):
        interp = run("frame f = [[1, 0], [0, 1]]")
        assert global_value(interp, "f") == make_frame("#.", ".#")

    def test_frame_rejects_empty_sequence(self, run):
        with pytest.raises(TypeMismatchError):
            run("frame f = []")

    def test_frames_wraps_single_frame(self, run, global_value):
        interp = run("frames fs = create_frame(2, 2)")
        value = global_value(interp, "fs")
        assert isinstance(value, tuple)
        assert len(value) == 1

    def test_assignment_is_untyped(self, run, global_value):
        interp = run('num x = 1\nx = "now text"')
        assert global_value(interp, "x") == "now text"

    def test_assign_undefined(self, run):
        with pytest.raises(UndefinedVariableError, match="'y' is not defined"):
            run("y = 1")

    def test_redeclaration_replaces(self, run, global_value):
        interp = run("num x = 1\ntext x = 2")
        assert global_value(interp, "x") == "2"


class TestOperators:
    """Tests for expression evaluation."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("1 + 2 * 3", 7.0),
            ("(1 + 2) * 3", 9.0),
            ("2 ^ 3 ^ 2", 512.0),
            ("-2 ^ 2", 4.0),
            ("7 % 3", 1.0),
            ("-7 % 3", -1.0),
            ("10 / 4", 2.5),
            ('"3" + 4', 7.0),
            ("true + true", 2.0),
        ],
    )
    def test_arithmetic(self, run, global_value, source, expected):
        assert global_value(run(f"num r = {source}"), "r") == expected

    def test_power_of_negative_fraction_is_nan(self, run, global_value):
        assert math.isnan(global_value(run("num r = (0 - 8) ^ 0.5"), "r"))

    def test_power_overflow_is_inf(self, run, global_value):
        assert global_value(run("num r = 10 ^ 400"), "r") == math.inf

    def test_modulo_of_infinity_is_nan(self, run, global_value):
        assert math.isnan(global_value(run("num r = (10 ^ 400) % 3"), "r"))
        assert math.isnan(global_value(run("num r = (10 ^ 308 * 10) % 3"), "r"))

    def test_modulo_by_infinity(self, run, global_value):
        assert global_value(run("num r = 5 % (10 ^ 400)"), "r") == 5.0

    def test_string_arithmetic_rejected(self, run):
        with pytest.raises(TypeMismatchError):
            run('num r = "a" + 1')

    def test_underscored_number_string_rejected(self, run):
        with pytest.raises(TypeMismatchError, match="Cannot convert string '1_000'"):
            run('num r = "1_000" + 0')

    def test_division_by_zero(self, run):
        with pytest.raises(DivisionByZeroError) as exc_info:
            run("num a = 1\nnum r = a / 0")
        assert exc_info.value.location.line == 2

    def test_modulo_by_zero(self, run):
        with pytest.raises(DivisionByZeroError):
            run("num r = 5 % 0")

    def test_comparisons(self, run, global_value):
        interp = run("text a = 1 < 2\ntext b = 2 <= 1\ntext c = 3 != 3")
        assert global_value(interp, "a") == "true"
        assert global_value(interp, "b") == "false"
        assert global_value(interp, "c") == "false"

    def test_cross_variant_equality_is_false(self, run, global_value):
        interp = run('text a = 1 == true\ntext b = "1" == 1')
        assert global_value(interp, "a") == "false"
        assert global_value(interp, "b") == "false"

    def test_short_circuit(self, run, global_value):
        interp = run("text a = false and undefined_fn()\ntext b = true or undefined_fn()")
        assert global_value(interp, "a") == "false"
        assert global_value(interp, "b") == "true"

    def test_not(self, run, global_value):
        assert global_value(run('text a = not ""'), "a") == "true"

    def test_ternary(self, run, global_value):
        interp = run('text t = 0 ? "yes" : "no"')
        assert global_value(interp, "t") == "no"

    def test_undefined_function(self, run):
        with pytest.raises(UndefinedFunctionError, match="'nope' is not a known function"):
            run("nope(1)")


class TestArrays:
    """Tests for array literals and indexing."""

    def test_number_array_is_one_row_frame(self, run, global_value, make_frame):
        assert global_value(run("frame r = [1, 0, 2]"), "r") == make_frame("#.#")

    def test_empty_array_is_frames(self, run, global_value):
        assert global_value(run("frames e = []"), "e") == ()

    def test_frame_array_is_frames(self, run, global_value):
        interp = run("frames fs = [create_frame(1, 1), create_frame(2, 2)]")
        assert len(global_value(interp, "fs")) == 2

    def test_mixed_array(self, run):
        with pytest.raises(TypeMismatchError, match="Mixed array types"):
            run('frame f = [[1], "x"]')

    def test_frame_mixed_with_number_rejected(self, run):
        with pytest.raises(TypeMismatchError, match="Mixed array types"):
            run("frame f = [create_frame(2, 2), 1]")

    def test_multi_row_frames_do_not_stack(self, run):
        with pytest.raises(TypeMismatchError, match="Cannot assign Frames to frame"):
            run("frame f = [create_frame(2, 2)]")

    def test_ragged_rows_rejected(self, run):
        with pytest.raises(GizmoRuntimeError):
            run("frame f = [[1, 0], [1]]")

    def test_index_frame_row(self, run, global_value, make_frame):
        interp = run("frame f = [[1, 0], [0, 1]]\nframe r = f[1]")
        assert global_value(interp, "r") == make_frame(".#")

    def test_index_frames(self, run, global_value):
        interp = run("frames fs = [create_frame(1, 1), create_frame(3, 1)]\nnum w = width(fs[1])")
        assert global_value(interp, "w") == 3.0

    def test_index_truncates(self, run, global_value):
        interp = run("frames fs = [create_frame(1, 1), create_frame(3, 1)]\nnum w = width(fs[1.7])")
        assert global_value(interp, "w") == 3.0

    @pytest.mark.parametrize("index", ["2", "0 - 1"])
    def test_index_out_of_range(self, run, index):
        with pytest.raises(IndexOutOfBoundsError):
            run(f"frames fs = [create_frame(1, 1), create_frame(1, 1)]\nframe f = fs[{index}]")

    def test_index_non_sequence(self, run):
        with pytest.raises(TypeMismatchError, match="Invalid index operation on Number"):
            run("num x = 1\nnum y = x[0]")


class TestControlFlow:
    """Tests for if, repeat and return."""

    def test_if_elsif_else(self, run, global_value):
        source = """
num x = 5
text size = "?"
if x < 3 then
    size = "small"
elsif x < 10 then
    size = "medium"
else
    size = "large"
end
"""
        assert global_value(run(source), "size") == "medium"

    def test_repeat(self, run, global_value):
        interp = run("num s = 0\nrepeat 4 times do\n  s = s + 2\nend")
        assert global_value(interp, "s") == 8.0

    def test_repeat_truncates_and_skips_negative(self, run, global_value):
        interp = run("num s = 0\nrepeat 2.9 times do s = s + 1 end\nrepeat 0 - 3 times do s = 100 end")
        assert global_value(interp, "s") == 2.0

    def test_top_level_return_stops_program(self, run, global_value):
        interp = run("num a = 1\nreturn 0\nnum b = 2")
        assert global_value(interp, "a") == 1.0
        assert not interp.environment.contains(0, "b")

    def test_failure_keeps_earlier_state(self, interpreter_factory, global_value):
        interp = interpreter_factory()
        with pytest.raises(DivisionByZeroError):
            interp.run_source("num a = 1\nnum b = a / 0\nnum c = 3")
        assert global_value(interp, "a") == 1.0
        assert not interp.environment.contains(0, "c")

    def test_runtime_error_has_source_line(self, interpreter_factory):
        interp = interpreter_factory()
        with pytest.raises(UndefinedVariableError) as exc_info:
            interp.run_source("num a = 1\nnum b = missing + 1")
        assert exc_info.value.source_line == "num b = missing + 1"
        assert "^" in str(exc_info.value)


class TestGenerators:
    """Tests for pixel generators."""

    def test_diagonal_pattern(self, run, global_value):
        interp = run("frame d = pattern(4, 4) { return row == col }")
        frame = global_value(interp, "d")
        assert (frame.width, frame.height) == (4, 4)
        for r in range(4):
            for c in range(4):
                assert frame.get_pixel(r, c) == (r == c)

    def test_trailing_expression_sets_pixel(self, run, global_value):
        frame = global_value(run("frame f = pattern(3, 1) { col > 0 }"), "f")
        assert frame.rows == [[False, True, True]]

    def test_body_without_value_is_off(self, run, global_value):
        frame = global_value(run("frame f = pattern(2, 2) { num x = 1 }"), "f")
        assert frame.count_on() == 0

    def test_width_and_height_order(self, run, global_value):
        frame = global_value(run("frame f = pattern(5, 2) { true }"), "f")
        assert (frame.width, frame.height) == (5, 2)
        assert frame.count_on() == 10

    def test_zero_size(self, run, global_value):
        frame = global_value(run("frame f = pattern(0, 3) { true }"), "f")
        assert (frame.width, frame.height) == (0, 3)

    def test_negative_size(self, run):
        with pytest.raises(GizmoRuntimeError, match="non-negative"):
            run("frame f = pattern(0 - 1, 2) { true }")

    def test_unallocatable_size(self, run):
        with pytest.raises(InvalidFrameError, match="Cannot allocate"):
            run("frame f = pattern(10 ^ 300, 10 ^ 300) { true }")

    def test_pixel_scope_is_isolated(self, run, global_value):
        source = """
num count = 0
frame f = pattern(3, 3) {
    count = count + 1
    return count == 1
}
"""
        interp = run(source)
        assert global_value(interp, "count") == 0.0
        # Every pixel starts from the outer value, so every pixel sees 1
        assert global_value(interp, "f").count_on() == 9

    def test_pixel_locals_do_not_leak(self, run):
        interp = run("frame f = pattern(2, 2) {\n  num inner = row\n  true\n}")
        assert not interp.environment.contains(0, "inner")
        assert not interp.environment.contains(0, "row")
        assert interp.environment.depth == 1

    def test_generator_reads_outer_variables(self, run, global_value):
        interp = run("num size = 3\nframe f = pattern(size, size) { return col == size - 1 }")
        assert global_value(interp, "f").rows == [[False, False, True]] * 3

    def test_animate_binds_clock(self, run, global_value):
        interp = run("frame f = animate(2, 1) using t { t == 1234 }", start_time_ms=1234.0)
        assert global_value(interp, "f").count_on() == 2

    def test_evolve_blinker(self, run, global_value, make_frame):
        source = """
frame board = [[0, 0, 0], [1, 1, 1], [0, 0, 0]]
frame board2 = evolve(3, 3) from board {
    num n = count_neighbors(board, row, col)
    if get_pixel(board, row, col) == 1 then
        return n == 2 or n == 3
    end
    return n == 3
}
"""
        interp = run(source)
        assert global_value(interp, "board2") == make_frame(".#.", ".#.", ".#.")

    def test_evolve_requires_previous_frame(self, run):
        with pytest.raises(GizmoRuntimeError, match="requires previous frame"):
            run("frame f = evolve(2, 2) from missing { true }")

    def test_evolve_rejects_non_frame(self, run):
        with pytest.raises(GizmoRuntimeError, match="requires previous frame"):
            run("num prev = 1\nframe f = evolve(2, 2) from prev { true }")

    def test_random_is_deterministic_with_seed(self, run, global_value):
        source = "frame f = pattern(8, 8) { random() < 0.5 }"
        first = global_value(run(source, seed=7), "f")
        second = global_value(run(source, seed=7), "f")
        assert first == second

    def test_seed_restarts_the_shared_generator(self, interpreter_factory, global_value):
        source = "frame f = pattern(8, 8) { random() < 0.5 }"
        seeded = interpreter_factory(seed=7)
        seeded.run_source(source)
        first = interpreter_factory(seed=None)
        interpreter_factory(seed=7)
        first.run_source(source)
        # The later seed applies to every interpreter in the process
        assert global_value(first, "f") == global_value(seeded, "f")


class TestAnimation:
    """Tests for play, loop, stop, add_frame and the host surface."""

    def test_play_sets_frames(self, run):
        interp = run("frame d = pattern(2, 2) { row == col }\nplay(d)")
        assert len(interp.get_animation_frames()) == 1
        assert interp.get_current_frame() == interp.get_animation_frames()[0]
        assert interp.get_frame_duration_ms() == 100

    def test_default_duration_from_config(self, run):
        interp = run("play(create_frame(1, 1))", default_frame_duration_ms=40)
        assert interp.get_frame_duration_ms() == 40

    @pytest.mark.parametrize("ms,expected", [(0, 1), (50000, 10000), (250, 250)])
    def test_speed_is_clamped(self, run, ms, expected):
        interp = run(f"play_speed(create_frame(1, 1), {ms})")
        assert interp.get_frame_duration_ms() == expected

    def test_loop_advances_and_wraps(self, run):
        interp = run("frames fs = [create_frame(1, 1), create_frame(2, 1), create_frame(3, 1)]\nloop(fs)")
        widths = []
        for _ in range(4):
            frame = interp.update(100)
            widths.append(frame.width)
        assert widths == [2, 3, 1, 2]

    def test_play_holds_last_frame(self, run):
        interp = run("frames fs = [create_frame(1, 1), create_frame(2, 1)]\nplay_speed(fs, 10)")
        for _ in range(5):
            interp.update(10)
        assert interp.get_current_frame().width == 2

    def test_update_before_duration_keeps_frame(self, run):
        interp = run("frames fs = [create_frame(1, 1), create_frame(2, 1)]\nloop(fs)")
        assert interp.update(60).width == 1
        assert interp.update(40).width == 2

    def test_update_without_animation(self, run):
        assert run("num x = 1").update(100) is None

    def test_play_rejects_number(self, run):
        with pytest.raises(TypeMismatchError):
            run("play(3)")

    def test_play_arity(self, run):
        with pytest.raises(ArgumentError, match=r"play\(\) takes 1 argument"):
            run("play()")

    def test_later_play_replaces_earlier(self, run):
        interp = run("play(create_frame(1, 1))\nloop([create_frame(2, 2), create_frame(3, 3)])")
        assert len(interp.get_animation_frames()) == 2
        assert interp.animation_state.loop

    def test_stop(self, run):
        interp = run("loop([create_frame(1, 1), create_frame(2, 1)])\nstop()")
        interp.update(1000)
        assert interp.get_current_frame().width == 1
        assert not interp.animation_state.playing

    def test_no_frames(self, run):
        interp = run("num x = 1")
        assert interp.get_current_frame() is None
        assert interp.get_animation_frames() == []

    def test_add_frame_appends(self, run, global_value):
        interp = run("frames anim = []\nadd_frame(anim, create_frame(1, 1))\nadd_frame(anim, create_frame(2, 1))")
        assert len(global_value(interp, "anim")) == 2

    def test_add_frame_creates_variable(self, run, global_value):
        interp = run("add_frame(fresh, create_frame(1, 1))")
        assert len(global_value(interp, "fresh")) == 1

    def test_add_frame_does_not_alias(self, run, global_value):
        interp = run("frames a = []\nframes b = a\nadd_frame(a, create_frame(1, 1))")
        assert global_value(interp, "b") == ()

    def test_add_frame_wrong_target_type(self, run):
        with pytest.raises(TypeMismatchError):
            run("num n = 1\nadd_frame(n, create_frame(1, 1))")

    def test_add_frame_needs_name(self, run):
        with pytest.raises(ArgumentError, match="variable name"):
            run("add_frame([], create_frame(1, 1))")


class TestEvents:
    """Tests for when handlers."""

    def test_click_counter(self, run, global_value):
        source = """
num clicks = 0
when clicked do
    clicks = clicks + 1
end
"""
        interp = run(source)
        assert global_value(interp, "clicks") == 0.0
        assert interp.handle_click_event()
        assert interp.handle_click_event()
        assert global_value(interp, "clicks") == 2.0

    def test_click_without_handler(self, run):
        assert not run("num x = 1").handle_click_event()

    def test_idle_exact_threshold(self, run, global_value):
        interp = run("num hits = 0\nwhen idle > 5000 do\n  hits = hits + 1\nend")
        assert not interp.handle_idle_event(4999)
        assert interp.handle_idle_event(5000)
        assert global_value(interp, "hits") == 1.0

    def test_handler_replaced(self, run, global_value):
        source = "text last = \"\"\nwhen clicked do last = \"a\" end\nwhen clicked do last = \"b\" end"
        interp = run(source)
        interp.handle_click_event()
        assert global_value(interp, "last") == "b"

    def test_handler_can_restart_animation(self, run):
        source = """
frames fs = [create_frame(1, 1), create_frame(2, 1)]
loop(fs)
when clicked do
    play(create_frame(5, 5))
end
"""
        interp = run(source)
        interp.handle_click_event()
        assert interp.get_current_frame().width == 5

    def test_handler_return_ends_handler(self, run, global_value):
        interp = run("num x = 0\nwhen clicked do\n  return 1\n  x = 9\nend")
        interp.handle_click_event()
        assert global_value(interp, "x") == 0.0

    def test_handler_error_propagates(self, run):
        interp = run("when clicked do\n  num r = 1 / 0\nend")
        with pytest.raises(DivisionByZeroError):
            interp.handle_click_event()


class TestRunHelper:
    """Tests for the module level run helper."""

    def test_run_returns_interpreter(self):
        interp = run_script(
            "play(pattern(2, 2) { true })",
            config=InterpreterConfig(start_time_ms=0.0),
        )
        assert isinstance(interp, Interpreter)
        assert isinstance(interp.get_current_frame(), Frame)


class TestTimeLimit:
    """Tests for the configured wall-clock budget."""

    def test_runaway_repeat(self, run):
        with pytest.raises(ExecutionTimeoutError, match="within 50 ms") as exc_info:
            run("num x = 0\nrepeat 10 ^ 12 times do\nend", time_limit_ms=50)
        assert exc_info.value.location.line == 2

    def test_large_generator(self, run):
        with pytest.raises(ExecutionTimeoutError):
            run("frame f = pattern(10 ^ 4, 10 ^ 4) { true }", time_limit_ms=50)

    def test_handler_gets_a_fresh_budget(self, run):
        interp = run(
            "when clicked do\n  repeat 10 ^ 12 times do\n  end\nend", time_limit_ms=50
        )
        with pytest.raises(ExecutionTimeoutError):
            interp.handle_click_event()

    def test_no_limit_by_default(self, run, global_value):
        interp = run("num n = 0\nrepeat 1000 times do\n  n = n + 1\nend")
        assert global_value(interp, "n") == 1000.0
