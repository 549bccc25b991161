"""Tests for symbol collection."""

from gizmo.lsp.symbols import SymbolKind, collect_symbols

SOURCE = """num speed = 100
frames anim = []
frame glider = evolve(8, 8) from glider {
    num n = count_neighbors(glider, row, col)
    return n == 3
}
when clicked do
    add_frame(anim, animate(4, 4) using t { true })
end
when idle > 3000 do
    loop_speed(anim, speed)
end
"""


class TestSymbolCollector:
    """Test suite for SymbolCollector."""

    def test_declarations(self, parse) -> None:
        table = collect_symbols(parse(SOURCE))
        variables = {s.name: s for s in table.variables() if s.kind is SymbolKind.VARIABLE}
        assert set(variables) == {"speed", "anim", "glider", "n"}
        assert variables["speed"].type_info == "num"
        assert variables["anim"].line == 1
        assert variables["anim"].character == 0

    def test_generator_bindings(self, parse) -> None:
        table = collect_symbols(parse(SOURCE))
        bindings = {s.name for s in table.symbols if s.kind is SymbolKind.BINDING}
        assert bindings == {"row", "col", "glider", "t"}

    def test_variables_are_unique(self, parse) -> None:
        names = [s.name for s in collect_symbols(parse(SOURCE)).variables()]
        assert len(names) == len(set(names))

    def test_handlers(self, parse) -> None:
        handlers = collect_symbols(parse(SOURCE)).handlers()
        assert [h.name for h in handlers] == ["when clicked", "when idle"]
        assert handlers[1].line == 9

    def test_calls(self, parse) -> None:
        table = collect_symbols(parse(SOURCE))
        assert table.calls == {"count_neighbors", "add_frame", "loop_speed"}
