"""
Gizmo Environment - an arena of lexical scopes.

Scopes live in a list and are addressed by index. Each scope record holds
its bindings and the index of its parent; index 0 is the global scope.
Scopes other than the global one are pushed and popped in strict stack
order by the interpreter.

A scope may be marked *isolated*. Assignments that would have to walk
past an isolated scope to find their binding are written into that
isolated scope instead, so the enclosing binding is left untouched. The
interpreter marks generator pixel scopes this way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from gizmo.runtime.values import Value
from gizmo.utils.errors import GizmoRuntimeError, UndefinedVariableError

GLOBAL_SCOPE = 0


@dataclass(slots=True)
class Scope:
    """One record in the arena."""

    parent: Optional[int]
    bindings: dict[str, Value] = field(default_factory=dict)
    isolated: bool = False


class Environment:
    """
    Scoped name to value table.

    Usage:
        env = Environment()
        env.define(GLOBAL_SCOPE, "x", 1.0)
        child = env.push(GLOBAL_SCOPE)
        env.get(child, "x")  # 1.0
        env.pop(child)
    """

    def __init__(self) -> None:
        self._scopes: list[Scope] = [Scope(parent=None)]

    @property
    def depth(self) -> int:
        """Number of live scope records, including the global scope."""
        return len(self._scopes)

    def push(self, parent: int, isolated: bool = False) -> int:
        """Create a child scope of ``parent`` and return its index."""
        self._require(parent)
        self._scopes.append(Scope(parent=parent, isolated=isolated))
        return len(self._scopes) - 1

    def pop(self, scope: int) -> None:
        """Discard ``scope``, which must be the most recently pushed one."""
        if scope == GLOBAL_SCOPE:
            raise GizmoRuntimeError("Cannot discard the global scope")
        if scope != len(self._scopes) - 1:
            raise GizmoRuntimeError(f"Scope {scope} is not the innermost scope")
        self._scopes.pop()

    def reset(self, scope: int, bindings: dict[str, Value]) -> None:
        """Drop every binding in ``scope`` and install ``bindings``."""
        record = self._require(scope)
        record.bindings.clear()
        record.bindings.update(bindings)

    def define(self, scope: int, name: str, value: Value) -> None:
        """Bind ``name`` in ``scope`` itself, shadowing any ancestor binding."""
        self._require(scope).bindings[name] = value

    def get(self, scope: int, name: str) -> Value:
        for record in self._chain(scope):
            if name in record.bindings:
                return record.bindings[name]
        raise UndefinedVariableError(name)

    def contains(self, scope: int, name: str) -> bool:
        return any(name in record.bindings for record in self._chain(scope))

    def assign(self, scope: int, name: str, value: Value) -> None:
        """
        Rebind an existing name, searching outward from ``scope``.

        Raises:
            UndefinedVariableError: if no scope in the chain binds ``name``
        """
        barrier: Optional[Scope] = None
        for record in self._chain(scope):
            if name in record.bindings:
                (barrier or record).bindings[name] = value
                return
            if record.isolated and barrier is None:
                barrier = record
        raise UndefinedVariableError(name)

    def _chain(self, scope: int) -> Iterator[Scope]:
        index: Optional[int] = scope
        while index is not None:
            record = self._require(index)
            yield record
            index = record.parent

    def _require(self, scope: int) -> Scope:
        if not 0 <= scope < len(self._scopes):
            raise GizmoRuntimeError(f"Unknown scope {scope}")
        return self._scopes[scope]
