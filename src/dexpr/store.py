from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Sequence

from .literal import Literal

if TYPE_CHECKING:
    from .compiler import ENode


class ElementStore:
    """Holds the elements of composite literals under integer handles.

    Filled while compiling and only read afterwards.
    """

    def __init__(self) -> None:
        self._elts: dict[int, tuple[ENode, ...]] = {}
        self._next = 0

    def add(self, nodes: Sequence[ENode]) -> int:
        handle = self._next
        self._elts[handle] = tuple(nodes)
        self._next += 1
        return handle

    def get(self, handle: int) -> tuple[ENode, ...]:
        return self._elts.get(handle, ())

    def __len__(self) -> int:
        return len(self._elts)


class ValueStore:
    """Interns string Literals so repeated values share one instance."""

    def __init__(self) -> None:
        self._values: dict[str, Literal] = {}
        self._lock = threading.Lock()

    def use(self, text: str) -> Literal:
        with self._lock:
            literal = self._values.get(text)
            if literal is None:
                literal = Literal(text)
                self._values[text] = literal
            return literal

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)
