# glove_prep/glove/context_window.py
from __future__ import annotations
from typing import Iterator, List, NamedTuple, Optional, Tuple


class Context(NamedTuple):
    """A finalized center token with its (neighbor_id, distance) pairs."""
    center: int
    neighbors: Tuple[Tuple[int, int], ...]


class ContextWindow:
    """
    Fixed-width sliding window over a stream of token ids.

        [left buffer] center [right buffer]
        <0 ... W-1>          <0 ... W-1>
        <----------- shifting direction

    Empty slots hold None, so id 0 is an ordinary id. The window fills the
    center first, then the right buffer; only once the right buffer is full
    does a new id shift everything left. A shift finalizes the departing
    center: at that moment its left and right context are complete.
    """

    def __init__(self, width: int):
        if int(width) < 1:
            raise ValueError(f"window width must be >= 1, got {width}")
        self.width = int(width)
        self.left: List[Optional[int]] = [None] * self.width
        self.center: Optional[int] = None
        self.right: List[Optional[int]] = [None] * self.width

    def __repr__(self) -> str:
        return f"{self.left} {self.center} {self.right}"

    def neighbors(self) -> Tuple[Tuple[int, int], ...]:
        """Non-empty slots as (id, distance), left buffer then right buffer, in slot order."""
        if self.center is None:
            return ()
        out = [(t, self.width - i) for i, t in enumerate(self.left) if t is not None]
        out.extend((t, i + 1) for i, t in enumerate(self.right) if t is not None)
        return tuple(out)

    def snapshot(self) -> Optional[Context]:
        if self.center is None:
            return None
        return Context(self.center, self.neighbors())

    def slide(self, token_id: int) -> Optional[Context]:
        """Feed the next id. Returns the context of the center it pushed out, if any."""
        if token_id is None:
            raise ValueError("slide() takes a token id; use drain() to flush the window")
        if self.center is None:
            self.center = token_id
            return None
        for i in range(self.width):
            if self.right[i] is None:
                self.right[i] = token_id
                return None
        return self._shift(token_id)

    def drain(self) -> Iterator[Context]:
        """Push empties through until the center is empty, yielding each remaining center."""
        while self.center is not None:
            yield self._shift(None)

    def _shift(self, incoming: Optional[int]) -> Context:
        done = Context(self.center, self.neighbors())
        self.left = self.left[1:] + [self.center]
        self.center = self.right[0]
        self.right = self.right[1:] + [incoming]
        return done
