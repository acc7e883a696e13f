"""Append-only accumulator for streamed text chunks."""

from typing import Optional

from cryonexus.models.domain import SYNTHESIS_AGENT

# Key under which synthesis chunks are buffered
SYNTHESIS_KEY = SYNTHESIS_AGENT


class ChunkCoalescer:
    """Buffers chunks per target until a single consumer drains them.

    Insertion order of targets is kept, and chunks for one target are joined
    in arrival order, so draining at any granularity yields the same text.
    """

    def __init__(self):
        self._pending: dict[str, list[str]] = {}

    def append(self, target: str, chunk: str) -> None:
        if not chunk:
            return
        self._pending.setdefault(target, []).append(chunk)

    def drain(self) -> dict[str, str]:
        """Return and clear the text buffered since the last drain."""
        drained = {target: "".join(chunks) for target, chunks in self._pending.items()}
        self._pending = {}
        return drained

    def pending(self, target: Optional[str] = None) -> int:
        """Number of buffered chunks, for one target or overall."""
        if target is not None:
            return len(self._pending.get(target, ()))
        return sum(len(chunks) for chunks in self._pending.values())

    def clear(self) -> None:
        self._pending = {}

    def __bool__(self) -> bool:
        return bool(self._pending)
