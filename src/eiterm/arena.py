"""Ownership arena for decoded terms.

The arena is the root owner of every top-level term decoded in a session.
Each compound term owns its children, and String/Binary terms own their
content buffers, so ownership forms a strict tree. Closing the arena
releases every root, which recursively releases everything below it.

The arena counts allocations and releases so callers (and tests) can check
that teardown released every node and buffer exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from .codec.nodes import Node

logger = logging.getLogger(__name__)


@dataclass
class ArenaStats:
    """Allocation counters for an arena.

    Attributes:
        nodes_allocated: Decoded term nodes created
        nodes_released: Decoded term nodes released
        buffers_allocated: Content buffers created (String and Binary terms)
        buffers_released: Content buffers released
    """

    nodes_allocated: int = 0
    nodes_released: int = 0
    buffers_allocated: int = 0
    buffers_released: int = 0

    @property
    def live_nodes(self) -> int:
        """Nodes allocated but not yet released."""
        return self.nodes_allocated - self.nodes_released

    @property
    def live_buffers(self) -> int:
        """Buffers allocated but not yet released."""
        return self.buffers_allocated - self.buffers_released


class Arena:
    """Root owner of the terms decoded in one session.

    Example:
        >>> arena = Arena()
        >>> # ... nodes are created against the arena and adopted as roots ...
        >>> arena.close()
        >>> arena.stats.live_nodes
        0
    """

    def __init__(self) -> None:
        self._roots: List[Node] = []
        self._closed = False
        self.stats = ArenaStats()

    @property
    def roots(self) -> Tuple[Node, ...]:
        """Top-level nodes, one per parse request, in request order."""
        return tuple(self._roots)

    @property
    def closed(self) -> bool:
        """True once the arena has released its roots."""
        return self._closed

    def adopt(self, node: Node) -> None:
        """Take ownership of a top-level node.

        Args:
            node: Node created against this arena
        """
        if self._closed:
            raise RuntimeError("Cannot adopt a node into a closed arena")
        self._roots.append(node)

    def close(self) -> None:
        """Release every root node and its descendants.

        Calling close() more than once is a no-op.
        """
        if self._closed:
            return
        for root in self._roots:
            root._release()
        self._roots.clear()
        self._closed = True
        logger.debug(
            "Arena closed: %d/%d nodes and %d/%d buffers released",
            self.stats.nodes_released,
            self.stats.nodes_allocated,
            self.stats.buffers_released,
            self.stats.buffers_allocated,
        )
