"""Exact duplicate-triangle filter.

Triangles are ordered index triples. (0, 1, 2) and (1, 2, 0) describe
the same face with the same winding but are *not* duplicates here: only
a literally repeated triple is rejected. This keeps double-sided and
re-wound geometry while dropping re-submitted corner data.
"""

from typing import Set, Tuple

Triangle = Tuple[int, int, int]


class TriangleDeduplicator:
    """Remembers accepted triples for one submesh."""

    def __init__(self):
        self._seen: Set[Triangle] = set()
        self.rejected = 0

    def accept(self, indices) -> bool:
        """Record ``indices`` and return True, or False if already seen."""
        tri = tuple(indices)
        if len(tri) != 3:
            raise ValueError(f"Triangle needs 3 indices, got {len(tri)}")
        if tri in self._seen:
            self.rejected += 1
            return False
        self._seen.add(tri)
        return True

    def __len__(self):
        return len(self._seen)
