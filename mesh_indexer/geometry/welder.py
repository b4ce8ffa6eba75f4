"""Per-submesh vertex welding.

Maps each distinct VertexKey to a dense local index, assigned in
first-seen order. Lookup uses a dict keyed by the frozen VertexKey
(exact structural equality); the insertion-ordered ``vertices`` list is
what the flattener reads, so the dict's own ordering never leaks into
the output.
"""

from typing import Dict, List

from .vertex_key import VertexKey


class VertexWelder:
    """Assigns sequential indices to unique vertices of one submesh."""

    def __init__(self):
        self._known: Dict[VertexKey, int] = {}
        self.vertices: List[VertexKey] = []

    def weld(self, key: VertexKey) -> int:
        """Return the index for ``key``, inserting it if unseen.

        A new key receives ``len(self.vertices)`` at the time of
        insertion. Existing entries are never modified.
        """
        index = self._known.get(key)
        if index is None:
            index = len(self.vertices)
            self._known[key] = index
            self.vertices.append(key)
        return index

    def __len__(self):
        return len(self.vertices)

    def __contains__(self, key):
        return key in self._known
