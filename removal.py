import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Set

import numpy as np

from go_utils import EMPTY
from stone_groups import ConnectedGroup, GroupGraph


logger = logging.getLogger(__name__)

PointListener = Callable[[int, int, int], None]


class RemovalPropagation:
    """
    Dead-stone marking over a GroupGraph.

    `removal` is the [y, x] removal map shared with the owner; it always
    equals the union of the removed flags of the groups covering each point.
    """

    def __init__(self, graph: GroupGraph, removal: np.ndarray,
                 on_point_change: Optional[PointListener] = None):
        self.graph = graph
        self.removal = removal
        self.on_point_change = on_point_change

    def _notify(self, x: int, y: int, removed: int) -> None:
        if self.on_point_change is None:
            return
        try:
            self.on_point_change(x, y, removed)
        except Exception:
            logger.exception("removal listener failed for point (%d, %d)", x, y)

    def set_group_removed(self, group: ConnectedGroup, removed: bool) -> None:
        group.removed = bool(removed)
        flag = 1 if removed else 0
        for x, y in group.points:
            self.removal[y, x] = flag
            self._notify(x, y, flag)

    def set_removed(self, x: int, y: int, removed: bool) -> Optional[ConnectedGroup]:
        """Set the removed flag of the one group covering (x, y), nothing else."""
        group = self.graph.group_at(x, y)
        if group is None:
            return None
        self.set_group_removed(group, removed)
        return group

    def toggle_meta_group_removal(self, x: int, y: int) -> List[ConnectedGroup]:
        """
        Flip the group at (x, y) together with every same-coloured group
        reachable from it by hopping through empty regions. Clicking on empty
        space flips only that space group. Returns the groups that changed.
        """
        group = self.graph.group_at(x, y)
        if group is None:
            return []
        removing = not bool(self.removal[y, x])
        self.set_group_removed(group, removing)
        changed = [group]
        if group.color == EMPTY:
            return changed

        visited: Set[int] = {group.id}
        frontier: Deque[ConnectedGroup] = deque()
        for space in self.graph.space_neighbors(group):
            visited.add(space.id)
            frontier.append(space)

        while frontier:
            space = frontier.popleft()
            for other in self.graph.enemy_neighbors(space):
                if other.id in visited:
                    continue
                visited.add(other.id)
                if other.color != group.color:
                    continue
                self.set_group_removed(other, removing)
                changed.append(other)
                for next_space in self.graph.space_neighbors(other):
                    if next_space.id not in visited:
                        visited.add(next_space.id)
                        frontier.append(next_space)
        return changed

    def clear_removed(self) -> None:
        for group in self.graph:
            if group.removed or any(self.removal[y, x] for x, y in group.points):
                self.set_group_removed(group, False)
