"""
Partition a board into connected groups and wire up their adjacency.

Every point of the board belongs to exactly one ConnectedGroup: a maximal
4-connected region of black stones, white stones or empty space. Groups live
in an arena (`GroupGraph.groups`, indexed by id) and refer to each other by
id, so the graph holds no reference cycles.
"""

from typing import Callable, Iterator, List, Optional, Set, Tuple

import numpy as np

import rules
from go_utils import EMPTY


class ConnectedGroup:
    def __init__(self, group_id: int, color: int):
        self.id: int = int(group_id)
        self.color: int = int(color)
        self.points: List[Tuple[int, int]] = []
        self.neighbors: Set[int] = set()
        # neighbours split by colour of the neighbour (space vs stones)
        self.neighboring_space: Set[int] = set()
        self.neighboring_enemy: Set[int] = set()
        self.removed: bool = False
        self.is_territory: bool = False
        self.territory_color: int = EMPTY
        self.is_territory_in_seki: bool = False

    @property
    def is_space(self) -> bool:
        return self.color == EMPTY

    def add(self, x: int, y: int) -> None:
        self.points.append((int(x), int(y)))

    def add_neighbor(self, other: "ConnectedGroup") -> None:
        if other.id == self.id or other.id in self.neighbors:
            return
        self.neighbors.add(other.id)
        if other.color == EMPTY:
            self.neighboring_space.add(other.id)
        else:
            self.neighboring_enemy.add(other.id)

    def __len__(self) -> int:
        return len(self.points)

    def __repr__(self) -> str:
        return (f"ConnectedGroup(id={self.id}, color={self.color}, size={len(self.points)}, "
                f"removed={self.removed})")


SekiRule = Callable[["GroupGraph", ConnectedGroup], bool]


def default_territory_in_seki(graph: "GroupGraph", group: ConnectedGroup) -> bool:
    """
    A territory region is in seki when a stone group walling it in also
    touches neutral space, i.e. shares a liberty with the opponent.

    Meaningful once dame have been filled: a wall that still touches an
    unfilled dame point flags the territory behind it as seki, so under
    rules that do not score territory in seki (japanese, korean) `score()`
    counts none of it until the dame is filled or another rule is passed in.
    """
    for wall_id in group.neighboring_enemy:
        wall = graph.groups[wall_id]
        for space_id in wall.neighboring_space:
            if not graph.groups[space_id].is_territory:
                return True
    return False


class GroupGraph:
    def __init__(self, board: np.ndarray, seki_rule: Optional[SekiRule] = None):
        board = np.asarray(board)
        self.height, self.width = int(board.shape[0]), int(board.shape[1])
        self.group_ids = np.full((self.height, self.width), -1, dtype=np.int32)
        self.groups: List[ConnectedGroup] = []
        self._discover(board)
        self._link()
        self._classify_territory(seki_rule or default_territory_in_seki)

    def _discover(self, board: np.ndarray) -> None:
        # Row-major scan: ids follow the first point of each group in (y, x) order
        for y in range(self.height):
            for x in range(self.width):
                if self.group_ids[y, x] >= 0:
                    continue
                group = ConnectedGroup(len(self.groups), int(board[y, x]))
                for px, py in rules.flood_fill(board, x, y):
                    self.group_ids[py, px] = group.id
                    group.add(px, py)
                self.groups.append(group)

    def _link(self) -> None:
        for group in self.groups:
            for x, y in group.points:
                for nx, ny in rules.neighbors(self.width, self.height, x, y):
                    other_id = int(self.group_ids[ny, nx])
                    if other_id != group.id and other_id not in group.neighbors:
                        other = self.groups[other_id]
                        group.add_neighbor(other)
                        other.add_neighbor(group)

    def _classify_territory(self, seki_rule: SekiRule) -> None:
        seen: Set[int] = set()
        for group in self.groups:
            if not group.is_space or group.id in seen:
                continue
            # Space regions joined through space links share one verdict
            region: List[ConnectedGroup] = []
            border_colors: Set[int] = set()
            stack = [group.id]
            seen.add(group.id)
            while stack:
                cur = self.groups[stack.pop()]
                region.append(cur)
                for nid in cur.neighboring_enemy:
                    border_colors.add(self.groups[nid].color)
                for nid in cur.neighboring_space:
                    if nid not in seen:
                        seen.add(nid)
                        stack.append(nid)
            if len(border_colors) == 1:
                color = border_colors.pop()
                for g in region:
                    g.is_territory = True
                    g.territory_color = color
        for group in self.groups:
            if group.is_territory:
                group.is_territory_in_seki = bool(seki_rule(self, group))

    # -------------------- lookup & iteration --------------------

    def group_at(self, x: int, y: int) -> Optional[ConnectedGroup]:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        return self.groups[int(self.group_ids[y, x])]

    def space_neighbors(self, group: ConnectedGroup) -> Iterator[ConnectedGroup]:
        for gid in sorted(group.neighboring_space):
            yield self.groups[gid]

    def enemy_neighbors(self, group: ConnectedGroup) -> Iterator[ConnectedGroup]:
        for gid in sorted(group.neighboring_enemy):
            yield self.groups[gid]

    def foreach_group(self, fn: Callable[[ConnectedGroup], None]) -> None:
        for group in self.groups:
            fn(group)

    def __iter__(self) -> Iterator[ConnectedGroup]:
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)
