"""
Depth, cycle and reachability analysis without recursion.

Traversal uses an explicit stack of (node, depth, child iterator) frames and
an absolute depth counter. A node is expanded again only when it is reached
at a greater depth than before, and never beyond `max_depth + 1`, so the
work is bounded by (V + E) * (max_depth + 2) whatever the input shape.
"""

from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple


@dataclass(frozen=True)
class TraversalResult:
    roots: Tuple[str, ...]
    # start nodes used for components no root can reach (pure cycles)
    rootless_starts: Tuple[str, ...]
    rootless_nodes: Tuple[str, ...]
    max_depth: int
    deepest_node: Optional[str]
    cycle_nodes: Tuple[str, ...]
    depth_violations: Tuple[Tuple[str, int], ...]
    visited: FrozenSet[str]


def build_adjacency(
    node_ids: Iterable[str], edges: Iterable[Tuple[str, str]]
) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    """Forward and reverse adjacency over known nodes; dangling edges are skipped."""
    known = set(node_ids)
    forward: Dict[str, List[str]] = defaultdict(list)
    reverse: Dict[str, List[str]] = defaultdict(list)
    for source, target in edges:
        if source in known and target in known:
            forward[source].append(target)
            reverse[target].append(source)
    return forward, reverse


def _reachable(starts: Iterable[str], adjacency: Mapping[str, Sequence[str]]) -> Set[str]:
    seen: Set[str] = set()
    queue = deque(starts)
    seen.update(queue)
    while queue:
        node = queue.popleft()
        for child in adjacency.get(node, ()):
            if child not in seen:
                seen.add(child)
                queue.append(child)
    return seen


class _Walker:
    def __init__(self, adjacency: Mapping[str, Sequence[str]], max_depth: int):
        self.adjacency = adjacency
        self.max_depth = max_depth
        self.best: Dict[str, int] = {}
        self.visited: Set[str] = set()
        self.cycles: Dict[str, None] = {}
        self.violations: Dict[str, int] = {}
        self.deepest = 0
        self.deepest_node: Optional[str] = None

    def _reach(self, node: str, depth: int) -> None:
        self.visited.add(node)
        if depth > self.deepest or self.deepest_node is None:
            self.deepest = depth
            self.deepest_node = node

    def walk(self, start: str, track_depth: bool = True) -> None:
        """Walk from `start`; without `track_depth` only cycles are recorded."""
        if self.best.get(start, -1) >= 0:
            return
        self.best[start] = 0
        if track_depth:
            self._reach(start, 0)
        else:
            self.visited.add(start)

        stack = [(start, 0, iter(self.adjacency.get(start, ())))]
        on_path = {start}

        while stack:
            node, depth, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                on_path.discard(node)
                continue

            if child in on_path:
                self.cycles.setdefault(child)
                continue

            if not track_depth:
                # cycle-only walk: each node is expanded once
                if child in self.best:
                    continue
                self.best[child] = 0
                self.visited.add(child)
                stack.append((child, 0, iter(self.adjacency.get(child, ()))))
                on_path.add(child)
                continue

            child_depth = depth + 1
            if child_depth > self.max_depth:
                # Record and stop descending: deeper levels cannot matter.
                self.violations.setdefault(child, child_depth)
                self._reach(child, child_depth)
                continue

            if self.best.get(child, -1) >= child_depth:
                continue

            self.best[child] = child_depth
            self._reach(child, child_depth)
            stack.append((child, child_depth, iter(self.adjacency.get(child, ()))))
            on_path.add(child)


def walk_depths(
    node_ids: Sequence[str],
    adjacency: Mapping[str, Sequence[str]],
    reverse_adjacency: Mapping[str, Sequence[str]],
    max_depth: int,
) -> TraversalResult:
    """Bounded DFS from every root, then a cycle-only walk of components no root reaches.

    Depth is measured from roots only; nodes no root reaches add no depth
    violations and do not count towards `max_depth`.
    """
    ordered = list(dict.fromkeys(node_ids))
    roots = [n for n in ordered if not reverse_adjacency.get(n)]

    walker = _Walker(adjacency, max_depth)
    for root in roots:
        walker.walk(root)

    from_roots = _reachable(roots, adjacency)
    rootless_nodes = sorted(n for n in ordered if n not in from_roots)
    rootless_starts: List[str] = []
    for node in rootless_nodes:
        if node not in walker.visited:
            rootless_starts.append(node)
            walker.walk(node, track_depth=False)

    return TraversalResult(
        roots=tuple(roots),
        rootless_starts=tuple(rootless_starts),
        rootless_nodes=tuple(rootless_nodes),
        max_depth=walker.deepest,
        deepest_node=walker.deepest_node,
        cycle_nodes=tuple(walker.cycles),
        depth_violations=tuple(walker.violations.items()),
        visited=frozenset(walker.visited),
    )
