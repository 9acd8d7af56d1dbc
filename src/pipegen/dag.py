# dag.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Mapping, Set, Tuple

from .errors import InternalConsistencyError
from .model import JobGraph


class CycleError(ValueError):
    def __init__(self, stuck: List[str]):
        super().__init__(f"Graph has a cycle. Stuck nodes: {stuck}")
        self.stuck = stuck


class MissingNodeError(ValueError):
    def __init__(self, node: str, missing: str, known: List[str]):
        super().__init__(f"'{node}' needs missing node '{missing}'. Known nodes: {known}")
        self.node = node
        self.missing = missing


def build_dag(edges: Mapping[str, Iterable[str]]) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Build adjacency + in-degree maps.

    Requires:
      - edges: node -> names of nodes that must come BEFORE it
      - every referenced node is itself a key of `edges`
    """
    names = list(edges)
    name_set = set(names)
    adj: Dict[str, Set[str]] = {n: set() for n in names}
    indeg: Dict[str, int] = {n: 0 for n in names}

    for node, needs in edges.items():
        for need in needs:
            if need not in name_set:
                raise MissingNodeError(node, need, sorted(name_set))
            # Edge need -> node (need must come before node)
            if node not in adj[need]:
                adj[need].add(node)
                indeg[node] += 1

    return adj, indeg


def topo_levels(adj: Dict[str, Set[str]], indeg: Dict[str, int]) -> List[List[str]]:
    """
    Convert DAG into topological "levels" (stages).
    Nodes within a stage are independent of each other. Node order within a
    stage follows the insertion order of `indeg`.
    """
    indeg = dict(indeg)  # copy (we mutate it)
    order = {n: i for i, n in enumerate(indeg)}
    q = deque(n for n, d in indeg.items() if d == 0)

    levels: List[List[str]] = []
    processed = 0

    while q:
        level_size = len(q)
        level: List[str] = []

        for _ in range(level_size):
            node = q.popleft()
            level.append(node)
            processed += 1

            for child in sorted(adj.get(node, set()), key=order.__getitem__):
                indeg[child] -= 1
                if indeg[child] == 0:
                    q.append(child)

        levels.append(level)

    if processed != len(indeg):
        remaining = [n for n, d in indeg.items() if d > 0]
        raise CycleError(remaining)

    return levels


def job_levels(graph: JobGraph) -> List[List[str]]:
    """
    Check the job graph invariants and return its stages.

    Duplicate ids, dangling `needs` and cycles are generator defects, so they
    surface as InternalConsistencyError rather than caller errors.
    """
    names = graph.names
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise InternalConsistencyError("DuplicateJob", "Duplicate job ids in graph", {"jobs": dupes})

    try:
        adj, indeg = build_dag({j.name: j.needs for j in graph})
        return topo_levels(adj, indeg)
    except MissingNodeError as e:
        raise InternalConsistencyError(
            "DanglingNeeds", str(e), {"job": e.node, "needs": e.missing}
        ) from e
    except CycleError as e:
        raise InternalConsistencyError("JobCycle", str(e), {"jobs": e.stuck}) from e
