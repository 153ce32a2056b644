"""
Dependency graph of "must finish before" relations between work items.
"""
from collections import deque
from typing import Dict, Iterable, List, Mapping, Optional

import networkx as nx

from models import (
    BLOCKED_RELATIONS,
    BLOCKING_RELATIONS,
    BlockerInfo,
    DependencyNode,
    WorkItem,
)
from utils.logger import logger


class DependencyGraph:
    """
    Upstream (blockers) and downstream (dependents) sets per item id.

    The graph owns its downstream-count memo. Every mutation clears it, and
    callers that edit nodes directly must call invalidate().
    """

    def __init__(self):
        self.nodes: Dict[int, DependencyNode] = {}
        self._downstream_counts: Dict[int, int] = {}

    def __contains__(self, item_id: int) -> bool:
        return item_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, item_id: int) -> Optional[DependencyNode]:
        return self.nodes.get(item_id)

    def add_node(self, item_id: int) -> DependencyNode:
        if item_id not in self.nodes:
            self.nodes[item_id] = DependencyNode()
            self.invalidate()
        return self.nodes[item_id]

    def add_edge(self, blocker_id: int, blocked_id: int) -> None:
        """Record that blocker_id must finish before blocked_id."""
        if blocker_id == blocked_id:
            return
        self.add_node(blocker_id).downstream.add(blocked_id)
        self.add_node(blocked_id).upstream.add(blocker_id)
        self.invalidate()

    def invalidate(self) -> None:
        self._downstream_counts.clear()

    def to_networkx(self) -> nx.DiGraph:
        """Directed graph with an edge blocker -> blocked for every relation."""
        digraph = nx.DiGraph()
        for item_id, node in self.nodes.items():
            digraph.add_node(item_id)
            for downstream_id in node.downstream:
                digraph.add_edge(item_id, downstream_id)
        return digraph


def build_dependency_graph(items: Iterable[WorkItem]) -> DependencyGraph:
    """
    Build the dependency graph from relations attached to items.

    Relation feeds report each edge from both endpoints, so only records
    owned by the item being processed are used.
    """
    items = list(items)
    graph = DependencyGraph()

    for item in items:
        graph.add_node(item.id)

    for item in items:
        for rel in item.relations:
            if rel.owner_item_id != item.id:
                continue
            if rel.target_item_id == item.id:
                logger.debug(f"Dropping self relation on item {item.id}.")
                continue

            if rel.relation_type in BLOCKING_RELATIONS:
                graph.add_edge(item.id, rel.target_item_id)
            elif rel.relation_type in BLOCKED_RELATIONS:
                graph.add_edge(rel.target_item_id, item.id)
            else:
                # Non-scheduling relations still name a node the caller may look up
                graph.add_node(rel.target_item_id)

    logger.debug(f"Built dependency graph with {len(graph)} nodes.")
    return graph


def count_downstream(item_id: int, graph: DependencyGraph) -> int:
    """Count items depending on item_id directly or transitively, each once."""
    if item_id in graph._downstream_counts:
        return graph._downstream_counts[item_id]

    node = graph.get(item_id)
    if node is None:
        return 0

    visited = set()
    queue = deque(node.downstream)
    while queue:
        current = queue.popleft()
        if current in visited or current == item_id:
            continue
        visited.add(current)
        child = graph.get(current)
        if child:
            queue.extend(c for c in child.downstream if c not in visited)

    graph._downstream_counts[item_id] = len(visited)
    return len(visited)


def _neighbour_info(ids, item_map: Mapping[int, WorkItem]) -> List[BlockerInfo]:
    result = []
    for neighbour_id in sorted(ids):
        neighbour = item_map.get(neighbour_id)
        if neighbour is None:
            result.append(BlockerInfo(id=neighbour_id, hidden=True))
            continue
        if neighbour.is_closed:
            continue
        result.append(
            BlockerInfo(
                id=neighbour.id,
                subject=neighbour.subject,
                assignee=neighbour.assignee_name,
                status=neighbour.status or "Unknown",
            )
        )
    return result


def get_blockers(
    item_id: int, graph: DependencyGraph, item_map: Mapping[int, WorkItem]
) -> List[BlockerInfo]:
    """Open direct blockers of an item; unknown ids are marked hidden."""
    node = graph.get(item_id)
    if node is None:
        return []
    return _neighbour_info(node.upstream, item_map)


def get_downstream(
    item_id: int, graph: DependencyGraph, item_map: Mapping[int, WorkItem]
) -> List[BlockerInfo]:
    """Open items directly blocked by an item; unknown ids are marked hidden."""
    node = graph.get(item_id)
    if node is None:
        return []
    return _neighbour_info(node.downstream, item_map)


def blocks_external(
    item_id: int,
    graph: DependencyGraph,
    item_map: Mapping[int, WorkItem],
    self_user_id: Optional[int],
) -> bool:
    """True if an open direct dependent is assigned to someone other than self_user_id."""
    if self_user_id is None:
        return False
    node = graph.get(item_id)
    if node is None:
        return False

    for downstream_id in node.downstream:
        downstream = item_map.get(downstream_id)
        if downstream is None or downstream.is_closed:
            continue
        if downstream.assignee_id is not None and downstream.assignee_id != self_user_id:
            return True
    return False
