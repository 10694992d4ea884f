"""
Threshold clustering over a similarity graph, shared by step and test case clustering.
"""

from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import networkx as nx

from tc_dedup.config.analysis_config import ClusterLinkage


def group_by_threshold(
    nodes: Sequence[Hashable],
    scored_edges: Sequence[Tuple[Hashable, Hashable, float]],
    threshold: float,
    linkage: ClusterLinkage = ClusterLinkage.SINGLE,
    score_lookup: Optional[Callable[[Hashable, Hashable], float]] = None
) -> List[List[Hashable]]:
    """
    Group nodes whose pairwise score meets a threshold.

    Single linkage returns connected components, so X~Y and Y~Z put X and Z
    together even when score(X, Z) is below the threshold. Complete linkage
    merges two groups only when every cross pair meets the threshold.

    Args:
        nodes: All nodes, in a stable order (singletons are returned too)
        scored_edges: (node1, node2, score) tuples
        threshold: Minimum score for an edge to count
        linkage: Clustering policy
        score_lookup: Pair score function, required for complete linkage

    Returns:
        Groups with members in node order, ordered by their first member
    """
    order = {node: position for position, node in enumerate(nodes)}
    qualifying = [(a, b, score) for a, b, score in scored_edges if score >= threshold and a != b]

    if linkage == ClusterLinkage.COMPLETE:
        if score_lookup is None:
            raise ValueError("complete linkage needs a score_lookup")
        groups = _complete_link(nodes, qualifying, threshold, score_lookup, order)
    else:
        graph = nx.Graph()
        graph.add_nodes_from(nodes)
        graph.add_edges_from((a, b) for a, b, _ in qualifying)
        groups = [list(component) for component in nx.connected_components(graph)]

    groups = [sorted(group, key=order.__getitem__) for group in groups]
    groups.sort(key=lambda group: order[group[0]])
    return groups


def _complete_link(
    nodes: Sequence[Hashable],
    qualifying: List[Tuple[Hashable, Hashable, float]],
    threshold: float,
    score_lookup: Callable[[Hashable, Hashable], float],
    order: Dict[Hashable, int]
) -> List[List[Hashable]]:
    membership = {node: position for position, node in enumerate(nodes)}
    groups: Dict[int, List[Hashable]] = {position: [node] for position, node in enumerate(nodes)}

    edges = sorted(
        qualifying,
        key=lambda edge: (-edge[2],) + tuple(sorted((order[edge[0]], order[edge[1]])))
    )
    for a, b, _ in edges:
        group_a, group_b = membership[a], membership[b]
        if group_a == group_b:
            continue
        if all(score_lookup(x, y) >= threshold for x in groups[group_a] for y in groups[group_b]):
            keep, absorb = min(group_a, group_b), max(group_a, group_b)
            for node in groups[absorb]:
                membership[node] = keep
            groups[keep].extend(groups.pop(absorb))

    return list(groups.values())
