"""
Transition Graph Analytics Engine.

Answers probability queries over the multi-level transition DAG:

- Cumulative transition probability between any two nodes, summed over all
  directed paths.
- Most probable path between two nodes.

Both queries run a single pass over a topological order. Probabilities are
accumulated in the log domain: they compound multiplicatively over up to 24
levels and underflow in linear space long before reaching the bottom of the
hierarchy.
"""

import logging
import math
from collections import deque
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..core.exceptions import (
    ConsistencyIssue,
    GraphConsistencyWarning,
    GraphCycleError,
    HierarchyIndexError,
)
from ..core.graph import TransitionGraph
from ..core.index import HierarchyIndex

logger = logging.getLogger(__name__)

NEG_INF = -math.inf


def logsumexp(a: float, b: float) -> float:
    """ln(exp(a) + exp(b)), exact when either operand is -inf."""
    if a == NEG_INF:
        return b
    if b == NEG_INF:
        return a
    return max(a, b) + math.log1p(math.exp(-abs(a - b)))


# --- API Models ---
class PathResult(BaseModel):
    path: List[int]
    total_cost: float
    total_probability: float = Field(ge=0.0, le=1.0)

    @property
    def hops(self) -> int:
        return len(self.path) - 1


class TransitionProbability(BaseModel):
    target: int
    target_local_idx: int
    probability: float
    confidence_interval: Optional[Tuple[float, float]] = None


class TransitionAnalyzer:
    """
    Probability and path queries over one dataset.

    The adjacency list and topological order are built once, at
    construction; a new dataset needs a new analyzer.

    Self-probability convention: `probability(x, x)` is 1.0 (the empty path),
    and `most_probable_path(x, x)` is the single-node path with cost 0.
    """

    def __init__(self, graph: TransitionGraph, index: HierarchyIndex, strict: bool = False):
        self.graph = graph
        self.index = index
        self.strict = strict
        self.issues: List[ConsistencyIssue] = []

        # source -> [(target, log_weight)]
        self._adjacency: Dict[int, List[Tuple[int, float]]] = {}
        # source -> [(target, cost)]
        self._costs: Dict[int, List[Tuple[int, float]]] = {}
        self._order: List[int] = []
        self._position: Dict[int, int] = {}

        self._build()

    # =========================================================================
    # Build phase
    # =========================================================================

    def _build(self) -> None:
        node_ids = self.graph.node_ids()
        for node_id in node_ids:
            edges = self.graph.edges_from(node_id)
            self._adjacency[node_id] = [(e.target, e.log_weight) for e in edges]
            self._costs[node_id] = [(e.target, e.effective_cost) for e in edges]

        self._order = self._topological_sort(node_ids)
        self._position = {node_id: pos for pos, node_id in enumerate(self._order)}

        if len(self._order) < len(node_ids):
            if self.strict:
                raise GraphCycleError(len(self._order), len(node_ids))
            issue = GraphConsistencyWarning(
                f"Topological sort ordered only {len(self._order)} of {len(node_ids)} nodes; "
                f"the edge set is not acyclic and queries touching the cycle are unreliable",
                context={"ordered": len(self._order), "total": len(node_ids)},
            )
            self.issues.append(issue)
            logger.warning(str(issue))

        logger.debug(
            f"Analyzer built: {len(node_ids)} nodes, "
            f"{sum(len(v) for v in self._adjacency.values())} edges"
        )

    def _topological_sort(self, node_ids: List[int]) -> List[int]:
        """Kahn's algorithm; the queue is seeded in ascending id order."""
        in_degree: Dict[int, int] = {node_id: 0 for node_id in node_ids}
        for targets in self._adjacency.values():
            for target, _ in targets:
                in_degree[target] += 1

        queue = deque(node_id for node_id in node_ids if in_degree[node_id] == 0)
        order: List[int] = []

        while queue:
            current = queue.popleft()
            order.append(current)
            for target, _ in self._adjacency.get(current, []):
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        return order

    @property
    def topological_order(self) -> List[int]:
        return list(self._order)

    @property
    def is_acyclic(self) -> bool:
        return len(self._order) == self.graph.node_count

    def position(self, node_id: int) -> Optional[int]:
        return self._position.get(node_id)

    def _is_known(self, node_id: int) -> bool:
        return self.index.contains(node_id) and self.graph.has_node(node_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def probability(self, source_id: int, target_id: int) -> Optional[float]:
        """
        Total probability of reaching `target_id` from `source_id` over all
        directed paths.

        Returns None for ids outside the dataset and 0.0 when the target is
        unreachable.
        """
        if not self._is_known(source_id) or not self._is_known(target_id):
            logger.debug(f"probability({source_id}, {target_id}): id out of range")
            return None
        if source_id == target_id:
            return 1.0

        logp: Dict[int, float] = {source_id: 0.0}
        for node_id in self._order:
            current = logp.get(node_id, NEG_INF)
            if current == NEG_INF:
                continue
            if node_id == target_id:
                # Target is final for this query; nothing downstream can feed back.
                break
            for target, log_weight in self._adjacency[node_id]:
                logp[target] = logsumexp(logp.get(target, NEG_INF), current + log_weight)

        result = logp.get(target_id, NEG_INF)
        if math.isfinite(result):
            return math.exp(result)
        return 0.0

    def probability_between_levels(
        self, level_n: int, local_i: int, level_m: int, local_j: int
    ) -> Optional[float]:
        """Probability from node i of level n to node j of level m."""
        try:
            source_id = self.index.global_index_from_level(level_n, local_i)
            target_id = self.index.global_index_from_level(level_m, local_j)
        except HierarchyIndexError as e:
            logger.debug(f"probability_between_levels: {e}")
            return None
        return self.probability(source_id, target_id)

    def level_probability_vector(self, source_id: int, level: int) -> Dict[int, float]:
        """Probability of reaching every node of `level` from `source_id`."""
        if not self._is_known(source_id):
            return {}
        try:
            targets = self.index.global_indices_for_level(level)
        except HierarchyIndexError:
            return {}

        logp: Dict[int, float] = {source_id: 0.0}
        for node_id in self._order:
            current = logp.get(node_id, NEG_INF)
            if current == NEG_INF:
                continue
            for target, log_weight in self._adjacency[node_id]:
                logp[target] = logsumexp(logp.get(target, NEG_INF), current + log_weight)

        vector = {}
        for target in targets:
            if not self.graph.has_node(target):
                continue
            value = logp.get(target, NEG_INF)
            vector[target] = math.exp(value) if math.isfinite(value) else 0.0
        return vector

    def most_probable_path(self, source_id: int, target_id: int) -> Optional[PathResult]:
        """
        Highest-probability path from `source_id` to `target_id`.

        Shortest path over cost = -ln(weight). The graph is acyclic, so one
        relaxation pass in topological order is optimal.
        """
        if not self._is_known(source_id) or not self._is_known(target_id):
            logger.debug(f"most_probable_path({source_id}, {target_id}): id out of range")
            return None
        if source_id == target_id:
            return PathResult(path=[source_id], total_cost=0.0, total_probability=1.0)

        dist: Dict[int, float] = {source_id: 0.0}
        predecessor: Dict[int, int] = {}

        for node_id in self._order:
            current = dist.get(node_id, math.inf)
            if not math.isfinite(current):
                continue
            for target, cost in self._costs[node_id]:
                if not math.isfinite(cost):
                    continue
                candidate = current + cost
                if candidate < dist.get(target, math.inf):
                    dist[target] = candidate
                    predecessor[target] = node_id

        total_cost = dist.get(target_id, math.inf)
        if not math.isfinite(total_cost):
            return None

        path = [target_id]
        seen = {target_id}
        while path[-1] != source_id:
            previous = predecessor.get(path[-1])
            if previous is None or previous in seen:
                logger.warning(
                    f"Predecessor chain from {target_id} does not reach {source_id}; discarding path"
                )
                return None
            path.append(previous)
            seen.add(previous)
        path.reverse()

        return PathResult(
            path=path,
            total_cost=total_cost,
            total_probability=min(1.0, math.exp(-total_cost)),
        )

    # =========================================================================
    # Per-node summaries
    # =========================================================================

    def transition_probabilities(self, source_id: int) -> List[TransitionProbability]:
        """Direct transitions out of a node, most probable first."""
        results = []
        for edge in self.graph.edges_from(source_id):
            target = self.graph.get_node(edge.target)
            if target is None:
                continue
            results.append(TransitionProbability(
                target=edge.target,
                target_local_idx=target.local_idx,
                probability=edge.weight,
                confidence_interval=edge.ci,
            ))
        return sorted(results, key=lambda t: -t.probability)

    def climatological_probability(self, global_id: int) -> float:
        """Share of all observed dates that fall in a level-0 class."""
        observed = self.graph.nodes_at_level(0)
        total = sum(node.date_count for node in observed)
        if total == 0:
            return 0.0
        node = self.graph.get_node(global_id)
        if node is None or node.level != 0:
            return 0.0
        return node.date_count / total
