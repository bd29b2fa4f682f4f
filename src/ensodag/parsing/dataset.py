"""
Transition graph dataset parser.

Reads the capacity table (`K_max.json`) and the graph dataset
(`vertical_transition_graph.json`):

    {
        "graph": {
            "nodes": [{"id": 1, "level": 0, "local_idx": 1, "dates": [...], "ev": 0.1, "lambda": [...]}, ...],
            "links": [{"source": 4, "target": 1, "weight": 0.7, "ci": [0.6, 0.8], "cost": 0.36}, ...]
        }
    }

A missing top-level structure is fatal. Individual malformed records are
skipped, and disagreements with the capacity table are recorded as
warnings, so a partially inconsistent dataset still renders.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from pydantic import ValidationError

from ..core.exceptions import (
    ConsistencyIssue,
    DatasetFormatError,
    GraphConsistencyWarning,
)
from ..core.graph import TransitionGraph
from ..core.index import HierarchyIndex
from ..core.types import EdgeType, TransitionEdge, TransitionNode

logger = logging.getLogger(__name__)


@dataclass
class DatasetParseResult:
    """
    Standardized result of parsing one dataset.

    `issues` holds every skipped record and every consistency warning.
    """

    graph: TransitionGraph
    index: HierarchyIndex
    issues: List[ConsistencyIssue] = field(default_factory=list)
    skipped_nodes: int = 0
    skipped_links: int = 0

    @property
    def is_consistent(self) -> bool:
        return not self.issues

    def summary(self) -> Dict[str, Any]:
        return {
            "nodes": self.graph.node_count,
            "links": self.graph.edge_count,
            "skipped_nodes": self.skipped_nodes,
            "skipped_links": self.skipped_links,
            "issues": len(self.issues),
            "index": self.index.summary(),
        }


def load_capacities(source: Union[str, Path, Sequence[int]]) -> List[int]:
    """Read a capacity table from a JSON file, or validate an in-memory list."""
    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise DatasetFormatError(f"Capacity table {path} is not valid JSON: {e}") from e
    elif isinstance(source, Sequence):
        data = list(source)
    else:
        data = source

    if not isinstance(data, list) or not data:
        raise DatasetFormatError("Capacity table must be a non-empty JSON array")
    if not all(isinstance(k, int) and not isinstance(k, bool) and k > 0 for k in data):
        raise DatasetFormatError("Capacity table entries must be positive integers")
    return list(data)


class DatasetParser:
    """Builds a TransitionGraph from raw dataset JSON, validated against a capacity table."""

    def __init__(self, capacities: Sequence[int]):
        self.index = HierarchyIndex(capacities)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def parse(self, data: Dict[str, Any]) -> DatasetParseResult:
        nodes, links = self._validate_structure(data)
        result = DatasetParseResult(graph=TransitionGraph(), index=self.index)

        self._process_nodes(nodes, result)
        self._process_links(links, result)
        self._check_level_counts(result)

        self._logger.debug(
            f"Parsed {result.graph.node_count} nodes and {result.graph.edge_count} links "
            f"({len(result.issues)} issues)"
        )
        return result

    def parse_file(self, path: Union[str, Path]) -> DatasetParseResult:
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise DatasetFormatError(f"Dataset {path} is not valid JSON: {e}") from e
        return self.parse(data)

    # =========================================================================
    # Structure
    # =========================================================================

    @staticmethod
    def _validate_structure(data: Any):
        if not isinstance(data, dict):
            raise DatasetFormatError("DAG data must be an object")
        graph = data.get("graph")
        if not isinstance(graph, dict):
            raise DatasetFormatError('DAG data must contain a "graph" object')
        nodes = graph.get("nodes")
        links = graph.get("links")
        if not isinstance(nodes, list):
            raise DatasetFormatError('DAG graph must contain a "nodes" array')
        if not isinstance(links, list):
            raise DatasetFormatError('DAG graph must contain a "links" array')
        if not nodes:
            raise DatasetFormatError("DAG graph must contain at least one node")
        if not links:
            raise DatasetFormatError("DAG graph must contain at least one link")
        return nodes, links

    # =========================================================================
    # Records
    # =========================================================================

    def _record_issue(self, result: DatasetParseResult, issue: ConsistencyIssue) -> None:
        result.issues.append(issue)
        self._logger.warning(str(issue))

    def _process_nodes(self, raw_nodes: List[Any], result: DatasetParseResult) -> None:
        for raw in raw_nodes:
            try:
                node = TransitionNode.model_validate(raw)
            except ValidationError as e:
                result.skipped_nodes += 1
                self._record_issue(result, ConsistencyIssue(
                    f"Invalid node record {_describe(raw)}: {e.error_count()} error(s)",
                    context={"record": raw},
                ))
                continue

            if not self.index.validate_global_index(node.id, node.level, node.local_idx):
                self._record_issue(result, GraphConsistencyWarning(
                    f"Index mismatch for node {node.id}: level {node.level}, local {node.local_idx}",
                    context={"id": node.id, "level": node.level, "local_idx": node.local_idx},
                ))

            if result.graph.has_node(node.id):
                self._record_issue(result, GraphConsistencyWarning(
                    f"Duplicate node id {node.id}; keeping the last record",
                    context={"id": node.id},
                ))
            result.graph.add_node(node)

    def _process_links(self, raw_links: List[Any], result: DatasetParseResult) -> None:
        for raw in raw_links:
            try:
                edge = TransitionEdge.model_validate(raw)
            except ValidationError as e:
                result.skipped_links += 1
                self._record_issue(result, ConsistencyIssue(
                    f"Invalid link record {_describe(raw)}: {e.error_count()} error(s)",
                    context={"record": raw},
                ))
                continue

            if not result.graph.add_edge(edge):
                result.skipped_links += 1
                self._record_issue(result, GraphConsistencyWarning(
                    f"Missing node data for link {edge.source} -> {edge.target}",
                    context={"source": edge.source, "target": edge.target},
                ))
                continue

            edge_type = result.graph.edge_type(edge)
            if edge_type != EdgeType.DAG_TRANSITION:
                self._record_issue(result, GraphConsistencyWarning(
                    f"Link {edge.source} -> {edge.target} is a {edge_type} edge, "
                    f"not a one-level transition",
                    context={"source": edge.source, "target": edge.target, "type": str(edge_type)},
                ))

    def _check_level_counts(self, result: DatasetParseResult) -> None:
        counts = Counter(node.level for node in result.graph.iter_nodes())
        for level in range(self.index.num_levels):
            expected = self.index.num_nodes_at_level(level)
            actual = counts.pop(level, 0)
            if actual != expected:
                self._record_issue(result, GraphConsistencyWarning(
                    f"Level {level}: expected {expected} nodes, found {actual}",
                    context={"level": level, "expected": expected, "actual": actual},
                ))
        for level, actual in sorted(counts.items()):
            self._record_issue(result, GraphConsistencyWarning(
                f"Level {level} is not in the capacity table but has {actual} nodes",
                context={"level": level, "actual": actual},
            ))


def _describe(raw: Any) -> str:
    if isinstance(raw, dict):
        if "id" in raw:
            return f"id={raw['id']}"
        if "source" in raw or "target" in raw:
            return f"{raw.get('source')} -> {raw.get('target')}"
    return repr(raw)[:60]


def load_dataset(
    dataset_path: Union[str, Path],
    capacities: Union[str, Path, Sequence[int]],
) -> DatasetParseResult:
    """Parse a dataset file against a capacity table (file path or list)."""
    parser = DatasetParser(load_capacities(capacities))
    return parser.parse_file(dataset_path)
