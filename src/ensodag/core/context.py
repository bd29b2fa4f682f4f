"""
Rebuildable dataset context.

A GraphContext owns everything derived from one dataset and one image: the
graph, the index, the analyzer and the binding map. Loading a new dataset
or image discards the derived structures and rebuilds them from scratch.
There is no incremental update path.

Loads may be prepared asynchronously by the caller (fetching JSON and SVG).
Each load is tagged with a generation number when it starts; a result that
arrives after a newer load has started is dropped instead of applied.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..analysis.transitions import TransitionAnalyzer
from ..binding.spatial import BindingMap, SpatialBinder
from ..config import BindingConfig
from .exceptions import ConsistencyIssue, DatasetNotLoadedError
from .graph import TransitionGraph
from .index import HierarchyIndex
from .types import ShapeSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadTicket:
    """Handle for one in-flight load."""
    generation: int


class GraphContext:
    """
    The current dataset and image bindings, tagged with a generation id.

    Contexts are independent; several may coexist (e.g. one per lead time
    or one per test).
    """

    def __init__(self, binding_config: Optional[BindingConfig] = None, strict: bool = False):
        self.binding_config = binding_config or BindingConfig()
        self.strict = strict
        self._generation = 0
        self._analyzer: Optional[TransitionAnalyzer] = None
        self._analyzer_generation: Optional[int] = None
        self._bindings: Optional[BindingMap] = None
        self._shapes: Optional[ShapeSet] = None
        self._shapes_generation: Optional[int] = None
        self._dataset_issues: List[ConsistencyIssue] = []

    @property
    def generation(self) -> int:
        return self._generation

    def begin_load(self) -> LoadTicket:
        """Start a new load; every earlier ticket becomes stale."""
        self._generation += 1
        logger.debug(f"Load started, generation {self._generation}")
        return LoadTicket(self._generation)

    def is_current(self, ticket: LoadTicket) -> bool:
        return ticket.generation == self._generation

    # =========================================================================
    # Commits
    # =========================================================================

    def commit_dataset(
        self,
        ticket: LoadTicket,
        graph: TransitionGraph,
        index: HierarchyIndex,
        issues: Optional[List[ConsistencyIssue]] = None,
    ) -> bool:
        """
        Replace the dataset. Drops the previous analyzer and all bindings.

        An image already committed under the same ticket is bound against
        the new graph; images from earlier generations are discarded.
        If the analyzer fails to build (strict mode on a cyclic graph) the
        context is left without a dataset.

        Returns False, leaving the context untouched, when the ticket is stale.
        """
        if not self.is_current(ticket):
            logger.info(
                f"Dropping dataset from superseded load (generation {ticket.generation}, "
                f"current {self._generation})"
            )
            return False

        self._analyzer = None
        self._analyzer_generation = None
        self._bindings = None
        self._dataset_issues = []

        self._analyzer = TransitionAnalyzer(graph, index, strict=self.strict)
        self._analyzer_generation = ticket.generation
        self._dataset_issues = list(issues or [])

        if self._shapes is not None and self._shapes_generation == ticket.generation:
            self._bind()
        else:
            self._shapes = None
            self._shapes_generation = None
        return True

    def commit_shapes(self, ticket: LoadTicket, shapes: ShapeSet) -> bool:
        """
        Replace the image.

        The shapes are bound at once when the dataset of the same generation
        is already committed; otherwise they wait for commit_dataset.
        Returns False, leaving the context untouched, when the ticket is stale.
        """
        if not self.is_current(ticket):
            logger.info(
                f"Dropping image from superseded load (generation {ticket.generation}, "
                f"current {self._generation})"
            )
            return False

        self._shapes = shapes
        self._shapes_generation = ticket.generation
        self._bindings = None

        if self._analyzer is not None and self._analyzer_generation == ticket.generation:
            self._bind()
        else:
            logger.debug(f"Image for generation {ticket.generation} waiting for its dataset")
        return True

    def _bind(self) -> None:
        self._bindings = SpatialBinder(self._analyzer.graph, self.binding_config).bind(self._shapes)

    def load_dataset(
        self,
        graph: TransitionGraph,
        index: HierarchyIndex,
        issues: Optional[List[ConsistencyIssue]] = None,
    ) -> LoadTicket:
        """Synchronous load: begin and commit in one step."""
        ticket = self.begin_load()
        self.commit_dataset(ticket, graph, index, issues)
        return ticket

    def load_image(self, shapes: ShapeSet) -> None:
        """Bind a new image to the current dataset, within the current generation."""
        self._require_analyzer()
        self.commit_shapes(LoadTicket(self._generation), shapes)

    def clear(self) -> None:
        self._generation += 1
        self._analyzer = None
        self._analyzer_generation = None
        self._bindings = None
        self._shapes = None
        self._shapes_generation = None
        self._dataset_issues = []

    # =========================================================================
    # Accessors
    # =========================================================================

    def _require_analyzer(self) -> TransitionAnalyzer:
        if self._analyzer is None:
            raise DatasetNotLoadedError("No dataset loaded in this context")
        return self._analyzer

    @property
    def has_dataset(self) -> bool:
        return self._analyzer is not None

    @property
    def image_pending(self) -> bool:
        """True when an image is committed but not yet bound to its dataset."""
        return self._shapes is not None and self._bindings is None

    @property
    def analyzer(self) -> TransitionAnalyzer:
        return self._require_analyzer()

    @property
    def graph(self) -> TransitionGraph:
        return self._require_analyzer().graph

    @property
    def index(self) -> HierarchyIndex:
        return self._require_analyzer().index

    @property
    def bindings(self) -> Optional[BindingMap]:
        return self._bindings

    @property
    def issues(self) -> List[ConsistencyIssue]:
        issues: List[ConsistencyIssue] = list(self._dataset_issues)
        if self._analyzer is not None:
            issues.extend(self._analyzer.issues)
        if self._bindings is not None:
            issues.extend(self._bindings.warnings)
        return issues
