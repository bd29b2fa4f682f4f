"""
Core type definitions for ensodag.

Graph records (nodes, edges, levels) are parsed from the transition graph
dataset; shape records are parsed from the rendered SVG. All of them are
validated at construction and immutable afterwards.
"""

import math
from enum import StrEnum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config import LAMBDA_SUM_TOLERANCE


class EdgeType(StrEnum):
    """Classification of an edge by the levels it connects."""
    DAG_TRANSITION = "DAG Transition"
    SAME_LEVEL = "Same Level"
    SKIP_LEVEL = "Skip Level"

    @classmethod
    def classify(cls, source_level: int, target_level: int) -> "EdgeType":
        if source_level == target_level + 1:
            return cls.DAG_TRANSITION
        if source_level == target_level:
            return cls.SAME_LEVEL
        return cls.SKIP_LEVEL


class TransitionNode(BaseModel):
    """
    A climate-state cluster at one level of the hierarchy.

    `id` is the flat global id; it must agree with (level, local_idx) under
    the capacity table, which the dataset parser checks.
    """
    id: int = Field(ge=1)
    level: int = Field(ge=0)
    local_idx: int = Field(ge=1)
    ev: float
    dates: List[str] = Field(default_factory=list)
    lambda_: Optional[Tuple[float, float, float]] = Field(default=None, alias="lambda")

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @field_validator("lambda_")
    @classmethod
    def _lambda_sums_to_one(cls, value):
        if value is not None and abs(sum(value) - 1.0) > LAMBDA_SUM_TOLERANCE:
            raise ValueError(f"lambda components must sum to 1 (got {sum(value):.4f})")
        return value

    @property
    def is_observed_class(self) -> bool:
        return self.level == 0

    @property
    def date_count(self) -> int:
        return len(self.dates)

    def __hash__(self):
        return hash(self.id)


class TransitionEdge(BaseModel):
    """
    Directed transition from a node at level n to a node at level n - 1.

    `weight` is the transition probability. `cost` is the negative log
    probability; when the dataset omits it, it is derived from the weight.
    """
    source: int = Field(ge=1)
    target: int = Field(ge=1)
    weight: float = Field(ge=0.0, le=1.0)
    ci: Optional[Tuple[float, float]] = None
    cost: Optional[float] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("ci")
    @classmethod
    def _ci_ordered(cls, value):
        if value is not None and value[0] > value[1]:
            raise ValueError(f"confidence interval lower bound exceeds upper bound: {value}")
        return value

    @property
    def log_weight(self) -> float:
        """ln(weight), or -inf for an effectively absent edge."""
        if self.weight > 0:
            return math.log(self.weight)
        return -math.inf

    @property
    def effective_cost(self) -> float:
        if self.cost is not None:
            return self.cost
        return -self.log_weight

    @property
    def key(self) -> Tuple[int, int]:
        return (self.source, self.target)


class Level(BaseModel):
    """One tier of the hierarchy."""
    index: int = Field(ge=0)
    capacity: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)


class LevelLocal(BaseModel):
    """A (level, local index) address."""
    level: int
    local_idx: int

    model_config = ConfigDict(frozen=True)


class Point(BaseModel):
    """A position in image space."""
    x: float
    y: float

    model_config = ConfigDict(frozen=True)

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class NodeShape(BaseModel):
    """
    A closed glyph drawn for a node.

    `index` is the position of the glyph in the image's scan order among
    node shapes; `center` is the centroid of its bounding box.
    """
    index: int = Field(ge=0)
    center: Point
    path_data: str = ""

    model_config = ConfigDict(frozen=True)


class EdgeShape(BaseModel):
    """A two-point segment drawn for an edge."""
    index: int = Field(ge=0)
    start: Point
    end: Point
    path_data: str = ""
    stroke: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)


class ArrowShape(BaseModel):
    """A decorative arrowhead; bound only so it can be highlighted with its edge."""
    index: int = Field(ge=0)
    center: Point
    path_data: str = ""
    fill: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ShapeSet(BaseModel):
    """All shapes extracted from one image, each list in scan order."""
    nodes: List[NodeShape] = Field(default_factory=list)
    edges: List[EdgeShape] = Field(default_factory=list)
    arrows: List[ArrowShape] = Field(default_factory=list)

    @model_validator(mode="after")
    def _indices_follow_scan_order(self):
        for shapes in (self.nodes, self.edges, self.arrows):
            indices = [s.index for s in shapes]
            if indices != sorted(indices) or len(set(indices)) != len(indices):
                raise ValueError("shape indices must be unique and in scan order")
        return self
