"""
Global Configuration and Defaults.

This module centralizes the constants shared by the index utility, the
analytics engine and the spatial binding engine: file layout templates,
validation tolerances and geometric matching thresholds.
"""

from typing import List

from pydantic import BaseModel, Field

# --- Hierarchy ---
# Level 0 holds the observed classes, in this order
SPECIAL_CLASSES: List[str] = ["La Niña", "Neutral", "El Niño"]

# --- Validation ---
# Maximum deviation of sum(lambda) from 1.0
LAMBDA_SUM_TOLERANCE = 0.001

# --- File layout ---
K_MAX_FILE = "json_files/K_max.json"
DAG_DATA_FILE = "json_files/vertical_transition_graph.json"
DAG_SVG_FILE = "svg_files/vertical_transition_graph.svg"
VIDEO_FILENAME_TEMPLATE = "mp4_files/combined-cluster{local_idx}-{level}months.mp4"
LEVEL_0_PLACEHOLDER_VIDEO = "mp4_files/combined-cluster1-1months.mp4"
AFFILIATION_FILENAME_TEMPLATE = "json_files/affiliation_matrix_{level}months.json"

# --- Spatial binding ---
# Maximum distance (image units) between an edge endpoint and a node centre
NODE_MATCH_THRESHOLD = 30.0

# Maximum distance between an arrowhead centre and an edge end point
ARROW_MATCH_THRESHOLD = 30.0

# --- Date highlighting ---
# brightness = 1.0 + BRIGHTNESS_SCALE * p
BRIGHTNESS_SCALE = 1.5


class BindingConfig(BaseModel):
    """
    Thresholds used by the spatial binder.

    Defaults match the layout produced by the graph renderer; raise them only
    for images rendered at a larger scale, since a generous node threshold
    lets endpoints snap to the wrong level.
    """
    match_threshold: float = Field(default=NODE_MATCH_THRESHOLD, gt=0.0)
    arrow_threshold: float = Field(default=ARROW_MATCH_THRESHOLD, gt=0.0)
    reject_self_loops: bool = True
