"""Spatial binding of rendered shapes to graph entities."""
