"""Dataset and SVG parsing."""
