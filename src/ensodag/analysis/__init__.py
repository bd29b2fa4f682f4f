"""Probability and path analytics."""
