"""Core types, index utility, graph store and dataset context."""
