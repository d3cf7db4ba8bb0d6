"""Tool schema and dispatch."""
