"""
Circuit Challenge puzzle generator.

Generates arithmetic path puzzles: a grid of cells joined by valued
connectors, where each cell's expression evaluates to the connector that
leads one step further along the path from START to FINISH.
"""

__version__ = "1.0.0"
