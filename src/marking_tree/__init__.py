"""Marking tree engine: unmarked-work navigation for a grading dashboard."""

__version__ = "0.1.0"
