"""
Pipeline stages for the live detection loop.

Each stage handles one step of a cycle:
- filter: class allow-list and confidence cut
"""

from .filter import FilterStage, filter_by_class, filter_by_score

__all__ = ["FilterStage", "filter_by_class", "filter_by_score"]
