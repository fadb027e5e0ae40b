from __future__ import annotations

from .state import FILTER_ALL, FILTERS, BoardState, TaskBoard

__all__ = ["FILTERS", "FILTER_ALL", "BoardState", "TaskBoard"]
