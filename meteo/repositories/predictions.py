"""
In-memory store of the current forecast per node.

A node's predictions are always replaced as a whole set, never patched per
horizon.
"""

from __future__ import annotations

import threading
from typing import Iterable

from meteo.domain.prediction import Prediction
from meteo.utils.concurrency import synchronized


class PredictionRepository:
    """Current predictions keyed by node id."""

    def __init__(self):
        self._current: dict[str, tuple[Prediction, ...]] = {}
        self._lock = threading.Lock()

    @synchronized
    def replace_for_node(self, node_id: str, predictions: Iterable[Prediction]) -> None:
        ordered = sorted(predictions, key=lambda p: p.horizon_hours)
        self._current[node_id] = tuple(ordered)

    @synchronized
    def current(self, node_id: str) -> list[Prediction]:
        return list(self._current.get(node_id, ()))

    @synchronized
    def all_current(self) -> dict[str, list[Prediction]]:
        return {node_id: list(preds) for node_id, preds in sorted(self._current.items())}
