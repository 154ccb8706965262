"""
Filter state: which classes are allowed through and the confidence cut.

The allowed-class set uses the empty set as the "no restriction" sentinel.
Controls mutate a FilterState; the processing loop only ever sees an
immutable FilterSnapshot taken when it is (re)established.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable, List, Optional, Set

from .vocabulary import ALL_LABELS

CONFIDENCE_MIN = 0.1
CONFIDENCE_MAX = 0.9
CONFIDENCE_STEP = 0.05
DEFAULT_CONFIDENCE = 0.5


def snap_confidence(value: float) -> float:
    """Clamp to the slider range and snap to the 0.05 grid."""
    value = min(max(float(value), CONFIDENCE_MIN), CONFIDENCE_MAX)
    steps = round((value - CONFIDENCE_MIN) / CONFIDENCE_STEP)
    return round(CONFIDENCE_MIN + steps * CONFIDENCE_STEP, 2)


def sensitivity_label(threshold: float) -> str:
    """Human-readable name for a confidence threshold."""
    if threshold <= 0.3:
        return "Very Sensitive"
    if threshold <= 0.5:
        return "Balanced"
    if threshold <= 0.7:
        return "Precise"
    return "Very Precise"


@dataclass(frozen=True)
class FilterSnapshot:
    """Consistent view of the filter state for one run of the loop."""
    allowed_classes: FrozenSet[str] = frozenset()
    confidence_threshold: float = DEFAULT_CONFIDENCE

    @property
    def detector_min_score(self) -> float:
        """Looser cut handed to the detector so banding has a wider pool."""
        return self.confidence_threshold / 2


@dataclass
class FilterState:
    """
    Mutable filter state owned by the presentation shell.

    Every mutation notifies subscribers so the processing loop can restart
    with a fresh snapshot.
    """
    allowed_classes: Set[str] = field(default_factory=set)
    confidence_threshold: float = DEFAULT_CONFIDENCE
    vocabulary: List[str] = field(default_factory=lambda: list(ALL_LABELS))
    _listeners: List[Callable[[FilterSnapshot], None]] = field(default_factory=list, repr=False)

    def __post_init__(self):
        self.allowed_classes = set(self.allowed_classes)
        self.confidence_threshold = snap_confidence(self.confidence_threshold)

    @property
    def is_all_selected(self) -> bool:
        return not self.allowed_classes

    def subscribe(self, callback: Callable[[FilterSnapshot], None]) -> None:
        self._listeners.append(callback)

    def snapshot(self) -> FilterSnapshot:
        return FilterSnapshot(
            allowed_classes=frozenset(self.allowed_classes),
            confidence_threshold=self.confidence_threshold,
        )

    def toggle_class(self, label: str) -> None:
        if label in self.allowed_classes:
            self.allowed_classes.discard(label)
        else:
            self.allowed_classes.add(label)
        self._notify()

    def toggle_category(self, labels: Iterable[str]) -> None:
        """Remove the whole group if fully allowed, otherwise add the rest of it."""
        group = list(labels)
        if all(label in self.allowed_classes for label in group):
            self.allowed_classes.difference_update(group)
        else:
            self.allowed_classes.update(group)
        self._notify()

    def select_all(self) -> None:
        self.allowed_classes = set()
        self._notify()

    def clear_all(self) -> None:
        # Every label listed explicitly, not the empty "all" sentinel.
        self.allowed_classes = set(self.vocabulary)
        self._notify()

    def set_confidence(self, value: float) -> float:
        snapped = snap_confidence(value)
        if snapped != self.confidence_threshold:
            self.confidence_threshold = snapped
            self._notify()
        return snapped

    def is_selected(self, label: str) -> bool:
        return self.is_all_selected or label in self.allowed_classes

    def category_state(self, labels: Iterable[str]) -> str:
        """Checkbox state of a category: 'all', 'some' or 'none'."""
        flags = [self.is_selected(label) for label in labels]
        if flags and all(flags):
            return "all"
        if any(flags):
            return "some"
        return "none"

    def active_filters(self, limit: int = 10) -> tuple[List[str], int]:
        """First `limit` allowed labels (sorted) and how many more are hidden."""
        labels = sorted(self.allowed_classes)
        return labels[:limit], max(0, len(labels) - limit)

    def _notify(self) -> None:
        snap = self.snapshot()
        logging.debug(
            f"Filter changed: allowed={len(snap.allowed_classes) or 'all'}, "
            f"threshold={snap.confidence_threshold}"
        )
        for callback in list(self._listeners):
            callback(snap)


def filter_state_from_config(cfg: Optional[dict]) -> FilterState:
    """Build the initial FilterState from the `filters` config section."""
    cfg = cfg or {}
    return FilterState(
        allowed_classes=set(cfg.get("allowed_classes") or []),
        confidence_threshold=float(cfg.get("confidence_threshold", DEFAULT_CONFIDENCE)),
    )
