from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def pick_least_loaded(candidates: Sequence[tuple[T, int]]) -> T | None:
    """Return the candidate with the smallest open load; ties keep input order."""
    selected: T | None = None
    best_load: int | None = None
    for candidate, load in candidates:
        if best_load is None or load < best_load:
            selected = candidate
            best_load = load
    return selected
