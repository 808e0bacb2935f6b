from __future__ import annotations
from dataclasses import replace
from typing import Dict, List, Sequence

from .types import Mission


ROTATION = ("Alpha", "Bravo", "Charlie", "Delta")
FALLBACK_ASSIGNEE = "Alpha"


def dedupe(names: Sequence[str]) -> List[str]:
    """Stable de-duplication, dropping blank names."""
    seen = set()
    out: List[str] = []
    for name in names:
        if not name or name in seen:
            continue
        seen.add(name)
        out.append(name)
    return out


def load_counts(missions: Sequence[Mission]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for m in missions:
        for person in dedupe(m.personnel):
            counts[person] = counts.get(person, 0) + 1
    return counts


def least_loaded(counts: Dict[str, int]) -> str:
    if not counts:
        return FALLBACK_ASSIGNEE
    # Ties resolve lexicographically so repeated runs pick the same person.
    return min(sorted(counts), key=lambda p: counts[p])


def optimize(missions: Sequence[Mission]) -> List[Mission]:
    """Single-pass greedy personnel assignment.

    Load counts are snapshotted before any assignment, so missions filled in
    this pass do not influence each other. Returns new Mission objects in the
    input order; the input is not modified.
    """
    counts = load_counts(missions)
    if not counts:
        return [replace(m, personnel=[ROTATION[i % len(ROTATION)]], equipment=list(m.equipment)) for i, m in enumerate(missions)]

    result: List[Mission] = []
    pick = least_loaded(counts)
    for m in missions:
        personnel = dedupe(m.personnel)
        if not personnel:
            personnel = [pick]
        result.append(replace(m, personnel=personnel, equipment=list(m.equipment)))
    return result
