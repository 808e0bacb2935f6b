from __future__ import annotations
import datetime
import threading
import uuid
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .allocator import dedupe, optimize
from .types import Mission, PRIORITIES


DEFAULT_TITLE = "Untitled Mission"
DEFAULT_DUE_HOURS = 4.0


def _iso_in(hours: float, now: Optional[datetime.datetime] = None) -> str:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return (now + datetime.timedelta(hours=hours)).isoformat()


def _copy(mission: Mission) -> Mission:
    return replace(mission, personnel=list(mission.personnel), equipment=list(mission.equipment))


def _split_names(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


class MissionStore:
    """Insertion-ordered missions guarded by a single lock."""

    def __init__(self, missions: Optional[Iterable[Mission]] = None, default_due_hours: float = DEFAULT_DUE_HOURS):
        self.default_due_hours = default_due_hours
        self._missions: List[Mission] = list(missions or [])
        self._lock = threading.Lock()

    def create(
        self,
        title: str = "",
        description: str = "",
        due: Optional[str] = None,
        priority: str = "Medium",
        personnel: Sequence[str] | str | None = None,
        equipment: Sequence[str] | str | None = None,
        mission_id: Optional[str] = None,
    ) -> Mission:
        if priority not in PRIORITIES:
            raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}; got {priority!r}")
        if due:
            # Normalize so every stored due time parses the same way.
            due = datetime.datetime.fromisoformat(due).isoformat()
        mission = Mission(
            id=mission_id or f"mis-{uuid.uuid4().hex[:12]}",
            title=(title or "").strip() or DEFAULT_TITLE,
            description=(description or "").strip(),
            due=due or _iso_in(self.default_due_hours),
            priority=priority,
            personnel=dedupe(_split_names(personnel)),
            equipment=_split_names(equipment),
        )
        with self._lock:
            self._missions.append(mission)
        return _copy(mission)

    def list(self) -> List[Mission]:
        with self._lock:
            return [_copy(m) for m in self._missions]

    def optimize(self) -> List[Mission]:
        with self._lock:
            self._missions = optimize(self._missions)
            return [_copy(m) for m in self._missions]

    def __len__(self) -> int:
        with self._lock:
            return len(self._missions)


def missions_from_config(seed: Sequence[Dict[str, Any]], now: Optional[datetime.datetime] = None) -> List[Mission]:
    """Build seed missions; `due_in_hours` is resolved against `now`."""
    out: List[Mission] = []
    for idx, item in enumerate(seed or []):
        due = item.get("due") or _iso_in(float(item.get("due_in_hours", DEFAULT_DUE_HOURS)), now)
        out.append(
            Mission(
                id=str(item.get("id") or f"mis-{idx + 1:02d}"),
                title=str(item.get("title") or DEFAULT_TITLE),
                description=str(item.get("description") or ""),
                due=due,
                priority=str(item.get("priority") or "Medium"),
                personnel=dedupe(_split_names(item.get("personnel"))),
                equipment=_split_names(item.get("equipment")),
            )
        )
    return out


def mission_from_dict(raw: Dict[str, Any]) -> Mission:
    return Mission(
        id=str(raw["id"]),
        title=str(raw.get("title") or DEFAULT_TITLE),
        description=str(raw.get("description") or ""),
        due=str(raw["due"]),
        priority=str(raw.get("priority") or "Medium"),
        personnel=_split_names(raw.get("personnel")),
        equipment=_split_names(raw.get("equipment")),
    )
