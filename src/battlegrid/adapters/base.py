from __future__ import annotations
from typing import TYPE_CHECKING, List, Protocol

from ..types import IngestResult

if TYPE_CHECKING:
    from ..engine import Engine


class IngestAdapter(Protocol):
    """Protocol for producers that push events through `Engine.ingest`."""

    def collect(self, engine: "Engine") -> List[IngestResult]:
        ...
