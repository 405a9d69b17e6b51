from __future__ import annotations

import threading
from typing import List, Optional

from domain.models import SettledRound
from domain.repositories import RoundHistory


class InMemoryRoundHistory(RoundHistory):
    """Process-local settlement log, kept in insertion order."""

    def __init__(self) -> None:
        self._records: List[SettledRound] = []
        self._lock = threading.Lock()

    def append(self, record: SettledRound) -> None:
        with self._lock:
            self._records.append(record)

    def list_rounds(
        self,
        player_id: str,
        limit: Optional[int] = None,
    ) -> List[SettledRound]:
        with self._lock:
            rounds = [r for r in reversed(self._records) if r.player_id == player_id]
        if limit is not None:
            rounds = rounds[:limit]
        return rounds
