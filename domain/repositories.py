from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from .models import LedgerUpdate, Player, SettledRound

# Receives the current player state inside the ledger's critical section and
# returns the update to commit, or None when nothing should be written.
LedgerMutation = Callable[[Player], Optional[LedgerUpdate]]


class RoundHistory(Protocol):
    """
    Append-only settlement log.

    Records are never edited or deleted by the application; retention is
    left to whoever operates the storage.
    """

    def append(self, record: SettledRound) -> None:
        """Durably append a settled round."""

        ...

    def list_rounds(
        self,
        player_id: str,
        limit: Optional[int] = None,
    ) -> List[SettledRound]:
        """Return the player's settled rounds, newest first."""

        ...


class PlayerLedger(Protocol):
    """
    Sole owner of players' balances and carried winnings.

    Implementations are responsible for:
    - Serializing `apply_outcome` calls for the same player id, without
      blocking calls for other ids.
    - Committing the new player state and the accompanying `SettledRound`
      (appended to the ledger's `RoundHistory`) together, or not at all.
    """

    def get_player(self, player_id: str) -> Optional[Player]:
        """Return the player with the given ID, or None if not found."""

        ...

    def create_or_init(self, player_id: str, initial_balance: int) -> Player:
        """
        Create the player with `initial_balance` and no carry-over.

        Idempotent: an existing player is returned unchanged.
        """

        ...

    def reset(self, player_id: str, balance: int) -> Player:
        """Create or overwrite the player with `balance` and no carry-over."""

        ...

    def apply_outcome(self, player_id: str, mutation: LedgerMutation) -> LedgerUpdate:
        """
        Run one read-modify-write transaction for `player_id`.

        Raises `PlayerNotFound` if the player does not exist. Exceptions
        raised by `mutation` propagate with nothing written. When `mutation`
        returns None no write is issued and the current state is returned.
        Storage failures while committing raise `SettlementError`.
        """

        ...
