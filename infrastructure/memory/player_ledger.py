from __future__ import annotations

import logging
from typing import Dict, Optional

from domain.errors import PlayerNotFound, SettlementError
from domain.models import LedgerUpdate, Player
from domain.repositories import LedgerMutation, PlayerLedger, RoundHistory
from infrastructure.locks import KeyedLocks

logger = logging.getLogger(__name__)


class InMemoryPlayerLedger(PlayerLedger):
    """
    Process-local ledger guarded by one lock per player id.

    The history record is appended before the player state is swapped in,
    so a failed append leaves the player exactly as it was.
    """

    def __init__(self, history: RoundHistory) -> None:
        self._history = history
        self._players: Dict[str, Player] = {}
        self._locks = KeyedLocks()

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def create_or_init(self, player_id: str, initial_balance: int) -> Player:
        with self._locks.hold(player_id):
            existing = self._players.get(player_id)
            if existing is not None:
                return existing
            player = Player(id=player_id, balance=initial_balance, active_winnings=0)
            self._players[player_id] = player
            return player

    def reset(self, player_id: str, balance: int) -> Player:
        with self._locks.hold(player_id):
            player = Player(id=player_id, balance=balance, active_winnings=0)
            self._players[player_id] = player
            return player

    def apply_outcome(self, player_id: str, mutation: LedgerMutation) -> LedgerUpdate:
        with self._locks.hold(player_id):
            current = self._players.get(player_id)
            if current is None:
                raise PlayerNotFound(player_id)

            update = mutation(current)
            if update is None:
                return LedgerUpdate(player=current)

            if update.settled_round is not None:
                try:
                    self._history.append(update.settled_round)
                except Exception as exc:
                    logger.exception("Could not append settled round for player %s", player_id)
                    raise SettlementError(
                        f"Round for player {player_id} was not settled."
                    ) from exc

            self._players[player_id] = update.player
            return update
