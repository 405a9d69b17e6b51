from __future__ import annotations

import logging
from contextlib import closing
from typing import Optional

import psycopg2

from domain.errors import PlayerNotFound, SettlementError
from domain.models import LedgerUpdate, Player
from domain.repositories import LedgerMutation, PlayerLedger
from infrastructure.db.round_history_postgres import PostgresRoundHistory

logger = logging.getLogger(__name__)


class PostgresPlayerLedger(PlayerLedger):
    """
    Postgres-backed implementation of `PlayerLedger`.

    `apply_outcome` takes a row lock on the player (`SELECT ... FOR UPDATE`)
    and writes the player row and the settled round in the same
    transaction. Row locks keep other players' settlements running.
    """

    def __init__(self, db_params: dict, history: PostgresRoundHistory) -> None:
        self._db_params = db_params
        self._history = history
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with closing(self._get_connection()) as conn:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        CREATE TABLE IF NOT EXISTS players (
                            id TEXT PRIMARY KEY,
                            balance BIGINT NOT NULL DEFAULT 0 CHECK (balance >= 0),
                            active_winnings BIGINT NOT NULL DEFAULT 0
                                CHECK (active_winnings >= 0)
                        )
                        """
                    )

    @staticmethod
    def _to_domain(row: tuple) -> Player:
        return Player(
            id=str(row[0]),
            balance=int(row[1]),
            active_winnings=int(row[2]),
        )

    @classmethod
    def _select(cls, cur, player_id: str, for_update: bool = False) -> Optional[Player]:
        query = "SELECT id, balance, active_winnings FROM players WHERE id = %s"
        if for_update:
            query += " FOR UPDATE"
        cur.execute(query, (player_id,))
        row = cur.fetchone()
        if not row:
            return None
        return cls._to_domain(row)

    def get_player(self, player_id: str) -> Optional[Player]:
        with closing(self._get_connection()) as conn:
            with conn.cursor() as cur:
                return self._select(cur, player_id)

    def create_or_init(self, player_id: str, initial_balance: int) -> Player:
        with closing(self._get_connection()) as conn:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO players (id, balance, active_winnings)
                        VALUES (%s, %s, 0)
                        ON CONFLICT (id) DO NOTHING
                        """,
                        (player_id, initial_balance),
                    )
                    return self._select(cur, player_id)

    def reset(self, player_id: str, balance: int) -> Player:
        with closing(self._get_connection()) as conn:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO players (id, balance, active_winnings)
                        VALUES (%s, %s, 0)
                        ON CONFLICT (id)
                        DO UPDATE SET balance = excluded.balance, active_winnings = 0
                        """,
                        (player_id, balance),
                    )
                    return self._select(cur, player_id)

    def apply_outcome(self, player_id: str, mutation: LedgerMutation) -> LedgerUpdate:
        try:
            with closing(self._get_connection()) as conn:
                # `with conn` commits on success and rolls back on any exception.
                with conn:
                    with conn.cursor() as cur:
                        current = self._select(cur, player_id, for_update=True)
                        if current is None:
                            raise PlayerNotFound(player_id)

                        update = mutation(current)
                        if update is None:
                            return LedgerUpdate(player=current)

                        cur.execute(
                            """
                            UPDATE players
                            SET balance = %s, active_winnings = %s
                            WHERE id = %s
                            """,
                            (update.player.balance, update.player.active_winnings, player_id),
                        )
                        if update.settled_round is not None:
                            self._history.insert(cur, update.settled_round)
                        return update
        except psycopg2.Error as exc:
            logger.exception("Could not commit round for player %s", player_id)
            raise SettlementError(f"Round for player {player_id} was not settled.") from exc
