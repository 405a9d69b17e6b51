from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from typing import Optional

from domain.errors import PlayerNotFound, SettlementError
from domain.models import LedgerUpdate, Player
from domain.repositories import LedgerMutation, PlayerLedger
from infrastructure.db.round_history_sqlite import SqliteRoundHistory
from infrastructure.locks import KeyedLocks

logger = logging.getLogger(__name__)


class SqlitePlayerLedger(PlayerLedger):
    """
    SQLite-backed implementation of `PlayerLedger`.

    Owns the `players` table. An in-process lock per player id keeps
    same-player calls in order while the mutation runs; the database write
    lock is only taken for the short `BEGIN IMMEDIATE` transaction that
    writes the player row and the settled round on the same connection.
    The row update is conditional on the state the mutation saw, so a
    writer in another process turns into a `SettlementError` instead of a
    lost update.
    """

    def __init__(
        self,
        db_path: str,
        history: SqliteRoundHistory,
        timeout: float = 5.0,
    ) -> None:
        self._db_path = db_path
        self._history = history
        self._timeout = timeout
        self._locks = KeyedLocks()
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        # Autocommit mode; transactions are opened explicitly.
        return sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)

    def _ensure_table(self) -> None:
        with closing(self._get_connection()) as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
                    active_winnings INTEGER NOT NULL DEFAULT 0 CHECK (active_winnings >= 0)
                )
                """
            )

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> Player:
        return Player(
            id=str(row[0]),
            balance=int(row[1]),
            active_winnings=int(row[2]),
        )

    @classmethod
    def _select(cls, cur: sqlite3.Cursor, player_id: str) -> Optional[Player]:
        cur.execute(
            "SELECT id, balance, active_winnings FROM players WHERE id = ?",
            (player_id,),
        )
        rows = cur.fetchall()
        if not rows:
            return None
        return cls._to_domain(rows[0])

    def get_player(self, player_id: str) -> Optional[Player]:
        with closing(self._get_connection()) as conn:
            return self._select(conn.cursor(), player_id)

    def create_or_init(self, player_id: str, initial_balance: int) -> Player:
        with self._locks.hold(player_id), closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO players (id, balance, active_winnings)
                VALUES (?, ?, 0)
                """,
                (player_id, initial_balance),
            )
            return self._select(cur, player_id)

    def reset(self, player_id: str, balance: int) -> Player:
        with self._locks.hold(player_id), closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO players (id, balance, active_winnings)
                VALUES (?, ?, 0)
                ON CONFLICT (id)
                DO UPDATE SET balance = excluded.balance, active_winnings = 0
                """,
                (player_id, balance),
            )
            return self._select(cur, player_id)

    def apply_outcome(self, player_id: str, mutation: LedgerMutation) -> LedgerUpdate:
        with self._locks.hold(player_id), closing(self._get_connection()) as conn:
            cur = conn.cursor()
            current = self._select(cur, player_id)
            if current is None:
                raise PlayerNotFound(player_id)

            update = mutation(current)
            if update is None:
                return LedgerUpdate(player=current)

            try:
                cur.execute("BEGIN IMMEDIATE")
                # Compare-and-set against the state the mutation was based on.
                cur.execute(
                    """
                    UPDATE players
                    SET balance = ?, active_winnings = ?
                    WHERE id = ? AND balance = ? AND active_winnings = ?
                    """,
                    (
                        update.player.balance,
                        update.player.active_winnings,
                        player_id,
                        current.balance,
                        current.active_winnings,
                    ),
                )
                if cur.rowcount != 1:
                    conn.rollback()
                    raise SettlementError(
                        f"Player {player_id} changed during settlement; round was not settled."
                    )
                if update.settled_round is not None:
                    self._history.insert(cur, update.settled_round)
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                logger.exception("Could not commit round for player %s", player_id)
                raise SettlementError(f"Round for player {player_id} was not settled.") from exc
            return update
