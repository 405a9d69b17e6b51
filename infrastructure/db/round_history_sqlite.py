from __future__ import annotations

import sqlite3
from contextlib import closing
from datetime import datetime
from typing import List, Optional

from domain.models import Choice, SettledRound
from domain.repositories import RoundHistory


class SqliteRoundHistory(RoundHistory):
    """
    SQLite-backed implementation of `RoundHistory`.

    Owns the `settled_rounds` table. `SqlitePlayerLedger` writes through
    `insert` on its own connection so that the record lands in the same
    transaction as the balance update.
    """

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path, timeout=self._timeout, isolation_level=None)

    def _ensure_table(self) -> None:
        with closing(self._get_connection()) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settled_rounds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    player_id TEXT NOT NULL,
                    effective_bet INTEGER NOT NULL,
                    choice TEXT NOT NULL,
                    drawn_card INTEGER NOT NULL,
                    did_win INTEGER NOT NULL,
                    winnings INTEGER NOT NULL,
                    settled_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_settled_rounds_player
                ON settled_rounds (player_id, id)
                """
            )

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> SettledRound:
        return SettledRound(
            player_id=str(row[0]),
            effective_bet=int(row[1]),
            choice=Choice(row[2]),
            drawn_card=int(row[3]),
            did_win=bool(row[4]),
            winnings=int(row[5]),
            settled_at=datetime.fromisoformat(row[6]),
        )

    @staticmethod
    def insert(cur: sqlite3.Cursor, record: SettledRound) -> None:
        cur.execute(
            """
            INSERT INTO settled_rounds (
                player_id, effective_bet, choice, drawn_card, did_win, winnings, settled_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.player_id,
                record.effective_bet,
                record.choice.value,
                record.drawn_card,
                int(record.did_win),
                record.winnings,
                record.settled_at.isoformat(),
            ),
        )

    def append(self, record: SettledRound) -> None:
        with closing(self._get_connection()) as conn:
            self.insert(conn.cursor(), record)

    def list_rounds(
        self,
        player_id: str,
        limit: Optional[int] = None,
    ) -> List[SettledRound]:
        query = """
            SELECT player_id, effective_bet, choice, drawn_card, did_win, winnings, settled_at
            FROM settled_rounds
            WHERE player_id = ?
            ORDER BY id DESC
        """
        params: tuple = (player_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (player_id, limit)

        with closing(self._get_connection()) as conn:
            cur = conn.cursor()
            cur.execute(query, params)
            return [self._to_domain(row) for row in cur.fetchall()]
