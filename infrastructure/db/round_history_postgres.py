from __future__ import annotations

from contextlib import closing
from typing import List, Optional

import psycopg2

from domain.models import Choice, SettledRound
from domain.repositories import RoundHistory


class PostgresRoundHistory(RoundHistory):
    """
    Postgres-backed implementation of `RoundHistory`.

    Owns the `settled_rounds` table; `PostgresPlayerLedger` writes through
    `insert` inside its own transaction.
    """

    def __init__(self, db_params: dict) -> None:
        self._db_params = db_params
        self._ensure_table()

    def _get_connection(self):
        return psycopg2.connect(**self._db_params)

    def _ensure_table(self) -> None:
        with closing(self._get_connection()) as conn:
            with conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        CREATE TABLE IF NOT EXISTS settled_rounds (
                            id BIGSERIAL PRIMARY KEY,
                            player_id TEXT NOT NULL,
                            effective_bet BIGINT NOT NULL,
                            choice TEXT NOT NULL,
                            drawn_card SMALLINT NOT NULL,
                            did_win BOOLEAN NOT NULL,
                            winnings BIGINT NOT NULL,
                            settled_at TIMESTAMPTZ NOT NULL
                        )
                        """
                    )
                    cur.execute(
                        """
                        CREATE INDEX IF NOT EXISTS idx_settled_rounds_player
                        ON settled_rounds (player_id, id)
                        """
                    )

    @staticmethod
    def _to_domain(row: tuple) -> SettledRound:
        return SettledRound(
            player_id=str(row[0]),
            effective_bet=int(row[1]),
            choice=Choice(row[2]),
            drawn_card=int(row[3]),
            did_win=bool(row[4]),
            winnings=int(row[5]),
            settled_at=row[6],
        )

    @staticmethod
    def insert(cur, record: SettledRound) -> None:
        cur.execute(
            """
            INSERT INTO settled_rounds (
                player_id, effective_bet, choice, drawn_card, did_win, winnings, settled_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                record.player_id,
                record.effective_bet,
                record.choice.value,
                record.drawn_card,
                record.did_win,
                record.winnings,
                record.settled_at,
            ),
        )

    def append(self, record: SettledRound) -> None:
        with closing(self._get_connection()) as conn:
            with conn:
                with conn.cursor() as cur:
                    self.insert(cur, record)

    def list_rounds(
        self,
        player_id: str,
        limit: Optional[int] = None,
    ) -> List[SettledRound]:
        with closing(self._get_connection()) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT player_id, effective_bet, choice, drawn_card, did_win, winnings, settled_at
                    FROM settled_rounds
                    WHERE player_id = %s
                    ORDER BY id DESC
                    LIMIT %s
                    """,
                    (player_id, limit),
                )
                return [self._to_domain(row) for row in cur.fetchall()]
