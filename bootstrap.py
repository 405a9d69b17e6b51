from __future__ import annotations

import logging
from typing import Optional

import config
from application.services import RoundResolver
from domain.cards import CardDrawer


logger = logging.getLogger(__name__)


def build_resolver(
    backend: str = config.DB_BACKEND,
    drawer: Optional[CardDrawer] = None,
) -> RoundResolver:
    """Wire a `RoundResolver` to the configured storage backend."""

    if backend == "sqlite":
        from infrastructure.db.player_ledger_sqlite import SqlitePlayerLedger
        from infrastructure.db.round_history_sqlite import SqliteRoundHistory

        history = SqliteRoundHistory(config.DB_PATH, timeout=config.SQLITE_TIMEOUT)
        ledger = SqlitePlayerLedger(config.DB_PATH, history, timeout=config.SQLITE_TIMEOUT)
    elif backend == "postgres":
        from infrastructure.db.player_ledger_postgres import PostgresPlayerLedger
        from infrastructure.db.round_history_postgres import PostgresRoundHistory

        history = PostgresRoundHistory(config.POSTGRES_PARAMS)
        ledger = PostgresPlayerLedger(config.POSTGRES_PARAMS, history)
    elif backend == "memory":
        from infrastructure.memory.player_ledger import InMemoryPlayerLedger
        from infrastructure.memory.round_history import InMemoryRoundHistory

        history = InMemoryRoundHistory()
        ledger = InMemoryPlayerLedger(history)
    else:
        raise RuntimeError(f"Unknown DB_BACKEND {backend!r}; use sqlite, postgres or memory.")

    logger.info("Using %s storage backend", backend)
    return RoundResolver(
        ledger,
        history,
        drawer=drawer,
        initial_balance=config.INITIAL_BALANCE,
    )
