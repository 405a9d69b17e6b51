from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Choice(str, Enum):
    """Side of the table a player bets on."""

    SMALL = "small"
    LARGE = "large"


@dataclass(frozen=True)
class Player:
    """
    Domain representation of a player's monetary state.

    `balance` is the spendable bank; `active_winnings` is the amount
    currently carried into the next double-or-nothing round (zero when
    there is no open carry-over). Both are whole chips and never negative.
    """

    id: str
    balance: int
    active_winnings: int = 0

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError(f"Player {self.id} balance cannot be negative: {self.balance}")
        if self.active_winnings < 0:
            raise ValueError(
                f"Player {self.id} active winnings cannot be negative: {self.active_winnings}"
            )

    @property
    def has_carry_over(self) -> bool:
        return self.active_winnings > 0


@dataclass(frozen=True)
class RoundOutcome:
    """What the caller learns about a settled round."""

    drawn_card: int
    did_win: bool
    winnings: int
    new_balance: int


@dataclass(frozen=True)
class SettledRound:
    """
    Append-only settlement log entry.

    Written exactly once per successfully resolved round, in the same
    commit as the ledger update it describes.
    """

    player_id: str
    effective_bet: int
    choice: Choice
    drawn_card: int
    did_win: bool
    winnings: int
    settled_at: datetime


@dataclass(frozen=True)
class LedgerUpdate:
    """New player state plus the history record committed alongside it."""

    player: Player
    settled_round: Optional[SettledRound] = None
