from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from domain.cards import CARD_MAX, CARD_MIN, HOUSE_CARD, CardDrawer, SecureCardDrawer
from domain.errors import InsufficientBalance, InvalidChoice, PlayerNotFound
from domain.models import (
    Choice,
    LedgerUpdate,
    Player,
    RoundOutcome,
    SettledRound,
)
from domain.repositories import PlayerLedger, RoundHistory

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_BALANCE = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_choice(choice: object) -> Choice:
    """Map "small"/"large" in any letter case onto a `Choice`."""

    if isinstance(choice, Choice):
        return choice
    if isinstance(choice, str):
        try:
            return Choice(choice.strip().lower())
        except ValueError:
            pass
    raise InvalidChoice(choice)


def is_winning_card(card: int, choice: Choice) -> bool:
    if card == HOUSE_CARD:
        return False
    if choice is Choice.SMALL:
        return card <= 6
    return card >= 8


def resolve_stake(player: Player, requested_bet: Optional[int]) -> Tuple[int, bool]:
    """
    Return `(effective_stake, is_carry_over)` for the player's next round.

    While winnings are carried the stake is locked to them and the
    requested bet is ignored. Otherwise the bet must be a positive amount
    the balance can cover.
    """

    if player.has_carry_over:
        return player.active_winnings, True

    # Whole chips only; bool is an int subclass but never a bet.
    if isinstance(requested_bet, bool) or not isinstance(requested_bet, int):
        raise InsufficientBalance(f"Bet must be a whole number of chips, got {requested_bet!r}.")
    if requested_bet <= 0:
        raise InsufficientBalance("Bet must be greater than zero.")
    if requested_bet > player.balance:
        raise InsufficientBalance(
            f"Insufficient balance: bet {requested_bet} exceeds balance {player.balance}."
        )
    return requested_bet, False


class RoundResolver:
    """
    Settles double-or-nothing rounds against a `PlayerLedger`.

    Every validation happens inside the ledger's per-player transaction, so
    the checks always see the same state the write is based on.
    """

    def __init__(
        self,
        ledger: PlayerLedger,
        history: RoundHistory,
        drawer: Optional[CardDrawer] = None,
        initial_balance: int = DEFAULT_INITIAL_BALANCE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ledger = ledger
        self._history = history
        self._drawer = drawer or SecureCardDrawer()
        self._initial_balance = initial_balance
        self._clock = clock

    def create_or_get_player(self, player_id: str) -> Player:
        return self._ledger.create_or_init(player_id, self._initial_balance)

    def get_player(self, player_id: str) -> Player:
        player = self._ledger.get_player(player_id)
        if player is None:
            raise PlayerNotFound(player_id)
        return player

    def reset_player(self, player_id: str) -> Player:
        """Put the player back to the starting balance with nothing carried."""

        player = self._ledger.reset(player_id, self._initial_balance)
        logger.info("Reset player %s to balance %s", player_id, player.balance)
        return player

    def play_round(
        self,
        player_id: str,
        requested_bet: Optional[int],
        choice: object,
    ) -> RoundOutcome:
        def settle(player: Player) -> LedgerUpdate:
            stake, carried = resolve_stake(player, requested_bet)
            normalized = normalize_choice(choice)

            card = self._drawer.draw()
            if not CARD_MIN <= card <= CARD_MAX:
                raise ValueError(f"Card drawer returned {card}, outside {CARD_MIN}-{CARD_MAX}")
            did_win = is_winning_card(card, normalized)

            # A carried stake already left the balance with the original bet.
            balance = player.balance if carried else player.balance - stake
            winnings = stake * 2 if did_win else 0

            return LedgerUpdate(
                player=replace(player, balance=balance, active_winnings=winnings),
                settled_round=SettledRound(
                    player_id=player.id,
                    effective_bet=stake,
                    choice=normalized,
                    drawn_card=card,
                    did_win=did_win,
                    winnings=winnings,
                    settled_at=self._clock(),
                ),
            )

        try:
            update = self._ledger.apply_outcome(player_id, settle)
        except (PlayerNotFound, InsufficientBalance, InvalidChoice) as exc:
            logger.info("Rejected round for player %s: %s", player_id, exc)
            raise

        record = update.settled_round
        logger.info(
            "Settled round for player %s: stake=%s choice=%s card=%s won=%s",
            player_id,
            record.effective_bet,
            record.choice.value,
            record.drawn_card,
            record.did_win,
        )
        return RoundOutcome(
            drawn_card=record.drawn_card,
            did_win=record.did_win,
            winnings=update.player.active_winnings,
            new_balance=update.player.balance,
        )

    def cash_out(self, player_id: str) -> Player:
        """
        Move carried winnings into the balance.

        With nothing carried this is a no-op that issues no ledger write.
        """

        player = self.get_player(player_id)
        if not player.has_carry_over:
            return player

        paid_out = 0

        def settle(current: Player) -> Optional[LedgerUpdate]:
            nonlocal paid_out
            # A concurrent loss may have cleared the carry since the read above.
            if not current.has_carry_over:
                return None
            paid_out = current.active_winnings
            return LedgerUpdate(
                player=replace(
                    current,
                    balance=current.balance + current.active_winnings,
                    active_winnings=0,
                )
            )

        update = self._ledger.apply_outcome(player_id, settle)
        if paid_out:
            logger.info(
                "Cash-out of %s for player %s: balance now %s",
                paid_out,
                player_id,
                update.player.balance,
            )
        else:
            logger.info("Nothing left to cash out for player %s", player_id)
        return update.player

    def recent_rounds(self, player_id: str, limit: int = 10) -> List[SettledRound]:
        """Newest-first slice of the player's settlement log."""

        self.get_player(player_id)
        return self._history.list_rounds(player_id, limit=limit)
