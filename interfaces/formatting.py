from __future__ import annotations

from typing import List

from domain.models import Player, RoundOutcome, SettledRound


def format_player(player: Player) -> str:
    text = f"Balance: {player.balance}"
    if player.has_carry_over:
        text += f"\nWinnings on the table: {player.active_winnings}"
    return text


def format_outcome(outcome: RoundOutcome) -> str:
    lines = [f"Card: {outcome.drawn_card}"]
    if outcome.did_win:
        lines.append(f"You win! Winnings on the table: {outcome.winnings}")
        lines.append("Double again or cash out.")
    else:
        lines.append("You lose!")
    lines.append(f"Balance: {outcome.new_balance}")
    return "\n".join(lines)


def format_rounds(rounds: List[SettledRound]) -> str:
    if not rounds:
        return "No rounds played yet."

    lines = []
    for r in rounds:
        result = f"won {r.winnings}" if r.did_win else "lost"
        lines.append(
            f"{r.settled_at:%Y-%m-%d %H:%M} bet {r.effective_bet} on "
            f"{r.choice.value}, card {r.drawn_card}: {result}"
        )
    return "\n".join(lines)
