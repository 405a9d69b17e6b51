from __future__ import annotations

from typing import Optional

from application.services import normalize_choice
from domain.errors import InvalidChoice
from domain.models import Choice

CASH_OUT = "cashout"


def encode_play_choice(choice: Choice, bet: Optional[int] = None) -> str:
    """
    Encode a "pick a side" callback.

    Format:
      play:{choice}:{bet}   fresh round
      play:{choice}         carry-over round, the winnings are the stake
    """

    if bet is None:
        return f"play:{choice.value}"
    return f"play:{choice.value}:{bet}"


def parse_play_choice(data: str) -> tuple[Choice, Optional[int]]:
    parts = data.split(":")
    if len(parts) not in (2, 3) or parts[0] != "play":
        raise ValueError(f"Invalid play callback data: {data}")

    try:
        choice = normalize_choice(parts[1])
    except InvalidChoice as exc:
        raise ValueError(f"Invalid play callback data: {data}") from exc

    bet = int(parts[2]) if len(parts) == 3 else None
    return choice, bet
