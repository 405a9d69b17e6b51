from __future__ import annotations

import secrets
from typing import Protocol

CARD_MIN = 1
CARD_MAX = 13

# Loses for both sides of the table.
HOUSE_CARD = 7


class CardDrawer(Protocol):
    """Source of single, independent card draws."""

    def draw(self) -> int:
        """Return a card value in [CARD_MIN, CARD_MAX]."""

        ...


class SecureCardDrawer:
    """
    Uniform draws from the operating system's CSPRNG.

    Stateless: nothing is seeded or shared between draws, so the drawer can
    be used from any number of threads without synchronization.
    """

    def draw(self) -> int:
        return CARD_MIN + secrets.randbelow(CARD_MAX - CARD_MIN + 1)
