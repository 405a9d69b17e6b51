"""
Game errors surfaced to callers.

Validation errors (`PlayerNotFound`, `InsufficientBalance`,
`InvalidChoice`) are always raised before anything is written.
`SettlementError` means the ledger update and its history record could
not be committed together, so neither was applied.
"""


class GameError(Exception):
    """Base class for all errors raised by the settlement core."""


class PlayerNotFound(GameError):
    def __init__(self, player_id: str) -> None:
        super().__init__(f'Player with ID "{player_id}" not found')
        self.player_id = player_id


class InsufficientBalance(GameError):
    """The requested bet is not positive or exceeds the spendable balance."""


class InvalidChoice(GameError):
    def __init__(self, choice: object) -> None:
        super().__init__(f'Invalid choice "{choice}". Choose "small" or "large".')
        self.choice = choice


class SettlementError(GameError):
    """The ledger update and history append failed to commit as one unit."""
