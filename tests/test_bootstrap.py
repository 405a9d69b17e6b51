import unittest
from datetime import datetime, timezone

from bootstrap import build_resolver
from domain.models import Choice, Player, RoundOutcome, SettledRound
from interfaces.formatting import format_outcome, format_player, format_rounds


class FixedCardDrawer:
    def draw(self) -> int:
        return 3


class BootstrapTests(unittest.TestCase):
    def test_memory_backend_plays_a_round(self):
        resolver = build_resolver("memory", drawer=FixedCardDrawer())
        resolver.create_or_get_player("p1")

        outcome = resolver.play_round("p1", 10, "small")

        self.assertTrue(outcome.did_win)
        self.assertEqual(outcome.winnings, 20)
        self.assertEqual(len(resolver.recent_rounds("p1")), 1)

    def test_unknown_backend(self):
        with self.assertRaises(RuntimeError):
            build_resolver("mongodb")


class FormattingTests(unittest.TestCase):
    def test_format_player_shows_carry_over_only_when_present(self):
        self.assertEqual(format_player(Player("p", 90)), "Balance: 90")
        self.assertIn("Winnings on the table: 40", format_player(Player("p", 90, 40)))

    def test_format_outcome(self):
        win = format_outcome(RoundOutcome(drawn_card=3, did_win=True, winnings=20, new_balance=90))
        loss = format_outcome(RoundOutcome(drawn_card=7, did_win=False, winnings=0, new_balance=40))

        self.assertIn("You win!", win)
        self.assertIn("20", win)
        self.assertIn("You lose!", loss)
        self.assertIn("Balance: 40", loss)

    def test_format_rounds_empty(self):
        self.assertEqual(format_rounds([]), "No rounds played yet.")

    def test_format_rounds_lists_wins_and_losses(self):
        at = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        rounds = [
            SettledRound("p", 20, Choice.LARGE, 7, False, 0, at),
            SettledRound("p", 10, Choice.SMALL, 3, True, 20, at),
        ]

        self.assertEqual(
            format_rounds(rounds).splitlines(),
            [
                "2024-01-01 12:00 bet 20 on large, card 7: lost",
                "2024-01-01 12:00 bet 10 on small, card 3: won 20",
            ],
        )


if __name__ == "__main__":
    unittest.main()
