import unittest

from domain.models import Choice
from interfaces.telegram.callback_data import encode_play_choice, parse_play_choice


class PlayCallbackDataTests(unittest.TestCase):
    def test_fresh_round_carries_the_bet(self):
        data = encode_play_choice(Choice.SMALL, 25)

        self.assertEqual(data, "play:small:25")
        self.assertEqual(parse_play_choice(data), (Choice.SMALL, 25))

    def test_carry_over_round_has_no_bet(self):
        data = encode_play_choice(Choice.LARGE)

        self.assertEqual(data, "play:large")
        self.assertEqual(parse_play_choice(data), (Choice.LARGE, None))

    def test_rejects_malformed_data(self):
        for data in ("cashout", "play", "play:medium:5", "play:small:x", "bet:small:5"):
            with self.subTest(data=data):
                with self.assertRaises(ValueError):
                    parse_play_choice(data)


if __name__ == "__main__":
    unittest.main()
