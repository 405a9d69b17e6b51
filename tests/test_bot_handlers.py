import unittest
from types import SimpleNamespace
from unittest import mock

from telebot.apihelper import ApiTelegramException

from application.services import RoundResolver
from infrastructure.memory.player_ledger import InMemoryPlayerLedger
from infrastructure.memory.round_history import InMemoryRoundHistory
from interfaces.discord.handlers import create_discord_bot
from interfaces.telegram.handlers import create_telegram_bot


class StubCardDrawer:
    def __init__(self, *cards: int):
        self.cards = list(cards)

    def draw(self) -> int:
        return self.cards.pop(0)


def _resolver(*cards: int) -> RoundResolver:
    history = InMemoryRoundHistory()
    return RoundResolver(
        InMemoryPlayerLedger(history),
        history,
        drawer=StubCardDrawer(*cards),
        initial_balance=1000,
    )


def _not_modified() -> ApiTelegramException:
    return ApiTelegramException(
        "editMessageReplyMarkup",
        None,
        {"error_code": 400, "description": "Bad Request: message is not modified"},
    )


def _handler(handlers, name):
    return next(h["function"] for h in handlers if h["function"].__name__ == name)


class TelegramHandlerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = _resolver(3, 12)
        self.bot = create_telegram_bot("123456:TEST", self.resolver)
        for name in ("send_message", "answer_callback_query", "edit_message_reply_markup"):
            patcher = mock.patch.object(self.bot, name)
            setattr(self, name, patcher.start())
            self.addCleanup(patcher.stop)

    def callback(self, data: str):
        return SimpleNamespace(
            id="cb1",
            data=data,
            from_user=SimpleNamespace(id=1),
            message=SimpleNamespace(id=5, chat=SimpleNamespace(id=99)),
        )

    def message(self, text: str):
        return SimpleNamespace(
            text=text,
            from_user=SimpleNamespace(id=1),
            chat=SimpleNamespace(id=99),
        )

    def sent_texts(self):
        return [c.args[1] for c in self.send_message.call_args_list]

    def test_buttons_are_closed_before_the_round_settles(self):
        self.resolver.create_or_get_player("telegram:1")
        balances_when_closed = []
        self.edit_message_reply_markup.side_effect = lambda *a, **kw: balances_when_closed.append(
            self.resolver.get_player("telegram:1").balance
        )

        _handler(self.bot.callback_query_handlers, "handle_choice")(self.callback("play:small:10"))

        self.assertEqual(balances_when_closed, [1000])
        self.assertEqual(self.resolver.get_player("telegram:1").balance, 990)

    def test_repeated_tap_still_reports_the_outcome(self):
        self.resolver.create_or_get_player("telegram:1")
        self.edit_message_reply_markup.side_effect = _not_modified()

        _handler(self.bot.callback_query_handlers, "handle_choice")(self.callback("play:small:10"))

        [text] = self.sent_texts()
        self.assertIn("Card: 3", text)
        self.assertIn("You win!", text)

    def test_cash_out_button_after_buttons_are_gone(self):
        self.resolver.create_or_get_player("telegram:1")
        self.resolver.play_round("telegram:1", 10, "small")
        self.edit_message_reply_markup.side_effect = _not_modified()

        _handler(self.bot.callback_query_handlers, "handle_cash_out_button")(
            self.callback("cashout")
        )

        [text] = self.sent_texts()
        self.assertIn("Cashed out 20", text)
        self.assertEqual(self.resolver.get_player("telegram:1").balance, 1010)

    def test_cash_out_provisions_a_new_player(self):
        _handler(self.bot.message_handlers, "handle_cash_out")(self.message("/cashout"))

        [text] = self.sent_texts()
        self.assertTrue(text.startswith("Nothing to cash out."))
        self.assertEqual(self.resolver.get_player("telegram:1").balance, 1000)

    def test_history_provisions_a_new_player(self):
        _handler(self.bot.message_handlers, "handle_history")(self.message("/history"))

        self.assertEqual(self.sent_texts(), ["No rounds played yet."])


class DiscordHandlerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.resolver = _resolver()
        self.bot = create_discord_bot(self.resolver)
        self.ctx = SimpleNamespace(author=SimpleNamespace(id=7), send=mock.AsyncMock())

    async def test_cashout_provisions_a_new_player(self):
        await self.bot.get_command("cashout").callback(self.ctx)

        text = self.ctx.send.await_args.args[0]
        self.assertTrue(text.startswith("Nothing to cash out."))
        self.assertEqual(self.resolver.get_player("discord:7").balance, 1000)

    async def test_history_provisions_a_new_player(self):
        await self.bot.get_command("history").callback(self.ctx)

        self.ctx.send.assert_awaited_once_with("No rounds played yet.")


if __name__ == "__main__":
    unittest.main()
