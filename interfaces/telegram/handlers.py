from __future__ import annotations

import logging

import telebot
from telebot.apihelper import ApiTelegramException
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.services import RoundResolver
from domain.errors import GameError
from domain.models import Choice
from interfaces.formatting import format_outcome, format_player, format_rounds
from interfaces.telegram.callback_data import (
    CASH_OUT,
    encode_play_choice,
    parse_play_choice,
)

logger = logging.getLogger(__name__)


def _player_id(user) -> str:
    return f"telegram:{user.id}"


def _choice_markup(bet: int | None) -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=2)
    markup.add(
        InlineKeyboardButton("Small (1-6)", callback_data=encode_play_choice(Choice.SMALL, bet)),
        InlineKeyboardButton("Large (8-13)", callback_data=encode_play_choice(Choice.LARGE, bet)),
    )
    return markup


def _double_or_cash_out_markup() -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=2)
    markup.add(
        InlineKeyboardButton("Double: small", callback_data=encode_play_choice(Choice.SMALL)),
        InlineKeyboardButton("Double: large", callback_data=encode_play_choice(Choice.LARGE)),
    )
    markup.add(InlineKeyboardButton("Cash out", callback_data=CASH_OUT))
    return markup


def create_telegram_bot(
    bot_token: str,
    resolver: RoundResolver,
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the application layer.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and mapping them to/from the round resolver.
    """

    bot = telebot.TeleBot(bot_token)

    def reply_error(chat_id, exc: Exception) -> None:
        if isinstance(exc, GameError):
            bot.send_message(chat_id, str(exc))
        else:
            logger.error("Telegram handler failed", exc_info=exc)
            bot.send_message(chat_id, "Something went wrong, please try again.")

    def close_buttons(call) -> None:
        """Answer the callback and make its buttons single use."""

        try:
            bot.answer_callback_query(call.id)
            bot.edit_message_reply_markup(call.message.chat.id, call.message.id, reply_markup=None)
        except ApiTelegramException as exc:
            # Repeated taps on one keyboard: the buttons are already gone.
            logger.info("Could not remove buttons from message %s: %s", call.message.id, exc)

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        player = resolver.create_or_get_player(_player_id(message.from_user))
        bot.send_message(
            message.chat.id,
            "Welcome to double or nothing!\n"
            "Bet on a small (1-6) or large (8-13) card. Seven always loses.\n"
            f"{format_player(player)}\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        bot.send_message(
            message.chat.id,
            "/play <bet>     - bet <bet> chips, then pick small or large\n"
            "/cashout        - move winnings on the table to your balance\n"
            "/balance        - show your balance\n"
            "/history        - show your last rounds\n"
            "/reset          - start over with a fresh balance\n",
        )

    @bot.message_handler(commands=["balance"])
    def handle_balance(message):
        player = resolver.create_or_get_player(_player_id(message.from_user))
        if player.has_carry_over:
            bot.send_message(
                message.chat.id,
                format_player(player),
                reply_markup=_double_or_cash_out_markup(),
            )
            return
        bot.send_message(message.chat.id, format_player(player))

    @bot.message_handler(commands=["play"])
    def handle_play(message):
        player = resolver.create_or_get_player(_player_id(message.from_user))
        if player.has_carry_over:
            bot.send_message(
                message.chat.id,
                f"You have {player.active_winnings} on the table. Double it or cash out.",
                reply_markup=_double_or_cash_out_markup(),
            )
            return

        parts = message.text.split()
        if len(parts) < 2:
            bot.send_message(message.chat.id, "Please enter your bet, e.g. /play 10")
            return

        try:
            bet = int(parts[1])
        except ValueError:
            bot.send_message(message.chat.id, "Bet must be a number.")
            return

        bot.send_message(
            message.chat.id,
            f"Betting {bet}. Small or large?",
            reply_markup=_choice_markup(bet),
        )

    def cash_out(chat_id, user) -> None:
        try:
            before = resolver.create_or_get_player(_player_id(user))
            player = resolver.cash_out(before.id)
        except Exception as exc:
            reply_error(chat_id, exc)
            return

        if player.balance == before.balance:
            bot.send_message(chat_id, "Nothing to cash out.\n" + format_player(player))
            return
        bot.send_message(
            chat_id,
            f"Cashed out {player.balance - before.balance}.\n{format_player(player)}",
        )

    @bot.message_handler(commands=["cashout"])
    def handle_cash_out(message):
        cash_out(message.chat.id, message.from_user)

    @bot.message_handler(commands=["history"])
    def handle_history(message):
        try:
            player = resolver.create_or_get_player(_player_id(message.from_user))
            rounds = resolver.recent_rounds(player.id)
        except Exception as exc:
            reply_error(message.chat.id, exc)
            return
        bot.send_message(message.chat.id, format_rounds(rounds))

    @bot.message_handler(commands=["reset"])
    def handle_reset(message):
        player = resolver.reset_player(_player_id(message.from_user))
        bot.send_message(message.chat.id, "Fresh start.\n" + format_player(player))

    @bot.callback_query_handler(func=lambda call: call.data.startswith("play:"))
    def handle_choice(call):
        """
        Settle a round for the side picked on the inline keyboard.
        """

        try:
            choice, bet = parse_play_choice(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        close_buttons(call)
        chat_id = call.message.chat.id
        try:
            outcome = resolver.play_round(_player_id(call.from_user), bet, choice)
        except Exception as exc:
            reply_error(chat_id, exc)
            return

        if outcome.did_win:
            bot.send_message(
                chat_id,
                format_outcome(outcome),
                reply_markup=_double_or_cash_out_markup(),
            )
        else:
            bot.send_message(chat_id, format_outcome(outcome))

    @bot.callback_query_handler(func=lambda call: call.data == CASH_OUT)
    def handle_cash_out_button(call):
        close_buttons(call)
        cash_out(call.message.chat.id, call.from_user)

    return bot
