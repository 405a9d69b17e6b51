from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from application.services import RoundResolver
from domain.errors import GameError
from interfaces.formatting import format_outcome, format_player, format_rounds

logger = logging.getLogger(__name__)


def _player_id(user: discord.abc.User) -> str:
    return f"discord:{user.id}"


def create_discord_bot(resolver: RoundResolver) -> commands.Bot:
    """
    Configure and return a Discord bot with behaviour analogous to
    the Telegram interface: !play, !cashout, !balance, !history.
    """

    intents = discord.Intents.default()
    intents.message_content = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        original = getattr(error, "original", error)
        if isinstance(original, GameError):
            await ctx.send(str(original))
        elif isinstance(error, (commands.BadArgument, commands.MissingRequiredArgument)):
            await ctx.send("Usage: !play <small|large> [bet]. Type !help for all commands.")
        elif isinstance(error, commands.CommandNotFound):
            return
        else:
            logger.error("Command %s failed", ctx.command, exc_info=original)
            await ctx.send("Something went wrong, please try again.")

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        player = resolver.create_or_get_player(_player_id(ctx.author))
        await ctx.send(
            "Welcome to double or nothing!\n"
            "Bet on a small (1-6) or large (8-13) card. Seven always loses.\n"
            f"{format_player(player)}\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!play <small|large> <bet>  - bet <bet> chips on a small or large card\n"
            "!play <small|large>        - double your winnings on the table\n"
            "!cashout                   - move winnings on the table to your balance\n"
            "!balance                   - show your balance\n"
            "!history                   - show your last rounds\n"
            "!reset                     - start over with a fresh balance\n"
        )

    @bot.command(name="balance")
    async def balance_cmd(ctx: commands.Context):
        player = resolver.create_or_get_player(_player_id(ctx.author))
        await ctx.send(format_player(player))

    @bot.command(name="play")
    async def play_cmd(ctx: commands.Context, choice: str, bet: Optional[int] = None):
        """
        !play <choice> <bet>  -> fresh round
        !play <choice>        -> carry-over round (the bet is the winnings)
        """

        player_id = _player_id(ctx.author)
        resolver.create_or_get_player(player_id)
        outcome = resolver.play_round(player_id, bet, choice)
        await ctx.send(format_outcome(outcome))

    @bot.command(name="cashout")
    async def cashout_cmd(ctx: commands.Context):
        player_id = _player_id(ctx.author)
        before = resolver.create_or_get_player(player_id)
        player = resolver.cash_out(player_id)
        if player.balance == before.balance:
            await ctx.send("Nothing to cash out.\n" + format_player(player))
            return
        await ctx.send(f"Cashed out {player.balance - before.balance}.\n{format_player(player)}")

    @bot.command(name="history")
    async def history_cmd(ctx: commands.Context):
        player = resolver.create_or_get_player(_player_id(ctx.author))
        rounds = resolver.recent_rounds(player.id)
        await ctx.send(format_rounds(rounds))

    @bot.command(name="reset")
    async def reset_cmd(ctx: commands.Context):
        player = resolver.reset_player(_player_id(ctx.author))
        await ctx.send("Fresh start.\n" + format_player(player))

    return bot
