import config
from bootstrap import build_resolver
from interfaces.discord.handlers import create_discord_bot


def main() -> None:
    if not config.DISCORD_TOKEN:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    config.configure_logging()
    resolver = build_resolver()

    bot = create_discord_bot(resolver)
    bot.run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
