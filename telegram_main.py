import logging

import config
from bootstrap import build_resolver
from interfaces.telegram.handlers import create_telegram_bot


logger = logging.getLogger(__name__)


def main() -> None:
    if not config.TELEGRAM_TOKEN:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    config.configure_logging()
    resolver = build_resolver()

    bot = create_telegram_bot(config.TELEGRAM_TOKEN, resolver)
    logger.info("Telegram bot polling")
    bot.infinity_polling()


if __name__ == "__main__":
    main()
