import logging
import os

from dotenv import load_dotenv


load_dotenv()

# ===== Bots =====
DISCORD_TOKEN = os.environ.get("DISCORD_TOKEN")
TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")

# ===== Storage =====
DB_BACKEND = os.environ.get("DB_BACKEND", "sqlite")  # sqlite | postgres | memory
DB_PATH = os.environ.get("DB_PATH", "tuplaus.db")
SQLITE_TIMEOUT = float(os.environ.get("SQLITE_TIMEOUT", "5"))

POSTGRES_PARAMS = {
    "host": os.environ.get("POSTGRES_HOST", "localhost"),
    "port": int(os.environ.get("POSTGRES_PORT", "5432")),
    "dbname": os.environ.get("POSTGRES_DB", "tuplaus"),
    "user": os.environ.get("POSTGRES_USER", "postgres"),
    "password": os.environ.get("POSTGRES_PASSWORD", ""),
}

# ===== Game =====
INITIAL_BALANCE = int(os.environ.get("INITIAL_BALANCE", "1000"))

# ===== Logging =====
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
