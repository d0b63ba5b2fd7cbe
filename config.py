import os

DB_FILE = os.getenv("SPLIT_DB_FILE", "split_app.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Unset means console logging only
LOG_DIRECTORY = os.getenv("LOG_DIRECTORY")
LOG_NAME = os.getenv("LOG_NAME", "split_app.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", 10 * 1024 * 1024))

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "ARS")
DEFAULT_THEME = os.getenv("DEFAULT_THEME", "light")
