import sqlite3
import datetime

import config
from logger import get_logger
from models import AppState
from store import export_data, import_data, initial_state

logger = get_logger(__name__)


def get_connection():
    return sqlite3.connect(config.DB_FILE, check_same_thread=False)


def init_db():
    with get_connection() as conn:
        c = conn.cursor()
        # Single row holding the exported AppState document
        c.execute('''CREATE TABLE IF NOT EXISTS app_state (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            payload TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )''')
        conn.commit()


def save_state(state: AppState):
    with get_connection() as conn:
        c = conn.cursor()
        c.execute('''INSERT OR REPLACE INTO app_state (id, payload, updated_at) VALUES (1, ?, ?)''',
                  (export_data(state), datetime.datetime.now().isoformat()))
        conn.commit()
    logger.debug("Saved %d expenses to %s", len(state.expenses), config.DB_FILE)


def load_state() -> AppState:
    with get_connection() as conn:
        c = conn.cursor()
        c.execute('SELECT payload FROM app_state WHERE id=1')
        row = c.fetchone()
    if not row:
        return initial_state()
    return import_data(row[0])
