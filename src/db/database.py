import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from src.config import Config

BUSY_TIMEOUT_SECONDS = 30


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path or Config.DATABASE_PATH, timeout=BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Optional[Path] = None) -> Generator[sqlite3.Connection, None, None]:
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[Path] = None) -> None:
    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS channels (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                channel_id TEXT UNIQUE NOT NULL,
                channel_name TEXT NOT NULL,
                handle TEXT,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS processed_videos (
                video_id TEXT PRIMARY KEY,
                processed_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS summaries (
                id TEXT PRIMARY KEY,
                video_id TEXT NOT NULL,
                video_title TEXT NOT NULL,
                channel_name TEXT NOT NULL,
                summary TEXT NOT NULL,
                created_at TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'New',
                video_url TEXT,
                published_at TEXT,
                thumbnail_url TEXT,
                duration TEXT,
                view_count INTEGER DEFAULT 0
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS scheduler_state (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                last_run_at TEXT,
                last_email_at TEXT,
                updated_at TEXT
            )
        """)

        cursor.execute("""
            INSERT OR IGNORE INTO scheduler_state (id) VALUES (1)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_summaries_status ON summaries(status)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_summaries_video_id ON summaries(video_id)
        """)
