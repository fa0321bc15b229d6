"""SQLite-backed store.

sqlite3 is blocking, so every statement runs in the default executor. One
connection is shared behind a thread lock; writes are small and rare next to
chat traffic so a single connection is plenty.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import Callable
from typing import Any

from ..errors.internal import StoreError
from .models import ChannelRecord, LinkPost, Rank, RoomRules, UserRecord

_SCHEMA = """
CREATE TABLE IF NOT EXISTS channels (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    connected INTEGER NOT NULL DEFAULT 0,
    offline_only INTEGER NOT NULL DEFAULT 1
);
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    rank INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS link_posts (
    room_id INTEGER NOT NULL,
    link TEXT NOT NULL,
    poster_id INTEGER NOT NULL,
    poster_name TEXT NOT NULL,
    posted_at REAL NOT NULL,
    PRIMARY KEY (room_id, link)
);
CREATE INDEX IF NOT EXISTS idx_link_posts_posted_at ON link_posts (posted_at);
"""


class SQLiteStore:
    def __init__(self, db_path: str = "mechbot.db") -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        # Room rules are runtime state and are never written to disk.
        self._room_rules: dict[int, RoomRules] = {}

    async def open(self) -> None:
        await self._run(self._open_sync)
        logging.info(f"💾 Store opened at {self.db_path}")

    def _open_sync(self) -> None:
        if self._conn is not None:
            return
        conn = sqlite3.connect(self.db_path, timeout=5.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout = 5000")
        if self.db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
        conn.executescript(_SCHEMA)
        conn.commit()
        self._conn = conn

    async def close(self) -> None:
        await self._run(self._close_sync)

    def _close_sync(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        def locked() -> Any:
            with self._lock:
                try:
                    return fn(*args)
                except sqlite3.Error as e:
                    if self._conn is not None:
                        self._conn.rollback()
                    raise StoreError(
                        f"SQLite operation failed: {str(e)}", data={"db_path": self.db_path}
                    ) from e

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, locked)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Store is not open", data={"db_path": self.db_path})
        return self._conn

    # Channels ------------------------------------------------------------

    @staticmethod
    def _channel(row: sqlite3.Row) -> ChannelRecord:
        return ChannelRecord(
            id=row["id"],
            name=row["name"],
            connected=bool(row["connected"]),
            offline_only=bool(row["offline_only"]),
        )

    async def find_channel(self, channel_id: int) -> ChannelRecord | None:
        def query() -> ChannelRecord | None:
            row = self._connection().execute(
                "SELECT * FROM channels WHERE id = ?", (channel_id,)
            ).fetchone()
            return self._channel(row) if row else None

        return await self._run(query)

    async def find_connected_channels(self) -> list[ChannelRecord]:
        def query() -> list[ChannelRecord]:
            rows = self._connection().execute(
                "SELECT * FROM channels WHERE connected = 1 ORDER BY name"
            ).fetchall()
            return [self._channel(r) for r in rows]

        return await self._run(query)

    async def find_or_create_channel(self, channel_id: int, name: str) -> ChannelRecord:
        def query() -> ChannelRecord:
            conn = self._connection()
            conn.execute(
                "INSERT OR IGNORE INTO channels (id, name) VALUES (?, ?)",
                (channel_id, name.lower()),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM channels WHERE id = ?", (channel_id,)).fetchone()
            return self._channel(row)

        return await self._run(query)

    async def save_channel(self, record: ChannelRecord) -> None:
        def query() -> None:
            conn = self._connection()
            conn.execute(
                "INSERT INTO channels (id, name, connected, offline_only) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, "
                "connected = excluded.connected, offline_only = excluded.offline_only",
                (record.id, record.name.lower(), int(record.connected), int(record.offline_only)),
            )
            conn.commit()

        await self._run(query)

    async def update_room_rules(self, room_id: int, rules: RoomRules) -> RoomRules:
        merged = self._room_rules.get(room_id, RoomRules()).merged(rules)
        self._room_rules[room_id] = merged
        return merged

    async def get_room_rules(self, room_id: int) -> RoomRules | None:
        return self._room_rules.get(room_id)

    # Users ---------------------------------------------------------------

    @staticmethod
    def _user(row: sqlite3.Row) -> UserRecord:
        try:
            rank = Rank(row["rank"])
        except ValueError:
            rank = Rank.DEFAULT
        return UserRecord(id=row["id"], name=row["name"], rank=rank)

    async def find_user(self, user_id: int) -> UserRecord | None:
        def query() -> UserRecord | None:
            row = self._connection().execute(
                "SELECT * FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return self._user(row) if row else None

        return await self._run(query)

    async def find_or_create_user(self, user_id: int, name: str) -> UserRecord:
        def query() -> UserRecord:
            conn = self._connection()
            conn.execute(
                "INSERT OR IGNORE INTO users (id, name) VALUES (?, ?)", (user_id, name.lower())
            )
            conn.commit()
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._user(row)

        return await self._run(query)

    async def save_user(self, record: UserRecord) -> None:
        def query() -> None:
            conn = self._connection()
            conn.execute(
                "INSERT INTO users (id, name, rank) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, rank = excluded.rank",
                (record.id, record.name.lower(), int(record.rank)),
            )
            conn.commit()

        await self._run(query)

    # Link posts ----------------------------------------------------------

    async def find_or_create_link_post(self, post: LinkPost) -> tuple[LinkPost, bool]:
        def query() -> tuple[LinkPost, bool]:
            conn = self._connection()
            cursor = conn.execute(
                "INSERT OR IGNORE INTO link_posts "
                "(room_id, link, poster_id, poster_name, posted_at) VALUES (?, ?, ?, ?, ?)",
                (post.room_id, post.link, post.poster_id, post.poster_name, post.posted_at),
            )
            conn.commit()
            if cursor.rowcount == 1:
                return post, True
            row = conn.execute(
                "SELECT * FROM link_posts WHERE room_id = ? AND link = ?",
                (post.room_id, post.link),
            ).fetchone()
            return (
                LinkPost(
                    room_id=row["room_id"],
                    link=row["link"],
                    poster_id=row["poster_id"],
                    poster_name=row["poster_name"],
                    posted_at=row["posted_at"],
                ),
                False,
            )

        return await self._run(query)

    async def delete_link_posts_older_than(self, cutoff: float) -> int:
        def query() -> int:
            conn = self._connection()
            cursor = conn.execute("DELETE FROM link_posts WHERE posted_at < ?", (cutoff,))
            conn.commit()
            return cursor.rowcount

        return await self._run(query)
