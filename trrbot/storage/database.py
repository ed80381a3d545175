"""
Bot database

Stores groups, their items and reaction mappings in SQLite:
- one connection per operation, run in the default thread executor
- all operations serialised by a single asyncio lock
- sqlite3 failures surface as DatabaseError
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from trrbot.core.error_handler import DatabaseError, ValidationError

T = TypeVar('T')


@dataclass
class Group:
    """Named group of items"""
    id: int
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass
class GroupItem:
    """Item belonging to a group"""
    id: int
    group_id: int
    item_text: str
    created_at: datetime


@dataclass
class ReactionMapping:
    """Trigger text to emoji reaction mapping"""
    id: int
    trigger_text: str
    reaction: str
    usage_count: int
    created_at: datetime
    updated_at: datetime


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _now() -> str:
    return datetime.now().isoformat()


def _row_to_group(row: sqlite3.Row) -> Group:
    return Group(
        id=row['id'],
        name=row['name'],
        created_at=_parse_timestamp(row['created_at']),
        updated_at=_parse_timestamp(row['updated_at'])
    )


def _row_to_item(row: sqlite3.Row) -> GroupItem:
    return GroupItem(
        id=row['id'],
        group_id=row['group_id'],
        item_text=row['item_text'],
        created_at=_parse_timestamp(row['created_at'])
    )


def _row_to_mapping(row: sqlite3.Row) -> ReactionMapping:
    return ReactionMapping(
        id=row['id'],
        trigger_text=row['trigger_text'],
        reaction=row['reaction'],
        usage_count=row['usage_count'],
        created_at=_parse_timestamp(row['created_at']),
        updated_at=_parse_timestamp(row['updated_at'])
    )


class BotDatabase:
    """
    SQLite store for groups and reaction mappings

    Supports:
    - group creation, deletion and listing
    - single and multi-item insertion (one transaction)
    - reaction mapping CRUD and usage counters
    """

    def __init__(self, db_path: str = "data/trrbot.db"):
        """
        Initialize the database

        Args:
            db_path: SQLite file path; ``:memory:`` is not supported since
                every operation opens its own connection
        """
        self.logger = logging.getLogger("trrbot.database")
        self.db_path = Path(db_path)

        # create the data directory
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # database connection lock
        self._db_lock = asyncio.Lock()
        self._closed = False

        self.logger.info(f"Database configured - path: {self.db_path}")

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        return conn

    async def _run(self, operation: str, func: Callable[[sqlite3.Connection], T]) -> T:
        """
        Run ``func`` with a fresh connection in the thread executor

        Args:
            operation: Operation name for error context
            func: Work to do; it commits itself when it writes

        Raises:
            DatabaseError: The database is closed or sqlite3 failed
        """
        if self._closed:
            raise DatabaseError(f"Database is closed (operation: {operation})", operation=operation)

        def run():
            conn = self._connect()
            try:
                return func(conn)
            finally:
                conn.close()

        async with self._db_lock:
            try:
                # run the database work in the thread pool
                loop = asyncio.get_event_loop()
                return await loop.run_in_executor(None, run)
            except sqlite3.Error as e:
                self.logger.error(f"Database operation {operation} failed: {e}")
                raise DatabaseError(
                    f"Database operation {operation} failed: {e}",
                    operation=operation,
                    error_type=type(e).__name__
                ) from e

    async def initialize(self) -> None:
        """Create tables and indexes"""
        def create_tables(conn: sqlite3.Connection) -> None:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS reaction_mappings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    trigger_text TEXT NOT NULL,
                    reaction TEXT NOT NULL,
                    usage_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS groups (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS group_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    group_id INTEGER NOT NULL,
                    item_text TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY (group_id) REFERENCES groups(id) ON DELETE CASCADE
                )
            ''')

            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_reaction_mappings_trigger
                ON reaction_mappings(trigger_text)
            ''')

            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_group_items_group_id
                ON group_items(group_id)
            ''')

            conn.commit()

        await self._run("initialize", create_tables)
        self.logger.info("Database tables initialized")

    async def close(self) -> None:
        """Close the database; later operations raise DatabaseError"""
        async with self._db_lock:
            self._closed = True
        self.logger.info("Database closed")

    # groups

    async def get_all_groups(self) -> List[Group]:
        def query(conn: sqlite3.Connection) -> List[Group]:
            rows = conn.execute('SELECT * FROM groups ORDER BY name').fetchall()
            return [_row_to_group(row) for row in rows]

        return await self._run("get_all_groups", query)

    async def get_group_by_name(self, name: str) -> Optional[Group]:
        def query(conn: sqlite3.Connection) -> Optional[Group]:
            row = conn.execute('SELECT * FROM groups WHERE name = ?', (name,)).fetchone()
            return _row_to_group(row) if row else None

        return await self._run("get_group_by_name", query)

    async def create_group(self, name: str) -> Group:
        """
        Create a group

        Args:
            name: Validated group name

        Returns:
            The created group

        Raises:
            ValidationError: A group with this name already exists
        """
        def insert(conn: sqlite3.Connection) -> Optional[Group]:
            now = _now()
            try:
                cursor = conn.execute(
                    'INSERT INTO groups (name, created_at, updated_at) VALUES (?, ?, ?)',
                    (name, now, now)
                )
            except sqlite3.IntegrityError:
                return None
            conn.commit()
            row = conn.execute('SELECT * FROM groups WHERE id = ?', (cursor.lastrowid,)).fetchone()
            return _row_to_group(row)

        group = await self._run("create_group", insert)
        if group is None:
            raise ValidationError(
                f"Group already exists: {name}",
                f'グループ名 "{name}" は既に存在します。',
                group_name=name
            )

        self.logger.debug(f"Group created: {name} (id={group.id})")
        return group

    async def delete_group_by_name(self, name: str) -> bool:
        """Delete a group and, through the cascade, its items"""
        def delete(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute('DELETE FROM groups WHERE name = ?', (name,))
            conn.commit()
            return cursor.rowcount > 0

        return await self._run("delete_group_by_name", delete)

    async def get_items_by_group_name(self, name: str) -> List[GroupItem]:
        def query(conn: sqlite3.Connection) -> List[GroupItem]:
            rows = conn.execute('''
                SELECT group_items.* FROM group_items
                JOIN groups ON groups.id = group_items.group_id
                WHERE groups.name = ?
                ORDER BY group_items.id
            ''', (name,)).fetchall()
            return [_row_to_item(row) for row in rows]

        return await self._run("get_items_by_group_name", query)

    async def add_item(self, group_id: int, item_text: str) -> GroupItem:
        items = await self.add_items(group_id, [item_text])
        return items[0]

    async def add_items(self, group_id: int, item_texts: Sequence[str]) -> List[GroupItem]:
        """
        Add several items to a group in one transaction

        Either every item is stored or none is.

        Args:
            group_id: Target group id
            item_texts: Validated item texts

        Returns:
            The stored items in insertion order
        """
        texts = list(item_texts)

        def insert(conn: sqlite3.Connection) -> List[GroupItem]:
            now = _now()
            ids = []
            try:
                for text in texts:
                    cursor = conn.execute(
                        'INSERT INTO group_items (group_id, item_text, created_at) VALUES (?, ?, ?)',
                        (group_id, text, now)
                    )
                    ids.append(cursor.lastrowid)
                conn.execute('UPDATE groups SET updated_at = ? WHERE id = ?', (now, group_id))
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise

            placeholders = ','.join('?' for _ in ids)
            rows = conn.execute(
                f'SELECT * FROM group_items WHERE id IN ({placeholders}) ORDER BY id',
                ids
            ).fetchall()
            return [_row_to_item(row) for row in rows]

        if not texts:
            return []

        return await self._run("add_items", insert)

    async def delete_item(self, group_name: str, item_text: str) -> bool:
        """Delete one item with the given text from a group"""
        def delete(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute('''
                DELETE FROM group_items WHERE id = (
                    SELECT group_items.id FROM group_items
                    JOIN groups ON groups.id = group_items.group_id
                    WHERE groups.name = ? AND group_items.item_text = ?
                    ORDER BY group_items.id
                    LIMIT 1
                )
            ''', (group_name, item_text))
            conn.commit()
            return cursor.rowcount > 0

        return await self._run("delete_item", delete)

    async def clear_items(self, group_name: str) -> bool:
        """Delete every item of a group; False when the group does not exist"""
        def delete(conn: sqlite3.Connection) -> bool:
            row = conn.execute('SELECT id FROM groups WHERE name = ?', (group_name,)).fetchone()
            if row is None:
                return False
            conn.execute('DELETE FROM group_items WHERE group_id = ?', (row['id'],))
            conn.execute('UPDATE groups SET updated_at = ? WHERE id = ?', (_now(), row['id']))
            conn.commit()
            return True

        return await self._run("clear_items", delete)

    # reaction mappings

    async def get_all_reaction_mappings(self) -> List[ReactionMapping]:
        def query(conn: sqlite3.Connection) -> List[ReactionMapping]:
            rows = conn.execute('SELECT * FROM reaction_mappings ORDER BY id').fetchall()
            return [_row_to_mapping(row) for row in rows]

        return await self._run("get_all_reaction_mappings", query)

    async def get_reaction_mappings_by_trigger(self, trigger_text: str) -> List[ReactionMapping]:
        def query(conn: sqlite3.Connection) -> List[ReactionMapping]:
            rows = conn.execute(
                'SELECT * FROM reaction_mappings WHERE trigger_text = ? ORDER BY id',
                (trigger_text,)
            ).fetchall()
            return [_row_to_mapping(row) for row in rows]

        return await self._run("get_reaction_mappings_by_trigger", query)

    async def create_reaction_mapping(self, trigger_text: str, reaction: str) -> ReactionMapping:
        def insert(conn: sqlite3.Connection) -> ReactionMapping:
            now = _now()
            cursor = conn.execute('''
                INSERT INTO reaction_mappings (trigger_text, reaction, usage_count, created_at, updated_at)
                VALUES (?, ?, 0, ?, ?)
            ''', (trigger_text, reaction, now, now))
            conn.commit()
            row = conn.execute(
                'SELECT * FROM reaction_mappings WHERE id = ?', (cursor.lastrowid,)
            ).fetchone()
            return _row_to_mapping(row)

        mapping = await self._run("create_reaction_mapping", insert)
        self.logger.debug(f"Reaction mapping created: {trigger_text} -> {reaction}")
        return mapping

    async def delete_reaction_mapping(self, trigger_text: str, reaction: str) -> bool:
        def delete(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute(
                'DELETE FROM reaction_mappings WHERE trigger_text = ? AND reaction = ?',
                (trigger_text, reaction)
            )
            conn.commit()
            return cursor.rowcount > 0

        return await self._run("delete_reaction_mapping", delete)

    async def increment_reaction_usage(self, trigger_text: str, reaction: str) -> bool:
        """Bump the usage counter of the (trigger, reaction) mapping"""
        def update(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute('''
                UPDATE reaction_mappings
                SET usage_count = usage_count + 1, updated_at = ?
                WHERE trigger_text = ? AND reaction = ?
            ''', (_now(), trigger_text, reaction))
            conn.commit()
            return cursor.rowcount > 0

        return await self._run("increment_reaction_usage", update)
