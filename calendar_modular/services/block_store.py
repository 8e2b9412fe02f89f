# File: calendar_modular/services/block_store.py
"""
SQLite record store for fixed blocks, flexible blocks and block groups.

Every query is scoped to a user_id partition. The engine never talks to
this store directly; callers read blocks out, hand them to the pure core,
and write accepted results back.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pytz

from calendar_modular.core.config_manager import Config
from calendar_modular.models import (
    Block,
    BlockGroup,
    FixedBlock,
    FlexibleBlock,
    TimeInterval,
    fixed_block_from_dict,
    flexible_block_from_dict,
    localize,
)
from calendar_modular.utils.logger import LoggerMixin

SCHEMA = """
CREATE TABLE IF NOT EXISTS block_groups (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    source_filename TEXT,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS fixed_blocks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    label TEXT NOT NULL,
    days TEXT NOT NULL,
    daily_start TEXT NOT NULL,
    daily_end TEXT NOT NULL,
    location TEXT,
    secondary_info TEXT,
    visible INTEGER NOT NULL DEFAULT 1,
    group_id TEXT
);
CREATE TABLE IF NOT EXISTS flexible_blocks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    label TEXT NOT NULL,
    start_at TEXT NOT NULL,
    end_at TEXT NOT NULL,
    notes TEXT,
    location_text TEXT,
    category_tag TEXT
);
CREATE INDEX IF NOT EXISTS idx_fixed_blocks_user ON fixed_blocks(user_id);
CREATE INDEX IF NOT EXISTS idx_fixed_blocks_group ON fixed_blocks(group_id);
CREATE INDEX IF NOT EXISTS idx_flexible_blocks_user ON flexible_blocks(user_id);
"""


class BlockStore(LoggerMixin):
    """
    Persists blocks per user partition.

    Flexible instants are stored in UTC. Naive ones are read as wall-clock
    time in the store timezone (default: Config.TARGET_TIMEZONE).
    """

    def __init__(self, db_path: Union[str, Path], tz: Optional[pytz.BaseTzInfo] = None):
        self.db_path = Path(db_path)
        self.tz = tz or Config.tz()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """One connection per operation, committed on success, rolled back on error."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ==================== Groups ====================

    def add_group(self, user_id: str, group: BlockGroup) -> BlockGroup:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO block_groups (id, user_id, name, source_filename, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (group.id, user_id, group.name, group.source_filename, group.created_at.isoformat()),
            )
        self.logger.info(f"Saved group '{group.name}' ({group.id})")
        return group

    def list_groups(self, user_id: str) -> List[BlockGroup]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM block_groups WHERE user_id = ? ORDER BY created_at", (user_id,)
            ).fetchall()
        return [
            BlockGroup(
                id=row['id'],
                name=row['name'],
                source_filename=row['source_filename'],
                created_at=datetime.fromisoformat(row['created_at']),
            )
            for row in rows
        ]

    def set_group_visibility(self, user_id: str, group_id: str, visible: bool) -> int:
        """Show or hide every fixed block in a group. Returns the number of rows changed."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE fixed_blocks SET visible = ? WHERE user_id = ? AND group_id = ?",
                (int(visible), user_id, group_id),
            )
        self.logger.info(
            f"{'Showed' if visible else 'Hid'} {cursor.rowcount} blocks in group {group_id}"
        )
        return cursor.rowcount

    def delete_group(self, user_id: str, group_id: str) -> int:
        """Delete a group and, in the same transaction, all of its blocks."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM fixed_blocks WHERE user_id = ? AND group_id = ?", (user_id, group_id)
            )
            conn.execute(
                "DELETE FROM block_groups WHERE user_id = ? AND id = ?", (user_id, group_id)
            )
        self.logger.info(f"Deleted group {group_id} and {cursor.rowcount} blocks")
        return cursor.rowcount

    # ==================== Blocks ====================

    def upsert_fixed(self, user_id: str, block: FixedBlock) -> None:
        data = block.to_dict()
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO fixed_blocks "
                "(id, user_id, label, days, daily_start, daily_end, location, secondary_info, visible, group_id) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    block.id, user_id, block.label, ''.join(data['days_of_week']),
                    data['daily_start'], data['daily_end'], block.location,
                    block.secondary_info, int(block.visible), block.group_id,
                ),
            )

    def upsert_fixed_many(self, user_id: str, blocks: List[FixedBlock]) -> int:
        for block in blocks:
            self.upsert_fixed(user_id, block)
        self.logger.info(f"Saved {len(blocks)} fixed blocks")
        return len(blocks)

    def _to_utc(self, moment: datetime, tz: Optional[pytz.BaseTzInfo]) -> str:
        return localize(moment, tz or self.tz).astimezone(pytz.utc).isoformat()

    def upsert_flexible(
        self,
        user_id: str,
        block: FlexibleBlock,
        tz: Optional[pytz.BaseTzInfo] = None
    ) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO flexible_blocks "
                "(id, user_id, label, start_at, end_at, notes, location_text, category_tag) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    block.id, user_id, block.label,
                    self._to_utc(block.occurrence.start, tz),
                    self._to_utc(block.occurrence.end, tz),
                    block.notes, block.location_text, block.category_tag,
                ),
            )

    def upsert(self, user_id: str, block: Block) -> None:
        if isinstance(block, FixedBlock):
            self.upsert_fixed(user_id, block)
        elif isinstance(block, FlexibleBlock):
            self.upsert_flexible(user_id, block)
        else:
            raise TypeError(f"Unknown block kind: {type(block).__name__}")

    def get_fixed_blocks(self, user_id: str, visible_only: bool = False) -> List[FixedBlock]:
        query = "SELECT * FROM fixed_blocks WHERE user_id = ?"
        if visible_only:
            query += " AND visible = 1"
        with self._connect() as conn:
            rows = conn.execute(query + " ORDER BY label, id", (user_id,)).fetchall()
        return [self._fixed_from_row(row) for row in rows]

    def get_flexible_blocks(self, user_id: str, tz: Optional[pytz.BaseTzInfo] = None) -> List[FlexibleBlock]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM flexible_blocks WHERE user_id = ? ORDER BY start_at, id", (user_id,)
            ).fetchall()
        return [self._flexible_from_row(row, tz or self.tz) for row in rows]

    def get_block(self, user_id: str, block_id: str, tz: Optional[pytz.BaseTzInfo] = None) -> Optional[Block]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM fixed_blocks WHERE user_id = ? AND id = ?", (user_id, block_id)
            ).fetchone()
            if row is not None:
                return self._fixed_from_row(row)
            row = conn.execute(
                "SELECT * FROM flexible_blocks WHERE user_id = ? AND id = ?", (user_id, block_id)
            ).fetchone()
        return self._flexible_from_row(row, tz or self.tz) if row is not None else None

    def set_visibility(self, user_id: str, block_id: str, visible: bool) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE fixed_blocks SET visible = ? WHERE user_id = ? AND id = ?",
                (int(visible), user_id, block_id),
            )
        return cursor.rowcount > 0

    def delete_block(self, user_id: str, block_id: str) -> bool:
        with self._connect() as conn:
            deleted = conn.execute(
                "DELETE FROM fixed_blocks WHERE user_id = ? AND id = ?", (user_id, block_id)
            ).rowcount
            deleted += conn.execute(
                "DELETE FROM flexible_blocks WHERE user_id = ? AND id = ?", (user_id, block_id)
            ).rowcount
        if deleted:
            self.logger.info(f"Deleted block {block_id}")
        return deleted > 0

    # ==================== Row mapping ====================

    @staticmethod
    def _fixed_from_row(row: sqlite3.Row) -> FixedBlock:
        return fixed_block_from_dict({
            'id': row['id'],
            'label': row['label'],
            'days_of_week': row['days'],
            'daily_start': row['daily_start'],
            'daily_end': row['daily_end'],
            'location': row['location'],
            'secondary_info': row['secondary_info'],
            'visible': bool(row['visible']),
            'group_id': row['group_id'],
        })

    @staticmethod
    def _flexible_from_row(row: sqlite3.Row, tz: Optional[pytz.BaseTzInfo]) -> FlexibleBlock:
        block = flexible_block_from_dict({
            'id': row['id'],
            'label': row['label'],
            'start': row['start_at'],
            'end': row['end_at'],
            'notes': row['notes'],
            'location_text': row['location_text'],
            'category_tag': row['category_tag'],
        })
        if tz is None:
            return block
        return block.moved_to(TimeInterval(
            block.occurrence.start.astimezone(tz),
            block.occurrence.end.astimezone(tz),
        ))
