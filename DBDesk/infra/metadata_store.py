# infra/metadata_store.py
import logging
from typing import Dict, Iterable, List, Set, Tuple

from infra.database import Database
from domain.identifiers import quote

logger = logging.getLogger(__name__)


class SearchMetadataStore:
    """Per-(table, column) searchable flags, kept in a side table."""

    def __init__(self, db: Database, table: str = "_search_metadata"):
        self.db = db
        self.table = table
        self._q = quote(table)
        self._ready = False

    def ensure(self) -> None:
        """Create the side table on first use."""
        if self._ready:
            return
        self.db.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._q} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                table_name TEXT NOT NULL,
                column_name TEXT NOT NULL,
                is_searchable INTEGER NOT NULL DEFAULT 1,
                UNIQUE(table_name, column_name)
            )
            """
        )
        self._ready = True

    def flags(self, table_name: str) -> Dict[str, bool]:
        """Column name -> searchable, for columns that have an entry."""
        self.ensure()
        rows = self.db.fetch_all(
            f"SELECT column_name, is_searchable FROM {self._q} WHERE table_name = :t",
            {"t": table_name},
        )
        return {r["column_name"]: bool(r["is_searchable"]) for r in rows}

    def upsert(self, table_name: str, column_name: str, is_searchable: bool) -> None:
        self.ensure()
        self.db.execute(
            f"""
            INSERT INTO {self._q} (table_name, column_name, is_searchable)
            VALUES (:t, :c, :s)
            ON CONFLICT(table_name, column_name) DO UPDATE SET
              is_searchable = excluded.is_searchable
            """,
            {"t": table_name, "c": column_name, "s": 1 if is_searchable else 0},
        )

    def upsert_many(self, table_name: str, flags: Iterable[Tuple[str, bool]]) -> None:
        for column_name, is_searchable in flags:
            self.upsert(table_name, column_name, is_searchable)

    def rename_table(self, old: str, new: str) -> None:
        self.ensure()
        self.db.execute(
            f"UPDATE {self._q} SET table_name = :new WHERE table_name = :old",
            {"new": new, "old": old},
        )

    def rename_column(self, table_name: str, old: str, new: str) -> None:
        self.ensure()
        self.db.execute(
            f"UPDATE {self._q} SET column_name = :new WHERE table_name = :t AND column_name = :old",
            {"new": new, "t": table_name, "old": old},
        )

    def delete_column(self, table_name: str, column_name: str) -> None:
        self.ensure()
        self.db.execute(
            f"DELETE FROM {self._q} WHERE table_name = :t AND column_name = :c",
            {"t": table_name, "c": column_name},
        )

    def delete_table(self, table_name: str) -> None:
        self.ensure()
        self.db.execute(f"DELETE FROM {self._q} WHERE table_name = :t", {"t": table_name})

    def entries(self) -> List[Dict]:
        self.ensure()
        return self.db.fetch_all(
            f"SELECT table_name, column_name, is_searchable FROM {self._q} ORDER BY id"
        )

    def prune_orphans(self, live: Dict[str, Set[str]]) -> int:
        """Drop entries whose table or column is not in `live` (table -> column names)."""
        removed = 0
        for e in self.entries():
            if e["column_name"] not in live.get(e["table_name"], set()):
                self.delete_column(e["table_name"], e["column_name"])
                removed += 1
        if removed:
            logger.info("Pruned %d stale search metadata entries", removed)
        return removed
