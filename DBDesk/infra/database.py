# infra/database.py
import base64
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection, Engine

from domain.identifiers import quote

logger = logging.getLogger(__name__)


def jsonable(values: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a row dict that JSON can encode (blobs become base64)."""
    out = {}
    for key, value in values.items():
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = base64.b64encode(bytes(value)).decode("ascii")
        out[key] = value
    return out


def row_to_dict(row) -> Dict[str, Any]:
    return jsonable(dict(row._mapping))


class Database:
    """Owns the engine for the embedded store.

    Created once at startup and handed to every component that needs it.
    """

    def __init__(self, url: str, echo: bool = False):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, connect_args=connect_args)

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        with self.engine.begin() as conn:
            yield conn

    def execute(self, sql: str, params: Dict[str, Any] | None = None) -> Tuple[int, Optional[int]]:
        """Run one statement in its own transaction; returns (rowcount, lastrowid)."""
        with self.begin() as conn:
            result = conn.execute(text(sql), params or {})
            return result.rowcount, result.lastrowid

    def fetch_all(self, sql: str, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        with self.engine.connect() as conn:
            return [row_to_dict(r) for r in conn.execute(text(sql), params or {})]

    def select_all(self, table: str) -> List[Dict[str, Any]]:
        """Every row of `table` as raw dicts. `table` must already be validated."""
        with self.engine.connect() as conn:
            return [dict(r._mapping) for r in conn.execute(text(f"SELECT * FROM {quote(table)}"))]

    def table_names(self, exclude: tuple = ()) -> List[str]:
        # the sqlite dialect already hides sqlite_* tables
        return [t for t in inspect(self.engine).get_table_names() if t not in exclude]

    def has_table(self, name: str) -> bool:
        return inspect(self.engine).has_table(name)

    def columns(self, table: str) -> List[Dict[str, Any]]:
        """Column definitions in declaration order; raises NoSuchTableError."""
        return inspect(self.engine).get_columns(table)

    # SQLite matches identifiers case-insensitively (ASCII folding), so a
    # name from a request may differ in case from the one in the catalog.

    def resolve_table(self, name: str) -> str:
        """Catalog spelling of table `name`, or `name` itself if there is none."""
        folded = name.lower()
        for t in self.table_names():
            if t.lower() == folded:
                return t
        return name

    def resolve_column(self, table: str, name: str) -> str:
        """Catalog spelling of column `name` in `table`; raises NoSuchTableError."""
        folded = name.lower()
        for c in self.columns(table):
            if c["name"].lower() == folded:
                return c["name"]
        return name

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Closed database %s", self.url)
