# admin/records.py
from typing import Any, Dict, List, Optional

from domain.errors import BadRequestError, RowNotFoundError, TableNotFoundError
from domain.identifiers import quote, validate_identifier
from infra.database import Database

SCALARS = (str, int, float, bool, type(None))


class RecordService:
    """Row CRUD on any user table, keyed by its `id` column."""

    def __init__(self, db: Database, reserved: tuple = ()):
        self.db = db
        self.reserved = reserved

    def _table(self, name: str) -> str:
        name = validate_identifier(name, "table", reserved=self.reserved)
        if not self.db.has_table(name):
            raise TableNotFoundError(name)
        return name

    @staticmethod
    def _columns(values: Dict[str, Any]) -> List[str]:
        if not values:
            raise BadRequestError("Request body must contain at least one column.")
        for key, value in values.items():
            if not isinstance(value, SCALARS):
                raise BadRequestError(f"Column {key!r} must hold a scalar value.")
        return [validate_identifier(k, "column") for k in values]

    @staticmethod
    def _row_key(row_id):
        if isinstance(row_id, str) and row_id.lstrip("-").isdigit():
            return int(row_id)
        return row_id

    def list_rows(self, table: str) -> List[Dict[str, Any]]:
        table = self._table(table)
        return self.db.fetch_all(f"SELECT * FROM {quote(table)}")

    def create_row(self, table: str, values: Dict[str, Any]) -> Optional[int]:
        table = self._table(table)
        cols = self._columns(values)
        params = {f"p{i}": values[c] for i, c in enumerate(cols)}
        sql = (
            f"INSERT INTO {quote(table)} ({', '.join(quote(c) for c in cols)}) "
            f"VALUES ({', '.join(':' + p for p in params)})"
        )
        _, last_id = self.db.execute(sql, params)
        return last_id

    def update_row(self, table: str, row_id, values: Dict[str, Any]) -> None:
        table = self._table(table)
        cols = self._columns(values)
        params = {f"p{i}": values[c] for i, c in enumerate(cols)}
        params["row_id"] = self._row_key(row_id)
        set_clause = ", ".join(f"{quote(c)} = :p{i}" for i, c in enumerate(cols))
        count, _ = self.db.execute(f"UPDATE {quote(table)} SET {set_clause} WHERE id = :row_id", params)
        if count == 0:
            raise RowNotFoundError(table, row_id)

    def delete_row(self, table: str, row_id) -> None:
        table = self._table(table)
        count, _ = self.db.execute(f"DELETE FROM {quote(table)} WHERE id = :row_id", {"row_id": self._row_key(row_id)})
        if count == 0:
            raise RowNotFoundError(table, row_id)
