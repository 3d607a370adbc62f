# admin/tables.py
import logging
from typing import List

from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from domain.errors import BadRequestError, TableNotFoundError, error_message
from domain.identifiers import quote, validate_column_type, validate_identifier
from domain.models import (
    ColumnDropResult,
    ColumnInfo,
    ColumnSpec,
    SearchFlag,
    TableUpdate,
    TableUpdateResult,
)
from infra.database import Database
from infra.metadata_store import SearchMetadataStore

logger = logging.getLogger(__name__)


class TableAdmin:
    """Table and column DDL, with the searchable flags kept in step."""

    def __init__(self, db: Database, metadata: SearchMetadataStore):
        self.db = db
        self.metadata = metadata

    def _table(self, name: str) -> str:
        name = validate_identifier(name, "table", reserved=(self.metadata.table,))
        return self.db.resolve_table(name)

    def _column(self, table: str, name: str) -> str:
        return self.db.resolve_column(table, validate_identifier(name, "column"))

    def _column_sql(self, col: ColumnSpec) -> str:
        return f"{quote(validate_identifier(col.name, 'column'))} {validate_column_type(col.type)}"

    def _require_table(self, name: str) -> None:
        if not self.db.has_table(name):
            raise TableNotFoundError(name)

    def list_tables(self) -> List[str]:
        return self.db.table_names(exclude=(self.metadata.table,))

    def create_table(self, name: str, columns: List[ColumnSpec]) -> None:
        name = self._table(name)
        if not columns:
            raise BadRequestError('Invalid request. "name" and "columns" are required.')
        if self.db.has_table(name):
            raise BadRequestError(f'Table "{name}" already exists.')
        columns_sql = ", ".join(self._column_sql(c) for c in columns)
        self.db.execute(f"CREATE TABLE IF NOT EXISTS {quote(name)} ({columns_sql})")
        self.metadata.upsert_many(name, [(c.name, c.isSearchable is not False) for c in columns])
        logger.info("Created table %s with %d columns", name, len(columns))

    def delete_table(self, name: str) -> None:
        name = self._table(name)
        self.db.execute(f"DROP TABLE IF EXISTS {quote(name)}")
        self.metadata.delete_table(name)
        logger.info("Dropped table %s", name)

    def get_schema(self, name: str) -> List[ColumnInfo]:
        name = self._table(name)
        try:
            columns = self.db.columns(name)
        except NoSuchTableError:
            raise TableNotFoundError(name)
        if not columns:
            raise TableNotFoundError(name)
        flags = self.metadata.flags(name)
        return [
            ColumnInfo(
                cid=i,
                name=c["name"],
                type=str(c["type"]),
                notnull=0 if c.get("nullable", True) else 1,
                dflt_value=c.get("default"),
                pk=int(c.get("primary_key") or 0),
                isSearchable=flags.get(c["name"], True),
            )
            for i, c in enumerate(columns)
        ]

    def update_search_metadata(self, name: str, columns: List[SearchFlag]) -> None:
        name = self._table(name)
        live = {c.name.lower(): c.name for c in self.get_schema(name)}
        unknown = [c.column_name for c in columns if c.column_name.lower() not in live]
        if unknown:
            raise BadRequestError(f'Unknown columns for table "{name}": {", ".join(unknown)}')
        self.metadata.upsert_many(name, [(live[c.column_name.lower()], c.is_searchable) for c in columns])

    def update_table(self, name: str, update: TableUpdate) -> TableUpdateResult:
        """Rename, rename columns, drop columns, add columns, in that order.

        Each DDL statement and its metadata update run separately. A column
        that fails to drop is reported in the result and the remaining
        drops still run; any other failure aborts the request.
        """
        current = self._table(name)
        self._require_table(current)

        if update.newName and update.newName != current:
            new_name = validate_identifier(update.newName, "table", reserved=(self.metadata.table,))
            self.db.execute(f"ALTER TABLE {quote(current)} RENAME TO {quote(new_name)}")
            self.metadata.rename_table(current, new_name)
            logger.info("Renamed table %s -> %s", current, new_name)
            current = new_name

        for rc in update.renameColumns:
            old = self._column(current, rc.oldName)
            new = validate_identifier(rc.newName, "column")
            self.db.execute(f"ALTER TABLE {quote(current)} RENAME COLUMN {quote(old)} TO {quote(new)}")
            self.metadata.rename_column(current, old, new)

        dropped = []
        for col in update.dropColumns:
            dropped.append(self._drop_column(current, col))

        for col in update.addColumns:
            self.db.execute(f"ALTER TABLE {quote(current)} ADD COLUMN {self._column_sql(col)}")
            self.metadata.upsert(current, col.name, col.isSearchable is not False)

        return TableUpdateResult(
            message=f'Table "{current}" updated successfully.',
            newName=current,
            droppedColumns=dropped,
        )

    def _drop_column(self, table: str, column: str) -> ColumnDropResult:
        try:
            column = self._column(table, column)
            self.db.execute(f"ALTER TABLE {quote(table)} DROP COLUMN {quote(column)}")
            self.metadata.delete_column(table, column)
        except (BadRequestError, SQLAlchemyError) as e:
            logger.warning("Failed to drop column %s from %s: %s", column, table, error_message(e))
            return ColumnDropResult(column=column, ok=False, error=error_message(e))
        return ColumnDropResult(column=column, ok=True)

    def prune_metadata(self) -> int:
        """Remove flags for tables or columns that no longer exist."""
        live = {}
        for table in self.list_tables():
            live[table] = {c["name"] for c in self.db.columns(table)}
        return self.metadata.prune_orphans(live)
