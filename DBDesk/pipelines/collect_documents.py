# pipelines/collect_documents.py
import logging
from typing import Dict, List, Tuple

from sqlalchemy.exc import NoSuchTableError, OperationalError

from infra.database import Database, jsonable
from infra.metadata_store import SearchMetadataStore

logger = logging.getLogger(__name__)

TABLE_CATEGORY = "Tables"
DATA_CATEGORY = "Relevant data"


def _table_doc(table: str) -> Dict:
    return {
        "id": f"table-{table}",
        "type": "table",
        "name": table,
        "text": table,
        "category": TABLE_CATEGORY,
    }


def _row_text(row: Dict, searchable: List[str]) -> str:
    parts = []
    for col in searchable:
        value = row.get(col)
        if value is None or isinstance(value, (bytes, bytearray, memoryview)):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        parts.append(f"{col}: {value}")
    return " ".join(parts)


def collect_documents(db: Database, metadata: SearchMetadataStore) -> List[Dict]:
    """Snapshot the database as search documents.

    One table document per table, then one data document per row that has
    searchable text. A table that vanishes while being read is skipped as a
    whole so the index never sees half of it.
    """
    snapshot: List[Tuple[str, List[str], List[Dict]]] = []
    for table in db.table_names(exclude=(metadata.table,)):
        try:
            columns = db.columns(table)
            rows = db.select_all(table)
        except (NoSuchTableError, OperationalError) as e:
            logger.warning("Skipping table %s during search collection: %s", table, e)
            continue
        flags = metadata.flags(table)
        searchable = [c["name"] for c in columns if flags.get(c["name"], True)]
        snapshot.append((table, searchable, rows))

    documents = [_table_doc(table) for table, _, _ in snapshot]

    # real row ids first so synthetic ones never collide with them
    used_ids = {
        f"data-{table}-{row['id']}"
        for table, _, rows in snapshot
        for row in rows
        if row.get("id") is not None
    }
    emitted = set()
    counter = 0

    for table, searchable, rows in snapshot:
        for row in rows:
            text_blob = _row_text(row, searchable)
            if not text_blob.strip():
                continue

            row_id = row.get("id")
            if row_id is not None:
                doc_id = f"data-{table}-{row_id}"
                if doc_id in emitted:
                    logger.warning("Duplicate row id %s in table %s, skipping row", row_id, table)
                    continue
            else:
                counter += 1
                while f"data-{table}-{counter}" in used_ids:
                    counter += 1
                doc_id = f"data-{table}-{counter}"
            emitted.add(doc_id)

            doc = {
                "id": doc_id,
                "type": "data",
                "tableName": table,
                "text": text_blob,
                "raw": jsonable(row),
                "category": DATA_CATEGORY,
            }
            if row_id is not None:
                doc["dataId"] = row_id
            documents.append(doc)

    logger.debug("Collected %d documents from %d tables", len(documents), len(snapshot))
    return documents
