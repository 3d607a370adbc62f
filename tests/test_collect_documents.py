from sqlalchemy.exc import NoSuchTableError

from pipelines.collect_documents import collect_documents


def _docs_by_id(db, metadata):
    return {d["id"]: d for d in collect_documents(db, metadata)}


def test_table_without_rows_yields_only_its_table_document(db, metadata):
    db.execute('CREATE TABLE "empty_t" (id INTEGER PRIMARY KEY, label TEXT)')

    docs = collect_documents(db, metadata)

    assert docs == [{
        "id": "table-empty_t",
        "type": "table",
        "name": "empty_t",
        "text": "empty_t",
        "category": "Tables",
    }]


def test_metadata_table_is_never_collected(db, metadata):
    metadata.ensure()
    assert collect_documents(db, metadata) == []


def test_data_document_text_uses_searchable_columns_in_order(db, metadata):
    db.execute('CREATE TABLE "orders" (id INTEGER PRIMARY KEY, status TEXT, secret TEXT, qty INTEGER)')
    db.execute("INSERT INTO orders (id, status, secret, qty) VALUES (42, 'shipped', 'hunter2', 3)")
    metadata.upsert("orders", "secret", False)

    doc = _docs_by_id(db, metadata)["data-orders-42"]

    assert doc["text"] == "id: 42 status: shipped qty: 3"
    assert doc["type"] == "data"
    assert doc["tableName"] == "orders"
    assert doc["dataId"] == 42
    assert doc["category"] == "Relevant data"
    assert doc["raw"] == {"id": 42, "status": "shipped", "secret": "hunter2", "qty": 3}


def test_rows_without_searchable_text_are_skipped(db, metadata):
    db.execute('CREATE TABLE "notes" (id INTEGER PRIMARY KEY, title TEXT, body TEXT)')
    db.execute("INSERT INTO notes (id, title, body) VALUES (1, NULL, '   ')")
    db.execute("INSERT INTO notes (id, title, body) VALUES (2, 'hello', NULL)")
    metadata.upsert("notes", "id", False)

    docs = _docs_by_id(db, metadata)

    assert "data-notes-1" not in docs
    assert docs["data-notes-2"]["text"] == "title: hello"


def test_non_searchable_column_keeps_row_eligible_through_other_columns(db, metadata):
    db.execute('CREATE TABLE "people" (id INTEGER PRIMARY KEY, name TEXT, email TEXT)')
    db.execute("INSERT INTO people (id, name, email) VALUES (1, 'ann', 'ann@example.com')")
    metadata.upsert("people", "email", False)

    doc = _docs_by_id(db, metadata)["data-people-1"]

    assert "email" not in doc["text"]
    assert "name: ann" in doc["text"]


def test_rows_without_id_get_synthetic_ids_that_avoid_real_ones(db, metadata):
    db.execute('CREATE TABLE "mixed" (id INTEGER, label TEXT)')
    db.execute("INSERT INTO mixed (id, label) VALUES (NULL, 'first')")
    db.execute("INSERT INTO mixed (id, label) VALUES (1, 'second')")
    db.execute('CREATE TABLE "tags" (label TEXT)')
    db.execute("INSERT INTO tags (label) VALUES ('a')")

    docs = _docs_by_id(db, metadata)

    assert docs["data-mixed-1"]["raw"]["label"] == "second"
    assert docs["data-mixed-2"]["raw"]["label"] == "first"
    assert "dataId" not in docs["data-mixed-2"]
    assert docs["data-tags-3"]["text"] == "label: a"


def test_blob_values_are_not_indexed_and_raw_is_json_safe(db, metadata):
    db.execute('CREATE TABLE "files" (id INTEGER PRIMARY KEY, name TEXT, data BLOB)')
    db.execute("INSERT INTO files (id, name, data) VALUES (1, 'a.bin', x'0001')")

    doc = _docs_by_id(db, metadata)["data-files-1"]

    assert doc["text"] == "id: 1 name: a.bin"
    assert doc["raw"]["data"] == "AAE="


def test_table_dropped_during_collection_is_skipped_whole(db, metadata, monkeypatch):
    db.execute('CREATE TABLE "keep" (id INTEGER PRIMARY KEY, v TEXT)')
    db.execute('CREATE TABLE "gone" (id INTEGER PRIMARY KEY, v TEXT)')
    db.execute("INSERT INTO keep (id, v) VALUES (1, 'x')")
    db.execute("INSERT INTO gone (id, v) VALUES (1, 'y')")

    real_select = db.select_all

    def flaky_select(table):
        if table == "gone":
            raise NoSuchTableError(table)
        return real_select(table)

    monkeypatch.setattr(db, "select_all", flaky_select)

    ids = set(_docs_by_id(db, metadata))

    assert ids == {"table-keep", "data-keep-1"}
