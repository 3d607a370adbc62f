from domain.ranking import categorize_results, parse_numeric_query


def table_hit(name, score=1.0):
    return {"id": f"table-{name}", "type": "table", "name": name, "score": score}


def data_hit(table, row_id, score=1.0):
    hit = {"id": f"data-{table}-{row_id}", "type": "data", "tableName": table, "score": score}
    if row_id is not None:
        hit["dataId"] = row_id
    return hit


def test_parse_numeric_query():
    assert parse_numeric_query("42") == 42
    assert parse_numeric_query("  -7") == -7
    assert parse_numeric_query("42abc") == 42
    assert parse_numeric_query("abc") is None
    assert parse_numeric_query("") is None


def test_empty_hits_give_empty_response():
    assert categorize_results([], "anything") == {}


def test_best_hit_is_top_match_and_removed_from_its_bucket():
    hits = [table_hit("users", 5), table_hit("user_roles", 3), data_hit("users", 1, 2)]

    result = categorize_results(hits, "users")

    assert [h["id"] for h in result["topMatches"]] == ["table-users"]
    assert [h["id"] for h in result["tables"]] == ["table-user_roles"]
    assert [h["id"] for h in result["relevantData"]] == ["data-users-1"]


def test_exact_numeric_id_joins_top_matches_regardless_of_rank():
    hits = [data_hit("orders", 7, 9), table_hit("orders", 4), data_hit("orders", 42, 1)]

    result = categorize_results(hits, "42")

    assert [h["id"] for h in result["topMatches"]] == ["data-orders-7", "data-orders-42"]
    assert [h["id"] for h in result["tables"]] == ["table-orders"]
    assert "relevantData" not in result


def test_numeric_query_ignores_tables_and_non_integer_ids():
    hits = [
        table_hit("a", 3),
        {"id": "data-t-x", "type": "data", "dataId": "42", "score": 2},
        {"id": "data-t-y", "type": "data", "dataId": True, "score": 1},
    ]

    result = categorize_results(hits, "42")

    assert [h["id"] for h in result["topMatches"]] == ["table-a"]
    assert [h["id"] for h in result["relevantData"]] == ["data-t-x", "data-t-y"]

    assert [h["id"] for h in categorize_results(hits, "1")["topMatches"]] == ["table-a"]


def test_no_id_appears_in_two_buckets_and_empty_buckets_are_omitted():
    hits = [data_hit("orders", 1, 3), data_hit("orders", 2, 2)]

    result = categorize_results(hits, "shipped")

    assert set(result) == {"topMatches", "relevantData"}
    ids = [h["id"] for bucket in result.values() for h in bucket]
    assert len(ids) == len(set(ids)) == 2
