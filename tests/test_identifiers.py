import pytest

from domain.errors import InvalidIdentifierError
from domain.identifiers import quote, validate_column_type, validate_identifier


@pytest.mark.parametrize("name", ["users", "_private", "Order_Items2"])
def test_valid_identifiers(name):
    assert validate_identifier(name) == name


@pytest.mark.parametrize("name", ["", "1abc", "users; DROP TABLE x", 'a"b', "with space", "sqlite_master", None, 5, "x" * 65])
def test_invalid_identifiers(name):
    with pytest.raises(InvalidIdentifierError):
        validate_identifier(name)


def test_reserved_names_are_rejected_case_insensitively():
    with pytest.raises(InvalidIdentifierError):
        validate_identifier("_Search_Metadata", "table", reserved=("_search_metadata",))


@pytest.mark.parametrize("col_type", ["TEXT", "INTEGER PRIMARY KEY AUTOINCREMENT", "VARCHAR(255) NOT NULL", "DECIMAL(10, 2)"])
def test_valid_column_types(col_type):
    assert validate_column_type(col_type) == col_type


@pytest.mark.parametrize("col_type", ["", "TEXT; DROP TABLE users", "TEXT DEFAULT 'x'", "INT -- comment", None])
def test_invalid_column_types(col_type):
    with pytest.raises(InvalidIdentifierError):
        validate_column_type(col_type)


def test_quote():
    assert quote("users") == '"users"'
    assert quote('a"b') == '"a""b"'
