# domain/errors.py

class DBDeskError(Exception):
    """Base class for errors the API turns into a client response."""
    status_code = 500


class BadRequestError(DBDeskError):
    status_code = 400


class InvalidIdentifierError(BadRequestError):
    pass


class TableNotFoundError(DBDeskError):
    status_code = 404

    def __init__(self, table: str):
        super().__init__(f'Table "{table}" not found.')
        self.table = table


class RowNotFoundError(DBDeskError):
    status_code = 404

    def __init__(self, table: str, row_id):
        super().__init__(f'Row {row_id} not found in table "{table}".')
        self.table = table
        self.row_id = row_id


def error_message(exc: Exception) -> str:
    """The driver's own message for wrapped DBAPI errors, else str(exc)."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)
