# domain/identifiers.py
import re
from typing import Iterable
from domain.errors import InvalidIdentifierError

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
COLUMN_TYPE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_ (),]*$")
MAX_IDENTIFIER_LENGTH = 64


def validate_identifier(name, kind: str = "identifier", reserved: Iterable[str] = ()) -> str:
    """Return `name` if it is safe to interpolate into SQL, else raise."""
    if not isinstance(name, str) or not IDENTIFIER_RE.match(name):
        raise InvalidIdentifierError(f"Invalid {kind} name: {name!r}")
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(f"{kind.capitalize()} name too long: {name!r}")
    lowered = name.lower()
    if lowered.startswith("sqlite_") or lowered in {r.lower() for r in reserved}:
        raise InvalidIdentifierError(f"Reserved {kind} name: {name!r}")
    return name


def validate_column_type(col_type) -> str:
    if not isinstance(col_type, str) or not COLUMN_TYPE_RE.match(col_type.strip()):
        raise InvalidIdentifierError(f"Invalid column type: {col_type!r}")
    return col_type.strip()


def quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'
