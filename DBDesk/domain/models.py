# domain/models.py
from pydantic import BaseModel
from typing import Any, Optional, List

class ColumnSpec(BaseModel):
    name: str
    type: str
    isSearchable: Optional[bool] = None

class CreateTableRequest(BaseModel):
    name: str
    columns: List[ColumnSpec]

class ColumnInfo(BaseModel):
    cid: int
    name: str
    type: str
    notnull: int
    dflt_value: Optional[Any] = None
    pk: int
    isSearchable: bool = True

class RenameColumn(BaseModel):
    oldName: str
    newName: str

class TableUpdate(BaseModel):
    newName: Optional[str] = None
    addColumns: List[ColumnSpec] = []
    dropColumns: List[str] = []
    renameColumns: List[RenameColumn] = []

class ColumnDropResult(BaseModel):
    column: str
    ok: bool
    error: Optional[str] = None

class TableUpdateResult(BaseModel):
    message: str
    newName: str
    droppedColumns: List[ColumnDropResult] = []

class SearchFlag(BaseModel):
    column_name: str
    is_searchable: bool

class SearchMetaUpdate(BaseModel):
    columns: List[SearchFlag]

class Message(BaseModel):
    message: str

class CreatedRow(BaseModel):
    message: str
    id: Optional[int] = None

class Suggestion(BaseModel):
    suggestion: str
    terms: List[str]
    score: float
