# api/routes.py
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from admin.records import RecordService
from admin.tables import TableAdmin
from domain.errors import BadRequestError
from domain.models import (
    ColumnInfo,
    CreatedRow,
    CreateTableRequest,
    Message,
    SearchMetaUpdate,
    Suggestion,
    TableUpdate,
    TableUpdateResult,
)
from retrieval.search_service import SearchService

tables_router = APIRouter(prefix="/tables", tags=["tables"])
data_router = APIRouter(prefix="/data", tags=["data"])
search_router = APIRouter(prefix="/search", tags=["search"])


def get_tables(request: Request) -> TableAdmin:
    return request.app.state.tables

def get_records(request: Request) -> RecordService:
    return request.app.state.records

def get_search(request: Request) -> SearchService:
    return request.app.state.search

def require_query(query: Optional[str] = Query(None)) -> str:
    if query is None or not query.strip():
        raise BadRequestError("Query parameter is required")
    return query


# --- tables ---

@tables_router.get("", response_model=List[str])
def list_tables(tables: TableAdmin = Depends(get_tables)):
    return tables.list_tables()

@tables_router.post("", response_model=Message, status_code=201)
def create_table(req: CreateTableRequest, tables: TableAdmin = Depends(get_tables)):
    tables.create_table(req.name, req.columns)
    return {"message": f'Table "{req.name}" created successfully.'}

@tables_router.get("/{name}", response_model=List[ColumnInfo])
def get_table_schema(name: str, tables: TableAdmin = Depends(get_tables)):
    return tables.get_schema(name)

@tables_router.delete("/{name}", response_model=Message)
def delete_table(name: str, tables: TableAdmin = Depends(get_tables)):
    tables.delete_table(name)
    return {"message": f'Table "{name}" deleted successfully.'}

@tables_router.patch("/{name}", response_model=TableUpdateResult)
def update_table(name: str, req: TableUpdate, tables: TableAdmin = Depends(get_tables)):
    return tables.update_table(name, req)

@tables_router.put("/{name}/search-meta", response_model=Message)
def update_search_metadata(name: str, req: SearchMetaUpdate, tables: TableAdmin = Depends(get_tables)):
    tables.update_search_metadata(name, req.columns)
    return {"message": "Search metadata updated successfully."}


# --- data ---

@data_router.get("/{table}")
def get_all_data(table: str, records: RecordService = Depends(get_records)):
    return records.list_rows(table)

@data_router.post("/{table}", response_model=CreatedRow, status_code=201)
def create_data(table: str, body: Dict[str, Any] = Body(...), records: RecordService = Depends(get_records)):
    row_id = records.create_row(table, body)
    return {"message": "Data created successfully", "id": row_id}

@data_router.put("/{table}/{row_id}", response_model=Message)
def update_data(table: str, row_id: str, body: Dict[str, Any] = Body(...), records: RecordService = Depends(get_records)):
    records.update_row(table, row_id, body)
    return {"message": "Data updated successfully"}

@data_router.delete("/{table}/{row_id}", response_model=Message)
def delete_data(table: str, row_id: str, records: RecordService = Depends(get_records)):
    records.delete_row(table, row_id)
    return {"message": "Data deleted successfully"}


# --- search ---

@search_router.get("")
def global_search(query: str = Depends(require_query), search: SearchService = Depends(get_search)):
    return search.search(query)

@search_router.get("/suggest", response_model=List[Suggestion])
def get_suggestions(query: str = Depends(require_query), search: SearchService = Depends(get_search)):
    return search.suggest(query)
