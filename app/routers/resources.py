from fastapi import APIRouter, Depends

from app.dependencies import get_database_service, require_api_key
from app.routers.tools import MarkdownResponse
from app.services.database_service import DatabaseService

router = APIRouter(
    prefix="/resources/schema",
    dependencies=[Depends(require_api_key)],
    default_response_class=MarkdownResponse,
)


@router.get("/overview", name="schema_overview")
def schema_overview(svc: DatabaseService = Depends(get_database_service)) -> str:
    return svc.schema_overview()


@router.get("/relationships", name="schema_relationships")
def relationships(svc: DatabaseService = Depends(get_database_service)) -> str:
    return svc.relationships()


@router.get("/table/{table_name}", name="schema_table")
def table(table_name: str, svc: DatabaseService = Depends(get_database_service)) -> str:
    return svc.table_resource(table_name)
