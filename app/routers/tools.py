from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.dependencies import get_database_service, require_api_key
from app.errors import AppError, DependencyError, TableNotFoundError
from app.schemas import ExecuteSelectRequest, ExecuteSelectResponse
from app.services.database_service import DatabaseService, table_not_found_message
from safequery.errors.codes import ErrorCode
from safequery.errors.mapper import map_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", dependencies=[Depends(require_api_key)])


class MarkdownResponse(PlainTextResponse):
    media_type = "text/markdown"


@router.post(
    "/execute-select",
    name="execute_select",
    response_model=ExecuteSelectResponse,
)
def execute_select(
    request: ExecuteSelectRequest,
    svc: DatabaseService = Depends(get_database_service),
) -> ExecuteSelectResponse:
    content, result = svc.run_select(request.query, request.max_rows)

    # ---- error path: contract-based mapping ----
    if not result.succeeded:
        code = result.error_code or ErrorCode.INTERNAL_ERROR
        status, retryable = map_error(code)
        logger.debug(
            "execute-select failed",
            extra={"error_code": code.value, "http_status": status},
        )
        raise AppError(
            message=content,
            http_status=status,
            code=code.value,
            retryable=retryable,
            details=[result.error_message] if result.error_message else None,
        )

    return ExecuteSelectResponse(
        ok=True,
        content=content,
        row_count=result.row_count,
        truncated=result.truncated,
        row_limit=result.effective_row_limit,
        columns=result.columns,
    )


@router.get("/list-tables", name="list_tables", response_class=MarkdownResponse)
def list_tables(svc: DatabaseService = Depends(get_database_service)) -> str:
    return svc.list_tables()


@router.get(
    "/table-schema/{table_name}",
    name="table_schema",
    response_class=MarkdownResponse,
)
def table_schema(
    table_name: str,
    svc: DatabaseService = Depends(get_database_service),
) -> str:
    try:
        content = svc.describe_table(table_name)
    except Exception as exc:
        logger.exception("table-schema lookup failed", extra={"table": table_name})
        raise DependencyError(
            message=f"Error getting table schema: {exc}", details=[table_name]
        ) from exc
    if content is None:
        raise TableNotFoundError(
            message=table_not_found_message(table_name), details=[table_name]
        )
    return content
