"""
SafeQuery MCP server.

Exposes the same tools and resources as the HTTP surface over MCP so an
agent can introspect the schema and run read-only queries.

Run as:  python -m app.mcp_server        (stdio transport)
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP

from app.bootstrap import setup_logging
from app.dependencies import get_database_service
from app.errors import AppError
from app.services.database_service import QUERY_FAILED_PREFIX, DatabaseService
from app.settings import get_settings
from safequery import render

logger = logging.getLogger(__name__)

mcp = FastMCP("SafeQuery")


def _with_service(error_prefix: str, call: Callable[[DatabaseService], str]) -> str:
    """
    Run `call` against the shared service.

    Building the service can fail on bad configuration (unknown DB_MODE,
    missing DSN). MCP clients get that back as text like any other
    metadata error instead of a protocol-level failure.
    """
    try:
        svc = get_database_service()
    except AppError as exc:
        logger.error("Database service unavailable", extra={"code": exc.code, "error": str(exc)})
        return f"{error_prefix}{exc}"
    return call(svc)


# ─── Tools ────────────────────────────────────────────────


@mcp.tool(name="list-tables")
def list_tables() -> str:
    """
    Lists all accessible database tables, excluding system schemas.
    Returns table names with their owners, comments, and approximate row counts.
    """
    return _with_service("Error listing tables: ", lambda svc: svc.list_tables())


@mcp.tool(name="get-table-schema")
def get_table_schema(table_name: str) -> str:
    """
    Returns detailed schema information for a specific table, including
    columns with their data types, constraints (primary keys, unique, check),
    and foreign key relationships.

    Args:
        table_name: The table to describe, either TABLE_NAME or OWNER.TABLE_NAME.
    """
    return _with_service(
        "Error getting table schema: ", lambda svc: svc.get_table_schema(table_name)
    )


@mcp.tool(name="execute-select")
def execute_select(query: str, max_rows: Optional[int] = None) -> str:
    """
    Executes a read-only SELECT query against the database. Only SELECT and
    WITH statements are allowed. Results are limited to prevent excessive
    data retrieval.

    Args:
        query: A single SELECT or WITH statement. INSERT, UPDATE, DELETE and
            other modifying statements are rejected.
        max_rows: Maximum number of rows to return (default: 100, max: 1000).
    """
    return _with_service(
        QUERY_FAILED_PREFIX, lambda svc: svc.execute_select(query, max_rows)
    )


# ─── Resources ────────────────────────────────────────────


@mcp.resource(
    "schema://overview",
    name="Database Schema Overview",
    description="Complete overview of all accessible database schemas, tables, and their columns",
    mime_type="text/markdown",
)
def schema_overview() -> str:
    return _with_service(
        f"{render.OVERVIEW_TITLE}\n\nError generating schema overview: ",
        lambda svc: svc.schema_overview(),
    )


@mcp.resource(
    "schema://relationships",
    name="Table Relationships",
    description="All foreign key relationships between tables in the database",
    mime_type="text/markdown",
)
def relationships() -> str:
    return _with_service(
        f"{render.RELATIONSHIPS_TITLE}\n\nError generating relationships overview: ",
        lambda svc: svc.relationships(),
    )


@mcp.resource(
    "schema://table/{table_name}",
    name="Table Schema",
    description="Detailed schema information for a specific table including columns, constraints, and foreign keys",
    mime_type="text/markdown",
)
def table_schema(table_name: str) -> str:
    return _with_service(
        f"# Table: {table_name}\n\nError generating table schema: ",
        lambda svc: svc.table_resource(table_name),
    )


def main() -> None:
    setup_logging(get_settings().log_level)
    logger.info("Starting SafeQuery MCP server (stdio)")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
