from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from app.bootstrap import Runtime
from app.cache import SchemaCache
from safequery import render
from safequery.schema.models import TableInfo
from safequery.types import QueryResult

logger = logging.getLogger(__name__)

QUERY_FAILED_PREFIX = "Query failed: "


def table_not_found_message(name: str) -> str:
    return f"Table '{name}' not found or not accessible."


@dataclass
class DatabaseService:
    """
    Application-level service behind the tools and resources.

    Responsibilities:
        - Clamp caller row counts and run queries through the executor.
        - Resolve tables by `OWNER.TABLE` or bare name.
        - Render metadata as markdown and cache it.

    The text methods never raise; unexpected errors are logged with a
    traceback and reported as a one-line message. `describe_table` is the
    exception, for callers that map failures themselves.
    """

    runtime: Runtime
    cache: SchemaCache = field(default_factory=SchemaCache)

    @property
    def settings(self):
        return self.runtime.settings

    def clamp_max_rows(self, max_rows: Optional[int]) -> int:
        if max_rows is None:
            return self.settings.tool_default_rows
        return min(max(int(max_rows), 1), self.settings.tool_max_rows)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def run_select(
        self, query: Optional[str], max_rows: Optional[int] = None
    ) -> Tuple[str, QueryResult]:
        """Run a query and return (markdown text, structured result)."""
        result = self.runtime.executor.execute(query, self.clamp_max_rows(max_rows))
        if not result.succeeded:
            return QUERY_FAILED_PREFIX + (result.error_message or ""), result
        return render.render_query_result(result), result

    def execute_select(self, query: Optional[str], max_rows: Optional[int] = None) -> str:
        text, _ = self.run_select(query, max_rows)
        return text

    def list_tables(self) -> str:
        try:
            return self._cached(
                "tables", lambda: render.render_table_list(self.runtime.schema_reader.list_tables())
            )
        except Exception as exc:
            logger.exception("Unexpected error listing tables")
            return f"Error listing tables: {exc}"

    def find_table(self, name: str) -> Optional[TableInfo]:
        """Resolve a table for callers that need the model, not the text."""
        return self.runtime.schema_reader.lookup(name)

    def describe_table(self, name: str, *, abbreviate_rows: bool = True) -> Optional[str]:
        """
        Rendered schema for one table, or None when it does not resolve.

        Unlike the text methods this lets database errors propagate, so
        callers can tell "missing" apart from "lookup failed".
        """
        kind = "table_schema" if abbreviate_rows else "table_resource"
        key = f"{kind}:{name.strip().upper()}"
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        table = self.find_table(name)
        if table is None:
            return None
        text = render.render_table_schema(table, abbreviate_rows=abbreviate_rows)
        self.cache.set(key, text)
        return text

    def get_table_schema(self, name: str) -> str:
        try:
            text = self.describe_table(name)
        except Exception as exc:
            logger.exception("Unexpected error getting table schema", extra={"table": name})
            return f"Error getting table schema: {exc}"
        return table_not_found_message(name) if text is None else text

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def schema_overview(self) -> str:
        try:
            return self._cached(
                "overview",
                lambda: render.render_schema_overview(self.runtime.schema_reader.get_overview()),
            )
        except Exception as exc:
            logger.exception("Unexpected error generating schema overview")
            return f"{render.OVERVIEW_TITLE}\n\nError generating schema overview: {exc}"

    def relationships(self) -> str:
        try:
            return self._cached(
                "relationships",
                lambda: render.render_relationships(
                    self.runtime.schema_reader.get_all_foreign_keys()
                ),
            )
        except Exception as exc:
            logger.exception("Unexpected error generating relationships overview")
            return (
                f"{render.RELATIONSHIPS_TITLE}\n\n"
                f"Error generating relationships overview: {exc}"
            )

    def table_resource(self, name: str) -> str:
        try:
            text = self.describe_table(name, abbreviate_rows=False)
        except Exception as exc:
            logger.exception("Unexpected error generating table resource", extra={"table": name})
            return f"# Table: {name}\n\nError generating table schema: {exc}"
        return render.render_table_not_found(name) if text is None else text

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Schema metadata cache cleared")

    def _cached(self, key: str, build: Callable[[], str]) -> str:
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        text = build()
        self.cache.set(key, text)
        return text
