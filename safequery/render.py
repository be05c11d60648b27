from __future__ import annotations

from typing import Any, Dict, List

from safequery.schema.models import ForeignKeyInfo, TableInfo
from safequery.types import QueryResult

MAX_CELL_CHARS = 100
_CUT_CELL_CHARS = MAX_CELL_CHARS - 3

NO_TABLES = "No accessible tables found."
NO_ROWS = "Query executed successfully. No rows returned."
OVERVIEW_TITLE = "# Database Schema Overview"
RELATIONSHIPS_TITLE = "# Table Relationships"


def escape_markdown(text: Any) -> str:
    if text is None:
        return ""
    return str(text).replace("|", "\\|").replace("\n", " ").replace("\r", "")


def format_value(value: Any) -> str:
    if value is None:
        return "NULL"
    text = str(value)
    if len(text) > MAX_CELL_CHARS:
        text = text[:_CUT_CELL_CHARS] + "..."
    return escape_markdown(text)


def format_number(number: int) -> str:
    """1234 -> '1.2K', 2500000 -> '2.5M'."""
    if number >= 1_000_000:
        return f"{number / 1_000_000:.1f}M"
    if number >= 1_000:
        return f"{number / 1_000:.1f}K"
    return str(number)


def render_query_result(result: QueryResult) -> str:
    if not result.rows:
        return NO_ROWS

    columns = result.columns
    lines: List[str] = []
    header = f"Query returned {result.row_count} row(s)"
    if result.truncated:
        header += f" (limited to {result.effective_row_limit})"
    lines.append(header + ".")
    lines.append("")
    lines.append("| " + " | ".join(columns) + " |")
    lines.append("|" + "|".join("---" for _ in columns) + "|")
    for row in result.rows:
        lines.append("| " + " | ".join(format_value(row.get(c)) for c in columns) + " |")
    return "\n".join(lines) + "\n"


def render_table_list(tables: List[TableInfo]) -> str:
    if not tables:
        return NO_TABLES

    parts = [f"Found {len(tables)} tables:\n\n"]
    current_owner = None
    for table in tables:
        if table.owner != current_owner:
            current_owner = table.owner
            parts.append(f"## Schema: {current_owner}\n\n")
        entry = f"- **{table.table_name}**"
        if table.num_rows is not None:
            entry += f" (~{format_number(table.num_rows)} rows)"
        if table.comments and table.comments.strip():
            entry += f": {table.comments}"
        parts.append(entry + "\n")
    return "".join(parts)


def render_table_schema(table: TableInfo, *, abbreviate_rows: bool = True) -> str:
    """
    Full markdown description of one table.

    The tool variant abbreviates the approximate row count (`1.2K`); the
    resource variant prints it verbatim.
    """
    parts = [f"# Table: {table.qualified_name}\n\n"]

    if table.comments and table.comments.strip():
        parts.append(f"**Description:** {table.comments}\n\n")
    if table.num_rows is not None:
        rows = format_number(table.num_rows) if abbreviate_rows else str(table.num_rows)
        parts.append(f"**Approximate Rows:** {rows}\n\n")

    parts.append("## Columns\n\n")
    parts.append("| # | Column | Type | Nullable | Default | Description |\n")
    parts.append("|---|--------|------|----------|---------|-------------|\n")
    for col in table.columns:
        default = escape_markdown(col.default_value.strip()) if col.default_value is not None else ""
        parts.append(
            f"| {col.position} | {col.column_name} | {col.formatted_type} | "
            f"{'YES' if col.nullable else 'NO'} | {default} | "
            f"{escape_markdown(col.comments)} |\n"
        )

    if table.constraints:
        parts.append("\n## Constraints\n\n")
        for con in table.constraints:
            line = (
                f"- **{con.constraint_name}** ({con.type_description}): "
                + ", ".join(con.columns)
            )
            if con.search_condition is not None and con.constraint_type == "C":
                line += f" - {con.search_condition}"
            parts.append(line + "\n")

    if table.foreign_keys:
        parts.append("\n## Foreign Keys\n\n")
        for fk in table.foreign_keys:
            line = (
                f"- **{fk.constraint_name}**: {', '.join(fk.source_columns)}"
                f" → {fk.target_table}({', '.join(fk.target_columns)})"
            )
            if fk.delete_rule is not None and fk.delete_rule != "NO ACTION":
                line += f" [ON DELETE {fk.delete_rule}]"
            parts.append(line + "\n")

    return "".join(parts)


def render_table_not_found(name: str) -> str:
    return f"# Table: {name}\n\nTable not found or not accessible."


def render_schema_overview(schemas: Dict[str, List[TableInfo]]) -> str:
    if not schemas:
        return f"{OVERVIEW_TITLE}\n\nNo accessible schemas or tables found."

    total_tables = sum(len(tables) for tables in schemas.values())
    parts = [
        f"{OVERVIEW_TITLE}\n\n",
        f"**Total Schemas:** {len(schemas)}\n",
        f"**Total Tables:** {total_tables}\n\n",
    ]
    for owner, tables in schemas.items():
        parts.append(f"## Schema: {owner}\n\n")
        parts.append(f"*{len(tables)} table(s)*\n\n")
        for table in tables:
            parts.append(f"### {table.table_name}\n\n")
            if table.comments and table.comments.strip():
                parts.append(f"*{table.comments}*\n\n")
            if table.columns:
                parts.append("| Column | Type | Nullable |\n")
                parts.append("|--------|------|----------|\n")
                for col in table.columns:
                    parts.append(
                        f"| {col.column_name} | {col.formatted_type} | "
                        f"{'YES' if col.nullable else 'NO'} |\n"
                    )
                parts.append("\n")
    return "".join(parts)


def render_relationships(foreign_keys: List[ForeignKeyInfo]) -> str:
    if not foreign_keys:
        return f"{RELATIONSHIPS_TITLE}\n\nNo foreign key relationships found."

    parts = [
        f"{RELATIONSHIPS_TITLE}\n\n",
        f"**Total Foreign Keys:** {len(foreign_keys)}\n\n",
        "## Foreign Key Relationships\n\n",
        "| Source Table | Source Column(s) | Target Table | Target Column(s) | Delete Rule |\n",
        "|--------------|------------------|--------------|------------------|-------------|\n",
    ]
    for fk in foreign_keys:
        parts.append(
            f"| {fk.source_table} | {', '.join(fk.source_columns)} | "
            f"{fk.target_table} | {', '.join(fk.target_columns)} | "
            f"{fk.delete_rule or 'NO ACTION'} |\n"
        )

    parts.append("\n## Relationship Diagram (Text)\n\n```\n")
    for fk in foreign_keys:
        parts.append(f"{fk.source_table} --[{fk.constraint_name}]--> {fk.target_table}\n")
    parts.append("```\n")
    return "".join(parts)
