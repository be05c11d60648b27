import pytest

from safequery.errors.codes import ErrorCode
from safequery.validator import QueryValidator, count_statements, remove_comments

validator = QueryValidator()


# ---------------------------------------------------------------------------
# Accepted queries
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "query",
    [
        "SELECT * FROM employees",
        "SELECT id, name FROM users WHERE status = 'active'",
        "SELECT e.name, d.department_name FROM employees e JOIN departments d ON e.dept_id = d.id",
        "SELECT * FROM employees WHERE dept_id IN (SELECT id FROM departments WHERE active = 1)",
        "WITH active_employees AS (SELECT * FROM employees WHERE status = 'active') "
        "SELECT * FROM active_employees",
        "SELECT dept_id, COUNT(*) as cnt FROM employees GROUP BY dept_id HAVING COUNT(*) > 5",
        "SELECT * FROM employees ORDER BY hire_date DESC FETCH FIRST 10 ROWS ONLY",
        "select * from employees",
        "SeLeCt * FrOm employees",
        "SELECT * FROM (SELECT id FROM employees) t",
        "SELECT(1)",
    ],
)
def test_accepts_read_only_statements(query):
    out = validator.validate(query)
    assert out.accepted, out.reason
    assert out.normalized_query is not None
    assert out.reason is None
    assert out.error_code is None


def test_plain_select_is_returned_verbatim():
    out = validator.validate("SELECT * FROM employees")
    assert out.normalized_query == "SELECT * FROM employees"


def test_single_trailing_semicolon_is_stripped():
    out = validator.validate("SELECT * FROM employees;  ")
    assert out.accepted
    assert out.normalized_query == "SELECT * FROM employees"


def test_column_names_containing_keywords_are_fine():
    """Word boundaries: update_count is not UPDATE."""
    out = validator.validate("SELECT update_count FROM statistics")
    assert out.accepted


def test_normalized_query_validates_again():
    first = validator.validate("  /* hi */ SELECT a -- tail\n FROM t ;")
    assert first.accepted
    second = validator.validate(first.normalized_query)
    assert second.accepted
    assert second.normalized_query == first.normalized_query


# ---------------------------------------------------------------------------
# Forbidden statements
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "query",
    [
        "INSERT INTO employees (name) VALUES ('test')",
        "UPDATE employees SET name = 'test'",
        "DELETE FROM employees",
        "DROP TABLE employees",
        "CREATE TABLE test (id INT)",
        "ALTER TABLE employees ADD COLUMN email VARCHAR(100)",
        "TRUNCATE TABLE employees",
        "MERGE INTO employees USING temp ON (1=1) WHEN MATCHED THEN UPDATE SET name='x'",
        "GRANT SELECT ON employees TO user1",
        "REVOKE SELECT ON employees FROM user1",
        "EXECUTE my_procedure",
        "EXEC my_procedure",
        "CALL my_procedure()",
        "COMMIT",
        "ROLLBACK",
        "SAVEPOINT sp1",
        "LOCK TABLE employees IN EXCLUSIVE MODE",
        "insert into employees (name) values ('test')",
        "UpDaTe employees SET name = 'test'",
    ],
)
def test_rejects_non_read_only_statements(query):
    out = validator.validate(query)
    assert not out.accepted
    assert out.reason
    assert out.normalized_query is None


def test_multiple_statements_are_rejected():
    out = validator.validate("SELECT * FROM employees; DROP TABLE employees")
    assert not out.accepted
    assert "Multiple statements" in out.reason
    assert out.error_code == ErrorCode.VALIDATION_MULTI_STATEMENT


def test_union_delete_is_rejected_naming_the_keyword():
    out = validator.validate("SELECT * FROM employees UNION DELETE FROM employees")
    assert not out.accepted
    assert "DELETE" in out.reason
    assert out.error_code == ErrorCode.VALIDATION_FORBIDDEN_KEYWORD


def test_delete_hidden_in_subquery_is_rejected():
    out = validator.validate("SELECT * FROM (DELETE FROM employees RETURNING *)")
    assert not out.accepted
    assert "DELETE" in out.reason


def test_keyword_inside_string_literal_is_rejected():
    out = validator.validate("SELECT * FROM employees WHERE action = 'DELETE'")
    assert not out.accepted
    assert out.reason == "Forbidden keyword detected: DELETE"


def test_keyword_used_as_identifier_is_rejected():
    out = validator.validate("SELECT * FROM employees WHERE DELETE = 1")
    assert not out.accepted


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "query",
    [
        "SELECT /* comment */ * FROM employees",
        "SELECT /* this is\na multiline\ncomment */ * FROM employees",
        "SELECT * FROM employees -- this is a comment",
        "SELECT /* block */ * -- line\nFROM employees",
        "SELECT * FROM employees /* ; DELETE FROM employees */",
        "SELECT * FROM employees -- ; DELETE FROM employees",
    ],
)
def test_comments_are_stripped_before_checks(query):
    out = validator.validate(query)
    assert out.accepted, out.reason
    assert "--" not in out.normalized_query
    assert "/*" not in out.normalized_query


def test_line_comment_with_drop_is_accepted():
    out = validator.validate("SELECT 1 -- DROP TABLE x")
    assert out.accepted
    assert out.normalized_query == "SELECT 1"


def test_remove_comments_replaces_each_comment_with_a_space():
    assert remove_comments("SELECT/*x*/1") == "SELECT 1"
    assert remove_comments("a -- b\nc") == "a  \nc"


def test_count_statements_ignores_blank_segments():
    assert count_statements("SELECT 1;") == 1
    assert count_statements("SELECT 1; ;  ") == 1
    assert count_statements("SELECT 1; SELECT 2") == 2


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("query", [None, "", "   \t\n  ", "/* just a comment */", "-- only"])
def test_empty_queries_are_rejected(query):
    out = validator.validate(query)
    assert not out.accepted
    assert "empty" in out.reason
    assert out.error_code == ErrorCode.VALIDATION_EMPTY


def test_query_must_start_with_select_or_with():
    out = validator.validate("SHOW TABLES")
    assert not out.accepted
    assert "SELECT" in out.reason
    assert out.error_code == ErrorCode.VALIDATION_NON_SELECT


def test_leading_parenthesis_is_rejected():
    out = validator.validate("(SELECT * FROM employees)")
    assert not out.accepted


def test_select_needs_a_separator_after_keyword():
    assert not validator.validate("SELECTED_ROWS").accepted
