"""Tests for the SQL validation pipeline."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from core.sql_grammar import MAX_NESTING_DEPTH
from core.sql_validator import SqlValidator, ValidationRules
from core.validation import ErrorCategory, ValidationResult


VALID_SQL = [
    "SELECT * FROM users",
    "SELECT id, name FROM users",
    "SELECT u.name FROM users u",
    "SELECT * FROM users WHERE id = 1",
    "SELECT name FROM users WHERE active = true",
    "SELECT COUNT(*) FROM users",
    "SELECT * FROM users ORDER BY name",
    "SELECT DISTINCT name FROM users",
    "SELECT * FROM users LIMIT 10",
    "select * from users",
    "SELECT * FROM users;",
    "SELECT name, createDate FROM users",
    "SELECT `order` FROM `my table`",
    "SELECT name FROM users WHERE note = 'it''s'",
    "SELECT * FROM users WHERE name = 'a;b'",
    "SELECT * FROM users WHERE id BETWEEN 1 AND 10",
    "SELECT name FROM users WHERE email IS NOT NULL AND name LIKE 'A%'",
    "SELECT COUNT(*) orders FROM sales",
    "SELECT o.id FROM orders ordr",
    "SELECT COUNT(*) here FROM t",
    "SELECT id FROM users UNION ALL SELECT id FROM admins WHERE active = 1",
    (
        "SELECT status, COUNT(*) AS total FROM orders GROUP BY status "
        "HAVING COUNT(*) > 1 ORDER BY total DESC LIMIT 5 OFFSET 10"
    ),
]


class TestValidStatements:
    """Statements the pipeline must accept."""

    @pytest.mark.parametrize("sql", VALID_SQL)
    def test_accepts(self, validator, sql):
        result = validator.validate_sql(sql)

        assert result.is_valid, result.error_message
        assert result.error_message is None
        assert result.category is None

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users WHERE (id = 1 OR id = 2)",
        "SELECT COUNT(*) FROM users",
        "SELECT * FROM users WHERE id IN (1, 2, 3)",
        "SELECT (CASE WHEN active = 1 THEN 'Yes' ELSE 'No' END) FROM users",
    ])
    def test_balanced_parentheses(self, validator, sql):
        assert validator.validate_sql(sql).is_valid

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users -- this is a comment",
        "SELECT * /* comment */ FROM users",
        "SELECT * FROM users /* multi\nline\ncomment */",
        "-- comment at start\nSELECT * FROM users",
    ])
    def test_comments_are_ignored(self, validator, sql):
        assert validator.validate_sql(sql).is_valid

    def test_keyword_in_trailing_comment_is_ignored(self, validator):
        result = validator.validate_sql("SELECT * FROM users -- DROP TABLE")

        assert result.is_valid


class TestEmptyInput:

    @pytest.mark.parametrize("sql", [None, "", "   ", "\n\t "])
    def test_empty(self, validator, sql):
        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert result.error_message == "SQL is null or empty"
        assert result.category == ErrorCategory.EMPTY_INPUT


class TestDangerousKeywords:

    @pytest.mark.parametrize("sql, keyword", [
        ("DROP TABLE users", "DROP"),
        ("DELETE FROM users", "DELETE"),
        ("UPDATE users SET name = 'test'", "UPDATE"),
        ("INSERT INTO users VALUES (1, 'test')", "INSERT"),
        ("ALTER TABLE users ADD COLUMN test VARCHAR(50)", "ALTER"),
        ("CREATE TABLE test (id INT)", "CREATE"),
        ("TRUNCATE TABLE users", "TRUNCATE"),
        ("EXEC sp_test", "EXEC"),
        ("EXECUTE sp_test", "EXECUTE"),
    ])
    def test_rejects(self, validator, sql, keyword):
        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert result.error_message == f"Dangerous SQL keyword detected: {keyword}"
        assert result.category == ErrorCategory.DANGEROUS_OPERATION

    def test_keyword_scan_precedes_multi_statement_check(self, validator):
        result = validator.validate_sql("SELECT * FROM users; DROP TABLE users;")

        assert result.error_message == "Dangerous SQL keyword detected: DROP"

    def test_keyword_scan_precedes_grammar(self, validator):
        result = validator.validate_sql("SELECT * FROM 123invalid WHERE x = 'DELETE'")

        assert result.error_message == "Dangerous SQL keyword detected: DELETE"

    def test_keyword_inside_string_literal_is_still_rejected(self, validator):
        result = validator.validate_sql("SELECT * FROM users WHERE note = 'please drop by'")

        assert result.category == ErrorCategory.DANGEROUS_OPERATION

    def test_injection_with_drop(self, validator):
        result = validator.validate_sql("SELECT * FROM users'; DROP TABLE users; --")

        assert result.error_message == "Dangerous SQL keyword detected: DROP"


class TestStructure:

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM 123invalid",
        "SELECT * FROM @invalid",
        "SELECT * FROM #invalid",
        "SELECT * FROM $invalid",
    ])
    def test_invalid_identifiers(self, validator, sql):
        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert result.category == ErrorCategory.INVALID_IDENTIFIER
        assert "Invalid identifier" in result.error_message

    def test_quoted_identifier_starting_with_digit_is_allowed(self, validator):
        assert validator.validate_sql('SELECT "1st" FROM `2024_sales`').is_valid

    def test_empty_where_clause(self, validator):
        result = validator.validate_sql("SELECT * FROM users WHERE")

        assert result.category == ErrorCategory.SYNTAX_ERROR
        assert result.error_message.startswith("Invalid SELECT SQL syntax")
        assert "empty WHERE clause" in result.error_message

    def test_missing_table_name(self, validator):
        result = validator.validate_sql("SELECT * FROM")

        assert "missing table name after FROM" in result.error_message

    def test_message_names_expected_shape(self, validator):
        result = validator.validate_sql("SELECT * FROM users WHERE")

        assert "Expected format: SELECT columns FROM table" in result.error_message

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users WHERE (id = 1",
        "SELECT * FROM users WHERE id = 1)",
        "SELECT * FROM users WHERE ((id = 1)",
        "SELECT COUNT(*)) FROM users",
    ])
    def test_unbalanced_parentheses(self, validator, sql):
        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert "unbalanced parentheses" in result.error_message

    def test_parenthesis_inside_literal_fails_format_check(self, validator):
        result = validator.validate_sql("SELECT * FROM users WHERE name = '('")

        assert result.category == ErrorCategory.MALFORMED_FORMAT
        assert result.error_message == "Invalid SQL format: unbalanced parentheses"

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users WHERE name = 'test",
        'SELECT * FROM users WHERE name = "test',
        "SELECT * FROM users WHERE name = 'test' AND description = \"incomplete",
        "SELECT * FROM users WHERE name = 'O'Brien'",
    ])
    def test_unmatched_quotes(self, validator, sql):
        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert result.error_message == "Unmatched quotes in SQL"

    def test_comment_marker_inside_string_is_stripped(self, validator):
        # Comment stripping does not track quotes, so the literal is cut short
        result = validator.validate_sql("SELECT * FROM users WHERE name = 'a--b'")

        assert result.error_message == "Unmatched quotes in SQL"

    @pytest.mark.parametrize("sql, hint", [
        ("SELCT * FROM users", "'SELCT' looks like a misspelling of 'SELECT'"),
        ("SLECT * FROM users", "'SLECT' looks like a misspelling of 'SELECT'"),
        ("SELECT * FORM users", "'FORM' looks like a misspelling of 'FROM'"),
        ("SELECT FORM users", "'FORM' looks like a misspelling of 'FROM'"),
        ("SELECT * FROM users WHRE id = 1", "'WHRE' looks like a misspelling of 'WHERE'"),
        ("SELECT * FROM users WERE id = 1", "'WERE' looks like a misspelling of 'WHERE'"),
        ("SELECT * FROM users ORDER BY name ODER", "did you mean 'ORDER'?"),
    ])
    def test_misspellings_are_explained(self, validator, sql, hint):
        result = validator.validate_sql(sql)

        assert result.category == ErrorCategory.SYNTAX_ERROR
        assert hint in result.error_message

    def test_non_select_statement(self, validator):
        result = validator.validate_sql("WITH t AS (SELECT id FROM users) SELECT id FROM t")

        assert not result.is_valid
        assert "expected 'SELECT' but found 'WITH'" in result.error_message


class TestInjection:

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users WHERE 1=1",
        "SELECT * FROM users WHERE 0 = 0",
        "SELECT * FROM users WHERE 'a'='a'",
        "SELECT * FROM users WHERE id = 1 OR 1=1",
        "SELECT * FROM users WHERE id = 1 AND 'x' = 'x'",
    ])
    def test_rejects_tautologies(self, validator, sql):
        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert result.error_message == "Potential SQL injection detected"
        assert result.category == ErrorCategory.INJECTION_SUSPECTED


class TestMultipleStatements:

    def test_rejects_second_select(self, validator):
        result = validator.validate_sql("SELECT * FROM users; SELECT * FROM orders;")

        assert result.error_message == "Multiple SQL statements are not allowed"
        assert result.category == ErrorCategory.MULTIPLE_STATEMENTS

    def test_trailing_semicolon_with_whitespace(self, validator):
        assert validator.validate_sql("SELECT * FROM users ;  \n").is_valid

    def test_update_after_select_is_a_keyword_failure(self, validator):
        result = validator.validate_sql("SELECT name FROM users; UPDATE users SET active = 1;")

        assert result.error_message == "Dangerous SQL keyword detected: UPDATE"


class TestNesting:

    def test_deeply_nested_calls_are_rejected(self, validator):
        sql = "SELECT " + "f(" * 900 + "a" + ")" * 900 + " FROM t"

        result = validator.validate_sql(sql)

        assert not result.is_valid
        assert result.category == ErrorCategory.SYNTAX_ERROR
        assert "nesting too deep" in result.error_message

    def test_deeply_nested_conditions_are_rejected(self, validator):
        sql = "SELECT a FROM t WHERE " + "(" * 1300 + "a = 2" + ")" * 1300

        result = validator.validate_sql(sql)

        assert result.category == ErrorCategory.SYNTAX_ERROR
        assert "nesting too deep" in result.error_message

    def test_nested_select_item_parentheses_are_rejected(self, validator):
        sql = "SELECT " + "(" * 1000 + "a" + ")" * 1000 + " FROM t"

        assert "nesting too deep" in validator.validate_sql(sql).error_message

    @pytest.mark.parametrize("sql", [
        "SELECT " + "f(" * 20 + "a" + ")" * 20 + " FROM t",
        "SELECT a FROM t WHERE " + "(" * 20 + "a = 2" + ")" * 20,
        "SELECT " + "f(" * MAX_NESTING_DEPTH + "a" + ")" * MAX_NESTING_DEPTH + " FROM t",
    ])
    def test_moderate_nesting_is_accepted(self, validator, sql):
        assert validator.validate_sql(sql).is_valid


class TestValidatorBehaviour:

    def test_deterministic(self, validator):
        sql = "SELECT * FROM users WHERE 1=1"

        assert validator.validate_sql(sql) == validator.validate_sql(sql)

    def test_default_rules_are_shared(self):
        assert SqlValidator().rules is SqlValidator().rules
        assert ValidationRules.default() is ValidationRules.default()

    def test_concurrent_use(self, validator):
        inputs = VALID_SQL + ["DROP TABLE users", "SELECT * FROM users WHERE 1=1"] * 10

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(validator.validate_sql, inputs))

        assert results == [validator.validate_sql(sql) for sql in inputs]


class TestValidationResult:

    def test_valid(self):
        result = ValidationResult.valid()

        assert result.is_valid
        assert result.error_message is None
        assert bool(result) is True

    def test_invalid(self):
        result = ValidationResult.invalid("Test error")

        assert not result.is_valid
        assert result.error_message == "Test error"
        assert bool(result) is False

    def test_valid_cannot_carry_message(self):
        with pytest.raises(ValueError):
            ValidationResult(is_valid=True, error_message="oops")

    def test_invalid_requires_message(self):
        with pytest.raises(ValueError):
            ValidationResult(is_valid=False)
