"""
Read-only guard for model-generated SQL.

Generated SQL runs against the user's real ledger, so anything that is not
exactly one SELECT is rejected before execution.
"""

import re

from yuki.core.exceptions import ValidationError
from yuki.services.response_parsing import strip_code_fences

FORBIDDEN_KEYWORDS = (
    "insert", "update", "delete", "upsert", "merge",
    "create", "alter", "drop", "truncate", "rename",
    "attach", "detach", "pragma", "vacuum", "reindex", "analyze",
    "grant", "revoke", "begin", "commit", "rollback", "savepoint", "release",
    "load_extension", "copy", "call", "exec", "execute",
)

# Literals are matched first so "--" or "/*" inside a quoted string is not a comment
_LITERAL_OR_COMMENT = re.compile(
    r"(?P<literal>'(?:[^']|'')*'" + r'|"(?:[^"]|"")*")' + r"|(?P<comment>--[^\n]*|/\*.*?\*/)",
    re.DOTALL,
)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_QUOTED_IDENTIFIER = re.compile(r'"(?:[^"]|"")*"')
_FORBIDDEN = re.compile(r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b", re.IGNORECASE)


def _strip_comments(sql: str) -> str:
    return _LITERAL_OR_COMMENT.sub(lambda m: m.group("literal") or " ", sql)


def _mask_literals(sql: str) -> str:
    """Blank out string literals and quoted identifiers so keywords inside them are ignored."""
    sql = _STRING_LITERAL.sub("''", sql)
    return _QUOTED_IDENTIFIER.sub('""', sql)


def validate_select(sql: str) -> str:
    """Return the cleaned statement, or raise ValidationError if it is not a single SELECT."""
    if not sql or not isinstance(sql, str):
        raise ValidationError("No SQL query was generated", error_code="empty_sql")

    cleaned = strip_code_fences(sql)
    cleaned = _strip_comments(cleaned).strip()
    cleaned = cleaned.rstrip(";").strip()
    if not cleaned:
        raise ValidationError("No SQL query was generated", error_code="empty_sql")

    masked = _mask_literals(cleaned)
    if ";" in masked:
        raise ValidationError("Only a single SQL statement is allowed", error_code="multiple_statements")

    first_word = masked.split(None, 1)[0].lower()
    if first_word not in ("select", "with"):
        raise ValidationError("Only SELECT queries are allowed", error_code="not_select")
    if first_word == "with" and not re.search(r"\)\s*select\b", masked, re.IGNORECASE):
        raise ValidationError("Only SELECT queries are allowed", error_code="not_select")

    forbidden = _FORBIDDEN.search(masked)
    if forbidden:
        raise ValidationError(
            f"Query contains a forbidden keyword: {forbidden.group(1).upper()}",
            error_code="forbidden_keyword",
        )

    return cleaned
