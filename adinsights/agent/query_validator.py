from __future__ import annotations

import re
from datetime import date

FORBIDDEN_TOKENS = {
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "truncate",
    "grant",
    "revoke",
    "create",
    "replace",
    "mutate",
    "remove",
}

STRING_LITERAL = re.compile(r"'(?:[^'\\]|\\.)*'")
FORBIDDEN_PATTERN = re.compile(r"\b(?:" + "|".join(sorted(FORBIDDEN_TOKENS)) + r")\b")
FROM_PATTERN = re.compile(r"\bfrom\s+[a-z_]+\b")
SELECT_STAR_PATTERN = re.compile(r"^select\s+\*|,\s*\*")
BETWEEN_PATTERN = re.compile(r"\bBETWEEN\s+'([^']*)'\s+AND\s+'([^']*)'", re.IGNORECASE)


class QueryValidationError(ValueError):
    pass


def validate_gaql(query: str) -> None:
    # String literals are user-controlled campaign filters; keyword checks ignore them.
    stripped = STRING_LITERAL.sub("''", query)
    normalized = " ".join(stripped.strip().lower().split())

    if not normalized.startswith("select"):
        raise QueryValidationError("Only SELECT queries are allowed")
    if ";" in normalized:
        raise QueryValidationError("Multiple statements are not allowed")
    if FORBIDDEN_PATTERN.search(normalized):
        raise QueryValidationError("Forbidden query token detected")
    if SELECT_STAR_PATTERN.search(normalized):
        raise QueryValidationError("SELECT * is not allowed")
    if not FROM_PATTERN.search(normalized):
        raise QueryValidationError("Query must select FROM a resource")

    for start, end in BETWEEN_PATTERN.findall(query):
        for value in (start, end):
            try:
                date.fromisoformat(value)
            except ValueError as exc:
                raise QueryValidationError(f"Invalid date literal {value!r}") from exc
