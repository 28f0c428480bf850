"""
Editing of stored CREATE TABLE statements.

SQLite keeps each table's definition as the CREATE TABLE text in
sqlite_master and has no ALTER COLUMN. Changing a column constraint
means editing that text and rebuilding the table from it; the helpers
here do the editing so that every other clause is kept exactly as
written.
"""
from typing import Optional

_QUOTES = {"'": "'", '"': '"', "`": "`", "[": "]"}

_TABLE_CONSTRAINTS = {"CONSTRAINT", "PRIMARY", "UNIQUE", "CHECK", "FOREIGN"}


def _quoted_end(sql: str, i: int) -> int:
    close = _QUOTES[sql[i]]
    i += 1
    while i < len(sql):
        if sql[i] == close:
            if close != "]" and sql[i + 1:i + 2] == close:
                i += 2
                continue
            return i + 1
        i += 1
    return i


def _comment_end(sql: str, i: int) -> Optional[int]:
    if sql.startswith("--", i):
        end = sql.find("\n", i)
        return len(sql) if end < 0 else end + 1
    if sql.startswith("/*", i):
        end = sql.find("*/", i + 2)
        return len(sql) if end < 0 else end + 2
    return None


def _group_end(sql: str, i: int) -> int:
    depth = 0
    while i < len(sql):
        skip = _comment_end(sql, i)
        if skip is not None:
            i = skip
            continue
        ch = sql[i]
        if ch in _QUOTES:
            i = _quoted_end(sql, i)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return i


def _tokens(sql: str):
    """Yield ``(text, start, end)`` for each top-level token of `sql`.

    Quoted names, string literals and parenthesised groups come back as
    one token each; comments are skipped.
    """
    i = 0
    while i < len(sql):
        skip = _comment_end(sql, i)
        if skip is not None:
            i = skip
            continue
        ch = sql[i]
        if ch.isspace():
            i += 1
            continue
        if ch in _QUOTES:
            end = _quoted_end(sql, i)
        elif ch == "(":
            end = _group_end(sql, i)
        elif ch.isalnum() or ch in "_$":
            end = i + 1
            while end < len(sql) and (sql[end].isalnum() or sql[end] in "_$"):
                end += 1
        else:
            end = i + 1
        yield sql[i:end], i, end
        i = end


def _unquote(token: str) -> str:
    if token and token[0] in _QUOTES:
        inner = token[1:-1]
        return inner if token[0] == "[" else inner.replace(token[0] * 2, token[0])
    return token


def _split_definitions(body: str) -> list[str]:
    """Split the text between CREATE TABLE's parentheses at top-level commas."""
    parts, start = [], 0
    for text, begin, end in _tokens(body):
        if text == ",":
            parts.append(body[start:begin])
            start = end
    parts.append(body[start:])
    return parts


def _with_not_null(definition: str, not_null: bool) -> str:
    """Column definition with its NOT NULL constraint added or removed.

    Everything else (type, DEFAULT, UNIQUE, CHECK, COLLATE, REFERENCES)
    is kept as written.
    """
    tokens = list(_tokens(definition))
    words = [text.upper() for text, _, _ in tokens]
    spans = []
    for k in range(len(tokens) - 1):
        if words[k] != "NOT" or words[k + 1] != "NULL":
            continue
        first, last = k, k + 1
        if k >= 2 and words[k - 2] == "CONSTRAINT":
            first = k - 2
        if words[last + 1:last + 3] == ["ON", "CONFLICT"] and last + 3 < len(tokens):
            last += 3
        spans.append((tokens[first][1], tokens[last][2]))

    if not_null:
        if spans:
            return definition
        end = tokens[-1][2]
        return definition[:end] + " NOT NULL" + definition[end:]
    for begin, end in reversed(spans):
        definition = definition[:begin].rstrip(" \t") + definition[end:]
    return definition


def set_not_null(create_sql: str, column: str, allow_null: bool) -> tuple[str, str]:
    """Split a stored CREATE TABLE statement around its column list.

    Returns ``(definitions, suffix)``: the column and table-constraint list
    with `column`'s NOT NULL changed, and whatever follows the closing
    parenthesis (``WITHOUT ROWID``, ``STRICT``). Raises ValueError when
    the statement has no column called `column`.
    """
    for text, begin, end in _tokens(create_sql):
        if text.startswith("("):
            body, suffix = create_sql[begin + 1:end - 1], create_sql[end:]
            break
    else:
        raise ValueError("table has no column list")

    parts = _split_definitions(body)
    for index, part in enumerate(parts):
        first = next(_tokens(part), None)
        if first is None:
            continue
        name = first[0]
        if name[0] not in _QUOTES and name.upper() in _TABLE_CONSTRAINTS:
            continue
        if _unquote(name).lower() == column.lower():
            parts[index] = _with_not_null(part, not allow_null)
            return ",".join(parts), suffix
    raise ValueError(f"no such column: {column}")
