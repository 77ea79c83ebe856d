# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Query parameter adapter for cross-database compatibility.

SQLite uses ``?`` placeholders while PostgreSQL uses ``$1, $2, ...``
positional parameters.  :func:`adapt_query` rewrites a query written with
``?`` markers into the target dialect.
"""

from __future__ import annotations


def adapt_query(query: str, dialect: str) -> str:
    """Rewrite ``?`` parameter placeholders for the target *dialect*.

    Raises:
        ValueError: If *dialect* is not recognised.
    """
    if dialect == "sqlite":
        return query
    if dialect == "postgres":
        return _question_to_dollar(query)

    msg = f"Unknown SQL dialect: {dialect!r}. Expected 'sqlite' or 'postgres'."
    raise ValueError(msg)


def placeholders(count: int) -> str:
    """Return ``?, ?, ...`` for an ``IN (...)`` list of *count* values."""
    return ", ".join("?" for _ in range(count))


def _question_to_dollar(query: str) -> str:
    """Replace each ``?`` outside single-quoted literals with ``$N``.

    Doubled quotes (``''``) inside a literal are treated as an escape.
    """
    out: list[str] = []
    counter = 0
    in_string = False
    i = 0
    while i < len(query):
        ch = query[i]
        if ch == "'":
            if in_string and query[i + 1 : i + 2] == "'":
                out.append("''")
                i += 2
                continue
            in_string = not in_string
            out.append(ch)
        elif ch == "?" and not in_string:
            counter += 1
            out.append(f"${counter}")
        else:
            out.append(ch)
        i += 1
    return "".join(out)
