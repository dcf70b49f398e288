"""
Database layer — the record store behind every page of the dashboard.

Uses SQLite: a file-based database built into Python.
All collections live in one file. Pages never write SQL themselves; they go
through a small generic interface:

    select(table, eq=..., gte=..., lt=..., order_by=..., limit=...)
    insert(table, rows)
    update(table, values, eq=...)
    delete(table, eq=...)

Anything that goes wrong at this boundary is raised as StoreError.
"""

import sqlite3
import os
import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from dateutil.parser import isoparse

from reviewpool.config import DATABASE_PATH
from reviewpool.models import DEFAULT_SETTINGS, INTEGRATION_LABELS


class StoreError(Exception):
    """A store call failed (bad collection/column, or the database rejected it)."""


# ---- Schema ----
# Column names per collection. Used to reject unknown names before they
# reach an SQL string.
TABLES = {
    "profiles": ["id", "email", "full_name", "avatar_url", "created_at", "updated_at"],
    "products": ["id", "name", "slug", "description", "image_url", "category",
                 "external_id", "status", "created_at", "updated_at"],
    "reviews": ["id", "product_id", "user_id", "author_name", "author_email", "rating",
                "title", "content", "images", "status", "is_verified_purchase",
                "sentiment_score", "sentiment_label", "ai_summary", "helpful_count",
                "report_count", "ip_address", "user_agent", "created_at", "updated_at"],
    "review_responses": ["id", "review_id", "user_id", "content", "created_at", "updated_at"],
    "rewards": ["id", "name", "type", "value", "description", "conditions", "status",
                "valid_from", "valid_until", "usage_limit", "usage_count", "created_at"],
    "user_rewards": ["id", "user_id", "reward_id", "review_id", "email", "status",
                     "redeemed_at", "created_at"],
    "settings": ["id", "key", "value", "category", "updated_at"],
    "integrations": ["id", "name", "enabled", "config", "last_sync", "created_at", "updated_at"],
    "analytics_daily": ["id", "date", "total_reviews", "approved_reviews", "average_rating",
                        "sentiment_positive", "sentiment_neutral", "sentiment_negative",
                        "created_at"],
}

# Stored as JSON text, decoded on read
JSON_COLUMNS = {
    "reviews": {"images"},
    "rewards": {"conditions"},
    "settings": {"value"},
    "integrations": {"config"},
}

# Stored as 0/1, returned as bool
BOOL_COLUMNS = {
    "reviews": {"is_verified_purchase"},
    "integrations": {"enabled"},
}

# Stored in to_iso() form whatever offset the caller wrote them with
TIMESTAMP_COLUMNS = {"created_at", "updated_at", "valid_from", "valid_until", "redeemed_at", "last_sync"}

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS profiles (
        id          TEXT PRIMARY KEY,
        email       TEXT NOT NULL,
        full_name   TEXT,
        avatar_url  TEXT,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS products (
        id          TEXT PRIMARY KEY,
        name        TEXT NOT NULL,
        slug        TEXT NOT NULL UNIQUE,
        description TEXT,
        image_url   TEXT,
        category    TEXT,
        external_id TEXT,
        status      TEXT NOT NULL DEFAULT 'active',
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS reviews (
        id                   TEXT PRIMARY KEY,
        product_id           TEXT REFERENCES products(id) ON DELETE SET NULL,
        user_id              TEXT,
        author_name          TEXT NOT NULL,
        author_email         TEXT NOT NULL,
        rating               INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
        title                TEXT,
        content              TEXT NOT NULL,
        images               TEXT NOT NULL DEFAULT '[]',
        status               TEXT NOT NULL DEFAULT 'pending',
        is_verified_purchase INTEGER NOT NULL DEFAULT 0,
        sentiment_score      REAL,
        sentiment_label      TEXT,
        ai_summary           TEXT,
        helpful_count        INTEGER NOT NULL DEFAULT 0,
        report_count         INTEGER NOT NULL DEFAULT 0,
        ip_address           TEXT,
        user_agent           TEXT,
        created_at           TEXT NOT NULL,
        updated_at           TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_reviews_created_at ON reviews(created_at);
    CREATE INDEX IF NOT EXISTS idx_reviews_status ON reviews(status);

    CREATE TABLE IF NOT EXISTS review_responses (
        id          TEXT PRIMARY KEY,
        review_id   TEXT NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
        user_id     TEXT NOT NULL,
        content     TEXT NOT NULL,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS rewards (
        id          TEXT PRIMARY KEY,
        name        TEXT NOT NULL,
        type        TEXT NOT NULL,
        value       TEXT NOT NULL,
        description TEXT,
        conditions  TEXT NOT NULL DEFAULT '{}',
        status      TEXT NOT NULL DEFAULT 'active',
        valid_from  TEXT NOT NULL,
        valid_until TEXT,
        usage_limit INTEGER,
        usage_count INTEGER NOT NULL DEFAULT 0,
        created_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS user_rewards (
        id          TEXT PRIMARY KEY,
        user_id     TEXT,
        reward_id   TEXT NOT NULL REFERENCES rewards(id) ON DELETE CASCADE,
        review_id   TEXT NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
        email       TEXT NOT NULL,
        status      TEXT NOT NULL DEFAULT 'pending',
        redeemed_at TEXT,
        created_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS settings (
        id          TEXT PRIMARY KEY,
        key         TEXT NOT NULL UNIQUE,
        value       TEXT NOT NULL,
        category    TEXT NOT NULL DEFAULT 'general',
        updated_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS integrations (
        id          TEXT PRIMARY KEY,
        name        TEXT NOT NULL UNIQUE,
        enabled     INTEGER NOT NULL DEFAULT 0,
        config      TEXT NOT NULL DEFAULT '{}',
        last_sync   TEXT,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS analytics_daily (
        id                 TEXT PRIMARY KEY,
        date               TEXT NOT NULL UNIQUE,
        total_reviews      INTEGER NOT NULL DEFAULT 0,
        approved_reviews   INTEGER NOT NULL DEFAULT 0,
        average_rating     REAL NOT NULL DEFAULT 0,
        sentiment_positive INTEGER NOT NULL DEFAULT 0,
        sentiment_neutral  INTEGER NOT NULL DEFAULT 0,
        sentiment_negative INTEGER NOT NULL DEFAULT 0,
        created_at         TEXT NOT NULL
    );
"""


def to_iso(dt: datetime) -> str:
    """
    Render a datetime the way every timestamp is stored: UTC, seconds precision.
    e.g. 2026-01-15T10:30:00+00:00

    One fixed format means range filters can compare plain strings.
    Naive datetimes are taken to be UTC already.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds")


def now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def _get_connection() -> sqlite3.Connection:
    """Open the store. Rows come back addressable by column name."""
    directory = os.path.dirname(DATABASE_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def initialize_database() -> None:
    """
    Creates all collections and seeds default settings and integrations.
    Safe to call multiple times; existing rows are left untouched.
    """
    conn = _get_connection()
    try:
        conn.executescript(_SCHEMA)

        stamp = now_iso()
        for category, values in DEFAULT_SETTINGS.items():
            for key, value in values.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (id, key, value, category, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (_new_id(), key, json.dumps(value), category, stamp),
                )

        for name in INTEGRATION_LABELS:
            conn.execute(
                "INSERT OR IGNORE INTO integrations (id, name, enabled, config, created_at, updated_at) "
                "VALUES (?, ?, 0, '{}', ?, ?)",
                (_new_id(), name, stamp, stamp),
            )

        conn.commit()
    except sqlite3.Error as e:
        raise StoreError(f"Could not initialize database: {e}") from e
    finally:
        conn.close()

    print(f"Database ready: {DATABASE_PATH}")


# ============================================================
# Generic collection interface
# ============================================================

def select(table: str, eq: Optional[dict] = None, gte: Optional[dict] = None,
           lt: Optional[dict] = None, order_by: Optional[str] = None,
           ascending: bool = True, limit: Optional[int] = None) -> list[dict]:
    """
    Read rows from a collection.

    Args:
        eq:       {column: value}, exact matches, all must hold.
        gte / lt: {column: value}, range bounds (inclusive / exclusive).
        order_by: column to sort on.
        limit:    maximum number of rows.
    """
    _check_table(table)
    where, params = _build_where(table, eq, gte, lt)
    sql = f"SELECT * FROM {table}{where}"
    if order_by:
        _check_columns(table, [order_by])
        sql += f" ORDER BY {order_by} {'ASC' if ascending else 'DESC'}"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(int(limit))

    rows = _fetch(sql, params)
    return [_decode_row(table, row) for row in rows]


def select_reviews_with_product(eq: Optional[dict] = None, order_by: str = "created_at",
                                ascending: bool = False) -> list[dict]:
    """Reviews plus the name of the product they belong to (None if unattached)."""
    where, params = _build_where("reviews", eq, None, None, alias="r")
    _check_columns("reviews", [order_by])
    sql = (
        "SELECT r.*, p.name AS product_name FROM reviews r "
        "LEFT JOIN products p ON p.id = r.product_id"
        f"{where} ORDER BY r.{order_by} {'ASC' if ascending else 'DESC'}"
    )
    rows = _fetch(sql, params)
    return [_decode_row("reviews", row) for row in rows]


def insert(table: str, rows: list[dict]) -> list[dict]:
    """
    Add rows to a collection and return them as stored.
    `id` and timestamp columns are filled in when the caller leaves them out.
    """
    _check_table(table)
    columns = TABLES[table]
    stamp = now_iso()
    stored = []

    conn = _get_connection()
    try:
        for row in rows:
            _check_columns(table, row.keys())
            record = dict(row)
            record.setdefault("id", _new_id())
            for ts_col in ("created_at", "updated_at", "valid_from"):
                if ts_col in columns:
                    record.setdefault(ts_col, stamp)

            names = list(record.keys())
            placeholders = ", ".join("?" for _ in names)
            conn.execute(
                f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders})",
                [_encode_value(table, n, record[n]) for n in names],
            )
            stored.append(record["id"])
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreError(f"Insert into {table} failed: {e}") from e
    finally:
        conn.close()

    return [select(table, eq={"id": row_id})[0] for row_id in stored]


def update(table: str, values: dict, eq: dict) -> int:
    """Change the given columns on every row matching `eq`. Returns rows touched."""
    _check_table(table)
    if not eq:
        raise StoreError("Refusing to update without a filter")
    _check_columns(table, values.keys())
    assignments = ", ".join(f"{col} = ?" for col in values)
    params = [_encode_value(table, col, val) for col, val in values.items()]
    where, where_params = _build_where(table, eq, None, None)
    return _execute(f"UPDATE {table} SET {assignments}{where}", params + where_params)


def delete(table: str, eq: dict) -> int:
    """Remove every row matching `eq`. Returns rows removed."""
    _check_table(table)
    if not eq:
        raise StoreError("Refusing to delete without a filter")
    where, params = _build_where(table, eq, None, None)
    return _execute(f"DELETE FROM {table}{where}", params)


# ============================================================
# Helpers
# ============================================================

def _new_id() -> str:
    return uuid.uuid4().hex


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise StoreError(f"Unknown collection: {table}")


def _check_columns(table: str, columns) -> None:
    unknown = [c for c in columns if c not in TABLES[table]]
    if unknown:
        raise StoreError(f"Unknown column(s) on {table}: {', '.join(unknown)}")


def _build_where(table: str, eq, gte, lt, alias: str = "") -> tuple[str, list]:
    prefix = f"{alias}." if alias else ""
    clauses, params = [], []
    for op, filters in (("=", eq), (">=", gte), ("<", lt)):
        if not filters:
            continue
        _check_columns(table, filters.keys())
        for col, value in filters.items():
            if op == "=" and value is None:
                clauses.append(f"{prefix}{col} IS NULL")
                continue
            clauses.append(f"{prefix}{col} {op} ?")
            params.append(_encode_value(table, col, value))
    where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def _encode_value(table: str, column: str, value):
    if column in JSON_COLUMNS.get(table, ()):
        return json.dumps(value)
    if column in BOOL_COLUMNS.get(table, ()):
        return 1 if value else 0
    if isinstance(value, datetime):
        return to_iso(value)
    if column in TIMESTAMP_COLUMNS and isinstance(value, str):
        try:
            return to_iso(isoparse(value))
        except ValueError as e:
            raise StoreError(f"{table}.{column}: not an ISO timestamp: {value!r}") from e
    return value


def _decode_row(table: str, row: sqlite3.Row) -> dict:
    record = dict(row)
    for col in JSON_COLUMNS.get(table, ()):
        if col in record and record[col] is not None:
            try:
                record[col] = json.loads(record[col])
            except (TypeError, json.JSONDecodeError):
                pass
    for col in BOOL_COLUMNS.get(table, ()):
        if col in record and record[col] is not None:
            record[col] = bool(record[col])
    return record


def _fetch(sql: str, params: list) -> list[sqlite3.Row]:
    conn = _get_connection()
    try:
        return conn.execute(sql, params).fetchall()
    except sqlite3.Error as e:
        raise StoreError(f"Query failed: {e}") from e
    finally:
        conn.close()


def _execute(sql: str, params: list) -> int:
    conn = _get_connection()
    try:
        cursor = conn.execute(sql, params)
        conn.commit()
        return cursor.rowcount
    except sqlite3.Error as e:
        conn.rollback()
        raise StoreError(f"Write failed: {e}") from e
    finally:
        conn.close()
