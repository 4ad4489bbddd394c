"""
Persistence for exported ledger rows.

The ledger itself is in-memory; these helpers write its tabular export to
SQLite or CSV and read persisted rows back.
"""

import csv
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .ledger import EXPORT_COLUMNS

DEFAULT_DB_PATH = "ai_tier_router.db"

# Export column -> table column
_COLUMN_MAP = {
    "ID": "record_id",
    "Timestamp": "timestamp",
    "Tier": "tier",
    "Model": "model",
    "Input Tokens": "input_tokens",
    "Output Tokens": "output_tokens",
    "Cost": "cost",
    "Duration (ms)": "duration_ms",
    "Success": "success",
    "Attempts": "attempts",
    "Error": "error",
}


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Create and return a SQLite database connection."""
    return sqlite3.connect(str(Path(db_path)))


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the usage_record table if it doesn't exist.

    Rows are append-only; no UPDATE or DELETE is ever issued against them.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS usage_record (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                record_id INTEGER NOT NULL,
                timestamp TEXT NOT NULL,
                tier TEXT NOT NULL,
                model TEXT NOT NULL,
                input_tokens INTEGER NOT NULL,
                output_tokens INTEGER NOT NULL,
                cost TEXT NOT NULL,
                duration_ms INTEGER NOT NULL,
                success INTEGER NOT NULL,
                attempts INTEGER NOT NULL DEFAULT 1,
                error TEXT NOT NULL DEFAULT ''
            )
        """)
        conn.commit()
    finally:
        conn.close()


def insert_usage_records(rows: Iterable[Dict[str, Any]], db_path: str = DEFAULT_DB_PATH) -> int:
    """Insert exported rows atomically.

    All rows are inserted in a single transaction.

    Args:
        rows: Rows from UsageLedger.export_records()
        db_path: Path to SQLite database file

    Returns:
        Number of rows inserted
    """
    rows = list(rows)
    if not rows:
        return 0

    columns = [_COLUMN_MAP[name] for name in EXPORT_COLUMNS]
    placeholders = ", ".join("?" for _ in columns)
    query = f"INSERT INTO usage_record ({', '.join(columns)}) VALUES ({placeholders})"

    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN TRANSACTION")
        for row in rows:
            conn.execute(query, [row[name] for name in EXPORT_COLUMNS])
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return len(rows)


def fetch_usage_records(limit: int = 100, db_path: str = DEFAULT_DB_PATH) -> List[Dict[str, Any]]:
    """Fetch persisted rows, most recently inserted first.

    Args:
        limit: Maximum number of rows to return
        db_path: Path to SQLite database file

    Returns:
        Rows keyed by export column name
    """
    columns = [_COLUMN_MAP[name] for name in EXPORT_COLUMNS]
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            f"SELECT {', '.join(columns)} FROM usage_record ORDER BY id DESC LIMIT ?",
            (limit,)
        )
        rows = []
        for values in cursor.fetchall():
            row = dict(zip(EXPORT_COLUMNS, values))
            row["Success"] = bool(row["Success"])
            rows.append(row)
        return rows
    finally:
        conn.close()


def write_csv(rows: Iterable[Dict[str, Any]], path: str) -> Path:
    """Write exported rows to a CSV file, creating parent directories.

    Returns:
        Path of the written file
    """
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(EXPORT_COLUMNS))
        writer.writeheader()
        writer.writerows(rows)
    return csv_path
