"""
SQLite-based scan record storage with run tracking and CSV export.
"""

from __future__ import annotations

import json
import os
import sqlite3
import threading
from typing import Any, Dict, List, Optional

import pandas as pd

from reachout.errors import PersistenceError
from reachout.models import MergePolicy, RunStats, ScanRecord, now_utc_iso
from reachout.storage.base import ScanStore


_COLUMNS = [
    ("companyName", "company_name"),
    ("companyInfo", "company_info"),
    ("jobDescription", "job_description"),
    ("location", "location"),
    ("listingDate", "listing_date"),
    ("careersPage", "careers_page"),
    ("emails", "emails"),
    ("scannedPages", "scanned_pages"),
]
_JSON_COLUMNS = {"emails", "scanned_pages"}


class ScanDatabase(ScanStore):
    """
    SQLite database for scan records.
    """

    def __init__(self, db_path: str, merge_policy: MergePolicy = MergePolicy.SKIP):
        """
        Initialize the database.

        Args:
            db_path: Path to SQLite database file
            merge_policy: What to do when a (company, location) key is already stored
        """
        super().__init__(merge_policy)
        self.db_path = db_path
        os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (creating if needed)."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._lock:
            try:
                conn = self._get_conn()
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS scan_records (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        company_name TEXT NOT NULL,
                        company_info TEXT,
                        job_description TEXT,
                        location TEXT NOT NULL,
                        listing_date TEXT,
                        careers_page TEXT,
                        emails TEXT,  -- JSON array
                        scanned_pages TEXT,  -- JSON array
                        first_seen_at TEXT NOT NULL,
                        last_seen_at TEXT NOT NULL
                    );

                    CREATE UNIQUE INDEX IF NOT EXISTS idx_scan_records_key
                        ON scan_records(company_name, location);

                    CREATE TABLE IF NOT EXISTS runs (
                        run_id INTEGER PRIMARY KEY AUTOINCREMENT,
                        started_at TEXT NOT NULL,
                        finished_at TEXT,
                        pages_processed INTEGER DEFAULT 0,
                        jobs_processed INTEGER DEFAULT 0,
                        records_inserted INTEGER DEFAULT 0,
                        records_updated INTEGER DEFAULT 0,
                        records_skipped INTEGER DEFAULT 0,
                        records_with_emails INTEGER DEFAULT 0,
                        persistence_errors INTEGER DEFAULT 0,
                        config TEXT  -- JSON
                    );
                """)
                conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"Could not initialize {self.db_path}: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    # ----------------------------- Row mapping -----------------------------

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Dict[str, Any]:
        doc: Dict[str, Any] = {}
        for key, column in _COLUMNS:
            value = row[column]
            if column in _JSON_COLUMNS:
                value = json.loads(value) if value else []
            doc[key] = value
        return doc

    @staticmethod
    def _document_values(document: Dict[str, Any]) -> List[Any]:
        values = []
        for key, column in _COLUMNS:
            value = document.get(key)
            if column in _JSON_COLUMNS:
                value = json.dumps(list(value or []))
            values.append(value)
        return values

    # ----------------------------- ScanStore hooks -----------------------------

    def _find(self, company_name: str, location: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            try:
                cursor = self._get_conn().execute(
                    "SELECT * FROM scan_records WHERE company_name = ? AND location = ?",
                    (company_name, location),
                )
                row = cursor.fetchone()
            except sqlite3.Error as e:
                raise PersistenceError(f"Lookup failed for {company_name!r}: {e}") from e
        return self._row_to_document(row) if row else None

    def _insert(self, document: Dict[str, Any]) -> None:
        now = now_utc_iso()
        columns = [column for _, column in _COLUMNS]
        placeholders = ", ".join("?" for _ in range(len(columns) + 2))
        with self._lock:
            try:
                conn = self._get_conn()
                conn.execute(
                    f"INSERT INTO scan_records ({', '.join(columns)}, first_seen_at, last_seen_at) "
                    f"VALUES ({placeholders})",
                    (*self._document_values(document), now, now),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"Insert failed for {document.get('companyName')!r}: {e}") from e

    def _replace(self, document: Dict[str, Any]) -> None:
        assignments = ", ".join(f"{column} = ?" for _, column in _COLUMNS)
        with self._lock:
            try:
                conn = self._get_conn()
                conn.execute(
                    f"UPDATE scan_records SET {assignments}, last_seen_at = ? "
                    "WHERE company_name = ? AND location = ?",
                    (
                        *self._document_values(document),
                        now_utc_iso(),
                        document.get("companyName"),
                        document.get("location"),
                    ),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"Update failed for {document.get('companyName')!r}: {e}") from e

    def count(self) -> int:
        """Get total record count."""
        with self._lock:
            try:
                cursor = self._get_conn().execute("SELECT COUNT(*) FROM scan_records")
                result = cursor.fetchone()
            except sqlite3.Error as e:
                raise PersistenceError(f"Count failed: {e}") from e
        return result[0] if result else 0

    def all_records(self) -> List[ScanRecord]:
        with self._lock:
            try:
                cursor = self._get_conn().execute("SELECT * FROM scan_records ORDER BY id")
                rows = cursor.fetchall()
            except sqlite3.Error as e:
                raise PersistenceError(f"Read failed: {e}") from e
        return [ScanRecord.from_document(self._row_to_document(row)) for row in rows]

    # ----------------------------- Runs -----------------------------

    def start_run(self, config_json: str = "") -> int:
        """Start a new run and return its ID."""
        with self._lock:
            try:
                conn = self._get_conn()
                cursor = conn.execute(
                    "INSERT INTO runs (started_at, config) VALUES (?, ?)",
                    (now_utc_iso(), config_json),
                )
                conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"Could not record run start: {e}") from e
        return cursor.lastrowid or 0

    def finish_run(self, run_id: int, stats: RunStats) -> None:
        """Finish a run with statistics."""
        with self._lock:
            try:
                conn = self._get_conn()
                conn.execute("""
                    UPDATE runs SET
                        finished_at = ?,
                        pages_processed = ?,
                        jobs_processed = ?,
                        records_inserted = ?,
                        records_updated = ?,
                        records_skipped = ?,
                        records_with_emails = ?,
                        persistence_errors = ?
                    WHERE run_id = ?
                """, (
                    stats.finished_at or now_utc_iso(),
                    stats.pages_processed,
                    stats.jobs_processed,
                    stats.records_inserted,
                    stats.records_updated,
                    stats.records_skipped,
                    stats.records_with_emails,
                    stats.persistence_errors,
                    run_id,
                ))
                conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(f"Could not record run {run_id} stats: {e}") from e

    # ----------------------------- Export -----------------------------

    def export_to_csv(self, path: str) -> int:
        """
        Export records to a CSV file.

        Returns number of rows exported.
        """
        records = self.all_records()
        if not records:
            return 0

        df = pd.DataFrame([record.to_document() for record in records])
        for col in ("emails", "scannedPages"):
            df[col] = df[col].apply(lambda values: "; ".join(values) if values else "")

        df.to_csv(path, index=False, encoding="utf-8")
        return len(df)
